"""Service layer — skill container, stock interceptors and error handlers.

Services may import from dispatch and domain layers.
They must never import from commands or output.
"""
