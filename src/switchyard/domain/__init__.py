"""Domain layer — envelopes, response building, attributes.

This layer depends only on stdlib, pydantic and :mod:`switchyard.errors`.
It must never import from dispatch, services, plugins, commands, or config.
"""
