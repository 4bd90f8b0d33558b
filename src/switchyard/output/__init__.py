"""Presentation layer — Rich and JSON rendering of ServiceResult.

Output may import from services (for the result contract) only.
"""
