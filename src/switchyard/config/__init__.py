"""Configuration layer — settings, discovery, logging."""
