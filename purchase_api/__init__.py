"""Purchase status service."""
