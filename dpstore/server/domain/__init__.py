"""Request handlers for the order service."""
