"""Core configuration, constants and error types."""
