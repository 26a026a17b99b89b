# src/hookstream/models/__init__.py
"""SQLAlchemy models for the relay."""

from .client import Client, WebhookConfig
from .failed_event import FailedEvent

__all__ = [
    "Client", "WebhookConfig",
    "FailedEvent",
]
