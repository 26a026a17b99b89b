# src/hookstream/services/__init__.py
"""Relay services: translation, publishing, fan-out, failure storage and retry."""

from .failed_events import FailedEventStore
from .retry import RetryScheduler
from .stream_api import StreamApiClient, get_stream_api_client
from .tenants import ClientService
from .webhook import WebhookProcessor

__all__ = [
    "ClientService",
    "FailedEventStore",
    "RetryScheduler",
    "StreamApiClient",
    "WebhookProcessor",
    "get_stream_api_client",
]
