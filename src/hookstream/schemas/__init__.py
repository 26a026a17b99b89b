# src/hookstream/schemas/__init__.py
"""
Pydantic schemas for API request/response models and the downstream wire format.
"""

from .client import ClientCreate, ClientPage, ClientResponse, ClientUpdate, WebhookConfigsUpdate
from .common import Pagination
from .envelope import EventActor, EventScope, EventSource, StreamEnvelope
from .failed_event import (
    FailedEventPage,
    FailedEventResponse,
    FailedEventStatsResponse,
    ReplayRequest,
    ReplayResponse,
)
from .webhook import InboundPayload, WebhookResponse

__all__ = [
    "ClientCreate", "ClientPage", "ClientResponse", "ClientUpdate", "WebhookConfigsUpdate",
    "Pagination",
    "EventActor", "EventScope", "EventSource", "StreamEnvelope",
    "FailedEventPage", "FailedEventResponse", "FailedEventStatsResponse",
    "ReplayRequest", "ReplayResponse",
    "InboundPayload", "WebhookResponse",
]
