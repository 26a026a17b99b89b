# src/hookstream/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .clients import router as clients_router
from .failed_events import router as failed_events_router
from .health import router as health_router
from .webhooks import router as webhooks_router

__all__ = [
    "clients_router",
    "failed_events_router",
    "health_router",
    "webhooks_router",
]
