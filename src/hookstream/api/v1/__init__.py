# src/hookstream/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import clients_router, failed_events_router, health_router, webhooks_router

__all__ = [
    "clients_router",
    "failed_events_router",
    "health_router",
    "webhooks_router",
]
