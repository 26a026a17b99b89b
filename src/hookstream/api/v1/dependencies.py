"""Shared API dependencies for authentication and service wiring."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from hookstream.core.settings import settings
from hookstream.db.session import get_db
from hookstream.services.retry import RetryScheduler
from hookstream.services.stream_api import StreamApiClient, get_stream_api_client
from hookstream.services.tenants import ClientService
from hookstream.services.webhook import WebhookProcessor

# Header scheme for the operator API key
api_key_scheme = APIKeyHeader(name="X-API-Key", auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_stream_api_client_dep() -> StreamApiClient:
    """Get StreamApiClient dependency for dependency injection."""
    return get_stream_api_client()


StreamApiClientDep = Annotated[StreamApiClient, Depends(get_stream_api_client_dep)]


def require_admin_key(api_key: Annotated[str | None, Depends(api_key_scheme)]) -> None:
    """Reject requests that do not carry the configured admin API key.

    Raises:
        HTTPException: If no key is configured or the supplied key does not match
    """
    expected = settings.admin_api_key
    if not expected or not api_key or not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )


def get_client_service(db: SessionDep) -> ClientService:
    return ClientService(db)


def get_webhook_processor(db: SessionDep, client: StreamApiClientDep) -> WebhookProcessor:
    return WebhookProcessor(db, client=client)


def get_retry_scheduler(db: SessionDep, client: StreamApiClientDep) -> RetryScheduler:
    """Build a scheduler bound to the request session for on-demand replays."""
    return RetryScheduler(client=client, db_session=db)


ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
WebhookProcessorDep = Annotated[WebhookProcessor, Depends(get_webhook_processor)]
RetrySchedulerDep = Annotated[RetryScheduler, Depends(get_retry_scheduler)]
