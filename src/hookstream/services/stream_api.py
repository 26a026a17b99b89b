"""Client for the downstream stream API.

This module provides the StreamApiClient class that turns one relayed resource
into a normalized event envelope and posts it to the stream API. It includes:

- Envelope construction (event id, source, actor and scope metadata, timestamp)
- A lazily created HTTP client with bearer authentication and a request deadline
- Outcome classification into ``PublishResult`` without internal retries
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from hookstream.core.exceptions import StreamApiError
from hookstream.core.settings import settings
from hookstream.db.time import utcnow
from hookstream.schemas.envelope import EventActor, EventScope, EventSource, StreamEnvelope
from hookstream.utils.identifiers import SYSTEM_ACTOR_ID, account_uuid

# Configure logger for this module
logger = logging.getLogger(__name__)

EVENTS_PATH = "/api/events"


@dataclass(frozen=True)
class StreamApiConfig:
    """Immutable configuration for stream API operations."""

    base_url: str
    token: str
    timeout_seconds: float
    application: str
    version: str
    environment: str


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a single publish attempt.

    ``event_id`` is always set, even on failure, so failures can be correlated
    with log lines.
    """

    success: bool
    event_id: str
    error: str | None = None


def load_stream_api_config() -> StreamApiConfig:
    """Build configuration object from global settings."""

    return StreamApiConfig(
        base_url=settings.stream_api_url.rstrip("/"),
        token=settings.stream_api_token,
        timeout_seconds=float(settings.stream_api_timeout_seconds),
        application=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


class StreamApiClient:
    """HTTP client wrapper for publishing events to the stream API."""

    def __init__(
        self,
        config: StreamApiConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_stream_api_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.config.base_url:
            raise StreamApiError("Stream API base URL is not configured")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )

        return self._client

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.token}",
        }

    def build_envelope(
        self,
        *,
        event_id: str,
        account_id: int,
        event_type: str,
        resource_type: str,
        resource_id: str,
        payload: Mapping[str, Any],
    ) -> StreamEnvelope:
        """Assemble the envelope for one resource event."""
        tenant = account_uuid(account_id)
        return StreamEnvelope(
            event_id=event_id,
            event_type=event_type,
            timestamp=utcnow(),
            source=EventSource(
                application=self.config.application,
                version=self.config.version,
                environment=self.config.environment,
            ),
            actor=EventActor(user_id=SYSTEM_ACTOR_ID, account_id=tenant, role="system"),
            scope=EventScope(
                account_id=tenant,
                resource_type=resource_type,
                resource_id=resource_id,
            ),
            payload=dict(payload),
            metadata={},
        )

    async def publish(
        self,
        account_id: int,
        event_type: str,
        resource_type: str,
        resource_id: str,
        payload: Mapping[str, Any],
    ) -> PublishResult:
        """Send one event downstream and classify the outcome.

        Exactly one HTTP request is made. Any 2xx status is a success. Other
        statuses and transport failures come back as an unsuccessful
        ``PublishResult``. Nothing is retried here.

        Args:
            account_id: Tenant account the event belongs to.
            event_type: Wire event type, e.g. ``picture.create``.
            resource_type: ``picture`` or ``reference``.
            resource_id: Identifier of the resource, as a string.
            payload: Item data plus provenance fields.

        Returns:
            The publish outcome carrying the generated event id.
        """
        event_id = str(uuid.uuid4())

        try:
            envelope = self.build_envelope(
                event_id=event_id,
                account_id=account_id,
                event_type=event_type,
                resource_type=resource_type,
                resource_id=resource_id,
                payload=payload,
            )
            client = await self._ensure_client()
            response = await client.post(
                EVENTS_PATH,
                json=envelope.to_wire(),
                headers=self._build_headers(),
            )
        except (httpx.HTTPError, OSError, StreamApiError, ValueError) as exc:
            message = str(exc) or exc.__class__.__name__
            logger.error(
                "Error publishing event %s to stream API: %s", event_id, message
            )
            return PublishResult(success=False, event_id=event_id, error=message)

        if not response.is_success:
            logger.error(
                "Failed to publish event %s to stream API: HTTP %d %s",
                event_id,
                response.status_code,
                response.text,
            )
            return PublishResult(
                success=False,
                event_id=event_id,
                error=f"HTTP {response.status_code}: {response.text}",
            )

        logger.debug("Event %s (%s) published successfully", event_id, event_type)
        return PublishResult(success=True, event_id=event_id)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _StreamApiClientSingleton:
    """Singleton wrapper for StreamApiClient."""

    _instance: StreamApiClient | None = None

    @classmethod
    def get_instance(cls) -> StreamApiClient:
        """Get or create the singleton StreamApiClient instance."""
        if cls._instance is None:
            cls._instance = StreamApiClient()
        return cls._instance


def get_stream_api_client() -> StreamApiClient:
    """Return a singleton stream API client instance."""
    return _StreamApiClientSingleton.get_instance()
