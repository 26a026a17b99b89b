"""Fan-out of one inbound webhook into per-resource downstream publishes.

This module provides the WebhookProcessor class that validates the topic of an
inbound payload, checks the tenant switch for its event kind, and publishes one
event per referenced resource. Resources that fail to publish are recorded in the
failure store for the retry scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hookstream.core.events import EventKind
from hookstream.core.settings import settings
from hookstream.db.time import utcnow
from hookstream.schemas.webhook import InboundPayload
from hookstream.services.failed_events import FailedEventStore, build_snapshot
from hookstream.services.stream_api import StreamApiClient, get_stream_api_client
from hookstream.services.tenants import ClientService, TenantDirectory
from hookstream.services.translator import translate_topic

# Configure logger for this module
logger = logging.getLogger(__name__)

__all__ = ["ItemOutcome", "ProcessResult", "WebhookProcessor"]


@dataclass(frozen=True)
class ItemOutcome:
    """Publish outcome for one resource of a webhook."""

    resource_type: str
    resource_id: str
    success: bool
    error: str | None = None

    def describe_failure(self) -> str:
        return (
            f"Failed to publish event for {self.resource_type} {self.resource_id}: "
            f"{self.error or 'Unknown error'}"
        )


@dataclass(frozen=True)
class ProcessResult:
    """Aggregate outcome of processing one webhook."""

    success: bool
    processed: int
    failed: int
    errors: tuple[str, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[ItemOutcome]) -> ProcessResult:
        """Fold per-item outcomes into a result, keeping input order for errors."""
        processed = 0
        failed = 0
        errors: list[str] = []
        for outcome in outcomes:
            if outcome.success:
                processed += 1
            else:
                failed += 1
                errors.append(outcome.describe_failure())
        return cls(success=failed == 0, processed=processed, failed=failed, errors=tuple(errors))

    @classmethod
    def skipped(cls) -> ProcessResult:
        return cls(success=True, processed=0, failed=0)

    @classmethod
    def rejected(cls, reason: str) -> ProcessResult:
        return cls(success=False, processed=0, failed=0, errors=(reason,))

    @property
    def rejected_topic(self) -> bool:
        """True when the whole payload was refused before any item was handled."""
        return not self.success and self.processed == 0 and self.failed == 0


class WebhookProcessor:
    """Relays inbound webhook payloads to the stream API."""

    def __init__(
        self,
        db: Session,
        client: StreamApiClient | None = None,
        tenants: TenantDirectory | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            db: Session used for tenant lookups and failure recording.
            client: Optional stream API client. If None, uses the global client.
            tenants: Optional tenant directory. If None, uses a ClientService on ``db``.
        """
        self.db = db
        self.client = client or get_stream_api_client()
        self.tenants = tenants or ClientService(db)
        self.store = FailedEventStore(db)

    async def process(self, account_id: int, payload: InboundPayload) -> ProcessResult:
        """Publish one event per resource id in ``payload``."""
        translation = translate_topic(payload.topic)
        if translation is None:
            logger.warning("Unknown topic %r received for account %d", payload.topic, account_id)
            return ProcessResult.rejected(f"Unknown topic: {payload.topic}")

        kind = translation.kind
        if not self.tenants.is_event_enabled(account_id, kind):
            logger.info(
                "Event type %s disabled for account %d, skipping", kind.value, account_id
            )
            return ProcessResult.skipped()

        outcomes: list[ItemOutcome] = []
        for raw_id in payload.ids:
            resource_id = str(raw_id)
            item_data = payload.item_data(resource_id)

            result = await self.client.publish(
                account_id,
                translation.wire_type,
                payload.type,
                resource_id,
                {
                    **item_data,
                    "originalTopic": payload.topic,
                    "originalType": payload.type,
                    "isReplay": False,
                },
            )
            outcome = ItemOutcome(
                resource_type=payload.type,
                resource_id=resource_id,
                success=result.success,
                error=result.error,
            )
            if not outcome.success:
                self._record_failure(
                    account_id,
                    kind,
                    build_snapshot(
                        resource_id=resource_id,
                        resource_type=payload.type,
                        item_data=item_data,
                        original_topic=payload.topic,
                    ),
                    outcome.error or "Unknown error",
                )
            outcomes.append(outcome)

        summary = ProcessResult.from_outcomes(outcomes)
        logger.info(
            "Webhook processed for account %d (%s): processed=%d failed=%d total=%d",
            account_id,
            kind.value,
            summary.processed,
            summary.failed,
            len(payload.ids),
        )
        return summary

    def _record_failure(
        self,
        account_id: int,
        kind: EventKind,
        snapshot: dict[str, object],
        error: str,
    ) -> None:
        """Persist a failed publish; storage errors are logged and dropped."""
        try:
            self.store.insert(
                account_id=account_id,
                kind=kind,
                payload=snapshot,
                error=error,
                next_retry=utcnow() + timedelta(seconds=settings.retry_initial_delay_seconds),
                client_id=self.tenants.find_client_id_by_account_id(account_id),
            )
        except SQLAlchemyError:
            logger.error(
                "Failed to save failed event for account %d (%s)",
                account_id,
                kind.value,
                exc_info=True,
            )
            try:
                self.db.rollback()
            except SQLAlchemyError:
                logger.error("Rollback after failed insert also failed", exc_info=True)
