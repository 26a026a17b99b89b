"""Durable storage for events that failed to publish downstream."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload

from hookstream.core.events import EventKind
from hookstream.models import FailedEvent

__all__ = ["FailedEventStats", "FailedEventStore", "build_snapshot"]

# Upper bound on records handled by one scheduler tick.
DUE_BATCH_LIMIT = 100


@dataclass(frozen=True)
class FailedEventStats:
    """Counts of stored failures, split by retry eligibility."""

    total: int
    pending: int
    exhausted: int


def build_snapshot(
    *,
    resource_id: str,
    resource_type: str,
    item_data: Mapping[str, Any],
    original_topic: str,
) -> dict[str, Any]:
    """Return the payload snapshot persisted with a failed event."""
    return {
        "resourceId": resource_id,
        "resourceType": resource_type,
        "itemData": dict(item_data),
        "originalTopic": original_topic,
    }


class FailedEventStore:
    """Thin wrapper around database access for failed event records.

    Every mutating call commits on its own so each record change is a single
    atomic write.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(
        self,
        *,
        account_id: int,
        kind: EventKind,
        payload: Mapping[str, Any],
        error: str,
        next_retry: datetime,
        client_id: str | None = None,
    ) -> FailedEvent:
        """Persist a new failure with ``retry_count`` 0."""
        record = FailedEvent(
            client_id=client_id,
            account_id=account_id,
            event_type=kind.value,
            payload=dict(payload),
            error=error,
            retry_count=0,
            next_retry=next_retry,
        )
        self.session.add(record)
        self.session.commit()
        return record

    def get(self, event_id: str) -> FailedEvent | None:
        return self.session.get(FailedEvent, event_id)

    def paginate(
        self,
        *,
        page: int,
        limit: int,
        account_id: int | None = None,
        event_type: EventKind | None = None,
    ) -> tuple[list[FailedEvent], int]:
        """Return one page of records, newest first, and the filtered total."""
        filters = []
        if account_id is not None:
            filters.append(FailedEvent.account_id == account_id)
        if event_type is not None:
            filters.append(FailedEvent.event_type == event_type.value)

        total = self.session.scalar(
            select(func.count()).select_from(FailedEvent).where(*filters)
        ) or 0
        records = self.session.scalars(
            select(FailedEvent)
            .options(selectinload(FailedEvent.client))
            .where(*filters)
            .order_by(FailedEvent.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(records), int(total)

    def stats(self, max_retries: int) -> FailedEventStats:
        total = self.session.scalar(select(func.count()).select_from(FailedEvent)) or 0
        pending = self.session.scalar(
            select(func.count())
            .select_from(FailedEvent)
            .where(FailedEvent.retry_count < max_retries)
        ) or 0
        exhausted = self.session.scalar(
            select(func.count())
            .select_from(FailedEvent)
            .where(FailedEvent.retry_count >= max_retries)
        ) or 0
        return FailedEventStats(total=int(total), pending=int(pending), exhausted=int(exhausted))

    def due(
        self,
        *,
        now: datetime,
        max_retries: int,
        limit: int = DUE_BATCH_LIMIT,
    ) -> list[FailedEvent]:
        """Return records whose retry time has passed and that are not exhausted."""
        return list(
            self.session.scalars(
                select(FailedEvent)
                .where(
                    FailedEvent.next_retry <= now,
                    FailedEvent.retry_count < max_retries,
                )
                .order_by(FailedEvent.next_retry.asc())
                .limit(min(limit, DUE_BATCH_LIMIT))
            )
        )

    def pending(self, max_retries: int) -> list[FailedEvent]:
        """Return every non-exhausted record regardless of its retry time."""
        return list(
            self.session.scalars(
                select(FailedEvent)
                .where(FailedEvent.retry_count < max_retries)
                .order_by(FailedEvent.next_retry.asc())
            )
        )

    def get_many(self, event_ids: Sequence[str]) -> list[FailedEvent]:
        if not event_ids:
            return []
        return list(
            self.session.scalars(
                select(FailedEvent)
                .where(FailedEvent.id.in_(list(event_ids)))
                .order_by(FailedEvent.next_retry.asc())
            )
        )

    def delete(self, event_id: str) -> bool:
        """Delete one record by id; return False when it no longer exists."""
        result = self.session.execute(delete(FailedEvent).where(FailedEvent.id == event_id))
        self.session.commit()
        return bool(result.rowcount)

    def mark_retry_failed(
        self,
        event_id: str,
        *,
        retry_count: int,
        error: str,
        next_retry: datetime,
    ) -> None:
        """Record a failed retry attempt in a single UPDATE."""
        self.session.execute(
            update(FailedEvent)
            .where(FailedEvent.id == event_id)
            .values(retry_count=retry_count, error=error, next_retry=next_retry)
        )
        self.session.commit()
