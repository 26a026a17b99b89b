"""Background retry of failed stream publishes.

This module provides the RetryScheduler class that periodically replays failed
events whose retry time has come, and the backoff policy used to reschedule
them. The same per-record logic backs operator-triggered replays.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hookstream.core.settings import settings
from hookstream.db import session as db_session_module
from hookstream.db.time import utcnow
from hookstream.models import FailedEvent
from hookstream.services.failed_events import DUE_BATCH_LIMIT, FailedEventStore
from hookstream.services.stream_api import StreamApiClient, get_stream_api_client
from hookstream.services.translator import parse_event_kind, wire_event_type

# Configure logger for this module
logger = logging.getLogger(__name__)

__all__ = ["ReplaySummary", "RetryScheduler", "retry_delay_seconds"]

# Past this exponent the delay is always capped; avoids building huge ints.
_MAX_EXPONENT = 32


def retry_delay_seconds(
    retry_count: int,
    base_delay: int | None = None,
    max_delay: int | None = None,
) -> int:
    """Return the backoff before the next attempt.

    ``retry_count`` is the count after the failed attempt has been recorded,
    so the first failed retry (count 1) waits ``base_delay`` and each further
    failure doubles it, up to ``max_delay``.
    """
    base = settings.retry_base_delay_seconds if base_delay is None else base_delay
    cap = settings.retry_max_delay_seconds if max_delay is None else max_delay
    exponent = max(retry_count - 1, 0)
    if exponent >= _MAX_EXPONENT:
        return cap
    return min(base * 2**exponent, cap)


@dataclass(frozen=True)
class ReplaySummary:
    """Counts of records replayed successfully and of failed attempts."""

    replayed: int = 0
    failed: int = 0

    @property
    def touched(self) -> bool:
        return self.replayed > 0 or self.failed > 0


class RetryScheduler:
    """Periodically re-publishes due failed events.

    The scheduler owns its asyncio task and stop signal; the application
    lifecycle starts and stops it. Records in a batch are handled one at a time.
    """

    def __init__(
        self,
        client: StreamApiClient | None = None,
        db_session: Session | None = None,
        *,
        interval_seconds: float | None = None,
        max_retries: int | None = None,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            client: Optional stream API client. If None, uses the global client.
            db_session: Optional database session. If None, creates new sessions as needed.
            interval_seconds: Tick interval; defaults to ``RETRY_JOB_INTERVAL_SECONDS``.
            max_retries: Exhaustion threshold; defaults to ``RETRY_JOB_MAX_RETRIES``.
            batch_size: Records per tick, never above 100.
        """
        self.client = client or get_stream_api_client()
        self.interval_seconds = float(interval_seconds or settings.retry_job_interval_seconds)
        self.max_retries = max_retries or settings.retry_job_max_retries
        self.batch_size = min(batch_size or settings.retry_job_batch_size, DUE_BATCH_LIMIT)
        self._db_session = db_session
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background retry loop; the first tick runs immediately."""

        if self.running:
            logger.warning("Retry scheduler already running")
            return

        logger.info("Starting retry scheduler (interval %.1fs)", self.interval_seconds)
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop, letting an in-flight tick finish."""

        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Retry scheduler stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                summary = await self.run_once()
                if summary.touched:
                    logger.info(
                        "Retry tick completed: replayed=%d failed=%d",
                        summary.replayed,
                        summary.failed,
                    )
            except SQLAlchemyError as e:
                logger.error("Retry tick failed: %s", e, exc_info=True)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error("Retry tick aborted on malformed data: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._db_session is not None:
            yield self._db_session
        else:
            with db_session_module.SessionLocal() as db:
                yield db

    async def run_once(self) -> ReplaySummary:
        """Replay the batch of records that are due now."""
        with self._session() as db:
            store = FailedEventStore(db)
            records = store.due(
                now=utcnow(),
                max_retries=self.max_retries,
                limit=self.batch_size,
            )
            if not records:
                return ReplaySummary()

            logger.info("Processing %d pending failed events", len(records))
            return await self._replay_records(store, records)

    async def replay(
        self,
        ids: Sequence[str] | None = None,
        *,
        all_pending: bool = False,
    ) -> ReplaySummary:
        """Replay records on demand, outside the timer.

        With ``all_pending`` every non-exhausted record is replayed regardless of
        its retry time. Otherwise exactly the records named by ``ids`` are
        replayed. With neither, nothing happens.
        """
        with self._session() as db:
            store = FailedEventStore(db)
            if all_pending:
                records = store.pending(self.max_retries)
            elif ids:
                records = store.get_many(ids)
            else:
                return ReplaySummary()

            summary = await self._replay_records(store, records)
            logger.info(
                "Manual replay finished: replayed=%d failed=%d",
                summary.replayed,
                summary.failed,
            )
            return summary

    async def _replay_records(
        self, store: FailedEventStore, records: Sequence[FailedEvent]
    ) -> ReplaySummary:
        replayed = 0
        failed = 0
        for record in records:
            if await self._replay_record(store, record):
                replayed += 1
            else:
                failed += 1
        return ReplaySummary(replayed=replayed, failed=failed)

    async def _replay_record(self, store: FailedEventStore, record: FailedEvent) -> bool:
        """Re-publish one record; delete it on success, reschedule it on failure."""
        record_id = record.id
        kind = parse_event_kind(record.event_type)
        if kind is None:
            logger.error(
                "Unknown event type %r for failed event %s, deleting",
                record.event_type,
                record_id,
            )
            store.delete(record_id)
            return False

        snapshot = record.payload
        if not isinstance(snapshot, Mapping) or not isinstance(snapshot.get("itemData") or {}, Mapping):
            logger.error("Malformed payload snapshot for failed event %s, deleting", record_id)
            store.delete(record_id)
            return False
        item_data = snapshot.get("itemData") or {}
        resource_type = str(snapshot.get("resourceType", ""))

        result = await self.client.publish(
            record.account_id,
            wire_event_type(kind),
            resource_type,
            str(snapshot.get("resourceId", "")),
            {
                **item_data,
                "originalTopic": snapshot.get("originalTopic"),
                "originalType": resource_type,
                "isReplay": True,
            },
        )

        if result.success:
            store.delete(record_id)
            logger.debug("Failed event %s replayed successfully", record_id)
            return True

        retry_count = record.retry_count + 1
        delay = retry_delay_seconds(retry_count)
        store.mark_retry_failed(
            record_id,
            retry_count=retry_count,
            error=result.error or "Unknown error",
            next_retry=utcnow() + timedelta(seconds=delay),
        )
        logger.warning(
            "Failed to replay event %s (retry %d), next attempt in %ds",
            record_id,
            retry_count,
            delay,
        )
        return False
