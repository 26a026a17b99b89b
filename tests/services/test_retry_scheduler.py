import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm import Session

from hookstream.core.events import EventKind
from hookstream.db.time import as_utc, utcnow
from hookstream.models import FailedEvent
from hookstream.services.failed_events import build_snapshot
from hookstream.services.retry import ReplaySummary, RetryScheduler, retry_delay_seconds
from hookstream.services.stream_api import PublishResult, StreamApiClient


@pytest.fixture
def mock_stream_client() -> AsyncMock:
    client = AsyncMock(spec=StreamApiClient)
    client.publish.return_value = PublishResult(success=True, event_id="evt-ok")
    return client


@pytest.fixture
def mock_session_local(mocker, db_session: Session):
    # Patch SessionLocal to return our db_session when called as a context manager
    mock_sl = mocker.patch("hookstream.db.session.SessionLocal")
    mock_sl.return_value.__enter__.return_value = db_session
    mock_sl.return_value.__exit__.return_value = None
    return mock_sl


def _add(
    db_session: Session,
    *,
    resource_id: str = "1",
    retry_count: int = 0,
    next_retry_in: int = -1,
    event_type: str = EventKind.PICTURES_UPDATE.value,
) -> FailedEvent:
    record = FailedEvent(
        account_id=42,
        event_type=event_type,
        payload=build_snapshot(
            resource_id=resource_id,
            resource_type="picture",
            item_data={"title": f"item {resource_id}"},
            original_topic="pictures/update",
        ),
        error="HTTP 500: boom",
        retry_count=retry_count,
        next_retry=utcnow() + timedelta(seconds=next_retry_in),
    )
    db_session.add(record)
    db_session.commit()
    return record


def test_backoff_doubles_from_base() -> None:
    assert [retry_delay_seconds(n, 60, 3600) for n in range(1, 8)] == [
        60, 120, 240, 480, 960, 1920, 3600,
    ]


def test_backoff_is_capped() -> None:
    assert retry_delay_seconds(50, 60, 3600) == 3600
    assert retry_delay_seconds(10_000, 60, 3600) == 3600


def test_backoff_uses_settings_defaults() -> None:
    assert retry_delay_seconds(1) == 60
    assert retry_delay_seconds(3) == 240


@pytest.mark.asyncio
async def test_run_once_success_deletes_only_that_record(
    db_session: Session, mock_stream_client: AsyncMock
):
    due = _add(db_session, resource_id="1")
    not_due = _add(db_session, resource_id="2", next_retry_in=600)

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)
    summary = await scheduler.run_once()

    assert summary == ReplaySummary(replayed=1, failed=0)
    assert db_session.get(FailedEvent, due.id) is None
    assert db_session.get(FailedEvent, not_due.id) is not None
    mock_stream_client.publish.assert_awaited_once_with(
        42,
        "picture.update",
        "picture",
        "1",
        {
            "title": "item 1",
            "originalTopic": "pictures/update",
            "originalType": "picture",
            "isReplay": True,
        },
    )


@pytest.mark.asyncio
async def test_failed_retry_increments_and_backs_off(
    db_session: Session, mock_stream_client: AsyncMock
):
    mock_stream_client.publish.return_value = PublishResult(
        success=False, event_id="evt-1", error="HTTP 503: unavailable"
    )
    record = _add(db_session, retry_count=2)
    before = utcnow()

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)
    summary = await scheduler.run_once()

    assert summary == ReplaySummary(replayed=0, failed=1)
    db_session.refresh(record)
    assert record.retry_count == 3
    assert record.error == "HTTP 503: unavailable"
    next_retry = as_utc(record.next_retry)
    assert before + timedelta(seconds=239) <= next_retry <= utcnow() + timedelta(seconds=241)


@pytest.mark.asyncio
async def test_successive_failures_follow_backoff_sequence(
    db_session: Session, mock_stream_client: AsyncMock
):
    mock_stream_client.publish.return_value = PublishResult(
        success=False, event_id="evt-1", error="HTTP 500: boom"
    )
    record = _add(db_session)
    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)

    delays = []
    for _ in range(3):
        await scheduler.replay([record.id])
        db_session.refresh(record)
        delays.append(round((as_utc(record.next_retry) - utcnow()).total_seconds() / 60))

    assert record.retry_count == 3
    assert delays == [1, 2, 4]


@pytest.mark.asyncio
async def test_exhausted_records_are_never_retried(
    db_session: Session, mock_stream_client: AsyncMock
):
    record = _add(db_session, retry_count=10, next_retry_in=-3600)

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session, max_retries=10)
    summary = await scheduler.run_once()

    assert summary.touched is False
    mock_stream_client.publish.assert_not_awaited()
    db_session.refresh(record)
    assert record.retry_count == 10


@pytest.mark.asyncio
async def test_unknown_event_type_is_dropped(db_session: Session, mock_stream_client: AsyncMock):
    record = _add(db_session, event_type="albums/create")

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)
    summary = await scheduler.run_once()

    assert summary == ReplaySummary(replayed=0, failed=1)
    mock_stream_client.publish.assert_not_awaited()
    assert db_session.get(FailedEvent, record.id) is None


@pytest.mark.asyncio
async def test_malformed_snapshot_is_dropped_and_batch_continues(
    db_session: Session, mock_stream_client: AsyncMock
):
    broken = _add(db_session, resource_id="1", next_retry_in=-60)
    broken.payload = {**broken.payload, "itemData": ["x"]}
    db_session.commit()
    healthy = _add(db_session, resource_id="2", next_retry_in=-1)

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)
    summary = await scheduler.run_once()

    assert summary == ReplaySummary(replayed=1, failed=1)
    assert db_session.get(FailedEvent, broken.id) is None
    assert db_session.get(FailedEvent, healthy.id) is None
    mock_stream_client.publish.assert_awaited_once()
    assert mock_stream_client.publish.await_args.args[3] == "2"


@pytest.mark.asyncio
async def test_loop_survives_data_error_in_tick(
    db_session: Session, mock_stream_client: AsyncMock, mocker
):
    scheduler = RetryScheduler(
        client=mock_stream_client, db_session=db_session, interval_seconds=0.01
    )
    run_once = mocker.patch.object(
        scheduler,
        "run_once",
        new=AsyncMock(side_effect=[TypeError("not a mapping")] + [ReplaySummary()] * 1000),
    )

    await scheduler.start()
    for _ in range(100):
        if run_once.await_count >= 2:
            break
        await asyncio.sleep(0.01)

    assert scheduler.running is True
    assert run_once.await_count >= 2
    await scheduler.stop()
    assert scheduler.running is False

@pytest.mark.asyncio
async def test_replay_ids_ignores_retry_time(db_session: Session, mock_stream_client: AsyncMock):
    chosen = _add(db_session, resource_id="1", next_retry_in=3600)
    other = _add(db_session, resource_id="2")

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)
    summary = await scheduler.replay([chosen.id])

    assert summary == ReplaySummary(replayed=1, failed=0)
    assert db_session.get(FailedEvent, chosen.id) is None
    assert db_session.get(FailedEvent, other.id) is not None


@pytest.mark.asyncio
async def test_replay_all_skips_exhausted(db_session: Session, mock_stream_client: AsyncMock):
    _add(db_session, resource_id="1", next_retry_in=3600)
    _add(db_session, resource_id="2")
    exhausted = _add(db_session, resource_id="3", retry_count=10)

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session, max_retries=10)
    summary = await scheduler.replay(all_pending=True)

    assert summary.replayed == 2
    assert mock_stream_client.publish.await_count == 2
    assert db_session.get(FailedEvent, exhausted.id) is not None


@pytest.mark.asyncio
async def test_replay_without_selection_is_noop(
    db_session: Session, mock_stream_client: AsyncMock
):
    _add(db_session)

    scheduler = RetryScheduler(client=mock_stream_client, db_session=db_session)

    assert await scheduler.replay() == ReplaySummary()
    mock_stream_client.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_run_once_uses_session_factory(
    db_session: Session, mock_stream_client: AsyncMock, mock_session_local
):
    record = _add(db_session)

    scheduler = RetryScheduler(client=mock_stream_client)
    summary = await scheduler.run_once()

    assert summary.replayed == 1
    mock_session_local.assert_called_once()
    assert db_session.get(FailedEvent, record.id) is None


@pytest.mark.asyncio
async def test_start_runs_first_tick_and_stop_halts(
    db_session: Session, mock_stream_client: AsyncMock
):
    record = _add(db_session)
    scheduler = RetryScheduler(
        client=mock_stream_client, db_session=db_session, interval_seconds=3600
    )

    await scheduler.start()
    assert scheduler.running is True
    for _ in range(50):
        if mock_stream_client.publish.await_count:
            break
        await asyncio.sleep(0.01)

    await scheduler.stop()

    assert scheduler.running is False
    mock_stream_client.publish.assert_awaited_once()
    assert db_session.get(FailedEvent, record.id) is None


@pytest.mark.asyncio
async def test_start_twice_keeps_single_loop(db_session: Session, mock_stream_client: AsyncMock):
    scheduler = RetryScheduler(
        client=mock_stream_client, db_session=db_session, interval_seconds=3600
    )

    await scheduler.start()
    task = scheduler._task
    await scheduler.start()

    assert scheduler._task is task
    await scheduler.stop()
