"""Operator endpoints for inspecting and replaying failed events."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from hookstream.api.v1.dependencies import RetrySchedulerDep, SessionDep, require_admin_key
from hookstream.core.events import EventKind
from hookstream.core.settings import settings
from hookstream.schemas.common import Pagination
from hookstream.schemas.failed_event import (
    FailedEventPage,
    FailedEventResponse,
    FailedEventStatsResponse,
    ReplayRequest,
    ReplayResponse,
)
from hookstream.services.failed_events import FailedEventStore

router = APIRouter(
    prefix="/admin/failed-events",
    tags=["admin", "failed-events"],
    dependencies=[Depends(require_admin_key)],
)


@router.get("", response_model=FailedEventPage)
async def list_failed_events(
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    account_id: Annotated[int | None, Query(alias="accountId", gt=0)] = None,
    event_type: Annotated[EventKind | None, Query(alias="eventType")] = None,
) -> FailedEventPage:
    """List stored failures, newest first."""
    records, total = FailedEventStore(db).paginate(
        page=page,
        limit=limit,
        account_id=account_id,
        event_type=event_type,
    )
    return FailedEventPage(
        data=[FailedEventResponse.model_validate(record) for record in records],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/stats", response_model=FailedEventStatsResponse)
async def get_failed_event_stats(db: SessionDep) -> FailedEventStatsResponse:
    """Return total, pending and exhausted failure counts."""
    stats = FailedEventStore(db).stats(settings.retry_job_max_retries)
    return FailedEventStatsResponse(
        total=stats.total,
        pending=stats.pending,
        max_retries=stats.exhausted,
    )


@router.post("/replay", response_model=ReplayResponse)
async def replay_failed_events(
    body: ReplayRequest,
    scheduler: RetrySchedulerDep,
) -> ReplayResponse:
    """Replay the given failed events, or all pending ones, immediately."""
    ids = [str(event_id) for event_id in body.ids] if body.ids else None
    summary = await scheduler.replay(ids, all_pending=bool(body.all))
    return ReplayResponse(replayed=summary.replayed, failed=summary.failed)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_failed_event(event_id: str, db: SessionDep) -> Response:
    """Delete one failed event."""
    if not FailedEventStore(db).delete(event_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Failed event not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
