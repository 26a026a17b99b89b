"""Failed event Pydantic schemas for the operator surface."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from hookstream.db.time import as_utc

from .common import CamelModel, Pagination


class FailedEventResponse(CamelModel):
    """Schema for a stored failure returned by the API."""

    id: str
    client_id: str | None
    account_id: int
    account_name: str | None = None
    event_type: str
    payload: dict[str, Any]
    error: str
    retry_count: int
    next_retry: datetime
    created_at: datetime

    @model_validator(mode="after")
    def _normalize_times(self) -> FailedEventResponse:
        self.next_retry = as_utc(self.next_retry)
        self.created_at = as_utc(self.created_at)
        return self


class FailedEventPage(CamelModel):
    """One page of failed events."""

    data: list[FailedEventResponse]
    pagination: Pagination


class FailedEventStatsResponse(CamelModel):
    """Failure counts; ``max_retries`` counts exhausted records."""

    total: int
    pending: int
    max_retries: int


class ReplayRequest(BaseModel):
    """Operator request to replay failed events now."""

    ids: list[UUID] | None = Field(None, description="Failed event ids to replay")
    all: bool | None = Field(None, description="Replay every pending failed event")


class ReplayResponse(BaseModel):
    """Counts returned after a manual replay."""

    replayed: int
    failed: int
