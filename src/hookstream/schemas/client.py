"""Client administration Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from hookstream.core.events import EventKind
from hookstream.utils.identifiers import MAX_ACCOUNT_ID

from .common import CamelModel, Pagination


class ClientCreate(CamelModel):
    """Schema for registering a new tenant."""

    account_id: int = Field(..., gt=0, le=MAX_ACCOUNT_ID, description="Provider account ID")
    account_name: str = Field(..., min_length=1, max_length=255)
    enabled: bool = True


class ClientUpdate(CamelModel):
    """Schema for partial tenant updates."""

    account_name: str | None = Field(None, min_length=1, max_length=255)
    enabled: bool | None = None


class WebhookConfigResponse(CamelModel):
    """Enable switch of one event kind."""

    id: str
    event_type: str
    enabled: bool


class WebhookConfigUpdate(CamelModel):
    """Desired state for one event kind."""

    event_type: EventKind
    enabled: bool


class WebhookConfigsUpdate(BaseModel):
    """Batch of switch updates for a tenant."""

    configs: list[WebhookConfigUpdate]


class ClientResponse(CamelModel):
    """Schema for tenant information returned by the API."""

    id: str
    account_id: int
    account_name: str
    webhook_secret_key: str
    enabled: bool
    created_at: datetime
    updated_at: datetime
    webhook_configs: list[WebhookConfigResponse] = []


class ClientPage(CamelModel):
    """One page of tenants."""

    data: list[ClientResponse]
    pagination: Pagination
