"""Wire schema for events sent to the downstream stream API."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class EventSource(_WireModel):
    """Application that emitted the event."""

    application: str
    version: str
    environment: str


class EventActor(_WireModel):
    """Identity the event is attributed to; always the relay's system identity."""

    user_id: str
    account_id: str
    role: str | None = "system"


class EventScope(_WireModel):
    """Tenant and resource the event refers to."""

    account_id: str
    resource_type: str
    resource_id: str


class StreamEnvelope(_WireModel):
    """Normalized event envelope posted to the stream API."""

    event_id: str
    event_type: str
    timestamp: datetime
    source: EventSource
    actor: EventActor
    scope: EventScope
    payload: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase representation."""
        data = self.model_dump(mode="json", by_alias=True)
        data["timestamp"] = self.timestamp.isoformat(timespec="milliseconds").replace(
            "+00:00", "Z"
        )
        return data
