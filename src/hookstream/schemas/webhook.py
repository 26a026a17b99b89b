"""Inbound webhook Pydantic schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr

from hookstream.utils.identifiers import MAX_ACCOUNT_ID


class InboundPayload(BaseModel):
    """Webhook body posted by the provider."""

    account_id: int = Field(
        ..., ge=0, le=MAX_ACCOUNT_ID, description="Provider account identifier"
    )
    topic: str = Field(..., description="Provider topic, e.g. 'pictures/create'")
    type: Literal["picture", "reference"] = Field(..., description="Resource kind")
    ids: list[StrictInt | StrictStr] = Field(
        ...,
        min_length=1,
        description="Resource identifiers, processed in order",
    )
    data: dict[str, Any] | None = Field(
        None,
        description="Item data keyed by the string form of each identifier",
    )
    picture_id: list[int] | None = Field(None, description="Accepted and ignored")

    def item_data(self, resource_id: str) -> dict[str, Any]:
        """Return the item data for ``resource_id`` or an empty object."""
        if not self.data:
            return {}
        item = self.data.get(resource_id)
        return dict(item) if isinstance(item, dict) else {}


class WebhookResponse(BaseModel):
    """Per-call outcome returned to the provider."""

    success: bool
    processed: int
    failed: int
