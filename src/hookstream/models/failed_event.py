"""SQLAlchemy model for events that could not be published downstream."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hookstream.db.session import Base
from hookstream.db.time import utcnow
from hookstream.models.client import Client


class FailedEvent(Base):
    """Durable record of one resource publish that failed and awaits retry."""

    __tablename__ = "failed_event"
    __table_args__ = (
        Index("ix_failed_event_due", "retry_count", "next_retry"),
        Index("ix_failed_event_account", "account_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Advisory link only; the tenant may be unknown or deleted later.
    client_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("client.id", ondelete="SET NULL"),
        nullable=True,
    )
    account_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    # Snapshot: resourceId, resourceType, itemData, originalTopic.
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    error: Mapped[str] = mapped_column(Text, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_retry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    client: Mapped[Client | None] = relationship("Client")

    @property
    def account_name(self) -> str | None:
        """Return the linked tenant's display name, if the link is still valid."""
        return self.client.account_name if self.client is not None else None
