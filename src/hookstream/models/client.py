# src/hookstream/models/client.py
"""SQLAlchemy models for relay tenants and their per-kind webhook switches."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hookstream.db.session import Base
from hookstream.db.time import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Client(Base):
    """A tenant account whose webhooks are relayed downstream."""

    __tablename__ = "client"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    account_id: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    webhook_secret_key: Mapped[str] = mapped_column(Text, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    webhook_configs: Mapped[list[WebhookConfig]] = relationship(
        "WebhookConfig",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="WebhookConfig.event_type",
    )


class WebhookConfig(Base):
    """Enable flag for one event kind of one tenant."""

    __tablename__ = "webhook_config"
    __table_args__ = (UniqueConstraint("client_id", "event_type", name="uq_webhook_config_kind"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    client_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("client.id", ondelete="CASCADE"),
        nullable=False,
    )
    # EventKind value, e.g. 'pictures/create'.
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    client: Mapped[Client] = relationship("Client", back_populates="webhook_configs")
