"""Tenant lookups and client administration backed by the relational store."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from hookstream.core.events import EVENT_KINDS, EventKind
from hookstream.models import Client, FailedEvent, WebhookConfig

logger = logging.getLogger(__name__)

__all__ = ["ClientService", "TenantDirectory", "WebhookSwitch", "generate_secret_key"]


class TenantDirectory(Protocol):
    """Read-only tenant lookups needed by the relay pipeline."""

    def is_event_enabled(self, account_id: int, kind: EventKind) -> bool: ...

    def find_client_id_by_account_id(self, account_id: int) -> str | None: ...


@dataclass(frozen=True)
class WebhookSwitch:
    """Desired enable state for one event kind."""

    event_type: EventKind
    enabled: bool


def generate_secret_key() -> str:
    """Return a fresh webhook secret key."""
    return secrets.token_hex(32)


class ClientService:
    """Client CRUD plus the tenant lookups used during webhook processing."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # Tenant lookups

    def get_by_account_id(self, account_id: int) -> Client | None:
        return self.db.scalars(
            select(Client)
            .options(selectinload(Client.webhook_configs))
            .where(Client.account_id == account_id)
        ).first()

    def is_event_enabled(self, account_id: int, kind: EventKind) -> bool:
        """Return True only for an enabled tenant with ``kind`` switched on."""
        client = self.db.scalars(select(Client).where(Client.account_id == account_id)).first()
        if client is None or not client.enabled:
            return False

        config = self.db.scalars(
            select(WebhookConfig).where(
                WebhookConfig.client_id == client.id,
                WebhookConfig.event_type == kind.value,
            )
        ).first()
        return bool(config and config.enabled)

    def find_client_id_by_account_id(self, account_id: int) -> str | None:
        return self.db.scalars(
            select(Client.id).where(Client.account_id == account_id)
        ).first()

    def validate_webhook_key(self, account_id: int, key: str) -> bool:
        """Check ``key`` against an enabled tenant's webhook secret."""
        client = self.db.scalars(select(Client).where(Client.account_id == account_id)).first()
        if client is None or not client.enabled:
            return False
        return secrets.compare_digest(client.webhook_secret_key, key)

    # Administration

    def list_clients(self, page: int, limit: int) -> tuple[list[Client], int]:
        total = self.db.query(Client).count()
        clients = list(
            self.db.scalars(
                select(Client)
                .options(selectinload(Client.webhook_configs))
                .order_by(Client.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
        )
        return clients, total

    def get(self, client_id: str) -> Client | None:
        return self.db.scalars(
            select(Client)
            .options(selectinload(Client.webhook_configs))
            .where(Client.id == client_id)
        ).first()

    def create(self, *, account_id: int, account_name: str, enabled: bool = True) -> Client:
        """Create a tenant with every event kind enabled."""
        client = Client(
            account_id=account_id,
            account_name=account_name,
            webhook_secret_key=generate_secret_key(),
            enabled=enabled,
            webhook_configs=[
                WebhookConfig(event_type=kind.value, enabled=True) for kind in EVENT_KINDS
            ],
        )
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        logger.info("Created client %s for account %d", client.id, account_id)
        return client

    def update(
        self,
        client: Client,
        *,
        account_name: str | None = None,
        enabled: bool | None = None,
    ) -> Client:
        if account_name is not None:
            client.account_name = account_name
        if enabled is not None:
            client.enabled = enabled
        self.db.commit()
        self.db.refresh(client)
        return client

    def regenerate_webhook_key(self, client: Client) -> Client:
        client.webhook_secret_key = generate_secret_key()
        self.db.commit()
        self.db.refresh(client)
        logger.info("Regenerated webhook key for client %s", client.id)
        return client

    def delete(self, client: Client) -> None:
        """Delete a tenant, keeping its failed events but dropping their link."""
        self.db.execute(
            update(FailedEvent)
            .where(FailedEvent.client_id == client.id)
            .values(client_id=None)
        )
        self.db.delete(client)
        self.db.commit()
        logger.info("Deleted client %s", client.id)

    def update_webhook_configs(
        self, client: Client, switches: Iterable[WebhookSwitch]
    ) -> list[WebhookConfig]:
        """Upsert the enable flag for each given kind and return all configs."""
        existing = {config.event_type: config for config in client.webhook_configs}
        for switch in switches:
            config = existing.get(switch.event_type.value)
            if config is None:
                config = WebhookConfig(event_type=switch.event_type.value, enabled=switch.enabled)
                client.webhook_configs.append(config)
                existing[config.event_type] = config
            else:
                config.enabled = switch.enabled
        self.db.commit()
        self.db.refresh(client)
        return list(client.webhook_configs)
