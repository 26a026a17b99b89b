"""Operator endpoints for tenant administration."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from hookstream.api.v1.dependencies import ClientServiceDep, require_admin_key
from hookstream.models import Client
from hookstream.schemas.client import (
    ClientCreate,
    ClientPage,
    ClientResponse,
    ClientUpdate,
    WebhookConfigResponse,
    WebhookConfigsUpdate,
)
from hookstream.schemas.common import Pagination
from hookstream.services.tenants import ClientService, WebhookSwitch

router = APIRouter(
    prefix="/admin/clients",
    tags=["admin", "clients"],
    dependencies=[Depends(require_admin_key)],
)


def _get_client_or_404(clients: ClientService, client_id: str) -> Client:
    client = clients.get(client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.get("", response_model=ClientPage)
async def list_clients(
    clients: ClientServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ClientPage:
    items, total = clients.list_clients(page, limit)
    return ClientPage(
        data=[ClientResponse.model_validate(item) for item in items],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(body: ClientCreate, clients: ClientServiceDep) -> Client:
    """Register a tenant with every event kind enabled."""
    if clients.get_by_account_id(body.account_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Client with this account ID already exists",
        )
    return clients.create(
        account_id=body.account_id,
        account_name=body.account_name,
        enabled=body.enabled,
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: str, clients: ClientServiceDep) -> Client:
    return _get_client_or_404(clients, client_id)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: str, body: ClientUpdate, clients: ClientServiceDep) -> Client:
    client = _get_client_or_404(clients, client_id)
    return clients.update(client, account_name=body.account_name, enabled=body.enabled)


@router.post("/{client_id}/regenerate-key", response_model=ClientResponse)
async def regenerate_client_key(client_id: str, clients: ClientServiceDep) -> Client:
    client = _get_client_or_404(clients, client_id)
    return clients.regenerate_webhook_key(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, clients: ClientServiceDep) -> Response:
    """Delete a tenant; its failed events stay queryable without the link."""
    client = _get_client_or_404(clients, client_id)
    clients.delete(client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{client_id}/webhooks", response_model=list[WebhookConfigResponse])
async def get_webhook_configs(client_id: str, clients: ClientServiceDep) -> list[object]:
    client = _get_client_or_404(clients, client_id)
    return list(client.webhook_configs)


@router.put("/{client_id}/webhooks", response_model=list[WebhookConfigResponse])
async def update_webhook_configs(
    client_id: str,
    body: WebhookConfigsUpdate,
    clients: ClientServiceDep,
) -> list[object]:
    client = _get_client_or_404(clients, client_id)
    return clients.update_webhook_configs(
        client,
        [WebhookSwitch(event_type=item.event_type, enabled=item.enabled) for item in body.configs],
    )
