"""Inbound webhook endpoint."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from hookstream.api.v1.dependencies import ClientServiceDep, WebhookProcessorDep
from hookstream.schemas.webhook import InboundPayload, WebhookResponse
from hookstream.utils.identifiers import MAX_ACCOUNT_ID

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/{account_id}", response_model=WebhookResponse)
async def receive_webhook(
    account_id: Annotated[
        int, Path(gt=0, le=MAX_ACCOUNT_ID, description="Provider account ID")
    ],
    payload: InboundPayload,
    clients: ClientServiceDep,
    processor: WebhookProcessorDep,
    key: Annotated[str | None, Query(description="Webhook secret key")] = None,
) -> WebhookResponse:
    """Relay one provider webhook to the stream API.

    Downstream failures never fail the request; they are counted in the
    response and stored for retry.

    Raises:
        HTTPException: 400 for a missing key or unknown topic, 401 for a bad key
    """
    if not key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing or invalid key parameter",
        )

    if not clients.validate_webhook_key(account_id, key):
        logger.warning("Invalid webhook secret key for account %d", account_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid secret key",
        )

    if payload.account_id != account_id:
        logger.warning(
            "Account ID mismatch between URL (%d) and payload (%d)",
            account_id,
            payload.account_id,
        )

    result = await processor.process(account_id, payload)
    if result.rejected_topic:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.errors[0],
        )

    return WebhookResponse(
        success=result.success,
        processed=result.processed,
        failed=result.failed,
    )
