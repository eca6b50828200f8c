"""
Payments API routes.

Exposes transaction creation for the storefront and the Midtrans webhook.
Keep this thin: validation, mapping and gateway details live in the
application services.
"""
from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_notification_reconciler, get_transaction_initiator
from application.services.notification_service import NotificationReconciler
from application.services.payment_service import TransactionInitiator
from core.response import success_response
from domain.common.exceptions import InvalidRequestException, VerificationFailedException


router = APIRouter(tags=["Payments"])


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    return json.loads(raw)


@router.post("/create-transaction", summary="Create Snap transaction")
async def create_transaction(
    request: Request,
    initiator: TransactionInitiator = Depends(get_transaction_initiator),
):
    try:
        body = await _read_json(request)
    except ValueError as exc:
        raise InvalidRequestException("Request body must be valid JSON") from exc

    result = await initiator.initiate(body)
    return success_response(data=result.model_dump(mode="json")).to_payload()


@router.post("/midtrans-notification", summary="Midtrans payment notification webhook")
async def midtrans_notification(
    request: Request,
    reconciler: NotificationReconciler = Depends(get_notification_reconciler),
):
    try:
        notification = await _read_json(request)
    except ValueError as exc:
        raise VerificationFailedException("Notification body must be valid JSON") from exc

    await reconciler.reconcile(notification)
    # 200 acknowledges receipt; anything else makes Midtrans redeliver
    return success_response(message="Notification processed successfully").to_payload()
