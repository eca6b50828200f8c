"""
Midtrans adapter over the Snap and Core APIs.

Notes on the API (as of 2025):
- Snap `POST /snap/v1/transactions` creates a payment session and answers
  `{token, redirect_url}`; errors carry `error_messages` (list of strings).
- Core API `GET /v2/{order_id|transaction_id}/status` is the authoritative
  status lookup. It can answer HTTP 200 with a body `status_code` >= 400
  (e.g. "404" for an unknown transaction); 407 means "expired" and is a
  valid status.
- Both authenticate with HTTP Basic, server key as username, empty password.
"""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from application.dtos.payments import PaymentSession, VerifiedNotification
from core.settings import MidtransSettings
from domain.common.exceptions import (
    GatewayRejectedException,
    InternalErrorException,
    VerificationFailedException,
)
from infrastructure.external.payments.base import BasePaymentClient
from shared.codes.payment_codes import EXPIRED_STATUS_CODE


class MidtransClient(BasePaymentClient):
    provider = "midtrans"

    def __init__(self, config: MidtransSettings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(timeouts=config.timeouts.model_dump(), transport=transport)
        self._config = config
        self._auth = httpx.BasicAuth(config.server_key, "")
        self._headers = {"Accept": "application/json", "Content-Type": "application/json"}

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    @property
    def mode(self) -> str:
        return self._config.mode

    async def create_transaction(self, payload: dict[str, Any]) -> PaymentSession:
        url = f"{self._config.snap_base_url}/snap/v1/transactions"
        data = await self._send("POST", url, json=payload, auth=self._auth, headers=self._headers)
        token = data.get("token")
        redirect_url = data.get("redirect_url")
        if not token or not redirect_url:
            raise InternalErrorException("Midtrans response is missing token or redirect_url")
        return PaymentSession(token=str(token), redirect_url=str(redirect_url))

    async def get_status(self, transaction_id: str) -> dict[str, Any]:
        url = f"{self._config.core_api_base_url}/v2/{quote(transaction_id, safe='')}/status"
        data = await self._send("GET", url, auth=self._auth, headers=self._headers)
        body_status = _parse_status_code(data.get("status_code"))
        if body_status is not None and body_status >= 400 and body_status != EXPIRED_STATUS_CODE:
            raise GatewayRejectedException(
                body_status,
                self._error_message(data, body_status),
                details=data,
            )
        return data

    async def verify_notification(self, notification: dict[str, Any]) -> VerifiedNotification:
        """Re-fetch the notified transaction instead of trusting the webhook body."""
        lookup_id = notification.get("transaction_id") or notification.get("order_id")
        if not lookup_id or not isinstance(lookup_id, str):
            raise VerificationFailedException("Notification is missing transaction_id")

        data = await self.get_status(lookup_id)
        order_id = data.get("order_id")
        if not order_id:
            raise VerificationFailedException("Midtrans status response is missing order_id")
        return VerifiedNotification(
            order_id=str(order_id),
            transaction_status=data.get("transaction_status"),
            fraud_status=data.get("fraud_status"),
            transaction_id=data.get("transaction_id"),
            status_code=str(data["status_code"]) if data.get("status_code") is not None else None,
            raw=data,
        )

    def _error_message(self, data: Any, status_code: int) -> str:
        if isinstance(data, dict):
            message = data.get("status_message")
            if message:
                return str(message)
            messages = data.get("error_messages")
            if isinstance(messages, list) and messages:
                return "; ".join(str(m) for m in messages)
        return "Failed to reach Midtrans API"


def _parse_status_code(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
