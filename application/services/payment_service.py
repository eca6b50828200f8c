"""
Application service creating Snap payment sessions for storefront orders.

This class depends only on the application PaymentGateway port and DTOs.
The gateway implementation is provided by infrastructure and injected from
the composition root, keeping dependencies one-way.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from application.dtos.payments import OrderRequest, ProbeResult, TransactionResult, PaymentSession
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_events import PaymentEventLogger
from application.utils.identifiers import TransactionIdGenerator, slugify_item_name
from core.config import Settings
from domain.common.exceptions import (
    BusinessException,
    InternalErrorException,
    InvalidRequestException,
    MisconfiguredGatewayException,
)


REQUIRED_FIELDS = ("orderId", "amount", "customerName", "orderItems")

PROBE_ORDER_PREFIX = "TEST"
PROBE_AMOUNT = 10000


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _validate_amount(amount: Any) -> None:
    # bool is an int subclass; JSON true must not pass as 1
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidRequestException("Amount must be a positive number", field="amount")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidRequestException("Amount must be a positive number", field="amount")
    if isinstance(amount, float) and not amount.is_integer():
        raise InvalidRequestException(
            "Amount must be a whole number in the smallest currency unit",
            field="amount",
        )


class TransactionInitiator:
    def __init__(
        self,
        gateway: PaymentGateway,
        settings: Settings,
        *,
        id_generator: Optional[TransactionIdGenerator] = None,
        events: Optional[PaymentEventLogger] = None,
    ) -> None:
        self.gateway = gateway
        self.settings = settings
        self.id_generator = id_generator or TransactionIdGenerator()
        self.events = events or PaymentEventLogger()

    def parse_order(self, body: Any) -> OrderRequest:
        """Validate a raw request body, in order, before any gateway call.

        1. required fields present
        2. amount is a positive number
        3. line items well-formed
        """
        if not isinstance(body, Mapping):
            raise InvalidRequestException("Request body must be a JSON object")

        missing = [name for name in REQUIRED_FIELDS if _is_missing(body.get(name))]
        if missing:
            raise InvalidRequestException(
                "Incomplete data. Make sure orderId, amount, customerName, and orderItems are filled in.",
                field=missing[0],
            )

        _validate_amount(body.get("amount"))

        try:
            return OrderRequest.model_validate(dict(body))
        except ValidationError as exc:
            raise InvalidRequestException(
                "Invalid order data",
                details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
            ) from exc

    def build_payload(self, order: OrderRequest, transaction_id: str) -> dict[str, Any]:
        midtrans = self.settings.midtrans
        payload: dict[str, Any] = {
            "transaction_details": {
                "order_id": transaction_id,
                "gross_amount": order.amount,
            },
            "customer_details": {
                "first_name": order.customer_name,
                "email": order.customer_email or midtrans.customer_email,
                "phone": order.customer_phone or midtrans.customer_phone,
            },
            "item_details": [
                {
                    "id": slugify_item_name(item.name),
                    "price": item.price,
                    "quantity": item.quantity,
                    "name": item.name,
                }
                for item in order.order_items
            ],
            "callbacks": {
                "finish": self.settings.finish_redirect_url,
            },
        }
        # Omitted key lets the gateway offer its default payment methods
        if order.payment_method:
            payload["enabled_payments"] = [order.payment_method]
        return payload

    async def initiate(self, body: Any) -> TransactionResult:
        if isinstance(body, Mapping):
            items = body.get("orderItems")
            self.events.request_received(
                "create_transaction",
                order_id=body.get("orderId"),
                amount=body.get("amount"),
                customer=body.get("customerName"),
                items=len(items) if isinstance(items, list) else 0,
            )

        order = self.parse_order(body)
        if not self.gateway.is_configured:
            raise MisconfiguredGatewayException(
                "Midtrans credentials are not configured. Check the server console for instructions."
            )

        transaction_id = self.id_generator(order.order_id)
        payload = self.build_payload(order, transaction_id)
        session = await self._submit("create_transaction", payload, transaction_id)
        return TransactionResult(
            token=session.token,
            redirect_url=session.redirect_url,
            order_id=transaction_id,
        )

    async def probe(self) -> ProbeResult:
        """Create a throwaway transaction to check credentials and connectivity."""
        test_order_id = self.id_generator(PROBE_ORDER_PREFIX)
        payload = {
            "transaction_details": {
                "order_id": test_order_id,
                "gross_amount": PROBE_AMOUNT,
            },
            "customer_details": {
                "first_name": "Test Customer",
                "email": "test@example.com",
                "phone": self.settings.midtrans.customer_phone,
            },
            "item_details": [
                {
                    "id": "test-item",
                    "price": PROBE_AMOUNT,
                    "quantity": 1,
                    "name": "Test Item",
                },
            ],
        }
        session = await self._submit("probe", payload, test_order_id)
        return ProbeResult(test_order_id=test_order_id, token_received=bool(session.token))

    async def _submit(self, operation: str, payload: dict[str, Any], transaction_id: str) -> PaymentSession:
        self.events.gateway_call_issued(
            operation,
            provider=self.gateway.provider,
            order_id=transaction_id,
            gross_amount=payload["transaction_details"]["gross_amount"],
        )
        try:
            session = await self.gateway.create_transaction(payload)
        except BusinessException as exc:
            self.events.gateway_call_failed(
                operation,
                exc,
                order_id=transaction_id,
                status_code=getattr(exc, "status_code", None),
                details=exc.details,
            )
            raise
        except Exception as exc:
            self.events.gateway_call_failed(operation, exc, order_id=transaction_id)
            raise InternalErrorException(f"Unexpected gateway failure: {exc}") from exc
        self.events.gateway_call_completed(
            operation,
            order_id=transaction_id,
            redirect_url=session.redirect_url,
        )
        return session
