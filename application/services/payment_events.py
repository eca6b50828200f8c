"""
Structured logging hooks for the payment flow.

Services call these at fixed points (request received, gateway call issued,
completed, failed) so log output stays out of the business logic.
"""
from __future__ import annotations

from typing import Any

from core.logging_config import get_logger


class PaymentEventLogger:
    def __init__(self, name: str = "payments") -> None:
        self._logger = get_logger(name)

    def request_received(self, operation: str, **fields: Any) -> None:
        self._logger.info("payment_request_received", operation=operation, **fields)

    def gateway_call_issued(self, operation: str, **fields: Any) -> None:
        self._logger.info("gateway_call_issued", operation=operation, **fields)

    def gateway_call_completed(self, operation: str, **fields: Any) -> None:
        self._logger.info("gateway_call_completed", operation=operation, **fields)

    def gateway_call_failed(self, operation: str, error: BaseException, **fields: Any) -> None:
        self._logger.error(
            "gateway_call_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **fields,
        )

    def status_recorded(self, transaction_id: str, status: str, *, changed: bool, **fields: Any) -> None:
        self._logger.info(
            "payment_status_recorded",
            transaction_id=transaction_id,
            status=status,
            changed=changed,
            **fields,
        )
