"""
Application service reconciling Midtrans payment notifications.

A webhook body is never trusted: the transaction is looked up again through
the gateway and only that answer is mapped and stored. Midtrans redelivers on
non-2xx answers, so every step here must be safe to repeat.
"""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from application.dtos.payments import ReconcileResult, VerifiedNotification
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_events import PaymentEventLogger
from application.utils.identifiers import split_transaction_id
from domain.common.exceptions import (
    BusinessException,
    PaymentStatusAlreadyExistsException,
    VerificationFailedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import PaymentStatus, PaymentStatusRecord, derive_payment_status


class NotificationReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        uow_factory: Callable[[], AbstractUnitOfWork],
        *,
        events: Optional[PaymentEventLogger] = None,
    ) -> None:
        self.gateway = gateway
        self.uow_factory = uow_factory
        self.events = events or PaymentEventLogger()

    async def reconcile(self, notification: Any) -> ReconcileResult:
        if not isinstance(notification, Mapping):
            raise VerificationFailedException("Notification payload must be a JSON object")

        self.events.request_received(
            "notification",
            order_id=notification.get("order_id"),
            transaction_status=notification.get("transaction_status"),
            fraud_status=notification.get("fraud_status"),
        )
        verified = await self._verify(dict(notification))
        status = derive_payment_status(verified.transaction_status, verified.fraud_status)
        changed = await self._record(verified, status)
        return ReconcileResult(transaction_id=verified.order_id, status=status, changed=changed)

    async def _verify(self, notification: dict[str, Any]) -> VerifiedNotification:
        lookup = notification.get("transaction_id") or notification.get("order_id")
        self.events.gateway_call_issued("verify_notification", provider=self.gateway.provider, lookup_id=lookup)
        try:
            verified = await self.gateway.verify_notification(notification)
        except VerificationFailedException as exc:
            self.events.gateway_call_failed("verify_notification", exc, lookup_id=lookup)
            raise
        except BusinessException as exc:
            self.events.gateway_call_failed("verify_notification", exc, lookup_id=lookup, details=exc.details)
            raise VerificationFailedException(exc.message) from exc
        except Exception as exc:
            self.events.gateway_call_failed("verify_notification", exc, lookup_id=lookup)
            raise VerificationFailedException(f"Notification verification failed: {exc}") from exc
        self.events.gateway_call_completed(
            "verify_notification",
            order_id=verified.order_id,
            transaction_status=verified.transaction_status,
            fraud_status=verified.fraud_status,
        )
        return verified

    async def _record(self, verified: VerifiedNotification, status: PaymentStatus) -> bool:
        try:
            return await self._upsert(verified, status)
        except PaymentStatusAlreadyExistsException:
            # A concurrent delivery inserted the row first; merge into it
            return await self._upsert(verified, status)

    async def _upsert(self, verified: VerifiedNotification, status: PaymentStatus) -> bool:
        async with self.uow_factory() as uow:
            repo = uow.payment_status_repository
            record = await repo.get_by_transaction_id(verified.order_id)
            if record is None:
                now = datetime.now(timezone.utc)
                await repo.create(
                    PaymentStatusRecord(
                        transaction_id=verified.order_id,
                        order_id=split_transaction_id(verified.order_id),
                        status=status,
                        transaction_status=verified.transaction_status,
                        fraud_status=verified.fraud_status,
                        gateway_transaction_id=verified.transaction_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
                self.events.status_recorded(verified.order_id, status.value, changed=True)
                return True

            previous = record.status
            changed = record.apply(
                status,
                transaction_status=verified.transaction_status,
                fraud_status=verified.fraud_status,
            )
            if changed:
                await repo.update(record)
            self.events.status_recorded(
                verified.order_id,
                record.status.value,
                changed=changed,
                previous=previous.value,
                derived=status.value,
            )
            return changed
