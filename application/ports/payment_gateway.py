"""
Payment gateway port (application layer).

Services depend on this protocol; infrastructure provides the Midtrans
implementation, wired in by the composition root.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.payments import PaymentSession, VerifiedNotification


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the third-party payment provider.

    Implementations should be async and side-effect free beyond IO. Each
    method performs exactly one outbound call and never retries.
    """

    provider: str

    @property
    def is_configured(self) -> bool: ...

    @property
    def mode(self) -> str: ...

    async def create_transaction(self, payload: dict[str, Any]) -> PaymentSession: ...

    async def verify_notification(self, notification: dict[str, Any]) -> VerifiedNotification: ...

    async def aclose(self) -> None: ...
