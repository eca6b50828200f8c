"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

import httpx

from core.settings import MidtransSettings
from application.ports.payment_gateway import PaymentGateway


def build_payment_gateway(
    config: MidtransSettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGateway:
    from .midtrans_client import MidtransClient
    return MidtransClient(config, transport=transport)


__all__ = ["build_payment_gateway"]
