"""
Payment-related settings models grouped under `Settings.midtrans`.

Nested env keys use the `__` delimiter, e.g. `MIDTRANS__SERVER_KEY`.
"""
from __future__ import annotations

from pydantic import BaseModel, Field


PLACEHOLDER_MARKER = "XXXX"

SNAP_SANDBOX_URL = "https://app.sandbox.midtrans.com"
SNAP_PRODUCTION_URL = "https://app.midtrans.com"
CORE_API_SANDBOX_URL = "https://api.sandbox.midtrans.com"
CORE_API_PRODUCTION_URL = "https://api.midtrans.com"


class PaymentTimeouts(BaseModel):
    connect: float = 5.0
    read: float = 30.0
    write: float = 30.0
    total: float = 60.0


class MidtransSettings(BaseModel):
    server_key: str = "Mid-server-XXXX"
    client_key: str = "Mid-client-XXXX"
    is_production: bool = False
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)

    # Placeholders sent when the storefront does not collect contact details
    customer_email: str = "customer@bakmijogja.com"
    customer_phone: str = "081234567890"

    @property
    def is_configured(self) -> bool:
        """Both keys present and neither is the shipped placeholder."""
        keys = (self.server_key, self.client_key)
        return all(k and PLACEHOLDER_MARKER not in k for k in keys)

    @property
    def mode(self) -> str:
        return "production" if self.is_production else "sandbox"

    @property
    def snap_base_url(self) -> str:
        return SNAP_PRODUCTION_URL if self.is_production else SNAP_SANDBOX_URL

    @property
    def core_api_base_url(self) -> str:
        return CORE_API_PRODUCTION_URL if self.is_production else CORE_API_SANDBOX_URL
