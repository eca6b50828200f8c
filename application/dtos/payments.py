"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from domain.payment.entity import PaymentStatus


class OrderItem(BaseModel):
    name: str = Field(min_length=1)
    price: int
    quantity: int = Field(gt=0)


class OrderRequest(BaseModel):
    """Storefront order as posted to /create-transaction (camelCase on the wire)."""

    order_id: str = Field(alias="orderId", min_length=1)
    amount: int = Field(gt=0)
    customer_name: str = Field(alias="customerName", min_length=1)
    order_items: list[OrderItem] = Field(alias="orderItems", min_length=1)
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class PaymentSession(BaseModel):
    """Snap session returned by the gateway."""
    token: str
    redirect_url: str


class TransactionResult(BaseModel):
    token: str
    redirect_url: str
    order_id: str  # the unique transaction identifier sent to the gateway


class ProbeResult(BaseModel):
    test_order_id: str
    token_received: bool


class VerifiedNotification(BaseModel):
    """Gateway's authoritative view of a notified transaction."""
    order_id: str
    transaction_status: Optional[str] = None
    fraud_status: Optional[str] = None
    transaction_id: Optional[str] = None
    status_code: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict)


class ReconcileResult(BaseModel):
    transaction_id: str
    status: PaymentStatus
    changed: bool = False
