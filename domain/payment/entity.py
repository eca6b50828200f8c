"""
支付领域实体 - 支付状态与映射规则
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from shared.codes.payment_codes import (
    FAILED_TRANSACTION_STATUSES,
    FRAUD_ACCEPT,
    TRANSACTION_CAPTURE,
    TRANSACTION_PENDING,
    TRANSACTION_SETTLEMENT,
)


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "pending"  # 待支付 / 风控审核中 / 未知
    PAID = "paid"        # 支付成功
    FAILED = "failed"    # 取消、拒绝或过期

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


def derive_payment_status(transaction_status: Optional[str], fraud_status: Optional[str]) -> PaymentStatus:
    """Map Midtrans (transaction_status, fraud_status) to the domain status.

    | transaction status     | fraud status | status  |
    |------------------------|--------------|---------|
    | capture                | accept       | paid    |
    | capture                | other        | pending |
    | settlement             | any          | paid    |
    | cancel / deny / expire | any          | failed  |
    | pending                | any          | pending |
    | anything else          | any          | pending |

    Matching is exact; the function is pure, so re-deriving a redelivered
    notification always yields the same status.
    """
    if transaction_status == TRANSACTION_CAPTURE:
        if fraud_status == FRAUD_ACCEPT:
            return PaymentStatus.PAID
        return PaymentStatus.PENDING
    if transaction_status == TRANSACTION_SETTLEMENT:
        return PaymentStatus.PAID
    if transaction_status in FAILED_TRANSACTION_STATUSES:
        return PaymentStatus.FAILED
    if transaction_status == TRANSACTION_PENDING:
        return PaymentStatus.PENDING
    return PaymentStatus.PENDING


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PaymentStatusRecord:
    """
    订单支付状态记录 - 以网关交易号为键

    业务规则：
    1. 相同状态且网关原始字段相同时为空操作（通知可能重复投递），
       状态不变但原始字段变化（如 capture -> settlement）时只刷新原始字段
    2. 终态（paid/failed）不会被 pending 覆盖
    3. 终态之间的变化以网关为准
    """

    transaction_id: str
    order_id: str
    status: PaymentStatus
    transaction_status: Optional[str] = None
    fraud_status: Optional[str] = None
    gateway_transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.status = PaymentStatus(self.status)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def apply(
        self,
        status: PaymentStatus,
        *,
        transaction_status: Optional[str] = None,
        fraud_status: Optional[str] = None,
    ) -> bool:
        """Apply a freshly verified status; returns True when the record changed."""
        if self.status.is_terminal and not status.is_terminal:
            return False
        if status == self.status and (transaction_status, fraud_status) == (
            self.transaction_status,
            self.fraud_status,
        ):
            return False
        self.status = status
        self.transaction_status = transaction_status
        self.fraud_status = fraud_status
        self.updated_at = datetime.now(timezone.utc)
        return True
