"""
支付状态数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, String, DateTime, Index
from datetime import datetime, timezone

from .base import Base


class PaymentStatusModel(Base):
    """
    订单支付状态数据库模型

    这是数据库表的映射，不包含业务逻辑
    状态合并规则在 domain.payment.entity.PaymentStatusRecord 中
    """
    __tablename__ = "payment_statuses"

    # 网关交易号（<订单号>-<毫秒时间戳>）作为主键，保证通知重复投递时按键合并
    transaction_id = Column(String(100), primary_key=True, comment="网关订单号")
    order_id = Column(String(100), nullable=False, index=True, comment="前端订单号")

    status = Column(String(20), nullable=False, default="pending", index=True, comment="支付状态: pending/paid/failed")
    transaction_status = Column(String(50), nullable=True, comment="网关 transaction_status")
    fraud_status = Column(String(50), nullable=True, comment="网关 fraud_status")
    gateway_transaction_id = Column(String(100), nullable=True, comment="网关内部交易ID")

    # 时间戳
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_payment_statuses_order_status", "order_id", "status"),
    )

    def __repr__(self):
        return (
            f"<PaymentStatusModel(transaction_id='{self.transaction_id}', "
            f"order_id='{self.order_id}', status='{self.status}')>"
        )
