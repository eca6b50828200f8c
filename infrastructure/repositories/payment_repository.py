"""
支付状态仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.common.exceptions import PaymentStatusAlreadyExistsException
from domain.payment.entity import PaymentStatusRecord, PaymentStatus
from domain.payment.repository import PaymentStatusRepository
from infrastructure.models.payment import PaymentStatusModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyPaymentStatusRepository(PaymentStatusRepository):
    """支付状态仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentStatusModel) -> PaymentStatusRecord:
        """将数据库模型转换为领域实体"""
        return PaymentStatusRecord(
            transaction_id=model.transaction_id,
            order_id=model.order_id,
            status=PaymentStatus(model.status),
            transaction_status=model.transaction_status,
            fraud_status=model.fraud_status,
            gateway_transaction_id=model.gateway_transaction_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: PaymentStatusRecord) -> PaymentStatusModel:
        """将领域实体转换为数据库模型"""
        return PaymentStatusModel(
            transaction_id=entity.transaction_id,
            order_id=entity.order_id,
            status=entity.status.value,
            transaction_status=entity.transaction_status,
            fraud_status=entity.fraud_status,
            gateway_transaction_id=entity.gateway_transaction_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def get_by_transaction_id(self, transaction_id: str) -> Optional[PaymentStatusRecord]:
        """根据网关交易号获取状态记录"""
        result = await self.session.execute(
            select(PaymentStatusModel).where(PaymentStatusModel.transaction_id == transaction_id)
        )
        db_record = result.scalar_one_or_none()
        return self._to_entity(db_record) if db_record else None

    async def create(self, record: PaymentStatusRecord) -> PaymentStatusRecord:
        """创建状态记录"""
        try:
            db_record = self._to_model(record)
            self.session.add(db_record)
            await self.session.flush()
            await self.session.refresh(db_record)
        except IntegrityError:
            logger.warning("payment_status_create_conflict", transaction_id=record.transaction_id)
            raise PaymentStatusAlreadyExistsException(record.transaction_id)
        logger.info(
            "payment_status_created",
            transaction_id=db_record.transaction_id,
            status=db_record.status,
        )
        return self._to_entity(db_record)

    async def update(self, record: PaymentStatusRecord) -> PaymentStatusRecord:
        """更新状态记录"""
        result = await self.session.execute(
            select(PaymentStatusModel).where(PaymentStatusModel.transaction_id == record.transaction_id)
        )
        db_record = result.scalar_one_or_none()

        if not db_record:
            raise ValueError(f"Payment status {record.transaction_id} not found")

        # 更新字段
        db_record.status = record.status.value
        db_record.transaction_status = record.transaction_status
        db_record.fraud_status = record.fraud_status
        db_record.gateway_transaction_id = record.gateway_transaction_id or db_record.gateway_transaction_id
        db_record.updated_at = record.updated_at or db_record.updated_at

        await self.session.flush()
        await self.session.refresh(db_record)

        logger.info(
            "payment_status_updated",
            transaction_id=db_record.transaction_id,
            status=db_record.status,
        )
        return self._to_entity(db_record)
