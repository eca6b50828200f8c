"""
支付状态仓储接口 - 定义订单支付状态数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import PaymentStatusRecord


class PaymentStatusRepository(ABC):
    """支付状态仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def get_by_transaction_id(self, transaction_id: str) -> Optional[PaymentStatusRecord]:
        """根据网关交易号获取状态记录"""
        pass

    @abstractmethod
    async def create(self, record: PaymentStatusRecord) -> PaymentStatusRecord:
        """创建状态记录"""
        pass

    @abstractmethod
    async def update(self, record: PaymentStatusRecord) -> PaymentStatusRecord:
        """更新状态记录"""
        pass
