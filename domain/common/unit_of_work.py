"""Unit of Work 抽象定义

One unit of work wraps one transaction: the block either commits as a whole
or rolls back when it raises.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from domain.payment.repository import PaymentStatusRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界"""

    payment_status_repository: Optional[PaymentStatusRepository]

    def __init__(self) -> None:
        self.payment_status_repository = None
        self._committed = False

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            await self.rollback()
        elif not self._committed:
            await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
