"""Infrastructure models package exports."""
from .base import Base, metadata
from .payment import PaymentStatusModel

__all__ = [
    "Base",
    "metadata",
    "PaymentStatusModel",
]
