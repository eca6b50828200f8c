"""
API依赖项 - 从 app.state 取出启动时装配好的服务
"""
from fastapi import Request

from application.services.notification_service import NotificationReconciler
from application.services.payment_service import TransactionInitiator
from core.config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_transaction_initiator(request: Request) -> TransactionInitiator:
    return request.app.state.transaction_initiator


def get_notification_reconciler(request: Request) -> NotificationReconciler:
    return request.app.state.notification_reconciler
