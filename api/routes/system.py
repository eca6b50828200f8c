"""
Service info, health and gateway diagnostics routes.
"""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_app_settings, get_transaction_initiator
from application.services.payment_service import TransactionInitiator
from core.config import Settings
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException, InternalErrorException


router = APIRouter(tags=["System"])
logger = get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/")
async def root(settings: Settings = Depends(get_app_settings)):
    """API根路径"""
    return {
        "message": settings.PROJECT_NAME,
        "status": "running",
        "timestamp": _now_iso(),
        "mode": settings.midtrans.mode,
        "endpoints": {
            "test": "GET /test",
            "createTransaction": "POST /create-transaction",
            "notification": "POST /midtrans-notification",
        },
    }


@router.get("/test")
async def health_check(request: Request, settings: Settings = Depends(get_app_settings)):
    """健康检查端点"""
    return {
        "success": True,
        "message": "Midtrans backend is running",
        "timestamp": _now_iso(),
        "port": settings.PORT,
        "mode": settings.midtrans.mode,
        "configured": request.app.state.payment_gateway.is_configured,
    }


@router.get("/test-midtrans")
async def test_midtrans(
    settings: Settings = Depends(get_app_settings),
    initiator: TransactionInitiator = Depends(get_transaction_initiator),
):
    """Issue a dummy transaction to check credentials and connectivity."""
    try:
        result = await initiator.probe()
    except BusinessException as exc:
        logger.warning("midtrans_probe_failed", error=exc.message, error_type=exc.error_type)
        # 内部错误原因只记录在服务端
        error = "Midtrans is unreachable" if isinstance(exc, InternalErrorException) else exc.message
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Failed to connect to Midtrans",
                "error": error,
                "details": exc.details,
            },
        )
    return {
        "success": True,
        "message": "Connected to Midtrans",
        "test_order_id": result.test_order_id,
        "token_received": result.token_received,
        "mode": settings.midtrans.mode,
    }
