"""
FastAPI应用主入口

    python main.py
    uvicorn main:create_app --factory --port 4000
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import payments as payments_routes
from api.routes import system as system_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.ports.payment_gateway import PaymentGateway
from application.services.notification_service import NotificationReconciler
from application.services.payment_events import PaymentEventLogger
from application.services.payment_service import TransactionInitiator
from core.config import Settings, get_settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from infrastructure.database import Database
from infrastructure.external.payments import build_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


logger = get_logger(__name__)


def _mask(key: str) -> str:
    # 只保留末 4 位，前缀同样属于密钥
    if len(key) <= 8:
        return "****"
    return "..." + key[-4:]


def _log_gateway_config(settings: Settings) -> None:
    midtrans = settings.midtrans
    logger.info(
        "midtrans_configured",
        server_key_tail=_mask(midtrans.server_key),
        client_key_tail=_mask(midtrans.client_key),
        mode=midtrans.mode,
    )
    if not midtrans.is_configured:
        logger.error(
            "midtrans_credentials_missing",
            message=(
                "Midtrans credentials are not set. Copy the Server Key and Client Key "
                "from https://dashboard.midtrans.com (SANDBOX environment) into .env "
                "as MIDTRANS__SERVER_KEY / MIDTRANS__CLIENT_KEY"
            ),
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    await database.create_tables()
    logger.info("database_initialized", url=database.engine.url.render_as_string(hide_password=True))
    logger.info(
        "server_started",
        port=settings.PORT,
        mode=settings.midtrans.mode,
        endpoints=["GET /test", "GET /test-midtrans", "POST /create-transaction", "POST /midtrans-notification"],
        ready=settings.midtrans.is_configured,
    )

    yield

    # 关闭时的清理工作
    await app.state.payment_gateway.aclose()
    await database.dispose()
    logger.info("application_shutdown", message="Application shutdown")


def create_app(
    settings: Optional[Settings] = None,
    *,
    gateway: Optional[PaymentGateway] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Composition root: every collaborator is built here and kept on app.state."""
    settings = settings or get_settings()
    configure_logging(settings.DEBUG)
    gateway = gateway or build_payment_gateway(settings.midtrans)
    database = database or Database(settings.database)
    events = PaymentEventLogger()

    _log_gateway_config(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Relays storefront orders to Midtrans Snap and reconciles payment notifications",
    )
    app.state.settings = settings
    app.state.payment_gateway = gateway
    app.state.database = database
    app.state.transaction_initiator = TransactionInitiator(gateway, settings, events=events)
    app.state.notification_reconciler = NotificationReconciler(
        gateway,
        lambda: SQLAlchemyUnitOfWork(database.session_factory),
        events=events,
    )

    # 添加中间件（注意顺序：从下往上执行）
    # 1. 日志中间件（依赖request_id）
    app.add_middleware(
        LoggingMiddleware,
        enable_body_log=settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT,
        max_body_log_bytes=settings.LOG_REQUEST_BODY_MAX_BYTES,
    )

    # 2. Request ID中间件（最先执行，为后续中间件提供request_id）
    app.add_middleware(RequestIDMiddleware)

    # 3. CORS中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # 注册全局异常处理器
    register_exception_handlers(app)

    # 注册路由
    app.include_router(system_routes.router)
    app.include_router(payments_routes.router)

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.PORT,
        log_level="debug" if settings.DEBUG else "info",
    )
