"""
自定义异常映射与全局异常处理器
"""
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
from starlette import status as http_status

from .response import error_response
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


INTERNAL_ERROR_MESSAGE = "Internal server error"


def _business_code_to_http_status(code: int) -> int:
    """根据业务码映射HTTP状态码（默认400）。"""
    mapping = {
        BusinessCode.PARAM_ERROR: http_status.HTTP_400_BAD_REQUEST,
        BusinessCode.BUSINESS_ERROR: http_status.HTTP_409_CONFLICT,
        BusinessCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

        # 网关原样返回的状态码优先，缺失时按 502 处理
        PaymentCode.GATEWAY_REJECTED: http_status.HTTP_502_BAD_GATEWAY,
        PaymentCode.GATEWAY_MISCONFIGURED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        # 非 2xx 让 Midtrans 重新投递通知
        PaymentCode.VERIFICATION_FAILED: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    return mapping.get(code, http_status.HTTP_400_BAD_REQUEST)


def resolve_http_status(exc: BusinessException) -> int:
    """异常自带的 HTTP 状态优先（仅接受 4xx/5xx），否则按业务码映射。"""
    status = exc.http_status
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return _business_code_to_http_status(exc.code)


def register_exception_handlers(app: FastAPI):
    """
    注册全局异常处理器

    Args:
        app: FastAPI应用实例
    """

    # logger
    logger = get_logger(__name__)

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        """处理业务异常"""
        status_code = resolve_http_status(exc)
        if exc.code == BusinessCode.SYSTEM_ERROR:
            # 内部错误只在服务端记录原因
            logger.error("internal_error", error=exc.message, error_type=exc.error_type)
            response = error_response(message=INTERNAL_ERROR_MESSAGE)
        else:
            log = logger.warning if status_code < 500 else logger.error
            log(
                "business_error",
                error_type=exc.error_type,
                code=int(exc.code),
                status_code=status_code,
                error=exc.message,
            )
            response = error_response(message=exc.message, details=exc.details)
        return JSONResponse(status_code=status_code, content=response.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """处理HTTP异常"""
        response = error_response(message=str(exc.detail))
        return JSONResponse(
            status_code=exc.status_code,
            content=response.to_payload(),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """处理所有未捕获的异常"""
        request_id = getattr(getattr(request, "state", object()), "request_id", None)

        # 记录日志（使用结构化日志），响应中不暴露堆栈
        logger.error(
            "unhandled_exception",
            request_id=request_id,
            error=str(exc),
            exc_info=True,
        )

        response = error_response(message=INTERNAL_ERROR_MESSAGE)
        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response.to_payload()
        )
