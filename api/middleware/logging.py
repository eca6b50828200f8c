"""
请求/响应日志中间件

One `request_started` and one `request_completed` (or client/server error)
event per request. JSON bodies are logged truncated and with credentials
masked; set `X-Log-Body: false` to suppress a body for a single request.
"""
import json
import time
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.logging_config import get_logger, redact


logger = get_logger(__name__)

_TRUTHY = {"true", "1", "yes"}
_FALSY = {"false", "0", "no"}


class LoggingMiddleware(BaseHTTPMiddleware):
    SKIP_PATHS = {"/docs", "/redoc", "/openapi.json"}
    BODY_METHODS = {"POST", "PUT", "PATCH"}

    def __init__(self, app: ASGIApp, *, enable_body_log: bool = True, max_body_log_bytes: int = 2048):
        super().__init__(app)
        self.enable_body_log = enable_body_log
        self.max_body_log_bytes = max_body_log_bytes

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        fields: dict[str, Any] = {"method": request.method, "path": request.url.path}
        if request.query_params:
            fields["query_params"] = dict(request.query_params)

        started: dict[str, Any] = dict(fields)
        body = await self._body_snippet(request)
        if body is not None:
            started["body"] = body
        logger.info("request_started", **started)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=round(time.perf_counter() - start, 4),
                error_type=type(exc).__name__,
                exc_info=True,
                **fields,
            )
            raise

        duration = time.perf_counter() - start
        self._log_response(response, duration, fields)
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response

    def _wants_body(self, request: Request) -> bool:
        if request.method not in self.BODY_METHODS:
            return False
        override = (request.headers.get("X-Log-Body") or "").lower()
        if override in _TRUTHY:
            return True
        if override in _FALSY:
            return False
        return self.enable_body_log

    async def _body_snippet(self, request: Request) -> Optional[Any]:
        if not self._wants_body(request):
            return None
        raw = await request.body()
        if not raw:
            return None

        text = raw[: self.max_body_log_bytes].decode("utf-8", errors="ignore")
        if "application/json" not in request.headers.get("content-type", "").lower():
            return text
        try:
            return redact(json.loads(text))
        except ValueError:
            # 截断或非法 JSON 按文本记录
            return text

    @staticmethod
    def _log_response(response: Response, duration: float, fields: dict) -> None:
        status_code = response.status_code
        if status_code < 400:
            log, event = logger.info, "request_completed"
        elif status_code < 500:
            log, event = logger.warning, "request_client_error"
        else:
            log, event = logger.error, "request_server_error"
        log(event, status_code=status_code, duration=round(duration, 4), **fields)
