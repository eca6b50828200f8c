"""
Base payment client implementing shared concerns: http, decoding, logging.

Concrete providers should subclass and implement provider-specific logic.
Gateway calls are at-most-once: nothing here retries.
"""
from __future__ import annotations

from typing import Any, Optional
from contextlib import asynccontextmanager

import httpx

from core.logging_config import get_logger
from domain.common.exceptions import (
    GatewayRejectedException,
    InternalErrorException,
)


logger = get_logger(__name__)


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        timeouts: Optional[dict[str, float]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeouts_cfg = timeouts or {"connect": 5.0, "read": 30.0, "write": 30.0, "total": 60.0}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._transport)
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _send(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """Issue one request and return the decoded JSON object.

        HTTP error statuses raise GatewayRejectedException carrying the
        provider's status and body; transport failures and undecodable bodies
        raise InternalErrorException.
        """
        try:
            async with self.client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            self._log("gateway_transport_error", method=method, url=url, error=str(exc))
            raise InternalErrorException(f"{self.provider} request failed: {exc}") from exc

        data = self._decode(response)
        self._log("gateway_response", method=method, url=url, status_code=response.status_code)
        if response.status_code >= 400:
            raise GatewayRejectedException(
                response.status_code,
                self._error_message(data, response.status_code),
                details=data if isinstance(data, dict) else None,
            )
        if not isinstance(data, dict):
            raise InternalErrorException(f"{self.provider} returned a non-JSON response")
        return data

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _error_message(self, data: Any, status_code: int) -> str:
        return f"{self.provider} API request failed with status {status_code}"

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
