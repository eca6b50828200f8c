"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        # Overrides the code-based HTTP mapping when set
        self.http_status = http_status
        super().__init__(self.message)


class InvalidRequestException(BusinessException):
    """Client-supplied order data failed validation."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message,
            error_type="InvalidRequest",
            details=details,
            field=field,
        )


class MisconfiguredGatewayException(BusinessException):
    def __init__(self, message: str = "Midtrans credentials are not configured"):
        super().__init__(
            code=PaymentCode.GATEWAY_MISCONFIGURED,
            message=message,
            error_type="MisconfiguredGateway",
        )


class GatewayRejectedException(BusinessException):
    """The gateway answered with a structured API error.

    The gateway's HTTP status is relayed to the caller as-is.
    """

    def __init__(self, status_code: int, message: str, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.GATEWAY_REJECTED,
            message=message,
            error_type="GatewayRejected",
            details=details,
            http_status=status_code,
        )
        self.status_code = status_code


class VerificationFailedException(BusinessException):
    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.VERIFICATION_FAILED,
            message=message,
            error_type="VerificationFailed",
            details=details,
        )


class InternalErrorException(BusinessException):
    """Unexpected failure; the message stays server-side."""

    def __init__(self, message: str):
        super().__init__(
            code=BusinessCode.SYSTEM_ERROR,
            message=message,
            error_type="InternalError",
        )


class PaymentStatusAlreadyExistsException(BusinessException):
    """A concurrent delivery stored the same transaction first."""

    def __init__(self, transaction_id: str):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message=f"Payment status for {transaction_id} already exists",
            error_type="PaymentStatusAlreadyExists",
            details={"transaction_id": transaction_id},
        )
