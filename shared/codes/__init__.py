"""
Business codes carried by every BusinessException.

The code selects the HTTP status when an exception does not bring its own
(see core.exceptions). Gateway-specific codes live in
`shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Relay-wide business codes."""

    SUCCESS = 0

    # 客户端请求数据错误 -> 400
    PARAM_ERROR = 10000

    # 业务冲突（如并发写入同一交易） -> 409
    BUSINESS_ERROR = 20000

    # 服务端错误 -> 500，消息不返回给调用方
    SYSTEM_ERROR = 40000


__all__ = ["BusinessCode"]
