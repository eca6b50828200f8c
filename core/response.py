"""
统一响应格式定义

Storefront clients read a flat envelope: `{success, message?, data?, details?}`.
Absent members are dropped from the JSON body.
"""
from typing import Any, Optional, Generic, TypeVar
from pydantic import BaseModel


T = TypeVar("T")


class Response(BaseModel, Generic[T]):
    """统一响应模型"""
    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    details: Optional[Any] = None

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Response:
    """
    创建成功响应

    Args:
        data: 返回数据
        message: 成功消息

    Returns:
        Response: 统一响应对象
    """
    return Response(success=True, message=message, data=data)


def error_response(
    message: str,
    details: Optional[Any] = None,
) -> Response:
    """
    创建错误响应

    Args:
        message: 错误消息
        details: 错误详情（网关原始响应、校验错误等）

    Returns:
        Response: 统一响应对象
    """
    return Response(success=False, message=message, details=details)
