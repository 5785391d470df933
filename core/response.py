"""
统一响应格式定义
"""
from typing import Any, Optional, Generic, TypeVar
from pydantic import BaseModel, Field, field_serializer
from datetime import datetime, timezone
from shared.codes import BusinessCode


T = TypeVar("T")


def _utc_z(ts: datetime) -> str:
    ts = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)
    return ts.isoformat().replace("+00:00", "Z")


class ErrorDetail(BaseModel):
    """错误详情（type 为异常类名，如 InvalidationError）"""
    type: str
    details: Optional[dict] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return _utc_z(timestamp)


class Response(BaseModel, Generic[T]):
    """统一响应模型"""
    code: int
    message: str
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None


class Listing(BaseModel, Generic[T]):
    """目录列举结果"""
    prefix: str
    recursive: bool
    count: int
    items: list[T]


def success_response(
    data: Any = None,
    message: str = "Success",
    code: int = BusinessCode.SUCCESS
) -> Response:
    """创建成功响应"""
    return Response(code=code, message=message, data=data)


def listing_response(
    items: list,
    prefix: str,
    recursive: bool,
) -> Response[Listing]:
    """
    创建目录列举响应

    Args:
        items: 条目列表
        prefix: 列举的目录（相对卷根）
        recursive: 是否递归列举
    """
    return success_response(
        data=Listing(prefix=prefix, recursive=recursive, count=len(items), items=items)
    )


def error_response(
    code: int,
    message: str,
    error_type: str = "StorageError",
    details: Optional[dict] = None,
    request_id: Optional[str] = None
) -> Response:
    """
    创建错误响应

    Args:
        code: 业务状态码
        message: 错误消息
        error_type: 错误类型
        details: 错误详情（如失效失败的路径）
        request_id: 请求ID
    """
    return Response(
        code=code,
        message=message,
        error=ErrorDetail(type=error_type, details=details, request_id=request_id),
    )
