"""
存储异常映射与全局异常处理器
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
import traceback
import uuid
from starlette import status as http_status

from .response import error_response
from shared.codes import BusinessCode
from core.logging_config import get_logger
from infrastructure.external.storage.exceptions import (
    StorageError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
    InvalidationError,
    VolumeException,
)


def storage_error_status(exc: StorageError) -> tuple[int, int]:
    """存储异常 -> (HTTP 状态码, 业务码)。子类需先于父类匹配。"""
    if isinstance(exc, NotFoundError):
        return http_status.HTTP_404_NOT_FOUND, BusinessCode.NOT_FOUND
    if isinstance(exc, PermissionDeniedError):
        return http_status.HTTP_403_FORBIDDEN, BusinessCode.PERMISSION_ERROR
    if isinstance(exc, ConfigurationError):
        return http_status.HTTP_400_BAD_REQUEST, BusinessCode.STORAGE_CONFIGURATION_ERROR
    if isinstance(exc, InvalidationError):
        return http_status.HTTP_502_BAD_GATEWAY, BusinessCode.CDN_INVALIDATION_FAILED
    if isinstance(exc, VolumeException):
        return http_status.HTTP_400_BAD_REQUEST, BusinessCode.PARAM_ERROR
    if isinstance(exc, TransientError):
        return http_status.HTTP_503_SERVICE_UNAVAILABLE, BusinessCode.SERVICE_UNAVAILABLE
    return http_status.HTTP_502_BAD_GATEWAY, BusinessCode.STORAGE_ERROR


def _request_id(request: Request) -> str:
    return getattr(getattr(request, "state", object()), "request_id", None) or str(uuid.uuid4())


def register_exception_handlers(app: FastAPI):
    """
    注册全局异常处理器

    Args:
        app: FastAPI应用实例
    """
    logger = get_logger(__name__)

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        """处理存储异常"""
        status_code, code = storage_error_status(exc)
        details = {"path": exc.path} if isinstance(exc, InvalidationError) else None
        response = error_response(
            code=code,
            message=str(exc),
            error_type=type(exc).__name__,
            details=details,
            request_id=_request_id(request),
        )
        logger.warning(
            "storage_exception",
            error_type=type(exc).__name__,
            error=str(exc),
            status_code=status_code,
        )
        return JSONResponse(status_code=status_code, content=response.model_dump(mode='json'))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """处理参数验证异常"""
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        response = error_response(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=f"Validation failed: {first_error.get('msg', 'unknown')}",
            error_type="ValidationError",
            details={"errors": [
                {"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in errors
            ]},
            request_id=_request_id(request),
        )
        return JSONResponse(
            status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=response.model_dump(mode='json')
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """处理HTTP异常"""
        code_mapping = {
            400: BusinessCode.PARAM_ERROR,
            403: BusinessCode.PERMISSION_ERROR,
            404: BusinessCode.NOT_FOUND,
            503: BusinessCode.SERVICE_UNAVAILABLE,
        }
        response = error_response(
            code=code_mapping.get(exc.status_code, BusinessCode.SYSTEM_ERROR),
            message=str(exc.detail),
            error_type="HTTPError",
            details={"status_code": exc.status_code},
            request_id=_request_id(request),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=response.model_dump(mode='json'),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """处理所有未捕获的异常"""
        request_id = _request_id(request)

        # 在开发环境可以返回详细错误信息
        details = None
        if app.debug:
            details = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        response = error_response(
            code=BusinessCode.SYSTEM_ERROR,
            message="Internal server error",
            error_type="SystemError",
            details=details,
            request_id=request_id,
        )

        logger.error(
            "unhandled_exception",
            request_id=request_id,
            error=str(exc),
            exc_info=True,
        )

        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response.model_dump(mode='json')
        )
