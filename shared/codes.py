"""
Shared business codes used across layers (Core/API).

This module provides a single source of truth to avoid drift between
multiple enum definitions scattered across the codebase.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """业务状态码定义（单一来源）"""

    # 成功
    SUCCESS = 0

    # 参数错误 (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_VALIDATION_ERROR = 10003

    # 业务错误 (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006  # 资源未找到（通用）

    # 权限错误 (3xxxx)
    PERMISSION_ERROR = 30000

    # 系统错误 (4xxxx)
    SYSTEM_ERROR = 40000
    NETWORK_ERROR = 40002
    SERVICE_UNAVAILABLE = 40003

    # 存储错误 (6xxxx)
    STORAGE_ERROR = 60000
    STORAGE_CONFIGURATION_ERROR = 60001
    CDN_INVALIDATION_FAILED = 60002


__all__ = ["BusinessCode"]
