# -*- coding: utf-8 -*-
"""
资源适配器异常定义

功能：
- 统一的异常基类
- 上游 API 失败时附带操作和资源 ID 的静态前缀
"""

from typing import Optional


class ServiceQuotaError(Exception):
    """Service Quota 资源适配器异常基类"""
    pass


class IdentifierFormatError(ServiceQuotaError, ValueError):
    """资源 ID 格式错误（期望 SERVICE-CODE/QUOTA-CODE）"""

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        super().__init__(f"ID 格式错误 ({resource_id})，期望格式 SERVICE-CODE/QUOTA-CODE")


class ServiceQuotaOperationError(ServiceQuotaError):
    """
    上游 API 调用失败

    消息格式: "<操作前缀> (<资源 ID>): <上游错误>"
    """

    def __init__(self, operation: str, resource_id: str, cause: Optional[Exception] = None, detail: str = None):
        self.operation = operation
        self.resource_id = resource_id
        self.cause = cause
        detail = detail if detail is not None else str(cause)
        super().__init__(f"{operation} ({resource_id}): {detail}")


class EmptyResultError(ServiceQuotaOperationError):
    """上游 API 返回空结果"""

    def __init__(self, operation: str, resource_id: str):
        super().__init__(operation, resource_id, detail="返回结果为空")
