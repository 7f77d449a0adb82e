# -*- coding: utf-8 -*-
"""
Service Quota 资源模块

功能：
- 配额绑定数据结构和字段属性
- 资源 ID 编解码
- create / read / update / delete / import 资源适配器
"""

from quota.binding import QuotaBinding, RequestStatus, SCHEMA
from quota.errors import (
    ServiceQuotaError,
    IdentifierFormatError,
    ServiceQuotaOperationError,
    EmptyResultError,
)
from quota.identifier import build_id, parse_id
from quota.service_quota import ServiceQuotaResource

__all__ = [
    'QuotaBinding',
    'RequestStatus',
    'SCHEMA',
    'ServiceQuotaError',
    'IdentifierFormatError',
    'ServiceQuotaOperationError',
    'EmptyResultError',
    'build_id',
    'parse_id',
    'ServiceQuotaResource',
]
