# -*- coding: utf-8 -*-
"""
配额绑定（Quota Binding）数据结构

功能：
- 定义资源的字段和字段属性（必填 / 计算 / 不可变）
- 定义配额提升请求状态
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class RequestStatus(Enum):
    """配额提升请求状态"""
    PENDING = "PENDING"
    CASE_OPENED = "CASE_OPENED"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    CASE_CLOSED = "CASE_CLOSED"
    NOT_APPROVED = "NOT_APPROVED"
    INVALID_REQUEST = "INVALID_REQUEST"

    @classmethod
    def from_value(cls, value: str) -> Optional['RequestStatus']:
        """未知状态返回 None"""
        try:
            return cls(value)
        except ValueError:
            return None

    def is_terminal(self) -> bool:
        """请求已结束（request_id 需要清空）"""
        return self in TERMINAL_STATUSES

    def is_in_progress(self) -> bool:
        """请求处理中（value 显示为期望值）"""
        return self in IN_PROGRESS_STATUSES


TERMINAL_STATUSES = frozenset({
    RequestStatus.APPROVED,
    RequestStatus.CASE_CLOSED,
    RequestStatus.DENIED,
    RequestStatus.NOT_APPROVED,
    RequestStatus.INVALID_REQUEST,
})

IN_PROGRESS_STATUSES = frozenset({
    RequestStatus.CASE_OPENED,
    RequestStatus.PENDING,
})


@dataclass(frozen=True)
class FieldSpec:
    """字段属性"""
    required: bool = False
    computed: bool = False
    force_new: bool = False     # 修改后需要重建资源


SCHEMA: Dict[str, FieldSpec] = {
    'service_code': FieldSpec(required=True, force_new=True),
    'quota_code': FieldSpec(required=True, force_new=True),
    'value': FieldSpec(required=True),
    'request_id': FieldSpec(computed=True),
    'request_status': FieldSpec(computed=True),
}


@dataclass
class QuotaBinding:
    """单个配额绑定"""
    service_code: str = ''
    quota_code: str = ''
    value: float = 0.0
    id: str = ''                  # SERVICE-CODE/QUOTA-CODE
    request_id: str = ''          # 进行中的提升请求 ID，没有时为空
    request_status: str = ''      # 最近一次观察到的请求状态

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuotaBinding':
        """从字典构建，忽略未知字段"""
        return cls(
            service_code=data.get('service_code', '') or '',
            quota_code=data.get('quota_code', '') or '',
            value=float(data.get('value', 0.0) or 0.0),
            id=data.get('id', '') or '',
            request_id=data.get('request_id', '') or '',
            request_status=data.get('request_status', '') or '',
        )

    def has_open_request(self) -> bool:
        return bool(self.request_id)
