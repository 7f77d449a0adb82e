# -*- coding: utf-8 -*-
"""
对账结果数据结构

功能：
- 定义对账动作和结果状态
- 统一管理单个配额绑定的对账结果
"""

from dataclasses import dataclass
from typing import Optional
from enum import Enum

from quota.binding import QuotaBinding


class PlanAction(Enum):
    """对账动作"""
    CREATE = "create"      # 配置中有，状态中没有
    UPDATE = "update"      # 期望值与状态值不同
    REPLACE = "replace"    # 不可变字段被修改
    DELETE = "delete"      # 状态中有，配置中没有
    NOOP = "noop"          # 无变化
    READ = "read"          # 刷新状态
    IMPORT = "import"      # 导入已有配额


class ReconcileStatus(Enum):
    """对账结果状态"""
    SUCCESS = "success"    # 执行成功
    SKIPPED = "skipped"    # 无需执行（有明确原因）
    FAILED = "failed"      # 执行失败


@dataclass
class ReconcileResult:
    """单个配额绑定的对账结果"""
    resource_id: str                          # SERVICE-CODE/QUOTA-CODE
    action: PlanAction                        # 执行的动作
    status: ReconcileStatus                   # 结果状态
    binding: Optional[QuotaBinding] = None    # 执行后的配额绑定（success 时）
    desired_value: Optional[float] = None     # 配置中的期望值
    reason: Optional[str] = None              # 跳过原因
    error: Optional[str] = None               # 错误信息（failed 时）
    error_code: Optional[str] = None          # AWS 错误代码（如有）

    def is_success(self) -> bool:
        """判断是否成功"""
        return self.status == ReconcileStatus.SUCCESS

    def is_skipped(self) -> bool:
        """判断是否跳过"""
        return self.status == ReconcileStatus.SKIPPED

    def is_failed(self) -> bool:
        """判断是否失败"""
        return self.status == ReconcileStatus.FAILED

    def to_dict(self) -> dict:
        return {
            'resource_id': self.resource_id,
            'action': self.action.value,
            'status': self.status.value,
            'binding': self.binding.to_dict() if self.binding else None,
            'desired_value': self.desired_value,
            'reason': self.reason,
            'error': self.error,
        }
