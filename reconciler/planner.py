# -*- coding: utf-8 -*-
"""
对账计划模块

功能：
- 比较期望配额（配置）和已记录状态
- 生成每个配额绑定需要执行的动作
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from collector.reconcile_result import PlanAction
from quota.binding import QuotaBinding, SCHEMA


@dataclass
class PlanItem:
    """单个配额绑定的计划"""
    action: PlanAction
    resource_id: str
    desired: Optional[QuotaBinding] = None     # 配置中的期望状态
    current: Optional[QuotaBinding] = None     # 已记录的状态
    changed_fields: List[str] = field(default_factory=list)


def diff_fields(desired: QuotaBinding, current: QuotaBinding) -> List[str]:
    """返回非计算字段中有变化的字段名"""
    changed = []
    for name, spec in SCHEMA.items():
        if spec.computed:
            continue
        if getattr(desired, name) != getattr(current, name):
            changed.append(name)
    return changed


def plan(desired: Iterable[QuotaBinding], state: Dict[str, QuotaBinding], retained_ids: Set[str] = None) -> List[PlanItem]:
    """
    生成对账计划

    Args:
        desired: 期望的配额绑定（id 已生成）
        state: 已记录的状态 {资源 ID: QuotaBinding}
        retained_ids: 只纳入管理、没有期望值的资源 ID（导入的配额），不会被删除

    Returns:
        计划列表：先按配置顺序排列 create/update/replace/noop，再按 ID 排列 delete
    """
    retained_ids = retained_ids or set()
    items: List[PlanItem] = []
    desired_ids = set()

    for binding in desired:
        desired_ids.add(binding.id)
        current = state.get(binding.id)

        if current is None:
            items.append(PlanItem(PlanAction.CREATE, binding.id, desired=binding))
            continue

        changed = diff_fields(binding, current)
        if any(SCHEMA[name].force_new for name in changed):
            action = PlanAction.REPLACE
        elif changed:
            action = PlanAction.UPDATE
        else:
            action = PlanAction.NOOP

        items.append(PlanItem(action, binding.id, desired=binding, current=current, changed_fields=changed))

    for resource_id in sorted(state):
        if resource_id in desired_ids:
            continue
        if resource_id in retained_ids:
            items.append(PlanItem(PlanAction.NOOP, resource_id, current=state[resource_id]))
        else:
            items.append(PlanItem(PlanAction.DELETE, resource_id, current=state[resource_id]))

    return items
