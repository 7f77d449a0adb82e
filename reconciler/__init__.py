# -*- coding: utf-8 -*-
"""
对账模块

功能：
- 比较期望配额和已记录状态，生成计划
- 调用资源适配器执行计划
"""

from reconciler.planner import PlanItem, plan
from reconciler.runner import QuotaReconciler

__all__ = ['PlanItem', 'plan', 'QuotaReconciler']
