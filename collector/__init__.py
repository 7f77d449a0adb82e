# -*- coding: utf-8 -*-
"""
Prometheus Collector 模块

功能：
- 记录配额对账结果
- 暴露 Prometheus 格式的指标
"""

from .collector import ReconcileCollector
from .reconcile_result import PlanAction, ReconcileResult, ReconcileStatus
