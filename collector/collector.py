# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 记录每次对账的结果
- 更新 Prometheus 指标
- 提供指标数据供 /metrics 端点使用
"""

import time
import logging
from typing import Dict, List
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, REGISTRY, generate_latest
from collector.reconcile_result import PlanAction, ReconcileResult

logger = logging.getLogger(__name__)


class ReconcileCollector:
    """
    对账结果收集器

    功能：
    - 管理最近一轮对账结果
    - 更新 Prometheus 指标
    - 提供指标数据供 /metrics 端点使用
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """
        初始化收集器

        Args:
            registry: Prometheus 注册表（测试时传入独立的 CollectorRegistry）
        """
        self.registry = registry
        labels = ['service_code', 'quota_code']

        # 1. service_quota_value: 当前观察到的配额值（请求处理中时为期望值）
        self.quota_value = Gauge(
            'service_quota_value',
            'Observed service quota value',
            labels,
            registry=registry
        )

        # 2. service_quota_desired_value: 配置中的期望值
        self.desired_value = Gauge(
            'service_quota_desired_value',
            'Desired service quota value from configuration',
            labels,
            registry=registry
        )

        # 3. service_quota_request_open: 是否有进行中的提升请求
        self.request_open = Gauge(
            'service_quota_request_open',
            'Whether a quota increase request is on record (1) or not (0)',
            labels,
            registry=registry
        )

        # 对账自身指标
        self.reconcile_total = Counter(
            'service_quota_reconcile_total',
            'Total number of reconcile operations',
            ['action', 'status'],
            registry=registry
        )

        self.reconcile_errors_total = Counter(
            'service_quota_reconcile_errors_total',
            'Total number of reconcile errors',
            ['service_code', 'quota_code', 'error_type'],
            registry=registry
        )

        self.reconcile_duration_seconds = Histogram(
            'service_quota_reconcile_duration_seconds',
            'Duration of a reconcile run in seconds',
            buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
            registry=registry
        )

        # 最近一轮对账结果
        self.results: List[ReconcileResult] = []
        self.last_run_at: float = 0.0

    def add_result(self, result: ReconcileResult):
        """
        添加对账结果

        Args:
            result: 对账结果
        """
        self.results.append(result)
        self.reconcile_total.labels(action=result.action.value, status=result.status.value).inc()

        service_code, _, quota_code = result.resource_id.partition('/')

        if not result.is_failed() and result.binding is not None:
            binding = result.binding
            labels = {'service_code': binding.service_code, 'quota_code': binding.quota_code}

            if result.action == PlanAction.DELETE:
                # 已删除的绑定不再暴露指标
                self._remove_series(labels)
                return

            self.quota_value.labels(**labels).set(binding.value)
            self.request_open.labels(**labels).set(1 if binding.has_open_request() else 0)
            if result.desired_value is not None:
                self.desired_value.labels(**labels).set(result.desired_value)

        elif result.is_failed():
            error_type = 'api_error'
            if result.error_code == 'AccessDeniedException':
                error_type = 'permission_denied'
            elif result.error_code == 'NoSuchResourceException':
                error_type = 'quota_not_found'
            elif result.error_code is None:
                error_type = 'internal_error'

            self.reconcile_errors_total.labels(
                service_code=service_code,
                quota_code=quota_code,
                error_type=error_type
            ).inc()

    def _remove_series(self, labels: Dict[str, str]):
        for gauge in (self.quota_value, self.desired_value, self.request_open):
            try:
                gauge.remove(labels['service_code'], labels['quota_code'])
            except KeyError:
                pass

    def collect_all(self, results: List[ReconcileResult], duration: float = None):
        """
        用一轮对账结果替换之前的结果

        Args:
            results: 对账结果列表
            duration: 对账耗时（秒），不提供时只统计本方法耗时
        """
        start_time = time.time()

        self.results = []
        for result in results:
            self.add_result(result)

        if duration is None:
            duration = time.time() - start_time
        self.reconcile_duration_seconds.observe(duration)
        self.last_run_at = time.time()

    def get_metrics(self) -> str:
        """
        获取 Prometheus 格式的指标数据

        Returns:
            Prometheus text format 字符串
        """
        return generate_latest(self.registry).decode('utf-8')

    def get_summary(self) -> Dict:
        """
        获取对账汇总信息

        Returns:
            汇总信息字典
        """
        total = len(self.results)
        success = sum(1 for r in self.results if r.is_success())
        skipped = sum(1 for r in self.results if r.is_skipped())
        failed = sum(1 for r in self.results if r.is_failed())

        # 按动作统计
        by_action = {}
        for result in self.results:
            action = result.action.value
            if action not in by_action:
                by_action[action] = {'success': 0, 'skipped': 0, 'failed': 0}
            by_action[action][result.status.value] += 1

        errors = {r.resource_id: r.error for r in self.results if r.is_failed()}

        return {
            'total': total,
            'success': success,
            'skipped': skipped,
            'failed': failed,
            'by_action': by_action,
            'errors': errors,
            'last_run_at': self.last_run_at,
        }
