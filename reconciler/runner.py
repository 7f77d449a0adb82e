# -*- coding: utf-8 -*-
"""
对账执行模块

功能：
- 刷新已记录的配额绑定（read）
- 生成对账计划并调用资源适配器执行
- 单个配额绑定失败不影响其他绑定
- 每次成功操作后立即写回状态文件
"""

import copy
import logging
import threading
import time
from typing import Iterable, List, Optional, Set, Tuple

from collector.collector import ReconcileCollector
from collector.reconcile_result import PlanAction, ReconcileResult, ReconcileStatus
from config.loader import QuotaItem
from provider.aws.service_quotas import get_error_code
from quota.binding import QuotaBinding
from quota.errors import ServiceQuotaError, ServiceQuotaOperationError
from quota.service_quota import ServiceQuotaResource
from reconciler.planner import PlanItem, plan
from state.store import StateStore

logger = logging.getLogger(__name__)


def _error_code(error: ServiceQuotaError) -> Optional[str]:
    """从适配器异常中取出 AWS 错误代码"""
    if isinstance(error, ServiceQuotaOperationError) and error.cause is not None:
        return get_error_code(error.cause) or None
    return None


class QuotaReconciler:
    """
    配额对账器

    负责"做什么"：刷新、计划、执行。"什么时候做"由 Scheduler 决定。
    """

    def __init__(self, resource: ServiceQuotaResource, store: StateStore, collector: ReconcileCollector = None):
        """
        初始化对账器

        Args:
            resource: Service Quota 资源适配器
            store: 状态存储
            collector: 对账结果收集器（可选）
        """
        self.resource = resource
        self.store = store
        self.collector = collector
        # 导入的配额保留标记保存在状态文件中，重启后恢复
        self.retained_ids: Set[str] = store.retained_ids()
        # 定时任务和手动触发共用，同一时间只允许一轮对账
        self._lock = threading.Lock()

    def refresh(self) -> Tuple[List[ReconcileResult], Set[str]]:
        """
        刷新所有已记录的配额绑定

        Returns:
            (失败结果列表, 刷新失败的资源 ID 集合)
        """
        failures: List[ReconcileResult] = []
        failed_ids: Set[str] = set()

        for resource_id, binding in self.store.load_all().items():
            try:
                self.resource.read(binding)
                self.store.put(binding)
            except ServiceQuotaError as e:
                logger.error(f"[对账] 刷新配额绑定失败: {resource_id}, 错误: {e}")
                failed_ids.add(resource_id)
                failures.append(ReconcileResult(
                    resource_id=resource_id,
                    action=PlanAction.READ,
                    status=ReconcileStatus.FAILED,
                    error=str(e),
                    error_code=_error_code(e)
                ))

        return failures, failed_ids

    def plan(self, desired: Iterable[QuotaItem]) -> List[PlanItem]:
        """根据当前状态生成计划（不刷新，不执行）"""
        return plan([item.to_binding() for item in desired], self.store.load_all(), self.retained_ids)

    def reconcile(self, desired: Iterable[QuotaItem]) -> List[ReconcileResult]:
        """
        执行一轮对账

        Args:
            desired: 配置中的期望配额

        Returns:
            对账结果列表
        """
        desired = list(desired)

        with self._lock:
            start_time = time.time()
            logger.info(f"[对账] 开始对账，期望配额 {len(desired)} 个")

            results, failed_ids = self.refresh()

            for item in self.plan(desired):
                if item.resource_id in failed_ids:
                    results.append(ReconcileResult(
                        resource_id=item.resource_id,
                        action=item.action,
                        status=ReconcileStatus.SKIPPED,
                        desired_value=item.desired.value if item.desired else None,
                        reason='refresh_failed'
                    ))
                    continue
                results.append(self._apply(item))

            duration = time.time() - start_time
            if self.collector is not None:
                self.collector.collect_all(results, duration)

            failed = sum(1 for r in results if r.is_failed())
            logger.info(f"[对账] 对账完成: 共 {len(results)} 项，失败 {failed} 项，耗时 {duration:.2f} 秒")
            return results

    def import_binding(self, resource_id: str) -> ReconcileResult:
        """
        导入已有配额并纳入管理

        Args:
            resource_id: SERVICE-CODE/QUOTA-CODE

        Returns:
            对账结果
        """
        with self._lock:
            if self.store.get(resource_id) is not None:
                self._retain(resource_id)
                logger.info(f"[导入] 配额已在管理中: {resource_id}")
                return ReconcileResult(
                    resource_id=resource_id,
                    action=PlanAction.IMPORT,
                    status=ReconcileStatus.SKIPPED,
                    reason='already_managed'
                )

            try:
                binding = self.resource.import_state(resource_id)
                self.resource.read(binding)
            except ServiceQuotaError as e:
                logger.error(f"[导入] 导入配额失败: {resource_id}, 错误: {e}")
                return ReconcileResult(
                    resource_id=resource_id,
                    action=PlanAction.IMPORT,
                    status=ReconcileStatus.FAILED,
                    error=str(e),
                    error_code=_error_code(e)
                )

            self.store.put(binding)
            self._retain(resource_id)
            logger.info(f"[导入] 已导入配额: {resource_id} = {binding.value}")
            return ReconcileResult(
                resource_id=resource_id,
                action=PlanAction.IMPORT,
                status=ReconcileStatus.SUCCESS,
                binding=binding
            )

    def _retain(self, resource_id: str):
        self.store.retain(resource_id)
        self.retained_ids.add(resource_id)

    def _apply(self, item: PlanItem) -> ReconcileResult:
        """执行单个计划项"""
        desired_value = item.desired.value if item.desired else None

        if item.action == PlanAction.NOOP:
            return ReconcileResult(
                resource_id=item.resource_id,
                action=item.action,
                status=ReconcileStatus.SKIPPED,
                binding=item.current,
                desired_value=desired_value,
                reason='no_changes'
            )

        logger.info(f"[对账] {item.action.value}: {item.resource_id} {item.changed_fields or ''}")
        binding = None

        try:
            if item.action == PlanAction.CREATE:
                binding = copy.copy(item.desired)
                self.resource.create(binding)

            elif item.action == PlanAction.UPDATE:
                # 保留已记录的请求信息，只修改期望值
                binding = copy.copy(item.current)
                binding.value = item.desired.value
                self.resource.update(binding)

            elif item.action == PlanAction.REPLACE:
                self.resource.delete(item.current)
                self.store.remove(item.resource_id)
                binding = copy.copy(item.desired)
                self.resource.create(binding)

            elif item.action == PlanAction.DELETE:
                self.resource.delete(item.current)
                self.store.remove(item.resource_id)
                return ReconcileResult(
                    resource_id=item.resource_id,
                    action=item.action,
                    status=ReconcileStatus.SUCCESS,
                    binding=item.current
                )

        except ServiceQuotaError as e:
            logger.error(f"[对账] {item.action.value} 失败: {item.resource_id}, 错误: {e}")
            self._save_partial(item, binding)
            return ReconcileResult(
                resource_id=item.resource_id,
                action=item.action,
                status=ReconcileStatus.FAILED,
                desired_value=desired_value,
                error=str(e),
                error_code=_error_code(e)
            )

        self.store.put(binding)

        if (item.action == PlanAction.UPDATE and not self._submitted_request(item, binding)
                and binding.value == item.current.value):
            # 期望值不大于当前值，update 没有提交任何请求
            return ReconcileResult(
                resource_id=item.resource_id,
                action=item.action,
                status=ReconcileStatus.SKIPPED,
                binding=binding,
                desired_value=desired_value,
                reason='not_an_increase'
            )

        return ReconcileResult(
            resource_id=item.resource_id,
            action=item.action,
            status=ReconcileStatus.SUCCESS,
            binding=binding,
            desired_value=desired_value
        )

    @staticmethod
    def _submitted_request(item: PlanItem, binding: Optional[QuotaBinding]) -> bool:
        """本次操作是否提交了新的提升请求"""
        if binding is None or not binding.request_id:
            return False
        return item.current is None or item.current.request_id != binding.request_id

    def _save_partial(self, item: PlanItem, binding: Optional[QuotaBinding]):
        """
        操作中途失败时，如果已经提交了新的提升请求，记录请求 ID，
        避免下一轮重复提交
        """
        if not binding or not binding.id or not self._submitted_request(item, binding):
            return

        logger.warning(f"[对账] 保存部分状态: {binding.id}, request_id={binding.request_id}")
        self.store.put(binding)
