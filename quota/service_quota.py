# -*- coding: utf-8 -*-
"""
Service Quota 资源适配器

功能：
- 将声明式配置（service_code, quota_code, value）映射为 Service Quotas API 调用
- 提供 create / read / update / delete / import 五个生命周期入口
- 上游错误附带操作前缀和资源 ID 后直接抛出，不做重试

生命周期由外部编排器（reconciler）驱动，本模块不关心何时调用。
"""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from provider.aws.service_quotas import ServiceQuotasClient, get_error_code
from quota.binding import QuotaBinding, RequestStatus
from quota.errors import EmptyResultError, ServiceQuotaOperationError
from quota.identifier import build_id, parse_id

logger = logging.getLogger(__name__)

# 错误消息前缀
GET_QUOTA_ERROR = "获取 Service Quotas 配额失败"
REQUEST_INCREASE_ERROR = "提交 Service Quotas 配额提升请求失败"
GET_REQUEST_ERROR = "获取 Service Quotas 配额提升请求失败"


class ServiceQuotaResource:
    """
    Service Quota 资源适配器

    所有方法直接修改传入的 QuotaBinding 并返回它。
    """

    def __init__(self, client: ServiceQuotasClient):
        """
        初始化资源适配器

        Args:
            client: ServiceQuotasClient 实例
        """
        self.client = client

    def create(self, binding: QuotaBinding) -> QuotaBinding:
        """
        创建资源

        当前值小于期望值时提交一次提升请求，最后执行 read。
        """
        binding.id = build_id(binding.service_code, binding.quota_code)
        logger.info(f"创建配额绑定: {binding.id}, 期望值={binding.value}")

        self._request_increase_if_needed(binding, binding.service_code, binding.quota_code)

        return self.read(binding)

    def read(self, binding: QuotaBinding) -> QuotaBinding:
        """
        读取资源当前状态

        - 刷新 service_code / quota_code / value
        - 如果有进行中的请求，查询请求状态并按状态修改本地字段
        """
        service_code, quota_code = parse_id(binding.id)

        quota = self._get_quota(binding.id, service_code, quota_code)

        binding.service_code = quota['service_code']
        binding.quota_code = quota['quota_code']
        binding.value = float(quota['value'])

        if binding.request_id:
            self._refresh_request(binding)

        return binding

    def update(self, binding: QuotaBinding) -> QuotaBinding:
        """
        更新资源（只支持提升配额），最后执行 read
        """
        service_code, quota_code = parse_id(binding.id)
        logger.info(f"更新配额绑定: {binding.id}, 期望值={binding.value}")

        self._request_increase_if_needed(binding, service_code, quota_code)

        return self.read(binding)

    def delete(self, binding: QuotaBinding) -> None:
        """
        删除资源：不调用任何 API

        Service Quotas 不支持降低配额，从配置中移除不影响远端。
        """
        logger.info(f"删除配额绑定（仅移出管理，不修改远端配额）: {binding.id}")

    def import_state(self, resource_id: str) -> QuotaBinding:
        """
        导入已有配额：直接透传资源 ID，由后续 read 填充其他字段
        """
        return QuotaBinding(id=resource_id)

    def _get_quota(self, resource_id: str, service_code: str, quota_code: str) -> dict:
        try:
            quota = self.client.get_service_quota(service_code, quota_code)
        except (ClientError, BotoCoreError) as e:
            raise ServiceQuotaOperationError(GET_QUOTA_ERROR, resource_id, e) from e

        if quota is None:
            raise EmptyResultError(GET_QUOTA_ERROR, resource_id)

        return quota

    def _request_increase_if_needed(self, binding: QuotaBinding, service_code: str, quota_code: str):
        """期望值大于当前值时提交提升请求，并记录请求 ID"""
        quota = self._get_quota(binding.id, service_code, quota_code)
        current_value = float(quota['value'])

        if binding.value <= current_value:
            logger.info(f"期望值 {binding.value} 不大于当前值 {current_value}，不提交提升请求: {binding.id}")
            return

        try:
            requested = self.client.request_service_quota_increase(service_code, quota_code, binding.value)
        except (ClientError, BotoCoreError) as e:
            raise ServiceQuotaOperationError(REQUEST_INCREASE_ERROR, binding.id, e) from e

        if requested is None or not requested.get('id'):
            raise EmptyResultError(REQUEST_INCREASE_ERROR, binding.id)

        binding.request_id = requested['id']
        logger.info(f"已提交配额提升请求: {binding.id}, {current_value} -> {binding.value}, request_id={binding.request_id}")

    def _refresh_request(self, binding: QuotaBinding):
        """查询请求状态，并根据状态修改 request_id / value"""
        request_id = binding.request_id

        try:
            requested = self.client.get_requested_service_quota_change(request_id)
        except ClientError as e:
            if get_error_code(e) == 'NoSuchResourceException':
                logger.info(f"配额提升请求已不存在，清空请求信息: {binding.id}, request_id={request_id}")
                binding.request_id = ''
                binding.request_status = ''
                return
            raise ServiceQuotaOperationError(GET_REQUEST_ERROR, request_id, e) from e
        except BotoCoreError as e:
            raise ServiceQuotaOperationError(GET_REQUEST_ERROR, request_id, e) from e

        if requested is None:
            raise EmptyResultError(GET_REQUEST_ERROR, request_id)

        binding.request_status = requested['status']
        status = RequestStatus.from_value(requested['status'])

        if status is None:
            logger.warning(f"未知的请求状态: {requested['status']}, request_id={request_id}")
        elif status.is_terminal():
            logger.info(f"配额提升请求已结束: {binding.id}, request_id={request_id}, status={status.value}")
            binding.request_id = ''
        elif status.is_in_progress():
            # 请求处理中，本地 value 显示期望值
            binding.value = float(requested['desired_value'])
