# -*- coding: utf-8 -*-
"""
AWS Service Quotas API 客户端模块

功能：
- 封装 AWS Service Quotas API 调用
- 获取当前配额值
- 提交配额提升请求，查询提升请求状态
"""

import boto3
import logging
from botocore.exceptions import ClientError, BotoCoreError
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def get_error_code(error: Exception) -> str:
    """
    提取 AWS 错误代码

    Args:
        error: 异常对象

    Returns:
        错误代码（如 'NoSuchResourceException'），非 ClientError 返回空字符串
    """
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', 'Unknown')
    return ''


def _normalize_requested_quota(requested: Dict) -> Dict:
    """将 RequestedQuota 结构转换为内部字典"""
    return {
        'id': requested.get('Id', ''),
        'service_code': requested.get('ServiceCode', ''),
        'quota_code': requested.get('QuotaCode', ''),
        'quota_name': requested.get('QuotaName', ''),
        'desired_value': requested.get('DesiredValue', 0.0),
        'status': requested.get('Status', ''),
        'case_id': requested.get('CaseId', ''),
    }


class ServiceQuotasClient:
    """
    AWS Service Quotas API 客户端

    功能：
    - 调用 GetServiceQuota 获取配额当前值
    - 调用 RequestServiceQuotaIncrease 提交提升请求
    - 调用 GetRequestedServiceQuotaChange 查询请求状态
    """

    def __init__(self, region: str = 'us-east-1', access_key: str = None, secret_key: str = None):
        """
        初始化 Service Quotas 客户端

        Args:
            region: AWS 区域（默认 us-east-1）
            access_key / secret_key: 静态凭证，两者都提供时使用，否则走默认凭证链
        """
        self.region = region
        use_static_credentials = bool(access_key and secret_key)
        credential_source = '静态凭证' if use_static_credentials else '默认凭证链'

        try:
            if use_static_credentials:
                session = boto3.Session(
                    aws_access_key_id=access_key,
                    aws_secret_access_key=secret_key,
                    region_name=region
                )
            else:
                session = boto3.Session(region_name=region)
            self.client = session.client('service-quotas')
        except BotoCoreError as e:
            logger.error(f"创建 service-quotas 客户端失败（{credential_source}），区域: {region}, 错误: {e}")
            raise

        logger.debug(f"service-quotas 客户端已创建（{credential_source}），区域: {region}")

    def get_service_quota(self, service_code: str, quota_code: str) -> Optional[Dict]:
        """
        获取特定配额的详细信息

        Args:
            service_code: 服务代码（如 'ec2'）
            quota_code: 配额代码（如 'L-1216C47A'）

        Returns:
            配额详情字典，包含：
            - service_code: 服务代码
            - quota_code: 配额代码
            - quota_name: 配额名称
            - value: 配额当前值
            - unit: 单位
            响应中没有 Quota 时返回 None

        Raises:
            ClientError: AWS API 错误
        """
        try:
            logger.debug(f"调用 GetServiceQuota: service_code={service_code}, quota_code={quota_code}, region={self.region}")

            response = self.client.get_service_quota(
                ServiceCode=service_code,
                QuotaCode=quota_code
            )

            quota = response.get('Quota')
            if not quota:
                logger.warning(f"GetServiceQuota 返回结果为空: service_code={service_code}, quota_code={quota_code}")
                return None

            result = {
                'service_code': quota.get('ServiceCode', service_code),
                'quota_code': quota.get('QuotaCode', quota_code),
                'quota_name': quota.get('QuotaName', ''),
                'value': quota.get('Value', 0.0),
                'unit': quota.get('Unit', ''),
                'adjustable': quota.get('Adjustable', False),
                'global_quota': quota.get('GlobalQuota', False)
            }

            logger.debug(f"获取配额成功: {quota_code} = {result['value']} {result['unit']}")
            return result

        except ClientError as e:
            error_code = get_error_code(e)
            error_message = e.response.get('Error', {}).get('Message', str(e))

            if error_code == 'NoSuchResourceException':
                logger.warning(f"配额不存在: service_code={service_code}, quota_code={quota_code}, region={self.region}")
            elif error_code == 'AccessDeniedException':
                logger.error(f"权限不足: service_code={service_code}, quota_code={quota_code}, region={self.region}")
            else:
                logger.error(f"获取配额失败: service_code={service_code}, quota_code={quota_code}, region={self.region}, error={error_code}: {error_message}")

            raise
        except BotoCoreError as e:
            logger.error(f"AWS SDK 错误: service_code={service_code}, quota_code={quota_code}, region={self.region}, error={e}")
            raise

    def request_service_quota_increase(self, service_code: str, quota_code: str, desired_value: float) -> Optional[Dict]:
        """
        提交配额提升请求

        Args:
            service_code: 服务代码
            quota_code: 配额代码
            desired_value: 期望的配额值

        Returns:
            请求详情字典（id, status, desired_value 等），响应中没有 RequestedQuota 时返回 None

        Raises:
            ClientError: AWS API 错误（如 ResourceAlreadyExistsException、QuotaExceededException）
        """
        try:
            logger.info(f"调用 RequestServiceQuotaIncrease: service_code={service_code}, quota_code={quota_code}, desired_value={desired_value}, region={self.region}")

            response = self.client.request_service_quota_increase(
                ServiceCode=service_code,
                QuotaCode=quota_code,
                DesiredValue=float(desired_value)
            )

            requested = response.get('RequestedQuota')
            if not requested:
                logger.warning(f"RequestServiceQuotaIncrease 返回结果为空: service_code={service_code}, quota_code={quota_code}")
                return None

            result = _normalize_requested_quota(requested)
            logger.info(f"配额提升请求已提交: request_id={result['id']}, status={result['status']}")
            return result

        except ClientError as e:
            error_code = get_error_code(e)
            error_message = e.response.get('Error', {}).get('Message', str(e))
            logger.error(f"提交配额提升请求失败: service_code={service_code}, quota_code={quota_code}, region={self.region}, error={error_code}: {error_message}")
            raise
        except BotoCoreError as e:
            logger.error(f"AWS SDK 错误: service_code={service_code}, quota_code={quota_code}, region={self.region}, error={e}")
            raise

    def get_requested_service_quota_change(self, request_id: str) -> Optional[Dict]:
        """
        查询配额提升请求的状态

        Args:
            request_id: 请求 ID

        Returns:
            请求详情字典，响应中没有 RequestedQuota 时返回 None

        Raises:
            ClientError: AWS API 错误（请求不存在时为 NoSuchResourceException）
        """
        try:
            logger.debug(f"调用 GetRequestedServiceQuotaChange: request_id={request_id}, region={self.region}")

            response = self.client.get_requested_service_quota_change(RequestId=request_id)

            requested = response.get('RequestedQuota')
            if not requested:
                return None

            result = _normalize_requested_quota(requested)
            logger.debug(f"配额提升请求状态: request_id={request_id}, status={result['status']}")
            return result

        except ClientError as e:
            error_code = get_error_code(e)
            if error_code == 'NoSuchResourceException':
                # 请求记录已不存在，由调用方决定如何处理
                logger.info(f"配额提升请求不存在: request_id={request_id}, region={self.region}")
            else:
                error_message = e.response.get('Error', {}).get('Message', str(e))
                logger.error(f"查询配额提升请求失败: request_id={request_id}, region={self.region}, error={error_code}: {error_message}")
            raise
        except BotoCoreError as e:
            logger.error(f"AWS SDK 错误: request_id={request_id}, region={self.region}, error={e}")
            raise
