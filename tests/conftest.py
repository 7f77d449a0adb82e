# -*- coding: utf-8 -*-
"""
测试公共 fixture

- sq_client / stubber: 真实 boto3 service-quotas 客户端 + botocore Stubber
- FakeServiceQuotas: 内存版 Service Quotas，用于对账流程测试
"""

import itertools

import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber
from prometheus_client import CollectorRegistry

from collector.collector import ReconcileCollector
from provider.aws.service_quotas import ServiceQuotasClient
from quota.service_quota import ServiceQuotaResource
from state.store import StateStore


def quota_response(value, service_code='ec2', quota_code='L-1234'):
    """GetServiceQuota 响应"""
    return {
        'Quota': {
            'ServiceCode': service_code,
            'QuotaCode': quota_code,
            'QuotaName': 'Running On-Demand instances',
            'Value': float(value),
            'Unit': 'None',
            'Adjustable': True,
            'GlobalQuota': False,
        }
    }


def requested_response(request_id, status, desired_value, service_code='ec2', quota_code='L-1234'):
    """RequestServiceQuotaIncrease / GetRequestedServiceQuotaChange 响应"""
    return {
        'RequestedQuota': {
            'Id': request_id,
            'ServiceCode': service_code,
            'QuotaCode': quota_code,
            'DesiredValue': float(desired_value),
            'Status': status,
        }
    }


def client_error(code, operation='GetServiceQuota', message='error'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


@pytest.fixture
def sq_client():
    return ServiceQuotasClient(region='us-east-1', access_key='testing', secret_key='testing')


@pytest.fixture
def stubber(sq_client):
    with Stubber(sq_client.client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def resource(sq_client):
    return ServiceQuotaResource(sq_client)


class FakeServiceQuotas:
    """
    内存版 Service Quotas 客户端，接口与 ServiceQuotasClient 相同
    """

    def __init__(self):
        self.quotas = {}         # (service_code, quota_code) -> value
        self.requests = {}       # request_id -> dict
        self.errors = {}         # (method, key) -> ClientError
        self.calls = []
        self._ids = itertools.count(1)

    def set_quota(self, service_code, quota_code, value):
        self.quotas[(service_code, quota_code)] = float(value)

    def fail(self, method, key, code):
        self.errors[(method, key)] = client_error(code)

    def resolve(self, request_id, status):
        """模拟请求处理结果，APPROVED 时同时更新配额值"""
        requested = self.requests[request_id]
        requested['status'] = status
        if status == 'APPROVED':
            self.set_quota(requested['service_code'], requested['quota_code'], requested['desired_value'])

    def _raise_if_configured(self, method, key):
        error = self.errors.get((method, key))
        if error is not None:
            raise error

    def get_service_quota(self, service_code, quota_code):
        self.calls.append(('get_service_quota', service_code, quota_code))
        self._raise_if_configured('get_service_quota', f"{service_code}/{quota_code}")
        key = (service_code, quota_code)
        if key not in self.quotas:
            raise client_error('NoSuchResourceException')
        return {
            'service_code': service_code,
            'quota_code': quota_code,
            'quota_name': '',
            'value': self.quotas[key],
            'unit': 'None',
            'adjustable': True,
            'global_quota': False,
        }

    def request_service_quota_increase(self, service_code, quota_code, desired_value):
        self.calls.append(('request_service_quota_increase', service_code, quota_code, desired_value))
        self._raise_if_configured('request_service_quota_increase', f"{service_code}/{quota_code}")
        request_id = f"req-{next(self._ids)}"
        self.requests[request_id] = {
            'id': request_id,
            'service_code': service_code,
            'quota_code': quota_code,
            'quota_name': '',
            'desired_value': float(desired_value),
            'status': 'PENDING',
            'case_id': '',
        }
        return dict(self.requests[request_id])

    def get_requested_service_quota_change(self, request_id):
        self.calls.append(('get_requested_service_quota_change', request_id))
        self._raise_if_configured('get_requested_service_quota_change', request_id)
        if request_id not in self.requests:
            raise client_error('NoSuchResourceException', 'GetRequestedServiceQuotaChange')
        return dict(self.requests[request_id])

    def increase_requests(self):
        return [c for c in self.calls if c[0] == 'request_service_quota_increase']


@pytest.fixture
def fake_quotas():
    return FakeServiceQuotas()


@pytest.fixture
def store(tmp_path):
    return StateStore(str(tmp_path / 'state.json'))


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def collector(registry):
    return ReconcileCollector(registry=registry)
