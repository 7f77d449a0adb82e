# -*- coding: utf-8 -*-
"""HTTP 端点测试（Flask test client）"""

import pytest

import main
from collector.reconcile_result import ReconcileStatus
from config.loader import QuotaItem, ReconcileConfig
from quota.service_quota import ServiceQuotaResource
from reconciler.runner import QuotaReconciler


@pytest.fixture
def http_client():
    return main.app.test_client()


@pytest.fixture
def wired(monkeypatch, fake_quotas, store, collector):
    """用内存版 Service Quotas 装配全局组件"""
    config = ReconcileConfig(service_quotas=[QuotaItem('ec2', 'L-1', 10)])
    reconciler = QuotaReconciler(ServiceQuotaResource(fake_quotas), store, collector)
    monkeypatch.setattr(main, '_config', config)
    monkeypatch.setattr(main, '_reconciler', reconciler)
    monkeypatch.setattr(main, '_collector', collector)
    monkeypatch.setattr(main, 'scheduler', None)
    fake_quotas.set_quota('ec2', 'L-1', 5)
    fake_quotas.set_quota('vpc', 'L-2', 3)
    return reconciler


@pytest.fixture
def unwired(monkeypatch):
    monkeypatch.setattr(main, '_config', None)
    monkeypatch.setattr(main, '_reconciler', None)
    monkeypatch.setattr(main, '_collector', None)
    monkeypatch.setattr(main, 'scheduler', None)


def test_metrics_before_init(http_client, unwired):
    response = http_client.get('/metrics')

    assert response.status_code == 200
    assert b'not initialized' in response.data


def test_trigger_before_init(http_client, unwired):
    assert http_client.post('/trigger/reconcile').status_code == 503
    assert main.reconcile_once() == []


def test_health(http_client, wired):
    response = http_client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'
    assert response.get_json()['last_reconcile']['total'] == 0


def test_trigger_reconcile(http_client, wired, store):
    response = http_client.post('/trigger/reconcile')

    body = response.get_json()
    assert response.status_code == 200
    assert body['success'] is True
    assert body['results'][0]['action'] == 'create'
    assert store.get('ec2/L-1').request_id == 'req-1'

    metrics = http_client.get('/metrics').data.decode('utf-8')
    assert 'service_quota_request_open' in metrics


def test_import(http_client, wired):
    response = http_client.post('/import', json={'id': 'vpc/L-2'})

    assert response.status_code == 200
    assert response.get_json()['result']['status'] == ReconcileStatus.SUCCESS.value

    state = http_client.get('/state').get_json()
    assert state['bindings']['vpc/L-2']['value'] == 3.0


def test_import_rejects_malformed_id(http_client, wired):
    response = http_client.post('/import', json={'id': 'vpc'})

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_import_of_unknown_quota(http_client, wired):
    response = http_client.post('/import', json={'id': 'vpc/L-404'})

    assert response.status_code == 500
