#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Service Quota Reconciler 主程序入口

功能：
- 加载期望配额配置，定时对账（读取配额、提交提升请求、跟踪请求状态）
- 暴露 /metrics 端点供 Prometheus 抓取
- 暴露 /health 健康检查端点
- 暴露手动触发对账、导入配额、查看状态的端点
"""

from flask import Flask, jsonify, request
from prometheus_client import CONTENT_TYPE_LATEST
import logging
import sys
from typing import Optional

from config.loader import ReconcileConfig, find_config_path, load_config, print_config
from config.validator import validate_config
from collector import ReconcileCollector
from provider.aws.service_quotas import ServiceQuotasClient
from quota.errors import IdentifierFormatError
from quota.identifier import parse_id
from quota.service_quota import ServiceQuotaResource
from reconciler.runner import QuotaReconciler
from scheduler.scheduler import ReconcileScheduler
from state.store import StateStore

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# 设置特定模块的日志级别
logging.getLogger('werkzeug').setLevel(logging.WARNING)  # 减少 Flask 日志
logging.getLogger('botocore').setLevel(logging.WARNING)

# 创建 Flask 应用
app = Flask(__name__)

# 全局变量（在 main 函数中初始化）
scheduler: Optional[ReconcileScheduler] = None
_config: Optional[ReconcileConfig] = None
_reconciler: Optional[QuotaReconciler] = None
_collector: Optional[ReconcileCollector] = None


@app.route('/metrics')
def metrics():
    """
    Prometheus metrics 端点

    格式：Prometheus text format
    """
    if _collector is None:
        return "# Reconciler not initialized\n", 200, {'Content-Type': CONTENT_TYPE_LATEST}

    return _collector.get_metrics(), 200, {'Content-Type': CONTENT_TYPE_LATEST}


@app.route('/health')
def health():
    """
    健康检查端点
    """
    status = {'status': 'healthy'}

    if scheduler:
        status['scheduler'] = scheduler.get_status()

    if _collector:
        status['last_reconcile'] = _collector.get_summary()

    return status, 200


@app.route('/state')
def state():
    """返回已记录的配额绑定"""
    if _reconciler is None:
        return jsonify({'success': False, 'error': 'Reconciler 未初始化'}), 503

    bindings = _reconciler.store.load_all()
    return jsonify({
        'success': True,
        'bindings': {resource_id: b.to_dict() for resource_id, b in bindings.items()}
    }), 200


@app.route('/trigger/reconcile', methods=['POST'])
def trigger_reconcile():
    """
    手动触发一轮对账

    返回 JSON 格式的结果
    """
    if _reconciler is None or _config is None:
        return jsonify({
            'success': False,
            'error': 'Reconciler 未初始化，无法执行对账'
        }), 503

    logger.info("[手动触发] 开始配额对账...")
    results = reconcile_once()

    return jsonify({
        'success': not any(r.is_failed() for r in results),
        'results': [r.to_dict() for r in results]
    }), 200


@app.route('/import', methods=['POST'])
def import_quota():
    """
    导入已有配额

    请求体: {"id": "SERVICE-CODE/QUOTA-CODE"}
    """
    if _reconciler is None:
        return jsonify({
            'success': False,
            'error': 'Reconciler 未初始化，无法导入'
        }), 503

    payload = request.get_json(silent=True) or {}
    resource_id = payload.get('id', '')

    try:
        parse_id(resource_id)
    except IdentifierFormatError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    result = _reconciler.import_binding(resource_id)
    status_code = 500 if result.is_failed() else 200
    return jsonify({'success': not result.is_failed(), 'result': result.to_dict()}), status_code


def reconcile_once():
    """
    执行一轮对账

    供 Scheduler 和手动触发调用
    """
    if _reconciler is None or _config is None:
        logger.error("[Scheduler] 对账组件未初始化，无法执行对账")
        return []

    return _reconciler.reconcile(_config.service_quotas)


def init_components(config: ReconcileConfig, collector: ReconcileCollector = None) -> QuotaReconciler:
    """
    初始化对账组件并保存到全局变量

    Args:
        config: 配置对象
        collector: 对账结果收集器（默认新建）

    Returns:
        QuotaReconciler 实例
    """
    global _config, _reconciler, _collector

    client = ServiceQuotasClient(
        region=config.provider.region,
        access_key=config.provider.access_key,
        secret_key=config.provider.secret_key
    )

    _config = config
    _collector = collector or ReconcileCollector()
    _reconciler = QuotaReconciler(
        resource=ServiceQuotaResource(client),
        store=StateStore(config.reconcile.state_file),
        collector=_collector
    )
    return _reconciler


def main():
    """
    主函数：启动 Flask 服务器

    功能：
    1. 加载并验证配置文件
    2. 初始化对账组件，导入已有配额
    3. 执行初始对账
    4. 启动定时任务和 HTTP 服务器
    """
    logger.info("Starting Service Quota Reconciler...")

    # Phase 1: 加载配置
    try:
        config_path = find_config_path()
        logger.info(f"正在加载配额配置: {config_path}")
        config = load_config(config_path)
    except FileNotFoundError as e:
        logger.error(f"配置文件不存在: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"加载配额配置失败: {e}")
        sys.exit(1)

    is_valid, error_message = validate_config(config)
    if not is_valid:
        logger.error(f"配置验证失败: {error_message}")
        sys.exit(1)

    log_level = config.reconcile.log_level
    logging.getLogger().setLevel('WARNING' if log_level == 'WARN' else log_level)
    logger.info("配额配置加载成功")
    print_config(config)

    # Phase 2: 初始化对账组件
    reconciler = init_components(config)

    for resource_id in config.imports:
        result = reconciler.import_binding(resource_id)
        if result.is_failed():
            logger.error(f"导入配额失败: {resource_id}: {result.error}")

    # Phase 3: 执行初始对账
    logger.info("=" * 60)
    logger.info("执行初始对账")
    logger.info("=" * 60)

    try:
        reconcile_once()
        summary = _collector.get_summary()

        print(f"\n{'=' * 60}")
        print("配额对账汇总")
        print(f"{'=' * 60}")
        print(f"总计: {summary['total']}")
        print(f"成功: {summary['success']}")
        print(f"跳过: {summary['skipped']}")
        print(f"失败: {summary['failed']}")
        for resource_id, error in summary['errors'].items():
            print(f"  {resource_id}: {error}")
        print(f"{'=' * 60}")

    except Exception as e:
        logger.error(f"初始对账失败: {e}", exc_info=True)
        logger.error("请检查:")
        logger.error("  1. AWS 凭证是否正确配置")
        logger.error("  2. 是否有 Service Quotas API 权限")
        logger.error("  3. 状态文件是否可读写")
        # 不退出，继续启动服务器

    # Phase 4: 启动定时任务
    global scheduler
    scheduler = ReconcileScheduler(
        reconcile_func=reconcile_once,
        interval=config.reconcile.interval
    )
    scheduler.start()

    port = config.reconcile.metrics_port
    logger.info(f"Starting HTTP server on port {port}")
    print(f"\n{'=' * 60}")
    print("Reconciler 已启动")
    print(f"访问 http://localhost:{port}/metrics 查看指标")
    print(f"访问 http://localhost:{port}/health 查看健康状态")
    print(f"{'=' * 60}\n")
    app.run(host='0.0.0.0', port=port, debug=False)


if __name__ == '__main__':
    main()
