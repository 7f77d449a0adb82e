# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证配置文件的完整性和正确性
- 验证字段格式和取值范围
- 检查重复的配额绑定
"""

from typing import Optional, Tuple

from quota.errors import IdentifierFormatError
from quota.identifier import ID_SEPARATOR, parse_id

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARN', 'WARNING', 'ERROR']


def validate_config(config) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: ReconcileConfig 对象

    Returns:
        (is_valid, error_message) 元组
    """
    if not config.provider.region or not str(config.provider.region).strip():
        return False, "provider.region 不能为空"

    if bool(config.provider.access_key) != bool(config.provider.secret_key):
        return False, "provider.access_key 和 provider.secret_key 必须同时提供"

    settings = config.reconcile
    if isinstance(settings.interval, bool) or not isinstance(settings.interval, int) or settings.interval <= 0:
        return False, "reconcile.interval 必须是正整数"

    if isinstance(settings.metrics_port, bool) or not isinstance(settings.metrics_port, int) \
            or not 1 <= settings.metrics_port <= 65535:
        return False, "reconcile.metrics_port 必须在 1-65535 范围内"

    if settings.log_level not in VALID_LOG_LEVELS:
        return False, f"reconcile.log_level 必须是以下值之一: {', '.join(VALID_LOG_LEVELS)}"

    if not settings.state_file:
        return False, "reconcile.state_file 不能为空"

    seen = set()
    for idx, item in enumerate(config.service_quotas):
        if ID_SEPARATOR in item.service_code:
            return False, f"service_quotas[{idx}].service_code 不能包含 '{ID_SEPARATOR}': {item.service_code}"
        if item.value < 0:
            return False, f"service_quotas[{idx}].value 不能为负数: {item.value}"
        if item.resource_id in seen:
            return False, f"重复的配额绑定: {item.resource_id}"
        seen.add(item.resource_id)

    for resource_id in config.imports:
        try:
            parse_id(resource_id)
        except IdentifierFormatError as e:
            return False, f"imports: {e}"

    return True, None
