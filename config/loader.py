# -*- coding: utf-8 -*-
"""
配额绑定配置加载模块

功能：
- 从 YAML 文件加载期望的配额绑定和运行参数
- 定义清晰的数据结构（ReconcileConfig / QuotaItem）
- 支持环境变量覆盖运行参数
- 读取失败时给出明确错误
"""

import yaml
import os
from typing import List, Optional
from dataclasses import dataclass, field

from quota.binding import QuotaBinding
from quota.identifier import build_id

DEFAULT_CONFIG_PATHS = ['config/service_quotas.yaml', 'service_quotas.yaml']


@dataclass
class QuotaItem:
    """单个期望配额"""
    service_code: str    # 服务代码，如 "ec2"
    quota_code: str      # 配额代码，如 "L-1216C47A"
    value: float         # 期望配额值

    @property
    def resource_id(self) -> str:
        return build_id(self.service_code, self.quota_code)

    def to_binding(self) -> QuotaBinding:
        return QuotaBinding(
            service_code=self.service_code,
            quota_code=self.quota_code,
            value=self.value,
            id=self.resource_id,
        )


@dataclass
class ProviderConfig:
    """AWS 连接配置"""
    region: str = 'us-east-1'
    access_key: Optional[str] = None     # 不提供时使用默认凭证链
    secret_key: Optional[str] = None


@dataclass
class ReconcileSettings:
    """运行参数"""
    interval: int = 3600                              # 定时对账间隔（秒）
    state_file: str = '.service_quota_state.json'
    metrics_port: int = 8000
    log_level: str = 'INFO'


@dataclass
class ReconcileConfig:
    """配置根数据结构"""
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    reconcile: ReconcileSettings = field(default_factory=ReconcileSettings)
    service_quotas: List[QuotaItem] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)   # 需要导入的已有配额 ID


def find_config_path() -> str:
    """
    查找配置文件路径

    优先使用 SERVICE_QUOTAS_CONFIG 环境变量，否则依次尝试
    config/service_quotas.yaml、service_quotas.yaml

    Raises:
        FileNotFoundError: 没有找到配置文件
    """
    env_path = os.getenv('SERVICE_QUOTAS_CONFIG')
    if env_path:
        return env_path

    for path in DEFAULT_CONFIG_PATHS:
        if os.path.exists(path):
            return path

    raise FileNotFoundError(f"配额配置文件不存在: {' 或 '.join(DEFAULT_CONFIG_PATHS)}")


def load_config(config_path: str) -> ReconcileConfig:
    """
    从 YAML 文件加载配置

    Args:
        config_path: 配置文件路径

    Returns:
        ReconcileConfig 对象

    Raises:
        FileNotFoundError: 文件不存在
        yaml.YAMLError: YAML 解析错误
        ValueError: 配置格式错误
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"配额配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise IOError(f"无法读取配额配置文件 {config_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"YAML 解析失败: {e}")

    if data is None:
        raise ValueError("配额配置文件为空")

    if not isinstance(data, dict):
        raise ValueError("配置格式错误: 根节点必须是字典类型")

    config = ReconcileConfig(
        provider=_parse_provider(data.get('provider') or {}),
        reconcile=_parse_reconcile(data.get('reconcile') or {}),
    )

    quotas_data = data.get('service_quotas') or []
    if not isinstance(quotas_data, list):
        raise ValueError("配置格式错误: 'service_quotas' 必须是列表类型")

    for idx, quota_dict in enumerate(quotas_data):
        try:
            config.service_quotas.append(_parse_quota_item(quota_dict))
        except (KeyError, ValueError) as e:
            raise ValueError(f"配置格式错误: 'service_quotas[{idx}]': {e}")

    imports = data.get('imports') or []
    if not isinstance(imports, list) or not all(isinstance(i, str) for i in imports):
        raise ValueError("配置格式错误: 'imports' 必须是字符串列表")
    config.imports = [i.strip() for i in imports]

    _apply_env_overrides(config)
    return config


def _parse_provider(provider_dict: dict) -> ProviderConfig:
    if not isinstance(provider_dict, dict):
        raise ValueError("配置格式错误: 'provider' 必须是字典类型")

    return ProviderConfig(
        region=provider_dict.get('region', 'us-east-1'),
        access_key=provider_dict.get('access_key'),
        secret_key=provider_dict.get('secret_key'),
    )


def _parse_reconcile(reconcile_dict: dict) -> ReconcileSettings:
    if not isinstance(reconcile_dict, dict):
        raise ValueError("配置格式错误: 'reconcile' 必须是字典类型")

    defaults = ReconcileSettings()
    return ReconcileSettings(
        interval=reconcile_dict.get('interval', defaults.interval),
        state_file=reconcile_dict.get('state_file', defaults.state_file),
        metrics_port=reconcile_dict.get('metrics_port', defaults.metrics_port),
        log_level=str(reconcile_dict.get('log_level', defaults.log_level)).upper(),
    )


def _parse_quota_item(quota_dict: dict) -> QuotaItem:
    """
    解析单个期望配额

    Raises:
        KeyError: 缺少必填字段
        ValueError: 字段值无效
    """
    if not isinstance(quota_dict, dict):
        raise ValueError("配额项必须是字典类型")

    for required in ['service_code', 'quota_code', 'value']:
        if required not in quota_dict:
            raise KeyError(f"缺少必填字段: {required}")

    service_code = quota_dict['service_code']
    quota_code = quota_dict['quota_code']
    value = quota_dict['value']

    if not isinstance(service_code, str) or not service_code.strip():
        raise ValueError("service_code 必须是非空字符串")

    if not isinstance(quota_code, str) or not quota_code.strip():
        raise ValueError("quota_code 必须是非空字符串")

    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("value 必须是数字")

    return QuotaItem(
        service_code=service_code.strip(),
        quota_code=quota_code.strip(),
        value=float(value),
    )


def _apply_env_overrides(config: ReconcileConfig):
    """环境变量覆盖运行参数"""
    region = os.getenv('AWS_REGION')
    if region:
        config.provider.region = region

    state_file = os.getenv('SERVICE_QUOTA_STATE_FILE')
    if state_file:
        config.reconcile.state_file = state_file

    interval = os.getenv('RECONCILE_INTERVAL')
    if interval:
        try:
            config.reconcile.interval = int(interval)
        except ValueError:
            raise ValueError(f"RECONCILE_INTERVAL 必须是整数: {interval}")

    port = os.getenv('METRICS_PORT')
    if port:
        try:
            config.reconcile.metrics_port = int(port)
        except ValueError:
            raise ValueError(f"METRICS_PORT 必须是整数: {port}")

    log_level = os.getenv('LOG_LEVEL')
    if log_level:
        config.reconcile.log_level = log_level.upper()


def print_config(config: ReconcileConfig):
    """
    打印配置结构（用于调试和验证）

    Args:
        config: ReconcileConfig 对象
    """
    print("=" * 60)
    print("配额绑定配置")
    print("=" * 60)
    print(f"区域: {config.provider.region}")
    print(f"凭证: {'指定凭证' if config.provider.access_key else '默认凭证链'}")
    print(f"对账间隔: {config.reconcile.interval} 秒")
    print(f"状态文件: {config.reconcile.state_file}")

    print(f"\n【期望配额】共 {len(config.service_quotas)} 个")
    for item in config.service_quotas[:10]:  # 只显示前 10 个
        print(f"  - {item.resource_id} = {item.value}")
    if len(config.service_quotas) > 10:
        print(f"  ... 还有 {len(config.service_quotas) - 10} 个配额")

    if config.imports:
        print(f"\n【导入配额】共 {len(config.imports)} 个")
        for resource_id in config.imports:
            print(f"  - {resource_id}")

    print("\n" + "=" * 60)
