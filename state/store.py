# -*- coding: utf-8 -*-
"""
配额绑定状态存储模块

功能：
- 以 JSON 文件保存每个配额绑定最近一次观察到的状态
- 状态文件：{"version": 1, "updated_at": ..., "bindings": {id: {...}}, "retained": [id, ...]}
"""

import os
import json
import time
import logging
import threading
from typing import Dict, Optional, Set

from quota.binding import QuotaBinding

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateStore:
    """
    配额绑定状态文件

    功能：
    - 按资源 ID 读写 QuotaBinding
    - 每次修改立即写回文件
    - 状态文件损坏时抛出异常，不会静默丢弃（丢失状态会导致重复提交提升请求）
    """

    def __init__(self, state_file: str = None):
        """
        初始化状态存储

        Args:
            state_file: 状态文件路径（默认：SERVICE_QUOTA_STATE_FILE 环境变量或 .service_quota_state.json）
        """
        self.state_file = state_file or os.getenv('SERVICE_QUOTA_STATE_FILE', '.service_quota_state.json')
        self._lock = threading.RLock()

        state_dir = os.path.dirname(self.state_file)
        if state_dir and not os.path.exists(state_dir):
            os.makedirs(state_dir, exist_ok=True)

        logger.info(f"初始化配额状态存储: {self.state_file}")

    def _read(self) -> Dict:
        """读取状态文件，返回 {'bindings': {id: binding_dict}, 'retained': [id, ...]}"""
        if not os.path.exists(self.state_file):
            return {'bindings': {}, 'retained': []}

        try:
            with open(self.state_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.error(f"读取配额状态文件失败: {self.state_file}, 错误: {e}")
            raise ValueError(f"配额状态文件损坏: {self.state_file}: {e}") from e

        if (not isinstance(data, dict)
                or not isinstance(data.get('bindings', {}), dict)
                or not isinstance(data.get('retained', []), list)):
            raise ValueError(f"配额状态文件格式错误: {self.state_file}")

        version = data.get('version', STATE_VERSION)
        if version != STATE_VERSION:
            raise ValueError(f"不支持的配额状态文件版本: {version}")

        return {'bindings': data.get('bindings', {}), 'retained': data.get('retained', [])}

    def _write(self, state: Dict):
        data = {
            'version': STATE_VERSION,
            'updated_at': time.time(),
            'bindings': state['bindings'],
            'retained': sorted(set(state['retained'])),
        }

        tmp_file = f"{self.state_file}.tmp"
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
        os.replace(tmp_file, self.state_file)

    def load_all(self) -> Dict[str, QuotaBinding]:
        """
        读取所有配额绑定

        Returns:
            {资源 ID: QuotaBinding} 字典
        """
        with self._lock:
            return {
                resource_id: QuotaBinding.from_dict(item)
                for resource_id, item in self._read()['bindings'].items()
            }

    def get(self, resource_id: str) -> Optional[QuotaBinding]:
        """获取单个配额绑定，不存在返回 None"""
        with self._lock:
            item = self._read()['bindings'].get(resource_id)
            return QuotaBinding.from_dict(item) if item is not None else None

    def put(self, binding: QuotaBinding):
        """
        保存配额绑定

        Args:
            binding: 配额绑定（id 不能为空）
        """
        if not binding.id:
            raise ValueError("无法保存没有 ID 的配额绑定")

        with self._lock:
            state = self._read()
            state['bindings'][binding.id] = binding.to_dict()
            self._write(state)
            logger.debug(f"已保存配额状态: {binding.id}")

    def remove(self, resource_id: str):
        """删除配额绑定（不存在时忽略），保留标记不受影响"""
        with self._lock:
            state = self._read()
            if resource_id in state['bindings']:
                del state['bindings'][resource_id]
                self._write(state)
                logger.debug(f"已删除配额状态: {resource_id}")

    def retained_ids(self) -> Set[str]:
        """导入后保留管理的资源 ID（不在配置中也不会被删除）"""
        with self._lock:
            return set(self._read()['retained'])

    def retain(self, resource_id: str):
        """标记资源 ID 为保留管理，重启后仍然有效"""
        with self._lock:
            state = self._read()
            if resource_id not in state['retained']:
                state['retained'].append(resource_id)
                self._write(state)
                logger.debug(f"已标记保留配额: {resource_id}")

    def clear(self):
        """清空所有状态"""
        with self._lock:
            if os.path.exists(self.state_file):
                os.remove(self.state_file)
                logger.info(f"已清空配额状态: {self.state_file}")
