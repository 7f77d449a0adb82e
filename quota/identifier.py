# -*- coding: utf-8 -*-
"""
资源 ID 编解码

ID 格式: SERVICE-CODE/QUOTA-CODE，只有第一个 '/' 是分隔符
"""

from typing import Tuple

from quota.errors import IdentifierFormatError

ID_SEPARATOR = '/'


def build_id(service_code: str, quota_code: str) -> str:
    """由服务代码和配额代码生成资源 ID"""
    return f"{service_code}{ID_SEPARATOR}{quota_code}"


def parse_id(resource_id: str) -> Tuple[str, str]:
    """
    解析资源 ID

    Args:
        resource_id: 资源 ID（如 'ec2/L-1216C47A'）

    Returns:
        (service_code, quota_code) 元组

    Raises:
        IdentifierFormatError: 不是两个非空部分
    """
    parts = (resource_id or '').split(ID_SEPARATOR, 1)

    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise IdentifierFormatError(resource_id)

    return parts[0], parts[1]
