# -*- coding: utf-8 -*-
"""
AWS Provider 模块

功能：
- 封装 AWS Service Quotas API
- 读取配额当前值，提交并跟踪配额提升请求
"""

from provider.aws.service_quotas import ServiceQuotasClient, get_error_code

__all__ = ['ServiceQuotasClient', 'get_error_code']
