# -*- coding: utf-8 -*-
"""
Provider 模块

功能：
- 云厂商 API 客户端（当前仅 AWS Service Quotas）
"""
