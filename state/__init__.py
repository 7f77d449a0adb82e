# -*- coding: utf-8 -*-
"""
状态存储模块

功能：
- 持久化配额绑定的最近观察状态（JSON 文件）
"""

from state.store import StateStore

__all__ = ['StateStore']
