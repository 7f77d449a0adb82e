# -*- coding: utf-8 -*-
"""
定时任务模块

功能：
- 按 reconcile.interval 定时执行配额对账
- 在后台线程中运行，不阻塞主程序
"""

from scheduler.scheduler import ReconcileScheduler

__all__ = ['ReconcileScheduler']
