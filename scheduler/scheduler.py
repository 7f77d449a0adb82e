# -*- coding: utf-8 -*-
"""
定时任务实现模块

功能：
- 定时调用对账函数
- 不关心配额、状态文件等细节
- 只负责"什么时候对账"
"""

import threading
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ReconcileScheduler:
    """
    配额对账定时任务调度器

    职责：
    1. 定时调用"已有的对账函数"
    2. 不直接操作 Prometheus metrics
    3. 只负责"什么时候对账"
    """

    def __init__(self, reconcile_func: Callable, interval: int = 3600):
        """
        初始化定时任务调度器

        Args:
            reconcile_func: 执行一轮对账的函数
            interval: 对账间隔（秒），默认 3600（1 小时）
        """
        self.reconcile_func = reconcile_func
        self.interval = interval

        # 控制标志
        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.run_count = 0

        logger.info(f"ReconcileScheduler 初始化完成: interval={interval}s")

    def start(self):
        """
        启动定时任务（后台线程，每 interval 秒执行一次 reconcile_func）
        """
        if self._running:
            logger.warning("定时任务已在运行")
            return

        self._running = True
        self._stop_event.clear()

        self._thread = threading.Thread(
            target=self._reconcile_loop,
            name="ReconcileThread",
            daemon=True
        )
        self._thread.start()
        logger.info("定时任务调度器已启动")

    def stop(self):
        """
        停止定时任务
        """
        if not self._running:
            return

        self._running = False
        self._stop_event.set()
        logger.info("停止定时任务调度器...")

        # 等待线程结束（最多等待 5 秒）
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)

        logger.info("定时任务调度器已停止")

    def _reconcile_loop(self):
        """
        对账循环

        每 interval 秒执行一次 reconcile_func
        """
        logger.info(f"[Scheduler] 对账循环启动，间隔: {self.interval} 秒")

        while self._running:
            try:
                # 等待指定间隔，stop() 时立即唤醒
                if self._stop_event.wait(self.interval):
                    break

                logger.info("[Scheduler] reconcile triggered")
                self.reconcile_func()
                self.run_count += 1
                logger.info("[Scheduler] reconcile completed")

            except Exception as e:
                # 捕获异常，打印日志，不退出线程
                logger.error(f"[Scheduler] 对账异常: {e}", exc_info=True)

        logger.info("[Scheduler] 对账循环已退出")

    def get_status(self) -> dict:
        """
        获取定时任务状态

        Returns:
            状态信息字典
        """
        return {
            'running': self._running,
            'interval': self.interval,
            'run_count': self.run_count,
            'thread_alive': self._thread.is_alive() if self._thread else False
        }
