"""单工作线程任务队列模块。

压缩任务在独立的后台线程中执行，同一时刻最多一个任务在运行。
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar


logger = logging.getLogger(__name__)
T = TypeVar("T")


class SerialTaskQueue:
    """单工作线程任务队列

    多个调用方可以同时提交任务，任务按提交顺序排队，
    由唯一的工作线程逐个执行。峰值内存约为一张图片的工作集
    加上排队中的原始数据。
    """

    def __init__(self, thread_name_prefix: str = "image-compress") -> None:
        self.thread_name_prefix = thread_name_prefix
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()
        self._pending = 0

    @property
    def busy(self) -> bool:
        """是否有任务正在执行或排队"""
        with self._lock:
            return self._pending > 0

    @property
    def pending(self) -> int:
        """已提交但尚未返回的任务数"""
        with self._lock:
            return self._pending

    def run(self, task: Callable[..., T], *args, **kwargs) -> T:
        """提交任务并等待结果

        已有任务在执行时排队等待，不会拒绝。
        任务中的异常会原样抛给调用方。
        """
        with self._lock:
            executor = self._ensure_executor()
            future = executor.submit(task, *args, **kwargs)
            self._pending += 1

        try:
            return future.result()
        finally:
            with self._lock:
                self._pending -= 1

    def shutdown(self) -> None:
        """等待排队任务完成后关闭后台线程，之后再提交会重新创建线程"""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            logger.debug("关闭压缩工作线程")
            executor.shutdown(wait=True)

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix=self.thread_name_prefix
            )
        return self._executor

    def __enter__(self) -> "SerialTaskQueue":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
