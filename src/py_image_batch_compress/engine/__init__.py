"""批量处理引擎模块。

包含批量编排、条目存储、统计和打包等处理逻辑。
"""

from .archive import ArchivePackager
from .batch import BatchOrchestrator
from .stats import aggregate
from .store import ItemStore
from .task_queue import SerialTaskQueue


__all__ = [
    "ArchivePackager",
    "BatchOrchestrator",
    "ItemStore",
    "SerialTaskQueue",
    "aggregate",
]
