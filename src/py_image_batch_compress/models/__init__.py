"""数据模型包。

定义压缩选项、批量条目和结果相关的数据结构。
"""

from .compression_options import CompressionOptions
from .compression_result import BatchStats, EncodeOutcome, PackagedOutput
from .item import (
    Compressing,
    Done,
    Failed,
    Item,
    ItemState,
    ItemStatus,
    Queued,
)


__all__ = [
    "BatchStats",
    "Compressing",
    "CompressionOptions",
    "Done",
    "EncodeOutcome",
    "Failed",
    "Item",
    "ItemState",
    "ItemStatus",
    "PackagedOutput",
    "Queued",
]
