"""批量统计模块。"""

from collections.abc import Iterable

from ..models.compression_result import BatchStats
from ..models.item import Done, Item


def aggregate(items: Iterable[Item]) -> BatchStats:
    """统计已完成条目的原始大小、压缩后大小和节省比例

    Args:
        items: 条目集合，非完成状态的条目被忽略

    Returns:
        BatchStats: 统计结果，原始总大小为 0 时节省比例为 0
    """
    total_original = 0
    total_compressed = 0
    count = 0

    for item in items:
        if not isinstance(item.status, Done):
            continue
        total_original += item.original_size
        total_compressed += item.status.compressed_size
        count += 1

    savings_bytes = total_original - total_compressed
    savings_percent = (
        savings_bytes / total_original * 100 if total_original > 0 else 0.0
    )

    return BatchStats(
        total_original=total_original,
        total_compressed=total_compressed,
        savings_bytes=savings_bytes,
        savings_percent=savings_percent,
        item_count=count,
    )
