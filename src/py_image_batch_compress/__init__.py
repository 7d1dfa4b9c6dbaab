"""本地批量图像压缩库。

在进程内按大小、质量和尺寸约束重新编码 JPEG/PNG 图像，基于 Pillow。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "本地批量图像压缩库，基于 Pillow"

# 核心功能导出
from .core.compression_engine import compress_image
from .core.constraints import Dimension, resolve_dimensions
from .engine.archive import ArchivePackager
from .engine.batch import BatchOrchestrator
from .engine.stats import aggregate
from .exceptions import (
    CompressionError,
    EncodeFailure,
    UnsupportedFormatError,
    ValidationError,
)
from .models import (
    BatchStats,
    CompressionOptions,
    EncodeOutcome,
    Item,
    ItemState,
    PackagedOutput,
)


__all__ = [
    "ArchivePackager",
    "BatchOrchestrator",
    "BatchStats",
    "CompressionError",
    "CompressionOptions",
    "Dimension",
    "EncodeFailure",
    "EncodeOutcome",
    "Item",
    "ItemState",
    "PackagedOutput",
    "UnsupportedFormatError",
    "ValidationError",
    "aggregate",
    "compress_image",
    "get_version",
    "resolve_dimensions",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
