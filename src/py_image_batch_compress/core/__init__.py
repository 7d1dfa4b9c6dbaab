"""核心处理模块。

包含尺寸约束、格式处理和压缩引擎。
"""

from .compression_engine import compress_image, quality_schedule, read_dimensions
from .constraints import Dimension, resolve_dimensions
from .formats import SUPPORTED_CONTAINERS, FormatProcessor


__all__ = [
    "SUPPORTED_CONTAINERS",
    "Dimension",
    "FormatProcessor",
    "compress_image",
    "quality_schedule",
    "read_dimensions",
    "resolve_dimensions",
]
