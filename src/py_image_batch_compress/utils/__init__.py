"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

# 从文件助手模块导入
from .file_helpers import (
    guess_media_type,
    is_accepted_input,
    normalize_media_type,
    read_input_file,
)

# 从日志工具模块导入
from .logging_helpers import get_logger, setup_logging

# 从消息格式化模块导入
from .message_formatter import MessageFormatter

# 从命名助手模块导入
from .naming_helpers import FileNamingStrategy, UniqueNameAllocator


__all__ = [
    "FileNamingStrategy",
    "MessageFormatter",
    "UniqueNameAllocator",
    "get_logger",
    "guess_media_type",
    "is_accepted_input",
    "normalize_media_type",
    "read_input_file",
    "setup_logging",
]
