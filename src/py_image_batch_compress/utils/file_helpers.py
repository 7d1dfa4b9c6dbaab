"""工具函数模块。

提供输入文件类型判断和读取相关的实用工具函数。
"""

import mimetypes
from pathlib import Path

from ..config import get_config
from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def normalize_media_type(media_type: str | None) -> str | None:
    """标准化媒体类型，image/jpg 统一为 image/jpeg"""
    if not media_type:
        return None
    media_type = media_type.split(";", 1)[0].strip().lower()
    if media_type == "image/jpg":
        return "image/jpeg"
    return media_type


def guess_media_type(file_name: str | Path) -> str | None:
    """根据扩展名推断媒体类型

    Args:
        file_name: 文件名或路径

    Returns:
        str | None: 媒体类型，如 'image/jpeg'，无法推断时返回 None
    """
    media_type, _ = mimetypes.guess_type(str(file_name))
    return normalize_media_type(media_type)


def is_accepted_input(file_name: str, media_type: str | None = None) -> bool:
    """判断输入是否属于可处理的类型

    声明了媒体类型时以媒体类型为准，否则按扩展名判断。

    Args:
        file_name: 原始文件名
        media_type: 声明的媒体类型（可选）

    Returns:
        bool: 是否接受
    """
    processing = get_config().processing

    if media_type:
        return media_type.split(";", 1)[0].strip().lower() in (
            processing.ACCEPTED_MEDIA_TYPES
        )

    return Path(file_name).suffix.lower() in processing.ACCEPTED_EXTENSIONS


def read_input_file(file_path: str | Path) -> tuple[str, bytes, str | None]:
    """读取输入文件

    Args:
        file_path: 文件路径

    Returns:
        tuple: (文件名, 文件内容, 推断的媒体类型)

    Raises:
        FileNotFoundError: 文件不存在时
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        logger.warning(MessageFormatter.file_not_found(file_path))
        raise FileNotFoundError(MessageFormatter.file_not_found(file_path))

    return file_path.name, file_path.read_bytes(), guess_media_type(file_path)
