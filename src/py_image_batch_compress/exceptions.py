"""图像压缩异常处理模块。

定义统一的异常类和错误处理机制，包含异常处理装饰器。
"""

from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()
T = TypeVar("T")


# 统一的异常类型
class CompressionError(Exception):
    """压缩相关错误基类"""

    def __init__(self, message: str, item_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.item_id = item_id


class ValidationError(CompressionError):
    """参数验证错误 - 统一的验证错误类型"""

    pass


class EncodeFailure(CompressionError):
    """解码或重新编码失败"""

    pass


class UnsupportedFormatError(EncodeFailure):
    """不支持的格式错误"""

    pass


def handle_image_errors(operation_name: str = "图像处理"):
    """统一的图像处理异常处理装饰器

    将 Pillow 和系统异常转换为 EncodeFailure，已是 CompressionError 的异常原样抛出。

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except CompressionError:
                raise
            except UnidentifiedImageError as e:
                logger.warning(f"{operation_name} - 无法识别图像格式: {e}")
                raise EncodeFailure(f"无法识别的图像内容: {e}") from e
            except DecompressionBombError as e:
                logger.error(f"{operation_name} - 图像过大: {e}")
                raise EncodeFailure(f"图像尺寸过大，可能存在安全风险: {e}") from e
            except OSError as e:
                logger.error(f"{operation_name} - 图像数据损坏: {e}")
                raise EncodeFailure(f"图像数据损坏或被截断: {e}") from e
            except (ValueError, TypeError) as e:
                logger.error(f"{operation_name} - 参数错误: {e}")
                raise EncodeFailure(f"编码参数错误: {e}") from e
            except Exception as e:
                logger.error(f"{operation_name} - 未知错误: {e}")
                raise EncodeFailure(f"处理失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    提供标准化的错误日志记录和失败原因生成。
    """

    @staticmethod
    def _log_error(
        operation: str, target: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称（如"图像压缩"、"文件读取"等）
            target: 相关条目标识或文件名
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, target, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def failure_reason(error: Exception) -> str:
        """生成条目失败原因"""
        match error:
            case CompressionError() as ce:
                return ce.message
            case MemoryError():
                return "内存不足，无法处理该图像"
            case _:
                return f"压缩失败: {error}"

    @staticmethod
    def handle_item_error(
        error: Exception, item_id: str, operation: str = "图像压缩"
    ) -> str:
        """记录条目错误并返回失败原因，支持 match-case 错误分发"""
        match error:
            case UnsupportedFormatError():
                ErrorHandler._log_error(f"{operation} - 格式", item_id, error, "warning")
            case EncodeFailure():
                ErrorHandler._log_error(operation, item_id, error, "warning")
            case ValidationError():
                ErrorHandler._log_error(f"{operation} - 参数验证", item_id, error)
            case _:
                ErrorHandler._log_error(f"{operation} - 未知错误", item_id, error)
        return ErrorHandler.failure_reason(error)
