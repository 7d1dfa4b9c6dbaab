"""消息格式化工具模块。

提供统一的错误消息、尺寸与百分比格式化功能。
"""

from pathlib import Path


KIB = 1024
MIB = 1024 * 1024


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def item_not_found(item_id: str) -> str:
        """条目不存在消息"""
        return f"条目不存在: {item_id}"

    @staticmethod
    def operation_failed(
        operation: str, target: str | Path, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def format_error(operation: str, target: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{target}]: {error}"

    @staticmethod
    def format_size(size_bytes: int) -> str:
        """按 1024 进制格式化字节数，单位 B/KB/MB"""
        if size_bytes < KIB:
            return f"{size_bytes} B"
        if size_bytes < MIB:
            return f"{size_bytes / KIB:.2f} KB"
        return f"{size_bytes / MIB:.2f} MB"

    @staticmethod
    def format_percent(value: float) -> str:
        """格式化百分比，保留一位小数"""
        return f"{value:.1f}%"

