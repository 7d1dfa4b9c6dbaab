"""本地批量图像压缩 MCP 服务器。

读取磁盘上的图片，批量压缩后把单个文件或归档写回磁盘。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .core.constraints import Dimension
from .core.constraints import resolve_dimensions as resolve_dimension_pair
from .engine.batch import BatchOrchestrator
from .exceptions import CompressionError
from .models.compression_options import CompressionOptions
from .models.item import Item
from .utils.logging_helpers import setup_logging
from .utils.message_formatter import MessageFormatter


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result: dict[str, Any] = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str, field: str | None = None) -> dict[str, Any]:
        """构建验证错误结果。"""
        details = {"field": field} if field else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="validation",
            details=details,
        )

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> dict[str, Any]:
        """构建文件相关错误结果。"""
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="file",
            details=details,
        )

    @staticmethod
    def item(item: Item) -> dict[str, Any]:
        """条目状态的响应格式"""
        return {
            "id": item.id,
            "file_name": item.file_name,
            "state": item.state.value,
            "original_size": item.original_size,
            "compressed_size": item.compressed_size,
            "savings_percent": MessageFormatter.format_percent(item.savings_percent),
            "error": item.failure_reason,
        }


# 配置日志
logger = setup_logging()

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("本地批量图像压缩服务")


def compress_images(
    input_paths: list[str],
    output_dir: str | None = None,
    quality: int = 80,
    aggressive: bool = False,
    max_width: int = 1920,
    max_height: int = 1080,
    maintain_aspect_ratio: bool = True,
) -> dict[str, Any]:
    """批量压缩 JPEG/PNG 图片

    逐个压缩输入文件；只有一个成功时输出该文件，多个时输出 ZIP 归档。
    不支持的文件类型被忽略，单个文件失败不影响其他文件。

    Args:
        input_paths: 输入文件路径列表
        output_dir: 输出目录（默认当前目录）
        quality: 初始编码质量 40-95
        aggressive: 激进模式，增加迭代次数以获得更好的大小/质量平衡
        max_width: 最大宽度
        max_height: 最大高度
        maintain_aspect_ratio: 是否锁定宽高比（按给定宽高计算）

    Returns:
        dict: 每个条目的状态、统计报告和输出路径
    """
    try:
        options = CompressionOptions(
            quality=quality,
            aggressive=aggressive,
            max_width=max_width,
            max_height=max_height,
            maintain_aspect_ratio=maintain_aspect_ratio,
        )
    except ValueError as e:
        return MCPResponseBuilder.validation_error(str(e))

    target_dir = Path(output_dir) if output_dir else Path.cwd()

    with BatchOrchestrator(options=options) as orchestrator:
        for input_path in input_paths:
            try:
                orchestrator.enqueue_path(input_path)
            except FileNotFoundError:
                return MCPResponseBuilder.file_error(
                    MessageFormatter.file_not_found(input_path), input_path
                )

        orchestrator.run_all()
        stats = orchestrator.stats()
        packaged = orchestrator.package()

        output_path = None
        if packaged is not None:
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
                output_path = target_dir / packaged.file_name
                output_path.write_bytes(packaged.data)
            except OSError as e:
                logger.error(MessageFormatter.operation_failed("写入输出", target_dir, e))
                return MCPResponseBuilder.file_error(str(e), str(target_dir))

        return {
            "success": packaged is not None,
            "output_path": str(output_path) if output_path else None,
            "is_archive": packaged.is_archive if packaged else False,
            "entries": packaged.entry_names if packaged else [],
            "items": [MCPResponseBuilder.item(item) for item in orchestrator.items()],
            "stats": stats.model_dump(),
            "report": stats.format_report(),
            "error": None if packaged else "没有成功压缩的文件",
        }


def resolve_dimensions(
    changed: str,
    new_value: int,
    current_width: int,
    current_height: int,
    lock_enabled: bool = True,
    ratio_width: int = 16,
    ratio_height: int = 9,
) -> dict[str, Any]:
    """计算锁定宽高比时的联动尺寸

    Args:
        changed: 被修改的一边，"width" 或 "height"
        new_value: 新值
        current_width: 当前宽度
        current_height: 当前高度
        lock_enabled: 是否锁定宽高比
        ratio_width: 宽高比的宽
        ratio_height: 宽高比的高

    Returns:
        dict: 新的宽和高
    """
    try:
        if ratio_height <= 0:
            raise CompressionError(f"宽高比的高必须为正数，得到: {ratio_height}")
        width, height = resolve_dimension_pair(
            Dimension(changed),
            new_value,
            ratio_width / ratio_height,
            lock_enabled,
            (current_width, current_height),
        )
    except ValueError as e:
        return MCPResponseBuilder.validation_error(str(e), "changed")
    except CompressionError as e:
        return MCPResponseBuilder.validation_error(e.message)

    return {"success": True, "width": width, "height": height}


# 注册为 MCP 工具，模块级名称保持为普通函数
mcp.tool(compress_images)
mcp.tool(resolve_dimensions)


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    logger.info("启动本地批量图像压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
