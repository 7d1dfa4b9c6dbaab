"""压缩结果模型。

定义单图编码结果、批量统计和打包输出的数据结构。
"""

from humanize import naturalsize
from pydantic import BaseModel, Field

from ..utils.message_formatter import MessageFormatter


class EncodeOutcome(BaseModel):
    """单个图像的编码结果"""

    output_bytes: bytes = Field(repr=False, description="编码后的数据")
    final_size: int = Field(ge=0, description="编码后大小（字节）")
    original_size: int = Field(ge=0, description="原始大小（字节）")
    format_used: str = Field(description="使用的格式")
    quality_used: int | None = Field(None, description="最终质量值")
    iterations: int = Field(ge=0, description="实际编码轮数")

    # 处理信息
    was_resized: bool = Field(False, description="是否调整了尺寸")
    original_dimensions: tuple[int, int] | None = Field(None, description="原始尺寸")
    final_dimensions: tuple[int, int] | None = Field(
        None, description="输出数据的像素尺寸，回退为原始数据时为文件中存储的尺寸（未按EXIF旋转）"
    )
    met_target: bool = Field(False, description="是否达到目标大小")
    used_original: bool = Field(False, description="是否回退为原始数据")

    def get_size_saved(self) -> int:
        """节省的字节数"""
        return max(0, self.original_size - self.final_size)

    def get_compression_ratio(self) -> float:
        """压缩比例（百分比）"""
        if self.original_size == 0:
            return 0.0
        return (self.get_size_saved() / self.original_size) * 100

    def get_summary(self) -> str:
        """压缩结果摘要"""
        return (
            f"{naturalsize(self.original_size, binary=True)} → "
            f"{naturalsize(self.final_size, binary=True)} "
            f"({self.get_compression_ratio():.1f}% 压缩, {self.iterations} 轮)"
        )


class BatchStats(BaseModel):
    """批量统计结果，只统计已完成的条目"""

    total_original: int = Field(0, ge=0, description="原始总大小")
    total_compressed: int = Field(0, ge=0, description="压缩后总大小")
    savings_bytes: int = Field(0, description="节省字节数")
    savings_percent: float = Field(0.0, description="节省百分比")
    item_count: int = Field(0, ge=0, description="参与统计的条目数")

    def format_report(self) -> dict[str, str]:
        """生成带单位的统计报告"""
        return {
            "original_size": MessageFormatter.format_size(self.total_original),
            "compressed_size": MessageFormatter.format_size(self.total_compressed),
            "saved": MessageFormatter.format_size(self.savings_bytes),
            "savings_percent": MessageFormatter.format_percent(self.savings_percent),
        }

    def get_summary(self) -> str:
        """统计摘要"""
        report = self.format_report()
        return (
            f"{self.item_count} 个文件: {report['original_size']} → "
            f"{report['compressed_size']}，节省 {report['saved']} "
            f"({report['savings_percent']})"
        )


class PackagedOutput(BaseModel):
    """打包输出：单个文件或归档"""

    file_name: str = Field(description="输出文件名")
    media_type: str = Field(description="输出媒体类型")
    data: bytes = Field(repr=False, description="输出数据")
    entry_names: list[str] = Field(default_factory=list, description="包含的条目名")
    is_archive: bool = Field(False, description="是否为归档")

    @property
    def size(self) -> int:
        return len(self.data)
