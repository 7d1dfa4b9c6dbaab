"""压缩引擎模块。

对单张图像执行缩放和多轮重新编码，逼近目标大小。
"""

from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO

from humanize import naturalsize
from PIL import Image, ImageOps

from ..config import get_config
from ..exceptions import EncodeFailure, UnsupportedFormatError, handle_image_errors
from ..models.compression_options import CompressionOptions
from ..models.compression_result import EncodeOutcome
from ..utils.logging_helpers import get_logger
from .formats import SUPPORTED_CONTAINERS, FormatProcessor


logger = get_logger()

ProgressCallback = Callable[[int], None]

ORIENTATION_TAG = 0x0112


@dataclass
class _EncodePass:
    """单轮编码结果"""

    data: bytes
    quality: int
    iteration: int


class _ProgressReporter:
    """保证进度单调不减的回调包装"""

    def __init__(self, callback: ProgressCallback | None) -> None:
        self.callback = callback
        self.last = -1

    def report(self, value: int) -> None:
        value = min(100, max(0, value))
        if value <= self.last:
            return
        self.last = value
        if self.callback is not None:
            self.callback(value)


def quality_schedule(start: int, floor: int, budget: int) -> list[int]:
    """生成质量值序列

    从初始质量按几何级数下降，最后一轮恰好到达下限；
    去除重复值，因此长度不超过迭代预算。

    Args:
        start: 初始质量
        floor: 质量下限
        budget: 迭代次数预算

    Returns:
        list[int]: 严格递减的质量值序列
    """
    if budget <= 1 or start <= floor:
        return [start]

    ratio = (floor / start) ** (1 / (budget - 1))
    schedule: list[int] = []
    for step in range(budget):
        quality = max(floor, round(start * ratio**step))
        if not schedule or quality < schedule[-1]:
            schedule.append(quality)
    return schedule


def compress_image(
    source_bytes: bytes,
    options: CompressionOptions,
    on_progress: ProgressCallback | None = None,
) -> EncodeOutcome:
    """压缩单个图像

    统一的单图处理入口，在后台工作线程中执行。

    Args:
        source_bytes: 原始图像数据（JPEG/PNG）
        options: 压缩选项
        on_progress: 进度回调，参数为 0-100 的整数

    Returns:
        EncodeOutcome: 编码结果，输出格式与输入相同

    Raises:
        EncodeFailure: 无法解码或编码时
    """
    reporter = _ProgressReporter(on_progress)
    reporter.report(0)

    img, container, stored_dimensions = _decode(source_bytes)
    original_dimensions = img.size

    processor = FormatProcessor()
    resized = _resize_image(img, options.max_width, options.max_height)
    was_resized = resized.size != original_dimensions
    working = processor.prepare_for_format(resized, container)

    best, met_target, iterations = _search(
        working, container, options, processor, reporter
    )

    output_bytes = best.data
    used_original = False
    # 回退检查：未缩放且结果比原图更大时直接使用原图
    if (
        options.fallback_to_original
        and not was_resized
        and len(output_bytes) > len(source_bytes)
    ):
        logger.info(
            f"重新编码后变大 ({naturalsize(len(output_bytes), binary=True)} > "
            f"{naturalsize(len(source_bytes), binary=True)})，使用原始数据"
        )
        output_bytes = source_bytes
        used_original = True

    reporter.report(100)

    outcome = EncodeOutcome(
        output_bytes=output_bytes,
        final_size=len(output_bytes),
        original_size=len(source_bytes),
        format_used=container,
        quality_used=None if used_original else best.quality,
        iterations=iterations,
        was_resized=was_resized,
        original_dimensions=original_dimensions,
        final_dimensions=stored_dimensions if used_original else working.size,
        met_target=met_target,
        used_original=used_original,
    )
    logger.debug(f"压缩完成: {outcome.get_summary()}")
    return outcome


def _search(
    img: Image.Image,
    container: str,
    options: CompressionOptions,
    processor: FormatProcessor,
    reporter: _ProgressReporter,
) -> tuple[_EncodePass, bool, int]:
    """多轮编码搜索

    第一轮达到目标大小即停止；预算用尽时返回体积最小的一轮。

    Returns:
        tuple: (选中的一轮, 是否达到目标, 实际编码轮数)
    """
    budget = options.iteration_budget
    floor = min(get_config().compression.QUALITY_FLOOR, options.quality)
    schedule = quality_schedule(options.quality, floor, budget)

    best: _EncodePass | None = None
    for iteration, quality in enumerate(schedule, start=1):
        # PNG 第一轮保持无损，之后按质量量化
        lossless = container == "PNG" and iteration == 1
        data = _encode(processor, img, container, quality, lossless)
        current = _EncodePass(data=data, quality=quality, iteration=iteration)
        reporter.report(100 * iteration // budget)

        logger.debug(
            f"第 {iteration}/{budget} 轮: 质量 {quality}, "
            f"{naturalsize(len(data), binary=True)}"
        )

        if len(data) <= options.target_size_bytes:
            return current, True, iteration

        if best is None or len(data) < len(best.data):
            best = current

    if best is None:
        raise EncodeFailure("没有生成任何编码结果")
    logger.info(
        f"{len(schedule)} 轮后仍未达到目标大小 "
        f"{naturalsize(options.target_size_bytes, binary=True)}，"
        f"使用最小结果 {naturalsize(len(best.data), binary=True)}"
    )
    return best, False, len(schedule)


@handle_image_errors("图像解码")
def _decode(source_bytes: bytes) -> tuple[Image.Image, str, tuple[int, int]]:
    """解码图像并处理EXIF旋转

    Returns:
        tuple: (旋转后的图像, 容器格式, 文件中存储的像素尺寸)
    """
    if not source_bytes:
        raise EncodeFailure("图像数据为空")

    with Image.open(BytesIO(source_bytes)) as raw:
        container = raw.format or "UNKNOWN"
        if container not in SUPPORTED_CONTAINERS:
            raise UnsupportedFormatError(f"不支持的图像内容: {container}")
        raw.load()
        stored_dimensions = raw.size
        img = ImageOps.exif_transpose(raw)

    return img, container, stored_dimensions


@handle_image_errors("读取图像尺寸")
def read_dimensions(source_bytes: bytes) -> tuple[int, int]:
    """只读取文件头获取显示尺寸，考虑EXIF旋转"""
    with Image.open(BytesIO(source_bytes)) as img:
        width, height = img.size
        orientation = img.getexif().get(ORIENTATION_TAG, 1)

    # 方向 5-8 表示需要旋转 90 度，宽高互换
    if orientation in (5, 6, 7, 8):
        return height, width
    return width, height


@handle_image_errors("图像编码")
def _encode(
    processor: FormatProcessor,
    img: Image.Image,
    container: str,
    quality: int,
    lossless: bool,
) -> bytes:
    return processor.encode(img, container, quality, lossless)


def _resize_image(img: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """按尺寸上限等比缩小图片，从不放大"""
    current_width, current_height = img.size

    # 检查是否需要调整
    if current_width <= max_width and current_height <= max_height:
        return img

    # 保持宽高比
    ratio = min(max_width / current_width, max_height / current_height)
    new_width = max(1, int(current_width * ratio))
    new_height = max(1, int(current_height * ratio))

    logger.debug(
        f"缩放 {current_width}x{current_height} -> {new_width}x{new_height}"
    )
    return img.resize((new_width, new_height), Image.Resampling.LANCZOS)
