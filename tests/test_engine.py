"""压缩引擎测试。"""

from io import BytesIO

import pytest
from PIL import Image, ImageOps

from py_image_batch_compress.core import (
    FormatProcessor,
    compress_image,
    quality_schedule,
    read_dimensions,
)
from py_image_batch_compress.exceptions import EncodeFailure
from py_image_batch_compress.models.compression_options import CompressionOptions
from tests.conftest import make_image_bytes


def _open(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img


class TestQualitySchedule:
    """质量序列测试"""

    def test_default_budget(self):
        """默认预算 10 轮，从初始质量降到下限"""
        schedule = quality_schedule(80, 10, 10)
        assert len(schedule) == 10
        assert schedule[0] == 80
        assert schedule[-1] == 10

    def test_aggressive_budget(self):
        schedule = quality_schedule(80, 10, 15)
        assert len(schedule) <= 15
        assert schedule[0] == 80
        assert schedule[-1] == 10

    @pytest.mark.parametrize("start", [40, 55, 80, 95])
    def test_strictly_decreasing(self, start):
        """序列严格递减且不低于下限"""
        schedule = quality_schedule(start, 10, 10)
        assert all(a > b for a, b in zip(schedule, schedule[1:]))
        assert min(schedule) == 10

    def test_short_budget(self):
        """预算不足两轮或初始质量不高于下限时只编码一次"""
        assert quality_schedule(80, 10, 1) == [80]
        assert quality_schedule(10, 10, 10) == [10]


class TestCompressImage:
    """单图压缩测试"""

    def test_meets_target_in_one_pass(self, sample_images):
        """小图第一轮即满足目标大小"""
        options = CompressionOptions(fallback_to_original=False)
        outcome = compress_image(sample_images["jpeg"], options)

        assert outcome.met_target
        assert outcome.iterations == 1
        assert outcome.quality_used == 80
        assert outcome.final_size == len(outcome.output_bytes)
        assert outcome.original_size == len(sample_images["jpeg"])

    @pytest.mark.parametrize("aggressive, budget", [(False, 10), (True, 15)])
    def test_iteration_budget(self, sample_images, aggressive, budget):
        """无法达到目标时编码轮数不超过预算"""
        options = CompressionOptions(
            aggressive=aggressive, target_size_bytes=1, fallback_to_original=False
        )
        outcome = compress_image(sample_images["noisy"], options)

        assert not outcome.met_target
        assert 1 <= outcome.iterations <= budget
        assert outcome.iterations == len(quality_schedule(80, 10, budget))

    def test_best_pass_not_larger_than_floor_pass(self, sample_images):
        """选中的结果不大于最低质量那一轮的结果"""
        source = sample_images["noisy"]
        options = CompressionOptions(target_size_bytes=1)
        outcome = compress_image(source, options)

        processor = FormatProcessor()
        working = processor.prepare_for_format(
            ImageOps.exif_transpose(_open(source)), "JPEG"
        )
        floor_pass = processor.encode(working, "JPEG", 10, False)

        assert outcome.final_size <= len(floor_pass)

    def test_progress_is_monotonic(self, sample_images):
        """进度单调递增，从 0 开始到 100 结束"""
        events: list[int] = []
        options = CompressionOptions(target_size_bytes=1)
        compress_image(sample_images["noisy"], options, on_progress=events.append)

        assert events[0] == 0
        assert events[-1] == 100
        assert all(a < b for a, b in zip(events, events[1:]))

    def test_output_container_matches_input(self, sample_images):
        """输出格式与输入相同"""
        jpeg = compress_image(sample_images["jpeg"], CompressionOptions())
        png = compress_image(sample_images["png"], CompressionOptions())

        assert jpeg.format_used == "JPEG"
        assert _open(jpeg.output_bytes).format == "JPEG"
        assert png.format_used == "PNG"
        assert _open(png.output_bytes).format == "PNG"

    def test_transparent_png_stays_png(self, sample_images):
        """透明 PNG 在量化轮次中仍输出 PNG"""
        options = CompressionOptions(target_size_bytes=1, fallback_to_original=False)
        outcome = compress_image(sample_images["transparent"], options)

        assert outcome.format_used == "PNG"
        assert _open(outcome.output_bytes).format == "PNG"
        assert outcome.iterations == 10

    def test_downscales_to_bounding_box(self, sample_images):
        """超出尺寸上限时等比缩小"""
        options = CompressionOptions(max_width=1600, max_height=900)
        outcome = compress_image(sample_images["large"], options)

        width, height = _open(outcome.output_bytes).size
        assert outcome.was_resized
        assert outcome.original_dimensions == (3000, 2000)
        assert outcome.final_dimensions == (width, height)
        assert width <= 1600 and height <= 900
        assert abs(width / height - 1.5) < 0.01

    def test_never_upscales(self, sample_images):
        """小于尺寸上限的图片保持原尺寸"""
        outcome = compress_image(sample_images["jpeg"], CompressionOptions())

        assert not outcome.was_resized
        assert outcome.final_dimensions == (320, 240)
        assert _open(outcome.output_bytes).size == (320, 240)

    def test_falls_back_to_source_when_larger(self):
        """未缩放且重新编码更大时返回原始数据"""
        source = make_image_bytes("JPEG", (64, 64), noisy=True, quality=20)
        outcome = compress_image(source, CompressionOptions(quality=95))

        assert outcome.used_original
        assert outcome.output_bytes == source
        assert outcome.quality_used is None

    def test_fallback_can_be_disabled(self):
        source = make_image_bytes("JPEG", (64, 64), noisy=True, quality=20)
        options = CompressionOptions(quality=95, fallback_to_original=False)
        outcome = compress_image(source, options)

        assert not outcome.used_original
        assert outcome.output_bytes != source
        assert outcome.final_size > len(source)

    def test_applies_exif_orientation(self):
        """按 EXIF 方向旋转后再处理"""
        source = make_image_bytes("JPEG", (320, 240), exif_orientation=6)

        assert read_dimensions(source) == (240, 320)
        outcome = compress_image(source, CompressionOptions(fallback_to_original=False))
        assert outcome.final_dimensions == (240, 320)

    def test_fallback_reports_stored_dimensions(self):
        """回退为原始数据时报告文件中存储的尺寸，不按EXIF旋转"""
        source = make_image_bytes(
            "JPEG", (64, 48), noisy=True, quality=20, exif_orientation=6
        )
        outcome = compress_image(source, CompressionOptions(quality=95))

        assert outcome.used_original
        assert outcome.original_dimensions == (48, 64)
        assert outcome.final_dimensions == (64, 48)
        assert outcome.final_dimensions == _open(outcome.output_bytes).size

    @pytest.mark.parametrize("key", ["corrupt", "gif"])
    def test_rejects_undecodable_input(self, sample_images, key):
        """无法解码或不支持的内容抛出 EncodeFailure"""
        with pytest.raises(EncodeFailure):
            compress_image(sample_images[key], CompressionOptions())

    def test_rejects_empty_input(self):
        with pytest.raises(EncodeFailure):
            compress_image(b"", CompressionOptions())

    def test_read_dimensions_of_corrupt_data(self, sample_images):
        with pytest.raises(EncodeFailure):
            read_dimensions(sample_images["corrupt"])
