"""格式处理器模块。

JPEG/PNG 的色彩模式准备和单轮编码参数。
"""

import logging
from io import BytesIO
from typing import Any

from PIL import Image


logger = logging.getLogger(__name__)

SUPPORTED_CONTAINERS = frozenset({"JPEG", "PNG"})


class FormatProcessor:
    """格式处理器"""

    def prepare_for_format(self, img: Image.Image, target_format: str) -> Image.Image:
        """为目标格式准备图片

        Args:
            img: PIL图片对象
            target_format: 目标格式

        Returns:
            Image.Image: 处理后的图片对象
        """
        match target_format:
            case "JPEG":
                return self._prepare_for_jpeg(img)
            case "PNG":
                return self._prepare_for_png(img)
            case _:
                logger.warning(f"不支持的格式: {target_format}，保持原图")
                return img

    def _prepare_for_jpeg(self, img: Image.Image) -> Image.Image:
        """为JPEG格式准备图片"""
        # JPEG不支持透明度，需要合成到白色背景
        if img.mode == "P" and "transparency" in img.info:
            img = img.convert("RGBA")

        if img.mode in ("RGBA", "LA"):
            rgba = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.split()[-1])
            return background

        if img.mode != "RGB":
            # CMYK、灰度、调色板等模式统一转换为RGB
            return img.convert("RGB")

        return img

    def _prepare_for_png(self, img: Image.Image) -> Image.Image:
        """为PNG格式准备图片，统一为 RGB/RGBA"""
        if img.mode in ("RGB", "RGBA"):
            return img
        if self.has_transparency(img):
            return img.convert("RGBA")
        return img.convert("RGB")

    @staticmethod
    def has_transparency(img: Image.Image) -> bool:
        """检查图片是否带透明通道"""
        return img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info

    def get_save_parameters(
        self, img: Image.Image, target_format: str, quality: int
    ) -> dict[str, Any]:
        """获取单轮编码参数

        Args:
            img: 待编码图片
            target_format: 目标格式
            quality: 本轮质量值（PNG 忽略）

        Returns:
            dict[str, Any]: Pillow save 参数
        """
        pixel_count = img.width * img.height
        params: dict[str, Any] = {"format": target_format}

        if icc_profile := img.info.get("icc_profile"):
            params["icc_profile"] = icc_profile

        if target_format == "JPEG":
            params["quality"] = quality
            params["optimize"] = True
            # 大图使用渐进式JPEG
            params["progressive"] = pixel_count > 2_000_000
            if quality >= 90:
                params["subsampling"] = "4:4:4"  # 无子采样，最高质量
            elif quality >= 75:
                params["subsampling"] = "4:2:2"  # 水平子采样
            else:
                params["subsampling"] = "4:2:0"  # 标准子采样
        elif target_format == "PNG":
            params["optimize"] = True
            # 大图降低压缩级别以提高速度
            params["compress_level"] = 6 if pixel_count > 4_000_000 else 9

        return params

    def quantize_for_quality(self, img: Image.Image, quality: int) -> Image.Image:
        """按质量值将图片量化为调色板，质量越低颜色越少"""
        colors = max(2, min(256, round(256 * quality / 100)))
        if img.mode == "RGBA":
            return img.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
        return img.convert("RGB").quantize(colors=colors)

    def encode(
        self, img: Image.Image, target_format: str, quality: int, lossless: bool
    ) -> bytes:
        """执行一轮编码并返回字节数据

        PNG 的无损编码不受质量值影响，非无损轮次先量化为调色板。
        """
        if target_format == "PNG" and not lossless:
            img = self.quantize_for_quality(img, quality)

        buffer = BytesIO()
        img.save(buffer, **self.get_save_parameters(img, target_format, quality))
        return buffer.getvalue()
