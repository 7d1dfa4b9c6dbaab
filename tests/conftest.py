"""测试配置文件。

提供测试所需的fixtures和图片数据生成工具。
"""

import random
import tempfile
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from py_image_batch_compress.config import reset_config
from py_image_batch_compress.models.item import Compressing, Done, Failed, Item


def make_image_bytes(
    format: str = "JPEG",
    size: tuple[int, int] = (320, 240),
    mode: str = "RGB",
    noisy: bool = False,
    quality: int = 90,
    exif_orientation: int | None = None,
    seed: int = 7,
) -> bytes:
    """生成测试图片数据

    Args:
        format: 图片格式
        size: 图片尺寸
        mode: 色彩模式
        noisy: 是否叠加随机噪点（更接近照片，压缩后更大）
        quality: JPEG 保存质量
        exif_orientation: EXIF 方向标记（可选）
        seed: 随机种子
    """
    width, height = size
    color = (0, 0, 0, 0) if mode == "RGBA" else "white"
    img = Image.new(mode, size, color=color)
    draw = ImageDraw.Draw(img)

    for i in range(20):
        x, y = (i * 37) % width, (i * 23) % height
        fill = (i * 13 % 256, i * 29 % 256, i * 47 % 256)
        if mode == "RGBA":
            fill = (*fill, 100 + (i * 15) % 155)
        draw.rectangle([x, y, x + width // 4, y + height // 4], fill=fill)

    if noisy:
        rng = random.Random(seed)
        pixels = img.load()
        for x in range(width):
            for y in range(height):
                r = rng.randrange(256)
                if mode == "RGBA":
                    pixels[x, y] = (r, 255 - r, (r * 7) % 256, 255)
                else:
                    pixels[x, y] = (r, 255 - r, (r * 7) % 256)

    buffer = BytesIO()
    params: dict = {"format": format}
    if format == "JPEG":
        params["quality"] = quality
        if exif_orientation is not None:
            exif = Image.Exif()
            exif[0x0112] = exif_orientation
            params["exif"] = exif
    img.save(buffer, **params)
    return buffer.getvalue()


def make_item(
    file_name: str = "photo.jpg",
    original_size: int = 1000,
    compressed_size: int | None = None,
    failed: bool = False,
) -> Item:
    """构造指定状态的条目，不经过真实编码"""
    item = Item.create(file_name, b"x" * original_size, "image/jpeg")
    if compressed_size is None and not failed:
        return item

    item = item.transition(Compressing())
    if failed:
        return item.transition(Failed(reason="损坏的数据"))
    return item.transition(
        Done(output_bytes=b"y" * compressed_size, compressed_size=compressed_size)
    )


@pytest.fixture(autouse=True)
def fresh_config():
    """每个测试使用全新的全局配置"""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """临时目录fixture"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sample_images() -> dict[str, bytes]:
    """生成不同类型的测试图片"""
    return {
        "jpeg": make_image_bytes("JPEG", (320, 240)),
        "png": make_image_bytes("PNG", (200, 150)),
        "transparent": make_image_bytes("PNG", (120, 120), mode="RGBA"),
        "large": make_image_bytes("JPEG", (3000, 2000)),
        "noisy": make_image_bytes("JPEG", (256, 256), noisy=True, quality=95),
        "gif": _gif_bytes(),
        "corrupt": b"\xff\xd8\xff\xe0 definitely not a jpeg",
    }


def _gif_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (10, 10), color="red").save(buffer, format="GIF")
    return buffer.getvalue()
