"""压缩选项模型。

定义一次批量运行中所有条目共享的压缩参数。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..config import get_config


def _compression_defaults():
    return get_config().compression


class CompressionOptions(BaseModel):
    """压缩选项值对象

    不可变；所有修改操作返回新实例。锁定宽高比时，
    ``max_width / max_height`` 与 ``aspect_ratio`` 的误差不超过 1 像素。
    """

    model_config = ConfigDict(frozen=True)

    quality: int = Field(
        default_factory=lambda: _compression_defaults().DEFAULT_QUALITY,
        description="编码质量",
    )
    aggressive: bool = Field(False, description="激进模式，增加迭代次数")
    max_width: int = Field(
        default_factory=lambda: _compression_defaults().DEFAULT_MAX_WIDTH,
        gt=0,
        description="最大宽度",
    )
    max_height: int = Field(
        default_factory=lambda: _compression_defaults().DEFAULT_MAX_HEIGHT,
        gt=0,
        description="最大高度",
    )
    maintain_aspect_ratio: bool = Field(True, description="保持宽高比")
    aspect_ratio: float = Field(gt=0, description="最近一次明确选择的宽高比")
    target_size_bytes: int = Field(
        default_factory=lambda: _compression_defaults().TARGET_SIZE_BYTES,
        gt=0,
        description="单轮编码的目标大小上限",
    )
    fallback_to_original: bool = Field(True, description="结果更大时回退到原始数据")

    @field_validator("quality")
    @classmethod
    def validate_quality(cls, value: int) -> int:
        """质量必须在配置的范围内"""
        defaults = _compression_defaults()
        if not defaults.MIN_QUALITY <= value <= defaults.MAX_QUALITY:
            raise ValueError(
                f"质量必须在 {defaults.MIN_QUALITY}-{defaults.MAX_QUALITY} 之间，得到: {value}"
            )
        return value

    @model_validator(mode="before")
    @classmethod
    def derive_aspect_ratio(cls, data: Any) -> Any:
        """未指定宽高比时，由给定的宽高推导"""
        if not isinstance(data, dict) or data.get("aspect_ratio") is not None:
            return data

        defaults = _compression_defaults()
        width = data.get("max_width")
        height = data.get("max_height")
        if width is None and height is None:
            return {**data, "aspect_ratio": defaults.DEFAULT_ASPECT_RATIO}

        width = width or defaults.DEFAULT_MAX_WIDTH
        height = height or defaults.DEFAULT_MAX_HEIGHT
        if isinstance(width, int) and isinstance(height, int) and height > 0:
            return {**data, "aspect_ratio": width / height}
        return data

    @model_validator(mode="after")
    def validate_locked_ratio(self) -> "CompressionOptions":
        if self.maintain_aspect_ratio and not self.ratio_holds():
            raise ValueError(
                f"锁定宽高比时尺寸 {self.max_width}x{self.max_height} "
                f"与宽高比 {self.aspect_ratio:.4f} 不一致"
            )
        return self

    def ratio_holds(self) -> bool:
        """检查当前宽高是否符合宽高比（允许 1 像素误差）"""
        return (
            abs(self.max_width / self.aspect_ratio - self.max_height) <= 1
            or abs(self.max_height * self.aspect_ratio - self.max_width) <= 1
        )

    @property
    def bounding_box(self) -> tuple[int, int]:
        """输出尺寸上限"""
        return self.max_width, self.max_height

    @property
    def iteration_budget(self) -> int:
        """本次运行的迭代次数预算"""
        return _compression_defaults().get_iteration_budget(self.aggressive)

    def with_width(self, value: int) -> "CompressionOptions":
        """修改最大宽度，锁定时联动高度"""
        from ..core.constraints import Dimension

        return self._with_dimension(Dimension.WIDTH, value)

    def with_height(self, value: int) -> "CompressionOptions":
        """修改最大高度，锁定时联动宽度"""
        from ..core.constraints import Dimension

        return self._with_dimension(Dimension.HEIGHT, value)

    def with_aspect_lock(self, enabled: bool) -> "CompressionOptions":
        """开关宽高比锁定，开启时按当前宽度重新计算高度"""
        if not enabled:
            return self._replace(maintain_aspect_ratio=False)

        from ..core.constraints import Dimension, resolve_dimensions

        width, height = resolve_dimensions(
            Dimension.WIDTH,
            self.max_width,
            self.aspect_ratio,
            True,
            self.bounding_box,
        )
        return self._replace(
            maintain_aspect_ratio=True, max_width=width, max_height=height
        )

    def with_aspect_ratio(self, width: int, height: int) -> "CompressionOptions":
        """明确指定宽高比（例如取自某张图片的原始尺寸）"""
        from ..exceptions import ValidationError

        if width <= 0 or height <= 0:
            raise ValidationError(f"宽高比的宽和高必须为正数，得到: {width}x{height}")

        updated = self._replace(
            aspect_ratio=width / height, maintain_aspect_ratio=False
        )
        return updated.with_aspect_lock(self.maintain_aspect_ratio)

    def with_quality(self, quality: int) -> "CompressionOptions":
        """修改编码质量"""
        return self._replace(quality=quality)

    def with_aggressive(self, aggressive: bool) -> "CompressionOptions":
        """开关激进模式"""
        return self._replace(aggressive=aggressive)

    def _with_dimension(self, changed: Any, value: int) -> "CompressionOptions":
        from ..core.constraints import resolve_dimensions

        width, height = resolve_dimensions(
            changed,
            value,
            self.aspect_ratio,
            self.maintain_aspect_ratio,
            self.bounding_box,
        )
        return self._replace(max_width=width, max_height=height)

    def _replace(self, **changes: Any) -> "CompressionOptions":
        """带校验地生成新实例"""
        from ..exceptions import ValidationError

        try:
            return type(self)(**{**self.model_dump(), **changes})
        except PydanticValidationError as e:
            messages = []
            for err in e.errors():
                field = ".".join(str(loc) for loc in err["loc"])
                messages.append(f"{field}: {err['msg']}" if field else err["msg"])
            raise ValidationError("; ".join(messages)) from e
