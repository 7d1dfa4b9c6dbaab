"""尺寸约束解析模块。

锁定宽高比时，根据修改的一边计算另一边。
"""

from enum import Enum

from ..exceptions import ValidationError


class Dimension(str, Enum):
    """尺寸方向枚举"""

    WIDTH = "width"
    HEIGHT = "height"


def resolve_dimensions(
    changed: Dimension | str,
    new_value: int,
    current_ratio: float,
    lock_enabled: bool,
    current: tuple[int, int],
) -> tuple[int, int]:
    """计算修改一边后的宽高

    Args:
        changed: 被修改的尺寸方向
        new_value: 新值，非正数按 1 处理
        current_ratio: 当前宽高比（宽 / 高）
        lock_enabled: 是否锁定宽高比
        current: 修改前的 (宽, 高)

    Returns:
        tuple[int, int]: 新的 (宽, 高)

    Raises:
        ValidationError: 宽高比不是正数时
    """
    changed = Dimension(changed)
    new_value = max(1, int(new_value))
    width, height = current

    if not lock_enabled:
        if changed == Dimension.WIDTH:
            return new_value, height
        return width, new_value

    if current_ratio <= 0:
        raise ValidationError(f"宽高比必须为正数，得到: {current_ratio}")

    if changed == Dimension.WIDTH:
        return new_value, max(1, round(new_value / current_ratio))
    return max(1, round(new_value * current_ratio)), new_value
