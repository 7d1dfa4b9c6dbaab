"""文件命名工具模块。

提供统一的输出命名策略和唯一名称生成功能。
"""

import itertools
from pathlib import PurePosixPath

from ..config import get_config


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def generate_output_name(original_name: str, prefix: str | None = None) -> str:
        """生成输出文件名

        Args:
            original_name: 原始文件名
            prefix: 文件名前缀，默认使用配置中的 ``compressed-``

        Returns:
            str: 生成的文件名（不含路径）
        """
        if prefix is None:
            prefix = get_config().processing.ENTRY_PREFIX
        # 只保留文件名部分，防止归档条目带出目录
        base_name = PurePosixPath(original_name.replace("\\", "/")).name
        return f"{prefix}{base_name}"


class UniqueNameAllocator:
    """唯一名称分配器

    同名时在扩展名前追加 ``_<n>``，取未被占用的最小 n（从 1 开始）。
    分配结果只依赖调用顺序。
    """

    def __init__(self) -> None:
        self.used_names: set[str] = set()

    def allocate(self, name: str) -> str:
        """分配一个未被占用的名称"""
        if name not in self.used_names:
            self.used_names.add(name)
            return name

        path = PurePosixPath(name)
        base = path.stem
        suffix = path.suffix

        for counter in itertools.count(1):
            candidate = f"{base}_{counter}{suffix}"
            if candidate not in self.used_names:
                self.used_names.add(candidate)
                return candidate

        # 理论上永远不会到达这里，但为了类型检查器
        return name  # pragma: no cover
