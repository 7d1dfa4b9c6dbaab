"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CompressionDefaults:
    """压缩相关的默认配置"""

    # 质量设置
    DEFAULT_QUALITY: int = 80
    MIN_QUALITY: int = 40
    MAX_QUALITY: int = 95

    # 迭代搜索策略：质量按几何级数从初始值降到下限
    QUALITY_FLOOR: int = 10
    TARGET_SIZE_BYTES: int = 1024 * 1024  # 1MiB

    # 迭代次数预算
    MAX_ITERATIONS: int = 10
    AGGRESSIVE_ITERATIONS: int = 15

    # 尺寸限制
    DEFAULT_MAX_WIDTH: int = 1920
    DEFAULT_MAX_HEIGHT: int = 1080
    DEFAULT_ASPECT_RATIO: float = 16 / 9

    def get_iteration_budget(self, aggressive: bool) -> int:
        """根据激进模式获取迭代次数预算"""
        return self.AGGRESSIVE_ITERATIONS if aggressive else self.MAX_ITERATIONS


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 接受的输入类型
    ACCEPTED_MEDIA_TYPES: frozenset[str] = field(
        default_factory=lambda: frozenset({"image/jpeg", "image/jpg", "image/png"})
    )
    ACCEPTED_EXTENSIONS: frozenset[str] = field(
        default_factory=lambda: frozenset({".jpeg", ".jpg", ".png"})
    )

    # 输出命名
    ENTRY_PREFIX: str = "compressed-"
    ARCHIVE_NAME: str = "compressed-images.zip"


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    # 日志级别
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_image_batch_compress.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.compression = CompressionDefaults()
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 压缩配置
        if target_size := os.getenv("IBC_TARGET_SIZE_BYTES"):
            object.__setattr__(self.compression, "TARGET_SIZE_BYTES", int(target_size))

        if quality_floor := os.getenv("IBC_QUALITY_FLOOR"):
            object.__setattr__(self.compression, "QUALITY_FLOOR", int(quality_floor))

        if max_iterations := os.getenv("IBC_MAX_ITERATIONS"):
            object.__setattr__(self.compression, "MAX_ITERATIONS", int(max_iterations))

        if aggressive_iterations := os.getenv("IBC_AGGRESSIVE_ITERATIONS"):
            object.__setattr__(
                self.compression, "AGGRESSIVE_ITERATIONS", int(aggressive_iterations)
            )

        # 日志配置
        if log_level := os.getenv("IBC_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("IBC_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
