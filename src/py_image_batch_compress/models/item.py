"""批量条目模型。

条目状态使用带标签的变体表示，只有对应状态才携带数据。
条目不可变，状态变化通过生成新实例完成。
"""

import uuid
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ItemState(str, Enum):
    """条目状态枚举"""

    QUEUED = "queued"
    COMPRESSING = "compressing"
    DONE = "done"
    FAILED = "failed"


class Queued(BaseModel):
    """等待压缩"""

    model_config = ConfigDict(frozen=True)

    state: Literal[ItemState.QUEUED] = ItemState.QUEUED


class Compressing(BaseModel):
    """压缩中"""

    model_config = ConfigDict(frozen=True)

    state: Literal[ItemState.COMPRESSING] = ItemState.COMPRESSING
    progress: int = Field(0, ge=0, le=100, description="进度百分比")


class Done(BaseModel):
    """压缩完成"""

    model_config = ConfigDict(frozen=True)

    state: Literal[ItemState.DONE] = ItemState.DONE
    output_bytes: bytes = Field(repr=False, description="压缩后的数据")
    compressed_size: int = Field(ge=0, description="压缩后大小（字节）")
    quality_used: int | None = Field(None, description="最终使用的质量值")
    iterations: int = Field(0, ge=0, description="实际编码轮数")
    final_dimensions: tuple[int, int] | None = Field(None, description="最终尺寸")


class Failed(BaseModel):
    """压缩失败"""

    model_config = ConfigDict(frozen=True)

    state: Literal[ItemState.FAILED] = ItemState.FAILED
    reason: str = Field(description="失败原因")


ItemStatus = Annotated[
    Queued | Compressing | Done | Failed, Field(discriminator="state")
]

# 允许的状态转换，重新排队只能通过 Item.new_attempt
_TRANSITIONS: dict[ItemState, set[ItemState]] = {
    ItemState.QUEUED: {ItemState.COMPRESSING},
    ItemState.COMPRESSING: {ItemState.DONE, ItemState.FAILED},
    ItemState.DONE: set(),
    ItemState.FAILED: set(),
}


class Item(BaseModel):
    """一个待处理的图像条目"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="条目标识")
    file_name: str = Field(description="原始文件名")
    media_type: str = Field(description="媒体类型")
    source_bytes: bytes = Field(repr=False, description="原始数据")
    original_size: int = Field(ge=0, description="原始大小（字节）")
    attempt: int = Field(0, ge=0, description="用户发起的重试次数")
    status: ItemStatus = Field(default_factory=Queued, description="当前状态")

    @classmethod
    def create(cls, file_name: str, data: bytes, media_type: str) -> "Item":
        """创建新条目，分配唯一标识"""
        return cls(
            id=f"img-{uuid.uuid4().hex}",
            file_name=file_name,
            media_type=media_type,
            source_bytes=data,
            original_size=len(data),
        )

    @property
    def state(self) -> ItemState:
        return self.status.state

    @property
    def is_terminal(self) -> bool:
        return self.state in (ItemState.DONE, ItemState.FAILED)

    @property
    def progress(self) -> int:
        match self.status:
            case Compressing(progress=progress):
                return progress
            case Done():
                return 100
            case _:
                return 0

    @property
    def output_bytes(self) -> bytes | None:
        return self.status.output_bytes if isinstance(self.status, Done) else None

    @property
    def compressed_size(self) -> int | None:
        return self.status.compressed_size if isinstance(self.status, Done) else None

    @property
    def failure_reason(self) -> str | None:
        return self.status.reason if isinstance(self.status, Failed) else None

    @property
    def savings_percent(self) -> float:
        """单个条目的节省百分比，未完成或原始大小为 0 时为 0"""
        if not isinstance(self.status, Done) or self.original_size == 0:
            return 0.0
        saved = self.original_size - self.status.compressed_size
        return saved / self.original_size * 100

    def transition(self, status: Queued | Compressing | Done | Failed) -> "Item":
        """按状态机前进到新状态

        Raises:
            ValidationError: 不允许的状态转换
        """
        if status.state not in _TRANSITIONS[self.state]:
            from ..exceptions import ValidationError

            raise ValidationError(
                f"不允许的状态转换: {self.state.value} -> {status.state.value}",
                self.id,
            )
        return self.model_copy(update={"status": status})

    def with_progress(self, progress: int) -> "Item":
        """更新进度，只在压缩中生效且不回退"""
        if not isinstance(self.status, Compressing):
            return self
        progress = min(100, max(self.status.progress, int(progress)))
        if progress == self.status.progress:
            return self
        return self.model_copy(update={"status": Compressing(progress=progress)})

    def new_attempt(self) -> "Item":
        """用户发起的重新运行：丢弃旧结果，回到等待状态"""
        if not self.is_terminal:
            from ..exceptions import ValidationError

            raise ValidationError(
                f"只有已结束的条目可以重新运行，当前状态: {self.state.value}",
                self.id,
            )
        return self.model_copy(update={"status": Queued(), "attempt": self.attempt + 1})
