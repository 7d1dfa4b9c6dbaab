"""批量编排模块。

管理条目集合，按顺序逐个驱动压缩引擎，维护每个条目的状态。
"""

import threading
from collections.abc import Callable
from pathlib import Path

from ..core.compression_engine import compress_image, read_dimensions
from ..exceptions import ErrorHandler, ValidationError
from ..models.compression_options import CompressionOptions
from ..models.compression_result import BatchStats, EncodeOutcome, PackagedOutput
from ..models.item import Compressing, Done, Failed, Item, ItemState
from ..utils import (
    guess_media_type,
    is_accepted_input,
    normalize_media_type,
    read_input_file,
)
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .archive import ArchivePackager
from .stats import aggregate
from .store import ItemStore
from .task_queue import SerialTaskQueue


logger = get_logger()

ProgressListener = Callable[[str, int], None]


class BatchOrchestrator:
    """批量压缩编排器

    条目按加入顺序逐个压缩，同一时刻只有一个条目在压缩。
    单个条目失败不影响其余条目，批量操作不会因此抛出异常。
    """

    def __init__(
        self,
        options: CompressionOptions | None = None,
        packager: ArchivePackager | None = None,
        task_queue: SerialTaskQueue | None = None,
    ):
        """初始化批量编排器

        Args:
            options: 压缩选项，默认使用配置中的默认值
            packager: 归档打包器
            task_queue: 执行压缩的单工作线程队列
        """
        self._options = options or CompressionOptions()
        self.packager = packager or ArchivePackager()
        self.task_queue = task_queue or SerialTaskQueue()
        self.store = ItemStore()
        self._listeners: list[ProgressListener] = []
        self._run_lock = threading.Lock()

    # ------------------------------------------------------------------
    # 选项
    # ------------------------------------------------------------------

    @property
    def options(self) -> CompressionOptions:
        """当前压缩选项，只影响之后开始的压缩"""
        return self._options

    @options.setter
    def options(self, options: CompressionOptions) -> None:
        self._options = options

    def set_quality(self, quality: int) -> CompressionOptions:
        self._options = self._options.with_quality(quality)
        return self._options

    def set_aggressive(self, aggressive: bool) -> CompressionOptions:
        self._options = self._options.with_aggressive(aggressive)
        return self._options

    def set_max_width(self, width: int) -> CompressionOptions:
        self._options = self._options.with_width(width)
        return self._options

    def set_max_height(self, height: int) -> CompressionOptions:
        self._options = self._options.with_height(height)
        return self._options

    def set_maintain_aspect_ratio(self, enabled: bool) -> CompressionOptions:
        self._options = self._options.with_aspect_lock(enabled)
        return self._options

    def adopt_aspect_ratio(self, item_id: str) -> CompressionOptions:
        """使用某个条目的原始宽高比作为当前宽高比

        Raises:
            ValidationError: 条目不存在时
            EncodeFailure: 无法读取图像尺寸时
        """
        item = self.store.get(item_id)
        if item is None:
            raise ValidationError(MessageFormatter.item_not_found(item_id), item_id)

        width, height = read_dimensions(item.source_bytes)
        self._options = self._options.with_aspect_ratio(width, height)
        logger.debug(f"采用 {item.file_name} 的宽高比 {width}:{height}")
        return self._options

    # ------------------------------------------------------------------
    # 条目管理
    # ------------------------------------------------------------------

    def enqueue(
        self, file_name: str, data: bytes, media_type: str | None = None
    ) -> str | None:
        """加入一个待压缩文件

        不接受的类型直接忽略，不创建条目。

        Args:
            file_name: 原始文件名
            data: 文件内容
            media_type: 声明的媒体类型（可选，缺省时按扩展名判断）

        Returns:
            str | None: 条目标识，被忽略时返回 None
        """
        if not is_accepted_input(file_name, media_type):
            logger.debug(f"忽略不支持的文件: {file_name} ({media_type})")
            return None

        resolved_type = normalize_media_type(media_type) or guess_media_type(file_name)
        item = Item.create(file_name, data, resolved_type or "image/jpeg")
        self.store.add(item)
        logger.debug(f"加入条目 {item.id}: {file_name}")
        return item.id

    def enqueue_path(self, file_path: str | Path) -> str | None:
        """从磁盘读取文件并加入

        Raises:
            FileNotFoundError: 文件不存在时
        """
        file_name, data, media_type = read_input_file(file_path)
        return self.enqueue(file_name, data, media_type)

    def remove(self, item_id: str) -> bool:
        """删除条目，不论状态

        正在压缩的条目不会被中断，其结果到达时被丢弃。
        """
        removed = self.store.remove(item_id)
        if removed:
            logger.debug(f"删除条目 {item_id}")
        return removed

    def clear(self) -> int:
        """删除所有条目"""
        count = self.store.clear()
        logger.debug(f"清空 {count} 个条目")
        return count

    def get(self, item_id: str) -> Item | None:
        return self.store.get(item_id)

    def items(self) -> list[Item]:
        """按加入顺序返回所有条目"""
        return self.store.snapshot()

    def pending_count(self) -> int:
        return sum(1 for item in self.store if item.state == ItemState.QUEUED)

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked() or self.task_queue.busy

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """订阅进度事件 (item_id, progress)

        Returns:
            Callable: 取消订阅的函数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # 执行
    # ------------------------------------------------------------------

    def run_one(self, item_id: str) -> Item | None:
        """压缩单个等待中的条目

        非等待状态的条目保持不变并原样返回。

        Returns:
            Item | None: 结束后的条目；条目不存在或中途被删除时返回 None
        """
        claimed = False

        def claim(item: Item) -> Item:
            nonlocal claimed
            if item.state != ItemState.QUEUED:
                return item
            claimed = True
            return item.transition(Compressing())

        started = self.store.update(item_id, claim)
        if started is None:
            logger.warning(MessageFormatter.item_not_found(item_id))
            return None
        if not claimed:
            logger.debug(f"条目 {item_id} 当前状态为 {started.state.value}，跳过")
            return started

        self._notify(item_id, 0)
        options = self._options
        attempt = started.attempt

        try:
            outcome = self.task_queue.run(
                compress_image,
                started.source_bytes,
                options,
                on_progress=lambda progress: self._apply_progress(
                    item_id, attempt, progress
                ),
            )
        except Exception as e:
            reason = ErrorHandler.handle_item_error(e, item_id)
            return self._finish(item_id, attempt, Failed(reason=reason))

        logger.info(f"{started.file_name}: {outcome.get_summary()}")
        return self._finish(item_id, attempt, self._done_status(outcome))

    def run_all(self) -> list[Item]:
        """按顺序压缩所有等待中的条目

        尽力而为：失败的条目记录原因后继续处理后面的条目。

        Returns:
            list[Item]: 本次处理过且仍存在的条目
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("批量压缩已在进行中，忽略重复调用")
            return []

        queued_ids = [
            item.id for item in self.store if item.state == ItemState.QUEUED
        ]
        results: list[Item] = []

        try:
            for item_id in queued_ids:
                result = self.run_one(item_id)
                # 仍在其他调用中压缩的条目不计入本次结果
                if result is not None and result.is_terminal:
                    results.append(result)
        finally:
            self._run_lock.release()

        failed = sum(1 for item in results if item.state == ItemState.FAILED)
        logger.info(
            f"批量压缩结束: 处理 {len(results)} 个，失败 {failed} 个；"
            f"{self.stats().get_summary()}"
        )
        return results

    def rerun(self, item_id: str) -> Item | None:
        """重新压缩已结束的条目

        丢弃之前的结果或失败原因，进度从 0 开始。

        Raises:
            ValidationError: 条目尚未结束时
        """
        reset = self.store.update(item_id, lambda item: item.new_attempt())
        if reset is None:
            logger.warning(MessageFormatter.item_not_found(item_id))
            return None
        return self.run_one(item_id)

    # ------------------------------------------------------------------
    # 汇总
    # ------------------------------------------------------------------

    def stats(self) -> BatchStats:
        """统计已完成条目"""
        return aggregate(self.store.snapshot())

    def package(self) -> PackagedOutput | None:
        """打包已完成条目"""
        return self.packager.package(self.store.snapshot())

    def export(self, item_id: str) -> PackagedOutput | None:
        """单独导出一个已完成条目

        Returns:
            PackagedOutput | None: 条目不存在或未完成时返回 None
        """
        item = self.store.get(item_id)
        if item is None:
            logger.warning(MessageFormatter.item_not_found(item_id))
            return None
        return self.packager.package_item(item)

    def close(self) -> None:
        self.task_queue.shutdown()

    def __enter__(self) -> "BatchOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    def _apply_progress(self, item_id: str, attempt: int, progress: int) -> None:
        """在工作线程中按标识更新进度"""

        def advance(item: Item) -> Item:
            if item.attempt != attempt:
                return item
            return item.with_progress(progress)

        updated = self.store.update(item_id, advance)
        if updated is not None and updated.state == ItemState.COMPRESSING:
            self._notify(item_id, updated.progress)

    def _finish(
        self, item_id: str, attempt: int, status: Done | Failed
    ) -> Item | None:
        """写入最终状态；条目已删除时丢弃结果"""

        def complete(item: Item) -> Item:
            if item.attempt != attempt or item.state != ItemState.COMPRESSING:
                return item
            return item.transition(status)

        finished = self.store.update(item_id, complete)
        if finished is None:
            logger.info(f"条目 {item_id} 已被删除，丢弃压缩结果")
            return None

        if finished.state == ItemState.DONE:
            self._notify(item_id, 100)
        return finished

    def _notify(self, item_id: str, progress: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(item_id, progress)
            except Exception as e:
                logger.warning(f"进度监听器出错: {e}")

    @staticmethod
    def _done_status(outcome: EncodeOutcome) -> Done:
        return Done(
            output_bytes=outcome.output_bytes,
            compressed_size=outcome.final_size,
            quality_used=outcome.quality_used,
            iterations=outcome.iterations,
            final_dimensions=outcome.final_dimensions,
        )
