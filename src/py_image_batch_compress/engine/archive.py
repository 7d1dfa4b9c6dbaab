"""归档打包模块。

将已完成条目的输出打包为一个可下载的结果。
"""

import io
import zipfile
from collections.abc import Iterable

from ..config import get_config
from ..models.compression_result import PackagedOutput
from ..models.item import Done, Item
from ..utils.logging_helpers import get_logger
from ..utils.naming_helpers import FileNamingStrategy, UniqueNameAllocator


logger = get_logger()

ARCHIVE_MEDIA_TYPE = "application/zip"
# 固定条目时间戳，相同输入生成相同归档
ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


class ArchivePackager:
    """归档打包器

    只有一个完成条目时直接返回该条目的数据；多个时打包为 ZIP。
    条目名为 ``compressed-<原始文件名>``，重名时在扩展名前追加 ``_<n>``。
    """

    def __init__(self, archive_name: str | None = None) -> None:
        self.archive_name = archive_name or get_config().processing.ARCHIVE_NAME

    def package(self, items: Iterable[Item]) -> PackagedOutput | None:
        """打包已完成条目

        Args:
            items: 条目集合（按加入顺序），非完成条目被忽略

        Returns:
            PackagedOutput | None: 打包结果，没有完成条目时返回 None
        """
        finished = [
            (item, item.status) for item in items if isinstance(item.status, Done)
        ]

        if not finished:
            logger.debug("没有已完成的条目，跳过打包")
            return None

        if len(finished) == 1:
            return self._single(*finished[0])

        return self._archive(finished)

    def package_item(self, item: Item) -> PackagedOutput | None:
        """单独导出一个完成条目，不论批量中有多少条目

        Returns:
            PackagedOutput | None: 条目未完成时返回 None
        """
        if not isinstance(item.status, Done):
            logger.debug(f"条目 {item.id} 尚未完成，无法导出")
            return None
        return self._single(item, item.status)

    def entry_names(self, items: Iterable[Item]) -> list[str]:
        """计算各条目在归档中的名称，保证唯一"""
        allocator = UniqueNameAllocator()
        return [
            allocator.allocate(FileNamingStrategy.generate_output_name(item.file_name))
            for item in items
        ]

    def _single(self, item: Item, done: Done) -> PackagedOutput:
        file_name = FileNamingStrategy.generate_output_name(item.file_name)
        return PackagedOutput(
            file_name=file_name,
            media_type=item.media_type,
            data=done.output_bytes,
            entry_names=[file_name],
            is_archive=False,
        )

    def _archive(self, finished: list[tuple[Item, Done]]) -> PackagedOutput:
        names = self.entry_names(item for item, _ in finished)
        buffer = io.BytesIO()

        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
            for name, (_, done) in zip(names, finished, strict=True):
                info = zipfile.ZipInfo(name, date_time=ENTRY_TIMESTAMP)
                info.compress_type = zipfile.ZIP_DEFLATED
                zipf.writestr(info, done.output_bytes)

        logger.info(f"已打包 {len(finished)} 个文件到 {self.archive_name}")
        return PackagedOutput(
            file_name=self.archive_name,
            media_type=ARCHIVE_MEDIA_TYPE,
            data=buffer.getvalue(),
            entry_names=names,
            is_archive=True,
        )
