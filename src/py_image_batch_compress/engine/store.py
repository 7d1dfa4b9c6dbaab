"""条目存储模块。

以条目标识为键的存储，只提供按标识的原子替换和删除。
"""

import threading
from collections.abc import Callable, Iterator

from ..models.item import Item


ItemUpdater = Callable[[Item], Item]


class ItemStore:
    """线程安全的条目存储

    条目本身不可变，读取方拿到的总是某个完整版本。
    写入只能通过 ``add`` / ``update`` / ``remove`` / ``clear`` 完成。
    """

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}
        self._lock = threading.Lock()

    def add(self, item: Item) -> None:
        """添加条目"""
        with self._lock:
            if item.id in self._items:
                raise KeyError(f"条目已存在: {item.id}")
            self._items[item.id] = item

    def get(self, item_id: str) -> Item | None:
        """获取条目，不存在时返回 None"""
        with self._lock:
            return self._items.get(item_id)

    def update(self, item_id: str, updater: ItemUpdater) -> Item | None:
        """按标识原子替换条目

        条目已被删除时不做任何事并返回 None，
        因此删除后到达的进度或结果会被直接丢弃。

        Args:
            item_id: 条目标识
            updater: 接收当前条目并返回新条目的函数

        Returns:
            Item | None: 替换后的条目
        """
        with self._lock:
            current = self._items.get(item_id)
            if current is None:
                return None
            updated = updater(current)
            self._items[item_id] = updated
            return updated

    def remove(self, item_id: str) -> bool:
        """删除条目，返回是否存在"""
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def clear(self) -> int:
        """删除所有条目，返回删除数量"""
        with self._lock:
            count = len(self._items)
            self._items.clear()
            return count

    def snapshot(self) -> list[Item]:
        """按加入顺序返回所有条目的快照"""
        with self._lock:
            return list(self._items.values())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(self.snapshot())
