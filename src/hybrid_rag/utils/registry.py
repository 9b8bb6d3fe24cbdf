"""Bounded in-memory registry for built indexes."""

from __future__ import annotations
from collections import OrderedDict
from typing import Generic, Iterator, List, Optional, TypeVar

from .logger import get_logger

V = TypeVar("V")


class IndexRegistry(Generic[V]):
    """
    Least-recently-used mapping from document id to a built index.

    Lookups refresh recency; inserting past ``capacity`` evicts the least
    recently used entry. Evicted indexes are simply rebuilt on demand.
    """

    def __init__(self, capacity: int = 32, logger_name: str = "index_registry"):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.logger = get_logger(logger_name)
        self._entries: "OrderedDict[str, V]" = OrderedDict()

    def get(self, key: str) -> Optional[V]:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def peek(self, key: str) -> Optional[V]:
        """Look up without touching recency."""
        return self._entries.get(key)

    def put(self, key: str, value: V) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            self.logger.info(f"Evicted in-memory index for '{evicted}' (capacity {self.capacity})")

    def pop(self, key: str) -> Optional[V]:
        return self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries.keys()))
