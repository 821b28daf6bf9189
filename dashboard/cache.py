# dashboard/cache.py
"""
Page data cache. Every entry is tagged with the page path that renders it,
so a mutation can mark a whole page stale with `revalidate(path)`.
"""
import logging
from pathlib import Path
from typing import Callable, TypeVar

import diskcache

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class PageCache:
    def __init__(self, directory) -> None:
        self.directory = Path(directory)
        self._cache = diskcache.Cache(str(self.directory))

    def get_or_load(self, path: str, key: str, loader: Callable[[], T]) -> T:
        full_key = f"{path}::{key}"
        value = self._cache.get(full_key, default=_MISSING)
        if value is not _MISSING:
            return value
        value = loader()
        self._cache.set(full_key, value, tag=path)
        return value

    def revalidate(self, path: str) -> int:
        evicted = self._cache.evict(path)
        logger.debug("Revalidated %s (%d entries)", path, evicted)
        return evicted

    def clear(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        self._cache.close()
