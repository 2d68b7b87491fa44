"""fscache: a tagged, expiring cache pool stored on a pluggable filesystem."""

from fscache.core.abstract_pool import AbstractCachePool
from fscache.domain.errors import CacheError, CachePoolError, InvalidArgumentError
from fscache.domain.models.cache_item import CacheItem
from fscache.infrastructure.cache.filesystem_pool import FilesystemCachePool
from fscache.infrastructure.filesystem.local_fs import LocalFileSystem
from fscache.infrastructure.filesystem.memory_fs import InMemoryFileSystem

__version__ = "0.1.0"

__all__ = [
    "AbstractCachePool",
    "CacheError",
    "CacheItem",
    "CachePoolError",
    "FilesystemCachePool",
    "InMemoryFileSystem",
    "InvalidArgumentError",
    "LocalFileSystem",
]
