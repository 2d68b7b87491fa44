"""Cache pool that stores one pickled file per key on a FileSystem.

Each entry is written to ``<folder>/<key>`` as a pickle of
``(value, tags, expiration_timestamp)``. Tag indexes are stored the same way
as pickled lists under ``<folder>/tag!<tag>``. Expired entries are removed
lazily, when they are next read.
"""

import asyncio
import logging
import pickle
import re
import time
from typing import Any, List, Optional

from fscache.core.abstract_pool import AbstractCachePool
from fscache.domain.errors import FilesystemError, InvalidArgumentError
from fscache.domain.interfaces.filesystem import (
    OPTION_DIRECTORY_VISIBILITY,
    OPTION_VISIBILITY,
    VISIBILITY_PUBLIC,
    FileSystem,
    WriteConfig,
)
from fscache.domain.models.cache_item import CacheItem, FetchResult
from fscache.domain.models.common import CacheKey, FilePath, ListName

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "cache"
VALID_FILENAME = re.compile(r"[a-zA-Z0-9_.! ]+")

# Errors raised by pickle.loads on data it did not write
_DECODE_ERRORS = (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError, TypeError, ValueError)


def _is_record(data: Any) -> bool:
    """Checks ``data`` has the ``(value, tags, expiration_timestamp)`` shape written by the pool."""
    if not isinstance(data, tuple) or len(data) != 3:
        return False
    _, tags, expiration_timestamp = data
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        return False
    if expiration_timestamp is None:
        return True
    return isinstance(expiration_timestamp, int) and not isinstance(expiration_timestamp, bool)


class FilesystemCachePool(AbstractCachePool):
    """Cache pool backed by a folder on any FileSystem adapter."""

    def __init__(
        self,
        filesystem: FileSystem,
        folder: str = DEFAULT_FOLDER,
        logger: Optional[logging.Logger] = None,
    ):
        """Initializes the pool. Call ``initialize`` (or use ``async with``) before use.

        Args:
            filesystem: The storage the pool writes to.
            folder: Folder holding the cache files. Must not begin nor end
                with a slash, e.g. ``path/to/cache``.
            logger: Logger for pool errors; defaults to the pool module logger.
        """
        super().__init__(logger=logger)
        self.filesystem = filesystem
        self._folder = ""
        self.folder = folder
        self._list_lock = asyncio.Lock()

    @classmethod
    async def create(cls, filesystem: FileSystem, folder: str = DEFAULT_FOLDER, **kwargs) -> "FilesystemCachePool":
        """Builds a pool and creates its folder."""
        pool = cls(filesystem, folder, **kwargs)
        await pool.initialize()
        return pool

    @property
    def folder(self) -> str:
        return self._folder

    @folder.setter
    def folder(self, folder: str) -> None:
        if not folder or folder.startswith("/") or folder.endswith("/"):
            raise InvalidArgumentError(f'Invalid folder "{folder}". It must not be empty nor begin or end with "/".')
        self._folder = folder

    def set_folder(self, folder: str) -> None:
        self.folder = folder

    async def initialize(self) -> None:
        """Creates the cache folder if it does not exist yet."""
        await self.filesystem.create_directory(FilePath(self.folder), self.filesystem_config())
        logger.debug(f"Cache folder ready: {self.folder}")

    async def __aenter__(self) -> "FilesystemCachePool":
        await self.initialize()
        return self

    # --- Storage primitives ---

    async def fetch_object_from_cache(self, key: CacheKey) -> FetchResult:
        file = self._get_file_path(key)
        try:
            data = pickle.loads(await self.filesystem.read(file))
        except FilesystemError:
            logger.debug(f"Cache miss for key: {key}")
            return FetchResult.miss()
        except _DECODE_ERRORS as e:
            logger.warning(f"Unreadable cache file {file}: {e}")
            return FetchResult.miss()

        # Tag indexes live in the same folder and hold plain lists
        if not _is_record(data):
            logger.warning(f"Cache file {file} does not hold a cache record")
            return FetchResult.miss()

        value, tags, expiration_timestamp = data
        expiration_timestamp = expiration_timestamp or None
        if expiration_timestamp is not None and time.time() > expiration_timestamp:
            logger.debug(f"Cache entry expired for key: {key}. Removing file.")
            for tag in tags:
                await self.remove_list_item(self.get_tag_key(tag), key)
            await self._force_clear(key)
            return FetchResult.miss()

        logger.debug(f"Cache hit for key: {key}")
        return FetchResult(True, value, list(tags), expiration_timestamp)

    async def clear_all_objects_from_cache(self) -> bool:
        await self.filesystem.delete_directory(FilePath(self.folder))
        await self.filesystem.create_directory(FilePath(self.folder), self.filesystem_config())
        logger.info(f"Cleared cache folder: {self.folder}")
        return True

    async def clear_one_object_from_cache(self, key: CacheKey) -> bool:
        return await self._force_clear(key)

    async def store_item_in_cache(self, item: CacheItem, ttl: Optional[int]) -> bool:
        data = pickle.dumps((item.value, item.get_tags(), item.get_expiration_timestamp()))
        file = self._get_file_path(item.get_key())
        try:
            await self.filesystem.write(file, data, self.filesystem_config())
        except FilesystemError as e:
            # Another writer may have been replacing the file at the same time
            logger.warning(f"Retrying write of {file} after error: {e}")
            await self.filesystem.write(file, data, self.filesystem_config())
        logger.debug(f"Stored item: key={item.get_key()}, ttl={ttl}")
        return True

    async def get_list(self, name: ListName) -> List[CacheKey]:
        file = self._get_file_path(name)
        if not await self.filesystem.file_exists(file):
            await self.filesystem.write(file, pickle.dumps([]), self.filesystem_config())
        return pickle.loads(await self.filesystem.read(file))

    async def remove_list(self, name: ListName) -> None:
        async with self._list_lock:
            await self.filesystem.delete(self._get_file_path(name))

    async def append_list_item(self, name: ListName, key: CacheKey) -> bool:
        async with self._list_lock:
            keys = await self.get_list(name)
            keys.append(key)
            await self.filesystem.write(self._get_file_path(name), pickle.dumps(keys), self.filesystem_config())
        return True

    async def remove_list_item(self, name: ListName, key: CacheKey) -> bool:
        async with self._list_lock:
            keys = [item for item in await self.get_list(name) if item != key]
            await self.filesystem.write(self._get_file_path(name), pickle.dumps(keys), self.filesystem_config())
        return True

    # --- Helpers ---

    def _get_file_path(self, key: str) -> FilePath:
        if not VALID_FILENAME.fullmatch(key) or not key.strip("."):
            raise InvalidArgumentError(f'Invalid key "{key}". Valid filenames must match [a-zA-Z0-9_.! ].')
        return FilePath(f"{self.folder}/{key}")

    async def _force_clear(self, key: CacheKey) -> bool:
        try:
            await self.filesystem.delete(self._get_file_path(key))
        except FilesystemError as e:
            logger.debug(f"Ignoring failure to delete {key}: {e}")
        return True

    @staticmethod
    def filesystem_config() -> WriteConfig:
        return {
            OPTION_DIRECTORY_VISIBILITY: VISIBILITY_PUBLIC,
            OPTION_VISIBILITY: VISIBILITY_PUBLIC,
        }
