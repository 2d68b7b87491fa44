"""In-memory implementation of the FileSystem interface.

Keeps files in a dictionary. Useful for tests and for throwaway caches
that should never touch the disk.
"""

import logging
from typing import Dict, Optional, Set

from fscache.domain.errors import UnableToReadFile
from fscache.domain.interfaces.filesystem import (
    OPTION_VISIBILITY,
    VISIBILITY_PUBLIC,
    FileSystem,
    WriteConfig,
)
from fscache.domain.models.common import FilePath
from fscache.infrastructure.filesystem.path_normalizer import normalize_path

logger = logging.getLogger(__name__)


class InMemoryFileSystem(FileSystem):
    """FileSystem whose files live only as long as the instance."""

    def __init__(self):
        self.files: Dict[FilePath, bytes] = {}
        self.visibility: Dict[FilePath, str] = {}
        self.directories: Set[FilePath] = set()

    @staticmethod
    def _is_inside(path: str, directory: str) -> bool:
        return not directory or path.startswith(directory + "/")

    async def file_exists(self, path: FilePath) -> bool:
        return normalize_path(path) in self.files

    async def directory_exists(self, path: FilePath) -> bool:
        location = normalize_path(path)
        if not location or location in self.directories:
            return True
        return any(self._is_inside(name, location) for name in self.files)

    async def read(self, path: FilePath) -> bytes:
        location = normalize_path(path)
        try:
            return self.files[location]
        except KeyError:
            raise UnableToReadFile.from_location(path, "File does not exist.") from None

    async def write(self, path: FilePath, contents: bytes, config: Optional[WriteConfig] = None) -> None:
        location = normalize_path(path)
        self.files[location] = bytes(contents)
        self.visibility[location] = (config or {}).get(OPTION_VISIBILITY, VISIBILITY_PUBLIC)
        logger.debug(f"Wrote {len(contents)} bytes to memory:{location}")

    async def delete(self, path: FilePath) -> None:
        location = normalize_path(path)
        self.files.pop(location, None)
        self.visibility.pop(location, None)

    async def create_directory(self, path: FilePath, config: Optional[WriteConfig] = None) -> None:
        location = normalize_path(path)
        while location:
            self.directories.add(location)
            location = FilePath(location.rpartition("/")[0])

    async def delete_directory(self, path: FilePath) -> None:
        location = normalize_path(path)
        for name in [name for name in self.files if self._is_inside(name, location)]:
            del self.files[name]
            self.visibility.pop(name, None)
        self.directories = {
            name for name in self.directories
            if name != location and not self._is_inside(name, location)
        }
        logger.debug(f"Deleted directory memory:{location}")
