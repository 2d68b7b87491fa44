"""Concrete implementation of the FileSystem interface for the local disk.

Uses `aiofiles` for async file I/O and runs the remaining blocking `pathlib`
and `shutil` calls in worker threads. Every path is resolved relative to the
adapter's root directory.
"""

import asyncio
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles

# Domain Layer Imports
from fscache.domain.errors import (
    UnableToCreateDirectory,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToReadFile,
    UnableToWriteFile,
)
from fscache.domain.interfaces.filesystem import (
    OPTION_DIRECTORY_VISIBILITY,
    OPTION_VISIBILITY,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    FileSystem,
    WriteConfig,
)
from fscache.domain.models.common import FilePath
from fscache.infrastructure.filesystem.path_normalizer import normalize_path

logger = logging.getLogger(__name__)

# Unix permissions used for each visibility
FILE_PERMISSIONS = {VISIBILITY_PUBLIC: 0o644, VISIBILITY_PRIVATE: 0o600}
DIRECTORY_PERMISSIONS = {VISIBILITY_PUBLIC: 0o755, VISIBILITY_PRIVATE: 0o700}
DEFAULT_VISIBILITY = VISIBILITY_PUBLIC


class LocalFileSystem(FileSystem):
    """Implementation of FileSystem for a directory on the local disk."""

    def __init__(self, root: Union[str, Path], default_visibility: str = DEFAULT_VISIBILITY):
        """Initializes the adapter and creates the root directory if needed."""
        self.root = Path(root).expanduser()
        self.default_visibility = default_visibility
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create filesystem root {self.root}: {e}")
            raise UnableToCreateDirectory.at_location(str(self.root), str(e)) from e
        logger.info(f"LocalFileSystem initialized at {self.root}")

    def _location(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def _visibility(self, config: Optional[WriteConfig], option: str) -> str:
        visibility = (config or {}).get(option, self.default_visibility)
        if visibility not in (VISIBILITY_PUBLIC, VISIBILITY_PRIVATE):
            logger.warning(f"Unknown visibility '{visibility}', using '{self.default_visibility}'")
            return self.default_visibility
        return visibility

    def _ensure_directory(self, location: Path, permissions: int) -> None:
        location.mkdir(mode=permissions, parents=True, exist_ok=True)
        os.chmod(location, permissions)

    async def file_exists(self, path: FilePath) -> bool:
        location = self._location(path)
        exists = await asyncio.to_thread(location.is_file)
        logger.debug(f"Checked existence for {location}: {exists}")
        return exists

    async def directory_exists(self, path: FilePath) -> bool:
        location = self._location(path)
        return await asyncio.to_thread(location.is_dir)

    async def read(self, path: FilePath) -> bytes:
        location = self._location(path)
        try:
            async with aiofiles.open(location, mode="rb") as f:
                contents = await f.read()
        except OSError as e:
            logger.debug(f"Error reading file {location}: {e}")
            raise UnableToReadFile.from_location(path, e.strerror or str(e)) from e
        logger.debug(f"Read {len(contents)} bytes from {location}")
        return contents

    async def write(self, path: FilePath, contents: bytes, config: Optional[WriteConfig] = None) -> None:
        location = self._location(path)
        file_permissions = FILE_PERMISSIONS[self._visibility(config, OPTION_VISIBILITY)]
        directory_permissions = DIRECTORY_PERMISSIONS[self._visibility(config, OPTION_DIRECTORY_VISIBILITY)]
        # Write to a temporary sibling, then swap it in so readers never see partial data
        temp_location = location.with_name(f".{location.name}.{uuid.uuid4().hex}.tmp")
        try:
            if not await asyncio.to_thread(location.parent.is_dir):
                await asyncio.to_thread(self._ensure_directory, location.parent, directory_permissions)
            async with aiofiles.open(temp_location, mode="wb") as f:
                await f.write(contents)
            await asyncio.to_thread(os.chmod, temp_location, file_permissions)
            await asyncio.to_thread(os.replace, temp_location, location)
        except OSError as e:
            logger.error(f"Failed to write file {location}: {e}")
            await asyncio.to_thread(temp_location.unlink, missing_ok=True)
            raise UnableToWriteFile.at_location(path, e.strerror or str(e)) from e
        logger.debug(f"Wrote {len(contents)} bytes to {location}")

    async def delete(self, path: FilePath) -> None:
        location = self._location(path)
        try:
            await asyncio.to_thread(location.unlink, missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete file {location}: {e}")
            raise UnableToDeleteFile.at_location(path, e.strerror or str(e)) from e
        logger.debug(f"Deleted file {location}")

    async def create_directory(self, path: FilePath, config: Optional[WriteConfig] = None) -> None:
        location = self._location(path)
        permissions = DIRECTORY_PERMISSIONS[self._visibility(config, OPTION_DIRECTORY_VISIBILITY)]
        try:
            await asyncio.to_thread(self._ensure_directory, location, permissions)
        except OSError as e:
            logger.error(f"Failed to create directory {location}: {e}")
            raise UnableToCreateDirectory.at_location(path, e.strerror or str(e)) from e
        logger.debug(f"Created directory {location}")

    async def delete_directory(self, path: FilePath) -> None:
        location = self._location(path)
        if not await asyncio.to_thread(location.is_dir):
            return
        try:
            await asyncio.to_thread(shutil.rmtree, location)
        except OSError as e:
            logger.error(f"Failed to delete directory {location}: {e}")
            raise UnableToDeleteDirectory.at_location(path, e.strerror or str(e)) from e
        logger.debug(f"Deleted directory {location}")
