import os

import pytest
from typer.testing import CliRunner
from pathlib import Path

from fscache.infrastructure.cache.filesystem_pool import FilesystemCachePool
from fscache.infrastructure.config import settings
from fscache.infrastructure.filesystem.local_fs import LocalFileSystem
from fscache.infrastructure.filesystem.memory_fs import InMemoryFileSystem


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def memory_fs():
    return InMemoryFileSystem()


@pytest.fixture
def local_fs(tmp_path: Path):
    """LocalFileSystem rooted at a fresh temporary directory."""
    return LocalFileSystem(tmp_path / "store")


@pytest.fixture
def pool(memory_fs: InMemoryFileSystem):
    """Cache pool on an in-memory filesystem, using the default 'cache' folder."""
    return FilesystemCachePool(memory_fs)


@pytest.fixture
def disk_pool(local_fs: LocalFileSystem):
    """Cache pool writing real files under a temporary directory."""
    return FilesystemCachePool(local_fs, "app/cache")


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep user config files and FSCACHE_ variables out of the tests."""
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", True)
    for name in [name for name in os.environ if name.startswith(settings.ENV_PREFIX)]:
        monkeypatch.delenv(name)
    yield
    settings.clear_test_config()
