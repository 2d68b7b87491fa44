"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file (``~/.fscache/config.yaml``),
a ``.env`` file and environment variables prefixed with ``FSCACHE_``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".fscache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "FSCACHE_"

DEFAULT_CACHE_ROOT = DEFAULT_CONFIG_DIR / "store"
DEFAULT_CACHE_FOLDER = "cache"
DEFAULT_LOG_LEVEL = "WARNING"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ('cache': {'root': x} -> 'cache.root')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_name(key: str) -> str:
    """Environment variable consulted for a config key ('cache.root' -> 'FSCACHE_CACHE_ROOT')."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to ``get_config``

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")

    # 3. Environment Variables (Highest priority) are read by get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by dotted key.

    Priority:
    1. Test configuration
    2. Environment variable (``FSCACHE_`` + upper-cased key, dots as underscores)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not found. Returning default: {default}")
    return default


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the rest of the process."""
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def get_cache_root() -> Path:
    """Directory the local filesystem adapter is rooted at."""
    return Path(str(get_config("cache.root", DEFAULT_CACHE_ROOT))).expanduser()


def get_cache_folder() -> str:
    """Folder, relative to the root, that holds the cache files."""
    return str(get_config("cache.folder", DEFAULT_CACHE_FOLDER))


def get_log_level() -> int:
    """Log level as a ``logging`` constant. Unknown names fall back to WARNING."""
    level = get_config("logging.level", DEFAULT_LOG_LEVEL)
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        logger.warning(f"Unknown log level '{level}'. Defaulting to {DEFAULT_LOG_LEVEL}.")
        return logging.WARNING
    return resolved


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override every other source."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
