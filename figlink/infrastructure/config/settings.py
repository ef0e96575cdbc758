"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (``~/.figlink/config.yaml``).

Example config.yaml::

    figma:
      base_url: https://api.figma.com/v1
      rate_limit_per_minute: 60
      timeout_seconds: 30
    cache:
      enabled: true
      ttl_seconds: 300
      max_size: 100
    logging:
      level: INFO
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from figlink.infrastructure.figma.figma_client import DEFAULT_BASE_URL, TOKEN_ENV_VAR, FigmaApiConfig

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".figlink"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


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
    4. Default values passed to get_config

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
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
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
    else:
        logger.debug(".env file not found at or above current directory.")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    """Converts environment strings into bool/int/float where they look like one."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _lookup_nested(data: Dict[str, Any], dotted_key: str) -> Any:
    """Resolves 'a.b.c' against nested dicts. Raises KeyError when missing."""
    if dotted_key in data:
        return data[dotted_key]
    current: Any = data
    for part in dotted_key.split("."):
        if not isinstance(current, dict) or part not in current:
            raise KeyError(dotted_key)
        current = current[part]
    return current


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Priority:
    1. Test configuration (if set)
    2. Environment variable (``figma.timeout_seconds`` -> ``FIGMA_TIMEOUT_SECONDS``)
    3. YAML config (dotted keys walk nested mappings)
    4. Default value

    Args:
        key: The configuration key.
        default: Default value if the key is not found.

    Returns:
        The configuration value.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace(".", "_")
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    try:
        return _lookup_nested(_config, key)
    except KeyError:
        logger.debug(f"Config key '{key}' not found. Returning default: {default}")
        return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def get_figma_token() -> Optional[str]:
    """Convenience function to get the Figma access token."""
    token = get_config(TOKEN_ENV_VAR) or get_config("figma.token")
    return str(token) if token else None


def get_figma_api_config() -> FigmaApiConfig:
    """Builds the API client settings from the loaded configuration."""
    return FigmaApiConfig(
        base_url=str(get_config("figma.base_url", DEFAULT_BASE_URL)),
        token=get_figma_token(),
        rate_limit_per_minute=int(get_config("figma.rate_limit_per_minute", 60)),
        cache_enabled=bool(get_config("cache.enabled", True)),
        cache_ttl=float(get_config("cache.ttl_seconds", 300)),
        timeout=float(get_config("figma.timeout_seconds", 30)),
    )


def get_cache_max_size() -> int:
    return int(get_config("cache.max_size", 100))


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Set configuration values that override every other source.

    Args:
        config_dict: Dictionary of configuration values to set.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {sorted(config_dict)}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
