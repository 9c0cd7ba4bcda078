"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface.
`get_config()` loads the file once; `reload_config()` re-reads it and falls
back to the last configuration that loaded successfully.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default path to the configuration file. Overridden by the CLI `--config`
# option or by tests through set_config_path().
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path and drop the cached configuration.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def get_config_path() -> Path:
    return _CONFIG_FILE_PATH


def clear_config_cache() -> None:
    """
    Clear the cached configuration, forcing a reload on next access.
    """
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the configuration file.

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
        OSError: If the file exists but cannot be read
    """
    try:
        config_data = load_main_config(config_path)
        app_config = validate_app_config(config_data, config_path.parent)
        logger.debug(
            f"Loaded configuration: mode={app_config.mode.value}, "
            f"cpu_check_minutes={app_config.monitoring.cpu_check_minutes}, "
            f"user_check_minutes={app_config.monitoring.user_check_minutes}, "
            f"cpu_threshold={app_config.monitoring.cpu_threshold}"
        )
        return app_config
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def reload_config() -> AppConfig:
    """
    Re-read the configuration file.

    A failed reload keeps the previous configuration in force. Only when no
    configuration was ever loaded is the error propagated.

    Returns:
        The freshly loaded configuration, or the last known good one
    """
    global _CONFIG
    try:
        _CONFIG = _load_config(_CONFIG_FILE_PATH)
    except Exception as e:
        if _CONFIG is None:
            raise
        logger.warning(f"Config reload failed: {e} - using last known config")
    return _CONFIG


def is_config_loaded() -> bool:
    """
    Check if configuration has been loaded and cached.
    """
    return _CONFIG is not None


def get_config_info() -> dict:
    """
    Get information about the current configuration state.

    Returns:
        Dictionary with configuration metadata
    """
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "mode": _CONFIG.mode.value if _CONFIG else None,
        "state_file": str(_CONFIG.paths.state_file) if _CONFIG else None,
    }
