"""
Process-wide access to the auditor's settings.

The CLI and GUI both call :func:`load_settings`; the ConfigurationManager
behind it is shared so that the YAML and .env files are only read once per
process unless a reload is requested.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config_types import Settings
from .configuration import ConfigurationError, ConfigurationManager

logger = logging.getLogger(__name__)

__all__ = ["ConfigurationError", "Settings", "get_config_manager", "load_settings"]

_config_manager_instance: Optional[ConfigurationManager] = None


def get_config_manager(
    config_file: Optional[Union[str, Path]] = None, force_reload: bool = False
) -> ConfigurationManager:
    """Return the shared manager, building a fresh one on first use or when forced."""
    global _config_manager_instance

    if _config_manager_instance is None or force_reload:
        _config_manager_instance = ConfigurationManager(config_file_path=config_file)
        _config_manager_instance.load_config()
    elif config_file is not None and _config_manager_instance.config_file_path != Path(config_file):
        logger.warning(
            f"Ignoring config file {config_file}: settings were already loaded from "
            f"{_config_manager_instance.config_file_path or 'defaults'}; pass force_reload=True"
        )
    return _config_manager_instance


def load_settings(
    config_file: Optional[Union[str, Path]] = None,
    force_reload: bool = False,
    debug: bool = False,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """
    Resolve the settings for this run.

    Args:
        config_file: YAML file to read instead of searching for ppc-audit.yaml.
        force_reload: Re-read every source even if settings were loaded before.
        debug: Force DEBUG logging.
        overrides: Values that win over every other source (CLI flags).

    Raises:
        ConfigurationError: If the merged configuration does not validate.
    """
    runtime = dict(overrides or {})
    if debug:
        runtime["log_level"] = "DEBUG"
    return get_config_manager(config_file, force_reload).get_settings(overrides=runtime or None)
