"""
Layered configuration for the auditor.

Settings are assembled from, lowest precedence first:

1. the defaults declared on the Settings model,
2. ``ppc-audit.yaml`` (or an explicit file), then ``ppc-audit.<profile>.yaml``
   when ``PPC_AUDIT_PROFILE`` names a profile,
3. ``PPC_AUDIT_*`` environment variables, including any loaded from ``.env``,
4. runtime overrides such as CLI flags.

The merged mapping is validated once by pydantic; any failure surfaces as a
ConfigurationError naming the file and profile in play.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Type, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..core.errors import ConfigurationError
from .config_types import Settings

logger = logging.getLogger(__name__)

__all__ = ["ConfigurationError", "ConfigurationManager"]

PathLike = Union[str, Path]


def _deep_merge(source: Dict[str, Any], destination: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``source`` into ``destination`` in place, recursing into nested mappings."""
    for key, value in source.items():
        current = destination.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _deep_merge(value, current)
        else:
            destination[key] = value
    return destination


class ConfigurationManager:
    """Resolves and caches the auditor's Settings."""

    DEFAULT_CONFIG_FILES = ("ppc-audit.yaml", "ppc-audit.yml")
    ENV_PREFIX = "PPC_AUDIT_"

    def __init__(
        self,
        settings_cls: Type[Settings] = Settings,
        config_file_path: Optional[PathLike] = None,
        env_prefix: str = ENV_PREFIX,
        dotenv_path: Optional[PathLike] = None,
        load_dotenv_flag: bool = True,
    ):
        """
        Args:
            settings_cls: Pydantic model describing the settings.
            config_file_path: YAML file to read. When missing or not given,
                the working directory and then the home directory are searched.
            env_prefix: Prefix of the environment variables that map to fields.
            dotenv_path: ``.env`` file to load; searched for like the YAML file if omitted.
            load_dotenv_flag: Whether to load a ``.env`` file at all.
        """
        if not (isinstance(settings_cls, type) and issubclass(settings_cls, BaseModel)):
            raise TypeError(f"{settings_cls!r} is not a pydantic model")

        self.settings_cls = settings_cls
        self.env_prefix = env_prefix
        self.dotenv_path = dotenv_path
        self._use_dotenv = load_dotenv_flag
        self._requested_file = config_file_path

        self.profile: Optional[str] = None
        self._config_file_path: Optional[Path] = None
        self._merged: Dict[str, Any] = {}
        self._loaded = False
        self._cached: Optional[Settings] = None

        self._discover()

    @property
    def config_file_path(self) -> Optional[Path]:
        return self._config_file_path

    def _search_dirs(self) -> Iterator[Path]:
        cwd = Path.cwd()
        yield cwd
        if Path.home() != cwd:
            yield Path.home()

    def _discover(self) -> None:
        """Pick up the .env file, the active profile and the YAML file to read."""
        if self._use_dotenv:
            self._load_dotenv()
        self.profile = os.getenv(f"{self.env_prefix}PROFILE")
        self._config_file_path = self._find_config_file()

    def _load_dotenv(self) -> None:
        candidates = (
            [Path(self.dotenv_path)]
            if self.dotenv_path is not None
            else [directory / ".env" for directory in self._search_dirs()]
        )
        env_file = next((path for path in candidates if path.is_file()), None)
        if env_file is None:
            logger.debug("No .env file found")
            return
        # Variables already present in the environment win over the file
        load_dotenv(env_file, override=False)
        logger.info(f"Loaded environment from {env_file}")

    def _find_config_file(self) -> Optional[Path]:
        if self._requested_file:
            requested = Path(self._requested_file)
            if requested.is_file():
                return requested
            logger.warning(f"Configuration file not found: {requested}; searching defaults")

        for directory in self._search_dirs():
            for name in self.DEFAULT_CONFIG_FILES:
                candidate = directory / name
                if candidate.is_file():
                    logger.debug(f"Using configuration file {candidate}")
                    return candidate.resolve()
        logger.debug("No configuration file found")
        return None

    def reload(self) -> None:
        """Re-read .env, profile, YAML and environment from scratch."""
        self._cached = None
        self._discover()
        self.load_config(force_reload=True)

    def load_config(self, force_reload: bool = False) -> None:
        """Merge every source into the raw configuration mapping."""
        if self._loaded and not force_reload:
            return

        self._loaded = False
        self._cached = None
        try:
            merged = self.settings_cls().model_dump(exclude={"llm"})
            _deep_merge(self._read_yaml_layers(), merged)
            _deep_merge(self._read_environment(), merged)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigurationError(
                "Configuration loading failed",
                context=self._describe(),
                original_exception=e,
            ) from e

        self._merged = merged
        self._loaded = True
        logger.debug(f"Configuration loaded ({len(merged)} keys)")

    def _read_yaml_layers(self) -> Dict[str, Any]:
        if self._config_file_path is None:
            return {}

        layers = self._read_yaml(self._config_file_path)
        if self.profile:
            base = self._config_file_path
            profile_file = base.with_name(f"{base.stem}.{self.profile}{base.suffix}")
            if profile_file.is_file():
                _deep_merge(self._read_yaml(profile_file), layers)
            else:
                logger.debug(f"No file for profile '{self.profile}': {profile_file}")
        return layers

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        try:
            content = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML format in {path}", context={"config_file": path}, original_exception=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Could not read file {path}", context={"config_file": path}, original_exception=e
            ) from e

        if isinstance(content, dict):
            logger.info(f"Loaded configuration from {path}")
            return content
        if content is not None:
            logger.warning(f"Ignoring {path}: top level is not a mapping")
        return {}

    def _read_environment(self) -> Dict[str, Any]:
        fields = self.settings_cls.model_fields
        values: Dict[str, Any] = {}
        for name, raw in os.environ.items():
            if not name.startswith(self.env_prefix):
                continue
            key = name[len(self.env_prefix) :].lower()
            if key == "profile":
                continue
            if key not in fields:
                logger.debug(f"Ignoring unknown setting {name}")
                continue
            # Lax validation turns "45" into 45 and "yes" into True
            try:
                values[key] = TypeAdapter(fields[key].annotation).validate_python(raw)
            except ValidationError as e:
                logger.warning(f"Ignoring {name}={raw!r}: {e.errors()[0]['msg']}")
        return values

    def _describe(self) -> Dict[str, Any]:
        return {"config_file": self._config_file_path, "profile": self.profile}

    def get_settings(self, overrides: Optional[Dict[str, Any]] = None) -> Settings:
        """
        Validate the merged configuration.

        Overridden results are built fresh each time; the plain result is cached.

        Raises:
            ConfigurationError: If validation fails.
        """
        if not overrides and self._cached is not None:
            return self._cached

        self.load_config()
        data = copy.deepcopy(self._merged)
        if overrides:
            _deep_merge(overrides, data)

        try:
            settings = self.settings_cls.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid configuration: {e}")
            raise ConfigurationError(
                "Configuration validation failed", context=self._describe(), original_exception=e
            ) from e

        if not overrides:
            self._cached = settings
        return settings

    def export_schema_json(self, path: PathLike, indent: int = 2) -> None:
        """Write the settings JSON schema, e.g. for editor completion in ppc-audit.yaml."""
        schema = self.settings_cls.model_json_schema()
        try:
            Path(path).write_text(json.dumps(schema, indent=indent), encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                "Could not write schema file", context={"path": path}, original_exception=e
            ) from e
        logger.info(f"Configuration schema written to {path}")
