"""Configuration loader with multi-source support.

Sources are merged in priority order (later wins):

1. ``defaults.toml`` (explicit path, or ``./config/defaults.toml``)
2. System config (``/etc/<app>/config.toml`` or ``%PROGRAMDATA%``)
3. User config (``platformdirs`` user config dir)
4. Environment variables ``<APP>_<SECTION>_<KEY>``
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


def expand_path_variables(path: str) -> str:
    """Expand ``${VAR}`` placeholders in a configured path.

    Supported variables:
        ${USER_HOME}: User's home directory
        ${USER_DATA}: User data directory
        ${USER_CACHE}: User cache directory
        ${TEMP}: Temporary directory

    Args:
        path: Path string with variables

    Returns:
        Expanded path string
    """
    if not isinstance(path, str):
        return path

    replacements = {
        "${USER_HOME}": str(Path.home()),
        "${USER_DATA}": platformdirs.user_data_dir(),
        "${USER_CACHE}": platformdirs.user_cache_dir(),
        "${TEMP}": tempfile.gettempdir(),
    }
    for var, value in replacements.items():
        path = path.replace(var, value)

    return path


class ConfigLoader(Generic[T]):
    """Loads configuration from multiple sources with priority."""

    def __init__(self, app_name: str, config_class: Type[T]) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self._config: Optional[T] = None

    def load(self, defaults_path: Optional[Path] = None) -> T:
        """Load and validate configuration from all sources.

        Args:
            defaults_path: Optional path to a defaults.toml file

        Returns:
            Validated configuration object

        Raises:
            pydantic.ValidationError: If the merged configuration is invalid
        """
        config_dict = self._load_defaults(defaults_path)

        for extra in (self._load_system_config(), self._load_user_config()):
            if extra:
                config_dict = self._deep_merge(config_dict, extra)

        config_dict = self._apply_env_overrides(config_dict)

        self._config = self.config_class(**config_dict)
        return self._config

    def _load_defaults(self, defaults_path: Optional[Path] = None) -> Dict[str, Any]:
        """Load the defaults file, if one can be found."""
        candidates = []
        if defaults_path:
            candidates.append(defaults_path)
        candidates.append(Path.cwd() / "config" / "defaults.toml")

        for path in candidates:
            if path.exists():
                logger.debug(f"Loading defaults: {{'path': {str(path)!r}}}")
                return toml.load(path)

        return {}

    def _load_system_config(self) -> Optional[Dict[str, Any]]:
        """Load system-wide configuration."""
        if os.name == "nt":
            system_path = (
                Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
                / self.app_name
                / "config.toml"
            )
        else:
            system_path = Path(f"/etc/{self.app_name}/config.toml")

        if system_path.exists():
            logger.debug(f"Loading system config: {{'path': {str(system_path)!r}}}")
            return toml.load(system_path)

        return None

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        """Load user-specific configuration."""
        user_config_dir = platformdirs.user_config_dir(appname=self.app_name, appauthor=False)
        user_config_path = Path(user_config_dir) / "config.toml"

        if user_config_path.exists():
            logger.debug(f"Loading user config: {{'path': {str(user_config_path)!r}}}")
            return toml.load(user_config_path)

        return None

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Override config with environment variables.

        ``GPHOTOS_MIGRATE_MIGRATION_USE_EXIFTOOL=false`` sets
        ``config["migration"]["use_exiftool"]``: the first segment after the
        prefix names the section, the rest is the key.
        """
        prefix = f"{self.app_name.upper().replace('-', '_')}_"

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(prefix):
                continue

            section, _, key = env_key[len(prefix):].lower().partition("_")
            if not section or not key:
                continue

            config.setdefault(section, {})
            if not isinstance(config[section], dict):
                continue
            config[section][key] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert string environment variable to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if "," in value:
            return [v.strip() for v in value.split(",")]

        return value

    @property
    def config(self) -> T:
        """Get loaded configuration."""
        if self._config is None:
            self._config = self.load()
        return self._config
