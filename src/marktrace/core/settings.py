"""
Configuration for marktrace.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, cast

from marktrace.core.exceptions import ConfigurationError
from marktrace.core.logging import logger


CONFIG_FILE_NAME = ".marktrace"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigValidator:
    """
    Configuration validator.

    Validations:
    1. Feature switches are booleans
    2. Record filters are callables
    3. Log level is a known level
    """

    BOOLEAN_KEYS = (
        ("auto_http", "enabled"),
        ("auto_redis", "enabled"),
        ("auto_measure",),
    )
    FILTER_KEYS = (("auto_http", "filter"), ("auto_redis", "filter"))
    LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

    def validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate complete configuration.

        Raises:
            ConfigurationError: on the first invalid value
        """
        for path in self.BOOLEAN_KEYS:
            value = _get_path(config, path)
            if not isinstance(value, bool):
                logger.error("Invalid boolean setting", key=".".join(path), value=repr(value))
                raise ConfigurationError(
                    f"Setting {'.'.join(path)} must be a boolean, got {value!r}",
                    context={"key": ".".join(path)},
                )

        for path in self.FILTER_KEYS:
            value = _get_path(config, path)
            if value is not None and not callable(value):
                logger.error("Invalid record filter", key=".".join(path))
                raise ConfigurationError(
                    f"Setting {'.'.join(path)} must be callable",
                    context={"key": ".".join(path)},
                )

        level = str(_get_path(config, ("logging", "level")) or "").upper()
        if level not in self.LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {level}", context={"key": "logging.level"}
            )


class Settings:
    """
    Tracing configuration.

    Priority order:
    1. Default values
    2. .marktrace YAML file in the working directory
    3. Environment variables
    4. Keyword overrides (the only way to pass filter callables)
    """

    def __init__(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        config_path: Optional[Path] = None,
    ) -> None:
        self.config_path = config_path if config_path is not None else self._find_config_file()
        self.config = self._load_config(overrides or {})
        self.validator = ConfigValidator()
        self.validator.validate_config(self.config)
        logger.debug(
            "Settings initialized",
            config_source=str(self.config_path) if self.config_path else "defaults",
        )

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            "auto_http": {"enabled": True, "filter": None},
            "auto_redis": {"enabled": False, "filter": None},
            "auto_measure": True,
            "logging": {"level": "INFO", "debug_mode": False},
        }

    def _find_config_file(self) -> Optional[Path]:
        local_config = Path.cwd() / CONFIG_FILE_NAME
        if local_config.is_file():
            return local_config
        return None

    def _load_config(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        config = self._get_default_config()

        if self.config_path is not None:
            try:
                with open(self.config_path, encoding='utf-8') as f:
                    file_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error(
                    "Error reading configuration file", file=str(self.config_path), error=str(e)
                )
                raise ConfigurationError(f"Error reading configuration file: {e}", cause=e)

            if file_config:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        "Configuration file must contain a mapping",
                        context={"file": str(self.config_path)},
                    )
                self._deep_merge(config, file_config)
                logger.debug("Config loaded from file", keys=list(file_config.keys()))

        env_overrides = {
            "MARKTRACE_AUTO_HTTP": ("auto_http", "enabled"),
            "MARKTRACE_AUTO_REDIS": ("auto_redis", "enabled"),
            "MARKTRACE_AUTO_MEASURE": ("auto_measure",),
            "MARKTRACE_LOG_LEVEL": ("logging", "level"),
        }

        for env_key, path_tuple in env_overrides.items():
            env_value = os.getenv(env_key)
            if not env_value:
                continue
            value_to_set: Any = env_value
            if path_tuple != ("logging", "level"):
                value_to_set = _parse_bool(env_key, env_value)
            self._set_nested(config, path_tuple, value_to_set)

        self._deep_merge(config, copy.copy(overrides))

        # "auto_http: false" is shorthand for "auto_http: {enabled: false}"
        for section in ("auto_http", "auto_redis"):
            if isinstance(config.get(section), bool):
                config[section] = {"enabled": config[section], "filter": None}
        return config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> None:
        """Deep merge of dictionaries."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(cast(Dict[str, Any], base[key]), cast(Dict[str, Any], value))
            else:
                base[key] = value

    def _set_nested(self, data: Dict[str, Any], path: tuple[str, ...], value: Any) -> None:
        """Set value at nested path."""
        current = data
        for key in path[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value, dotted paths allowed: "auto_http.enabled"."""
        value = _get_path(self.config, tuple(key.split(".")))
        return default if value is None else value

    def require(self, key: str) -> Any:
        """Get required value or raise ConfigurationError."""
        value = self.get(key)
        if value is None:
            logger.error("Required config missing", key=key)
            raise ConfigurationError(f"Missing required config: {key}")
        return value


def _get_path(data: Dict[str, Any], path: tuple[str, ...]) -> Any:
    current: Any = data
    for part in path:
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return None
    return current


def _parse_bool(env_key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{env_key} must be a boolean, got {value!r}", context={"key": env_key})
