"""
Config system - schema option defaults, validation and environment loading.

Two layers:

* Schema options: the per-schema mapping (``strict``, ``dot_notation``,
  ``to_json`` ...) validated by ``validate_schema_options`` and merged
  over ``DEFAULT_SCHEMA_OPTIONS``.
* Registry defaults: a ``PlasterConfig`` dataclass loaded by
  ``ConfigLoader`` with precedence
  overrides > environment variables > .env file > defaults.

Environment keys use the ``PLASTER_`` prefix::

    PLASTER_STRICT=false
    PLASTER_DOT_NOTATION=no
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import MISSING, asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type

from dotenv import dotenv_values

from .faults import ConfigInvalidFault

logger = logging.getLogger("plaster.config")

__all__ = [
    "DEFAULT_SCHEMA_OPTIONS",
    "PlasterConfig",
    "ConfigLoader",
    "merge_schema_options",
    "validate_schema_options",
]


DEFAULT_SCHEMA_OPTIONS: Dict[str, Any] = {
    "strict": True,
    "dot_notation": True,
    "minimize": True,
    "freeze": True,
    "to_object": {},
    "to_json": {},
    "on_before_value_set": None,
    "on_value_set": None,
}

_BOOL_OPTIONS = ("strict", "dot_notation", "minimize", "freeze")
_PROJECTION_OPTIONS = ("to_object", "to_json")
_CALLBACK_OPTIONS = ("on_before_value_set", "on_value_set")


def validate_schema_option(key: str, value: Any) -> None:
    """Raise ConfigInvalidFault if ``value`` is the wrong shape for ``key``."""
    if key in _BOOL_OPTIONS and not isinstance(value, bool):
        raise ConfigInvalidFault(key, f"expected bool, got {type(value).__name__}")
    if key in _PROJECTION_OPTIONS:
        if not isinstance(value, Mapping):
            raise ConfigInvalidFault(key, f"expected a mapping, got {type(value).__name__}")
        transform = value.get("transform")
        if transform is not None and not callable(transform):
            raise ConfigInvalidFault(f"{key}.transform", "expected a callable")
    if key in _CALLBACK_OPTIONS and value is not None and not callable(value):
        raise ConfigInvalidFault(key, "expected a callable or None")


def validate_schema_options(options: Mapping[str, Any]) -> None:
    for key, value in options.items():
        validate_schema_option(key, value)


def merge_schema_options(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge option layers over the defaults, later layers winning.

    Projection namespaces are copied so schemas never share them.
    """
    merged: Dict[str, Any] = dict(DEFAULT_SCHEMA_OPTIONS)
    for layer in layers:
        if not layer:
            continue
        validate_schema_options(layer)
        merged.update(layer)
    for key in _PROJECTION_OPTIONS:
        merged[key] = dict(merged[key])
    return merged


@dataclass
class PlasterConfig:
    """Registry-wide schema defaults."""

    strict: bool = True
    dot_notation: bool = True
    minimize: bool = True
    freeze: bool = True

    def schema_options(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > defaults
    """

    def __init__(self, env_prefix: str = "PLASTER_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        env_prefix: str = "PLASTER_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from every source.

        Args:
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_env_file(self, path: str):
        """Load config from .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert PLASTER_TO_JSON__VIRTUALS to a nested dict."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nesting levels
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)
        logger.debug("Config %s%s picked up", self.env_prefix, key)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: Mapping):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, Mapping):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def to_dict(self) -> dict:
        return dict(self.config_data)

    def build(self, config_class: Type = PlasterConfig):
        """Instantiate a dataclass config from the loaded data, type-checking each field."""
        kwargs = {}
        for field_info in fields(config_class):
            name = field_info.name
            if name in self.config_data:
                value = self.config_data[name]
                expected = field_info.type
                if isinstance(expected, str):
                    expected = {"bool": bool, "int": int, "str": str, "float": float}.get(expected, object)
                if not isinstance(value, expected):
                    raise ConfigInvalidFault(
                        name, f"expected {getattr(expected, '__name__', expected)}, got {type(value).__name__}"
                    )
                kwargs[name] = value
            elif field_info.default is not MISSING:
                kwargs[name] = field_info.default
            elif field_info.default_factory is not MISSING:
                kwargs[name] = field_info.default_factory()
        return config_class(**kwargs)
