"""
Plaster Registry — named models and the schema/model entry points.

A ``Plaster`` instance is an independent namespace of models. The package
keeps one shared instance (``plaster.default``); create more when models
must not see each other:

    from plaster import Plaster

    registry = Plaster()
    User = registry.model("User", {"name": str})
    registry.get_model("User") is User     # True
    registry.model_names()                 # ["User"]

Registry-level options are the defaults for every schema created through
``registry.schema()`` and every raw field mapping passed to ``model()``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from ..config import ConfigLoader, PlasterConfig, validate_schema_option
from ..faults import ModelNotFoundFault, ModelRegistrationFault
from .base import Model
from .compile import compile_model
from .schema import Schema

logger = logging.getLogger("plaster.models.registry")

__all__ = ["Plaster", "default"]


class Plaster:
    """
    Registry of compiled models.

    Args:
        options: Default schema options for schemas built through this
            registry
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        self.models: Dict[str, Type[Model]] = {}
        self.options: Dict[str, Any] = {}
        for key, value in (options or {}).items():
            self.set(key, value)

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        env_prefix: str = "PLASTER_",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "Plaster":
        """Registry whose defaults come from ``PLASTER_*`` settings."""
        config: PlasterConfig = ConfigLoader.load(
            env_prefix=env_prefix, env_file=env_file, overrides=overrides
        ).build(PlasterConfig)
        return cls(config.schema_options())

    # ── Options ──────────────────────────────────────────────────────────

    def set(self, key: str, value: Any) -> "Plaster":
        validate_schema_option(key, value)
        self.options[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    # ── Entry points ─────────────────────────────────────────────────────

    def schema(
        self,
        fields: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Schema:
        """New Schema with this registry's defaults under ``options``."""
        return Schema(fields, {**self.options, **(options or {})})

    def model(
        self,
        name: str,
        schema: Schema | Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Type[Model]:
        """
        Compile and register a model.

        If ``name`` is already registered the existing model is returned
        and ``schema`` is ignored.

        Raises:
            ModelRegistrationFault: If ``name`` is not a non-empty string.
        """
        if not isinstance(name, str) or not name:
            raise ModelRegistrationFault(name, "model name must be a non-empty string")

        existing = self.models.get(name)
        if existing is not None:
            logger.debug("Model '%s' already registered; returning existing model", name)
            return existing

        if not isinstance(schema, Schema):
            schema = self.schema(schema, options)

        model = compile_model(schema, options, name=name, registry=self)
        self.models[name] = model
        return model

    def get_model(self, name: str) -> Optional[Type[Model]]:
        return self.models.get(name)

    def require_model(self, name: str) -> Type[Model]:
        model = self.models.get(name)
        if model is None:
            raise ModelNotFoundFault(name)
        return model

    def model_names(self) -> List[str]:
        return list(self.models)

    def reset(self) -> None:
        """Forget every registered model."""
        self.models.clear()

    def __contains__(self, name: str) -> bool:
        return name in self.models

    def __repr__(self) -> str:
        return f"<Plaster models={self.model_names()}>"


default = Plaster()
