"""
Plaster Schema — mutable builder for model definitions.

A Schema collects fields, instance methods, statics, virtuals and queued
hook registrations, then ``compile()`` freezes all of it into a
``ModelDescriptor`` for the model compiler.

Usage:
    from plaster.models.schema import Schema

    user_schema = Schema({
        "first_name": str,
        "last_name": str,
        "email": {"type": str, "max_length": 255},
        "tags": [str],
        "profile": {"age": int, "city": str},
    }, {"strict": True})

    user_schema.method("greet", lambda self: f"Hi {self.first_name}")
    user_schema.virtual("full_name", get=lambda u: f"{u.first_name} {u.last_name}")
    user_schema.pre("save", stamp_updated_at)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..config import merge_schema_options, validate_schema_option
from ..faults import DescriptorFault
from .fields import FieldDescriptor
from .normalize import check_field_name, normalize

__all__ = ["Schema", "ModelDescriptor", "HookRegistration"]


@dataclass(frozen=True)
class HookRegistration:
    """One queued ``pre``/``post`` request against a method name."""

    phase: str
    target: str
    handler: Callable


@dataclass(frozen=True)
class ModelDescriptor:
    """Immutable snapshot of a schema, consumed by the model compiler and records."""

    fields: Mapping[str, FieldDescriptor]
    methods: Mapping[str, Callable]
    statics: Mapping[str, Callable]
    hooks: Tuple[HookRegistration, ...]
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


class Schema:
    """
    Builder for a model definition.

    Args:
        fields: Mapping of field name to raw declaration (see
            ``plaster.models.normalize``)
        options: Schema options; see ``plaster.config.DEFAULT_SCHEMA_OPTIONS``
    """

    def __init__(
        self,
        fields: Optional[Mapping[str, Any]] = None,
        options: Optional[Mapping[str, Any]] = None,
    ):
        self.options: Dict[str, Any] = merge_schema_options(options)
        self._fields: Dict[str, FieldDescriptor] = {}
        self.methods: Dict[str, Callable] = {}
        self.statics: Dict[str, Callable] = {}
        self.call_queue: List[HookRegistration] = []

        if fields is not None:
            self.add(fields)

    @property
    def fields(self) -> Mapping[str, FieldDescriptor]:
        return MappingProxyType(self._fields)

    # ── Fields ───────────────────────────────────────────────────────────

    def add(self, key: Any, descriptor: Any = None) -> "Schema":
        """
        Add one field, or every field of a mapping.

            schema.add("age", {"type": int, "min": 0})
            schema.add({"age": int, "name": str})
        """
        if isinstance(key, Mapping) and descriptor is None:
            for name, raw in key.items():
                self.add(name, raw)
            return self

        check_field_name(key)
        self._fields[key] = normalize(descriptor, key, self.options)
        return self

    def virtual(
        self,
        name: str,
        field_type: Any = "any",
        options: Optional[Mapping[str, Any]] = None,
        **accessors: Callable,
    ) -> "Schema":
        """
        Add a computed field.

            schema.virtual("full_name", get=lambda u: ..., set=lambda u, v: ...)
            schema.virtual("age", int, {"get": compute_age})

        A virtual without a setter is read-only. Setters receive the raw
        value; virtual values are not coerced.
        """
        if isinstance(field_type, Mapping) and options is None:
            options, field_type = field_type, "any"
        if options is not None and not isinstance(options, Mapping):
            raise DescriptorFault(f"Virtual '{name}' options must be a mapping", name=str(name))

        declared = {**(options or {}), **accessors}
        getter = declared.get("get")
        setter = declared.get("set")
        if not isinstance(name, str):
            raise DescriptorFault(f"Virtual name must be a string, got {name!r}", name=repr(name))
        if not callable(getter):
            raise DescriptorFault(f"Virtual '{name}' requires a callable 'get'", name=name)
        if setter is not None and not callable(setter):
            raise DescriptorFault(f"Virtual '{name}' setter must be callable", name=name)

        check_field_name(name)
        raw = {"type": field_type, "get": getter}
        if setter is not None:
            raw["set"] = setter
        self._fields[name] = normalize(raw, name, self.options)
        return self

    # ── Methods & statics ────────────────────────────────────────────────

    def method(self, name: Any, func: Optional[Callable] = None) -> "Schema":
        """Add an instance method (``func(self, ...)``), or a mapping of them."""
        self._register(self.methods, "method", name, func)
        return self

    def static(self, name: Any, func: Optional[Callable] = None) -> "Schema":
        """Add a static, bound to the model class (``func(cls, ...)``)."""
        self._register(self.statics, "static", name, func)
        return self

    def _register(self, table: Dict[str, Callable], kind: str, name: Any, func: Any) -> None:
        if isinstance(name, Mapping) and func is None:
            for key, value in name.items():
                self._register(table, kind, key, value)
            return
        if not isinstance(name, str):
            raise DescriptorFault(f"{kind.title()} name must be a string, got {name!r}", name=repr(name))
        if not callable(func):
            raise DescriptorFault(f"{kind.title()} '{name}' must be a function", name=name)
        table[name] = func

    # ── Options ──────────────────────────────────────────────────────────

    def set(self, key: str, value: Any) -> "Schema":
        validate_schema_option(key, value)
        if key in ("to_object", "to_json"):
            value = dict(value)
        self.options[key] = value
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    # ── Hooks ────────────────────────────────────────────────────────────

    def pre(self, target: str, handler: Callable) -> "Schema":
        self._queue("pre", target, handler)
        return self

    def post(self, target: str, handler: Callable) -> "Schema":
        self._queue("post", target, handler)
        return self

    def _queue(self, phase: str, target: Any, handler: Any) -> None:
        if not isinstance(target, str):
            raise DescriptorFault(f"Hook target must be a method name, got {target!r}", name=repr(target))
        if not callable(handler):
            raise DescriptorFault(f"{phase} hook for '{target}' must be a function", name=target)
        self.call_queue.append(HookRegistration(phase, target, handler))

    # ── Composition ──────────────────────────────────────────────────────

    def extend(self, other: "Schema") -> "Schema":
        """
        Inherit from ``other``.

        Fields this schema lacks are deep-copied in, missing methods and
        statics are shared by reference, and ``other``'s hook queue runs
        ahead of this schema's own.
        """
        if not isinstance(other, Schema):
            raise DescriptorFault(f"Schema can only extend another Schema, got {type(other).__name__}")

        for name, descriptor in other._fields.items():
            if name not in self._fields:
                self.add(name, copy.deepcopy(descriptor))

        for name, func in other.statics.items():
            self.statics.setdefault(name, func)
        for name, func in other.methods.items():
            self.methods.setdefault(name, func)

        self.call_queue[:0] = other.call_queue
        return self

    def compile(self) -> ModelDescriptor:
        """Freeze the current definition into a ModelDescriptor."""
        options = dict(self.options)
        for key in ("to_object", "to_json"):
            options[key] = MappingProxyType(dict(options[key]))
        return ModelDescriptor(
            fields=MappingProxyType(dict(self._fields)),
            methods=MappingProxyType(dict(self.methods)),
            statics=MappingProxyType(dict(self.statics)),
            hooks=tuple(self.call_queue),
            options=MappingProxyType(options),
        )

    def __repr__(self) -> str:
        return f"<Schema fields={list(self._fields)}>"
