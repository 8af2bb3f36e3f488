"""
Plaster Field Descriptors — canonical, immutable field definitions.

Every schema field, whatever shorthand it was declared with, ends up as a
``FieldDescriptor``. The descriptor's ``type`` is always one of the
canonical ``FieldType`` tags; the normalizer never leaves a Python type
object in that slot.

    FieldDescriptor(type=FieldType.STRING, name="email", max_length=255)

Modifiers the engine does not know about are kept verbatim in ``extra``.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

__all__ = ["FieldType", "FieldDescriptor", "UNSET", "DESCRIPTOR_OPTIONS"]


# ── Sentinel ─────────────────────────────────────────────────────────────────

class _Unset:
    """Sentinel for distinguishing 'not supplied' from None."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "<UNSET>"

    def __bool__(self):
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNSET = _Unset()


# ── Field Types ──────────────────────────────────────────────────────────────


class FieldType(str, Enum):
    """Canonical type tags."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"
    ANY = "any"

    def __str__(self) -> str:
        return self.value


# ── Descriptor ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Canonical representation of one schema field.

    Constraint modifiers:
        min_length / max_length – string length bounds
        min / max               – numeric bounds
        regex                   – pattern (str or compiled) the string must contain
        enum                    – allowed string values
        clip                    – truncate strings to max_length instead of rejecting
        unique                  – array fields skip values already present
        validate                – predicate run after coercion

    Transform hooks, each ``fn(value, previous, descriptor) -> value``:
        transform, string_transform, number_transform,
        boolean_transform, date_transform

    Structure:
        object_type  – compiled model class for nested records
        model_name   – registry name resolved lazily into an object type
        array_type   – element descriptor for array fields

    Visibility:
        invisible    – omitted from projections
        read_only    – writes are ignored after construction
        virtual      – computed via ``getter`` (and optional ``setter``)

    Metadata (informational only): key, prefix, generate, default.
    """

    type: FieldType = FieldType.ANY
    name: Optional[str] = None

    # Constraints
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Any = None
    max: Any = None
    regex: Any = None
    enum: Optional[Sequence[Any]] = None
    clip: bool = False
    unique: bool = False
    validate: Optional[Callable[[Any], Any]] = None

    # Transforms
    transform: Optional[Callable[..., Any]] = None
    string_transform: Optional[Callable[..., Any]] = None
    number_transform: Optional[Callable[..., Any]] = None
    boolean_transform: Optional[Callable[..., Any]] = None
    date_transform: Optional[Callable[..., Any]] = None

    # Structure
    object_type: Optional[type] = None
    model_name: Optional[str] = None
    array_type: Optional["FieldDescriptor"] = None

    # Visibility
    invisible: bool = False
    read_only: bool = False
    virtual: bool = False
    getter: Optional[Callable[[Any], Any]] = None
    setter: Optional[Callable[[Any, Any], Any]] = None

    # Metadata
    default: Any = UNSET
    key: bool = False
    prefix: Optional[str] = None
    generate: Any = None

    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    # -- helpers --------------------------------------------------------------

    @property
    def is_virtual(self) -> bool:
        return self.virtual and self.getter is not None

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET

    def get_default(self) -> Any:
        if self.default is UNSET:
            return None
        if callable(self.default):
            return self.default()
        # Each record gets its own copy of a mutable default.
        return copy.deepcopy(self.default)

    def option(self, key: str, default: Any = None) -> Any:
        """Read a modifier by name, falling back to ``extra``."""
        if key in DESCRIPTOR_OPTIONS:
            return getattr(self, key)
        return self.extra.get(key, default)

    def renamed(self, name: str) -> "FieldDescriptor":
        return dataclasses.replace(self, name=name)

    def __deepcopy__(self, memo) -> "FieldDescriptor":
        values = {
            f.name: copy.deepcopy(getattr(self, f.name), memo)
            for f in dataclasses.fields(self)
            if f.name != "extra"
        }
        return type(self)(extra=MappingProxyType(copy.deepcopy(dict(self.extra), memo)), **values)

    def to_dict(self) -> Dict[str, Any]:
        """Only the attributes that differ from their defaults."""
        out: Dict[str, Any] = {"type": self.type.value}
        for f in dataclasses.fields(self):
            if f.name in ("type", "extra"):
                continue
            value = getattr(self, f.name)
            default = f.default if f.default is not dataclasses.MISSING else None
            if value is default or value == default:
                continue
            if isinstance(value, FieldDescriptor):
                value = value.to_dict()
            out[f.name] = value
        out.update(self.extra)
        return out

    def __repr__(self) -> str:
        return f"<FieldDescriptor {self.name!r} type={self.type.value}>"


DESCRIPTOR_OPTIONS = frozenset(
    f.name for f in dataclasses.fields(FieldDescriptor) if f.name != "extra"
)
