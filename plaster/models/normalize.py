"""
Plaster Descriptor Normalizer — shorthand schema input to FieldDescriptors.

Accepted shapes for a field:

    name = str                                  # bare type
    tags = [str]                                # one-element list → array
    profile = {"email": str, "age": int}        # nested shape → object
    email = {"type": str, "max_length": 255}    # explicit descriptor
    owner = User                                # compiled model → object
    site = {"type": Model, "model_name": "Site"}  # lazy model reference

The normalizer resolves shape and type only. Every modifier other than
``type`` is copied through untouched; constraint semantics live in the
typecast engine.
"""

from __future__ import annotations

import datetime
import decimal
import typing
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..faults import DescriptorFault
from .base import RESERVED_NAMES, Model
from .fields import DESCRIPTOR_OPTIONS, FieldDescriptor, FieldType

__all__ = ["normalize", "normalize_fields", "TYPE_MAP"]


TYPE_MAP: Dict[Any, FieldType] = {
    str: FieldType.STRING,
    int: FieldType.NUMBER,
    float: FieldType.NUMBER,
    decimal.Decimal: FieldType.NUMBER,
    bool: FieldType.BOOLEAN,
    datetime.datetime: FieldType.DATE,
    datetime.date: FieldType.DATE,
    dict: FieldType.OBJECT,
    list: FieldType.ARRAY,
    tuple: FieldType.ARRAY,
    object: FieldType.ANY,
    typing.Any: FieldType.ANY,
}

_TAGS = {tag.value: tag for tag in FieldType}

# Options a nested shape inherits from the schema that declares it.
_INHERITED_OPTIONS = ("strict", "dot_notation")


def normalize(raw: Any, name: str, options: Optional[Mapping[str, Any]] = None) -> FieldDescriptor:
    """
    Translate one raw field declaration into a canonical FieldDescriptor.

    Args:
        raw: Bare type, one-element list, nested shape, explicit mapping
             with ``type``, or an existing FieldDescriptor
        name: Field name
        options: Options of the declaring schema (nested shapes inherit
                 ``strict`` and ``dot_notation`` from it)

    Raises:
        DescriptorFault: For unsupported type references or malformed
            virtual definitions.
    """
    options = options or {}

    if isinstance(raw, FieldDescriptor):
        return raw.renamed(name)

    if isinstance(raw, Mapping):
        if "type" not in raw:
            return FieldDescriptor(name=name, **_nested(raw, name, options))
        return _explicit(raw, name, options)

    return FieldDescriptor(name=name, **_resolve_type(raw, name, options))


def normalize_fields(
    fields: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None
) -> Dict[str, FieldDescriptor]:
    """Normalize a whole field table, checking field names as we go."""
    out: Dict[str, FieldDescriptor] = {}
    for name, raw in fields.items():
        check_field_name(name)
        out[name] = normalize(raw, name, options)
    return out


def check_field_name(name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise DescriptorFault(f"Field name must be a non-empty string, got {name!r}", name=repr(name))
    if name.startswith("_"):
        raise DescriptorFault(f"Field name '{name}' cannot start with an underscore", name=name)
    if name in RESERVED_NAMES:
        raise DescriptorFault(
            f"Field name '{name}' collides with the model API; use item access for it instead",
            name=name,
        )


# ── Type resolution ─────────────────────────────────────────────────────────


def _resolve_type(ref: Any, name: str, options: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the structural descriptor attributes for a type reference."""
    if ref is None:
        return {"type": FieldType.ANY}

    if isinstance(ref, type) and issubclass(ref, Model):
        if ref is Model:
            # Bare base class: resolved through ``model_name`` at write time.
            return {"type": FieldType.OBJECT}
        return {"type": FieldType.OBJECT, "object_type": ref}

    if isinstance(ref, FieldType):
        return {"type": ref}

    if isinstance(ref, str):
        tag = _TAGS.get(ref.lower())
        if tag is None:
            raise DescriptorFault(f"Unknown type tag '{ref}' for field '{name}'", name=name)
        return {"type": tag}

    if isinstance(ref, Mapping):
        return _nested(ref, name, options)

    if isinstance(ref, (list, tuple)):
        return _array(ref, name, options)

    try:
        tag = TYPE_MAP.get(ref)
    except TypeError:
        tag = None
    if tag is None:
        raise DescriptorFault(f"Unsupported type {ref!r} for field '{name}'", name=name)
    return {"type": tag}


def _array(shape: Any, name: str, options: Mapping[str, Any]) -> Dict[str, Any]:
    if len(shape) == 0:
        return {"type": FieldType.ARRAY}
    if len(shape) > 1:
        raise DescriptorFault(
            f"Array shorthand for field '{name}' takes exactly one element type, got {len(shape)}",
            name=name,
        )
    return {"type": FieldType.ARRAY, "array_type": normalize(shape[0], name, options)}


def _nested(shape: Mapping[str, Any], name: str, options: Mapping[str, Any]) -> Dict[str, Any]:
    """Compile a nested shape into a synthetic model class."""
    from .compile import compile_model
    from .schema import Schema

    inherited = {key: options[key] for key in _INHERITED_OPTIONS if key in options}
    schema = Schema(shape, inherited)
    nested = compile_model(schema, {"freeze": False}, name=name, synthetic=True)
    return {"type": FieldType.OBJECT, "object_type": nested}


def _explicit(raw: Mapping[str, Any], name: str, options: Mapping[str, Any]) -> FieldDescriptor:
    modifiers = dict(raw)
    params = _resolve_type(modifiers.pop("type"), name, options)
    modifiers.pop("name", None)

    # ``get``/``set`` or ``virtual={"get": ..., "set": ...}`` declare a virtual.
    virtual = modifiers.pop("virtual", False)
    if isinstance(virtual, Mapping):
        modifiers.setdefault("getter", virtual.get("get"))
        modifiers.setdefault("setter", virtual.get("set"))
        virtual = True
    if "get" in modifiers:
        modifiers["getter"] = modifiers.pop("get")
        virtual = True
    if "set" in modifiers:
        modifiers["setter"] = modifiers.pop("set")
    if virtual:
        getter = modifiers.get("getter")
        if not callable(getter):
            raise DescriptorFault(f"Virtual field '{name}' requires a callable getter", name=name)
        modifiers["virtual"] = True
        modifiers.setdefault("invisible", True)
        if modifiers.get("setter") is None:
            modifiers["read_only"] = True

    known = {key: value for key, value in modifiers.items() if key in DESCRIPTOR_OPTIONS}
    extra = {key: value for key, value in modifiers.items() if key not in DESCRIPTOR_OPTIONS}

    for key in ("array_type", "object_type"):
        if known.get(key) is None:
            known.pop(key, None)
    if "array_type" in known and not isinstance(known["array_type"], FieldDescriptor):
        known["array_type"] = normalize(known["array_type"], name, options)

    object_type = known.get("object_type")
    if object_type is not None and not (isinstance(object_type, type) and issubclass(object_type, Model)):
        raise DescriptorFault(f"object_type for field '{name}' must be a compiled model", name=name)

    params.update(known)
    return FieldDescriptor(name=name, extra=MappingProxyType(extra), **params)
