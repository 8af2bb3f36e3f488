"""
Plaster Projections — plain-data views of records.

``to_object`` and ``to_json`` both build a plain dict of a record's
declared fields. Each reads its own schema-level option namespace
(``schema.options["to_object"]`` / ``["to_json"]``) and lets inline
options override it.

Options:
    transform   – ``fn(record, result, options) -> result``, applied last
    virtuals    – include virtual fields
    minimize    – drop empty nested records, mappings and collections
    date_to_iso – emit dates as ISO 8601 strings

Nested records are projected with their own schema-level options plus
the caller's inline options minus ``transform``: inline ``virtuals``
reaches nested records, an inline transform does not.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import Model

__all__ = ["project", "resolve_options", "NAMESPACES"]

NAMESPACES = ("to_object", "to_json")


def resolve_options(record: "Model", namespace: str, inline: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    schema_options = type(record).descriptor.options
    resolved: Dict[str, Any] = {"minimize": schema_options.get("minimize", True)}
    resolved.update(schema_options.get(namespace) or {})
    if inline:
        resolved.update(inline)
    return resolved


def project(record: "Model", namespace: str, inline: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the plain projection of ``record``.

    Args:
        record: Record to project
        namespace: ``"to_object"`` or ``"to_json"``
        inline: Options given at the call site

    Returns:
        A new dict; nothing in it aliases the record's internal state.
    """
    if namespace not in NAMESPACES:
        raise ValueError(f"Unknown projection namespace {namespace!r}")

    inline = dict(inline or {})
    options = resolve_options(record, namespace, inline)
    nested_inline = {key: value for key, value in inline.items() if key != "transform"}

    minimize = options.get("minimize", True)
    include_virtuals = bool(options.get("virtuals"))

    result: Dict[str, Any] = {}
    for name, descriptor in type(record).descriptor.fields.items():
        if descriptor.is_virtual:
            if not include_virtuals:
                continue
            value = descriptor.getter(record)
        elif descriptor.invisible:
            continue
        else:
            value = record._state.values.get(name)

        value = _plain(value, namespace, nested_inline, options)
        if _omit(value, minimize):
            continue
        result[name] = value

    for name in record._state.dynamic:
        value = _plain(record._state.values.get(name), namespace, nested_inline, options)
        if _omit(value, minimize):
            continue
        result[name] = value

    transform = options.get("transform")
    if callable(transform):
        result = transform(record, result, options)
    return result


def _omit(value: Any, minimize: bool) -> bool:
    if value is None:
        return True
    return minimize and isinstance(value, (dict, list)) and not value


def _plain(value: Any, namespace: str, nested_inline: Dict[str, Any], options: Mapping[str, Any]) -> Any:
    from .base import Model

    if isinstance(value, Model):
        return project(value, namespace, nested_inline)
    if isinstance(value, Mapping):
        return {key: _plain(item, namespace, nested_inline, options) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item, namespace, nested_inline, options) for item in value]
    if isinstance(value, (datetime.datetime, datetime.date)) and options.get("date_to_iso"):
        return _iso(value)
    return value


def _iso(value: datetime.date) -> str:
    if not isinstance(value, datetime.datetime):
        return value.isoformat()
    if value.utcoffset() == datetime.timedelta(0):
        text = value.replace(tzinfo=None).isoformat(timespec="milliseconds")
        return f"{text}Z"
    return value.isoformat(timespec="milliseconds")
