"""
Plaster Type Coercion Engine.

``typecast(value, previous, descriptor)`` turns a raw value into the value
a field stores, or raises ``SetterRejection``. It keeps no state of its
own; the ``record`` argument only supplies the owner for typed
collections and the registry for lazy ``model_name`` references.

Order of operations for every type:

1. ``transform(value, previous, descriptor)`` if the field has one
2. type-specific coercion and constraint checks
3. ``validate(value)`` if the field has one and the result is not None

The caller (the record write path) catches the rejection and records it.
"""

from __future__ import annotations

import datetime
import decimal
import email.utils
import math
import numbers
import re
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from ..faults import SetterRejection
from .fields import FieldDescriptor, FieldType

if TYPE_CHECKING:
    from .base import Model

__all__ = ["typecast", "resolve_object_type", "parse_date"]


_CONTAINERS = (Mapping, list, tuple, set, frozenset)

# Calendar layouts tried after ISO 8601 and RFC 2822.
_DATE_FORMATS = (
    "%B %d, %Y %H:%M:%S",
    "%B %d, %Y %H:%M",
    "%B %d, %Y",
    "%b %d, %Y %H:%M:%S",
    "%b %d, %Y",
    "%d %B %Y %H:%M:%S",
    "%d %B %Y",
    "%d %b %Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%a %b %d %Y %H:%M:%S",
    "%a %b %d %Y",
)


def typecast(
    value: Any,
    previous: Any,
    descriptor: FieldDescriptor,
    record: Optional["Model"] = None,
) -> Any:
    """
    Coerce ``value`` for storage in the field described by ``descriptor``.

    Args:
        value: Raw incoming value
        previous: Value currently stored in the field
        descriptor: Normalized field descriptor
        record: Record that owns the field

    Returns:
        The coerced value. ``None`` means the field is cleared.

    Raises:
        SetterRejection: If the value cannot be coerced or violates a
            declared constraint.
    """
    if descriptor.transform is not None:
        value = descriptor.transform(value, previous, descriptor)

    caster = _CASTERS.get(descriptor.type, _cast_any)
    value = caster(value, previous, descriptor, record)

    if descriptor.validate is not None and value is not None:
        _run_validator(value, previous, descriptor)
    return value


def _reject(message: str, value: Any, previous: Any, descriptor: FieldDescriptor):
    raise SetterRejection(message, value, previous, descriptor)


def _run_validator(value: Any, previous: Any, descriptor: FieldDescriptor) -> None:
    try:
        ok = descriptor.validate(value)
    except (TypeError, ValueError) as exc:
        raise SetterRejection(
            f"Value failed custom validation: {exc}", value, previous, descriptor
        ) from exc
    if not ok:
        _reject("Value failed custom validation.", value, previous, descriptor)


# ── string ───────────────────────────────────────────────────────────────────


def stringify(value: Any) -> str:
    """Text form of a scalar, matching how the engine compares lengths."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


def _cast_string(value, previous, descriptor, record):
    if isinstance(value, _CONTAINERS):
        _reject("String type cannot typecast Object or Array types.", value, previous, descriptor)

    if value is None:
        return None

    value = stringify(value)

    if descriptor.string_transform is not None:
        value = descriptor.string_transform(value, previous, descriptor)

    if descriptor.clip and descriptor.max_length is not None:
        value = value[: descriptor.max_length]

    if descriptor.enum is not None and value not in descriptor.enum:
        _reject("String does not exist in enum list.", value, previous, descriptor)

    if descriptor.min_length is not None and len(value) < descriptor.min_length:
        _reject("String length too short to meet min_length requirement.", value, previous, descriptor)

    if descriptor.max_length is not None and len(value) > descriptor.max_length:
        _reject("String length too long to meet max_length requirement.", value, previous, descriptor)

    if descriptor.regex is not None and re.search(descriptor.regex, value) is None:
        _reject("String does not match regular expression pattern.", value, previous, descriptor)

    return value


# ── number ───────────────────────────────────────────────────────────────────


def _parse_number(text: str):
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return None


def _cast_number(value, previous, descriptor, record):
    if value is None or (isinstance(value, str) and value == ""):
        return None

    if isinstance(value, bool):
        _reject("Number type cannot typecast Boolean types.", value, previous, descriptor)

    if isinstance(value, str):
        parsed = _parse_number(value)
        if parsed is None:
            _reject("Number type cannot typecast non-numeric strings.", value, previous, descriptor)
        value = parsed
    elif not isinstance(value, (numbers.Real, decimal.Decimal)):
        _reject("Number type cannot typecast Array or Object types.", value, previous, descriptor)

    if isinstance(value, decimal.Decimal):
        finite = value.is_finite()
    else:
        finite = not isinstance(value, float) or math.isfinite(value)
    if not finite:
        _reject("Number type cannot store NaN or Infinity.", value, previous, descriptor)

    if descriptor.number_transform is not None:
        value = descriptor.number_transform(value, previous, descriptor)

    if descriptor.min is not None and value < descriptor.min:
        _reject("Number is too small to meet min requirement.", value, previous, descriptor)

    if descriptor.max is not None and value > descriptor.max:
        _reject("Number is too big to meet max requirement.", value, previous, descriptor)

    return value


# ── boolean ──────────────────────────────────────────────────────────────────


def _cast_boolean(value, previous, descriptor, record):
    if value is None or (isinstance(value, str) and value == ""):
        return None

    if isinstance(value, str):
        lowered = value.lower()
        if lowered == "false":
            return False
        if lowered == "true":
            return True
        _reject("Cannot typecast to Boolean.", value, previous, descriptor)

    if not isinstance(value, bool):
        _reject("Cannot typecast to Boolean.", value, previous, descriptor)

    if descriptor.boolean_transform is not None:
        value = descriptor.boolean_transform(value, previous, descriptor)

    return value


# ── array ────────────────────────────────────────────────────────────────────


def _cast_array(value, previous, descriptor, record):
    from .collection import TypedCollection

    if isinstance(value, Mapping):
        value = list(value.values())
    elif isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        value = list(value)
    else:
        _reject("Array type cannot typecast non-Array types.", value, previous, descriptor)

    # The collection is never replaced; its contents are.
    if isinstance(previous, TypedCollection):
        collection = previous
    else:
        collection = TypedCollection(record, descriptor)
    if not collection.replace(value):
        # Element rejections are already on the owner's error list.
        raise SetterRejection(
            "Array contains values that cannot be typecast.",
            value,
            previous,
            descriptor,
            recorded=True,
        )
    return collection


# ── object ───────────────────────────────────────────────────────────────────


def resolve_object_type(descriptor: FieldDescriptor, record: Optional["Model"] = None) -> Optional[type]:
    """The model class for an object field, resolving ``model_name`` lazily."""
    if descriptor.object_type is not None:
        return descriptor.object_type
    if descriptor.model_name is None:
        return None
    registry = getattr(type(record), "registry", None) if record is not None else None
    if registry is None:
        from .registry import default

        registry = default
    return registry.get_model(descriptor.model_name)


def _cast_object(value, previous, descriptor, record):
    from .base import Model

    if not isinstance(value, Mapping):
        _reject("Object type cannot typecast non-Object types.", value, previous, descriptor)

    object_type = resolve_object_type(descriptor, record)
    if object_type is None:
        if descriptor.model_name is not None:
            _reject(
                f"Model '{descriptor.model_name}' is not registered.", value, previous, descriptor
            )
        return value

    if value is previous:
        return previous

    items = list(value.items())
    if isinstance(previous, Model):
        target = previous
        target.clear()
    else:
        target = object_type()

    for key, item in items:
        target.set(key, item)
    return target


# ── date ─────────────────────────────────────────────────────────────────────


def parse_date(text: str) -> Optional[datetime.datetime]:
    """
    Parse a calendar date string.

    Tries ISO 8601 first (a trailing ``Z`` is read as UTC), then RFC 2822,
    then the layouts in ``_DATE_FORMATS``. Returns None if nothing fits.
    """
    text = text.strip()
    if not text:
        return None

    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.datetime.fromisoformat(iso)
    except ValueError:
        pass

    try:
        return email.utils.parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass

    for layout in _DATE_FORMATS:
        try:
            return datetime.datetime.strptime(text, layout)
        except ValueError:
            continue
    return None


def _from_timestamp(value: numbers.Real) -> Optional[datetime.datetime]:
    # Ten characters or fewer is epoch seconds, anything longer milliseconds.
    seconds = value if len(stringify(value)) <= 10 else value / 1000
    try:
        return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _cast_date(value, previous, descriptor, record):
    if value is None or (isinstance(value, str) and value == ""):
        return None

    if isinstance(value, bool) or not isinstance(
        value, (datetime.date, str, numbers.Real)
    ):
        _reject("Date type cannot typecast Array or Object types.", value, previous, descriptor)

    if isinstance(value, str):
        parsed = parse_date(value)
    elif isinstance(value, datetime.date):
        parsed = value
    else:
        parsed = _from_timestamp(value)

    if parsed is None:
        _reject("Could not parse date.", value, previous, descriptor)

    if descriptor.date_transform is not None:
        parsed = descriptor.date_transform(parsed, previous, descriptor)

    return parsed


# ── any ──────────────────────────────────────────────────────────────────────


def _cast_any(value, previous, descriptor, record):
    return value


_CASTERS: Dict[FieldType, Callable[..., Any]] = {
    FieldType.STRING: _cast_string,
    FieldType.NUMBER: _cast_number,
    FieldType.BOOLEAN: _cast_boolean,
    FieldType.ARRAY: _cast_array,
    FieldType.OBJECT: _cast_object,
    FieldType.DATE: _cast_date,
    FieldType.ANY: _cast_any,
}
