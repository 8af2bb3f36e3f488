"""
Plaster Model — the record runtime behind every compiled model.

A compiled model class carries a ``ModelDescriptor`` (fields, options,
methods, statics, hooks). Instances keep their values in private state
that is never enumerable; every declared field is reached through a
``FieldProperty`` installed by the compiler, and every write, whatever
the entry point, goes through one write path:

    user = User({"first_name": "Joe", "age": "42"})
    user.age                 # 42, coerced
    user.age = True          # rejected, recorded, age stays 42
    user["profile.email"] = "joe@example.com"   # dot notation
    user.get_errors()        # [SetterRejection(...)]

Records are ``MutableMapping``s: iteration yields the populated fields in
declared order followed by dynamic (non-strict) slots, and records
compare equal to any mapping with the same items.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from ..faults import SetterRejection, WriteAbortedFault
from .collection import TypedCollection
from .fields import UNSET, FieldDescriptor, FieldType
from .metaclass import ModelMeta
from .projection import project
from .typecast import resolve_object_type, typecast

if TYPE_CHECKING:
    from .schema import ModelDescriptor, Schema

logger = logging.getLogger("plaster.models.base")

__all__ = ["Model", "FieldProperty", "RESERVED_NAMES"]


class _RecordState:
    """Private per-instance bookkeeping, kept apart from field values."""

    __slots__ = ("values", "errors", "dynamic", "initializing")

    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.errors: List[Exception] = []
        # Dynamic slots admitted by non-strict writes: name -> descriptor
        self.dynamic: Dict[str, FieldDescriptor] = {}
        self.initializing = False


class FieldProperty:
    """
    Data descriptor for one declared field.

    Reads go through ``Model.get`` and writes through ``Model.set``, so
    attribute access and item access behave identically.
    """

    __slots__ = ("name", "field")

    def __init__(self, field: FieldDescriptor):
        self.field = field
        self.name = field.name

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional["Model"], owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return instance._read(self.name)

    def __set__(self, instance: "Model", value: Any) -> None:
        instance._write(self.name, value)

    def __repr__(self) -> str:
        return f"<FieldProperty {self.name} type={self.field.type.value}>"


def _populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (Model, TypedCollection)):
        return len(value) > 0
    return True


class Model(MutableMapping, metaclass=ModelMeta):
    """
    Base class for all compiled models.

    Not instantiated directly: ``compile_model`` (or ``Plaster.model``)
    produces subclasses bound to a schema.

    Args:
        data: Initial values, assigned through the normal write path
        clone: Deep-copy ``data`` before assigning it
        **fields: Extra initial values, merged over ``data``
    """

    __slots__ = ("_state",)

    schema: Optional["Schema"] = None
    descriptor: Optional["ModelDescriptor"] = None
    model_name: Optional[str] = None
    registry: Any = None

    def __init__(self, data: Optional[Mapping[str, Any]] = None, *, clone: bool = False, **fields: Any):
        cls = type(self)
        if cls.descriptor is None:
            raise TypeError(f"{cls.__name__} is not bound to a schema; compile one with compile_model()")
        if data is not None and not isinstance(data, Mapping):
            raise TypeError(f"{cls.__name__}() data must be a mapping, got {type(data).__name__}")

        object.__setattr__(self, "_state", _RecordState())
        state = self._state
        state.initializing = True
        try:
            self._prepare()
            initial = dict(data or {})
            initial.update(fields)
            if clone:
                initial = copy.deepcopy(initial)
            for name, field in cls.descriptor.fields.items():
                if field.has_default and not field.is_virtual and name not in initial:
                    self._write(name, field.get_default())
            self.set(initial)
        finally:
            state.initializing = False

        init = getattr(cls, "init", None)
        if callable(init):
            init(self)

    def _prepare(self) -> None:
        """Create the collections and nested records every record starts with."""
        values = self._state.values
        for name, field in type(self).descriptor.fields.items():
            if field.is_virtual:
                continue
            if field.type is FieldType.ARRAY:
                values[name] = TypedCollection(self, field)
            elif field.type is FieldType.OBJECT and field.object_type is not None:
                # Lazy model_name references are created on first write.
                values[name] = field.object_type()
            else:
                values[name] = None

    # ── Field resolution ─────────────────────────────────────────────────

    def _field(self, name: str) -> Optional[FieldDescriptor]:
        field = type(self).descriptor.fields.get(name)
        if field is None:
            field = self._state.dynamic.get(name)
        return field

    def _dotted(self, key: str) -> bool:
        return "." in key and type(self).descriptor.options["dot_notation"]

    # ── Read path ────────────────────────────────────────────────────────

    def _read(self, name: str) -> Any:
        field = self._field(name)
        if field is None:
            return None
        if field.is_virtual:
            return field.getter(self)
        return self._state.values.get(name)

    def _read_path(self, path: str) -> Any:
        current: Any = self
        for part in path.split("."):
            if isinstance(current, Model):
                current = current._read(part)
            elif isinstance(current, Mapping):
                current = current.get(part)
            elif isinstance(current, list) and part.isdigit():
                index = int(part)
                current = current[index] if index < len(current) else None
            else:
                return None
        return current

    def get(self, key: str, default: Any = None) -> Any:
        """Value of ``key`` (dot paths allowed), or ``default`` when unset."""
        value = self._read_path(key) if self._dotted(key) else self._read(key)
        return default if value is None else value

    # ── Write path ───────────────────────────────────────────────────────

    def set(self, key: Any, value: Any = UNSET) -> "Model":
        """
        Write one field, or every key of a mapping.

            user.set("name", "Joe")
            user.set({"name": "Joe", "profile.age": 30})
        """
        if value is UNSET:
            if not isinstance(key, Mapping):
                raise TypeError("set() takes a key and a value, or a single mapping")
            for name, item in list(key.items()):
                self._write(name, item)
            return self
        self._write(key, value)
        return self

    def _write(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Field names must be strings, got {type(key).__name__}")

        if self._dotted(key):
            self._write_path(key, value)
            return

        options = type(self).descriptor.options
        field = self._field(key)
        if field is None and options["strict"]:
            logger.debug("%s is strict; ignored write to undeclared '%s'", type(self).__name__, key)
            return

        if field is not None and field.read_only:
            if field.is_virtual or not self._state.initializing:
                return

        if not self._before_value_set(key, value):
            return

        if field is None:
            field = FieldDescriptor(type=FieldType.ANY, name=key)
            self._state.dynamic[key] = field

        if field.is_virtual:
            field.setter(self, value)
            self._after_value_set(key, value)
            return

        previous = self._state.values.get(key)
        try:
            value = typecast(value, previous, field, self)
        except SetterRejection as rejection:
            if not rejection.recorded:
                self._record_error(rejection)
            return

        self._state.values[key] = value
        self._after_value_set(key, value)

    def _write_path(self, path: str, value: Any) -> None:
        head, rest = path.split(".", 1)
        field = self._field(head)

        if field is None:
            if type(self).descriptor.options["strict"]:
                logger.debug("%s is strict; ignored write to undeclared '%s'", type(self).__name__, path)
                return
            self._admit_nested(head)
            field = self._state.dynamic[head]

        current = self._read(head)
        if isinstance(current, Model):
            current.set(rest, value)
        elif field.type is FieldType.OBJECT and resolve_object_type(field, self) is not None:
            self._write(head, {rest: value})
        elif field.type in (FieldType.OBJECT, FieldType.ANY):
            if isinstance(current, MutableMapping):
                _assign_path(current, rest, value)
            else:
                container: Dict[str, Any] = {}
                _assign_path(container, rest, value)
                self._write(head, container)
        else:
            self._record_error(
                SetterRejection(
                    f"Cannot write path '{path}' through a {field.type.value} field.",
                    value,
                    current,
                    field,
                )
            )

    def _admit_nested(self, name: str) -> None:
        """Admit a dynamic object slot holding a fresh non-strict record."""
        from .compile import anonymous_model

        nested_cls = anonymous_model(name, type(self).descriptor.options)
        self._state.dynamic[name] = FieldDescriptor(
            type=FieldType.OBJECT, name=name, object_type=nested_cls
        )
        self._state.values[name] = nested_cls()

    def _before_value_set(self, key: str, value: Any) -> bool:
        hook = type(self).descriptor.options.get("on_before_value_set")
        if hook is None:
            return True
        try:
            outcome = hook(value, key)
        except Exception as exc:
            self._record_error(WriteAbortedFault(key, value, exc))
            return False
        if outcome is False:
            logger.debug("on_before_value_set cancelled write to '%s'", key)
            return False
        return True

    def _after_value_set(self, key: str, value: Any) -> None:
        hook = type(self).descriptor.options.get("on_value_set")
        if hook is not None:
            hook(value, key)

    # ── Reset ────────────────────────────────────────────────────────────

    def _reset(self, name: str) -> None:
        values = self._state.values
        current = values.get(name)
        if isinstance(current, TypedCollection):
            del current[:]
        elif isinstance(current, Model) and name in type(self).descriptor.fields:
            current.clear()
        else:
            values[name] = None

    def _unset(self, name: str) -> bool:
        field = type(self).descriptor.fields.get(name)
        if field is not None:
            if not field.is_virtual:
                self._reset(name)
            return True
        if name in self._state.dynamic:
            del self._state.dynamic[name]
            self._state.values.pop(name, None)
            return True
        return False

    def clear(self) -> None:
        """
        Reset every declared field in place.

        Collections are emptied and nested records cleared without being
        replaced; dynamic slots are dropped. The error list is kept.
        """
        for name, field in type(self).descriptor.fields.items():
            if not field.is_virtual:
                self._reset(name)
        for name in list(self._state.dynamic):
            self._state.values.pop(name, None)
        self._state.dynamic.clear()

    # ── Error sink ───────────────────────────────────────────────────────

    def _record_error(self, error: Exception) -> None:
        self._state.errors.append(error)
        logger.debug("%s recorded %r", type(self).__name__, error)

    def get_errors(self) -> List[Exception]:
        return list(self._state.errors)

    def has_errors(self) -> bool:
        return bool(self._state.errors)

    def clear_errors(self) -> None:
        self._state.errors.clear()

    # ── Serialization ────────────────────────────────────────────────────

    def to_object(self, options: Optional[Mapping[str, Any]] = None, **inline: Any) -> Dict[str, Any]:
        """Plain dict projection using the schema's ``to_object`` options."""
        return project(self, "to_object", {**(options or {}), **inline})

    def to_json(self, options: Optional[Mapping[str, Any]] = None, **inline: Any) -> Dict[str, Any]:
        """Plain dict projection using the schema's ``to_json`` options."""
        return project(self, "to_json", {**(options or {}), **inline})

    # ── Mapping protocol ─────────────────────────────────────────────────

    def __getitem__(self, key: str) -> Any:
        if not isinstance(key, str):
            raise KeyError(key)
        if self._dotted(key):
            return self._read_path(key)
        if self._field(key) is None:
            raise KeyError(key)
        return self._read(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._write(key, value)

    def __delitem__(self, key: str) -> None:
        if not isinstance(key, str) or not self._unset(key):
            raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        values = self._state.values
        for name, field in type(self).descriptor.fields.items():
            if not field.is_virtual and _populated(values.get(name)):
                yield name
        for name in list(self._state.dynamic):
            if _populated(values.get(name)):
                yield name

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in list(self)

    # ── Attribute protocol ───────────────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: dynamic slots live here.
        if not name.startswith("_"):
            try:
                state = object.__getattribute__(self, "_state")
            except AttributeError:
                state = None
            if state is not None and name in state.dynamic:
                return state.values.get(name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or hasattr(type(self), name):
            object.__setattr__(self, name, value)
        else:
            self._write(name, value)

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
        elif not self._unset(name):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    # ── Copying ──────────────────────────────────────────────────────────

    def __copy__(self) -> "Model":
        return type(self)(self)

    def __deepcopy__(self, memo: dict) -> "Model":
        duplicate = type(self).__new__(type(self))
        memo[id(self)] = duplicate
        duplicate.__init__({key: copy.deepcopy(self._read(key), memo) for key in self})
        return duplicate

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {dict(self.items())!r}>"


def _assign_path(target: MutableMapping, path: str, value: Any) -> None:
    parts = path.split(".")
    for part in parts[:-1]:
        nested = target.get(part)
        if not isinstance(nested, MutableMapping):
            nested = {}
            target[part] = nested
        target = nested
    target[parts[-1]] = value


RESERVED_NAMES = frozenset(
    name for name in dir(Model) if not name.startswith("_")
) | {"save", "remove", "init", "frozen", "freeze"}
