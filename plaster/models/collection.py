"""
Plaster Typed Collection — the list behind every array field.

A ``TypedCollection`` is created once per array field when its record is
constructed and is never replaced afterwards: assigning a new list to
the field, ``clear()`` and ``set()`` all rewrite its contents in place,
so references held elsewhere stay valid.

Every way into the list goes through the element descriptor:

    user.tags.push("a", 1, True)     # -> ["a", "1", "true"]
    user.tags.append({"no": 1})      # dropped, recorded on user
    user.tags.set(["x", {"no": 1}])  # all-or-nothing: unchanged

Rejections land on the owning record's error list.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, TYPE_CHECKING

from ..faults import SetterRejection
from .fields import FieldDescriptor, FieldType
from .typecast import typecast

if TYPE_CHECKING:
    from .base import Model

logger = logging.getLogger("plaster.models.collection")

__all__ = ["TypedCollection"]

_UNTYPED = FieldDescriptor(type=FieldType.ANY)


class TypedCollection(list):
    """
    Ordered, coercing sequence bound to one array field of one record.

    Args:
        owner: Record whose error list receives element rejections
        descriptor: The array field's descriptor (its ``array_type`` is
            the element descriptor, ``unique`` enables de-duplication)
        values: Initial values, pushed with forgiving semantics
    """

    __slots__ = ("_owner", "_descriptor")

    def __init__(
        self,
        owner: Optional["Model"] = None,
        descriptor: Optional[FieldDescriptor] = None,
        values: Iterable[Any] = (),
    ):
        super().__init__()
        self._owner = owner
        self._descriptor = descriptor or FieldDescriptor(type=FieldType.ARRAY)
        if values:
            self.push(*values)

    @property
    def owner(self) -> Optional["Model"]:
        return self._owner

    @property
    def descriptor(self) -> FieldDescriptor:
        return self._descriptor

    @property
    def element_descriptor(self) -> FieldDescriptor:
        return self._descriptor.array_type or _UNTYPED

    # -- coercion -------------------------------------------------------------

    def _coerce(self, value: Any) -> Any:
        return typecast(value, None, self.element_descriptor, self._owner)

    def _record(self, rejection: SetterRejection) -> None:
        logger.debug(
            "Rejected element for '%s': %s", self._descriptor.name, rejection.message
        )
        if self._owner is not None and not rejection.recorded:
            self._owner._record_error(rejection)

    def _append_coerced(self, values: Iterable[Any]) -> None:
        for value in values:
            if value is None:
                continue
            if self._descriptor.unique and value in self:
                continue
            super().append(value)

    # -- mutation -------------------------------------------------------------

    def push(self, *values: Any) -> int:
        """
        Coerce and append each value.

        Values that fail coercion are dropped and their rejection is
        recorded on the owner; the rest are appended. Returns the new
        length.
        """
        coerced = []
        for value in values:
            try:
                coerced.append(self._coerce(value))
            except SetterRejection as rejection:
                self._record(rejection)
        self._append_coerced(coerced)
        return len(self)

    def append(self, value: Any) -> None:
        self.push(value)

    def extend(self, values: Iterable[Any]) -> None:
        self.push(*values)

    def __iadd__(self, values: Iterable[Any]) -> "TypedCollection":
        self.push(*values)
        return self

    def __add__(self, other: Iterable[Any]) -> "TypedCollection":
        return self.concat(other)

    def insert(self, index: int, value: Any) -> None:
        try:
            value = self._coerce(value)
        except SetterRejection as rejection:
            self._record(rejection)
            return
        if value is None or (self._descriptor.unique and value in self):
            return
        super().insert(index, value)

    def __setitem__(self, index, value) -> None:
        try:
            if isinstance(index, slice):
                value = [self._coerce(item) for item in value]
            else:
                value = self._coerce(value)
        except SetterRejection as rejection:
            self._record(rejection)
            return
        super().__setitem__(index, value)

    def set(self, values: Iterable[Any]) -> "TypedCollection":
        """Replace the contents in place, all or nothing. See ``replace``."""
        self.replace(values)
        return self

    def replace(self, values: Iterable[Any]) -> bool:
        """
        Replace the contents in place, all or nothing.

        Every value is coerced first. If any is rejected, each rejection
        is recorded, the collection is left untouched and False is
        returned.
        """
        coerced = []
        rejected = False
        for value in values:
            try:
                coerced.append(self._coerce(value))
            except SetterRejection as rejection:
                self._record(rejection)
                rejected = True
        if rejected:
            return False

        del self[:]
        self._append_coerced(coerced)
        return True

    def concat(self, *others: Iterable[Any]) -> "TypedCollection":
        """New collection with this one's values followed by each argument's."""
        result = TypedCollection(self._owner, self._descriptor)
        result.push(*self._plain())
        for other in others:
            if isinstance(other, TypedCollection):
                result.push(*other._plain())
            elif isinstance(other, (list, tuple)):
                result.push(*other)
            else:
                result.push(other)
        return result

    # -- projection -----------------------------------------------------------

    def _plain(self) -> List[Any]:
        return [
            item.to_object() if hasattr(item, "to_object") else item for item in self
        ]

    def to_array(self) -> List[Any]:
        """
        Plain list snapshot.

        Records are replaced by their ``to_object()`` projection and other
        containers by shallow copies, so mutating the snapshot never
        reaches the collection's elements.
        """
        out = []
        for item in self:
            if hasattr(item, "to_object"):
                out.append(item.to_object())
            elif isinstance(item, Mapping):
                out.append(dict(item))
            elif isinstance(item, list):
                out.append(list(item))
            else:
                out.append(item)
        return out

    def to_json(self) -> List[Any]:
        return self.to_array()

    def __deepcopy__(self, memo) -> "TypedCollection":
        duplicate = TypedCollection(self._owner, self._descriptor)
        memo[id(self)] = duplicate
        list.extend(duplicate, (copy.deepcopy(item, memo) for item in self))
        return duplicate

    def __copy__(self) -> "TypedCollection":
        duplicate = TypedCollection(self._owner, self._descriptor)
        list.extend(duplicate, self)
        return duplicate

    def __repr__(self) -> str:
        return f"TypedCollection({list.__repr__(self)})"
