"""
Plaster Model Metaclass — class-level guards for compiled models.

Compiled model classes are frozen once the compiler has bound their
methods, statics and hooks: setting or deleting class attributes after
that raises ``DescriptorFault``. Schemas compiled with
``{"freeze": False}`` stay open.
"""

from __future__ import annotations

from abc import ABCMeta
from typing import Any

from ..faults import DescriptorFault

__all__ = ["ModelMeta"]


class ModelMeta(ABCMeta):
    """
    Metaclass for Plaster models.

    Derives from ABCMeta because ``Model`` is a ``MutableMapping``.
    """

    def __setattr__(cls, name: str, value: Any) -> None:
        if cls.__dict__.get("_frozen", False):
            raise DescriptorFault(
                f"Model '{cls.__name__}' is frozen; cannot set attribute '{name}'",
                name=name,
            )
        super().__setattr__(name, value)

    def __delattr__(cls, name: str) -> None:
        if cls.__dict__.get("_frozen", False):
            raise DescriptorFault(
                f"Model '{cls.__name__}' is frozen; cannot delete attribute '{name}'",
                name=name,
            )
        super().__delattr__(name)

    def freeze(cls) -> None:
        super().__setattr__("_frozen", True)

    @property
    def frozen(cls) -> bool:
        return cls.__dict__.get("_frozen", False)
