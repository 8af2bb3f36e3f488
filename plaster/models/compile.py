"""
Plaster Model Compiler — binds a Schema to a concrete model class.

    User = compile_model(user_schema, name="User")
    user = User({"first_name": "Joe"})

Compilation:
1. snapshots the schema into a ModelDescriptor
2. creates a ``Model`` subclass with one FieldProperty per field
3. binds methods (as functions) and statics (as classmethods), refusing
   to overwrite anything the class already has
4. wraps ``save``, ``remove`` and every queued hook target in a hook
   pipeline and registers the queued pre/post stages
5. freezes the class unless ``freeze`` is False
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Mapping, Optional, Type

from ..faults import DescriptorFault
from .base import FieldProperty, Model
from .hooks import NOTIFY_POST_METHODS, HookRegistry
from .metaclass import ModelMeta
from .schema import Schema

logger = logging.getLogger("plaster.models.compile")

__all__ = ["compile_model", "anonymous_model"]


def compile_model(
    schema: Schema | Mapping[str, Any],
    options: Optional[Mapping[str, Any]] = None,
    name: Optional[str] = None,
    registry: Any = None,
    *,
    synthetic: bool = False,
) -> Type[Model]:
    """
    Compile ``schema`` into a model class.

    Args:
        schema: A Schema, or a plain field mapping (compiled with
            ``options`` as its schema options)
        options: Compile options; ``freeze`` overrides the schema's own
        name: Model name (also the class name)
        registry: Registry used to resolve ``model_name`` references
        synthetic: Internal; marks classes built for nested shapes

    Raises:
        DescriptorFault: If a method or static would overwrite an existing
            member, or a hook targets a method the model does not have.
    """
    options = dict(options or {})
    if not isinstance(schema, Schema):
        if not isinstance(schema, Mapping):
            raise DescriptorFault(f"Cannot compile {type(schema).__name__}; expected a Schema")
        schema = Schema(schema, options)
    freeze = options.get("freeze", schema.options.get("freeze", True))

    descriptor = schema.compile()

    namespace = {
        "__slots__": (),
        "schema": schema,
        "descriptor": descriptor,
        "model_name": None if synthetic else name,
        "registry": registry,
        "_synthetic": synthetic,
    }
    for field_name, field in descriptor.fields.items():
        namespace[field_name] = FieldProperty(field)

    cls = ModelMeta(name or "AnonymousModel", (Model,), namespace)

    _bind_members(cls, descriptor.methods, "method", lambda func: func)
    _bind_members(cls, descriptor.statics, "static", classmethod)
    _install_hooks(cls)

    if registry is not None:
        _adopt_nested(cls, registry)

    if freeze and not synthetic:
        cls.freeze()

    logger.debug("Compiled model %s with fields %s", cls.__name__, list(descriptor.fields))
    return cls


def anonymous_model(name: str, options: Mapping[str, Any]) -> Type[Model]:
    """Empty non-strict model used for dotted writes into undeclared keys."""
    schema = Schema(None, {"strict": False, "dot_notation": options.get("dot_notation", True)})
    return compile_model(schema, {"freeze": False}, name=name, synthetic=True)


def _bind_members(cls: type, members: Mapping[str, Callable], kind: str, wrap: Callable) -> None:
    for member_name, func in members.items():
        if hasattr(cls, member_name):
            raise DescriptorFault(
                f"Cannot overwrite existing '{member_name}' with custom {kind}",
                name=member_name,
            )
        setattr(cls, member_name, wrap(func))


def _lifecycle_default(method_name: str) -> Callable:
    def lifecycle(self):
        return self

    lifecycle.__name__ = method_name
    lifecycle.__qualname__ = method_name
    return lifecycle


def _install_hooks(cls: type) -> None:
    hooks = HookRegistry()
    descriptor = cls.descriptor

    for method_name in sorted(NOTIFY_POST_METHODS):
        if not hasattr(cls, method_name):
            setattr(cls, method_name, _lifecycle_default(method_name))

    targets = sorted(NOTIFY_POST_METHODS) + [entry.target for entry in descriptor.hooks]
    for target in dict.fromkeys(targets):
        method = getattr(cls, target, None)
        if not inspect.isfunction(method):
            raise DescriptorFault(f"Cannot hook '{target}': no such instance method", name=target)
        setattr(cls, target, hooks.hook(target, method))

    for entry in descriptor.hooks:
        if entry.phase == "pre":
            hooks.pre(entry.target, entry.handler)
        else:
            hooks.post(entry.target, entry.handler)

    cls._hooks = hooks


def _adopt_nested(cls: type, registry: Any) -> None:
    """Point synthetic nested models at the registry of the model that owns them."""
    for field in cls.descriptor.fields.values():
        while field is not None:
            nested = field.object_type
            if nested is not None and nested.__dict__.get("_synthetic") and nested.registry is None:
                nested.registry = registry
                _adopt_nested(nested, registry)
            field = field.array_type
