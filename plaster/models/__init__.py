"""
Plaster Model System — runtime object schemas.

A schema describes fields; compiling it yields a model class whose
instances coerce, validate and record every write.

Usage:
    from plaster.models import Schema, compile_model

    schema = Schema({
        "name": {"type": str, "max_length": 20},
        "age": {"type": int, "min": 0},
        "tags": [str],
    })
    Person = compile_model(schema, name="Person")

    person = Person(name="Joe", age="42")
    person.age                # 42
    person.age = -1           # rejected, recorded
    person.get_errors()       # [SetterRejection(...)]

Public API:
    - Schema / ModelDescriptor: builder and its frozen snapshot
    - compile_model: Schema -> model class
    - Model: base class of every compiled model
    - TypedCollection: list behind array fields
    - FieldDescriptor / FieldType / normalize: field definitions
    - typecast: the coercion engine
    - HookRegistry / HookPipeline: pre/post method hooks
    - Plaster: named model registry
"""

from .base import FieldProperty, Model, RESERVED_NAMES
from .collection import TypedCollection
from .compile import anonymous_model, compile_model
from .fields import UNSET, FieldDescriptor, FieldType
from .hooks import HookPipeline, HookRegistry
from .metaclass import ModelMeta
from .normalize import normalize, normalize_fields
from .projection import project
from .registry import Plaster, default
from .schema import HookRegistration, ModelDescriptor, Schema
from .typecast import parse_date, typecast

__all__ = [
    "FieldProperty",
    "Model",
    "RESERVED_NAMES",
    "TypedCollection",
    "anonymous_model",
    "compile_model",
    "UNSET",
    "FieldDescriptor",
    "FieldType",
    "HookPipeline",
    "HookRegistry",
    "ModelMeta",
    "normalize",
    "normalize_fields",
    "project",
    "Plaster",
    "default",
    "HookRegistration",
    "ModelDescriptor",
    "Schema",
    "parse_date",
    "typecast",
]
