"""
Plaster Faults - Domain-specific fault types.

Each domain groups the faults raised (or recorded) by one part of the
engine:

- SCHEMA: malformed descriptors, bad method/static/virtual registration
- TYPECAST: setter rejections and aborted writes, recorded on records
- HOOK: errors handed to a hook continuation
- REGISTRY: model lookup and registration
- CONFIG: invalid option values
"""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

from .core import Fault, FaultDomain, Severity

if TYPE_CHECKING:
    from ..models.fields import FieldDescriptor


# ============================================================================
# SCHEMA Faults
# ============================================================================

class SchemaFault(Fault):
    """Base class for schema definition faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.SCHEMA,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class DescriptorFault(SchemaFault, TypeError):
    """
    Malformed schema construction call.

    Raised synchronously for bad field descriptors, bad method/static/virtual
    registrations and attempts to overwrite an existing model member.
    """

    def __init__(self, message: str, *, name: str | None = None, **kwargs):
        super().__init__(
            code="DESCRIPTOR_INVALID",
            message=message,
            metadata={"name": name, **kwargs.get("metadata", {})},
        )
        self.name = name


# ============================================================================
# TYPECAST Faults
# ============================================================================

class SetterRejection(Fault, ValueError):
    """
    A value failed type coercion or a declared constraint.

    Never raised out of a field write: the record catches it, appends it
    to its error list and keeps the previous value.

    Attributes:
        value: The rejected input
        previous: The value the field held before the write
        descriptor: The FieldDescriptor that rejected it
        recorded: True when the underlying element rejections were already
            appended to the owning record, so this one is not recorded again
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        previous: Any = None,
        descriptor: Optional["FieldDescriptor"] = None,
        *,
        recorded: bool = False,
    ):
        field_name = descriptor.name if descriptor is not None else None
        super().__init__(
            code="SETTER_REJECTED",
            message=message,
            domain=FaultDomain.TYPECAST,
            metadata={
                "field": field_name,
                "type": descriptor.type.value if descriptor is not None else None,
            },
        )
        self.value = value
        self.previous = previous
        self.descriptor = descriptor
        self.recorded = recorded

    @property
    def field_name(self) -> str | None:
        return self.metadata.get("field")

    def __repr__(self) -> str:
        return f"SetterRejection({self.message!r}, field={self.field_name!r}, value={self.value!r})"


class WriteAbortedFault(Fault):
    """An ``on_before_value_set`` callback raised; the write was dropped."""

    def __init__(self, key: str, value: Any, cause: BaseException):
        super().__init__(
            code="WRITE_ABORTED",
            message=f"Write to '{key}' aborted: {cause}",
            domain=FaultDomain.TYPECAST,
            metadata={"field": key, "cause": type(cause).__name__},
        )
        self.key = key
        self.value = value
        self.__cause__ = cause


# ============================================================================
# HOOK Faults
# ============================================================================

class HookFault(Fault):
    """A hook continuation was handed a non-exception error value."""

    def __init__(self, method: str, error: Any):
        super().__init__(
            code="HOOK_ERROR",
            message=f"Hook chain for '{method}' failed: {error}",
            domain=FaultDomain.HOOK,
            metadata={"method": method},
        )
        self.error = error


# ============================================================================
# REGISTRY Faults
# ============================================================================

class RegistryFault(Fault):
    """Base class for model registry faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.REGISTRY,
            metadata=metadata,
        )


class ModelNotFoundFault(RegistryFault, LookupError):
    """Model not found in registry."""

    def __init__(self, model_name: str, **kwargs):
        super().__init__(
            code="MODEL_NOT_FOUND",
            message=f"Model '{model_name}' not found in registry",
            metadata={"model": model_name, **kwargs.get("metadata", {})},
        )


class ModelRegistrationFault(RegistryFault):
    """Model registration failed."""

    def __init__(self, model_name: Any, reason: str, **kwargs):
        super().__init__(
            code="MODEL_REGISTRATION_FAILED",
            message=f"Failed to register model {model_name!r}: {reason}",
            metadata={"model": model_name, "reason": reason, **kwargs.get("metadata", {})},
        )


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Base class for configuration faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.FATAL,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.CONFIG,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class ConfigInvalidFault(ConfigFault, ValueError):
    """Configuration value is invalid."""

    def __init__(self, key: str, reason: str, **kwargs):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            metadata={"key": key, "reason": reason, **kwargs.get("metadata", {})},
        )
