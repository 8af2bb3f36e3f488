"""
Plaster - runtime object schemas with typed, coerced, validated records.

Everything needed day to day is available from the top-level package:

    import plaster

    user_schema = plaster.schema({
        "first_name": str,
        "last_name": str,
        "date_of_birth": datetime.datetime,
        "profile": {"email": str, "age": int},
        "usernames": [str],
    })
    User = plaster.model("User", user_schema)

    user = User({"first_name": "Joe", "date_of_birth": "1990-12-10T08:33:00Z"})
    user.profile = {"email": 123, "age": 22, "foo": "bar"}
    user.profile.to_object()     # {"email": "123", "age": 22}

The module-level ``schema``/``model``/``get_model``/``model_names`` use a
shared default registry; ``Plaster()`` builds an independent one.
"""

__version__ = "0.1.0"

# ============================================================================
# Faults
# ============================================================================

from .faults import (
    ConfigInvalidFault,
    DescriptorFault,
    Fault,
    FaultDomain,
    HookFault,
    ModelNotFoundFault,
    ModelRegistrationFault,
    SetterRejection,
    Severity,
    WriteAbortedFault,
)

# ============================================================================
# Configuration
# ============================================================================

from .config import ConfigLoader, DEFAULT_SCHEMA_OPTIONS, PlasterConfig

# ============================================================================
# Model System
# ============================================================================

from .models import (
    FieldDescriptor,
    FieldType,
    HookRegistry,
    Model,
    ModelDescriptor,
    Plaster,
    Schema,
    TypedCollection,
    UNSET,
    compile_model,
    default,
    normalize,
    typecast,
)

# ============================================================================
# Default registry
# ============================================================================

schema = default.schema
model = default.model
get_model = default.get_model
model_names = default.model_names

__all__ = [
    "__version__",
    # Faults
    "ConfigInvalidFault",
    "DescriptorFault",
    "Fault",
    "FaultDomain",
    "HookFault",
    "ModelNotFoundFault",
    "ModelRegistrationFault",
    "SetterRejection",
    "Severity",
    "WriteAbortedFault",
    # Configuration
    "ConfigLoader",
    "DEFAULT_SCHEMA_OPTIONS",
    "PlasterConfig",
    # Model system
    "FieldDescriptor",
    "FieldType",
    "HookRegistry",
    "Model",
    "ModelDescriptor",
    "Plaster",
    "Schema",
    "TypedCollection",
    "UNSET",
    "compile_model",
    "default",
    "normalize",
    "typecast",
    # Default registry
    "schema",
    "model",
    "get_model",
    "model_names",
]
