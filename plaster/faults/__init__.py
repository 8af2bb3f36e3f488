"""
Plaster Faults - structured error taxonomy.

Definition errors (bad descriptors, bad registrations) are raised.
Data errors (coercion failures, aborted writes) are recorded on the
record's error list and never escape a field write.

Usage:
    from plaster.faults import DescriptorFault, SetterRejection

    try:
        schema.method("greet", "not callable")
    except DescriptorFault as fault:
        print(fault.code, fault.message)
"""

from .core import (
    DOMAIN_DEFAULTS,
    Fault,
    FaultDomain,
    Severity,
)
from .domains import (
    ConfigFault,
    ConfigInvalidFault,
    DescriptorFault,
    HookFault,
    ModelNotFoundFault,
    ModelRegistrationFault,
    RegistryFault,
    SchemaFault,
    SetterRejection,
    WriteAbortedFault,
)

__all__ = [
    "DOMAIN_DEFAULTS",
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigFault",
    "ConfigInvalidFault",
    "DescriptorFault",
    "HookFault",
    "ModelNotFoundFault",
    "ModelRegistrationFault",
    "RegistryFault",
    "SchemaFault",
    "SetterRejection",
    "WriteAbortedFault",
]
