"""Archive validation.

Validators declare capabilities and are dispatched by the executor.
"""

from pkgvault.validation.base import Capability, Severity, ValidationMessage, ValidationViolation, Validator
from pkgvault.validation.executor import ValidationExecutor, errors_of
from pkgvault.validation.validators import default_validators

__all__ = [
    "Capability",
    "Severity",
    "ValidationExecutor",
    "ValidationMessage",
    "ValidationViolation",
    "Validator",
    "default_validators",
    "errors_of",
]
