from rolemask.exceptions.handlers import (
    ConfigurationError,
    InvariantViolation,
    PermissionDenied,
    RoleMaskError,
    ValidationError,
)

__all__ = [
    "RoleMaskError",
    "ValidationError",
    "InvariantViolation",
    "PermissionDenied",
    "ConfigurationError",
]
