from __future__ import annotations

from typing import Any, Dict, Optional


class RoleMaskError(Exception):
    """
    Base exception for role bookkeeping.

    Attributes mirror what callers render to users:
    - message/code/status_code/details/user_message
    - to_dict() for structured output
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "ROLEMASK_ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details: Dict[str, Any] = details or {}
        self.user_message = user_message or message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
        }

    def __str__(self) -> str:  # pragma: no cover
        return self.message


class ValidationError(RoleMaskError):
    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"field": field} if field else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details=details,
            user_message=f"Validation failed: {message}",
        )


class InvariantViolation(RoleMaskError):
    RULES = {
        "last_role": "at least one role must remain",
        "system_role": "system role cannot be deleted",
    }

    def __init__(self, rule: str, role: Optional[str] = None, **kwargs: Any):
        description = self.RULES.get(rule, rule)
        message = f"Role [{role}] cannot be deleted: {description}"
        details: Dict[str, Any] = {"rule": rule, "role": role}
        details.update(kwargs)
        self.rule = rule
        super().__init__(
            message=message,
            code="INVARIANT_VIOLATION",
            status_code=409,
            details=details,
            user_message=message,
        )


class PermissionDenied(RoleMaskError):
    def __init__(self, action: str, resource: Optional[str] = None, **kwargs: Any):
        message = f"Permission denied for action: {action}"
        if resource:
            message += f" on resource: {resource}"

        details: Dict[str, Any] = {"action": action, "resource": resource}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="PERMISSION_DENIED",
            status_code=403,
            details=details,
            user_message="You don't have permission to perform this action",
        )


class ConfigurationError(RoleMaskError):
    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs: Any):
        details: Dict[str, Any] = {"config_key": config_key} if config_key else {}
        details.update(kwargs)
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
            details=details,
            user_message="System configuration error",
        )
