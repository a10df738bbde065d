from __future__ import annotations

"""
Permission checks for authorization call sites.

With enforce=False every check passes, which keeps local flows usable
before roles have been granted anything.
"""

from typing import Optional

from rolemask.exceptions import PermissionDenied
from rolemask.security.rbac.models import Role
from rolemask.security.rbac.permission_set import PermissionFlags


class PermissionManager:
    def __init__(self, *, enforce: bool = True) -> None:
        self.enforce = enforce

    def check_permission(
        self,
        role: Optional[Role],
        resource_id: int,
        flag: PermissionFlags = PermissionFlags.NONE,
    ) -> bool:
        if not self.enforce:
            return True

        if role is not None and role.has(resource_id, flag):
            return True

        action = PermissionFlags(flag).name or str(int(flag))
        raise PermissionDenied(
            action=action.lower(),
            resource=f"resource:{resource_id}",
            role=role.name if role is not None else None,
        )
