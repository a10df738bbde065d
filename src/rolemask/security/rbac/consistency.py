"""
Startup maintenance for roles.

Run ``bootstrap_roles`` and then ``ConsistencyChecker.run`` once from the
process startup sequence (``initialize_roles`` does both). Both read roles
through the store, never through the role cache, so that a cache refresh
cannot re-enter initialization. Callers must not run two sweeps at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from rolemask.security.rbac.models import Role
from rolemask.security.rbac.permission_set import PermissionFlags
from rolemask.security.rbac.registry import ResourceRegistry
from rolemask.security.rbac.service import RoleService

logger = logging.getLogger(__name__)


@dataclass
class ConsistencyReport:
    pruned_roles: List[str] = field(default_factory=list)
    repaired: int = 0
    system_role: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.pruned_roles) or self.repaired > 0


def bootstrap_roles(service: RoleService) -> Optional[Role]:
    """
    Make sure a system role exists.

    With no roles at all the default system role is created. With roles but
    none flagged as system, the first one (lowest id) is promoted. Returns
    the role that was created or promoted, else None.
    """
    roles = service.find_all()
    if not roles:
        logger.info("No roles found, creating the default system role")
        return service.create_default_role()

    if any(r.is_system for r in roles):
        return None

    role = roles[0]
    role.is_system = True
    message = f"At least one system role is required, promoting [{role.name}] to system role"
    logger.warning(message)
    service.save(role)
    service.audit.write("update", message)
    return role


class ConsistencyChecker:
    def __init__(self, service: RoleService, registry: ResourceRegistry):
        self.service = service
        self.registry = registry

    def run(self) -> ConsistencyReport:
        report = ConsistencyReport()
        roles = self.service.find_all()

        valid_ids = self.registry.all_resource_ids()
        for role in roles:
            if not role.check_valid(valid_ids):
                message = f"Removed stale resource permissions from [{role.name}]"
                logger.warning(message)
                self.service.save(role)
                self.service.audit.write("update", message)
                report.pruned_roles.append(role.name)

        system_role = next((r for r in roles if r.is_system), None)
        if system_role is None:
            return report
        report.system_role = system_role.name

        for resource_id in sorted(self.registry.necessary_resource_ids()):
            if not any(r.has(resource_id, PermissionFlags.ALL) for r in roles):
                system_role.set(resource_id, PermissionFlags.ALL)
                report.repaired += 1

        if report.repaired:
            message = (
                f"{report.repaired} necessary resources had no role with full access, "
                f"granted to system role [{system_role.name}]"
            )
            logger.warning(message)
            self.service.save(system_role)
            self.service.audit.write("update", message)

        return report


def initialize_roles(service: RoleService, registry: ResourceRegistry) -> ConsistencyReport:
    bootstrap_roles(service)
    return ConsistencyChecker(service, registry).run()
