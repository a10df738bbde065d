from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from rolemask.config import Settings, get_settings
from rolemask.exceptions import InvariantViolation
from rolemask.security.rbac.models import Role
from rolemask.security.rbac.registry import ResourceRegistry
from rolemask.security.rbac.store import RoleCache, SqlRoleStore
from rolemask.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(
        self,
        session: Session,
        *,
        store: Optional[SqlRoleStore] = None,
        cache: Optional[RoleCache] = None,
        audit: Optional[AuditService] = None,
        settings: Optional[Settings] = None,
        registry: Optional[ResourceRegistry] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.store = store or SqlRoleStore(session)
        self.cache = cache or RoleCache(self.store, self.settings.ROLE_CACHE_TTL_SECONDS)
        self.audit = audit or AuditService(session)
        self.registry = registry

    def find_by_id(self, role_id: Optional[int]) -> Optional[Role]:
        if not role_id or role_id <= 0:
            return None
        entities = self.cache.all()
        if not entities:
            return None
        return next((r for r in entities if r.id == role_id), None)

    def find_by_name(self, name: Optional[str]) -> Optional[Role]:
        if not name:
            return None
        entities = self.cache.all()
        if not entities:
            return None
        return next((r for r in entities if r.name == name), None)

    def find_all(self) -> List[Role]:
        return self.store.find_all()

    def count(self) -> int:
        return self.store.count()

    def save(self, role: Role) -> int:
        is_new = role.id is None
        if self.registry is not None and not role.check_valid(self.registry.all_resource_ids()):
            logger.info(f"Dropped stale resource permissions from [{role.name}] before save")
        role.validate(is_new)

        if is_new and not role.is_system and self.store.count() == 0:
            logger.info(f"First role [{role.name}] becomes the system role")
            role.is_system = True

        role_id = self.store.save(role)
        self.audit.write("create" if is_new else "update", role.name)
        self.cache.invalidate()
        return role_id

    def delete(self, role: Role) -> int:
        stored = self.store.find_by_id(role.id) if role.id else None
        entity = stored if stored is not None else role
        name = role.name or entity.name

        if self.cache.count() <= 1 and self.store.count() <= 1:
            self._refuse("last_role", name)

        if role.is_system or entity.is_system:
            self._refuse("system_role", name)

        self.audit.write("delete", name)
        result = self.store.delete(entity)
        self.cache.invalidate()
        return result

    def _refuse(self, rule: str, name: Optional[str]) -> None:
        error = InvariantViolation(rule, role=name)
        logger.warning(error.message)
        self.audit.write("delete", error.message)
        raise error

    def create_default_role(self) -> Role:
        role = Role(name=self.settings.DEFAULT_ROLE_NAME, is_system=True)
        self.save(role)
        return role
