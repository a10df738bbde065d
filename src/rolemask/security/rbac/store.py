"""
Role storage collaborators.

SqlRoleStore always queries the database. RoleCache keeps a snapshot of
all roles for fast lookups and may lag behind the store until it expires
or is invalidated.
"""

from __future__ import annotations

import logging
import time
from threading import RLock
from typing import List, Optional

from sqlalchemy.orm import Session

from rolemask.security.rbac.models import Role

logger = logging.getLogger(__name__)


class SqlRoleStore:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, role_id: int) -> Optional[Role]:
        return self.session.get(Role, role_id)

    def find_by_name(self, name: str) -> Optional[Role]:
        return self.session.query(Role).filter(Role.name == name).first()

    def find_all(self) -> List[Role]:
        return self.session.query(Role).order_by(Role.id.asc()).all()

    def count(self) -> int:
        return self.session.query(Role).count()

    def save(self, role: Role) -> int:
        self.session.add(role)
        self.session.flush()
        return role.id

    def delete(self, role: Role) -> int:
        self.session.delete(role)
        self.session.flush()
        return 1


class RoleCache:
    def __init__(self, store: SqlRoleStore, ttl_seconds: int = 600):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._lock = RLock()
        self._entities: Optional[List[Role]] = None
        self._loaded_at = 0.0

    def all(self) -> List[Role]:
        with self._lock:
            if self._entities is None or self._expired():
                self._entities = list(self.store.find_all())
                self._loaded_at = time.monotonic()
                logger.debug(f"Role cache loaded {len(self._entities)} roles")
            return list(self._entities)

    def count(self) -> int:
        return len(self.all())

    def invalidate(self) -> None:
        with self._lock:
            self._entities = None

    def _expired(self) -> bool:
        if self.ttl_seconds <= 0:
            return False
        return time.monotonic() - self._loaded_at > self.ttl_seconds
