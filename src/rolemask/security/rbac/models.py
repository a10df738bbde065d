"""
RBAC models: roles carrying an encoded permission set, and the resources
those permissions are granted against.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import reconstructor, relationship

from rolemask.exceptions import ValidationError
from rolemask.models.base import Base
from rolemask.security.rbac.permission_set import PermissionFlags, PermissionSet


class Resource(Base):
    __tablename__ = "rbac_resources"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    url = Column(String(500))

    parent_id = Column(Integer, ForeignKey("rbac_resources.id"))
    parent = relationship("Resource", remote_side=[id], backref="children")

    sort = Column(Integer, default=0)
    is_necessary = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def __repr__(self) -> str:
        return f"<Resource(id={self.id}, name={self.name!r})>"


class Role(Base):
    """
    A named role owning one PermissionSet.

    ``permission`` is the stored string; ``permissions`` is the live set.
    The set is decoded when a row is loaded and encoded back in
    ``validate``, which RoleService runs before every save.
    """

    __tablename__ = "rbac_roles"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    permission = Column(Text, nullable=True)
    remark = Column(Text)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def __init__(self, **kwargs) -> None:
        kwargs.setdefault("is_system", False)
        super().__init__(**kwargs)
        self.permissions = PermissionSet.decode(self.permission)

    @reconstructor
    def on_load(self) -> None:
        self.permissions = PermissionSet.decode(self.permission)

    def validate(self, is_new: bool = False) -> None:
        if not self.name:
            raise ValidationError("Role name cannot be empty", field="name")
        self._store_permissions()

    def _store_permissions(self) -> None:
        # Only assign when the text differs so an unchanged set does not dirty the row.
        encoded = self.permissions.encode() or None
        if encoded != self.permission:
            self.permission = encoded

    @property
    def resources(self) -> List[int]:
        return self.permissions.resources

    def has(self, resource_id: int, flag: PermissionFlags = PermissionFlags.NONE) -> bool:
        return self.permissions.has(resource_id, flag)

    def get(self, resource_id: int) -> Optional[PermissionFlags]:
        return self.permissions.get(resource_id)

    def set(self, resource_id: int, flag: PermissionFlags = PermissionFlags.ALL) -> None:
        self.permissions.set(resource_id, flag)

    def remove(self, resource_id: int) -> None:
        self.permissions.remove(resource_id)

    def check_valid(self, valid_ids: Optional[Iterable[int]]) -> bool:
        """True when every granted resource is still valid (nothing pruned)."""
        return not self.permissions.prune(valid_ids)

    def __str__(self) -> str:
        return self.name or ""

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, is_system={self.is_system})>"
