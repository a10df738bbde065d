"""
Resource registries: which resource ids exist, and which of them some role
must always be able to fully manage.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from sqlalchemy.orm import Session

from rolemask.config import get_settings
from rolemask.security.rbac.models import Resource


class ResourceRegistry(ABC):
    @abstractmethod
    def all_resource_ids(self) -> Set[int]:
        """Ids of every currently valid resource."""

    @abstractmethod
    def necessary_resource_ids(self) -> Set[int]:
        """Ids that at least one role must hold with ALL."""


class StaticResourceRegistry(ResourceRegistry):
    def __init__(self, resource_ids: Iterable[int], necessary_ids: Iterable[int] = ()):
        self._resource_ids = set(resource_ids)
        self._necessary_ids = set(necessary_ids)

    def all_resource_ids(self) -> Set[int]:
        return set(self._resource_ids)

    def necessary_resource_ids(self) -> Set[int]:
        return set(self._necessary_ids)


class DatabaseResourceRegistry(ResourceRegistry):
    """
    Reads active rows of ``rbac_resources``.

    Configured necessary ids count as valid resources even without a row.
    """

    def __init__(self, session: Session, extra_necessary: Optional[Iterable[int]] = None):
        self.session = session
        if extra_necessary is None:
            extra_necessary = get_settings().necessary_resource_ids()
        self.extra_necessary = set(extra_necessary)

    def all_resource_ids(self) -> Set[int]:
        rows = (
            self.session.query(Resource.id)
            .filter(Resource.is_active.is_(True))
            .all()
        )
        return {row[0] for row in rows} | self.extra_necessary

    def necessary_resource_ids(self) -> Set[int]:
        rows = (
            self.session.query(Resource.id)
            .filter(Resource.is_active.is_(True), Resource.is_necessary.is_(True))
            .all()
        )
        return {row[0] for row in rows} | self.extra_necessary
