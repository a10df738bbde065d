"""
Permission sets: resource id -> operation flags.

A role stores its grants as one compact string, e.g. ``"1#5,3#0"``:
entries ``<resource_id>#<flags>`` joined by ``,`` in ascending resource
order. An entry whose flags are ``NONE`` is a read-only grant and is
kept; only ``remove`` takes a resource away.
"""

from __future__ import annotations

from enum import IntFlag
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

ENTRY_SEPARATOR = ","
VALUE_SEPARATOR = "#"


class PermissionFlags(IntFlag):
    """Operation bits. ALL is a bit of its own, not a union of the others."""

    NONE = 0
    ALL = 1
    INSERT = 2
    UPDATE = 4
    DELETE = 8


def parse_flags(text: Optional[str]) -> PermissionFlags:
    """Parse ``"insert,update"``, ``"ALL"`` or ``"6"`` into flags."""
    if text is None:
        return PermissionFlags.NONE
    text = text.strip()
    if not text:
        return PermissionFlags.NONE
    if text.isdigit():
        return PermissionFlags(int(text))

    flags = PermissionFlags.NONE
    for part in text.replace("|", ",").split(","):
        name = part.strip().upper()
        if not name:
            continue
        try:
            flags |= PermissionFlags[name]
        except KeyError:
            raise ValueError(f"Unknown permission flag: {part.strip()}") from None
    return flags


def _to_int(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


class PermissionSet:
    """Sparse mapping of resource id to PermissionFlags with a string codec."""

    def __init__(self, items: Optional[Dict[int, int]] = None) -> None:
        self._items: Dict[int, PermissionFlags] = {}
        for resource_id, flags in (items or {}).items():
            self._items[int(resource_id)] = PermissionFlags(flags)

    def has(self, resource_id: int, flag: PermissionFlags = PermissionFlags.NONE) -> bool:
        """
        True when the resource is granted and its flags contain every bit of
        ``flag``. A missing resource is never granted, even for ``NONE``.
        """
        current = self._items.get(resource_id)
        if current is None:
            return False
        return (current & flag) == flag

    def get(self, resource_id: int) -> Optional[PermissionFlags]:
        return self._items.get(resource_id)

    def set(self, resource_id: int, flag: PermissionFlags = PermissionFlags.ALL) -> None:
        current = self._items.get(resource_id)
        if current is None:
            self._items[resource_id] = PermissionFlags(flag)
        else:
            self._items[resource_id] = current | flag

    def remove(self, resource_id: int) -> None:
        self._items.pop(resource_id, None)

    def prune(self, valid_ids: Optional[Iterable[int]]) -> bool:
        """
        Drop every resource not in ``valid_ids`` and report whether anything
        was dropped. An empty or missing ``valid_ids`` leaves the set alone.
        """
        if not valid_ids:
            return False
        valid = set(valid_ids)
        if not valid:
            return False

        stale = [resource_id for resource_id in self._items if resource_id not in valid]
        for resource_id in stale:
            del self._items[resource_id]
        return bool(stale)

    @property
    def resources(self) -> List[int]:
        return sorted(self._items)

    def items(self) -> List[Tuple[int, PermissionFlags]]:
        return sorted(self._items.items())

    def clear(self) -> None:
        self._items.clear()

    def encode(self) -> str:
        return ENTRY_SEPARATOR.join(
            f"{resource_id}{VALUE_SEPARATOR}{int(flags)}"
            for resource_id, flags in self.items()
        )

    @classmethod
    def decode(cls, text: Optional[str]) -> "PermissionSet":
        """
        Parse an encoded permission string.

        Lenient by intent: blank segments are skipped, a missing ``#`` or a
        non-numeric field reads as 0, and a repeated resource keeps its last
        value.
        """
        permissions = cls()
        if not text:
            return permissions

        for segment in text.split(ENTRY_SEPARATOR):
            if not segment.strip():
                continue
            key, _, value = segment.partition(VALUE_SEPARATOR)
            permissions._items[_to_int(key)] = PermissionFlags(_to_int(value))
        return permissions

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(self.resources)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"<PermissionSet({self.encode()!r})>"
