"""Item handles and the adapter contracts the scheduler talks to."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

DEFAULT_ID_PATTERN = r"/manga/(\d+)"


def extract_item_id(locator: str | None, pattern: str = DEFAULT_ID_PATTERN) -> str | None:
    """Return the stable id embedded in a path-like locator, if any."""

    if not locator:
        return None
    match = re.search(pattern, locator)
    if match is None:
        return None
    return match.group(1) or None


@dataclass(frozen=True, slots=True)
class ItemHandle:
    """One discoverable catalog entry as seen in a single snapshot."""

    locator: str
    item_id: str | None = None
    position: int = 0
    element: Any = field(default=None, compare=False, repr=False)

    @property
    def label(self) -> str:
        return self.item_id or self.locator or f"#{self.position + 1}"


class ItemSource(Protocol):
    async def list_items(self) -> Sequence[ItemHandle]:
        ...


class MembershipOracle(Protocol):
    async def is_member(self, handle: ItemHandle) -> bool:
        ...


class ActionSimulator(Protocol):
    async def attempt_add(self, handle: ItemHandle) -> bool:
        """Drive the add gesture; return True when a matching control was activated."""
        ...


__all__ = [
    "ActionSimulator",
    "DEFAULT_ID_PATTERN",
    "ItemHandle",
    "ItemSource",
    "MembershipOracle",
    "extract_item_id",
]
