"""Process-lifetime record of item ids already handled."""

from __future__ import annotations

from typing import Iterable


class DedupStore:
    """Grow-only set of processed item ids, emptied only by ``clear``."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._ids: set[str] = {item_id for item_id in initial if item_id}

    def mark_processed(self, item_id: str | None) -> None:
        if item_id:
            self._ids.add(item_id)

    def is_processed(self, item_id: str | None) -> bool:
        return bool(item_id) and item_id in self._ids

    def clear(self) -> int:
        dropped = len(self._ids)
        self._ids.clear()
        return dropped

    def snapshot(self) -> list[str]:
        return sorted(self._ids, key=lambda value: (len(value), value))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


__all__ = ["DedupStore"]
