"""Filter step splitting a snapshot into members, processed and pending items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .dedup import DedupStore
from .items import ItemHandle, MembershipOracle


@dataclass(slots=True)
class Partition:
    total: int = 0
    members: list[ItemHandle] = field(default_factory=list)
    processed: list[ItemHandle] = field(default_factory=list)
    pending: list[ItemHandle] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "total": self.total,
            "members": len(self.members),
            "processed": len(self.processed),
            "pending": len(self.pending),
        }


async def partition_items(
    items: Iterable[ItemHandle],
    oracle: MembershipOracle,
    dedup: DedupStore,
    *,
    dedup_by_id: bool = True,
    mark_members: bool = True,
) -> Partition:
    """Classify a snapshot; ``pending`` keeps the source order.

    Membership is checked first, so an item already in the library is never
    pending even if its id was cleared from the store. With ``mark_members``
    the ids of members are recorded as processed (dedup-by-id only).
    """

    snapshot = list(items)
    result = Partition(total=len(snapshot))
    for handle in snapshot:
        if await oracle.is_member(handle):
            result.members.append(handle)
            if mark_members and dedup_by_id:
                dedup.mark_processed(handle.item_id)
            continue
        if dedup_by_id and dedup.is_processed(handle.item_id):
            result.processed.append(handle)
            continue
        result.pending.append(handle)
    return result


__all__ = ["Partition", "partition_items"]
