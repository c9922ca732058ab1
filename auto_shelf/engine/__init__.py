"""Engine components: item contracts, dedup store and the filter step."""

from .dedup import DedupStore
from .items import (
    ActionSimulator,
    ItemHandle,
    ItemSource,
    MembershipOracle,
    extract_item_id,
)
from .partition import Partition, partition_items

__all__ = [
    "ActionSimulator",
    "DedupStore",
    "ItemHandle",
    "ItemSource",
    "MembershipOracle",
    "Partition",
    "extract_item_id",
    "partition_items",
]
