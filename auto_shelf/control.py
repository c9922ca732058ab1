"""Operator-facing control surface over a batch scheduler."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from .config import BatchConfig
from .engine import ItemHandle, partition_items
from .logging_conf import configure_logging
from .scheduler import BatchScheduler, SchedulerState


@dataclass(slots=True)
class StatusReport:
    total: int
    members: int
    processed: int
    pending: int
    state: SchedulerState
    dedup_size: int
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["state"] = self.state.value
        return payload


class ManualAddOutcome(str, Enum):
    ADDED = "added"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    ALREADY_PROCESSED = "already_processed"
    IN_LIBRARY = "in_library"


class ControlPanel:
    """Start/stop, clear and inspect a running batch.

    Every command returns immediately; ``report_status`` only awaits the
    read-only page adapters.
    """

    def __init__(self, scheduler: BatchScheduler) -> None:
        self.scheduler = scheduler
        self.logger = configure_logging().bind(component="control")

    def toggle_run(self) -> SchedulerState:
        if self.scheduler.is_running:
            self.scheduler.stop()
        else:
            self.scheduler.start()
        return self.scheduler.state

    def clear_dedup(self) -> int:
        dropped = self.scheduler.dedup.clear()
        self.logger.info("dedup_cleared", dropped=dropped)
        return dropped

    async def report_status(self) -> StatusReport:
        scheduler = self.scheduler
        try:
            items = await scheduler.source.list_items()
            partition = await partition_items(
                items,
                scheduler.oracle,
                scheduler.dedup,
                dedup_by_id=scheduler.config.dedup_by_id,
                mark_members=False,
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("status_scan_failed", error=str(exc))
            return StatusReport(0, 0, 0, 0, scheduler.state, len(scheduler.dedup), error=str(exc))
        report = StatusReport(
            total=partition.total,
            members=len(partition.members),
            processed=len(partition.processed),
            pending=len(partition.pending),
            state=scheduler.state,
            dedup_size=len(scheduler.dedup),
        )
        self.logger.info("status_reported", **report.as_dict())
        return report

    async def add_item(self, target: str) -> ManualAddOutcome:
        """Run the add gesture on one card, matched by id or locator.

        Works whether or not a batch is running and leaves the batch
        counters alone. The same guards as a batch cycle apply first.
        """

        scheduler = self.scheduler
        target = target.strip()
        if not target:
            return ManualAddOutcome.NOT_FOUND
        try:
            handle = _find_item(await scheduler.source.list_items(), target)
            if handle is None:
                self.logger.info("manual_add_not_found", target=target)
                return ManualAddOutcome.NOT_FOUND

            record = scheduler.config.dedup_by_id and handle.item_id is not None
            if record and scheduler.dedup.is_processed(handle.item_id):
                self.logger.info("manual_add_skipped", item=handle.label, reason="processed")
                return ManualAddOutcome.ALREADY_PROCESSED
            if await scheduler.oracle.is_member(handle):
                if record:
                    scheduler.dedup.mark_processed(handle.item_id)
                self.logger.info("manual_add_skipped", item=handle.label, reason="in_library")
                return ManualAddOutcome.IN_LIBRARY

            clicked = await scheduler.simulator.attempt_add(handle)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("manual_add_failed", target=target, error=str(exc))
            return ManualAddOutcome.FAILED
        if not clicked:
            self.logger.warning("manual_add_failed", item=handle.label, error="add control not found")
            return ManualAddOutcome.FAILED
        if record:
            scheduler.dedup.mark_processed(handle.item_id)
        self.logger.info("manual_add_done", item=handle.label)
        return ManualAddOutcome.ADDED

    def show_config(self) -> dict[str, Any]:
        payload: dict[str, Any] = self.scheduler.config.model_dump()
        payload["state"] = self.scheduler.state.value
        payload["dedup_size"] = len(self.scheduler.dedup)
        payload["stats"] = self.scheduler.stats.as_dict()
        return payload

    def apply_config(self, config: BatchConfig) -> bool:
        return self.scheduler.reconfigure(config)


def _find_item(items, target: str) -> ItemHandle | None:
    for handle in items:
        if target in (handle.item_id, handle.locator):
            return handle
    return None


__all__ = ["ControlPanel", "ManualAddOutcome", "StatusReport"]
