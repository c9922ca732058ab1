"""Batch scheduler driving undiscovered items through the add gesture.

Every cycle re-reads the whole item list, filters it, and arms one timer per
pending item at ``index * batch_interval`` from the cycle start. Dispatches
are fire-and-forget: whether an add really landed is learned from the next
cycle's membership check, not from the simulator. A cycle that finds nothing
waits ``idle_repoll`` and tries again, so lazily loaded items are picked up
without ever ending the run. Only ``stop()`` ends a run.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Protocol

from ..config import BatchConfig
from ..engine import (
    ActionSimulator,
    DedupStore,
    ItemHandle,
    ItemSource,
    MembershipOracle,
    Partition,
    partition_items,
)
from ..logging_conf import configure_logging


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timers(Protocol):
    """Subset of the asyncio loop API used for pacing."""

    def time(self) -> float:
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


@dataclass
class SchedulerStats:
    cycles: int = 0
    idle_polls: int = 0
    dispatched: int = 0
    added: int = 0
    failed: int = 0
    wakeups: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


StateListener = Callable[[SchedulerState], None]


class BatchScheduler:
    """Single-loop state machine: ``idle -> running -> idle``."""

    def __init__(
        self,
        config: BatchConfig,
        source: ItemSource,
        oracle: MembershipOracle,
        simulator: ActionSimulator,
        dedup: DedupStore | None = None,
        timers: Timers | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.oracle = oracle
        self.simulator = simulator
        self.dedup = dedup if dedup is not None else DedupStore()
        self.state = SchedulerState.IDLE
        self.stats = SchedulerStats()
        self.last_partition: Partition | None = None
        self.logger = configure_logging().bind(component="scheduler")
        self._timers_override = timers
        self._timers: Timers | None = timers
        self._generation = 0
        self._pending: set[TimerHandle] = set()
        self._idle_handle: TimerHandle | None = None
        self._cycle_task: asyncio.Future | None = None
        self._inflight: set[asyncio.Future] = set()
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def start(self) -> bool:
        if self.is_running:
            self.logger.info("batch_already_running")
            return False
        if self._timers_override is None:
            self._timers = asyncio.get_running_loop()
        self._generation += 1
        self.stats = SchedulerStats()
        self.last_partition = None
        self._set_state(SchedulerState.RUNNING)
        self.logger.info(
            "batch_started",
            batch_interval_ms=self.config.batch_interval_ms,
            idle_repoll_ms=self.config.idle_repoll_ms,
            dedup_by_id=self.config.dedup_by_id,
        )
        self._launch_cycle(self._generation)
        return True

    def stop(self) -> bool:
        if not self.is_running:
            self.logger.info("batch_not_running")
            return False
        self._set_state(SchedulerState.STOPPING)
        self._generation += 1
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()
        self._idle_handle = None
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycle_task.cancel()
        self._cycle_task = None
        self._set_state(SchedulerState.IDLE)
        # Dispatched gestures are not recalled; they may still land after this point.
        self.logger.info("batch_stopped", inflight=self.inflight, **self.stats.as_dict())
        return True

    def wake(self) -> bool:
        """Start the next cycle now when waiting out an idle re-poll."""

        if not self.is_running or self._idle_handle is None:
            return False
        handle = self._idle_handle
        self._idle_handle = None
        handle.cancel()
        self._pending.discard(handle)
        self.stats.wakeups += 1
        self.logger.debug("batch_woken")
        self._launch_cycle(self._generation)
        return True

    def reconfigure(self, config: BatchConfig) -> bool:
        if self.state is not SchedulerState.IDLE:
            self.logger.warning("config_change_rejected", state=self.state.value)
            return False
        self.config = config
        self.logger.info("config_applied", **config.model_dump())
        return True

    # ------------------------------------------------------------------
    # Cycle internals
    # ------------------------------------------------------------------
    def _active(self, generation: int) -> bool:
        return self.is_running and generation == self._generation

    def _set_state(self, state: SchedulerState) -> None:
        self.state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("state_listener_failed", error=str(exc))

    def _clock(self) -> Timers:
        if self._timers is None:
            raise RuntimeError("BatchScheduler has no timer source; call start() first")
        return self._timers

    def _arm(self, delay: float, callback: Callable[..., None], *args: Any) -> TimerHandle:
        handle: TimerHandle | None = None

        def _fire() -> None:
            self._pending.discard(handle)
            callback(*args)

        handle = self._clock().call_later(max(0.0, delay), _fire)
        self._pending.add(handle)
        return handle

    def _trace(self, event: str, **fields: Any) -> None:
        if self.config.verbose_logging:
            self.logger.info(event, **fields)
        else:
            self.logger.debug(event, **fields)

    def _launch_cycle(self, generation: int) -> None:
        if not self._active(generation):
            return
        self._idle_handle = None
        self._cycle_task = asyncio.ensure_future(self._run_cycle(generation))

    async def _scan(self) -> Partition:
        items = await self.source.list_items()
        return await partition_items(
            items,
            self.oracle,
            self.dedup,
            dedup_by_id=self.config.dedup_by_id,
            mark_members=True,
        )

    async def _run_cycle(self, generation: int) -> None:
        cycle_start = self._clock().time()
        self.stats.cycles += 1
        try:
            partition = await self._scan()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("cycle_scan_failed", cycle=self.stats.cycles, error=str(exc))
            partition = Partition()
        if not self._active(generation):
            return
        self.last_partition = partition
        for handle in partition.members:
            self._trace("item_in_library", item=handle.label)
        self.logger.info("cycle_scanned", cycle=self.stats.cycles, **partition.counts())

        if not partition.pending:
            self.stats.idle_polls += 1
            self._idle_handle = self._arm(self.config.idle_repoll, self._launch_cycle, generation)
            return

        # Offsets count from the cycle start, so a slow scan eats into the schedule.
        elapsed = self._clock().time() - cycle_start
        interval = self.config.batch_interval
        for index, handle in enumerate(partition.pending):
            self._arm(index * interval - elapsed, self._dispatch, generation, handle)
        last_offset = (len(partition.pending) - 1) * interval
        self._arm(last_offset + self.config.settle_delay - elapsed, self._launch_cycle, generation)

    def _dispatch(self, generation: int, handle: ItemHandle) -> None:
        if not self._active(generation):
            return
        if self.config.dedup_by_id and self.dedup.is_processed(handle.item_id):
            self._trace("item_already_processed", item=handle.label)
            return
        self.stats.dispatched += 1
        self.logger.info("item_dispatched", item=handle.label, position=handle.position + 1)
        task = asyncio.ensure_future(self._attempt(handle, self.stats))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _attempt(self, handle: ItemHandle, stats: SchedulerStats) -> None:
        # ``stats`` belongs to the run that dispatched; a restart swaps self.stats.
        try:
            clicked = await self.simulator.attempt_add(handle)
        except Exception as exc:  # noqa: BLE001
            stats.failed += 1
            self.logger.warning("item_action_failed", item=handle.label, error=str(exc))
            return
        if not clicked:
            stats.failed += 1
            self.logger.warning("add_control_not_found", item=handle.label)
            return
        stats.added += 1
        if not (self.config.dedup_by_id and handle.item_id):
            return
        if self.config.verify_membership:
            try:
                confirmed = await self.oracle.is_member(handle)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("membership_recheck_failed", item=handle.label, error=str(exc))
                confirmed = False
            if not confirmed:
                self._trace("item_membership_unconfirmed", item=handle.label)
                return
        self.dedup.mark_processed(handle.item_id)
        self._trace("item_marked_processed", item=handle.label)


__all__ = ["BatchScheduler", "SchedulerState", "SchedulerStats", "Timers"]
