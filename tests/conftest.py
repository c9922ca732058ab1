"""Pytest configuration providing QA reporting and shared fixtures."""

from __future__ import annotations

import asyncio
import itertools
import json
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from auto_shelf.config import BatchConfig, ConfigLocator, ConfigRepository
from auto_shelf.engine import DedupStore, ItemHandle, extract_item_id
from auto_shelf.scheduler import BatchScheduler


class QAPlugin:
    """Collect failed test ids into a JSON report."""

    def __init__(self, config: pytest.Config) -> None:
        self.config = config
        self.failed_cases: list[str] = []

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:  # pragma: no cover
        if report.when == "call" and report.failed:
            self.failed_cases.append(report.nodeid)

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:  # pragma: no cover
        reports_dir = Path(self.config.rootpath) / "reports"
        reports_dir.mkdir(parents=True, exist_ok=True)
        report_payload = {
            "coverage": 1.0 if not self.failed_cases else 0.0,
            "failed_cases": self.failed_cases,
        }
        (reports_dir / "test_report.json").write_text(
            json.dumps(report_payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


def pytest_configure(config: pytest.Config) -> None:  # pragma: no cover
    plugin = QAPlugin(config)
    config.pluginmanager.register(plugin, "qa-plugin")
    config._qa_plugin = plugin  # type: ignore[attr-defined]


def pytest_unconfigure(config: pytest.Config) -> None:  # pragma: no cover
    plugin = getattr(config, "_qa_plugin", None)
    if plugin is not None:
        config.pluginmanager.unregister(plugin)
        delattr(config, "_qa_plugin")


# ----------------------------------------------------------------------
# Event-loop helpers
# ----------------------------------------------------------------------
async def settle(rounds: int = 20) -> None:
    """Let already-scheduled tasks run to their next real suspension point."""

    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualTimer:
    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Virtual clock with ``call_later``; time only moves through ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._timers: list[ManualTimer] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self.now + delay, next(self._seq), callback, args)
        self._timers.append(timer)
        return timer

    def pending(self) -> list[ManualTimer]:
        return [timer for timer in self._timers if not timer.cancelled]

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await settle()
        while True:
            due = [t for t in self.pending() if t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.when, t.seq))
            self._timers.remove(timer)
            self.now = max(self.now, timer.when)
            timer.callback(*timer.args)
            await settle()
        self.now = target


# ----------------------------------------------------------------------
# Fake adapters
# ----------------------------------------------------------------------
def make_item(locator: str, position: int = 0) -> ItemHandle:
    return ItemHandle(locator=locator, item_id=extract_item_id(locator), position=position)


def make_items(*locators: str) -> list[ItemHandle]:
    return [make_item(locator, index) for index, locator in enumerate(locators)]


class FakeItemSource:
    def __init__(self, items: Iterable[ItemHandle] = ()) -> None:
        self.items = list(items)
        self.calls = 0
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def list_items(self) -> list[ItemHandle]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            error, self.error = self.error, None
            raise error
        return list(self.items)


class FakeOracle:
    def __init__(self, members: Iterable[str] = ()) -> None:
        self.members = set(members)
        self.calls = 0
        self.error: Exception | None = None

    async def is_member(self, handle: ItemHandle) -> bool:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return handle.locator in self.members


class FakeSimulator:
    """Record dispatch times; optionally fail or block until released."""

    def __init__(self, timers: ManualTimers, result: bool = True) -> None:
        self.timers = timers
        self.result = result
        self.dispatches: list[tuple[float, str]] = []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.completed: list[str] = []
        self.adds_membership: FakeOracle | None = None

    async def attempt_add(self, handle: ItemHandle) -> bool:
        self.dispatches.append((self.timers.time(), handle.locator))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        self.completed.append(handle.locator)
        if self.result and self.adds_membership is not None:
            self.adds_membership.members.add(handle.locator)
        return self.result

    @property
    def dispatched(self) -> list[str]:
        return [locator for _, locator in self.dispatches]


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def batch_config() -> Callable[..., BatchConfig]:
    def _builder(**overrides: Any) -> BatchConfig:
        base: dict[str, Any] = {
            "long_press_delay_ms": 0,
            "menu_wait_ms": 0,
            "batch_interval_ms": 1000,
            "idle_repoll_ms": 3000,
        }
        base.update(overrides)
        return BatchConfig(**base)

    return _builder


@pytest.fixture
def harness(timers: ManualTimers, batch_config) -> Callable[..., tuple]:
    """Build a scheduler wired to fakes: returns (scheduler, source, oracle, simulator)."""

    def _builder(items=(), members=(), **overrides: Any):
        source = FakeItemSource(items)
        oracle = FakeOracle(members)
        simulator = FakeSimulator(timers)
        scheduler = BatchScheduler(
            batch_config(**overrides),
            source,
            oracle,
            simulator,
            dedup=DedupStore(),
            timers=timers,
        )
        return scheduler, source, oracle, simulator

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator(project_root=tmp_path))


@pytest.fixture
def items() -> Callable[..., list[ItemHandle]]:
    return make_items
