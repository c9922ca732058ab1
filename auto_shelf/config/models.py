"""Pydantic models describing an Auto-Shelf session."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BatchConfig(BaseModel):
    """Timing and bookkeeping knobs of the batch scheduler.

    The model is frozen: a running batch always sees the values it was
    started with. Swap the whole object while idle to change them.
    """

    model_config = ConfigDict(frozen=True)

    long_press_delay_ms: int = 1000
    menu_wait_ms: int = 500
    batch_interval_ms: int = 2000
    idle_repoll_ms: int = 3000
    # 最后一个条目派发后等待多久再重新扫描；为空时取一个批次间隔
    settle_delay_ms: int | None = None
    verbose_logging: bool = False
    dedup_by_id: bool = True
    verify_membership: bool = False
    observe_mutations: bool = True

    @model_validator(mode="after")
    def _validate_delays(self) -> "BatchConfig":
        for name in ("long_press_delay_ms", "menu_wait_ms", "idle_repoll_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.settle_delay_ms is not None and self.settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must be >= 0")
        if self.batch_interval_ms <= 0:
            raise ValueError("batch_interval_ms must be > 0")
        return self

    @property
    def batch_interval(self) -> float:
        return self.batch_interval_ms / 1000

    @property
    def idle_repoll(self) -> float:
        return self.idle_repoll_ms / 1000

    @property
    def settle_delay(self) -> float:
        if self.settle_delay_ms is None:
            return self.batch_interval
        return self.settle_delay_ms / 1000


class PageConfig(BaseModel):
    """Selectors and text markers used to read and drive the library page."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://127.0.0.1:4567/"
    item_selector: str = 'a[href^="/manga/"]'
    id_pattern: str = r"/manga/(\d+)"
    library_marker: str = "在书架中"
    indicator_selector: str = ".source-manga-library-state-indicator"
    control_selector: str = 'button, [role="menuitem"], .MuiMenuItem-root'
    add_labels: tuple[str, ...] = ("添加", "Add", "书架", "Library")

    @field_validator("id_pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            compiled = re.compile(value)
        except re.error as exc:
            raise ValueError(f"id_pattern is not a valid regular expression: {exc}") from exc
        if compiled.groups < 1:
            raise ValueError("id_pattern must capture the item id in a group")
        return value

    @field_validator("add_labels", mode="before")
    @classmethod
    def _coerce_labels(cls, value: Any) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [value]
        labels = tuple(str(label).strip() for label in value or () if str(label).strip())
        if not labels:
            raise ValueError("add_labels needs at least one label")
        return labels


class BrowserConfig(BaseModel):
    """Playwright launch options for the host page."""

    model_config = ConfigDict(frozen=True)

    headless: bool = False
    mobile: bool = True
    viewport_size: tuple[int, int] = (412, 915)
    locale: str = "zh-CN"
    navigation_timeout: int = 30000

    @field_validator("viewport_size", mode="before")
    @classmethod
    def _coerce_viewport(cls, value: Any) -> tuple[int, int]:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            width, height = int(value[0]), int(value[1])
            if width <= 0 or height <= 0:
                raise ValueError("viewport_size values must be positive")
            return (width, height)
        raise ValueError("viewport_size expects a two-item list [width, height]")


class ShelfConfig(BaseModel):
    """Complete session configuration."""

    model_config = ConfigDict(frozen=True)

    batch: BatchConfig = Field(default_factory=BatchConfig)
    page: PageConfig = Field(default_factory=PageConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    autostart: bool = False


__all__ = ["BatchConfig", "BrowserConfig", "PageConfig", "ShelfConfig"]
