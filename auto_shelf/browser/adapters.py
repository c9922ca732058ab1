"""Page adapters: read item cards, check library badges, simulate long-press."""

from __future__ import annotations

import asyncio
from typing import Any

from ..config import BatchConfig, PageConfig
from ..engine import ItemHandle, extract_item_id
from ..logging_conf import configure_logging

_TOUCH_POINTER = {"pointerId": 1, "pointerType": "touch", "isPrimary": True}


class PageItemSource:
    """List every item card currently rendered on the page, in DOM order."""

    def __init__(self, page: Any, config: PageConfig) -> None:
        self.page = page
        self.config = config

    async def list_items(self) -> list[ItemHandle]:
        elements = await self.page.query_selector_all(self.config.item_selector)
        handles: list[ItemHandle] = []
        for position, element in enumerate(elements):
            href = await element.get_attribute("href") or ""
            handles.append(
                ItemHandle(
                    locator=href,
                    item_id=extract_item_id(href, self.config.id_pattern),
                    position=position,
                    element=element,
                )
            )
        return handles


class LibraryBadgeOracle:
    """An item is a member when its card shows the in-library marker text."""

    def __init__(self, config: PageConfig) -> None:
        self.config = config

    async def is_member(self, handle: ItemHandle) -> bool:
        element = handle.element
        if element is None:
            return False
        marker = self.config.library_marker
        indicator = await element.query_selector(self.config.indicator_selector)
        if indicator is not None and marker in (await indicator.text_content() or ""):
            return True
        return marker in (await element.text_content() or "")


class LongPressSimulator:
    """Open the card's context menu with a synthetic long-press and click "add"."""

    def __init__(self, page: Any, page_config: PageConfig, batch_config: BatchConfig) -> None:
        self.page = page
        self.page_config = page_config
        self.batch_config = batch_config
        self.logger = configure_logging().bind(component="simulator")

    async def attempt_add(self, handle: ItemHandle) -> bool:
        element = handle.element
        if element is None:
            raise RuntimeError(f"Item {handle.label} has no element to press")
        box = await element.bounding_box() or {"x": 0, "y": 0}
        await element.dispatch_event("pointerdown", dict(_TOUCH_POINTER))
        await asyncio.sleep(self.batch_config.long_press_delay_ms / 1000)
        await element.dispatch_event(
            "contextmenu",
            {"clientX": box["x"] + 10, "clientY": box["y"] + 10},
        )
        await element.dispatch_event("pointerup", dict(_TOUCH_POINTER))
        await asyncio.sleep(self.batch_config.menu_wait_ms / 1000)
        return await self._click_add_control(handle)

    async def _click_add_control(self, handle: ItemHandle) -> bool:
        controls = await self.page.query_selector_all(self.page_config.control_selector)
        for control in controls:
            text = (await control.text_content() or "").strip()
            if any(label in text for label in self.page_config.add_labels):
                await control.click()
                self.logger.info("add_control_clicked", item=handle.label, text=text)
                return True
        self.logger.debug("add_control_missing", item=handle.label, candidates=len(controls))
        return False


__all__ = ["LibraryBadgeOracle", "LongPressSimulator", "PageItemSource"]
