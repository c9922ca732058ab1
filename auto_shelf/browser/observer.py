"""DOM mutation hook turning newly rendered item cards into scheduler wake-ups."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from ..logging_conf import configure_logging

BINDING_NAME = "autoShelfNotify"

_OBSERVER_SCRIPT = """
(selector) => {
    if (window.__autoShelfObserver) {
        return false;
    }
    const observer = new MutationObserver((mutations) => {
        let added = 0;
        for (const mutation of mutations) {
            for (const node of mutation.addedNodes) {
                if (node.nodeType !== 1) {
                    continue;
                }
                if (node.matches && node.matches(selector)) {
                    added += 1;
                }
                if (node.querySelectorAll) {
                    added += node.querySelectorAll(selector).length;
                }
            }
        }
        if (added > 0) {
            window.%s(added);
        }
    });
    observer.observe(document.body, {childList: true, subtree: true});
    window.__autoShelfObserver = observer;
    return true;
}
""" % BINDING_NAME


async def install_mutation_observer(page: Any, selector: str, callback: Callable[[], Any]) -> None:
    """Call ``callback`` whenever cards matching ``selector`` appear.

    The binding survives navigations; the observer itself is re-injected on
    every page load.
    """

    logger = configure_logging().bind(component="observer")

    def _on_new_items(added: int) -> None:
        logger.debug("new_items_rendered", added=added)
        callback()

    async def _inject() -> None:
        try:
            installed = await page.evaluate(_OBSERVER_SCRIPT, selector)
        except Exception as exc:  # noqa: BLE001
            logger.warning("observer_install_failed", error=str(exc))
            return
        if installed:
            logger.info("observer_installed", selector=selector)

    def _on_load(_page: Any) -> None:
        asyncio.ensure_future(_inject())

    await page.expose_function(BINDING_NAME, _on_new_items)
    page.on("load", _on_load)
    await _inject()


__all__ = ["BINDING_NAME", "install_mutation_observer"]
