"""Playwright-backed adapters for the library web UI."""

from .adapters import LibraryBadgeOracle, LongPressSimulator, PageItemSource
from .observer import install_mutation_observer
from .session import BrowserSession

__all__ = [
    "BrowserSession",
    "LibraryBadgeOracle",
    "LongPressSimulator",
    "PageItemSource",
    "install_mutation_observer",
]
