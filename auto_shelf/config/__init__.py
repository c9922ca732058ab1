"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import BatchConfig, BrowserConfig, PageConfig, ShelfConfig

__all__ = [
    "BatchConfig",
    "BrowserConfig",
    "ConfigLocator",
    "ConfigRepository",
    "PageConfig",
    "ShelfConfig",
]
