"""User interaction helpers."""

from .console import OperatorPrompt, StateBanner, render_config, render_status

__all__ = ["OperatorPrompt", "StateBanner", "render_config", "render_status"]
