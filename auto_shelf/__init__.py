"""Auto-Shelf: batch-add catalog entries to a library through its web UI."""

__version__ = "1.3.0"
