"""Application module for the disk-lens command-line interface."""

from __future__ import annotations

from disk_lens.app.cli import cli

__all__ = [
    "cli",
]
