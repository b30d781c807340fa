"""disk-lens - Local filesystem inspection engine for disk-usage browsers.

This package answers two questions about a directory: what is immediately
inside it (fast, non-recursive) and how much space each subtree occupies
(slow, recursive, run concurrently on worker threads). It also reports the
capacity and usage of mounted volumes.
"""

from disk_lens.core.dispatcher import ScanDispatcher
from disk_lens.types.models import Entry, ScanResult, SubtreeSize, VolumeInfo

__all__ = [
    "Entry",
    "ScanDispatcher",
    "ScanResult",
    "SubtreeSize",
    "VolumeInfo",
    "main",
]


def main() -> None:
    """Run the disk-lens command-line interface."""
    from disk_lens.app.cli import cli

    cli(prog_name="disk-lens")
