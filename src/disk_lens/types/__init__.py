"""Type definitions for disk-lens.

This package provides the immutable data models exchanged between the
scanning engine and its callers.
"""

from disk_lens.types.models import (
    Entry,
    EntryOutcome,
    ScanResult,
    SubtreeSize,
    VolumeInfo,
    WalkStats,
)

__all__ = [
    "Entry",
    "EntryOutcome",
    "ScanResult",
    "SubtreeSize",
    "VolumeInfo",
    "WalkStats",
]
