"""Scanning engine: volume enumeration, Phase 1 listing, Phase 2 aggregation."""

from disk_lens.core.aggregator import aggregate_size, aggregate_size_sync, walk_subtree
from disk_lens.core.dispatcher import ScanDispatcher
from disk_lens.core.exceptions import (
    AggregationError,
    ConfigurationError,
    DirectoryListingError,
    DiskLensError,
    EnvironmentVariableError,
)
from disk_lens.core.lister import direct_child_count, list_children, sort_entries
from disk_lens.core.volumes import list_volumes

__all__ = [
    "AggregationError",
    "ConfigurationError",
    "DirectoryListingError",
    "DiskLensError",
    "EnvironmentVariableError",
    "ScanDispatcher",
    "aggregate_size",
    "aggregate_size_sync",
    "direct_child_count",
    "list_children",
    "list_volumes",
    "sort_entries",
    "walk_subtree",
]
