"""Shared utility modules for common operations.

This package provides:
- Data size and count formatting (pure, stateless)
- Logging configuration with correlation ID tracking
"""

from disk_lens.utils.formatting import (
    EMPTY_SIZE,
    format_count,
    format_size,
    format_usage_percent,
)

__all__ = [
    "EMPTY_SIZE",
    "format_count",
    "format_size",
    "format_usage_percent",
]
