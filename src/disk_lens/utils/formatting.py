"""Pure formatting utilities for human-readable output.

This module provides stateless formatting functions used by the CLI to
render sizes, counts and usage ratios. All functions are pure with no side
effects.
"""

from typing import Final

# Binary unit constants (1024-based)
_KB: Final[int] = 1024
_MB: Final[int] = _KB * 1024  # 1,048,576
_GB: Final[int] = _MB * 1024  # 1,073,741,824
_TB: Final[int] = _GB * 1024  # 1,099,511,627,776

# Shown for sizes that are zero, including folders not yet measured
EMPTY_SIZE: Final[str] = "—"


def format_size(bytes: int) -> str:
    """Convert bytes to human-readable size format.

    Uses binary units (1024-based) for consistency with system tools. Values
    of a kilobyte or more show one decimal place; terabytes is the largest
    unit.

    Args:
        bytes: Number of bytes to format (must be non-negative)

    Returns:
        Human-readable string representation of the size

    Examples:
        >>> format_size(0)
        '—'
        >>> format_size(512)
        '512 B'
        >>> format_size(1536)
        '1.5 KB'
        >>> format_size(5242880)
        '5.0 MB'
        >>> format_size(3 * 1024**5)
        '3072.0 TB'
    """
    if bytes < 0:
        msg = "bytes must be non-negative"
        raise ValueError(msg)

    if bytes == 0:
        return EMPTY_SIZE

    if bytes >= _TB:
        return f"{bytes / _TB:.1f} TB"

    if bytes >= _GB:
        return f"{bytes / _GB:.1f} GB"

    if bytes >= _MB:
        return f"{bytes / _MB:.1f} MB"

    if bytes >= _KB:
        return f"{bytes / _KB:.1f} KB"

    return f"{bytes} B"


def format_count(count: int, *, singular: str = "item", plural: str | None = None) -> str:
    """Format an entry count with a correctly pluralized noun.

    Examples:
        >>> format_count(1)
        '1 item'
        >>> format_count(12345)
        '12,345 items'
        >>> format_count(2, singular="volume")
        '2 volumes'
    """
    if count < 0:
        msg = "count must be non-negative"
        raise ValueError(msg)

    noun = singular if count == 1 else (plural or f"{singular}s")
    return f"{count:,} {noun}"


def format_usage_percent(used: int, total: int) -> str:
    """Format used space as a percentage of total capacity.

    Examples:
        >>> format_usage_percent(50, 200)
        '25.0%'
        >>> format_usage_percent(0, 0)
        '0.0%'
    """
    if total <= 0:
        return "0.0%"
    return f"{min(used / total, 1.0) * 100:.1f}%"
