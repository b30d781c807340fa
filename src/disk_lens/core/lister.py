"""Phase 1 directory listing.

Lists the immediate children of one directory without recursing. Files are
reported with their real byte size; directories get the placeholder size 0
and their direct child count so a caller can render a skeleton right away
and request recursive sizes separately.

Symlinks, devices, sockets and other special entries are left out of the
listing entirely. Entries whose metadata cannot be read are skipped rather
than failing the whole listing; only a failure to open the requested
directory itself is raised.
"""

import logging
import os
import stat
from collections.abc import Iterable
from typing import Final, Literal

from disk_lens.core.exceptions import DirectoryListingError
from disk_lens.types.models import Entry

logger = logging.getLogger(__name__)

type SortKey = Literal["name", "size", "type"]

SORT_KEYS: Final[tuple[SortKey, ...]] = ("name", "size", "type")


def direct_child_count(path: str) -> int:
    """Count the entries a plain listing of ``path`` yields.

    No type filtering is applied: symlinks and special files are counted
    like anything else. This can differ from the number of entries
    ``list_children`` would return for the same directory.

    Args:
        path: Directory to count

    Returns:
        Number of direct children, or 0 if the directory cannot be opened
    """
    try:
        iterator = os.scandir(path)
    except OSError as exc:
        logger.debug(
            "Cannot open directory for child count",
            extra={"path": path, "error": str(exc)},
        )
        return 0

    count = 0
    with iterator:
        try:
            for _ in iterator:
                count += 1
        except OSError as exc:
            logger.debug(
                "Child count interrupted, using partial count",
                extra={"path": path, "count": count, "error": str(exc)},
            )
    return count


def _entry_from_dir_entry(dir_entry: os.DirEntry[str]) -> Entry | None:
    """Classify one child, or return None when it should not be listed."""
    try:
        # Never follow symlinks; a link is judged by the link itself
        st = dir_entry.stat(follow_symlinks=False)
    except OSError as exc:
        logger.debug(
            "Cannot read entry metadata, skipping",
            extra={"path": dir_entry.path, "error": str(exc)},
        )
        return None

    if stat.S_ISDIR(st.st_mode):
        return Entry(
            name=dir_entry.name,
            path=dir_entry.path,
            size=0,
            is_dir=True,
            item_count=direct_child_count(dir_entry.path),
        )
    if stat.S_ISREG(st.st_mode):
        return Entry(
            name=dir_entry.name,
            path=dir_entry.path,
            size=st.st_size,
            is_dir=False,
            item_count=0,
        )

    logger.debug(
        "Skipping non-regular entry",
        extra={"path": dir_entry.path, "mode": stat.filemode(st.st_mode)},
    )
    return None


def entry_sort_key(entry: Entry) -> tuple[bool, str]:
    """Default listing order: directories first, then case-insensitive name."""
    return (not entry.is_dir, entry.name.lower())


def list_children(path: str | os.PathLike[str]) -> list[Entry]:
    """List the immediate children of a directory.

    Args:
        path: Directory to list; relative paths resolve against the cwd

    Returns:
        Entries ordered directories first, then by case-insensitive name

    Raises:
        DirectoryListingError: If the directory cannot be opened (missing,
            permission denied, or not a directory)

    Examples:
        >>> entries = list_children("/var")
        >>> all(e.size == 0 for e in entries if e.is_dir)
        True
    """
    dir_path = os.fspath(path)

    try:
        iterator = os.scandir(dir_path)
    except OSError as exc:
        logger.debug(
            "Cannot open directory",
            extra={"path": dir_path, "error": str(exc)},
        )
        raise DirectoryListingError(dir_path, str(exc)) from exc

    entries: list[Entry] = []
    skipped = 0
    with iterator:
        try:
            for dir_entry in iterator:
                entry = _entry_from_dir_entry(dir_entry)
                if entry is None:
                    skipped += 1
                    continue
                entries.append(entry)
        except OSError as exc:
            logger.debug(
                "Directory listing interrupted, returning partial listing",
                extra={"path": dir_path, "error": str(exc)},
            )

    entries.sort(key=entry_sort_key)

    logger.info(
        "Directory listed",
        extra={"path": dir_path, "entries": len(entries), "skipped": skipped},
    )
    return entries


def sort_entries(
    entries: Iterable[Entry],
    *,
    key: SortKey = "size",
    descending: bool = True,
) -> list[Entry]:
    """Re-order entries for display.

    Unlike ``entry_sort_key`` this does not group directories first unless
    sorting by type. Ties keep their incoming order.

    Args:
        entries: Entries to order, typically a merged scan result
        key: Column to sort by
        descending: Reverse the comparison

    Returns:
        New list in the requested order

    Raises:
        ValueError: If ``key`` is not a known sort column
    """
    match key:
        case "size":
            return sorted(entries, key=lambda e: e.size, reverse=descending)
        case "name":
            return sorted(entries, key=lambda e: e.name.lower(), reverse=descending)
        case "type":
            return sorted(entries, key=lambda e: e.is_dir, reverse=descending)
        case _:
            msg = f"Unknown sort key: {key!r}. Valid keys: {', '.join(SORT_KEYS)}"
            raise ValueError(msg)
