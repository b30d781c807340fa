"""Phase 2 recursive size aggregation.

This module computes the total byte size and total descendant count of one
directory subtree with support for:
- Iterative depth-first traversal with an explicit stack (no recursion limit)
- Symlink-aware metadata reads that never follow links
- Silent absorption of unreadable entries and directories below the root
- Async integration using asyncio.to_thread so deep walks never block the loop

Every entry whose metadata can be read counts once toward ``item_count``,
whatever its type. Only regular files contribute bytes and only real
directories are descended into, so symlink cycles cannot cause unbounded
traversal.
"""

import asyncio
import logging
import os
import stat

from disk_lens.core.exceptions import AggregationError
from disk_lens.types.models import EntryOutcome, SubtreeSize, WalkStats

logger = logging.getLogger(__name__)


def classify_entry(dir_entry: os.DirEntry[str]) -> tuple[EntryOutcome, os.stat_result | None]:
    """Read one entry's own metadata and decide how the walk treats it.

    Args:
        dir_entry: Entry yielded by os.scandir

    Returns:
        Tuple of (outcome, stat result). The stat result is None only when
        the metadata could not be read.
    """
    try:
        st = dir_entry.stat(follow_symlinks=False)
    except OSError as exc:
        logger.debug(
            "Cannot read entry metadata, skipping",
            extra={"path": dir_entry.path, "error": str(exc)},
        )
        return EntryOutcome.SKIPPED_UNREADABLE, None

    if stat.S_ISDIR(st.st_mode) or stat.S_ISREG(st.st_mode):
        return EntryOutcome.MEASURED, st
    return EntryOutcome.SKIPPED_WRONG_TYPE, st


def walk_subtree(path: str | os.PathLike[str]) -> tuple[SubtreeSize, WalkStats]:
    """Walk a subtree and total its file sizes and entry count.

    The root itself is not counted. If the root cannot be opened as a
    directory the result is zero; directories further down that cannot be
    opened are counted as entries but contribute nothing else.

    Args:
        path: Root directory of the subtree

    Returns:
        Tuple of (subtree size, walk statistics)
    """
    root = os.fspath(path)
    stats = WalkStats()
    total_size = 0
    item_count = 0

    # Stack of (directory, depth below root)
    stack: list[tuple[str, int]] = [(root, 0)]

    while stack:
        current, depth = stack.pop()
        stats.max_depth = max(stats.max_depth, depth)

        try:
            iterator = os.scandir(current)
        except OSError as exc:
            if depth == 0:
                logger.debug(
                    "Cannot open subtree root, reporting zero",
                    extra={"path": current, "error": str(exc)},
                )
                return SubtreeSize(size=0, item_count=0), stats
            logger.debug(
                "Cannot open directory, skipping its contents",
                extra={"path": current, "error": str(exc)},
            )
            stats.unreadable_directories += 1
            continue

        with iterator:
            try:
                for dir_entry in iterator:
                    outcome, st = classify_entry(dir_entry)
                    stats.record(outcome)
                    if st is None:
                        continue

                    item_count += 1
                    if outcome is not EntryOutcome.MEASURED:
                        continue

                    if stat.S_ISDIR(st.st_mode):
                        stack.append((dir_entry.path, depth + 1))
                    else:
                        total_size += st.st_size
            except OSError as exc:
                logger.debug(
                    "Directory listing interrupted, keeping partial totals",
                    extra={"path": current, "error": str(exc)},
                )
                stats.unreadable_directories += 1

    return SubtreeSize(size=total_size, item_count=item_count), stats


def aggregate_size_sync(path: str | os.PathLike[str]) -> SubtreeSize:
    """Compute the recursive size of one directory subtree.

    This function is designed to be called from asyncio.to_thread to avoid
    blocking the event loop during deep traversals. It never raises for
    filesystem conditions; unreadable parts of the tree contribute zero.

    Args:
        path: Root directory of the subtree

    Returns:
        SubtreeSize with total bytes and total descendant count

    Examples:
        >>> result = aggregate_size_sync("/does/not/exist")
        >>> (result.size, result.item_count)
        (0, 0)
    """
    result, stats = walk_subtree(path)

    logger.debug(
        "Subtree aggregation complete",
        extra={
            "path": os.fspath(path),
            "size": result.size,
            "item_count": result.item_count,
            **stats.as_log_fields(),
        },
    )
    return result


async def aggregate_size(path: str | os.PathLike[str]) -> SubtreeSize:
    """Async wrapper for subtree aggregation using asyncio.to_thread.

    Offloads the blocking traversal to the default thread pool so that many
    aggregations can run side by side without stalling other work on the
    event loop. Context variables (correlation IDs) are copied into the
    worker thread.

    Args:
        path: Root directory of the subtree

    Returns:
        SubtreeSize with total bytes and total descendant count

    Raises:
        AggregationError: If the background execution itself fails
    """
    dir_path = os.fspath(path)
    try:
        return await asyncio.to_thread(aggregate_size_sync, dir_path)
    except Exception as exc:
        logger.error(
            "Subtree aggregation could not be executed",
            extra={"path": dir_path, "error": str(exc)},
        )
        raise AggregationError(dir_path, str(exc)) from exc
