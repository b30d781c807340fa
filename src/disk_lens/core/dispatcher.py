"""Scan dispatcher exposing the engine's operations to an async caller.

The dispatcher is the boundary a UI or host process drives: a fast Phase 1
listing, any number of concurrent Phase 2 aggregations, and a volumes
overview. It keeps no state between calls; configuration given at
construction only shapes how each call schedules its own work.
"""

from __future__ import annotations

import asyncio
import contextlib
import contextvars
import logging
import os
from collections.abc import AsyncIterator, Callable, Collection, Iterable, Iterator

from disk_lens.core.aggregator import aggregate_size
from disk_lens.core.exceptions import AggregationError
from disk_lens.core.lister import list_children
from disk_lens.core.volumes import list_volumes
from disk_lens.types.models import Entry, ScanResult, SubtreeSize, VolumeInfo
from disk_lens.utils.logging import (
    generate_correlation_id,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
)

__all__ = ["AggregateOutcome", "ScanDispatcher"]

type CorrelationIDFactory = Callable[[], str]
type AggregateOutcome = tuple[str, SubtreeSize | AggregationError]


class ScanDispatcher:
    """Expose listing, aggregation and volume queries as independent calls.

    Phase 1 listings and volume queries complete within the calling task.
    Phase 2 aggregations are offloaded to worker threads, so any number of
    them can be awaited side by side without blocking each other or the
    event loop.
    """

    def __init__(
        self,
        *,
        max_concurrency: int | None = None,
        skip_fstypes: Collection[str] = (),
        correlation_id_factory: CorrelationIDFactory | None = None,
        logger_obj: logging.Logger | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency <= 0:
            msg = "max_concurrency must be greater than zero"
            raise ValueError(msg)

        self._max_concurrency: int | None = max_concurrency
        self._skip_fstypes: frozenset[str] = frozenset(skip_fstypes)
        self._correlation_id_factory: CorrelationIDFactory = (
            correlation_id_factory or generate_correlation_id
        )
        self._logger: logging.Logger = logger_obj or get_logger(__name__)

    @property
    def max_concurrency(self) -> int | None:
        return self._max_concurrency

    async def list_volumes(self) -> list[VolumeInfo]:
        """Return a fresh capacity snapshot of every mounted volume."""
        with self._correlated():
            return list_volumes(skip_fstypes=self._skip_fstypes)

    async def list_children(self, path: str | os.PathLike[str]) -> list[Entry]:
        """Phase 1: list the immediate children of ``path``.

        Raises:
            DirectoryListingError: If the directory cannot be opened
        """
        with self._correlated():
            return list_children(path)

    async def aggregate_size(self, path: str | os.PathLike[str]) -> SubtreeSize:
        """Phase 2: compute the recursive size of one directory.

        Raises:
            AggregationError: If the background execution cannot be scheduled
        """
        with self._correlated():
            return await aggregate_size(path)

    async def aggregate_many(
        self,
        paths: Iterable[str | os.PathLike[str]],
    ) -> AsyncIterator[AggregateOutcome]:
        """Aggregate several directories concurrently.

        Results are yielded in completion order, each paired with the path it
        was requested for. A failed aggregation is yielded as its
        ``AggregationError`` so it never cancels its siblings.

        Args:
            paths: Directories to aggregate

        Yields:
            Tuples of (path, SubtreeSize or AggregationError)
        """
        requested = [os.fspath(path) for path in paths]
        if not requested:
            return

        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency is not None else None
        )

        # Tasks run in a copied context carrying this batch's correlation ID
        context = contextvars.copy_context()
        correlation_id = self._correlation_id_factory()
        _ = context.run(set_correlation_id, correlation_id)

        self._logger.debug(
            "Dispatching subtree aggregations",
            extra={
                "aggregations": len(requested),
                "max_concurrency": self._max_concurrency,
                "batch_correlation_id": correlation_id,
            },
        )

        tasks = [
            asyncio.create_task(self._aggregate_one(path, semaphore), context=context)
            for path in requested
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            # Aggregations cannot be cancelled; let any left behind finish
            pending = [task for task in tasks if not task.done()]
            if pending:
                _ = await asyncio.gather(*pending, return_exceptions=True)

    async def scan(self, path: str | os.PathLike[str]) -> ScanResult:
        """List a directory, then fill in recursive sizes for its subfolders.

        Entries keep their Phase 1 order. Directories whose aggregation
        failed keep their Phase 1 placeholder values and are reported in
        ``ScanResult.failed``.

        Raises:
            DirectoryListingError: If the directory cannot be opened
        """
        dir_path = os.fspath(path)
        entries = await self.list_children(dir_path)

        subtrees: dict[str, SubtreeSize] = {}
        failed: set[str] = set()
        async for entry_path, outcome in self.aggregate_many(e.path for e in entries if e.is_dir):
            if isinstance(outcome, AggregationError):
                failed.add(entry_path)
            else:
                subtrees[entry_path] = outcome

        merged = tuple(
            entry.with_subtree(subtrees[entry.path]) if entry.path in subtrees else entry
            for entry in entries
        )
        result = ScanResult(path=dir_path, entries=merged, failed=frozenset(failed))

        self._logger.info(
            "Directory scan complete",
            extra={
                "path": dir_path,
                "entries": len(merged),
                "directories_sized": len(subtrees),
                "directories_failed": len(failed),
                "total_size": result.total_size,
            },
        )
        return result

    async def _aggregate_one(
        self,
        path: str,
        semaphore: asyncio.Semaphore | None,
    ) -> AggregateOutcome:
        try:
            if semaphore is None:
                return path, await aggregate_size(path)
            async with semaphore:
                return path, await aggregate_size(path)
        except AggregationError as exc:
            return path, exc

    @contextlib.contextmanager
    def _correlated(self) -> Iterator[str]:
        correlation_id = self._correlation_id_factory()
        token = set_correlation_id(correlation_id)
        try:
            yield correlation_id
        finally:
            reset_correlation_id(token)
