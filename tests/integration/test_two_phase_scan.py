"""End-to-end tests of the listing-then-sizing flow against a real tree."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest

from disk_lens.core.dispatcher import ScanDispatcher
from disk_lens.types.models import Entry, SubtreeSize

type TreeBuilder = Callable[..., Path]


@pytest.fixture
def project_tree(tmp_path: Path, make_tree: TreeBuilder) -> Path:
    """A small home-directory-like tree with nested folders."""
    return make_tree(
        tmp_path / "home",
        {
            "Documents": {
                "report.pdf": b"r" * 300,
                "notes": {"a.md": b"a" * 20, "b.md": b"b" * 30},
            },
            "Downloads": {"archive.zip": b"z" * 1000},
            "Music": {},
            ".profile": b"p" * 12,
        },
    )


@pytest.mark.integration
class TestTwoPhaseScan:
    @pytest.mark.asyncio
    async def test_phase_one_then_phase_two(self, project_tree: Path) -> None:
        """A caller lists first, then sizes every subfolder concurrently."""
        dispatcher = ScanDispatcher()

        entries = await dispatcher.list_children(project_tree)

        assert [e.name for e in entries] == ["Documents", "Downloads", "Music", ".profile"]
        placeholders = {e.name: (e.size, e.item_count) for e in entries if e.is_dir}
        assert placeholders == {"Documents": (0, 2), "Downloads": (0, 1), "Music": (0, 0)}

        sizes: dict[str, SubtreeSize] = {}
        async for path, outcome in dispatcher.aggregate_many(e.path for e in entries if e.is_dir):
            assert isinstance(outcome, SubtreeSize)
            sizes[path] = outcome

        assert sizes[str(project_tree / "Documents")] == SubtreeSize(size=350, item_count=4)
        assert sizes[str(project_tree / "Downloads")] == SubtreeSize(size=1000, item_count=1)
        assert sizes[str(project_tree / "Music")] == SubtreeSize(size=0, item_count=0)

    @pytest.mark.asyncio
    async def test_scan_matches_manual_merge(self, project_tree: Path) -> None:
        dispatcher = ScanDispatcher(max_concurrency=2)

        entries = await dispatcher.list_children(project_tree)
        manual: list[Entry] = []
        for entry in entries:
            if entry.is_dir:
                entry = entry.with_subtree(await dispatcher.aggregate_size(entry.path))
            manual.append(entry)

        result = await dispatcher.scan(project_tree)

        assert list(result.entries) == manual
        assert result.total_size == 1362
        assert result.failed == frozenset()

    @pytest.mark.asyncio
    async def test_independent_aggregations_in_parallel(self, project_tree: Path) -> None:
        """Separate calls can be awaited side by side."""
        dispatcher = ScanDispatcher()

        documents, whole = await asyncio.gather(
            dispatcher.aggregate_size(project_tree / "Documents"),
            dispatcher.aggregate_size(project_tree),
        )

        assert documents == SubtreeSize(size=350, item_count=4)
        assert whole == SubtreeSize(size=1362, item_count=9)

    @pytest.mark.asyncio
    async def test_volume_snapshot_is_consistent(self) -> None:
        volumes = await ScanDispatcher().list_volumes()

        mount_points = [v.mount_point for v in volumes]
        assert len(mount_points) == len(set(mount_points))
        for volume in volumes:
            assert volume.used_space == max(volume.total_space - volume.available_space, 0)
