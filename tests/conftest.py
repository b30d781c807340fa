"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path

import pytest

# A tree is a mapping of names to file contents (bytes) or nested trees
type TreeSpec = Mapping[str, bytes | TreeSpec]


def build_tree(root: Path, spec: TreeSpec) -> Path:
    """Materialize a nested mapping as files and directories under root."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in spec.items():
        target = root / name
        if isinstance(content, bytes):
            _ = target.write_bytes(content)
        else:
            _ = build_tree(target, content)
    return root


@pytest.fixture
def make_tree() -> Callable[[Path, TreeSpec], Path]:
    """Provide the tree builder to tests."""
    return build_tree


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Directory with mixed-case folders, files and a symlink.

    Layout::

        root/
            Beta/            b1.bin (10 B), sub/c.bin (5 B)
            alpha/           (empty)
            apple.txt        7 B
            Zed.txt          3 B
            link-to-beta  -> Beta
    """
    root = build_tree(
        tmp_path / "root",
        {
            "Beta": {"b1.bin": b"x" * 10, "sub": {"c.bin": b"y" * 5}},
            "alpha": {},
            "apple.txt": b"a" * 7,
            "Zed.txt": b"z" * 3,
        },
    )
    (root / "link-to-beta").symlink_to(root / "Beta", target_is_directory=True)
    return root


@pytest.fixture
def locked_dir(tmp_path: Path) -> Iterator[Path]:
    """Directory holding one 4-byte file whose permissions deny listing.

    Skipped where permission bits are not enforced (root, Windows).
    """
    if os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0):
        pytest.skip("permission bits are not enforced for this user/platform")

    locked = tmp_path / "locked"
    locked.mkdir()
    _ = (locked / "secret.bin").write_bytes(b"1234")
    locked.chmod(0o000)
    try:
        yield locked
    finally:
        locked.chmod(0o755)


class UnreadableEntry:
    """Directory entry stand-in whose metadata read always fails."""

    def __init__(self, parent: str, name: str) -> None:
        self.name: str = name
        self.path: str = os.path.join(parent, name)

    def stat(self, *, follow_symlinks: bool = True) -> os.stat_result:
        raise PermissionError(13, "Permission denied", self.path)


class FaultyScandir:
    """Wrap a real scandir iterator, adding unreadable entries or an I/O error.

    Unreadable entries are yielded first. When ``fail_after`` is set the
    iteration raises OSError once that many real entries have been yielded.
    """

    def __init__(
        self,
        inner: Iterator[os.DirEntry[str]],
        path: str,
        *,
        unreadable: Iterable[str] = (),
        fail_after: int | None = None,
    ) -> None:
        self._inner = inner
        self._path = path
        self._unreadable = tuple(unreadable)
        self._fail_after = fail_after

    def __enter__(self) -> "FaultyScandir":
        return self

    def __exit__(self, *exc: object) -> None:
        self._inner.close()  # pyright: ignore[reportAttributeAccessIssue]

    def __iter__(self) -> Iterator[object]:
        for name in self._unreadable:
            yield UnreadableEntry(self._path, name)
        for index, dir_entry in enumerate(self._inner):
            if index == self._fail_after:
                raise OSError(5, "Input/output error", self._path)
            yield dir_entry


type ScandirFactory = Callable[..., Callable[[str], object]]


@pytest.fixture
def faulty_scandir() -> ScandirFactory:
    """Build an ``os.scandir`` replacement that injects per-directory faults.

    Keyword arguments map directory paths to the fault to inject:

    - ``denied``: paths whose opening raises PermissionError
    - ``unreadable``: path -> names of extra entries whose stat fails
    - ``fail_after``: path -> number of entries yielded before an I/O error
    """
    real_scandir = os.scandir

    def factory(
        *,
        denied: Iterable[str | os.PathLike[str]] = (),
        unreadable: Mapping[str | os.PathLike[str], Iterable[str]] | None = None,
        fail_after: Mapping[str | os.PathLike[str], int] | None = None,
    ) -> Callable[[str], object]:
        denied_paths = {os.fspath(p) for p in denied}
        unreadable_names = {os.fspath(p): tuple(names) for p, names in (unreadable or {}).items()}
        fail_points = {os.fspath(p): limit for p, limit in (fail_after or {}).items()}

        def fake_scandir(path: str | os.PathLike[str]) -> object:
            key = os.fspath(path)
            if key in denied_paths:
                raise PermissionError(13, "Permission denied", key)
            if key in unreadable_names or key in fail_points:
                return FaultyScandir(
                    real_scandir(key),
                    key,
                    unreadable=unreadable_names.get(key, ()),
                    fail_after=fail_points.get(key),
                )
            return real_scandir(key)

        return fake_scandir

    return factory
