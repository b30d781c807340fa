"""Data models for disk-lens.

This module defines immutable dataclasses used throughout the engine for
type-safe data transfer between the scanning operations and their callers.
Every result is built fresh per call and never mutated afterwards; callers
that want to merge Phase 2 results into a Phase 1 listing derive new values.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum


def _lossy_text(value: str) -> str:
    """Replace surrogate escapes left by os.fsdecode with U+FFFD."""
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


class EntryOutcome(str, Enum):
    """Per-entry result of reading metadata during a traversal."""

    MEASURED = "measured"
    SKIPPED_UNREADABLE = "skipped_unreadable"
    SKIPPED_WRONG_TYPE = "skipped_wrong_type"


@dataclass(slots=True, frozen=True)
class SubtreeSize:
    """Recursive size of one directory subtree.

    The numbers are a lower bound on true usage: anything below the root
    that could not be read contributes nothing rather than failing the call.
    """

    size: int
    item_count: int

    def to_dict(self) -> dict[str, int]:
        return {"size": self.size, "item_count": self.item_count}


@dataclass(slots=True, frozen=True)
class Entry:
    """One immediate child of a listed directory.

    Files carry their real byte size and an item count of zero. Directories
    carry the placeholder size ``0`` and their direct (non-recursive) child
    count until a caller merges in a ``SubtreeSize``.
    """

    name: str
    path: str
    size: int
    is_dir: bool
    item_count: int

    def with_subtree(self, subtree: SubtreeSize) -> "Entry":
        """Return a copy of this entry carrying recursive size and count.

        Args:
            subtree: Phase 2 result computed for this entry's path

        Returns:
            New Entry; the receiver is left untouched
        """
        return replace(self, size=subtree.size, item_count=subtree.item_count)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": _lossy_text(self.name),
            "path": _lossy_text(self.path),
            "size": self.size,
            "is_dir": self.is_dir,
            "item_count": self.item_count,
        }


@dataclass(slots=True, frozen=True)
class VolumeInfo:
    """Point-in-time capacity snapshot of one mounted volume."""

    name: str
    mount_point: str
    total_space: int
    available_space: int
    used_space: int
    file_system: str

    @classmethod
    def from_usage(
        cls,
        *,
        name: str,
        mount_point: str,
        total_space: int,
        available_space: int,
        file_system: str,
    ) -> "VolumeInfo":
        """Build a snapshot, deriving used space with saturation at zero.

        Remote or busy mounts can momentarily report more available space
        than total space; used space never goes negative in that case.
        """
        return cls(
            name=name,
            mount_point=mount_point,
            total_space=total_space,
            available_space=available_space,
            used_space=max(total_space - available_space, 0),
            file_system=file_system,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "mount_point": self.mount_point,
            "total_space": self.total_space,
            "available_space": self.available_space,
            "used_space": self.used_space,
            "file_system": self.file_system,
        }


@dataclass(slots=True)
class WalkStats:
    """Diagnostic counters collected during one subtree walk.

    Not part of the public aggregation result; exposed so tests and debug
    logging can see what was skipped.
    """

    measured: int = 0
    skipped_unreadable: int = 0
    skipped_wrong_type: int = 0
    unreadable_directories: int = 0
    max_depth: int = 0

    def record(self, outcome: EntryOutcome) -> None:
        match outcome:
            case EntryOutcome.MEASURED:
                self.measured += 1
            case EntryOutcome.SKIPPED_UNREADABLE:
                self.skipped_unreadable += 1
            case EntryOutcome.SKIPPED_WRONG_TYPE:
                self.skipped_wrong_type += 1

    def as_log_fields(self) -> Mapping[str, int]:
        return {
            "measured": self.measured,
            "skipped_unreadable": self.skipped_unreadable,
            "skipped_wrong_type": self.skipped_wrong_type,
            "unreadable_directories": self.unreadable_directories,
            "max_depth": self.max_depth,
        }


@dataclass(slots=True, frozen=True)
class ScanResult:
    """Phase 1 listing of a directory with Phase 2 sizes merged in.

    ``failed`` holds the paths of directory entries whose aggregation could
    not be scheduled; those entries keep their Phase 1 values.
    """

    path: str
    entries: tuple[Entry, ...]
    failed: frozenset[str] = field(default_factory=frozenset)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": _lossy_text(self.path),
            "entries": [entry.to_dict() for entry in self.entries],
            "total_size": self.total_size,
            "failed": sorted(_lossy_text(path) for path in self.failed),
        }
