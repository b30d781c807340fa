"""Exception hierarchy for disk-lens.

Only failures at the entry point of an operation are raised. Anything that
goes wrong below the requested root is absorbed by the traversal and never
reaches these types.
"""

from __future__ import annotations


class DiskLensError(Exception):
    """Base exception for all disk-lens errors."""

    def __init__(self, message: str, context: dict[str, object] | None = None) -> None:
        """Initialize DiskLensError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.context: dict[str, object] = context or {}


class DirectoryListingError(DiskLensError):
    """Raised when the directory passed to a Phase 1 listing cannot be opened.

    The message is the operating system's own description of the failure
    (missing path, permission denied, not a directory).
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize DirectoryListingError.

        Args:
            path: Directory that could not be opened
            message: OS-provided error message
        """
        super().__init__(message, {"path": path})
        self.path: str = path


class AggregationError(DiskLensError):
    """Raised when a Phase 2 aggregation could not be executed at all.

    Unreadable subtrees never raise; this only covers failures of the
    background execution itself.
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize AggregationError.

        Args:
            path: Directory whose aggregation was requested
            message: Description of the scheduling failure
        """
        super().__init__(message, {"path": path})
        self.path: str = path


class ConfigurationError(DiskLensError):
    """Raised when configuration loading or validation fails.

    Carries a detailed, actionable message covering missing files, YAML
    parsing errors, and field-level validation failures.
    """


class EnvironmentVariableError(DiskLensError):
    """Raised when a ``${VARIABLE}`` reference in configuration is unset."""
