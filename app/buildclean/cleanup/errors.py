"""Cleanup exceptions.

Structural errors abort a run before anything is deleted. Per-path
errors are collected during execution and only escalated afterwards as
DeletionFailedError.
"""

from pathlib import Path

from buildclean.cleanup.models import DeletionResult, ErrorKind


class CleanupError(Exception):
    """Base exception for cleanup errors."""

    kind: ErrorKind = ErrorKind.IO_ERROR


class InvalidTargetError(CleanupError):
    """Raised when a configured directory exists but is not a directory."""

    kind = ErrorKind.INVALID_TARGET

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Not a directory: {path}")


class InvalidRequestError(CleanupError):
    """Raised when a request is malformed, before any deletion begins."""

    kind = ErrorKind.INVALID_REQUEST


class DeletionFailedError(CleanupError):
    """Raised after a full run when fail-on-error is set and paths failed."""

    kind = ErrorKind.DELETION_FAILED

    def __init__(self, result: DeletionResult) -> None:
        self.result = result
        failed = ", ".join(str(f.path) for f in result.failures)
        super().__init__(f"Failed to delete {len(result.failures)} path(s): {failed}")
