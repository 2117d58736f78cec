"""Deletion plan execution.

Executes a DeletionPlan path by path, retrying transient failures and
collecting per-path outcomes. Independent subtrees of the plan may run
on a bounded thread pool; entries inside one subtree always run in plan
order on a single worker. Directories removed wholesale are walked
bottom-up, so one stuck file does not keep its siblings alive.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from buildclean.cleanup.errors import DeletionFailedError
from buildclean.cleanup.models import (
    CleanupPolicy,
    DeleteMode,
    DeletionFailure,
    DeletionResult,
    ErrorKind,
    PathKind,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from buildclean.cleanup.models import DeletionPlan, PlanEntry, PlanGroup

logger = logging.getLogger(__name__)

MAX_ATTEMPTS: int = 3
RETRY_DELAY: float = 0.05
MAX_WORKERS: int = 4

_LOCKED_ERRNOS: frozenset[int] = frozenset(
    code
    for code in (
        getattr(errno, "EBUSY", None),
        getattr(errno, "ETXTBSY", None),
        getattr(errno, "EAGAIN", None),
        getattr(errno, "EDEADLK", None),
    )
    if code is not None
)

# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_LOCKED_WINERRORS: frozenset[int] = frozenset({32, 33})


def classify_error(error: OSError) -> ErrorKind:
    """Map an OSError raised during removal to an ErrorKind.

    Args:
        error: Error raised by the filesystem call.

    Returns:
        The ErrorKind describing the failure.
    """
    winerror = getattr(error, "winerror", None)
    if winerror in _LOCKED_WINERRORS or error.errno in _LOCKED_ERRNOS:
        return ErrorKind.LOCKED_OR_BUSY
    if error.errno in (errno.ENOTEMPTY, errno.EEXIST):
        return ErrorKind.NOT_EMPTY
    if error.errno in (errno.ENOTDIR, errno.EISDIR):
        return ErrorKind.INVALID_TARGET
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return ErrorKind.PERMISSION_DENIED
    return ErrorKind.IO_ERROR


class _Outcome(Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class _EntryOutcome:
    """Outcome of one plan entry, produced by a worker."""

    path: Path
    outcome: _Outcome
    failure: DeletionFailure | None = None


class _RemovalError(Exception):
    """A removal failed with an already classified kind."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class Deleter:
    """Executes deletion plans and aggregates a DeletionResult.

    Per-path failures never stop the run. Once every entry has been
    attempted, the policy decides whether failures are raised as
    DeletionFailedError or only reported in the result.

    Attributes:
        _max_workers: Upper bound on concurrently processed subtrees.
        _max_attempts: Attempts per path for transient failures.
        _retry_delay: Seconds to wait between attempts.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
    ) -> None:
        """Initialize the Deleter.

        Args:
            max_workers: Maximum parallel subtrees. Defaults to
                min(cpu count, 4).
            max_attempts: Attempts per path when retrying is enabled.
            retry_delay: Fixed delay between attempts, in seconds.
        """
        if max_workers is None:
            max_workers = min(os.cpu_count() or 1, MAX_WORKERS)
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(msg)
        self._max_workers = max_workers
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay

    def execute(self, plan: DeletionPlan, policy: CleanupPolicy | None = None) -> DeletionResult:
        """Execute every entry of a plan.

        Args:
            plan: Plan to execute.
            policy: Failure handling policy. Defaults to fail-on-error with retry.

        Returns:
            DeletionResult with deleted, skipped and failed paths.

        Raises:
            DeletionFailedError: If policy.fail_on_error is set and at least
                one path failed. Raised only after all entries were attempted.
        """
        policy = policy or CleanupPolicy()
        groups = [g for g in plan.groups if g.entries]

        if len(groups) <= 1 or self._max_workers == 1:
            outcomes = [self._run_group(g, policy) for g in groups]
        else:
            workers = min(self._max_workers, len(groups))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="buildclean") as pool:
                futures = [pool.submit(self._run_group, g, policy) for g in groups]
                outcomes = [f.result() for f in futures]

        result = self._collect(outcomes)

        if result.failures:
            if policy.fail_on_error:
                raise DeletionFailedError(result)
            for failure in result.failures:
                logger.warning(
                    "Failed to delete %s (%s after %d attempt(s))",
                    failure.path,
                    failure.cause.value,
                    failure.attempts,
                )

        return result

    def _run_group(self, group: PlanGroup, policy: CleanupPolicy) -> list[_EntryOutcome]:
        """Process one subtree sequentially, in plan order."""
        logger.info("Deleting %s", group.root)
        outcomes: list[_EntryOutcome] = []
        for entry in group.entries:
            outcomes.extend(self._run_entry(entry, policy))
        return outcomes

    def _run_entry(self, entry: PlanEntry, policy: CleanupPolicy) -> list[_EntryOutcome]:
        """Delete one entry. Whole directories are removed path by path."""
        path = entry.path
        if (
            entry.kind == PathKind.DIRECTORY
            and entry.mode == DeleteMode.DELETE_WHOLE
            and path.is_dir()
            and not path.is_symlink()
        ):
            return self._run_tree(path, policy)
        return [self._attempt(path, lambda: self._remove(entry), policy)]

    def _attempt(
        self,
        path: Path,
        remove: Callable[[], None],
        policy: CleanupPolicy,
    ) -> _EntryOutcome:
        """Remove one path, retrying transient failures when enabled."""
        attempts = 0

        while True:
            if not os.path.lexists(path):
                logger.debug("Skipping already removed path: %s", path)
                return _EntryOutcome(path, _Outcome.SKIPPED)

            attempts += 1
            try:
                remove()
            except _RemovalError as e:
                kind, message = e.kind, str(e)
            except OSError as e:
                if isinstance(e, FileNotFoundError) and not os.path.lexists(path):
                    return _EntryOutcome(path, _Outcome.SKIPPED)
                kind, message = classify_error(e), str(e)
            else:
                logger.debug("Deleted %s", path)
                return _EntryOutcome(path, _Outcome.DELETED)

            retry = policy.retry_on_error and kind.is_transient and attempts < self._max_attempts
            if not retry:
                failure = DeletionFailure(path=path, cause=kind, attempts=attempts, message=message)
                return _EntryOutcome(path, _Outcome.FAILED, failure)

            logger.debug("Retrying %s after %s (attempt %d)", path, kind.value, attempts)
            time.sleep(self._retry_delay)

    def _run_tree(self, root: Path, policy: CleanupPolicy) -> list[_EntryOutcome]:
        """Remove a directory bottom-up, continuing past paths that fail.

        Failures are reported for the innermost paths that could not be
        removed. Directories kept alive by such a path are not reported
        again, and the root is only reported as deleted once it is gone.

        Returns:
            Failures inside the tree, followed by the root's own outcome.
        """
        failures: list[_EntryOutcome] = []
        # Directories that still hold a surviving descendant
        blocked: set[Path] = set()

        def on_walk_error(error: OSError) -> None:
            if isinstance(error, FileNotFoundError):
                return
            unreadable = Path(error.filename) if error.filename else root
            logger.warning("Cannot list directory %s: %s", unreadable, error)
            failure = DeletionFailure(
                path=unreadable, cause=classify_error(error), message=str(error)
            )
            failures.append(_EntryOutcome(unreadable, _Outcome.FAILED, failure))
            blocked.add(unreadable)
            if unreadable != root:
                blocked.add(unreadable.parent)

        root_outcome: _EntryOutcome | None = None

        for dirpath, dirnames, filenames in os.walk(root, topdown=False, onerror=on_walk_error):
            directory = Path(dirpath)
            # Links to directories are listed with the directories but never walked
            links = [d for d in dirnames if (directory / d).is_symlink()]

            for name in sorted([*filenames, *links]):
                child = directory / name
                outcome = self._attempt(child, child.unlink, policy)
                if outcome.outcome == _Outcome.FAILED:
                    failures.append(outcome)
                    blocked.add(directory)

            if directory in blocked:
                if directory != root:
                    blocked.add(directory.parent)
                continue

            outcome = self._attempt(directory, lambda d=directory: self._remove_empty(d), policy)
            if directory == root:
                root_outcome = outcome
            elif outcome.outcome == _Outcome.FAILED:
                failures.append(outcome)
                blocked.add(directory.parent)

        failures.sort(key=lambda o: o.path.parts)
        if root_outcome is None:
            return failures
        return [*failures, root_outcome]

    @staticmethod
    def _remove_empty(directory: Path) -> None:
        """Remove a directory that is expected to be empty."""
        try:
            directory.rmdir()
        except OSError as e:
            if classify_error(e) == ErrorKind.NOT_EMPTY:
                msg = f"Directory not empty: {directory}"
                raise _RemovalError(ErrorKind.NOT_EMPTY, msg) from e
            raise

    def _remove(self, entry: PlanEntry) -> None:
        """Remove a single path according to its kind.

        Raises:
            _RemovalError: If the path has an unexpected type or is not empty.
            OSError: If the filesystem call fails.
        """
        path = entry.path

        # Links are removed, never followed
        if path.is_symlink():
            path.unlink()
            return

        if entry.kind == PathKind.FILE:
            if path.is_dir():
                raise _RemovalError(ErrorKind.INVALID_TARGET, f"Expected a file: {path}")
            path.unlink()
            return

        if not path.is_dir():
            raise _RemovalError(ErrorKind.INVALID_TARGET, f"Expected a directory: {path}")

        self._remove_empty(path)


    @staticmethod
    def _collect(outcomes: list[list[_EntryOutcome]]) -> DeletionResult:
        """Merge per-subtree outcomes, in plan order, into one result."""
        deleted: list[Path] = []
        skipped: list[Path] = []
        failures: list[DeletionFailure] = []

        for group_outcomes in outcomes:
            for item in group_outcomes:
                if item.outcome == _Outcome.DELETED:
                    deleted.append(item.path)
                elif item.outcome == _Outcome.SKIPPED:
                    skipped.append(item.path)
                elif item.failure is not None:
                    failures.append(item.failure)

        return DeletionResult(
            deleted=tuple(deleted),
            skipped=tuple(skipped),
            failures=tuple(failures),
        )
