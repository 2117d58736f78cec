"""Cleanup domain models.

This module defines the data structures that flow through the cleanup
pipeline: the request handed in by the caller, the resolved filesets,
the ordered deletion plan and the per-path deletion result.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class PathKind(str, Enum):
    """Type of filesystem entry in a deletion plan.

    Attributes:
        FILE: Regular file, or a symbolic link that is not followed.
        DIRECTORY: Directory.
    """

    FILE = "file"
    DIRECTORY = "directory"


class DeleteMode(str, Enum):
    """How a plan entry is removed.

    Attributes:
        DELETE_WHOLE: Remove the entry and, for directories, everything below it.
        DELETE_CONTENTS_ONLY: Remove a directory that became empty because all
            of its children were deleted. Fails if it is not empty.
    """

    DELETE_WHOLE = "delete_whole"
    DELETE_CONTENTS_ONLY = "delete_contents_only"


class ErrorKind(str, Enum):
    """Classification of cleanup failures.

    Attributes:
        INVALID_TARGET: A configured path exists but has the wrong type.
        INVALID_REQUEST: The request is malformed; raised before any deletion.
        NOT_EMPTY: A directory slated for contents-only removal still has children.
        LOCKED_OR_BUSY: The path is locked or in use by another process.
        PERMISSION_DENIED: The process lacks permission to remove the path.
        IO_ERROR: Any other I/O failure.
        DELETION_FAILED: Aggregate failure after the whole plan was attempted.
    """

    INVALID_TARGET = "invalid_target"
    INVALID_REQUEST = "invalid_request"
    NOT_EMPTY = "not_empty"
    LOCKED_OR_BUSY = "locked_or_busy"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"
    DELETION_FAILED = "deletion_failed"

    @property
    def is_transient(self) -> bool:
        """Check if a retry may succeed for this kind of failure."""
        return self in (ErrorKind.LOCKED_OR_BUSY, ErrorKind.IO_ERROR)


@dataclass(frozen=True, slots=True)
class FilesetSpec:
    """A root directory plus the glob patterns selecting its contents.

    Attributes:
        directory: Root directory of the fileset.
        includes: Ant-style include patterns. Empty means everything.
        excludes: Ant-style exclude patterns.
        follow_symlinks: Traverse symbolic links to directories.
        use_default_excludes: Add the built-in VCS/editor excludes.
    """

    directory: Path
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    follow_symlinks: bool = False
    use_default_excludes: bool = True

    def __post_init__(self) -> None:
        """Normalize pattern collections and validate the directory."""
        if not str(self.directory):
            msg = "Fileset directory cannot be empty"
            raise ValueError(msg)
        object.__setattr__(self, "directory", Path(self.directory))
        object.__setattr__(self, "includes", tuple(self.includes))
        object.__setattr__(self, "excludes", tuple(self.excludes))


def _normalize_target(target: Path | str | None) -> Path | None:
    """Convert a default target to a Path, mapping blank strings to None."""
    if target is None:
        return None
    if isinstance(target, str):
        target = target.strip()
        return Path(target) if target else None
    return Path(target)


@dataclass(frozen=True, slots=True)
class CleanupRequest:
    """Everything the engine needs for one cleanup run.

    Attributes:
        default_targets: Directories deleted wholesale. Empty entries are
            skipped and missing directories are not errors.
        filesets: Pattern-filtered filesets, processed in order.
        exclude_default_directories: Ignore default_targets entirely.
        fail_on_error: Raise after the run if any path failed.
        retry_on_error: Retry transient per-path failures.
        skip: Skip the whole cleanup.
    """

    default_targets: tuple[Path | None, ...] = ()
    filesets: tuple[FilesetSpec, ...] = ()
    exclude_default_directories: bool = False
    fail_on_error: bool = True
    retry_on_error: bool = True
    skip: bool = False

    def __post_init__(self) -> None:
        targets = tuple(_normalize_target(t) for t in self.default_targets)
        object.__setattr__(self, "default_targets", targets)
        object.__setattr__(self, "filesets", tuple(self.filesets))

    @property
    def active_targets(self) -> tuple[Path, ...]:
        """Default targets that take part in this run."""
        if self.exclude_default_directories:
            return ()
        return tuple(t for t in self.default_targets if t is not None)


@dataclass(frozen=True, slots=True)
class CleanupPolicy:
    """Failure handling policy applied by the Deleter.

    Attributes:
        fail_on_error: Raise DeletionFailedError once the plan is processed.
        retry_on_error: Retry transient failures.
    """

    fail_on_error: bool = True
    retry_on_error: bool = True


@dataclass(frozen=True, slots=True)
class ResolvedFileset:
    """Concrete paths selected from a fileset.

    Attributes:
        root: Root directory of the fileset.
        matched_files: Files (and unfollowed symlinks) selected for deletion.
        matched_dirs: Directories selected by a pattern.
        preserved: Descendants that did not match. Unmatched files always
            survive; unmatched directories survive unless everything below
            them is deleted.
        preserved_dirs: The subset of preserved paths that are directories.
        unreadable: Directories whose contents could not be listed.
        preserve_all: Descendants exist but none matched.
    """

    root: Path
    matched_files: frozenset[Path] = frozenset()
    matched_dirs: frozenset[Path] = frozenset()
    preserved: frozenset[Path] = frozenset()
    preserved_dirs: frozenset[Path] = frozenset()
    unreadable: frozenset[Path] = frozenset()
    preserve_all: bool = False

    @property
    def is_empty(self) -> bool:
        """Check if nothing was selected."""
        return not self.matched_files and not self.matched_dirs


@dataclass(frozen=True, slots=True)
class PlanEntry:
    """One unit of work in a deletion plan.

    Attributes:
        path: Path to remove.
        kind: File or directory.
        mode: Whole removal or removal of a directory that became empty.
    """

    path: Path
    kind: PathKind
    mode: DeleteMode = DeleteMode.DELETE_WHOLE

    @property
    def is_directory(self) -> bool:
        """Check if this entry removes a directory."""
        return self.kind == PathKind.DIRECTORY


@dataclass(frozen=True, slots=True)
class PlanGroup:
    """Entries under one independent root, in bottom-up order.

    Attributes:
        root: Default target or fileset root owning the entries.
        entries: Entries in deletion order.
    """

    root: Path
    entries: tuple[PlanEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class DeletionPlan:
    """Ordered deletion plan made of independent subtree groups."""

    groups: tuple[PlanGroup, ...] = ()

    @property
    def entries(self) -> tuple[PlanEntry, ...]:
        """All entries across groups, in plan order."""
        return tuple(entry for group in self.groups for entry in group.entries)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return sum(len(group.entries) for group in self.groups)


@dataclass(frozen=True, slots=True)
class DeletionFailure:
    """A path that could not be removed.

    Attributes:
        path: Path that failed.
        cause: Classified failure kind.
        attempts: Number of removal attempts made.
        message: Underlying error message, if any.
    """

    path: Path
    cause: ErrorKind
    attempts: int = 1
    message: str | None = None


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Outcome of executing a deletion plan.

    Attributes:
        deleted: Paths removed by this run.
        skipped: Planned paths that no longer existed.
        failures: Paths that could not be removed.
    """

    deleted: tuple[Path, ...] = field(default_factory=tuple)
    skipped: tuple[Path, ...] = field(default_factory=tuple)
    failures: tuple[DeletionFailure, ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        """Check if every planned path was removed or already gone."""
        return not self.failures

    @property
    def failed_paths(self) -> tuple[Path, ...]:
        """Paths of all failures, in order."""
        return tuple(f.path for f in self.failures)

    @property
    def is_empty(self) -> bool:
        """Check if nothing was deleted, skipped or failed."""
        return not (self.deleted or self.skipped or self.failures)
