"""Fileset resolution.

Walks a fileset root depth-first and sorts every descendant into
matched files, matched directories and preserved paths using the
fileset's include/exclude patterns. Resolution is read-only.
"""

import logging
import os
from pathlib import Path

from buildclean.cleanup.errors import InvalidTargetError
from buildclean.cleanup.models import FilesetSpec, ResolvedFileset
from buildclean.cleanup.patterns import PatternMatcher

logger = logging.getLogger(__name__)


class _Walk:
    """Accumulates the classification of one traversal."""

    def __init__(self, root: Path, matcher: PatternMatcher, follow_symlinks: bool) -> None:
        self.root = root
        self.matcher = matcher
        self.follow_symlinks = follow_symlinks
        self.matched_files: set[Path] = set()
        self.matched_dirs: set[Path] = set()
        self.preserved: set[Path] = set()
        self.preserved_dirs: set[Path] = set()
        self.unreadable: set[Path] = set()
        self.visited: set[tuple[int, int]] = set()


class FilesetResolver:
    """Resolves FilesetSpec values into concrete path sets.

    Traversal visits every descendant of the fileset directory. Symbolic
    links to directories are only traversed when the fileset asks for it;
    otherwise the link itself is treated as a file. When links are
    followed, a directory that was already visited is not entered again,
    which breaks symlink loops.

    Example:
        >>> resolver = FilesetResolver()
        >>> resolved = resolver.resolve(FilesetSpec(Path("target"), ("**/*.class",)))
        >>> sorted(resolved.matched_files)
        [PosixPath('target/App.class')]
    """

    def resolve(self, spec: FilesetSpec) -> ResolvedFileset:
        """Resolve a fileset into matched and preserved paths.

        Args:
            spec: Fileset to resolve.

        Returns:
            ResolvedFileset for the fileset. Empty if the directory is missing.

        Raises:
            InvalidTargetError: If the directory exists but is not a directory.
        """
        root = spec.directory

        if not root.exists():
            logger.debug("Skipping non-existing directory: %s", root)
            return ResolvedFileset(root=root)

        if not root.is_dir():
            raise InvalidTargetError(root, f"Fileset directory is not a directory: {root}")

        matcher = PatternMatcher(
            spec.includes,
            spec.excludes,
            use_default_excludes=spec.use_default_excludes,
        )
        walk = _Walk(root, matcher, spec.follow_symlinks)
        self._remember(walk, root)
        self._walk_directory(walk, root)

        matched = bool(walk.matched_files or walk.matched_dirs)
        has_descendants = bool(walk.preserved or walk.unreadable)
        preserve_all = not matched and has_descendants

        logger.debug(
            "Resolved %s: %d file(s), %d dir(s) matched, %d preserved",
            root,
            len(walk.matched_files),
            len(walk.matched_dirs),
            len(walk.preserved),
        )

        return ResolvedFileset(
            root=root,
            matched_files=frozenset(walk.matched_files),
            matched_dirs=frozenset(walk.matched_dirs),
            preserved=frozenset(walk.preserved),
            preserved_dirs=frozenset(walk.preserved_dirs),
            unreadable=frozenset(walk.unreadable),
            preserve_all=preserve_all,
        )

    def _walk_directory(self, walk: _Walk, directory: Path) -> None:
        """Classify the children of a directory, recursing depth-first."""
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning("Cannot list directory %s: %s", directory, e)
            walk.unreadable.add(directory)
            return

        for entry in entries:
            relative = entry.relative_to(walk.root)
            try:
                is_directory = self._is_traversable_dir(entry, walk.follow_symlinks)
            except OSError:
                logger.warning("Cannot determine type of: %s", entry)
                walk.preserved.add(entry)
                continue

            selected = walk.matcher.matches(relative)

            if not is_directory:
                if selected:
                    walk.matched_files.add(entry)
                else:
                    walk.preserved.add(entry)
                continue

            if selected:
                walk.matched_dirs.add(entry)
            else:
                walk.preserved.add(entry)
                walk.preserved_dirs.add(entry)

            if walk.follow_symlinks and not self._remember(walk, entry):
                logger.warning("Skipping already visited directory (symlink loop?): %s", entry)
                continue

            self._walk_directory(walk, entry)

    @staticmethod
    def _is_traversable_dir(entry: Path, follow_symlinks: bool) -> bool:
        """Check if an entry is a directory that should be descended into."""
        if entry.is_symlink() and not follow_symlinks:
            return False
        return entry.is_dir()

    @staticmethod
    def _remember(walk: _Walk, directory: Path) -> bool:
        """Record a directory's identity. Returns False if seen before."""
        try:
            stat = os.stat(directory)
        except OSError:
            return True
        key = (stat.st_dev, stat.st_ino)
        if key in walk.visited:
            return False
        walk.visited.add(key)
        return True
