"""Deletion planning.

Turns default targets and resolved filesets into an ordered DeletionPlan.
Entries are grouped into independent subtrees, and within a subtree
every path is scheduled before any of its ancestors so that a directory
is never removed while it still has children.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from buildclean.cleanup.errors import InvalidTargetError
from buildclean.cleanup.models import (
    DeleteMode,
    DeletionPlan,
    PathKind,
    PlanEntry,
    PlanGroup,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from buildclean.cleanup.models import ResolvedFileset

logger = logging.getLogger(__name__)

# Lower rank wins when the same path is planned twice.
_MODE_RANK: dict[DeleteMode, int] = {
    DeleteMode.DELETE_WHOLE: 0,
    DeleteMode.DELETE_CONTENTS_ONLY: 1,
}


def bottom_up_key(path: Path) -> tuple[tuple[int, str], ...]:
    """Sort key placing every path after all of its descendants.

    Each segment sorts before the end-of-path marker, so ``a/b`` sorts
    before ``a`` while siblings keep their name order.
    """
    return (*((0, part) for part in path.parts), (1, ""))


def is_ancestor(ancestor: Path, path: Path) -> bool:
    """Check if ``ancestor`` is a strict ancestor of ``path``."""
    return ancestor != path and ancestor in path.parents


@dataclass
class _Subtree:
    """Entries collected for one independent root while planning."""

    root: Path
    entries: dict[Path, PlanEntry] = field(default_factory=dict)

    def add(self, entry: PlanEntry) -> None:
        current = self.entries.get(entry.path)
        if current is None or _MODE_RANK[entry.mode] < _MODE_RANK[current.mode]:
            self.entries[entry.path] = entry

    def covers(self, path: Path) -> bool:
        return self.root == path or is_ancestor(self.root, path) or is_ancestor(path, self.root)

    def freeze(self) -> PlanGroup:
        ordered = sorted(self.entries.values(), key=lambda e: bottom_up_key(e.path))
        return PlanGroup(root=self.root, entries=tuple(ordered))


class DeletionPlanner:
    """Builds a DeletionPlan from default targets and resolved filesets.

    Default targets are always removed whole. For filesets, a matched
    directory is removed whole only when everything beneath it matched;
    otherwise only its matched children are removed. Directories emptied
    as a side effect are scheduled for contents-only removal. The fileset
    root itself is never removed.

    Subtrees keep declaration order. Roots that overlap (one inside the
    other, or the same directory declared twice) share one subtree so the
    bottom-up order holds across them.
    """

    def plan(
        self,
        default_targets: Iterable[Path | None],
        resolved_filesets: Iterable[ResolvedFileset],
    ) -> DeletionPlan:
        """Compute an ordered deletion plan.

        Args:
            default_targets: Directories to delete wholesale. None entries
                and missing directories are skipped.
            resolved_filesets: Filesets in declaration order.

        Returns:
            DeletionPlan with bottom-up ordered entries.

        Raises:
            InvalidTargetError: If a default target exists but is not a directory.
        """
        subtrees: list[_Subtree] = []

        for target in default_targets:
            if target is None:
                continue
            if not target.exists():
                logger.debug("Skipping non-existing directory: %s", target)
                continue
            if not target.is_dir():
                raise InvalidTargetError(target, f"Default target is not a directory: {target}")
            logger.debug("Planning removal of %s", target)
            subtree = self._subtree_for(subtrees, target)
            subtree.add(PlanEntry(target, PathKind.DIRECTORY, DeleteMode.DELETE_WHOLE))

        for resolved in resolved_filesets:
            if resolved.preserve_all:
                logger.debug("Nothing selected in %s, leaving it untouched", resolved.root)
                continue
            entries = self.plan_fileset(resolved)
            if not entries:
                continue
            subtree = self._subtree_for(subtrees, resolved.root)
            for entry in entries:
                subtree.add(entry)

        groups = tuple(s.freeze() for s in subtrees if s.entries)
        return DeletionPlan(groups=groups)

    def plan_fileset(self, resolved: ResolvedFileset) -> list[PlanEntry]:
        """Compute the unordered entries for a single fileset.

        Args:
            resolved: Resolved fileset.

        Returns:
            Plan entries for matched paths and emptied directories.
        """
        if resolved.preserve_all or resolved.is_empty:
            return []

        root = resolved.root
        known = resolved.matched_files | resolved.matched_dirs | resolved.preserved
        directories = resolved.matched_dirs | resolved.preserved_dirs

        children: dict[Path, list[Path]] = {}
        for path in known:
            children.setdefault(path.parent, []).append(path)

        whole: dict[Path, bool] = {}
        removed: dict[Path, bool] = {}

        # Deepest first, so children are decided before their parent
        for path in sorted(known, key=lambda p: len(p.parts), reverse=True):
            if path not in directories:
                removed[path] = path in resolved.matched_files
                continue
            if path in resolved.unreadable:
                whole[path] = False
                removed[path] = False
                continue
            kids = children.get(path, [])
            whole[path] = path in resolved.matched_dirs and all(
                k in resolved.matched_files or whole.get(k, False) for k in kids
            )
            removed[path] = whole[path] or (bool(kids) and all(removed[k] for k in kids))

        entries: list[PlanEntry] = []
        for path in known:
            if self._covered(path, root, whole):
                continue
            if path in resolved.matched_files:
                entries.append(PlanEntry(path, PathKind.FILE, DeleteMode.DELETE_WHOLE))
            elif whole.get(path, False):
                entries.append(PlanEntry(path, PathKind.DIRECTORY, DeleteMode.DELETE_WHOLE))
            elif path in directories and removed.get(path, False):
                entries.append(
                    PlanEntry(path, PathKind.DIRECTORY, DeleteMode.DELETE_CONTENTS_ONLY)
                )

        return entries

    @staticmethod
    def _covered(path: Path, root: Path, whole: dict[Path, bool]) -> bool:
        """Check if an ancestor below the root is already removed whole."""
        for parent in path.parents:
            if parent == root or not is_ancestor(root, parent):
                return False
            if whole.get(parent, False):
                return True
        return False

    @staticmethod
    def _subtree_for(subtrees: list[_Subtree], root: Path) -> _Subtree:
        """Find the subtree overlapping ``root`` or start a new one.

        When ``root`` contains existing subtrees, the earliest one is
        widened to ``root`` and absorbs the others.
        """
        overlapping = [s for s in subtrees if s.covers(root)]
        if not overlapping:
            subtree = _Subtree(root=root)
            subtrees.append(subtree)
            return subtree

        target, *others = overlapping
        if is_ancestor(root, target.root):
            target.root = root
        for other in others:
            for entry in other.entries.values():
                target.add(entry)
            subtrees.remove(other)
        return target
