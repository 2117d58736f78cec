"""Unit tests for deletion planning.

Tests for DeletionPlanner, bottom_up_key and subtree grouping.
"""

from pathlib import Path

import pytest
from buildclean.cleanup.errors import InvalidTargetError
from buildclean.cleanup.models import (
    DeleteMode,
    DeletionPlan,
    FilesetSpec,
    PathKind,
    PlanEntry,
    ResolvedFileset,
)
from buildclean.cleanup.planner import DeletionPlanner, bottom_up_key, is_ancestor
from buildclean.cleanup.resolver import FilesetResolver


@pytest.fixture
def planner() -> DeletionPlanner:
    """Create a DeletionPlanner."""
    return DeletionPlanner()


def _resolve(root: Path, includes: tuple[str, ...] = (), excludes: tuple[str, ...] = ()):
    return FilesetResolver().resolve(FilesetSpec(root, includes=includes, excludes=excludes))


def _assert_bottom_up(plan: DeletionPlan) -> None:
    entries = plan.entries
    for index, entry in enumerate(entries):
        if not entry.is_directory:
            continue
        for later in entries[index + 1 :]:
            assert not is_ancestor(entry.path, later.path), (
                f"{later.path} scheduled after its ancestor {entry.path}"
            )


class TestHelpers:
    """Tests for ordering helpers."""

    def test_bottom_up_key_children_first(self) -> None:
        """Descendants sort before their ancestors."""
        paths = [Path("a"), Path("a/b"), Path("a/b/c"), Path("a/x")]
        ordered = sorted(paths, key=bottom_up_key)
        assert ordered == [Path("a/b/c"), Path("a/b"), Path("a/x"), Path("a")]

    def test_is_ancestor(self) -> None:
        """is_ancestor only accepts strict ancestors."""
        assert is_ancestor(Path("a"), Path("a/b"))
        assert not is_ancestor(Path("a"), Path("a"))
        assert not is_ancestor(Path("a/b"), Path("a"))
        assert not is_ancestor(Path("a"), Path("ab/c"))


class TestDefaultTargets:
    """Tests for planning default targets."""

    def test_existing_target_deleted_whole(
        self, planner: DeletionPlanner, target_tree: Path
    ) -> None:
        """An existing default target is one DELETE_WHOLE entry."""
        plan = planner.plan([target_tree], [])

        assert plan.entries == (
            PlanEntry(target_tree, PathKind.DIRECTORY, DeleteMode.DELETE_WHOLE),
        )

    def test_missing_and_empty_targets_skipped(
        self, planner: DeletionPlanner, tmp_path: Path
    ) -> None:
        """Missing targets and None entries produce no entries."""
        plan = planner.plan([None, tmp_path / "missing"], [])

        assert len(plan) == 0
        assert plan.groups == ()

    def test_file_target_rejected(self, planner: DeletionPlanner, tmp_path: Path) -> None:
        """A default target that is a file raises InvalidTargetError."""
        file_target = tmp_path / "target"
        file_target.write_text("x")

        with pytest.raises(InvalidTargetError):
            planner.plan([file_target], [])

    def test_independent_targets_keep_order(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """Unrelated targets form separate groups in declaration order."""
        second = make_tree(tmp_path / "b-out", ["x"])
        first = make_tree(tmp_path / "a-out", ["y"])

        plan = planner.plan([second, first], [])

        assert [g.root for g in plan.groups] == [second, first]

    def test_nested_targets_share_group(
        self, planner: DeletionPlanner, target_tree: Path
    ) -> None:
        """A target inside another target is ordered before it."""
        classes = target_tree / "classes"

        plan = planner.plan([target_tree, classes], [])

        assert len(plan.groups) == 1
        assert plan.groups[0].root == target_tree
        assert [e.path for e in plan] == [classes, target_tree]


class TestFilesetPlanning:
    """Tests for planning resolved filesets."""

    def test_preservation_example(self, planner: DeletionPlanner, class_tree: Path) -> None:
        """Matched files go, sources stay and emptied sub is removed."""
        plan = planner.plan([], [_resolve(class_tree, ("**/*.class",))])

        assert plan.entries == (
            PlanEntry(class_tree / "a.class", PathKind.FILE),
            PlanEntry(class_tree / "sub" / "b.class", PathKind.FILE),
            PlanEntry(class_tree / "sub", PathKind.DIRECTORY, DeleteMode.DELETE_CONTENTS_ONLY),
        )
        assert class_tree not in [e.path for e in plan]
        assert class_tree / "a.java" not in [e.path for e in plan]

    def test_sub_survives_with_unmatched_sibling(
        self, planner: DeletionPlanner, class_tree: Path
    ) -> None:
        """A directory with a surviving child is not scheduled."""
        (class_tree / "sub" / "b.java").write_text("x")

        plan = planner.plan([], [_resolve(class_tree, ("**/*.class",))])

        assert class_tree / "sub" not in [e.path for e in plan]
        assert class_tree / "sub" / "b.class" in [e.path for e in plan]

    def test_fully_matched_directory_deleted_whole(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """A matched directory whose contents all match is one entry."""
        root = make_tree(tmp_path / "src", ["gen/a.py", "gen/deep/b.py", "main.py"])

        plan = planner.plan([], [_resolve(root, ("gen/**",))])

        assert plan.entries == (
            PlanEntry(root / "gen", PathKind.DIRECTORY, DeleteMode.DELETE_WHOLE),
        )

    def test_partially_matched_directory_pruned(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """A matched directory with an excluded child is pruned instead."""
        root = make_tree(tmp_path / "src", ["gen/a.py", "gen/keep.txt"])

        plan = planner.plan([], [_resolve(root, ("gen/**",), ("**/keep.txt",))])

        assert plan.entries == (PlanEntry(root / "gen" / "a.py", PathKind.FILE),)

    def test_directory_with_only_excluded_descendants_survives(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """A matched directory holding only excluded content is kept."""
        root = make_tree(tmp_path / "src", ["gen/keep.txt", "other.tmp"])

        plan = planner.plan([], [_resolve(root, ("gen", "*.tmp"), ("**/keep.txt",))])

        assert [e.path for e in plan] == [root / "other.tmp"]

    def test_empty_unmatched_directory_survives(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """Empty directories that did not match are never removed."""
        root = make_tree(tmp_path / "src", ["empty/", "a.tmp"])

        plan = planner.plan([], [_resolve(root, ("*.tmp",))])

        assert [e.path for e in plan] == [root / "a.tmp"]

    def test_nested_emptied_directories(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """Emptied directories cascade up to, but excluding, the root."""
        root = make_tree(tmp_path / "src", ["a/b/c.tmp", "keep.txt"])

        plan = planner.plan([], [_resolve(root, ("**/*.tmp",))])

        assert plan.entries == (
            PlanEntry(root / "a" / "b" / "c.tmp", PathKind.FILE),
            PlanEntry(root / "a" / "b", PathKind.DIRECTORY, DeleteMode.DELETE_CONTENTS_ONLY),
            PlanEntry(root / "a", PathKind.DIRECTORY, DeleteMode.DELETE_CONTENTS_ONLY),
        )

    def test_root_never_scheduled(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """Matching everything removes the contents but keeps the root."""
        root = make_tree(tmp_path / "src", ["a.tmp", "b/c.tmp"])

        plan = planner.plan([], [_resolve(root)])

        assert root not in [e.path for e in plan]
        assert {e.path for e in plan} == {root / "a.tmp", root / "b"}

    def test_preserve_all_emits_nothing(
        self, planner: DeletionPlanner, class_tree: Path
    ) -> None:
        """A fileset where nothing matched is left untouched."""
        plan = planner.plan([], [_resolve(class_tree, ("**/*.none",))])

        assert len(plan) == 0

    def test_missing_fileset_emits_nothing(
        self, planner: DeletionPlanner, tmp_path: Path
    ) -> None:
        """A missing fileset root contributes no entries."""
        plan = planner.plan([], [ResolvedFileset(root=tmp_path / "missing")])

        assert len(plan) == 0

    def test_unreadable_directory_kept(self, planner: DeletionPlanner, tmp_path: Path) -> None:
        """Directories that could not be listed are never scheduled."""
        root = tmp_path / "src"
        locked = root / "locked"
        resolved = ResolvedFileset(
            root=root,
            matched_files=frozenset({root / "a.tmp"}),
            matched_dirs=frozenset({locked}),
            unreadable=frozenset({locked}),
        )

        plan = planner.plan([], [resolved])

        assert [e.path for e in plan] == [root / "a.tmp"]

    def test_fileset_inside_default_target(
        self, planner: DeletionPlanner, target_tree: Path
    ) -> None:
        """A fileset under a default target joins the target's group."""
        classes = target_tree / "classes"

        plan = planner.plan([target_tree], [_resolve(classes, ("*.class",))])

        assert len(plan.groups) == 1
        assert plan.entries[-1].path == target_tree
        _assert_bottom_up(plan)

    def test_target_wins_over_contents_only(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """The same directory planned twice keeps DELETE_WHOLE."""
        root = make_tree(tmp_path / "src", ["gen/a.tmp"])
        gen = root / "gen"

        plan = planner.plan([gen], [_resolve(root, ("**/*.tmp",))])

        paths = [e.path for e in plan]
        assert paths.count(gen) == 1
        assert plan.entries[paths.index(gen)].mode == DeleteMode.DELETE_WHOLE


class TestBottomUpInvariant:
    """Tests for the bottom-up ordering invariant."""

    def test_bottom_up_on_mixed_tree(
        self, planner: DeletionPlanner, tmp_path: Path, make_tree
    ) -> None:
        """Every directory entry comes after all its descendants."""
        root = make_tree(
            tmp_path / "src",
            [
                "a/a1.tmp",
                "a/b/b1.tmp",
                "a/b/c/c1.tmp",
                "a/b/c/keep.txt",
                "d/d1.tmp",
                "d/e/e1.tmp",
                "f.tmp",
            ],
        )
        other = make_tree(tmp_path / "out", ["x/y/z.bin"])

        plan = planner.plan([other], [_resolve(root, ("**/*.tmp",))])

        assert len(plan) > 5
        _assert_bottom_up(plan)
        # a/b/c keeps keep.txt, so a, a/b and a/b/c survive
        paths = [e.path for e in plan]
        assert root / "a" not in paths
        assert root / "a" / "b" not in paths
        assert root / "d" in paths
