"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

TreeFactory = Callable[[Path, list[str]], Path]


def _make_tree(root: Path, entries: list[str]) -> Path:
    """Create files and directories below root.

    Entries ending with ``/`` are created as directories, everything else
    as files containing their own relative path.
    """
    root.mkdir(parents=True, exist_ok=True)
    for entry in entries:
        path = root / entry
        if entry.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(entry)
    return root


@pytest.fixture
def make_tree() -> TreeFactory:
    """Factory creating a directory tree from relative path strings."""
    return _make_tree


@pytest.fixture
def class_tree(tmp_path: Path) -> Path:
    """Compiled-classes directory with sources mixed in."""
    return _make_tree(
        tmp_path / "classes",
        ["a.class", "a.java", "sub/b.class"],
    )


@pytest.fixture
def target_tree(tmp_path: Path) -> Path:
    """Typical build output directory."""
    return _make_tree(
        tmp_path / "target",
        [
            "classes/App.class",
            "classes/com/acme/Util.class",
            "test-classes/AppTest.class",
            "app.jar",
        ],
    )
