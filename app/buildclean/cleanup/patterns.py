"""Ant-style include/exclude pattern matching.

Patterns are matched segment by segment against relative paths:

- ``*`` matches zero or more characters within one segment
- ``?`` matches exactly one character within one segment
- ``**`` matches zero or more whole segments

A pattern ending with a separator matches everything below it, so
``build/`` is read as ``build/**``. Both ``/`` and the platform separator
are accepted in patterns and paths.
"""

import os
import re
from functools import lru_cache
from pathlib import PurePath

# Matching follows the platform's notion of case.
CASE_SENSITIVE: bool = os.path.normcase("A") == "A"

# Version-control metadata and editor backup files excluded from filesets
# when use_default_excludes is set.
DEFAULT_EXCLUDES: tuple[str, ...] = (
    # Editor backups and temporary files
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/.DS_Store",
    # CVS
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    # RCS / SCCS
    "**/RCS",
    "**/RCS/**",
    "**/SCCS",
    "**/SCCS/**",
    # Visual SourceSafe
    "**/vssver.scc",
    # MKS
    "**/project.pj",
    # Subversion
    "**/.svn",
    "**/.svn/**",
    # GNU Arch
    "**/.arch-ids",
    "**/.arch-ids/**",
    # Bazaar
    "**/.bzr",
    "**/.bzr/**",
    # Darcs
    "**/_darcs",
    "**/_darcs/**",
    # Mercurial
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.hgsubstate",
    "**/.hgtags",
    # Git
    "**/.git",
    "**/.git/**",
    "**/.gitattributes",
    "**/.gitignore",
    "**/.gitmodules",
    # BitKeeper
    "**/BitKeeper",
    "**/BitKeeper/**",
    "**/ChangeSet",
    "**/ChangeSet/**",
)

_DEEP = "**"
_SEPARATORS = re.compile(r"[\\/]" if os.sep == "\\" else r"/")


def split_pattern(pattern: str) -> tuple[str, ...]:
    """Split a glob pattern into segments.

    Args:
        pattern: Ant-style pattern using ``/`` or the platform separator.

    Returns:
        Tuple of segments. A trailing separator adds a ``**`` segment.
    """
    normalized = pattern.replace("\\", "/").strip()
    segments = [s for s in normalized.split("/") if s]
    if normalized.endswith("/"):
        segments.append(_DEEP)
    return tuple(segments)


def split_path(path: str | PurePath) -> tuple[str, ...]:
    """Split a relative path into segments."""
    if isinstance(path, PurePath):
        return tuple(p for p in path.parts if p not in ("", "."))
    return tuple(s for s in _SEPARATORS.split(path) if s not in ("", "."))


@lru_cache(maxsize=1024)
def _segment_regex(segment: str, case_sensitive: bool) -> re.Pattern[str]:
    """Compile a single segment pattern (``*``/``?`` only) to a regex."""
    parts: list[str] = []
    for char in segment:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("".join(parts), flags)


def _match_segment(pattern: str, segment: str, case_sensitive: bool) -> bool:
    if pattern == "*":
        return True
    if "*" not in pattern and "?" not in pattern:
        if case_sensitive:
            return pattern == segment
        return pattern.lower() == segment.lower()
    return _segment_regex(pattern, case_sensitive).fullmatch(segment) is not None


def _match_segments(
    pattern: tuple[str, ...],
    path: tuple[str, ...],
    case_sensitive: bool,
) -> bool:
    """Match path segments against pattern segments, expanding ``**``."""

    @lru_cache(maxsize=None)
    def match_from(pi: int, si: int) -> bool:
        if pi == len(pattern):
            return si == len(path)
        if pattern[pi] == _DEEP:
            # Consecutive ** collapse into one
            next_pi = pi
            while next_pi < len(pattern) and pattern[next_pi] == _DEEP:
                next_pi += 1
            return any(match_from(next_pi, k) for k in range(si, len(path) + 1))
        if si == len(path):
            return False
        if not _match_segment(pattern[pi], path[si], case_sensitive):
            return False
        return match_from(pi + 1, si + 1)

    return match_from(0, 0)


def match_pattern(
    pattern: str,
    relative_path: str | PurePath,
    case_sensitive: bool = CASE_SENSITIVE,
) -> bool:
    """Check if a relative path matches a single Ant-style pattern.

    Args:
        pattern: Pattern such as ``**/*.class`` or ``build/``.
        relative_path: Path relative to the fileset root.
        case_sensitive: Compare segments case-sensitively.

    Returns:
        True if the path matches the pattern.
    """
    return _match_segments(split_pattern(pattern), split_path(relative_path), case_sensitive)


class PatternMatcher:
    """Decides whether relative paths are selected by include/exclude patterns.

    A path matches when it satisfies at least one include pattern (or the
    includes are empty, meaning everything) and none of the exclude
    patterns. Default excludes are appended to user excludes, never
    replacing them.

    Attributes:
        includes: Include patterns, split into segments.
        excludes: Exclude patterns, split into segments.
        case_sensitive: Whether segment comparison is case-sensitive.

    Example:
        >>> matcher = PatternMatcher(["**/*.class"], ["generated/**"])
        >>> matcher.matches("com/acme/App.class")
        True
        >>> matcher.matches("generated/Stub.class")
        False
    """

    def __init__(
        self,
        includes: list[str] | tuple[str, ...] = (),
        excludes: list[str] | tuple[str, ...] = (),
        use_default_excludes: bool = True,
        case_sensitive: bool = CASE_SENSITIVE,
    ) -> None:
        all_excludes = [*excludes, *DEFAULT_EXCLUDES] if use_default_excludes else list(excludes)
        self.includes = tuple(split_pattern(p) for p in includes if p.strip())
        self.excludes = tuple(split_pattern(p) for p in all_excludes if p.strip())
        self.case_sensitive = case_sensitive

    def is_included(self, relative_path: str | PurePath) -> bool:
        """Check if a path satisfies the include patterns."""
        if not self.includes:
            return True
        segments = split_path(relative_path)
        return any(_match_segments(p, segments, self.case_sensitive) for p in self.includes)

    def is_excluded(self, relative_path: str | PurePath) -> bool:
        """Check if a path satisfies any exclude pattern."""
        segments = split_path(relative_path)
        return any(_match_segments(p, segments, self.case_sensitive) for p in self.excludes)

    def matches(self, relative_path: str | PurePath) -> bool:
        """Check if a path is included and not excluded."""
        return self.is_included(relative_path) and not self.is_excluded(relative_path)


def matches(
    relative_path: str | PurePath,
    includes: list[str] | tuple[str, ...],
    excludes: list[str] | tuple[str, ...],
    *,
    use_default_excludes: bool = True,
    case_sensitive: bool = CASE_SENSITIVE,
) -> bool:
    """Check if a relative path is selected by include/exclude patterns.

    Args:
        relative_path: Path relative to the fileset root.
        includes: Include patterns. Empty means everything.
        excludes: Exclude patterns.
        use_default_excludes: Also apply DEFAULT_EXCLUDES.
        case_sensitive: Compare segments case-sensitively.

    Returns:
        True if at least one include matches and no exclude matches.
    """
    matcher = PatternMatcher(includes, excludes, use_default_excludes, case_sensitive)
    return matcher.matches(relative_path)
