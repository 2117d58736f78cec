"""Unit tests for Ant-style pattern matching.

Tests for match_pattern, PatternMatcher and the matches() helper.
"""

from pathlib import PurePosixPath

import pytest
from buildclean.cleanup.patterns import (
    DEFAULT_EXCLUDES,
    PatternMatcher,
    match_pattern,
    matches,
    split_path,
    split_pattern,
)


class TestSplitting:
    """Tests for pattern and path splitting."""

    def test_split_pattern_segments(self) -> None:
        """Patterns are split on forward slashes."""
        assert split_pattern("**/com/*.class") == ("**", "com", "*.class")

    def test_split_pattern_backslash(self) -> None:
        """Backslashes are accepted as separators in patterns."""
        assert split_pattern("com\\acme\\*.class") == ("com", "acme", "*.class")

    def test_split_pattern_trailing_separator(self) -> None:
        """A trailing separator matches everything below."""
        assert split_pattern("build/") == ("build", "**")

    def test_split_path_pure_path(self) -> None:
        """PurePath values are split into their parts."""
        assert split_path(PurePosixPath("a/b/c.txt")) == ("a", "b", "c.txt")

    def test_split_path_ignores_dot_segments(self) -> None:
        """Empty and current-directory segments are dropped."""
        assert split_path("./a//b") == ("a", "b")


class TestMatchPattern:
    """Tests for single-pattern matching."""

    @pytest.mark.parametrize(
        ("pattern", "path", "expected"),
        [
            ("*.class", "App.class", True),
            ("*.class", "com/App.class", False),
            ("**/*.class", "App.class", True),
            ("**/*.class", "com/acme/App.class", True),
            ("**/*.class", "com/acme/App.java", False),
            ("com/**", "com", True),
            ("com/**", "com/acme/App.class", True),
            ("com/**", "org/App.class", False),
            ("a/**/b", "a/b", True),
            ("a/**/b", "a/x/y/b", True),
            ("a/**/b", "a/x/y/c", False),
            ("?.txt", "a.txt", True),
            ("?.txt", "ab.txt", False),
            ("**", "anything/at/all", True),
        ],
    )
    def test_wildcards(self, pattern: str, path: str, expected: bool) -> None:
        """Wildcards match within and across segments."""
        assert match_pattern(pattern, path, case_sensitive=True) is expected

    def test_star_does_not_cross_segments(self) -> None:
        """A single star never matches a separator."""
        assert not match_pattern("a*b", "a/b", case_sensitive=True)

    def test_regex_characters_are_literal(self) -> None:
        """Regex metacharacters in patterns match literally."""
        assert match_pattern("lib+[1].jar", "lib+[1].jar", case_sensitive=True)
        assert not match_pattern("lib+.jar", "libb.jar", case_sensitive=True)

    def test_case_sensitive(self) -> None:
        """Case-sensitive matching distinguishes case."""
        assert not match_pattern("*.CLASS", "App.class", case_sensitive=True)

    def test_case_insensitive(self) -> None:
        """Case-insensitive matching ignores case."""
        assert match_pattern("*.CLASS", "App.class", case_sensitive=False)
        assert match_pattern("Build/**", "build/out", case_sensitive=False)


class TestPatternMatcher:
    """Tests for PatternMatcher."""

    def test_empty_includes_match_everything(self) -> None:
        """No includes means every path is included."""
        matcher = PatternMatcher(use_default_excludes=False, case_sensitive=True)
        assert matcher.matches("any/path.txt")

    def test_include_and_exclude(self) -> None:
        """Excludes win over includes."""
        matcher = PatternMatcher(
            ["**/*.class"], ["generated/**"], use_default_excludes=False, case_sensitive=True
        )
        assert matcher.matches("com/acme/App.class")
        assert not matcher.matches("generated/Stub.class")
        assert not matcher.matches("App.java")

    def test_blank_patterns_ignored(self) -> None:
        """Blank patterns are dropped."""
        matcher = PatternMatcher(["", "  "], use_default_excludes=False, case_sensitive=True)
        assert matcher.includes == ()
        assert matcher.matches("anything")

    def test_default_excludes_appended(self) -> None:
        """Default excludes are added to user excludes."""
        matcher = PatternMatcher(excludes=["*.log"], case_sensitive=True)
        assert len(matcher.excludes) == len(DEFAULT_EXCLUDES) + 1
        assert not matcher.matches("debug.log")
        assert not matcher.matches(".git/config")
        assert not matcher.matches("src/.svn")
        assert not matcher.matches("notes.txt~")
        assert matcher.matches("notes.txt")

    def test_default_excludes_disabled(self) -> None:
        """VCS metadata matches when default excludes are off."""
        matcher = PatternMatcher(use_default_excludes=False, case_sensitive=True)
        assert matcher.matches(".git/config")

    def test_is_included_and_is_excluded(self) -> None:
        """Include and exclude checks are available separately."""
        matcher = PatternMatcher(
            ["*.tmp"], ["keep.tmp"], use_default_excludes=False, case_sensitive=True
        )
        assert matcher.is_included("keep.tmp")
        assert matcher.is_excluded("keep.tmp")
        assert not matcher.matches("keep.tmp")


class TestMatchesFunction:
    """Tests for the matches() helper."""

    def test_matches(self) -> None:
        """Helper applies includes and excludes."""
        assert matches("a/b.tmp", ["**/*.tmp"], [], case_sensitive=True)
        assert not matches("a/b.tmp", ["**/*.tmp"], ["a/**"], case_sensitive=True)

    def test_matches_default_excludes(self) -> None:
        """Helper applies default excludes like PatternMatcher does."""
        assert not matches(".git/HEAD", [], [], case_sensitive=True)
        assert matches(".git/HEAD", [], [], use_default_excludes=False, case_sensitive=True)
        assert PatternMatcher(case_sensitive=True).matches(".git/HEAD") is matches(
            ".git/HEAD", [], [], case_sensitive=True
        )
