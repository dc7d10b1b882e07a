"""Unit tests for diff collection and ignore filtering."""

import pathspec
import pytest

from commitgen.diff_collector import (
    DEFAULT_IGNORE_PATTERNS,
    TRUNCATION_MARKER,
    build_diff_context,
    build_matcher,
    count_files,
    filter_diff,
    get_file_changes,
    load_ignore_patterns,
    parse_status,
    truncate_diff,
)


def section(path, body="+x"):
    return f"diff --git a/{path} b/{path}\n--- a/{path}\n+++ b/{path}\n@@ -0,0 +1 @@\n{body}"


class TestIgnorePatterns:
    """Tests for load_ignore_patterns function."""

    def test_defaults_without_file(self, tmp_path):
        """Should return the built-in patterns when no .commitignore exists."""
        assert load_ignore_patterns(tmp_path) == DEFAULT_IGNORE_PATTERNS

    def test_reads_commitignore(self, tmp_path):
        """Should append patterns, skipping blanks and comments."""
        (tmp_path / ".commitignore").write_text("# generated\n\n*.snap\ndocs/*\n")

        patterns = load_ignore_patterns(tmp_path)

        assert patterns[: len(DEFAULT_IGNORE_PATTERNS)] == DEFAULT_IGNORE_PATTERNS
        assert patterns[-2:] == ["*.snap", "docs/*"]


class TestFilterDiff:
    """Tests for filter_diff function."""

    def test_drops_ignored_sections(self):
        """Lock files and build output are removed entirely."""
        diff = "\n".join([
            section("src/app.ts", "+const a = 1"),
            section("package-lock.json", "+lots of lock"),
            section("dist/bundle.js", "+minified"),
            section("yarn.lock", "+lock"),
        ])

        filtered = filter_diff(diff, DEFAULT_IGNORE_PATTERNS)

        assert "src/app.ts" in filtered
        assert "+const a = 1" in filtered
        assert "package-lock.json" not in filtered
        assert "dist/bundle.js" not in filtered
        assert "yarn.lock" not in filtered
        assert count_files(filtered) == 1

    def test_keeps_everything_without_matches(self):
        """Non-matching diffs pass through unchanged."""
        diff = section("src/a.ts") + "\n" + section("src/b.ts")
        assert filter_diff(diff, DEFAULT_IGNORE_PATTERNS) == diff

    @pytest.mark.filterwarnings("error::DeprecationWarning")
    def test_gitignore_matching(self):
        """Patterns follow .gitignore rules without deprecated pathspec calls."""
        diff = "\n".join([
            section("packages/web/yarn.lock"),
            section("packages/web/dist/app.js"),
        ])

        filtered = filter_diff(diff, DEFAULT_IGNORE_PATTERNS)

        assert isinstance(build_matcher(["dist/*"]), pathspec.GitIgnoreSpec)
        assert "packages/web/yarn.lock" not in filtered
        assert "packages/web/dist/app.js" in filtered


class TestHelpers:
    """Tests for count_files, truncate_diff and parse_status."""

    def test_count_files(self):
        """Should count distinct file headers."""
        assert count_files(section("a.ts") + "\n" + section("b.ts")) == 2
        assert count_files("") == 0

    def test_truncate(self):
        """Should cut oversized diffs and append the marker."""
        diff, truncated = truncate_diff("x" * 20, max_size=10)
        assert truncated
        assert diff == "x" * 10 + TRUNCATION_MARKER

        diff, truncated = truncate_diff("short", max_size=10)
        assert (diff, truncated) == ("short", False)

    def test_parse_status(self):
        """Should map git status letters to change kinds."""
        assert parse_status("A") == "added"
        assert parse_status("D") == "deleted"
        assert parse_status("R100") == "renamed"
        assert parse_status("M") == "modified"
        assert parse_status("T") == "modified"


class TestBuildDiffContext:
    """Tests for build_diff_context against a real repository."""

    def test_collects_context(self, staged_change):
        """Should gather diff, stats, files and symbols for the staged change."""
        context = build_diff_context(staged_change)

        assert context.files_changed == 2
        assert not context.truncated
        assert context.stats.files_changed == 2
        assert {(f.path, f.status) for f in context.files} == {
            ("initial.txt", "modified"),
            ("src/auth.ts", "added"),
        }
        assert [s.name for s in context.code_context.symbols] == ["validateEmail"]
        # The initial commit touched initial.txt too
        assert [c.message for c in context.similar_commits] == ["Initial commit"]

    def test_ignored_files_excluded(self, repo_with_commit, tmp_path):
        """Files matching ignore patterns disappear from diff and file list."""
        (tmp_path / "package-lock.json").write_text("{}\n")
        (tmp_path / "app.ts").write_text("export class App {}\n")
        repo_with_commit.git.add(".")

        context = build_diff_context(repo_with_commit)

        assert "package-lock.json" not in context.diff
        assert [f.path for f in context.files] == ["app.ts"]
        assert context.files_changed == 1

    def test_empty_stage(self, repo_with_commit):
        """Nothing staged yields an empty diff."""
        context = build_diff_context(repo_with_commit)
        assert context.diff == ""
        assert context.files_changed == 0

    def test_file_changes_use_numstat(self, staged_change):
        """Per-file counts come from numstat."""
        files = {f.path: f for f in get_file_changes(staged_change, [])}
        assert (files["src/auth.ts"].insertions, files["src/auth.ts"].deletions) == (3, 0)
