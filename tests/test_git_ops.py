"""Unit tests for git_ops module."""

import os
from pathlib import Path

import pytest
from git import Repo

from commitgen.errors import GitError, UpstreamMissingError
from commitgen.git_ops import (
    LOG_RECORD_SENTINEL,
    create_commit,
    escape_commit_message,
    format_commit_command,
    get_branch_summary,
    get_commit_log,
    get_repo,
    get_repo_root,
    get_staged_diff,
    get_staged_name_status,
    get_staged_numstat,
    get_staged_shortstat,
    get_working_tree_summary,
    has_changes,
    has_staged_changes,
    is_repository,
    push,
    stage_all,
)


class TestGetRepo:
    """Tests for get_repo function."""

    def test_valid_repo(self, temp_repo, tmp_path, monkeypatch):
        """Should return repo for valid git directory."""
        monkeypatch.chdir(tmp_path)
        repo = get_repo()
        assert repo is not None
        assert Path(repo.working_dir) == tmp_path

    def test_invalid_repo(self, tmp_path):
        """Should raise GitError for non-git directory."""
        non_git_dir = tmp_path / "not_a_repo"
        non_git_dir.mkdir()

        with pytest.raises(GitError, match="Not a git repository"):
            get_repo(non_git_dir)

    def test_is_repository(self, temp_repo, tmp_path):
        """Should report whether a path is inside a repository."""
        assert is_repository(tmp_path)
        outside = tmp_path.parent / f"{tmp_path.name}_outside"
        outside.mkdir()
        assert not is_repository(outside)


class TestGetRepoRoot:
    """Tests for get_repo_root function."""

    def test_returns_root_path(self, temp_repo, tmp_path):
        """Should return the repository root path."""
        root = get_repo_root(temp_repo)
        assert root == tmp_path


class TestStagedDiff:
    """Tests for reading the staged change."""

    def test_staged_diff_contains_new_file(self, staged_change):
        """Should include headers for every staged file."""
        diff = get_staged_diff(staged_change)
        assert "diff --git a/src/auth.ts b/src/auth.ts" in diff
        assert "+export function validateEmail(email) {" in diff

    def test_unstaged_changes_are_excluded(self, repo_with_commit, tmp_path):
        """Should ignore working tree edits that are not staged."""
        (tmp_path / "initial.txt").write_text("changed but not staged\n")
        assert get_staged_diff(repo_with_commit) == ""
        assert not has_staged_changes(repo_with_commit)

    def test_shortstat(self, staged_change):
        """Should parse files, insertions and deletions."""
        stats = get_staged_shortstat(staged_change)
        assert stats.files_changed == 2
        assert stats.insertions == 4
        assert stats.deletions == 0

    def test_shortstat_empty(self, repo_with_commit):
        """Should count zero when nothing is staged."""
        stats = get_staged_shortstat(repo_with_commit)
        assert (stats.files_changed, stats.insertions, stats.deletions) == (0, 0, 0)

    def test_name_status(self, staged_change):
        """Should return status codes with paths."""
        entries = dict((path, code) for code, path in get_staged_name_status(staged_change))
        assert entries == {"initial.txt": "M", "src/auth.ts": "A"}

    def test_numstat(self, staged_change):
        """Should return per-file line counts."""
        stats = get_staged_numstat(staged_change)
        assert stats["initial.txt"] == (1, 0)
        assert stats["src/auth.ts"] == (3, 0)

    def test_numstat_resolves_renames(self, repo_with_commit, tmp_path):
        """Should key renamed files by their new path."""
        repo_with_commit.git.mv("initial.txt", "renamed.txt")
        stats = get_staged_numstat(repo_with_commit)
        assert "renamed.txt" in stats


class TestCommitLog:
    """Tests for get_commit_log function."""

    def test_records_have_sentinel_and_files(self, repo_with_commit, tmp_path):
        """Should emit one sentinel line per commit followed by its files."""
        (tmp_path / "second.txt").write_text("two\n")
        repo_with_commit.index.add(["second.txt"])
        repo_with_commit.index.commit("Add second file")

        log = get_commit_log(repo_with_commit)
        lines = [line for line in log.splitlines() if line]

        assert lines[0].startswith(LOG_RECORD_SENTINEL)
        assert lines[0].endswith("|Add second file")
        assert "second.txt" in lines
        assert sum(1 for line in lines if line.startswith(LOG_RECORD_SENTINEL)) == 2

    def test_max_count(self, repo_with_commit, tmp_path):
        """Should limit the number of commits read."""
        (tmp_path / "second.txt").write_text("two\n")
        repo_with_commit.index.add(["second.txt"])
        repo_with_commit.index.commit("Add second file")

        log = get_commit_log(repo_with_commit, max_count=1)
        assert log.count(LOG_RECORD_SENTINEL) == 1

    def test_empty_repo_raises(self, temp_repo):
        """Should raise GitError when there is no history."""
        with pytest.raises(GitError):
            get_commit_log(temp_repo)


class TestStageAll:
    """Tests for stage_all function."""

    def test_stages_untracked_and_modified(self, repo_with_commit, tmp_path):
        """Should stage every change in the working tree."""
        (tmp_path / "initial.txt").write_text("modified\n")
        (tmp_path / "new.txt").write_text("new\n")

        stage_all(repo_with_commit)

        staged = {path for _, path in get_staged_name_status(repo_with_commit)}
        assert staged == {"initial.txt", "new.txt"}


class TestEscapeCommitMessage:
    """Tests for shell escaping of commit messages."""

    def test_escapes_quotes_backslashes_and_newlines(self):
        """Should escape characters special inside double quotes."""
        assert escape_commit_message('say "hi"') == 'say \\"hi\\"'
        assert escape_commit_message("a\\b") == "a\\\\b"
        assert escape_commit_message("line1\nline2") == "line1\\nline2"

    def test_format_commit_command(self):
        """Should wrap the escaped message in a git commit command."""
        assert format_commit_command('[bugfix] fix "quoted" path') == 'git commit -m "[bugfix] fix \\"quoted\\" path"'


class TestCreateCommit:
    """Tests for create_commit function."""

    def test_creates_commit(self, staged_change):
        """Should create a commit and return its short hash."""
        commit_hash = create_commit(staged_change, "[feature] add email validation")

        assert len(commit_hash) == 7
        assert staged_change.head.commit.hexsha.startswith(commit_hash)
        assert staged_change.head.commit.message.strip() == "[feature] add email validation"

    def test_keeps_quotes_verbatim(self, staged_change):
        """Should store quotes and backslashes exactly as given."""
        create_commit(staged_change, '[bugfix] handle "null" in C:\\path')
        assert staged_change.head.commit.message.strip() == '[bugfix] handle "null" in C:\\path'

    def test_newlines_stay_on_subject_line(self, staged_change):
        """Should encode embedded newlines as a literal backslash-n."""
        create_commit(staged_change, "first\nsecond")
        assert staged_change.head.commit.message.strip() == "first\\nsecond"

    def test_nothing_staged_raises(self, repo_with_commit):
        """Should raise GitError when there is nothing to commit."""
        with pytest.raises(GitError, match="Failed to create commit"):
            create_commit(repo_with_commit, "[refactor] nothing")


class TestPush:
    """Tests for push function."""

    def test_missing_upstream(self, repo_with_commit, tmp_path):
        """Should raise UpstreamMissingError with the set-upstream hint."""
        remote_dir = tmp_path.parent / f"{tmp_path.name}_remote.git"
        Repo.init(remote_dir, bare=True)
        repo_with_commit.create_remote("origin", str(remote_dir))

        with pytest.raises(UpstreamMissingError, match="git push -u origin"):
            push(repo_with_commit)

    def test_push_to_upstream(self, repo_with_commit, tmp_path):
        """Should push and return git's output."""
        remote_dir = tmp_path.parent / f"{tmp_path.name}_remote.git"
        Repo.init(remote_dir, bare=True)
        repo_with_commit.create_remote("origin", str(remote_dir))
        branch = repo_with_commit.active_branch.name
        repo_with_commit.git.push("-u", "origin", branch)

        (tmp_path / "more.txt").write_text("more\n")
        repo_with_commit.index.add(["more.txt"])
        repo_with_commit.index.commit("More")

        output = push(repo_with_commit)
        assert isinstance(output, str)
        assert Repo(remote_dir).head.commit.hexsha == repo_with_commit.head.commit.hexsha


class TestStatusSummaries:
    """Tests for has_changes, get_branch_summary and get_working_tree_summary."""

    def test_clean_repo_has_no_changes(self, repo_with_commit):
        """Should report a clean working tree."""
        assert not has_changes(repo_with_commit)

    def test_working_tree_summary(self, staged_change, tmp_path):
        """Should count staged, unstaged and untracked entries."""
        (tmp_path / "initial.txt").write_text("edited again\n")
        (tmp_path / "untracked.txt").write_text("?\n")

        summary = get_working_tree_summary(staged_change)

        assert summary == {"staged": 2, "unstaged": 1, "untracked": 1}
        assert has_changes(staged_change)

    def test_branch_summary_without_upstream(self, repo_with_commit):
        """Should report the branch with zero ahead/behind."""
        summary = get_branch_summary(repo_with_commit)
        assert summary == {"branch": repo_with_commit.active_branch.name, "ahead": 0, "behind": 0}

    def test_branch_summary_detached(self, repo_with_commit):
        """Should return None for a detached HEAD."""
        repo_with_commit.git.checkout(repo_with_commit.head.commit.hexsha)
        assert get_branch_summary(repo_with_commit) is None
