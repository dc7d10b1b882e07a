"""Git operations layer for commitgen."""

from __future__ import annotations

import re
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from commitgen.errors import GitError, UpstreamMissingError
from commitgen.models import DiffStats


# Marks the start of each commit record in `git log` output
LOG_RECORD_SENTINEL = "__commitgen__"

SHORTSTAT_FILES_RE = re.compile(r"(\d+)\s+files?\s+changed")
SHORTSTAT_INSERTIONS_RE = re.compile(r"(\d+)\s+insertions?\(")
SHORTSTAT_DELETIONS_RE = re.compile(r"(\d+)\s+deletions?\(")


def get_repo(path: str | Path = ".") -> Repo:
    """Get the git repository at the given path.

    Args:
        path: Path inside the repository. Defaults to current directory.

    Returns:
        The git Repo object.

    Raises:
        GitError: If the path is not a valid git repository.
    """
    try:
        return Repo(path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise GitError(f"Not a git repository: {path}")


def get_repo_root(repo: Repo) -> Path:
    """Get the root directory of the repository."""
    return Path(repo.working_dir)


def is_repository(path: str | Path = ".") -> bool:
    """Check whether the path is inside a git working tree."""
    try:
        get_repo(path)
        return True
    except GitError:
        return False


def get_staged_diff(repo: Repo) -> str:
    """Get the full unified diff of the index against HEAD.

    Raises:
        GitError: If git fails (e.g. corrupt repository).
    """
    try:
        return repo.git.diff("--staged", "--no-ext-diff")
    except GitCommandError as e:
        raise GitError(f"Failed to get staged diff: {e}")


def get_staged_shortstat(repo: Repo) -> DiffStats:
    """Parse `git diff --staged --shortstat` into counters.

    Parses output such as "3 files changed, 45 insertions(+), 12 deletions(-)".
    Missing parts count as zero.
    """
    try:
        output = repo.git.diff("--staged", "--shortstat").strip()
    except GitCommandError as e:
        raise GitError(f"Failed to get diff stats: {e}")

    def _count(pattern: re.Pattern[str]) -> int:
        match = pattern.search(output)
        return int(match.group(1)) if match else 0

    return DiffStats(
        files_changed=_count(SHORTSTAT_FILES_RE),
        insertions=_count(SHORTSTAT_INSERTIONS_RE),
        deletions=_count(SHORTSTAT_DELETIONS_RE),
    )


def get_staged_name_status(repo: Repo) -> list[tuple[str, str]]:
    """Get (status code, path) pairs for every staged file.

    Renames report the new path.
    """
    try:
        output = repo.git.diff("--staged", "--name-status").strip()
    except GitCommandError as e:
        raise GitError(f"Failed to get file status: {e}")

    entries: list[tuple[str, str]] = []
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 2:
            continue
        entries.append((parts[0], parts[-1]))
    return entries


def get_staged_numstat(repo: Repo) -> dict[str, tuple[int, int]]:
    """Get per-file (insertions, deletions) for the staged change.

    Binary files report "-" in git; those count as zero.
    """
    try:
        output = repo.git.diff("--staged", "--numstat").strip()
    except GitCommandError as e:
        raise GitError(f"Failed to get per-file stats: {e}")

    stats: dict[str, tuple[int, int]] = {}
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        added, deleted, path = parts[0], parts[1], parts[-1]
        # Renames show up as "old => new" or "dir/{old => new}"
        if " => " in path:
            path = _resolve_rename_path(path)
        stats[path] = (
            int(added) if added.isdigit() else 0,
            int(deleted) if deleted.isdigit() else 0,
        )
    return stats


def _resolve_rename_path(path: str) -> str:
    brace = re.match(r"^(.*)\{(.*) => (.*)\}(.*)$", path)
    if brace:
        prefix, _, new, suffix = brace.groups()
        return (prefix + new + suffix).replace("//", "/")
    return path.split(" => ", 1)[1]


def get_commit_log(repo: Repo, max_count: int = 200) -> str:
    """Get raw log records for the most recent non-merge commits.

    Each record starts with a "<sentinel>hash|subject" line followed by the
    touched file paths, one per line.

    Raises:
        GitError: If the log cannot be read (e.g. no commits yet).
    """
    try:
        return repo.git.log(
            f"-{max_count}",
            f"--pretty=format:{LOG_RECORD_SENTINEL}%H|%s",
            "--name-only",
            "--no-merges",
        )
    except GitCommandError as e:
        raise GitError(f"Failed to read commit log: {e}")


def stage_all(repo: Repo) -> None:
    """Stage every change in the working tree (git add .).

    Raises:
        GitError: If staging fails.
    """
    try:
        repo.git.add(".")
    except GitCommandError as e:
        raise GitError(f"Failed to stage changes: {e.stderr or e}")


def escape_commit_message(message: str) -> str:
    """Escape a message for a double-quoted `git commit -m "..."` shell command."""
    return message.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_commit_command(message: str) -> str:
    """Shell form of the commit command, used when echoing what would run."""
    return f'git commit -m "{escape_commit_message(message)}"'


def create_commit(repo: Repo, message: str) -> str:
    """Create a commit with the staged changes.

    The message is handed to git as a single argument, so quotes and
    backslashes need no escaping; embedded newlines are kept on the subject
    line as a literal "\\n".

    Args:
        repo: The git Repo object.
        message: The commit message.

    Returns:
        The short hash of the new commit.

    Raises:
        GitError: If the commit fails.
    """
    try:
        repo.git.commit("-m", message.replace("\n", "\\n"))
        return repo.git.rev_parse("HEAD", short=7)
    except GitCommandError as e:
        raise GitError(f"Failed to create commit: {e.stderr or e}")


def push(repo: Repo) -> str:
    """Push the current branch to its upstream.

    Both "Everything up-to-date" and a real update count as success.

    Returns:
        Combined git output.

    Raises:
        UpstreamMissingError: If the branch has no upstream.
        GitError: If the push is rejected or fails.
    """
    try:
        _, stdout, stderr = repo.git.push(with_extended_output=True)
        # git reports push progress on stderr
        return "\n".join(part for part in (stdout, stderr) if part).strip()
    except GitCommandError as e:
        message = str(e.stderr or e)
        if "no upstream branch" in message or "has no upstream" in message:
            raise UpstreamMissingError(
                "No upstream branch set. Set upstream with:\n  git push -u origin <branch>"
            )
        raise GitError(f"Failed to push: {message.strip()}")


def has_staged_changes(repo: Repo) -> bool:
    """Whether the index differs from HEAD."""
    try:
        return bool(repo.git.diff("--staged", "--name-only").strip())
    except GitCommandError:
        return False


def has_changes(repo: Repo) -> bool:
    """Whether there is anything to commit (staged, unstaged or untracked)."""
    try:
        return bool(repo.git.status("--porcelain").strip())
    except GitCommandError as e:
        raise GitError(f"Failed to check repository status: {e}")


def get_branch_summary(repo: Repo) -> dict[str, object] | None:
    """Get current branch name and ahead/behind counts against upstream.

    Returns:
        Dict with "branch", "ahead", "behind", or None when HEAD is detached
        or unreadable.
    """
    try:
        branch = repo.active_branch.name
    except (TypeError, ValueError):
        return None

    ahead = behind = 0
    try:
        counts = repo.git.rev_list("--left-right", "--count", "HEAD...@{upstream}").split()
        ahead, behind = int(counts[0]), int(counts[1])
    except (GitCommandError, IndexError, ValueError):
        # No upstream configured
        pass

    return {"branch": branch, "ahead": ahead, "behind": behind}


def get_working_tree_summary(repo: Repo) -> dict[str, int]:
    """Count staged, unstaged and untracked entries from porcelain status."""
    try:
        output = repo.git.status("--porcelain")
    except GitCommandError as e:
        raise GitError(f"Failed to read working tree status: {e}")

    summary = {"staged": 0, "unstaged": 0, "untracked": 0}
    for line in output.splitlines():
        if len(line) < 2:
            continue
        index_status, tree_status = line[0], line[1]
        if index_status == "?":
            summary["untracked"] += 1
            continue
        if index_status != " ":
            summary["staged"] += 1
        if tree_status != " ":
            summary["unstaged"] += 1
    return summary
