"""Collects the staged change into a single DiffContext for prompting."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path

import pathspec
from git import Repo

from commitgen.errors import GitError
from commitgen.extractor import CodeContextExtractor
from commitgen.git_ops import (
    get_repo_root,
    get_staged_diff,
    get_staged_name_status,
    get_staged_numstat,
    get_staged_shortstat,
)
from commitgen.history import CommitHistoryRanker, extract_keywords
from commitgen.models import DiffContext, DiffStats, FileChange


logger = logging.getLogger(__name__)

MAX_DIFF_SIZE = 500_000
TRUNCATION_MARKER = "\n... (truncated)"
IGNORE_FILENAME = ".commitignore"

DEFAULT_IGNORE_PATTERNS = [
    "*-lock.*",
    "*.lock",
    "dist/*",
    "build/*",
    "node_modules/*",
    ".next/*",
    "coverage/*",
]

DIFF_HEADER = "diff --git"
DIFF_HEADER_PATH_RE = re.compile(r".* b/(.+)$")


def load_ignore_patterns(root: str | Path = ".") -> list[str]:
    """Default ignore patterns plus any from `.commitignore` in root.

    Blank lines and `#` comments are skipped.
    """
    patterns = list(DEFAULT_IGNORE_PATTERNS)
    ignore_file = Path(root) / IGNORE_FILENAME
    if ignore_file.is_file():
        try:
            for line in ignore_file.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", ignore_file, e)
    return patterns


def build_matcher(patterns: Sequence[str]) -> pathspec.GitIgnoreSpec:
    return pathspec.GitIgnoreSpec.from_lines(patterns)


def filter_diff(diff: str, patterns: Sequence[str]) -> str:
    """Drop every file section whose path matches an ignore pattern.

    An ignored file's header line and all lines up to the next header are
    removed; everything else passes through unchanged.
    """
    matcher = build_matcher(patterns)
    kept: list[str] = []
    skipping = False

    for line in diff.split("\n"):
        if line.startswith(DIFF_HEADER):
            match = DIFF_HEADER_PATH_RE.search(line)
            skipping = bool(match) and matcher.match_file(match.group(1))
        if not skipping:
            kept.append(line)

    return "\n".join(kept)


def count_files(diff: str) -> int:
    """Number of distinct files with a header in the diff."""
    paths = set()
    for line in diff.split("\n"):
        if line.startswith(DIFF_HEADER):
            match = DIFF_HEADER_PATH_RE.search(line)
            paths.add(match.group(1) if match else line)
    return len(paths)


def truncate_diff(diff: str, max_size: int = MAX_DIFF_SIZE) -> tuple[str, bool]:
    if len(diff) > max_size:
        return diff[:max_size] + TRUNCATION_MARKER, True
    return diff, False


def parse_status(code: str) -> str:
    if code.startswith("A"):
        return "added"
    if code.startswith("D"):
        return "deleted"
    if code.startswith("R"):
        return "renamed"
    return "modified"


def get_file_changes(repo: Repo, patterns: Sequence[str]) -> list[FileChange]:
    """Per-file status and line counts, ignored files excluded."""
    matcher = build_matcher(patterns)
    numstat = get_staged_numstat(repo)

    files: list[FileChange] = []
    for code, path in get_staged_name_status(repo):
        if matcher.match_file(path):
            continue
        insertions, deletions = numstat.get(path, (0, 0))
        files.append(FileChange(path=path, status=parse_status(code), insertions=insertions, deletions=deletions))
    return files


def build_diff_context(repo: Repo, history_limit: int = 5) -> DiffContext:
    """Assemble diff text, stats, symbols and similar commits for the staged change.

    Raises:
        GitError: If the staged diff itself cannot be read.
    """
    patterns = load_ignore_patterns(get_repo_root(repo))

    diff = filter_diff(get_staged_diff(repo), patterns)
    diff, truncated = truncate_diff(diff)
    files_changed = count_files(diff)

    try:
        stats = get_staged_shortstat(repo)
    except GitError as e:
        logger.debug("Diff stats unavailable: %s", e)
        stats = DiffStats()

    try:
        files = get_file_changes(repo, patterns)
    except GitError as e:
        logger.debug("File changes unavailable: %s", e)
        files = []

    code_context = CodeContextExtractor().extract(diff)

    ranker = CommitHistoryRanker(repo, max_results=history_limit)
    similar_commits = ranker.find_similar_commits(
        [f.path for f in files],
        extract_keywords(code_context),
    )

    return DiffContext(
        diff=diff,
        files_changed=files_changed,
        truncated=truncated,
        stats=stats,
        files=files,
        code_context=code_context,
        similar_commits=similar_commits,
    )
