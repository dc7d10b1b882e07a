"""Few-shot examples from the repository's own commit history.

Scores recent commits against the staged change so the prompt can show the
model how similar changes were described before.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from git import Repo

from commitgen.git_ops import LOG_RECORD_SENTINEL, get_commit_log
from commitgen.models import CodeContext, HistoricalCommit


logger = logging.getLogger(__name__)

HISTORY_DEPTH = 200
DEFAULT_MAX_RESULTS = 5
MAX_KEYWORDS = 5

FILE_OVERLAP_WEIGHT = 0.6
DIRECTORY_OVERLAP_WEIGHT = 0.3
KEYWORD_MATCH_WEIGHT = 0.1

ROOT_DIRECTORY = "."


def parse_git_log(log_output: str) -> list[HistoricalCommit]:
    """Parse sentinel-delimited `git log --name-only` output into commits.

    Args:
        log_output: Raw output of `get_commit_log`.

    Returns:
        Commits in log order (newest first), similarity unset.
    """
    commits: list[HistoricalCommit] = []
    current: HistoricalCommit | None = None

    for raw_line in log_output.split("\n"):
        line = raw_line.strip()
        if line.startswith(LOG_RECORD_SENTINEL):
            if current is not None:
                commits.append(current)
            header = line[len(LOG_RECORD_SENTINEL):]
            commit_hash, _, message = header.partition("|")
            current = HistoricalCommit(hash=commit_hash, message=message) if commit_hash and message else None
        elif line and current is not None:
            current.files.append(line)

    if current is not None:
        commits.append(current)

    return commits


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard similarity of two collections, 0 when either is empty."""
    set_a, set_b = set(a), set(b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def get_directory(file_path: str) -> str:
    """Parent directory of a repo-relative path, "." for root files."""
    directory, sep, _ = file_path.rpartition("/")
    return directory if sep else ROOT_DIRECTORY


def file_overlap(commit_files: Sequence[str], changed_files: Sequence[str]) -> float:
    return jaccard(commit_files, changed_files)


def directory_overlap(commit_files: Sequence[str], changed_files: Sequence[str]) -> float:
    if not commit_files or not changed_files:
        return 0.0
    return jaccard(map(get_directory, commit_files), map(get_directory, changed_files))


def keyword_match(message: str, keywords: Sequence[str]) -> float:
    """Fraction of keywords found (case-insensitively) in the commit subject."""
    if not keywords:
        return 0.0
    lower_message = message.lower()
    matches = sum(1 for keyword in keywords if keyword.lower() in lower_message)
    return matches / len(keywords)


def calculate_similarity(
    commit: HistoricalCommit,
    changed_files: Sequence[str],
    keywords: Sequence[str],
) -> float:
    """Weighted similarity in [0, 1] between a past commit and the current change."""
    score = (
        FILE_OVERLAP_WEIGHT * file_overlap(commit.files, changed_files)
        + DIRECTORY_OVERLAP_WEIGHT * directory_overlap(commit.files, changed_files)
        + KEYWORD_MATCH_WEIGHT * keyword_match(commit.message, keywords)
    )
    return min(max(score, 0.0), 1.0)


def rank_commits(
    commits: Iterable[HistoricalCommit],
    changed_files: Sequence[str],
    keywords: Sequence[str] = (),
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[HistoricalCommit]:
    """Score, drop unrelated (score 0) commits, sort descending, truncate.

    The sort is stable, so ties keep their log order.
    """
    scored = [
        commit.model_copy(update={"similarity": calculate_similarity(commit, changed_files, keywords)})
        for commit in commits
    ]
    related = [commit for commit in scored if commit.similarity > 0]
    related.sort(key=lambda commit: commit.similarity, reverse=True)
    return related[:max(max_results, 0)]


def extract_keywords(code_context: CodeContext | None) -> list[str]:
    """Names of the first few function/class symbols, used as search keywords."""
    if code_context is None:
        return []
    important = [s for s in code_context.symbols if s.type in ("function", "class")]
    return [symbol.name for symbol in important[:MAX_KEYWORDS]]


def format_for_prompt(commits: Sequence[HistoricalCommit]) -> str:
    """Render ranked commits as a numbered list for the user prompt."""
    if not commits:
        return ""

    lines = [
        "SIMILAR COMMITS FROM THIS REPO:",
        "(Use these as examples of the commit message style in this repository)",
        "",
    ]
    for i, commit in enumerate(commits, start=1):
        files = ", ".join(commit.files[:3]) + ("..." if len(commit.files) > 3 else "")
        lines.append(f"{i}. {commit.message}")
        lines.append(f"   Files: {files}")
        lines.append(f"   Similarity: {commit.similarity * 100:.0f}%")
        lines.append("")
    return "\n".join(lines) + "\n"


class CommitHistoryRanker:
    """Finds past commits similar to the staged change.

    Args:
        repo: Repository to read history from.
        max_results: Default number of commits returned.
        log_reader: Callable returning raw log output; defaults to `get_commit_log`.
    """

    def __init__(
        self,
        repo: Repo | None,
        max_results: int = DEFAULT_MAX_RESULTS,
        log_reader: Callable[[Repo], str] | None = None,
    ):
        self.repo = repo
        self.max_results = max_results
        self._log_reader = log_reader or (lambda r: get_commit_log(r, HISTORY_DEPTH))

    def find_similar_commits(
        self,
        changed_files: Sequence[str],
        keywords: Sequence[str] = (),
        max_results: int | None = None,
    ) -> list[HistoricalCommit]:
        """Ranked commits similar to the change; empty on any history error."""
        limit = self.max_results if max_results is None else max_results
        try:
            commits = parse_git_log(self._log_reader(self.repo))
            return rank_commits(commits, changed_files, keywords, limit)
        except Exception as e:
            # Shallow clones, empty repos and odd logs just mean no examples
            logger.debug("Commit history unavailable: %s", e)
            return []
