"""Normalization of raw model replies into commit messages."""

from __future__ import annotations

import re

from commitgen.models import ParsedCommit


FALLBACK_MESSAGE = "chore: update code"

CODE_FENCE_OPEN_RE = re.compile(r"^```[a-z]*\n?")
CODE_FENCE_CLOSE_RE = re.compile(r"\n?```$")
LEADING_NON_LETTER_RE = re.compile(r"^[^a-z]", re.IGNORECASE)
BRACKETED_RE = re.compile(r"^\[(?P<category>[^\]]+)\](?:\[(?P<scope>[^\]]+)\])?\s+(?P<desc>.+)$")
CONVENTIONAL_RE = re.compile(r"^(\w+)(?:\(([^)]+)\))?: (.+)$")


def is_valid_commit_message(message: str) -> bool:
    return 3 < len(message) < 100 and "\n" not in message


def sanitize_message(message: str) -> str:
    """Strip one leading non-letter; fall back to a fixed message if still invalid."""
    message = LEADING_NON_LETTER_RE.sub("", message, count=1).strip()
    if not is_valid_commit_message(message):
        return FALLBACK_MESSAGE
    return message


def parse_commit_message(response: str | None) -> str:
    """Clean a model reply down to a single valid commit message line.

    Removes code fences and one layer of wrapping quotes, keeps only the first
    line, and falls back to "chore: update code" when nothing usable is left.
    Never raises.
    """
    message = (response or "").strip()

    message = CODE_FENCE_OPEN_RE.sub("", message, count=1)
    message = CODE_FENCE_CLOSE_RE.sub("", message, count=1)

    if len(message) >= 2 and message[0] == message[-1] and message[0] in "\"'":
        message = message[1:-1]

    message = message.split("\n")[0].strip()

    if not is_valid_commit_message(message):
        message = sanitize_message(message)

    return message


def parse_bracketed(message: str) -> ParsedCommit:
    """Split "[tag][scope] description"; unbracketed text is all description."""
    match = BRACKETED_RE.match(message)
    if match:
        return ParsedCommit(
            category=match.group("category"),
            scope=match.group("scope"),
            description=match.group("desc"),
        )
    return ParsedCommit(description=message)


def extract_conventional_commit(message: str) -> ParsedCommit:
    """Split "type(scope): description" into its parts."""
    match = CONVENTIONAL_RE.match(message)
    if match:
        return ParsedCommit(category=match.group(1), scope=match.group(2), description=match.group(3))
    return ParsedCommit(description=message)
