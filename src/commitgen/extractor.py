"""Semantic symbol extraction from unified diffs.

Gives the model a head start on *what* a change touches (functions, classes,
types, imports, constants) instead of leaving it to infer everything from raw
hunks. Detection is regex based and shallow: ambiguous or
minified input may produce false positives or miss symbols.
"""

from __future__ import annotations

import re

from commitgen.models import CodeContext, CodeSymbol


FILE_HEADER_RE = re.compile(r".* b/(.+)$")

FUNCTION_RE = re.compile(r"(?:export\s+)?(?:async\s+)?function\s+(\w+)")
ARROW_FUNCTION_RE = re.compile(r"(?:export\s+)?const\s+(\w+)\s*=\s*(?:async\s+)?\([^)]*\)\s*=>")
CLASS_RE = re.compile(r"(?:export\s+)?(?:default\s+)?class\s+(\w+)")
INTERFACE_RE = re.compile(r"(?:export\s+)?interface\s+(\w+)")
TYPE_ALIAS_RE = re.compile(r"(?:export\s+)?type\s+(\w+)\s*=")
IMPORT_RE = re.compile(r"import\s+(?:\{([^}]+)\}|(\w+))\s+from")
CONSTANT_RE = re.compile(r"(?:export\s+)?const\s+([A-Z_]+)\s*=")

# Symbol kinds left out of the added/deleted prose; there are too many of them
LOW_SIGNAL_TYPES = {"import", "export"}

RENAME_MAX_DISTANCE = 3


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def are_similar(name1: str, name2: str) -> bool:
    """Whether two identifiers look like a rename of one another.

    True when one (lower-cased) name contains the other or their edit
    distance is at most 3. Short generic names ("get"/"set") match easily.
    """
    lower1 = name1.lower()
    lower2 = name2.lower()
    if lower1 in lower2 or lower2 in lower1:
        return True
    return levenshtein_distance(lower1, lower2) <= RENAME_MAX_DISTANCE


class CodeContextExtractor:
    """Extracts changed code symbols and a summary sentence from a diff."""

    def extract(self, diff: str) -> CodeContext:
        symbols: list[CodeSymbol] = []
        current_file = ""

        for line in diff.split("\n"):
            if line.startswith("diff --git"):
                match = FILE_HEADER_RE.search(line)
                if match:
                    current_file = match.group(1)
                continue

            if not current_file:
                continue

            if line.startswith("+") and not line.startswith("+++"):
                symbols.extend(self.extract_symbols_from_line(line[1:].strip(), "added", current_file))
            elif line.startswith("-") and not line.startswith("---"):
                symbols.extend(self.extract_symbols_from_line(line[1:].strip(), "deleted", current_file))

        self._detect_renames(symbols)
        self._detect_modifications(symbols)
        unique = self._deduplicate(symbols)

        return CodeContext(symbols=unique, summary=self.generate_summary(unique))

    def extract_symbols_from_line(self, line: str, action: str, file: str) -> list[CodeSymbol]:
        """Match one stripped source line against the structural patterns."""
        found: list[CodeSymbol] = []

        def add(name: str, symbol_type: str) -> None:
            found.append(CodeSymbol(name=name, type=symbol_type, action=action, file=file))

        if match := FUNCTION_RE.search(line):
            add(match.group(1), "function")

        if match := ARROW_FUNCTION_RE.search(line):
            add(match.group(1), "function")

        if match := CLASS_RE.search(line):
            add(match.group(1), "class")

        if match := INTERFACE_RE.search(line):
            add(match.group(1), "interface")

        if match := TYPE_ALIAS_RE.search(line):
            add(match.group(1), "type")

        if match := IMPORT_RE.search(line):
            imports = match.group(1) or match.group(2) or ""
            for item in imports.split(","):
                name = re.split(r"\s+as\s+", item.strip())[0].strip()
                if name:
                    add(name, "import")

        # Only UPPER_CASE names count as constants, ordinary locals are noise
        if match := CONSTANT_RE.search(line):
            add(match.group(1), "constant")

        return found

    def _detect_renames(self, symbols: list[CodeSymbol]) -> None:
        deleted = [s for s in symbols if s.action == "deleted"]
        added = [s for s in symbols if s.action == "added"]

        for old in deleted:
            for new in added:
                if (
                    old.type == new.type
                    and old.file == new.file
                    and old.name != new.name
                    and are_similar(old.name, new.name)
                ):
                    new.action = "renamed"
                    new.old_name = old.name
                    old.action = "renamed"

    def _detect_modifications(self, symbols: list[CodeSymbol]) -> None:
        groups: dict[tuple[str, str, str], list[CodeSymbol]] = {}
        for symbol in symbols:
            groups.setdefault((symbol.name, symbol.type, symbol.file), []).append(symbol)

        for members in groups.values():
            actions = {s.action for s in members}
            if "added" in actions and "deleted" in actions:
                for symbol in members:
                    if symbol.action != "renamed":
                        symbol.action = "modified"

    def _deduplicate(self, symbols: list[CodeSymbol]) -> list[CodeSymbol]:
        seen: set[tuple[str, str, str, str]] = set()
        unique: list[CodeSymbol] = []
        for symbol in symbols:
            key = (symbol.name, symbol.type, symbol.action, symbol.file)
            if key not in seen:
                seen.add(key)
                unique.append(symbol)
        return unique

    def generate_summary(self, symbols: list[CodeSymbol]) -> str:
        """Render symbols as e.g. "Added function foo; Renamed class Bar"."""
        if not symbols:
            return "Minor changes"

        buckets = [
            ("Added", [s for s in symbols if s.action == "added" and s.type not in LOW_SIGNAL_TYPES]),
            ("Modified", [s for s in symbols if s.action == "modified"]),
            ("Renamed", [s for s in symbols if s.action == "renamed"]),
            ("Deleted", [s for s in symbols if s.action == "deleted" and s.type not in LOW_SIGNAL_TYPES]),
        ]

        parts = [f"{verb} {_format_type_groups(bucket)}" for verb, bucket in buckets if bucket]
        return "; ".join(parts) if parts else "Minor changes"


def _format_type_groups(symbols: list[CodeSymbol]) -> str:
    by_type: dict[str, list[str]] = {}
    for symbol in symbols:
        names = by_type.setdefault(symbol.type, [])
        if symbol.name not in names:
            names.append(symbol.name)

    parts: list[str] = []
    for symbol_type, names in by_type.items():
        if len(names) == 1:
            parts.append(f"{symbol_type} {names[0]}")
        elif len(names) <= 3:
            parts.append(f"{_plural(symbol_type)} {', '.join(names)}")
        else:
            parts.append(f"{len(names)} {_plural(symbol_type)}")
    return ", ".join(parts)


def _plural(word: str) -> str:
    return f"{word}es" if word.endswith("s") else f"{word}s"
