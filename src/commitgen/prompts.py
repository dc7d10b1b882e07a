"""Prompt construction for bracketed commit messages."""

from __future__ import annotations

from collections.abc import Sequence

from commitgen.history import format_for_prompt
from commitgen.models import DiffContext, LLMMessage


MAX_PROMPT_DIFF_LENGTH = 3000
MAX_PROMPT_SYMBOLS = 10
DIFF_TRUNCATION_MARKER = "\n... (diff truncated for brevity)"

COMMIT_TAGS = ("feature", "bugfix", "refactor")

SYSTEM_PROMPT = """<role>
You are a commit message expert. You analyze code changes and generate ONE commit message in bracketed format.
</role>

<tags>
Choose EXACTLY ONE of these 3 tags:

1. feature
   - Adds NEW functionality that didn't exist before
   - Creates NEW capabilities or user-facing behavior
   - Examples: "add login system", "implement export feature", "create API endpoint"

2. bugfix
   - Fixes BROKEN functionality or errors
   - Corrects incorrect behavior
   - Resolves crashes, errors, or issues
   - Examples: "fix login crash", "correct calculation error", "resolve memory leak"

3. refactor
   - Restructures or improves code WITHOUT changing external behavior
   - Renames, moves, or reorganizes code
   - Improves code quality, readability, or maintainability
   - Examples: "simplify validation logic", "extract utility function", "reorganize file structure"
</tags>

<format>
[tag] description
- tag: exactly one of: feature, bugfix, refactor (lowercase)
- description: imperative mood, lowercase first letter, 72 characters or less, no trailing period
</format>

<examples>
Example 1:
DIFF:
+async function validateEmail(email) {
+  return /\\S+@\\S+\\.\\S+/.test(email);
+}
COMMIT: [feature] add email validation function

Example 2:
DIFF:
-const data = fetch('/api/users')
+const data = await fetch('/api/users')
COMMIT: [bugfix] add missing await to user fetch

Example 3:
DIFF:
-function getData() {
-  return db.query('SELECT * FROM users');
-}
+function fetchUsers() {
+  return db.query('SELECT * FROM users');
+}
COMMIT: [refactor] rename getData to fetchUsers

Example 4:
DIFF:
 function calculateTotal(items) {
-  return items.reduce((sum, item) => sum + item.price, 0);
+  return items.reduce((sum, item) => sum + (item.price || 0), 0);
 }
COMMIT: [bugfix] handle null prices in total calculation

Example 5:
DIFF:
+// Helper function to format dates
+function formatDate(date) {
+  return date.toISOString().split('T')[0];
+}
COMMIT: [refactor] add comment to formatDate helper
</examples>

<output_format>
Return ONLY the final commit message line, no explanations, no code fences.
</output_format>"""

REASONING_INSTRUCTION = """TASK: Analyze the changes above using this step-by-step reasoning process:

Step 1: What is the PRIMARY change?
- Look at the code context summary and specific symbols changed
- Identify the main intent of this commit

Step 2: Categorize the change:
- Is this adding NEW functionality? -> [feature]
- Is this fixing BROKEN functionality? -> [bugfix]
- Is this only improving/reorganizing code? -> [refactor]

Step 3: Write a concise description:
- Use imperative mood (e.g., "add", "fix", "refactor", not "added" or "adding")
- Start with lowercase letter
- Keep it 72 characters or less
- Focus on WHAT and WHY, not HOW
- Be specific (mention the key function/class/file if relevant)

Now generate the commit message in format: [tag] description"""


class PromptBuilder:
    """Turns a DiffContext into a system/user message pair."""

    def __init__(self, max_diff_length: int = MAX_PROMPT_DIFF_LENGTH):
        self.max_diff_length = max_diff_length

    def build_commit_prompt(self, context: DiffContext) -> list[LLMMessage]:
        sections = [
            self._similar_commits_section(context),
            self._code_context_section(context),
            self._statistics_section(context),
            self._diff_section(context.diff),
            REASONING_INSTRUCTION,
        ]
        user_prompt = "".join(section for section in sections if section)

        return [
            LLMMessage(role="system", content=SYSTEM_PROMPT),
            LLMMessage(role="user", content=user_prompt),
        ]

    def _similar_commits_section(self, context: DiffContext) -> str:
        if not context.similar_commits:
            return ""
        return format_for_prompt(context.similar_commits)

    def _code_context_section(self, context: DiffContext) -> str:
        code_context = context.code_context
        if code_context is None or not code_context.symbols:
            return ""

        lines = ["CODE CONTEXT:", f"Summary: {code_context.summary}", "", "Specific changes:"]
        for symbol in code_context.symbols[:MAX_PROMPT_SYMBOLS]:
            old_name = f" (was: {symbol.old_name})" if symbol.old_name else ""
            lines.append(f'- {symbol.action.upper()}: {symbol.type} "{symbol.name}"{old_name} in {symbol.file}')
        return "\n".join(lines) + "\n\n"

    def _statistics_section(self, context: DiffContext) -> str:
        if context.stats is None or not context.files:
            return ""

        stats = context.stats
        lines = [
            "CHANGE STATISTICS:",
            f"Files changed: {stats.files_changed}",
            f"Insertions: +{stats.insertions} lines",
            f"Deletions: -{stats.deletions} lines",
            "",
            "FILES AFFECTED:",
        ]
        for file in context.files:
            lines.append(f"- {file.status.upper()}: {file.path} (+{file.insertions}/-{file.deletions})")
        return "\n".join(lines) + "\n\n"

    def _diff_section(self, diff: str) -> str:
        if len(diff) > self.max_diff_length:
            diff = diff[:self.max_diff_length] + DIFF_TRUNCATION_MARKER
        return f"DIFF DETAILS:\n```diff\n{diff}\n```\n\n"


def build_retry_hint(previous_messages: Sequence[str]) -> LLMMessage:
    """Ask for a different message than every one generated so far."""
    return LLMMessage(
        role="user",
        content=(
            f"Previous attempt(s) generated: {', '.join(previous_messages)}. "
            "Please generate a DIFFERENT commit message with alternative wording or perspective."
        ),
    )
