"""Interactive terminal prompts backed by questionary."""

from __future__ import annotations

from collections.abc import Sequence

import questionary

from commitgen.errors import PromptCancelled


class Prompter:
    """Asks the user questions. Dismissing a prompt raises PromptCancelled."""

    def confirm(self, message: str, default: bool = True) -> bool:
        return self._ask(questionary.confirm(message, default=default))

    def select(self, message: str, choices: Sequence[tuple[str, str]], default: str | None = None) -> str:
        """Pick one option.

        Args:
            message: The question.
            choices: (value, label) pairs in display order.
            default: Value preselected, if any.

        Returns:
            The value of the chosen option.
        """
        options = [questionary.Choice(title=label, value=value) for value, label in choices]
        return self._ask(questionary.select(message, choices=options, default=default))

    def text(self, message: str, default: str = "") -> str:
        return self._ask(questionary.text(message, default=default))

    def password(self, message: str) -> str:
        return self._ask(questionary.password(message))

    @staticmethod
    def _ask(question: questionary.Question):
        # questionary returns None on Ctrl+C / Esc
        answer = question.ask()
        if answer is None:
            raise PromptCancelled("Prompt cancelled")
        return answer
