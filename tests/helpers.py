"""Scripted stand-ins for providers and prompts used across tests."""

from commitgen.providers import LLMProvider


class FakeProvider(LLMProvider):
    """Returns scripted replies (or raises scripted errors) and records calls."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    @property
    def name(self):
        return "Fake"

    def generate_text(self, messages, options=None):
        self.calls.append(list(messages))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    def validate_config(self):
        return True


class FakePrompter:
    """Answers prompts from a script; an exception in the script is raised."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []

    def _next(self, message):
        self.questions.append(message)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def confirm(self, message, default=True):
        return self._next(message)

    def select(self, message, choices, default=None):
        return self._next(message)

    def text(self, message, default=""):
        answer = self._next(message)
        return default if answer is None else answer
