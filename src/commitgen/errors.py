"""Exception hierarchy for commitgen."""

from __future__ import annotations

from enum import Enum


class CommitGenError(Exception):
    """Base class for all commitgen errors."""
    pass


class ConfigError(CommitGenError):
    """Missing or invalid configuration. Fatal before any pipeline work."""
    pass


class GitError(CommitGenError):
    """Custom exception for git operation errors."""
    pass


class UpstreamMissingError(GitError):
    """The current branch has no upstream to push to."""
    pass


class ProviderErrorKind(str, Enum):
    """User-actionable categories of model provider failures."""

    UNREACHABLE = "unreachable"
    AUTHENTICATION = "authentication"
    QUOTA = "quota"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    EMPTY_RESPONSE = "empty_response"
    MODEL_NOT_FOUND = "model_not_found"
    OTHER = "other"


class ProviderError(CommitGenError):
    """A model provider call failed."""

    prefix = ""

    def __init__(self, message: str, kind: ProviderErrorKind = ProviderErrorKind.OTHER):
        self.kind = kind
        self.detail = message
        super().__init__(f"{self.prefix}{message}")


class OllamaError(ProviderError):
    prefix = "Ollama error: "


class OpenRouterError(ProviderError):
    prefix = "OpenRouter error: "


class GeminiError(ProviderError):
    prefix = "Gemini error: "


class PromptCancelled(CommitGenError):
    """The user dismissed an interactive prompt (Ctrl+C or Esc)."""
    pass
