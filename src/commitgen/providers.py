"""Language model providers: local Ollama, OpenRouter and Google Gemini."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

import requests

from commitgen.config import GeminiModelConfig, ModelConfig, OllamaModelConfig, OpenRouterModelConfig
from commitgen.errors import (
    ConfigError,
    GeminiError,
    OllamaError,
    OpenRouterError,
    ProviderErrorKind,
)
from commitgen.models import GenerationOptions, LLMMessage


logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60  # seconds
HEALTH_CHECK_TIMEOUT = 2

OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://github.com/commitgen",
    "X-Title": "CommitGen",
}


class LLMProvider(ABC):
    """Abstract base for model providers."""

    @abstractmethod
    def generate_text(self, messages: Sequence[LLMMessage], options: GenerationOptions | None = None) -> str:
        """Return the model's reply to an ordered message list.

        Raises:
            ProviderError: With a kind describing what went wrong.
        """

    @abstractmethod
    def validate_config(self) -> bool:
        """Whether the provider is reachable and usable with its configuration."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass


class OllamaProvider(LLMProvider):
    """Ollama client for local models. Requires: ollama serve"""

    def __init__(self, config: OllamaModelConfig, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    @property
    def name(self) -> str:
        return f"Ollama ({self.config.model})"

    def generate_text(self, messages: Sequence[LLMMessage], options: GenerationOptions | None = None) -> str:
        options = options or GenerationOptions()
        model = options.model or self.config.model

        self._health_check()
        if not self.is_model_installed(model):
            raise OllamaError(
                f'Model "{model}" not found.\n'
                "Install a lightweight model with one of:\n"
                "  ollama pull llama3.2:1b\n"
                "  ollama pull tinyllama\n"
                "Or install the requested model:\n"
                f"  ollama pull {model}",
                ProviderErrorKind.MODEL_NOT_FOUND,
            )

        payload = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "stream": False,
            "options": {
                "temperature": _pick(options.temperature, self.config.temperature, 0.7),
                "num_predict": _pick(options.max_tokens, self.config.max_tokens, 500),
            },
        }

        try:
            response = self.session.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.Timeout:
            raise OllamaError(
                f"Request timed out after {self.timeout}s. The model may still be loading; try again.",
                ProviderErrorKind.TIMEOUT,
            )
        except requests.ConnectionError:
            raise OllamaError("Connection refused. Is Ollama running? Start with: ollama serve", ProviderErrorKind.UNREACHABLE)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise OllamaError(f"Model '{model}' not found. Run: ollama pull {model}", ProviderErrorKind.MODEL_NOT_FOUND)
            raise OllamaError(str(e))
        except ValueError:
            raise OllamaError("Invalid response from Ollama. Try a different model or simpler change.")

        content = (data.get("message") or {}).get("content") if isinstance(data, dict) else None
        if not content or not content.strip():
            raise OllamaError("Empty response from model", ProviderErrorKind.EMPTY_RESPONSE)

        return content.strip()

    def validate_config(self) -> bool:
        try:
            self._health_check()
            return True
        except OllamaError:
            return False

    def list_models(self) -> list[str]:
        response = self.session.get(f"{self.base_url}/api/tags", timeout=HEALTH_CHECK_TIMEOUT)
        response.raise_for_status()
        return [m.get("name", "") for m in response.json().get("models", [])]

    def is_model_installed(self, model: str | None = None) -> bool:
        """Check the model (or its ":latest" tag) is pulled locally."""
        model = model or self.config.model
        try:
            installed = self.list_models()
        except (requests.RequestException, ValueError):
            return False
        return model in installed or f"{model}:latest" in installed

    def _health_check(self) -> None:
        try:
            self.session.get(f"{self.base_url}/api/tags", timeout=HEALTH_CHECK_TIMEOUT).raise_for_status()
        except requests.RequestException:
            raise OllamaError("Connection failed. Start Ollama with: ollama serve", ProviderErrorKind.UNREACHABLE)


class OpenRouterProvider(LLMProvider):
    """OpenRouter chat completions client. Requires an API key."""

    def __init__(self, config: OpenRouterModelConfig, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(OPENROUTER_HEADERS)
        if config.api_key:
            self.session.headers["Authorization"] = f"Bearer {config.api_key}"

    @property
    def name(self) -> str:
        return f"OpenRouter ({self.config.model})"

    def generate_text(self, messages: Sequence[LLMMessage], options: GenerationOptions | None = None) -> str:
        if not self.config.api_key:
            raise OpenRouterError(
                "API key not found.\n"
                "Set it in .commitgenrc.json:\n"
                '  "apiKey": "your-openrouter-api-key"\n'
                "Or set environment variable:\n"
                '  export OPENROUTER_API_KEY="your-openrouter-api-key"',
                ProviderErrorKind.AUTHENTICATION,
            )

        options = options or GenerationOptions()
        payload = {
            "model": options.model or self.config.model,
            "messages": [m.model_dump() for m in messages],
            "temperature": _pick(options.temperature, self.config.temperature, 0.7),
            "max_tokens": _pick(options.max_tokens, self.config.max_tokens, 500),
        }

        try:
            response = self.session.post(f"{self.base_url}/chat/completions", json=payload, timeout=self.timeout)
        except requests.Timeout:
            raise OpenRouterError(
                f"Request timed out after {self.timeout}s. The model may be slow or overloaded. "
                "Try again or use a different model.",
                ProviderErrorKind.TIMEOUT,
            )
        except requests.ConnectionError:
            raise OpenRouterError("Connection refused. Check your internet connection.", ProviderErrorKind.UNREACHABLE)

        if response.status_code == 401:
            raise OpenRouterError(
                "Authentication failed. Check your API key.\nGet an API key from: https://openrouter.ai/keys",
                ProviderErrorKind.AUTHENTICATION,
            )
        if response.status_code == 402:
            raise OpenRouterError("Insufficient credits. Add credits at: https://openrouter.ai/credits", ProviderErrorKind.QUOTA)
        if response.status_code == 429:
            raise OpenRouterError("Rate limit exceeded. Please try again later.", ProviderErrorKind.RATE_LIMIT)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise OpenRouterError(message or f"HTTP {response.status_code}: {response.reason}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content or not content.strip():
            raise OpenRouterError("Empty response from model", ProviderErrorKind.EMPTY_RESPONSE)

        return content.strip()

    def validate_config(self) -> bool:
        if not self.config.api_key:
            return False
        try:
            response = self.session.get(f"{self.base_url}/models", timeout=HEALTH_CHECK_TIMEOUT * 5)
            return response.ok
        except requests.RequestException:
            return False


class GeminiProvider(LLMProvider):
    """Google Gemini client. Requires GOOGLE_API_KEY or an apiKey in config."""

    def __init__(self, config: GeminiModelConfig, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.timeout = timeout
        self._client = None

    @property
    def name(self) -> str:
        return f"Gemini ({self.config.model})"

    def _get_client(self):
        if self._client is None:
            import google.genai as genai
            from google.genai import types

            self._client = genai.Client(
                api_key=self.config.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    def generate_text(self, messages: Sequence[LLMMessage], options: GenerationOptions | None = None) -> str:
        from google.genai import errors, types

        if not self.config.api_key:
            raise GeminiError(
                "GOOGLE_API_KEY not set. Please set it in your environment or config file.\n"
                "  export GOOGLE_API_KEY='your-api-key'",
                ProviderErrorKind.AUTHENTICATION,
            )

        options = options or GenerationOptions()
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
            for m in messages
            if m.role != "system"
        ]

        try:
            response = self._get_client().models.generate_content(
                model=options.model or self.config.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=system or None,
                    temperature=_pick(options.temperature, self.config.temperature, 0.7),
                    max_output_tokens=_pick(options.max_tokens, self.config.max_tokens, 500),
                ),
            )
        except errors.APIError as e:
            raise GeminiError(e.message or str(e), _gemini_error_kind(e.code))
        except Exception as e:
            if "timed out" in str(e).lower() or "timeout" in type(e).__name__.lower():
                raise GeminiError(f"Request timed out after {self.timeout}s.", ProviderErrorKind.TIMEOUT)
            raise GeminiError(f"Request failed: {e}", ProviderErrorKind.UNREACHABLE)

        content = response.text
        if not content or not content.strip():
            raise GeminiError("Empty response from model", ProviderErrorKind.EMPTY_RESPONSE)

        return content.strip()

    def validate_config(self) -> bool:
        if not self.config.api_key:
            return False
        try:
            self._get_client().models.get(model=self.config.model)
            return True
        except Exception as e:
            logger.debug("Gemini validation failed: %s", e)
            return False


def _gemini_error_kind(code: int | None) -> ProviderErrorKind:
    if code in (401, 403):
        return ProviderErrorKind.AUTHENTICATION
    if code == 404:
        return ProviderErrorKind.MODEL_NOT_FOUND
    if code == 429:
        return ProviderErrorKind.RATE_LIMIT
    if code in (408, 504):
        return ProviderErrorKind.TIMEOUT
    return ProviderErrorKind.OTHER


def _pick(*values):
    """First value that is not None."""
    return next(v for v in values if v is not None)


PROVIDERS: dict[str, type[LLMProvider]] = {
    "ollama": OllamaProvider,
    "openrouter": OpenRouterProvider,
    "gemini": GeminiProvider,
}


def create_provider(config: ModelConfig) -> LLMProvider:
    """Instantiate the provider matching a resolved model configuration.

    Raises:
        ConfigError: If the provider is unknown.
    """
    provider_class = PROVIDERS.get(config.provider)
    if provider_class is None:
        raise ConfigError(f"Unknown provider: {config.provider}")
    return provider_class(config)
