"""Configuration management for commitgen."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from commitgen.errors import ConfigError
from commitgen.models import CheckConfig


logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".commitgenrc.json", ".commitgenrc")

ACTIVE_MODEL_ENV = "COMMITGEN_ACTIVE_MODEL"
OPENROUTER_KEY_ENV = "OPENROUTER_API_KEY"
GOOGLE_KEY_ENV = "GOOGLE_API_KEY"

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1"


class _CamelModel(BaseModel):
    """Base for config sections stored with camelCase keys on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ModelSettings(_CamelModel):
    model: str = Field(min_length=1, description="Model identifier at the provider")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)


class OllamaModelConfig(_ModelSettings):
    """A model served by a local Ollama instance."""

    provider: Literal["ollama"] = "ollama"
    base_url: str = DEFAULT_OLLAMA_URL


class OpenRouterModelConfig(_ModelSettings):
    """A model reached through the OpenRouter API."""

    provider: Literal["openrouter"] = "openrouter"
    api_key: str | None = None
    base_url: str = DEFAULT_OPENROUTER_URL


class GeminiModelConfig(_ModelSettings):
    """A Google Gemini model reached through google-genai."""

    provider: Literal["gemini"] = "gemini"
    api_key: str | None = None


ModelConfig = Annotated[
    Union[OllamaModelConfig, OpenRouterModelConfig, GeminiModelConfig],
    Field(discriminator="provider"),
]

_model_config_adapter = TypeAdapter(ModelConfig)


def parse_model_config(data: dict[str, object]) -> ModelConfig:
    """Validate one models entry, choosing the variant by its provider.

    Raises:
        ConfigError: If the entry is invalid.
    """
    try:
        return _model_config_adapter.validate_python(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid model configuration:\n{e}")


API_KEY_ENV = {
    "openrouter": OPENROUTER_KEY_ENV,
    "gemini": GOOGLE_KEY_ENV,
}


class PromptsConfig(_CamelModel):
    """Which optional questions the wizard asks."""

    ask_push: bool = True
    ask_stage: bool = True
    show_checks: bool = True


class UIConfig(_CamelModel):
    """Presentation settings, fixed once loaded."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    theme: Literal["auto", "dark", "light"] = "auto"
    accent: Literal["cyan", "magenta", "green", "blue", "yellow"] = "cyan"
    use_gradients: bool = True
    banner_style: Literal["block", "ascii", "none"] = "block"
    unicode: bool = True


def default_checks() -> dict[str, CheckConfig]:
    return {
        "build": CheckConfig(enabled=True, command="npm run build", blocking=True, message="Building project..."),
        "lint": CheckConfig(enabled=False, command="npm run lint", blocking=False, message="Linting code..."),
        "test": CheckConfig(enabled=False, command="npm test", blocking=True, message="Running tests..."),
        "typecheck": CheckConfig(enabled=False, command="tsc --noEmit", blocking=False, message="Type checking..."),
    }


class CommitGenConfig(_CamelModel):
    """Application configuration."""

    active_model: str = Field(min_length=1, description="Key into models")
    models: dict[str, ModelConfig] = Field(description="Configured models by key")
    fallback_model: str | None = Field(default=None, description="Model used if the active one fails")
    temperature: float = 0.2
    max_tokens: int = 500
    language: str = "en"
    emoji: bool = False
    checks: dict[str, CheckConfig] = Field(default_factory=default_checks)
    prompts: PromptsConfig = Field(default_factory=PromptsConfig)
    ui: UIConfig = Field(default_factory=UIConfig)


def load_env_files(home: Path | None = None, cwd: Path | None = None) -> None:
    """Load KEY=value pairs from ~/.env, then ./.env.

    The home file never overrides existing variables; the project file does.
    """
    home = home or Path.home()
    cwd = cwd or Path.cwd()
    _load_env_file(home / ".env", override=False)
    if cwd != home:
        _load_env_file(cwd / ".env", override=True)


def _load_env_file(path: Path, override: bool) -> None:
    if not path.is_file():
        return
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip().removeprefix("export ").strip()
                    value = value.strip().strip('"').strip("'")
                    if key and (override or key not in os.environ):
                        os.environ[key] = value
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping unreadable env file %s: %s", path, e)


def global_config_path(home: Path | None = None) -> Path:
    return (home or Path.home()) / CONFIG_FILENAMES[0]


def local_config_path(cwd: Path | None = None) -> Path:
    return (cwd or Path.cwd()) / CONFIG_FILENAMES[0]


def find_config_path(cwd: Path | None = None, home: Path | None = None) -> Path:
    """Locate the config file: project directory first, then home.

    Returns the global default location when neither exists.
    """
    for base in (cwd or Path.cwd(), home or Path.home()):
        for name in CONFIG_FILENAMES:
            candidate = base / name
            if candidate.is_file():
                return candidate
    return global_config_path(home)


def load_config(path: Path | None = None) -> CommitGenConfig:
    """Load and validate the JSON configuration.

    Priority: environment variables > config file > defaults

    Raises:
        ConfigError: If the file is missing, unreadable or invalid, or the
            active model is not configured.
    """
    load_env_files()
    config_path = path or find_config_path()

    if not config_path.is_file():
        raise ConfigError(
            f"Configuration file not found at {config_path}\n\n"
            f"Create a global config:\n  {global_config_path()}\n"
            f"or a project-specific one:\n  {local_config_path()}\n\n"
            "Run 'cgen init' to create one."
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to parse {config_path}: {e}")

    if not isinstance(data, dict) or "models" not in data or "activeModel" not in data:
        raise ConfigError(
            'Invalid configuration: "models" and "activeModel" are required.\n'
            "See the documentation for the configuration format."
        )

    # Per-check overrides merge onto the defaults instead of replacing them
    checks = {name: check.model_dump() for name, check in default_checks().items()}
    for name, check in (data.get("checks") or {}).items():
        checks[name] = {**checks.get(name, {}), **check}
    data["checks"] = checks

    if active := os.getenv(ACTIVE_MODEL_ENV):
        data["activeModel"] = active

    try:
        config = CommitGenConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}:\n{e}")

    if config.active_model not in config.models:
        raise ConfigError(
            f'Active model "{config.active_model}" not found in models configuration.\n'
            f"Available models: {', '.join(config.models)}"
        )

    return config


def resolve_model(config: CommitGenConfig, key: str) -> ModelConfig:
    """Model settings with env credentials and global defaults applied.

    Raises:
        ConfigError: If no model is configured under key.
    """
    model = config.models.get(key)
    if model is None:
        raise ConfigError(f'Model "{key}" not found in configuration')

    update: dict[str, object] = {
        "temperature": model.temperature if model.temperature is not None else config.temperature,
        "max_tokens": model.max_tokens if model.max_tokens is not None else config.max_tokens,
    }
    env_name = API_KEY_ENV.get(model.provider)
    if env_name and (env_key := os.getenv(env_name)):
        update["api_key"] = env_key

    return model.model_copy(update=update)


def get_active_model(config: CommitGenConfig) -> ModelConfig:
    return resolve_model(config, config.active_model)


def get_fallback_model(config: CommitGenConfig) -> ModelConfig | None:
    """The fallback model, or None when unset, identical to the active one, or unknown."""
    key = config.fallback_model
    if not key or key == config.active_model:
        return None
    if key not in config.models:
        logger.warning('Fallback model "%s" not found in configuration, ignoring', key)
        return None
    return resolve_model(config, key)


def validate_config(config: CommitGenConfig) -> list[str]:
    """Collect human-readable problems; an empty list means valid."""
    errors: list[str] = []

    if config.active_model not in config.models:
        errors.append(f'activeModel "{config.active_model}" not found in models configuration')
        errors.append(f"Available models: {', '.join(config.models)}")
        return errors

    for key in config.models:
        model = resolve_model(config, key)
        if model.provider == "ollama" and not model.base_url:
            errors.append(f"models.{key}: ollama provider requires baseUrl")
        if model.provider in API_KEY_ENV and not model.api_key:
            errors.append(
                f"models.{key}: {model.provider} provider requires apiKey "
                f"(set in model config or {API_KEY_ENV[model.provider]} env var)"
            )

    return errors


def save_config(config: CommitGenConfig, path: Path) -> None:
    """Write the configuration as pretty-printed camelCase JSON."""
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def create_default_config(
    provider: str,
    model: str,
    base_url: str | None = None,
    api_key: str | None = None,
) -> CommitGenConfig:
    """Starter configuration with one model; every check disabled."""
    if provider == "ollama":
        key = "local"
        model_config: dict[str, object] = {"provider": provider, "model": model, "base_url": base_url or DEFAULT_OLLAMA_URL}
    else:
        key = f"cloud-{provider}"
        model_config = {"provider": provider, "model": model, "api_key": api_key or None}

    checks = default_checks()
    for check in checks.values():
        check.enabled = False
    checks["build"].timeout = 300000
    checks["test"].timeout = 300000
    checks["lint"].timeout = 60000
    checks["typecheck"].timeout = 60000
    checks["lint"].autofix = "npm run lint:fix"

    return CommitGenConfig.model_validate(
        {"active_model": key, "models": {key: model_config}, "checks": checks}
    )
