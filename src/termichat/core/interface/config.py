"""Generator configuration: backend endpoint, model name, sampling defaults.

Configuration is built once at process start (from the environment or a YAML
settings file) and passed into the generator; nothing below reads ambient
environment state on its own.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from termichat.core.interface.errors import ConfigError
from termichat.core.interface.providers import ProviderConfig, provider_base_url

_ENV_PREFIX = "CUSTOM_LLM_"


class GeneratorConfig(BaseModel):
    """Connection and sampling settings for an OpenAI-compatible backend."""

    model: str
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.0
    max_tokens: int = 8192
    top_p: float = 1.0
    include_usage: bool = True
    token_counter: Literal["heuristic", "tiktoken"] = "heuristic"

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "GeneratorConfig":
        """Build a config from ``CUSTOM_LLM_*`` variables in *environ*.

        Empty variables fall back to the defaults; the model name is required.
        """
        fields = {
            "api_key": "API_KEY",
            "base_url": "BASE_URL",
            "model": "MODEL_NAME",
            "temperature": "TEMPERATURE",
            "max_tokens": "MAX_TOKENS",
            "top_p": "TOP_P",
        }
        data: dict[str, Any] = {}
        for field, suffix in fields.items():
            value = environ.get(_ENV_PREFIX + suffix)
            if value:
                data[field] = value
        if "model" not in data:
            raise ConfigError(f"{_ENV_PREFIX}MODEL_NAME is required")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


class Settings(BaseModel):
    """Top-level settings file: generator defaults plus named providers."""

    generator: GeneratorConfig
    providers: dict[str, ProviderConfig] = Field(default_factory=lambda: dict[str, ProviderConfig]())
    default_provider: str | None = None

    @field_validator("providers", mode="before")
    @classmethod
    def _name_from_key(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            key: {"name": key, **entry} if isinstance(entry, dict) else entry
            for key, entry in value.items()
        }

    def effective_generator(self) -> GeneratorConfig:
        """The generator config with endpoint and key taken from the default provider.

        Values set explicitly on ``generator`` win.
        """
        if not self.default_provider:
            return self.generator
        provider = self.providers.get(self.default_provider)
        if provider is None:
            msg = f"Default provider not configured: {self.default_provider}"
            raise ConfigError(msg)
        if not provider.enabled:
            msg = f"Default provider is disabled: {self.default_provider}"
            raise ConfigError(msg)
        return self.generator.model_copy(
            update={
                "base_url": self.generator.base_url or provider_base_url(provider),
                "api_key": self.generator.api_key or provider.api_key,
            }
        )


def read_settings_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML settings file into a mapping, expanding ``${VAR}`` references first.

    Raises:
        ConfigError: On unreadable files, YAML errors, or a non-mapping document.
    """
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {p}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Settings YAML must be a mapping")
    return data


def load_settings(path: str | Path) -> Settings:
    """Load and validate a YAML settings file.

    Raises:
        ConfigError: On unreadable files, YAML errors, or validation failures.
    """
    data = read_settings_file(path)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
