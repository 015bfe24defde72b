"""LLM provider registry: known provider types, their defaults, and validation."""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import AnyUrl, BaseModel, TypeAdapter, ValidationError, model_validator


class ProviderType(str, Enum):
    """Supported provider types; the type decides the API format."""

    OPENROUTER = "openrouter"


DEFAULT_PROVIDER_BASE_URLS: dict[ProviderType, str] = {
    ProviderType.OPENROUTER: "https://openrouter.ai/api/v1",
}

PROVIDER_DISPLAY_NAMES: dict[ProviderType, str] = {
    ProviderType.OPENROUTER: "OpenRouter",
}

_URL = TypeAdapter(AnyUrl)


class ProviderConfig(BaseModel):
    """A configured OpenAI-compatible provider."""

    name: str
    display_name: str
    type: ProviderType
    api_key: str
    base_url: str | None = None
    is_default: bool = False
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name"):
            try:
                provider_type = ProviderType(data.get("type"))
            except ValueError:
                return data
            return {**data, "display_name": PROVIDER_DISPLAY_NAMES[provider_type]}
        return data


def validate_provider_config(config: Mapping[str, Any]) -> str | None:
    """Return the first problem with a (possibly partial) provider config, or ``None``."""
    name = config.get("name")
    if not isinstance(name, str) or not name.strip():
        return "Provider name is required"

    provider_type = config.get("type")
    if provider_type not in [t.value for t in ProviderType]:
        return "Valid provider type is required"

    api_key = config.get("api_key")
    if not isinstance(api_key, str) or not api_key.strip():
        return "API key is required"

    base_url = config.get("base_url")
    if base_url:
        try:
            _URL.validate_python(base_url)
        except ValidationError:
            return "Base URL must be a valid URL"

    return None


def create_default_provider_config(
    provider_type: ProviderType,
    name: str,
    api_key: str,
    base_url: str | None = None,
) -> ProviderConfig:
    """Build a new, enabled, non-default provider config with trimmed inputs."""
    return ProviderConfig(
        name=name.strip(),
        display_name=PROVIDER_DISPLAY_NAMES[provider_type],
        type=provider_type,
        api_key=api_key.strip(),
        base_url=(base_url or "").strip() or DEFAULT_PROVIDER_BASE_URLS[provider_type],
    )


def provider_base_url(config: ProviderConfig) -> str:
    """The base URL to call for *config*."""
    return config.base_url or DEFAULT_PROVIDER_BASE_URLS[config.type]
