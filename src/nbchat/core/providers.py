"""Provider registry: capability records plus model factories per provider."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict
from pydantic_ai.exceptions import UserError
from pydantic_ai.models import Model

from nbchat.config import ProviderConfig
from nbchat.utils.errors import NotConfiguredError

logger = logging.getLogger(__name__)


class WebSearchCapability(BaseModel):
    """Provider support for native web search."""

    model_config = ConfigDict(frozen=True)

    implementation: str
    requires_no_function_tools: bool = False


class WebFetchCapability(BaseModel):
    """Provider support for native web fetch."""

    model_config = ConfigDict(frozen=True)

    implementation: str


class ProviderToolCapabilities(BaseModel):
    """Built-in tools a provider can attach, keyed by tool kind."""

    model_config = ConfigDict(frozen=True)

    web_search: WebSearchCapability | None = None
    web_fetch: WebFetchCapability | None = None


class ProviderInfo(BaseModel):
    """Identifies an LLM provider and what it can do."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    default_model: str
    description: str | None = None
    tool_capabilities: ProviderToolCapabilities | None = None


ModelFactory = Callable[[ProviderConfig], Model]


@dataclass(frozen=True)
class _Registration:
    info: ProviderInfo
    factory: ModelFactory


class ProviderRegistry:
    """Read-mostly lookup of providers by identifier.

    A new provider is added by registering its capability record together
    with a factory that builds a pydantic-ai model from a ProviderConfig.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, _Registration] = {}

    def register(self, info: ProviderInfo, factory: ModelFactory) -> None:
        """Register a provider; re-registering an id replaces it."""
        if info.id in self._registrations:
            logger.info(f"Replacing provider registration: {info.id}")
        self._registrations[info.id] = _Registration(info=info, factory=factory)
        logger.debug(f"Registered provider: {info.id}")

    def get(self, provider_id: str) -> ProviderInfo | None:
        registration = self._registrations.get(provider_id)
        return registration.info if registration else None

    def list(self) -> list[ProviderInfo]:
        return [registration.info for registration in self._registrations.values()]

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._registrations

    def create_model(self, config: ProviderConfig) -> Model:
        """Build the pydantic-ai model for a configured provider entry.

        Raises:
            NotConfiguredError: If the entry names an unregistered provider.
        """
        registration = self._registrations.get(config.provider)
        if registration is None:
            raise NotConfiguredError(
                f"Provider '{config.provider}' is not available. "
                "Please configure your AI settings first"
            )
        try:
            return registration.factory(config)
        except UserError as e:
            raise NotConfiguredError(f"Provider '{config.id}' is misconfigured: {e}") from e


def _api_key(config: ProviderConfig, env_var: str) -> str:
    api_key = config.api_key or os.environ.get(env_var)
    if not api_key:
        raise NotConfiguredError(
            f"Provider '{config.id}' has no API key. Please configure your AI settings first"
        )
    return api_key


def _openai_model(config: ProviderConfig) -> Model:
    from pydantic_ai.models.openai import OpenAIResponsesModel
    from pydantic_ai.providers.openai import OpenAIProvider

    provider = OpenAIProvider(
        base_url=config.base_url, api_key=_api_key(config, "OPENAI_API_KEY")
    )
    return OpenAIResponsesModel(config.model or OPENAI.default_model, provider=provider)


def _anthropic_model(config: ProviderConfig) -> Model:
    from pydantic_ai.models.anthropic import AnthropicModel
    from pydantic_ai.providers.anthropic import AnthropicProvider

    provider = AnthropicProvider(
        api_key=_api_key(config, "ANTHROPIC_API_KEY"), base_url=config.base_url
    )
    return AnthropicModel(config.model or ANTHROPIC.default_model, provider=provider)


def _openai_compatible_model(config: ProviderConfig) -> Model:
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if not config.base_url:
        raise NotConfiguredError(
            f"Provider '{config.id}' needs a base_url. Please configure your AI settings first"
        )
    provider = OpenAIProvider(base_url=config.base_url, api_key=config.api_key or "not-needed")
    return OpenAIChatModel(config.model or OPENAI_COMPATIBLE.default_model, provider=provider)


OPENAI = ProviderInfo(
    id="openai",
    name="OpenAI",
    default_model="gpt-4o",
    description="OpenAI Responses API",
    tool_capabilities=ProviderToolCapabilities(
        web_search=WebSearchCapability(implementation="openai"),
    ),
)

ANTHROPIC = ProviderInfo(
    id="anthropic",
    name="Anthropic",
    default_model="claude-sonnet-4-5",
    description="Anthropic Messages API",
    tool_capabilities=ProviderToolCapabilities(
        web_search=WebSearchCapability(implementation="anthropic"),
        web_fetch=WebFetchCapability(implementation="anthropic"),
    ),
)

OPENAI_COMPATIBLE = ProviderInfo(
    id="openai-compatible",
    name="OpenAI-compatible",
    default_model="qwen2.5:0.5b",
    description="Any OpenAI Chat Completions compatible server (Ollama, vLLM, ...)",
)


def create_default_registry() -> ProviderRegistry:
    """Create a registry with the built-in providers."""
    registry = ProviderRegistry()
    registry.register(OPENAI, _openai_model)
    registry.register(ANTHROPIC, _anthropic_model)
    registry.register(OPENAI_COMPATIBLE, _openai_compatible_model)
    return registry
