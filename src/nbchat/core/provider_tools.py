"""Provider-defined built-in tools (web search, web fetch).

Decides which built-in tools an invocation may attach, based on the
provider's declared capabilities and the user's custom settings, and builds
their normalized configuration.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic_ai.builtin_tools import AbstractBuiltinTool, WebFetchTool, WebSearchTool

from nbchat.config import ProviderCustomSettings, WebFetchSettings, WebSearchSettings
from nbchat.core.domains import collect_domains
from nbchat.core.providers import ProviderInfo
from nbchat.utils.errors import UnsupportedImplementationError

logger = logging.getLogger(__name__)

WEB_SEARCH = "web_search"
WEB_FETCH = "web_fetch"

# Provider-mandated defaults, applied only when the user left a value unset.
ANTHROPIC_WEB_FETCH_DEFAULTS: Mapping[str, Any] = {
    "max_uses": 2,
    "max_content_tokens": 12000,
}
NO_DEFAULTS: Mapping[str, Any] = {}


class ProviderTool(BaseModel):
    """Descriptor of one provider-defined tool, ready to attach to a request."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    args: dict[str, Any]


ToolMap = dict[str, ProviderTool]


@dataclass(frozen=True)
class WebSearchOptions:
    """Fully resolved web search options; None means "not set"."""

    external_web_access: bool | None = None
    search_context_size: Literal["low", "medium", "high"] | None = None
    allowed_domains: tuple[str, ...] = ()
    blocked_domains: tuple[str, ...] = ()
    max_uses: int | None = None


@dataclass(frozen=True)
class WebFetchOptions:
    """Fully resolved web fetch options; None means "not set"."""

    max_uses: int | None = None
    max_content_tokens: int | None = None
    allowed_domains: tuple[str, ...] = ()
    blocked_domains: tuple[str, ...] = ()
    citations_enabled: bool | None = None


def resolve_web_search_options(
    settings: WebSearchSettings,
    defaults: Mapping[str, Any] = NO_DEFAULTS,
) -> WebSearchOptions:
    """Merge user web search settings over a default table."""
    return WebSearchOptions(
        external_web_access=_pick(settings.external_web_access, defaults, "external_web_access"),
        search_context_size=_pick(settings.search_context_size, defaults, "search_context_size"),
        allowed_domains=tuple(collect_domains(settings.allowed_domains)),
        blocked_domains=tuple(collect_domains(settings.blocked_domains)),
        max_uses=_pick(settings.max_uses, defaults, "max_uses"),
    )


def resolve_web_fetch_options(
    settings: WebFetchSettings,
    defaults: Mapping[str, Any] = NO_DEFAULTS,
) -> WebFetchOptions:
    """Merge user web fetch settings over a default table."""
    return WebFetchOptions(
        max_uses=_pick(settings.max_uses, defaults, "max_uses"),
        max_content_tokens=_pick(settings.max_content_tokens, defaults, "max_content_tokens"),
        allowed_domains=tuple(collect_domains(settings.allowed_domains)),
        blocked_domains=tuple(collect_domains(settings.blocked_domains)),
        citations_enabled=_pick(settings.citations_enabled, defaults, "citations_enabled"),
    )


def _pick(value: Any, defaults: Mapping[str, Any], key: str) -> Any:
    return value if value is not None else defaults.get(key)


def _compact(args: dict[str, Any]) -> dict[str, Any]:
    """Drop unset options so the provider applies its own behavior."""
    return {key: value for key, value in args.items() if value not in (None, [], ())}


def _openai_web_search(settings: WebSearchSettings) -> ProviderTool:
    options = resolve_web_search_options(settings)
    filters = {"allowed_domains": list(options.allowed_domains)} if options.allowed_domains else None
    return ProviderTool(
        id="openai.web_search",
        name=WEB_SEARCH,
        args=_compact(
            {
                "external_web_access": options.external_web_access,
                "search_context_size": options.search_context_size,
                "filters": filters,
            }
        ),
    )


def _anthropic_web_search(settings: WebSearchSettings) -> ProviderTool:
    options = resolve_web_search_options(settings)
    return ProviderTool(
        id="anthropic.web_search_20250305",
        name=WEB_SEARCH,
        args=_compact(
            {
                "max_uses": options.max_uses,
                "allowed_domains": list(options.allowed_domains),
                "blocked_domains": list(options.blocked_domains),
            }
        ),
    )


def _anthropic_web_fetch(settings: WebFetchSettings) -> ProviderTool:
    options = resolve_web_fetch_options(settings, ANTHROPIC_WEB_FETCH_DEFAULTS)
    citations = (
        {"enabled": options.citations_enabled}
        if options.citations_enabled is not None
        else None
    )
    return ProviderTool(
        id="anthropic.web_fetch_20250910",
        name=WEB_FETCH,
        args=_compact(
            {
                "max_uses": options.max_uses,
                "max_content_tokens": options.max_content_tokens,
                "allowed_domains": list(options.allowed_domains),
                "blocked_domains": list(options.blocked_domains),
                "citations": citations,
            }
        ),
    )


WEB_SEARCH_BUILDERS: dict[str, Callable[[WebSearchSettings], ProviderTool]] = {
    "openai": _openai_web_search,
    "anthropic": _anthropic_web_search,
}

WEB_FETCH_BUILDERS: dict[str, Callable[[WebFetchSettings], ProviderTool]] = {
    "anthropic": _anthropic_web_fetch,
}


def create_web_search_tool(implementation: str, settings: WebSearchSettings) -> ProviderTool:
    """Build the web search tool for a declared implementation variant.

    Raises:
        UnsupportedImplementationError: If no builder exists for the variant.
    """
    builder = WEB_SEARCH_BUILDERS.get(implementation)
    if builder is None:
        raise UnsupportedImplementationError("web search", implementation)
    return builder(settings)


def create_web_fetch_tool(implementation: str, settings: WebFetchSettings) -> ProviderTool:
    """Build the web fetch tool for a declared implementation variant.

    Raises:
        UnsupportedImplementationError: If no builder exists for the variant.
    """
    builder = WEB_FETCH_BUILDERS.get(implementation)
    if builder is None:
        raise UnsupportedImplementationError("web fetch", implementation)
    return builder(settings)


def create_provider_tools(
    provider_info: ProviderInfo | None,
    custom_settings: ProviderCustomSettings | None,
    has_function_tools: bool,
) -> ToolMap:
    """Create provider-defined tools from custom settings and provider capabilities.

    Web search is skipped when the provider requires that no function tools
    are attached and the invocation has some. Web fetch has no such rule.
    Ineligible tools are left out of the map entirely.

    Args:
        provider_info: The active provider, if any.
        custom_settings: The user's web tool settings for that provider.
        has_function_tools: Whether user function tools are attached.

    Returns:
        Mapping with at most the "web_search" and "web_fetch" keys.

    Raises:
        UnsupportedImplementationError: If an enabled tool's declared
            implementation has no builder.
    """
    tools: ToolMap = {}
    if custom_settings is None or provider_info is None or provider_info.tool_capabilities is None:
        return tools

    capabilities = provider_info.tool_capabilities
    web_search = custom_settings.web_search
    web_fetch = custom_settings.web_fetch

    search_capability = capabilities.web_search
    if web_search is not None and web_search.enabled is True and search_capability is not None:
        if not search_capability.requires_no_function_tools or not has_function_tools:
            tools[WEB_SEARCH] = create_web_search_tool(search_capability.implementation, web_search)
        else:
            logger.debug(
                f"Skipping web search for provider '{provider_info.id}': "
                "function tools are attached"
            )

    fetch_capability = capabilities.web_fetch
    if web_fetch is not None and web_fetch.enabled is True and fetch_capability is not None:
        tools[WEB_FETCH] = create_web_fetch_tool(fetch_capability.implementation, web_fetch)

    return tools


def to_builtin_tools(tools: ToolMap) -> list[AbstractBuiltinTool]:
    """Convert tool descriptors to pydantic-ai built-in tools.

    Options pydantic-ai has no field for are dropped with a debug log.
    """
    builtin: list[AbstractBuiltinTool] = []
    for name, tool in tools.items():
        args = dict(tool.args)
        if name == WEB_SEARCH:
            filters = args.pop("filters", None)
            if filters:
                args["allowed_domains"] = filters["allowed_domains"]
            dropped = args.pop("external_web_access", None)
            if dropped is not None:
                logger.debug(f"{tool.id}: external_web_access is not supported, ignoring")
            builtin.append(WebSearchTool(**args))
        elif name == WEB_FETCH:
            citations = args.pop("citations", None)
            if citations is not None:
                args["enable_citations"] = citations["enabled"]
            builtin.append(WebFetchTool(**args))
        else:
            logger.warning(f"Ignoring unknown provider tool '{name}' ({tool.id})")
    return builtin
