"""Provider configuration endpoint handlers."""

import logging

from fastapi import APIRouter, HTTPException, Response

from nbchat.api.deps import Services, ServicesDep
from nbchat.config import ProviderConfig
from nbchat.core.provider_tools import WEB_FETCH, WEB_SEARCH, create_provider_tools
from nbchat.models.response import ProviderEntry, ProvidersResponse, ProviderToolInfo
from nbchat.utils.errors import UnsupportedImplementationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _provider_entry(config: ProviderConfig, services: Services) -> ProviderEntry:
    info = services.provider_registry.get(config.provider)
    has_function_tools = (
        services.settings_model.chat.enable_function_tools and len(services.tool_registry) > 0
    )
    try:
        tools = create_provider_tools(info, config.custom_settings, has_function_tools)
    except UnsupportedImplementationError as e:
        logger.warning(f"Provider '{config.id}': {e}")
        tools = {}

    return ProviderEntry(
        id=config.id,
        provider=config.provider,
        name=info.name if info else config.provider,
        model=config.model or (info.default_model if info else ""),
        tools=ProviderToolInfo(web_search=WEB_SEARCH in tools, web_fetch=WEB_FETCH in tools),
        default=config.id == services.settings_model.default_provider,
    )


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(services: ServicesDep) -> ProvidersResponse:
    """List configured providers and the built-in tools each would attach."""
    providers = [_provider_entry(config, services) for config in services.settings_model.providers]

    logger.debug(f"Returning {len(providers)} providers")

    return ProvidersResponse(providers=providers)


@router.put("/providers/{provider_id}", response_model=ProviderEntry)
async def configure_provider(
    provider_id: str,
    config: ProviderConfig,
    services: ServicesDep,
) -> ProviderEntry:
    """Add or replace a provider entry.

    Open chats pick the change up on their next turn.
    """
    if config.id != provider_id:
        raise HTTPException(status_code=400, detail="Provider id does not match the path")
    if config.provider not in services.provider_registry:
        raise HTTPException(status_code=400, detail=f"Unknown provider type: '{config.provider}'")
    services.settings_model.add_provider(config)
    return _provider_entry(config, services)


@router.delete("/providers/{provider_id}", status_code=204)
async def remove_provider(provider_id: str, services: ServicesDep) -> Response:
    """Remove a provider entry.

    Chats bound to it answer their next message with the not-configured reply.
    """
    if not services.settings_model.remove_provider(provider_id):
        raise HTTPException(status_code=404, detail=f"Provider not found: '{provider_id}'")
    return Response(status_code=204)
