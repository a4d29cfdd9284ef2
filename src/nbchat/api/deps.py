"""Dependency injection for API handlers."""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from nbchat.config import Settings
from nbchat.core.agent_manager import AgentManagerFactory
from nbchat.core.handler import ChatModelHandler
from nbchat.core.providers import ProviderRegistry, create_default_registry
from nbchat.core.sessions import ChatSessionManager
from nbchat.core.settings_model import SettingsModel
from nbchat.core.tool_registry import ToolRegistry


@dataclass
class Services:
    """Long-lived collaborators shared by all requests of one app."""

    settings: Settings
    settings_model: SettingsModel
    provider_registry: ProviderRegistry
    tool_registry: ToolRegistry
    sessions: ChatSessionManager


def build_services(
    settings: Settings,
    provider_registry: ProviderRegistry | None = None,
    tool_registry: ToolRegistry | None = None,
) -> Services:
    """Wire the registries, settings model and session manager."""
    settings_model = SettingsModel(settings)
    provider_registry = provider_registry or create_default_registry()
    tool_registry = tool_registry if tool_registry is not None else ToolRegistry()
    handler = ChatModelHandler(
        agent_manager_factory=AgentManagerFactory(
            settings_model=settings_model,
            provider_registry=provider_registry,
            tool_registry=tool_registry,
        ),
        settings_model=settings_model,
    )
    return Services(
        settings=settings,
        settings_model=settings_model,
        provider_registry=provider_registry,
        tool_registry=tool_registry,
        sessions=ChatSessionManager(handler, settings_model),
    )


def get_services(request: Request) -> Services:
    """Services attached to the application by create_app()."""
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]
