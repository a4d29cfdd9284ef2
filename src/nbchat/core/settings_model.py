"""Runtime view over the configured providers and assistant settings."""

import logging

from nbchat.config import (
    ChatSettings,
    CompletionSettings,
    ProviderConfig,
    ProviderCustomSettings,
    Settings,
)
from nbchat.core.signals import Signal

logger = logging.getLogger(__name__)


class SettingsModel:
    """Settings Model read by the core on every invocation.

    The core only reads it. The host (HTTP layer) may add or remove
    provider entries at runtime; `changed` fires after each change.
    """

    def __init__(self, settings: Settings):
        self._providers: dict[str, ProviderConfig] = {p.id: p for p in settings.providers}
        self._default_provider = settings.default_provider
        self._chat = settings.chat
        self._completion = settings.completion
        self.changed: Signal[str] = Signal(self)

    @property
    def chat(self) -> ChatSettings:
        return self._chat

    @property
    def completion(self) -> CompletionSettings:
        return self._completion

    @property
    def providers(self) -> list[ProviderConfig]:
        return list(self._providers.values())

    @property
    def default_provider(self) -> str | None:
        """Id of the default provider, or None when nothing is configured."""
        if self._default_provider in self._providers:
            return self._default_provider
        return next(iter(self._providers), None)

    def get_provider(self, provider_id: str | None) -> ProviderConfig | None:
        if provider_id is None:
            return None
        return self._providers.get(provider_id)

    def custom_settings(self, provider_id: str) -> ProviderCustomSettings | None:
        provider = self._providers.get(provider_id)
        return provider.custom_settings if provider else None

    def add_provider(self, provider: ProviderConfig) -> None:
        self._providers[provider.id] = provider
        logger.info(f"Provider configured: {provider.id} ({provider.provider})")
        self.changed.emit(provider.id)

    def remove_provider(self, provider_id: str) -> bool:
        """Remove a provider entry; returns False if it was not configured."""
        if self._providers.pop(provider_id, None) is None:
            return False
        logger.info(f"Provider removed: {provider_id}")
        self.changed.emit(provider_id)
        return True
