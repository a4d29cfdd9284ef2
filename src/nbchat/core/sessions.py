"""Open chat sessions and the UI area each one is shown in."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from nbchat.core.chat_model import ChatModel
from nbchat.core.handler import ChatModelHandler
from nbchat.core.presentation import ChatPresenter, InputToolbar
from nbchat.core.settings_model import SettingsModel
from nbchat.utils.errors import ChatNotFoundError, NotConfiguredError

logger = logging.getLogger(__name__)

Area = Literal["side", "main"]


class ChatSessionManager:
    """Tracks chats by name, each wrapped by a presenter for its area.

    Moving a chat between areas replaces only the presenter; the chat
    model, and therefore its identity, name and history, is kept.
    """

    def __init__(
        self,
        handler: ChatModelHandler,
        settings_model: SettingsModel,
        toolbar_factory: Callable[[], InputToolbar] | None = None,
    ):
        self._handler = handler
        self._settings_model = settings_model
        self._toolbar_factory = toolbar_factory
        self._sessions: dict[str, ChatPresenter] = {}

    def _unique_name(self, base: str) -> str:
        if base not in self._sessions:
            return base
        index = 2
        while f"{base}-{index}" in self._sessions:
            index += 1
        return f"{base}-{index}"

    def _present(self, model: ChatModel, area: Area) -> ChatPresenter:
        toolbar = self._toolbar_factory() if self._toolbar_factory else None
        return ChatPresenter(model, area=area, toolbar=toolbar)

    def open(
        self,
        name: str | None = None,
        area: Area = "side",
        provider: str | None = None,
    ) -> ChatPresenter:
        """Create a new chat.

        Raises:
            NotConfiguredError: If no provider is configured. The caller is
                expected to send the user to the AI settings.
        """
        provider_id = provider or self._settings_model.default_provider
        config = self._settings_model.get_provider(provider_id)
        if config is None:
            raise NotConfiguredError()

        chat_name = self._unique_name(
            name or config.model or self._settings_model.chat.default_name
        )
        model = self._handler.create_model(chat_name, provider_id)
        presenter = self._present(model, area)
        self._sessions[chat_name] = presenter
        return presenter

    def get(self, name: str) -> ChatPresenter:
        try:
            return self._sessions[name]
        except KeyError:
            raise ChatNotFoundError(name) from None

    def list(self) -> list[ChatPresenter]:
        return list(self._sessions.values())

    def move(self, name: str, area: Area) -> ChatPresenter:
        """Show a chat in another area, keeping the same chat model."""
        presenter = self.get(name)
        if presenter.area == area:
            return presenter
        model = presenter.model
        presenter.dispose()
        moved = self._present(model, area)
        self._sessions[name] = moved
        logger.info(f"Moved chat '{name}' to the {area} area")
        return moved

    def rename(self, name: str, new_name: str) -> ChatPresenter:
        presenter = self.get(name)
        if new_name == name:
            return presenter
        if new_name in self._sessions:
            raise ValueError(f"A chat named '{new_name}' already exists")
        presenter.model.name = new_name
        self._sessions = {
            (new_name if key == name else key): value for key, value in self._sessions.items()
        }
        return presenter

    def close(self, name: str) -> None:
        """Dispose the presenter, then the chat model and its agent manager."""
        presenter = self._sessions.pop(name, None)
        if presenter is None:
            raise ChatNotFoundError(name)
        presenter.dispose()
        presenter.model.dispose()
        logger.info(f"Closed chat '{name}'")

    def close_all(self) -> None:
        for name in list(self._sessions):
            self.close(name)
