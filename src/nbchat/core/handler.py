"""Chat model handler: wires agent managers and chat models together."""

import logging
from collections.abc import Callable
from typing import Any

from nbchat.core.agent_manager import AgentManagerFactory
from nbchat.core.chat_model import ChatModel
from nbchat.core.settings_model import SettingsModel
from nbchat.core.token_usage import TokenUsage
from nbchat.models.chat import USER, ActiveCellRef

logger = logging.getLogger(__name__)


class ChatModelHandler:
    """Creates fully wired chat models."""

    def __init__(
        self,
        agent_manager_factory: AgentManagerFactory,
        settings_model: SettingsModel,
        document_manager: Any = None,
        active_cell: ActiveCellRef | None = None,
        trans: Callable[[str], str] | None = None,
    ):
        self._agent_manager_factory = agent_manager_factory
        self._settings_model = settings_model
        self._document_manager = document_manager
        self._active_cell = active_cell
        self._trans = trans

    @property
    def active_cell(self) -> ActiveCellRef | None:
        """Relation to the active cell handed to newly created chats."""
        return self._active_cell

    @active_cell.setter
    def active_cell(self, value: ActiveCellRef | None) -> None:
        self._active_cell = value

    def create_model(
        self,
        name: str,
        active_provider: str | None,
        token_usage: TokenUsage | None = None,
    ) -> ChatModel:
        """Create a chat model and its agent manager.

        Args:
            name: Display name of the chat.
            active_provider: Configured provider id the chat talks to.
            token_usage: Optional usage record to continue counting into.

        Returns:
            The new chat model, owning its agent manager.
        """
        # The agent manager must exist before the chat model that uses it.
        agent_manager = self._agent_manager_factory.create_agent(
            active_provider=active_provider,
            token_usage=token_usage,
        )

        model = ChatModel(
            user=USER,
            settings_model=self._settings_model,
            agent_manager=agent_manager,
            active_cell=self._active_cell,
            document_manager=self._document_manager,
            trans=self._trans,
        )
        model.name = name

        logger.info(f"Created chat '{name}' (provider={agent_manager.active_provider})")
        return model
