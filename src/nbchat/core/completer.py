"""Inline completion adapter over a single chat-capable backend."""

import logging

from pydantic import BaseModel

from nbchat.config import COMPLETION_SYSTEM_PROMPT
from nbchat.core.backend import ModelBackend, PromptMessage, PydanticAIBackend
from nbchat.core.providers import ProviderRegistry
from nbchat.core.settings_model import SettingsModel
from nbchat.utils.errors import NotConfiguredError

logger = logging.getLogger(__name__)


class CompletionItem(BaseModel):
    """One inline completion suggestion."""

    insertText: str
    filterText: str | None = None


class Completer:
    """Produces inline completion suggestions, independent of the chat agent.

    Completion is best-effort: backend failures are logged and yield no
    suggestions instead of raising into the editor.
    """

    def __init__(self, backend: ModelBackend, prompt: str = COMPLETION_SYSTEM_PROMPT):
        self._backend = backend
        self._prompt = prompt

    @property
    def backend(self) -> ModelBackend:
        return self._backend

    @property
    def prompt(self) -> str:
        """The system instruction sent with every completion request."""
        return self._prompt

    @prompt.setter
    def prompt(self, value: str) -> None:
        self._prompt = value

    async def fetch(self, text: str, offset: int) -> list[CompletionItem]:
        """Suggest text to insert at `offset`.

        Args:
            text: Full text of the editor (cell) content.
            offset: Cursor offset in `text`; only the prefix is sent.

        Returns:
            Completion items, empty on any failure.
        """
        prompt = text[:offset]
        messages = [
            PromptMessage(role="system", content=self._prompt),
            PromptMessage(role="user", content=prompt),
        ]

        try:
            reply = await self._backend.invoke(messages)
            if isinstance(reply.content, str):
                return [CompletionItem(insertText=reply.content)]
            return [
                CompletionItem(insertText=block.text or "", filterText="")
                for block in reply.content
                if block.type == "text"
            ]
        except Exception as e:
            logger.error(f"Error fetching completions: {type(e).__name__}: {e}")
            return []

    @classmethod
    def from_settings(
        cls,
        settings_model: SettingsModel,
        provider_registry: ProviderRegistry,
    ) -> "Completer":
        """Build a completer for the configured completion provider.

        Raises:
            NotConfiguredError: If no provider is configured for completion.
        """
        completion = settings_model.completion
        provider_id = completion.provider or settings_model.default_provider
        config = settings_model.get_provider(provider_id)
        if config is None:
            raise NotConfiguredError()

        model = provider_registry.create_model(config)
        return cls(
            PydanticAIBackend(model, max_retries=completion.max_retries),
            prompt=completion.system_prompt,
        )
