"""Agent manager: one provider connection, tool binding and usage per chat."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

from pydantic_ai import (
    Agent,
    AgentRunResultEvent,
    FunctionToolCallEvent,
    FunctionToolResultEvent,
    PartDeltaEvent,
    PartStartEvent,
    TextPartDelta,
)
from pydantic_ai.messages import ModelMessage, TextPart
from pydantic_ai.models import Model

from nbchat.config import ProviderConfig
from nbchat.core.provider_tools import ToolMap, create_provider_tools, to_builtin_tools
from nbchat.core.providers import ProviderInfo, ProviderRegistry
from nbchat.core.settings_model import SettingsModel
from nbchat.core.signals import Signal
from nbchat.core.token_usage import TokenUsage
from nbchat.core.tool_registry import ToolRegistry
from nbchat.models.events import (
    TextDeltaEvent,
    ToolInputAvailableEvent,
    ToolOutputAvailableEvent,
)
from nbchat.utils.errors import NotConfiguredError

logger = logging.getLogger(__name__)

AgentEvent = TextDeltaEvent | ToolInputAvailableEvent | ToolOutputAvailableEvent


class AgentManager:
    """Owns the provider connection, attached tools and token usage of a chat.

    The active provider is resolved from the settings model on every turn,
    so removing a provider mid-session surfaces as NotConfiguredError on the
    next turn instead of a stale connection.
    """

    def __init__(
        self,
        settings_model: SettingsModel,
        provider_registry: ProviderRegistry,
        tool_registry: ToolRegistry | None = None,
        active_provider: str | None = None,
        token_usage: TokenUsage | None = None,
    ):
        self._settings_model = settings_model
        self._provider_registry = provider_registry
        self._tool_registry = tool_registry
        self._active_provider = active_provider
        self.token_usage = token_usage if token_usage is not None else TokenUsage()
        self.token_usage_changed: Signal[dict[str, int]] = Signal(self)
        self._history: list[ModelMessage] = []
        self._model: tuple[ProviderConfig, Model] | None = None
        self._stop_requested = False
        self._disposed = False

    @property
    def active_provider(self) -> str | None:
        """Configured provider id, falling back to the settings default."""
        return self._active_provider or self._settings_model.default_provider

    @active_provider.setter
    def active_provider(self, provider_id: str | None) -> None:
        self._active_provider = provider_id
        self._model = None

    @property
    def history(self) -> list[ModelMessage]:
        return list(self._history)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def resolve_provider(self) -> tuple[ProviderConfig, ProviderInfo]:
        """Look up the active provider entry and its registry record.

        Raises:
            NotConfiguredError: If the provider is missing or unregistered.
        """
        config = self._settings_model.get_provider(self.active_provider)
        if config is None:
            raise NotConfiguredError()
        info = self._provider_registry.get(config.provider)
        if info is None:
            raise NotConfiguredError()
        return config, info

    def function_tools(self) -> list[Any]:
        if self._tool_registry is None or not self._settings_model.chat.enable_function_tools:
            return []
        return self._tool_registry.tools()

    def provider_tools(self) -> ToolMap:
        """Built-in tools for the next invocation on the active provider."""
        config, info = self.resolve_provider()
        return create_provider_tools(info, config.custom_settings, bool(self.function_tools()))

    def _get_model(self, config: ProviderConfig) -> Model:
        if self._model is not None and self._model[0] == config:
            return self._model[1]
        model = self._provider_registry.create_model(config)
        self._model = (config, model)
        logger.info(f"Connected provider '{config.id}' ({config.provider})")
        return model

    def create_agent(self) -> Agent:
        """Assemble a pydantic-ai agent for one turn.

        Raises:
            NotConfiguredError: If no usable provider is configured.
            UnsupportedImplementationError: If an enabled built-in tool
                cannot be built for the provider.
        """
        if self._disposed:
            raise RuntimeError("Agent manager has been disposed")

        config, info = self.resolve_provider()
        function_tools = self.function_tools()
        provider_tools = create_provider_tools(
            info, config.custom_settings, has_function_tools=bool(function_tools)
        )
        if provider_tools:
            logger.debug(f"Attaching provider tools: {', '.join(provider_tools)}")

        return Agent(
            self._get_model(config),
            system_prompt=self._settings_model.chat.system_prompt,
            tools=function_tools,
            builtin_tools=to_builtin_tools(provider_tools),
        )

    async def stream(self, prompt: str, text_id: str = "text-1") -> AsyncIterator[AgentEvent]:
        """Run one turn, yielding text and function-tool events as they occur.

        History and token usage are committed only when the run completes
        without a stop request; a stopped turn's result is discarded.

        Args:
            prompt: The user's message.
            text_id: Id used for the text block events.

        Yields:
            TextDeltaEvent, ToolInputAvailableEvent and ToolOutputAvailableEvent.
        """
        self._stop_requested = False
        agent = self.create_agent()
        emitted_tool_calls: set[str] = set()

        events = agent.run_stream_events(prompt, message_history=self._history or None)
        async with aclosing(events):
            async for event in events:
                if self._stop_requested:
                    logger.info("Turn stopped, discarding the remaining output")
                    return

                if isinstance(event, PartStartEvent):
                    if isinstance(event.part, TextPart) and event.part.content:
                        yield TextDeltaEvent(id=text_id, delta=event.part.content)

                elif isinstance(event, PartDeltaEvent):
                    if isinstance(event.delta, TextPartDelta) and event.delta.content_delta:
                        yield TextDeltaEvent(id=text_id, delta=event.delta.content_delta)

                elif isinstance(event, FunctionToolCallEvent):
                    tool_call_id = event.part.tool_call_id
                    if tool_call_id in emitted_tool_calls:
                        logger.debug(f"Duplicate tool call {tool_call_id}, skipping")
                        continue
                    emitted_tool_calls.add(tool_call_id)

                    yield ToolInputAvailableEvent(
                        toolCallId=tool_call_id,
                        toolName=event.part.tool_name,
                        input=event.part.args_as_dict(),
                    )

                elif isinstance(event, FunctionToolResultEvent):
                    yield ToolOutputAvailableEvent(
                        toolCallId=event.tool_call_id,
                        output=_tool_output(event.part.content),
                    )

                elif isinstance(event, AgentRunResultEvent):
                    self._history = event.result.all_messages()
                    usage = event.result.usage
                    self.token_usage.add(usage.input_tokens, usage.output_tokens)
                    self.token_usage_changed.emit(self.token_usage.snapshot())

    def stop(self) -> None:
        """Request cooperative cancellation of the in-flight turn."""
        self._stop_requested = True

    def clear(self) -> None:
        """Forget the conversation and reset token usage."""
        self._history = []
        self.token_usage.reset()
        self.token_usage_changed.emit(self.token_usage.snapshot())

    def dispose(self) -> None:
        """Release the model handle and all listeners."""
        if self._disposed:
            return
        self._disposed = True
        self._stop_requested = True
        self._model = None
        self._history = []
        self.token_usage_changed.disconnect_all()


def _tool_output(content: Any) -> Any:
    if content is None:
        return {"result": None}
    if isinstance(content, dict):
        return content
    if isinstance(content, str):
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            return {"result": content}
    return {"result": str(content)}


class AgentManagerFactory:
    """Creates agent managers bound to the shared registries and settings."""

    def __init__(
        self,
        settings_model: SettingsModel,
        provider_registry: ProviderRegistry,
        tool_registry: ToolRegistry | None = None,
    ):
        self.settings_model = settings_model
        self.provider_registry = provider_registry
        self.tool_registry = tool_registry

    def create_agent(
        self,
        active_provider: str | None = None,
        token_usage: TokenUsage | None = None,
    ) -> AgentManager:
        return AgentManager(
            settings_model=self.settings_model,
            provider_registry=self.provider_registry,
            tool_registry=self.tool_registry,
            active_provider=active_provider,
            token_usage=token_usage,
        )
