"""Chat model: one conversation bound to one agent manager."""

from __future__ import annotations

import asyncio
import gettext
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Any

from nbchat.core.agent_manager import AgentManager
from nbchat.core.commands import CLEAR, parse_command
from nbchat.core.settings_model import SettingsModel
from nbchat.core.signals import Signal
from nbchat.models.chat import AI_ASSISTANT, ActiveCellRef, ChatMessage, ChatUser, Writer
from nbchat.models.events import (
    ErrorEvent,
    FinishEvent,
    StartEvent,
    StreamEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    TokenUsageEvent,
)
from nbchat.utils.errors import (
    ConfigurationError,
    classify_exception,
    get_user_message,
    log_error,
    truncate_error,
)

logger = logging.getLogger(__name__)


class ChatModel:
    """A single conversation.

    Owns exactly one AgentManager, which must already be initialized when
    the chat model is built. The writer set holds the assistant exactly
    while a turn is generating; `writers_changed` fires only on change.
    """

    def __init__(
        self,
        user: ChatUser,
        settings_model: SettingsModel,
        agent_manager: AgentManager,
        active_cell: ActiveCellRef | None = None,
        document_manager: Any = None,
        trans: Callable[[str], str] | None = None,
    ):
        self.id = str(uuid.uuid4())
        self.user = user
        self.settings_model = settings_model
        self.agent_manager = agent_manager
        self.active_cell = active_cell
        self.document_manager = document_manager
        self.trans = trans or gettext.NullTranslations().gettext
        self._name = ""
        self._messages: list[ChatMessage] = []
        self._writers: list[Writer] = []
        self._lock = asyncio.Lock()
        self._stop_requested = False
        self._disposed = False
        self.writers_changed: Signal[list[Writer]] = Signal(self)
        self.token_usage_changed = agent_manager.token_usage_changed

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def writers(self) -> list[Writer]:
        return list(self._writers)

    @property
    def is_generating(self) -> bool:
        return any(writer.user == AI_ASSISTANT for writer in self._writers)

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _set_writers(self, writers: list[Writer]) -> None:
        if writers == self._writers:
            return
        self._writers = writers
        self.writers_changed.emit(list(writers))

    def clear_messages(self) -> None:
        """Empty the transcript and reset the agent's history and usage."""
        self._messages.clear()
        self.agent_manager.clear()
        logger.info(f"Chat '{self._name}' cleared")

    def stop_streaming(self) -> None:
        """Stop the current turn; its remaining output is discarded."""
        self._stop_requested = True
        self.agent_manager.stop()
        self._set_writers([])

    async def send_message(self, body: str) -> AsyncIterator[StreamEvent]:
        """Handle one user message and stream the turn's events.

        Turns are serialized per chat. Failures never escape: they end the
        turn with an assistant error message and an ErrorEvent, and the
        writer set always returns to idle.
        """
        if self._disposed:
            raise RuntimeError(f"Chat '{self._name}' has been disposed")

        async with self._lock:
            if parse_command(body) == CLEAR:
                self.clear_messages()
                yield StartEvent()
                yield FinishEvent(finishReason="stop")
                return

            self._stop_requested = False
            self._messages.append(ChatMessage(sender=self.user, body=body))
            reply = ChatMessage(sender=AI_ASSISTANT)
            self._messages.append(reply)
            text_id = f"text-{reply.id[:8]}"
            text_started = False
            failure: ErrorEvent | None = None

            self._set_writers([Writer(user=AI_ASSISTANT, message_id=reply.id)])
            try:
                yield StartEvent(messageId=reply.id)
                async with aclosing(self._stream(body, text_id)) as events:
                    async for event in events:
                        if isinstance(event, TextDeltaEvent):
                            if not text_started:
                                yield TextStartEvent(id=text_id)
                                text_started = True
                            reply.body += event.delta
                        elif text_started:
                            yield TextEndEvent(id=text_id)
                            text_started = False
                        yield event
            except ConfigurationError as e:
                if self._stop_requested:
                    logger.debug(f"Chat '{self._name}' failed after stop, discarding: {e}")
                else:
                    logger.warning(f"Chat '{self._name}' is not usable: {e}")
                    failure = self._fail(reply, self.trans(str(e)))
            except Exception as e:
                if self._stop_requested:
                    logger.debug(f"Chat '{self._name}' failed after stop, discarding: {e}")
                else:
                    log_error(e, component="chat_turn", chat=self._name)
                    summary = get_user_message(classify_exception(e))
                    message = f"{summary}\n\n{type(e).__name__}: {e}"
                    failure = self._fail(reply, self.trans(truncate_error(message)))
            finally:
                self._set_writers([])
                if not reply.body and reply in self._messages:
                    self._messages.remove(reply)

            if text_started:
                yield TextEndEvent(id=text_id)

            if failure is not None:
                yield failure
                yield FinishEvent(finishReason="error")
                return

            yield TokenUsageEvent(data=self.agent_manager.token_usage.snapshot())
            yield FinishEvent(finishReason="stop")

    async def _stream(self, body: str, text_id: str) -> AsyncIterator[StreamEvent]:
        """Agent events of the turn, cut off as soon as a stop is requested."""
        if self._stop_requested:
            return
        async with aclosing(self.agent_manager.stream(body, text_id=text_id)) as events:
            async for event in events:
                if self._stop_requested:
                    return
                yield event

    def _fail(self, reply: ChatMessage, message: str) -> ErrorEvent:
        reply.body = message
        reply.error = True
        return ErrorEvent(errorText=message)

    def dispose(self) -> None:
        """Stop any turn, release the agent manager and drop listeners."""
        if self._disposed:
            return
        self._disposed = True
        self.agent_manager.stop()
        self._set_writers([])
        self.writers_changed.disconnect_all()
        self.agent_manager.dispose()
