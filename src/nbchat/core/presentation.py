"""Session presentation adapter: maps writer state to send/stop affordances."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

from nbchat.core.chat_model import ChatModel
from nbchat.core.signals import Subscription
from nbchat.models.chat import AI_ASSISTANT, Writer

logger = logging.getLogger(__name__)

SEND = "send"
STOP = "stop"


class WriterState(str, Enum):
    """Whether the assistant is currently producing output."""

    IDLE = "idle"
    GENERATING = "generating"


class InputToolbar(Protocol):
    """Chat input toolbar owned by the host UI."""

    def swap(self, show: str, hide: str) -> None:
        """Show one item and hide another in a single update."""
        ...


class Disposable(Protocol):
    def dispose(self) -> None: ...


class InputToolbarState:
    """In-memory input toolbar, used when the host does not provide one."""

    def __init__(self, items: tuple[str, ...] = (SEND, STOP)):
        self.items = items
        self.visible: frozenset[str] = frozenset({SEND})

    def swap(self, show: str, hide: str) -> None:
        self.visible = (self.visible - {hide}) | {show}


class TokenUsageDisplay:
    """Keeps the latest token usage snapshot of a chat for display."""

    def __init__(self, model: ChatModel):
        self.usage: dict[str, int] = model.agent_manager.token_usage.snapshot()
        self._subscription: Subscription | None = model.token_usage_changed.connect(
            self._usage_changed
        )

    def _usage_changed(self, _: Any, usage: dict[str, int]) -> None:
        self.usage = dict(usage)

    def dispose(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None


class ChatPresenter:
    """Presentation wrapper of a chat in one UI area ("side" or "main").

    Purely reactive: the toolbar state is a function of whether the
    assistant is in the writer set. Transitions that do not change the
    state are ignored.
    """

    def __init__(
        self,
        model: ChatModel,
        area: str = "side",
        toolbar: InputToolbar | None = None,
        adapters: list[Disposable] | None = None,
    ):
        self.model = model
        self.area = area
        self.toolbar = toolbar if toolbar is not None else InputToolbarState()
        self._usage_display = TokenUsageDisplay(model)
        self._adapters: list[Disposable] = [self._usage_display, *(adapters or [])]
        self._state: WriterState | None = None
        self._disposed = False
        self._apply(WriterState.GENERATING if model.is_generating else WriterState.IDLE)
        self._subscription = model.writers_changed.connect(self._writers_changed)

    @property
    def state(self) -> WriterState:
        return self._state or WriterState.IDLE

    @property
    def title(self) -> str:
        return self.model.name

    @property
    def adapters(self) -> list[Disposable]:
        return list(self._adapters)

    @property
    def token_usage(self) -> dict[str, int]:
        return self._usage_display.usage

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _writers_changed(self, _: Any, writers: list[Writer]) -> None:
        ai_writing = any(writer.user.username == AI_ASSISTANT.username for writer in writers)
        self._apply(WriterState.GENERATING if ai_writing else WriterState.IDLE)

    def _apply(self, state: WriterState) -> None:
        if state == self._state:
            return
        self._state = state
        if state == WriterState.GENERATING:
            self.toolbar.swap(show=STOP, hide=SEND)
        else:
            self.toolbar.swap(show=SEND, hide=STOP)
        logger.debug(f"Chat '{self.model.name}' ({self.area}) is {state.value}")

    def dispose(self) -> None:
        """Disconnect from the model first, then dispose attached adapters."""
        if self._disposed:
            return
        self._disposed = True
        self._subscription.cancel()
        for adapter in self._adapters:
            adapter.dispose()
        self._adapters.clear()
