"""Tests for the chat model."""

import pytest
from pydantic_ai.models.function import AgentInfo, FunctionModel

from nbchat.config import Settings
from nbchat.core.agent_manager import AgentManager
from nbchat.core.chat_model import ChatModel
from nbchat.core.settings_model import SettingsModel
from nbchat.models.chat import AI_ASSISTANT, USER, Writer
from nbchat.models.events import (
    ErrorEvent,
    FinishEvent,
    StartEvent,
    TextDeltaEvent,
    TextEndEvent,
    TextStartEvent,
    TokenUsageEvent,
)
from nbchat.utils.errors import NOT_CONFIGURED_MESSAGE


def make_chat(settings_model, provider_registry, name: str = "chat") -> ChatModel:
    manager = AgentManager(settings_model, provider_registry)
    chat = ChatModel(user=USER, settings_model=settings_model, agent_manager=manager)
    chat.name = name
    return chat


async def chunked(messages, info: AgentInfo):
    for chunk in ("Hello", " there", " again"):
        yield chunk


async def collect(chat: ChatModel, body: str = "Hi") -> list:
    return [event async for event in chat.send_message(body)]


class TestSendMessage:
    """Tests for a successful turn."""

    @pytest.mark.asyncio
    async def test_event_sequence(self, settings_model, provider_registry, assistant_text):
        """Test a turn is framed by start, text block, usage and finish events."""
        chat = make_chat(settings_model, provider_registry)

        events = await collect(chat)

        assert isinstance(events[0], StartEvent)
        assert isinstance(events[1], TextStartEvent)
        assert isinstance(events[-3], TextEndEvent)
        assert isinstance(events[-2], TokenUsageEvent)
        assert events[-1] == FinishEvent(finishReason="stop")
        deltas = [event.delta for event in events if isinstance(event, TextDeltaEvent)]
        assert "".join(deltas) == assistant_text

    @pytest.mark.asyncio
    async def test_transcript(self, settings_model, provider_registry, assistant_text):
        """Test the user message and the assistant reply are recorded."""
        chat = make_chat(settings_model, provider_registry)

        events = await collect(chat, "Hello")

        user_message, reply = chat.messages
        assert user_message.sender == USER
        assert user_message.body == "Hello"
        assert reply.sender == AI_ASSISTANT
        assert reply.body == assistant_text
        assert reply.error is False
        assert events[0].messageId == reply.id

    @pytest.mark.asyncio
    async def test_writer_transitions(self, settings_model, provider_registry):
        """Test the assistant is a writer exactly while the turn runs."""
        chat = make_chat(settings_model, provider_registry)
        changes = []
        chat.writers_changed.connect(lambda sender, writers: changes.append(writers))
        generating = []

        async for _ in chat.send_message("Hi"):
            generating.append(chat.is_generating)

        assert generating[0] is True
        assert chat.is_generating is False
        assert len(changes) == 2
        assert [writer.user for writer in changes[0]] == [AI_ASSISTANT]
        assert changes[1] == []

    @pytest.mark.asyncio
    async def test_writer_refers_to_reply(self, settings_model, provider_registry):
        """Test the writer entry names the message being written."""
        chat = make_chat(settings_model, provider_registry)

        async for event in chat.send_message("Hi"):
            if isinstance(event, StartEvent):
                assert chat.writers == [Writer(user=AI_ASSISTANT, message_id=event.messageId)]

    @pytest.mark.asyncio
    async def test_usage_reported(self, settings_model, provider_registry):
        """Test the usage event carries the agent manager's totals."""
        chat = make_chat(settings_model, provider_registry)

        events = await collect(chat)

        usage = next(event for event in events if isinstance(event, TokenUsageEvent))
        assert usage.data == chat.agent_manager.token_usage.snapshot()
        assert usage.data["total_tokens"] > 0

    @pytest.mark.asyncio
    async def test_disposed_chat_refuses(self, settings_model, provider_registry):
        """Test no turn can start after dispose."""
        chat = make_chat(settings_model, provider_registry)
        chat.dispose()

        with pytest.raises(RuntimeError):
            await collect(chat)


class TestFailedTurns:
    """Tests for turns that cannot complete."""

    @pytest.mark.asyncio
    async def test_not_configured(self, provider_registry):
        """Test a chat without a provider answers with the settings prompt."""
        chat = make_chat(SettingsModel(Settings()), provider_registry)

        events = await collect(chat)

        assert isinstance(events[0], StartEvent)
        assert events[1] == ErrorEvent(errorText=NOT_CONFIGURED_MESSAGE)
        assert events[2] == FinishEvent(finishReason="error")
        assert len(events) == 3

        user_message, reply = chat.messages
        assert reply.body == "Please configure your AI settings first"
        assert reply.error is True
        assert chat.writers == []

    @pytest.mark.asyncio
    async def test_provider_removed_mid_session(self, settings_model, provider_registry):
        """Test removing the provider turns the next turn into the settings prompt."""
        chat = make_chat(settings_model, provider_registry)
        await collect(chat)

        settings_model.remove_provider("local-test")
        await collect(chat)

        assert len(chat.messages) == 4
        assert chat.messages[-1].body == NOT_CONFIGURED_MESSAGE
        assert chat.is_generating is False

    @pytest.mark.asyncio
    async def test_backend_error(self, settings_model, make_registry):
        """Test a model failure becomes an assistant error message."""

        async def failing(messages, info: AgentInfo):
            raise ConnectionError("connection refused")
            yield  # pragma: no cover

        chat = make_chat(settings_model, make_registry(FunctionModel(stream_function=failing)))

        events = await collect(chat)

        assert isinstance(events[-2], ErrorEvent)
        assert events[-1] == FinishEvent(finishReason="error")
        reply = chat.messages[-1]
        assert reply.error is True
        assert reply.body
        assert chat.writers == []

    @pytest.mark.asyncio
    async def test_translated_messages(self, provider_registry):
        """Test user-facing error text goes through the translator."""
        manager = AgentManager(SettingsModel(Settings()), provider_registry)
        chat = ChatModel(
            user=USER,
            settings_model=SettingsModel(Settings()),
            agent_manager=manager,
            trans=lambda text: f"[fr] {text}",
        )

        await collect(chat)

        assert chat.messages[-1].body == f"[fr] {NOT_CONFIGURED_MESSAGE}"


class TestClearCommand:
    """Tests for the /clear command."""

    @pytest.mark.asyncio
    async def test_clear_empties_chat(self, settings_model, provider_registry):
        """Test /clear removes the transcript and resets usage."""
        chat = make_chat(settings_model, provider_registry)
        await collect(chat)
        assert len(chat.messages) == 2

        events = await collect(chat, "/clear")

        assert chat.messages == []
        assert chat.agent_manager.history == []
        assert chat.agent_manager.token_usage.total_tokens == 0
        assert [type(event) for event in events] == [StartEvent, FinishEvent]

    @pytest.mark.asyncio
    async def test_clear_does_not_reach_the_model(self, settings_model, make_registry):
        """Test the command is handled locally."""
        calls = []

        async def stream(messages, info: AgentInfo):
            calls.append(messages)
            yield "ok"

        chat = make_chat(settings_model, make_registry(FunctionModel(stream_function=stream)))

        await collect(chat, " /CLEAR ")

        assert calls == []
        assert chat.writers == []


class TestStopStreaming:
    """Tests for stopping a turn."""

    @pytest.mark.asyncio
    async def test_stop_mid_stream(self, settings_model, make_registry):
        """Test a stop keeps the partial reply and ends the turn normally."""
        chat = make_chat(settings_model, make_registry(FunctionModel(stream_function=chunked)))
        events = []

        async for event in chat.send_message("Hi"):
            events.append(event)
            if isinstance(event, TextDeltaEvent):
                chat.stop_streaming()
                assert chat.writers == []

        reply = chat.messages[-1]
        assert reply.body == "Hello"
        assert reply.error is False
        assert events[-1] == FinishEvent(finishReason="stop")
        assert len([event for event in events if isinstance(event, TextDeltaEvent)]) == 1

    @pytest.mark.asyncio
    async def test_stop_before_any_output(self, settings_model, provider_registry):
        """Test an empty stopped reply is removed from the transcript."""
        chat = make_chat(settings_model, provider_registry)
        events = []

        async for event in chat.send_message("Hi"):
            events.append(event)
            if isinstance(event, StartEvent):
                chat.stop_streaming()

        assert [message.body for message in chat.messages] == ["Hi"]
        assert not any(isinstance(event, TextDeltaEvent) for event in events)
        assert events[-1] == FinishEvent(finishReason="stop")

    @pytest.mark.asyncio
    async def test_stop_only_affects_current_turn(
        self, settings_model, provider_registry, assistant_text
    ):
        """Test the next turn runs to completion after a stop."""
        chat = make_chat(settings_model, provider_registry)
        chat.stop_streaming()

        await collect(chat)

        assert chat.messages[-1].body == assistant_text

    @pytest.mark.asyncio
    async def test_failure_after_stop_is_discarded(self, settings_model, make_registry):
        """Test a backend error arriving after a stop leaves no error reply."""

        async def failing_late(messages, info: AgentInfo):
            yield "Hello"
            raise RuntimeError("network down")

        chat = make_chat(settings_model, make_registry(FunctionModel(stream_function=failing_late)))
        events = []

        async for event in chat.send_message("Hi"):
            events.append(event)
            if isinstance(event, TextDeltaEvent):
                chat.stop_streaming()

        assert not any(isinstance(event, ErrorEvent) for event in events)
        assert events[-1] == FinishEvent(finishReason="stop")
        assert [(message.body, message.error) for message in chat.messages] == [
            ("Hi", False),
            ("Hello", False),
        ]
        assert chat.writers == []

    @pytest.mark.asyncio
    async def test_closing_turn_at_start_returns_to_idle(
        self, settings_model, provider_registry, assistant_text
    ):
        """Test closing the turn right after its start event leaves the chat idle."""
        chat = make_chat(settings_model, provider_registry)

        turn = chat.send_message("Hi")
        first = await turn.__anext__()
        await turn.aclose()

        assert isinstance(first, StartEvent)
        assert chat.is_generating is False
        assert chat.writers == []
        assert [message.body for message in chat.messages] == ["Hi"]

        await collect(chat, "Again")
        assert chat.messages[-1].body == assistant_text

    def test_stop_when_idle_keeps_writers_empty(self, settings_model, provider_registry):
        """Test stopping an idle chat emits nothing."""
        chat = make_chat(settings_model, provider_registry)
        changes = []
        chat.writers_changed.connect(lambda sender, writers: changes.append(writers))

        chat.stop_streaming()

        assert changes == []


class TestDispose:
    """Tests for disposal."""

    def test_dispose_releases_agent_manager(self, settings_model, provider_registry):
        """Test dispose drops listeners and disposes the agent manager once."""
        chat = make_chat(settings_model, provider_registry)
        chat.writers_changed.connect(lambda sender, writers: None)

        chat.dispose()
        chat.dispose()

        assert chat.is_disposed is True
        assert chat.agent_manager.is_disposed is True
        assert len(chat.writers_changed) == 0

    def test_name(self, settings_model, provider_registry):
        """Test the display name can be changed."""
        chat = make_chat(settings_model, provider_registry, name="first")
        chat.name = "second"
        assert chat.name == "second"
