"""Stream event models for a chat turn.

Event types follow the Vercel AI SDK UIMessageChunk format so a chat UI can
consume the turn stream directly.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class StartEvent(BaseModel):
    """Turn start marker, carrying the id of the assistant reply."""

    type: Literal["start"] = "start"
    messageId: str | None = None


class FinishEvent(BaseModel):
    """Turn finished; the writer set is back to idle."""

    type: Literal["finish"] = "finish"
    finishReason: Literal["stop", "length", "tool-calls", "error"] | None = None


class TextStartEvent(BaseModel):
    """Marks beginning of a text content block."""

    type: Literal["text-start"] = "text-start"
    id: str


class TextDeltaEvent(BaseModel):
    """Incremental text content from the assistant."""

    type: Literal["text-delta"] = "text-delta"
    id: str
    delta: str


class TextEndEvent(BaseModel):
    """Marks end of a text content block."""

    type: Literal["text-end"] = "text-end"
    id: str


class ToolInputAvailableEvent(BaseModel):
    """The agent has decided to invoke a function tool."""

    type: Literal["tool-input-available"] = "tool-input-available"
    toolCallId: str
    toolName: str
    input: dict


class ToolOutputAvailableEvent(BaseModel):
    """Result of a function tool execution."""

    type: Literal["tool-output-available"] = "tool-output-available"
    toolCallId: str
    output: Any


class TokenUsageEvent(BaseModel):
    """Cumulative token usage of the session after the turn."""

    type: Literal["data-token-usage"] = "data-token-usage"
    data: dict[str, int]


class ErrorEvent(BaseModel):
    """The turn failed; errorText is also shown as the assistant reply."""

    type: Literal["error"] = "error"
    errorText: str


StreamEvent = Annotated[
    Union[
        StartEvent,
        TextStartEvent,
        TextDeltaEvent,
        TextEndEvent,
        ToolInputAvailableEvent,
        ToolOutputAvailableEvent,
        TokenUsageEvent,
        FinishEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]
