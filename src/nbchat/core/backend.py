"""Uniform model-backend contract and its pydantic-ai implementation.

A backend takes an ordered list of role-tagged messages and returns a reply
whose content is either a plain string or a list of typed content blocks.
"""

import logging
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ThinkingPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models import Model

from nbchat.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class PromptMessage(BaseModel):
    """A role-tagged message sent to a backend."""

    role: Literal["system", "user", "assistant"]
    content: str


class ContentBlock(BaseModel):
    """A typed block of a structured reply.

    Only "text" blocks carry text; other types are kept for callers that
    care about them (e.g. "thinking", "tool-call").
    """

    type: str
    text: str | None = None
    data: dict[str, Any] | None = None


class ModelReply(BaseModel):
    """A backend reply: either plain text or ordered content blocks."""

    content: str | list[ContentBlock]

    @property
    def text(self) -> str:
        """Concatenated text of the reply."""
        if isinstance(self.content, str):
            return self.content
        return "".join(block.text or "" for block in self.content if block.type == "text")


@runtime_checkable
class ModelBackend(Protocol):
    """Anything that can answer a list of prompt messages."""

    async def invoke(self, messages: list[PromptMessage]) -> ModelReply: ...


def convert_messages(messages: list[PromptMessage]) -> list[ModelMessage]:
    """Convert prompt messages to pydantic-ai message format.

    Consecutive system and user messages are grouped into one ModelRequest;
    assistant messages become ModelResponse text parts.
    """
    result: list[ModelMessage] = []
    request_parts: list[SystemPromptPart | UserPromptPart] = []

    for message in messages:
        if message.role == "system":
            request_parts.append(SystemPromptPart(content=message.content))
        elif message.role == "user":
            request_parts.append(UserPromptPart(content=message.content))
        else:
            if request_parts:
                result.append(ModelRequest(parts=request_parts))
                request_parts = []
            result.append(ModelResponse(parts=[TextPart(content=message.content)]))

    if request_parts:
        result.append(ModelRequest(parts=request_parts))

    return result


def normalize_response(response: ModelResponse) -> ModelReply:
    """Turn a pydantic-ai response into content blocks."""
    blocks: list[ContentBlock] = []
    for part in response.parts:
        if isinstance(part, TextPart):
            blocks.append(ContentBlock(type="text", text=part.content))
        elif isinstance(part, ThinkingPart):
            blocks.append(ContentBlock(type="thinking", text=part.content))
        elif isinstance(part, ToolCallPart):
            blocks.append(
                ContentBlock(
                    type="tool-call",
                    data={"tool_name": part.tool_name, "args": part.args_as_dict()},
                )
            )
        else:
            blocks.append(ContentBlock(type=getattr(part, "part_kind", "unknown")))
    return ModelReply(content=blocks)


class PydanticAIBackend:
    """ModelBackend over a pydantic-ai model using a direct model request."""

    def __init__(self, model: Model | str, max_retries: int = 1):
        self.model = model
        self.max_retries = max_retries

    async def invoke(self, messages: list[PromptMessage]) -> ModelReply:
        response = await retry_with_backoff(
            model_request,
            self.model,
            convert_messages(messages),
            max_retries=self.max_retries,
        )
        return normalize_response(response)
