"""API request models."""

from typing import Literal

from pydantic import BaseModel, Field


class CreateChatRequest(BaseModel):
    """Request body for creating a chat."""

    name: str | None = Field(
        default=None,
        description="Chat name; defaults to the provider's model name",
    )
    provider: str | None = Field(
        default=None,
        description="Configured provider id; defaults to the default provider",
    )
    area: Literal["side", "main"] = "side"


class RenameChatRequest(BaseModel):
    """Request body for renaming a chat."""

    name: str = Field(..., min_length=1)


class MoveChatRequest(BaseModel):
    """Request body for moving a chat between UI areas."""

    area: Literal["side", "main"]


class SendMessageRequest(BaseModel):
    """Request body for sending a user message to a chat."""

    body: str = Field(..., min_length=1, description="Message text or a slash command")


class CompletionRequest(BaseModel):
    """Inline completion request."""

    text: str
    offset: int = Field(..., ge=0, description="Cursor offset in text")
