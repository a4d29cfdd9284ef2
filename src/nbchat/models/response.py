"""API response models."""

from pydantic import BaseModel

from nbchat.core.commands import ChatCommand
from nbchat.core.completer import CompletionItem
from nbchat.core.presentation import ChatPresenter
from nbchat.models.chat import ChatMessage


class ProviderToolInfo(BaseModel):
    """Built-in tools a configured provider would attach."""

    web_search: bool = False
    web_fetch: bool = False


class ProviderEntry(BaseModel):
    """A configured provider as shown to the UI."""

    id: str
    provider: str
    name: str
    model: str
    tools: ProviderToolInfo
    default: bool = False


class ProvidersResponse(BaseModel):
    """Response for the providers listing endpoint."""

    providers: list[ProviderEntry]


class ChatInfo(BaseModel):
    """Summary of an open chat."""

    id: str
    name: str
    area: str
    provider: str | None
    generating: bool
    toolbar: list[str]
    message_count: int
    token_usage: dict[str, int]

    @classmethod
    def from_presenter(cls, presenter: ChatPresenter) -> "ChatInfo":
        model = presenter.model
        return cls(
            id=model.id,
            name=model.name,
            area=presenter.area,
            provider=model.agent_manager.active_provider,
            generating=model.is_generating,
            toolbar=sorted(getattr(presenter.toolbar, "visible", ())),
            message_count=len(model.messages),
            token_usage=presenter.token_usage,
        )


class ChatsResponse(BaseModel):
    """Response for the chats listing endpoint."""

    chats: list[ChatInfo]


class MessagesResponse(BaseModel):
    """Transcript of a chat."""

    messages: list[ChatMessage]


class CommandsResponse(BaseModel):
    """Slash commands matching a prefix."""

    commands: list[ChatCommand]


class CompletionResponse(BaseModel):
    """Inline completion suggestions."""

    items: list[CompletionItem]
