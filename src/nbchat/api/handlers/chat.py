"""Chat session endpoint handlers."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response

from nbchat.api.deps import ServicesDep
from nbchat.core.commands import complete_commands
from nbchat.core.streaming import create_streaming_response, stream_events
from nbchat.models.request import (
    CreateChatRequest,
    MoveChatRequest,
    RenameChatRequest,
    SendMessageRequest,
)
from nbchat.models.response import ChatInfo, ChatsResponse, CommandsResponse, MessagesResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chats", response_model=ChatInfo, status_code=201)
async def create_chat(request_body: CreateChatRequest, services: ServicesDep) -> ChatInfo:
    """Open a new chat bound to a configured provider.

    Responds 409 with code NOT_CONFIGURED when no provider is configured,
    which the UI answers by opening the AI settings.
    """
    presenter = services.sessions.open(
        name=request_body.name,
        area=request_body.area,
        provider=request_body.provider,
    )
    logger.info(f"Opened chat '{presenter.title}' in the {presenter.area} area")
    return ChatInfo.from_presenter(presenter)


@router.get("/chats", response_model=ChatsResponse)
async def list_chats(services: ServicesDep) -> ChatsResponse:
    return ChatsResponse(
        chats=[ChatInfo.from_presenter(presenter) for presenter in services.sessions.list()]
    )


@router.get("/chats/{name}", response_model=ChatInfo)
async def get_chat(name: str, services: ServicesDep) -> ChatInfo:
    return ChatInfo.from_presenter(services.sessions.get(name))


@router.patch("/chats/{name}", response_model=ChatInfo)
async def rename_chat(
    name: str,
    request_body: RenameChatRequest,
    services: ServicesDep,
) -> ChatInfo:
    """Rename a chat. Names are unique among open chats."""
    try:
        presenter = services.sessions.rename(name, request_body.name)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return ChatInfo.from_presenter(presenter)


@router.delete("/chats/{name}", status_code=204)
async def close_chat(name: str, services: ServicesDep) -> Response:
    services.sessions.close(name)
    return Response(status_code=204)


@router.post("/chats/{name}/move", response_model=ChatInfo)
async def move_chat(
    name: str,
    request_body: MoveChatRequest,
    services: ServicesDep,
) -> ChatInfo:
    """Show a chat in the other UI area without losing its history."""
    return ChatInfo.from_presenter(services.sessions.move(name, request_body.area))


@router.get("/chats/{name}/messages", response_model=MessagesResponse)
async def get_messages(name: str, services: ServicesDep) -> MessagesResponse:
    return MessagesResponse(messages=services.sessions.get(name).model.messages)


@router.post("/chats/{name}/messages")
async def send_message(
    name: str,
    request_body: SendMessageRequest,
    request: Request,
    services: ServicesDep,
):
    """Send a user message and stream the assistant's turn.

    Returns a streaming response with Server-Sent Events in AI SDK
    UIMessageChunk format. A turn that fails still streams an error
    event; the transcript then holds the assistant's error reply.

    Args:
        name: Chat name.
        request_body: The message text or a slash command.
        request: The FastAPI request object for disconnect detection.
        services: Application services dependency.

    Returns:
        StreamingResponse with SSE events.
    """
    model = services.sessions.get(name).model

    logger.info(f"Message for chat '{name}': {len(request_body.body)} characters")

    event_generator = stream_events(
        model.send_message(request_body.body),
        on_stop=model.stop_streaming,
        timeout=services.settings.server.timeout_seconds,
        request=request,
    )
    return create_streaming_response(event_generator, request)


@router.post("/chats/{name}/stop", response_model=ChatInfo)
async def stop_chat(name: str, services: ServicesDep) -> ChatInfo:
    """Stop the current turn; the toolbar switches back to send at once."""
    presenter = services.sessions.get(name)
    presenter.model.stop_streaming()
    return ChatInfo.from_presenter(presenter)


@router.get("/commands", response_model=CommandsResponse)
async def list_commands(prefix: str = "/") -> CommandsResponse:
    """Slash commands matching what the user has typed so far."""
    return CommandsResponse(commands=complete_commands(prefix))
