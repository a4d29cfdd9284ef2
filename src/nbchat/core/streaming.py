"""Server-Sent Events encoding for chat turn streams.

Compatible with the Vercel AI SDK UIMessageChunk format.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from nbchat.models.events import ErrorEvent, FinishEvent

logger = logging.getLogger(__name__)

# Default stream timeout in seconds (5 minutes)
DEFAULT_STREAM_TIMEOUT = 300

# AI SDK stream terminator
SSE_DONE_MARKER = "data: [DONE]\n\n"


def encode_sse_event(data: dict[str, Any] | str) -> str:
    """Encode data as a Server-Sent Event.

    Args:
        data: Dictionary to encode as JSON, or pre-encoded JSON string.

    Returns:
        SSE-formatted string with data: prefix and double newline.
    """
    if isinstance(data, str):
        json_data = data
    else:
        json_data = json.dumps(data, ensure_ascii=False)

    return f"data: {json_data}\n\n"


def encode_stream_event(event: BaseModel) -> str:
    """Encode a stream event model as an SSE event."""
    return encode_sse_event(event.model_dump())


async def stream_events(
    events: AsyncIterator[BaseModel],
    on_stop: Callable[[], None] | None = None,
    timeout: float = DEFAULT_STREAM_TIMEOUT,
    request: Request | None = None,
) -> AsyncIterator[str]:
    """Encode a turn's events as SSE, ending with the [DONE] marker.

    Stops the turn through `on_stop` when the client disconnects or the
    stream exceeds `timeout`, so the chat never stays in a generating state.

    Args:
        events: Async iterator of stream event models.
        on_stop: Called to cooperatively stop the turn.
        timeout: Maximum stream duration in seconds.
        request: Optional request for disconnect detection.

    Yields:
        SSE-formatted strings.
    """
    loop = asyncio.get_running_loop()
    start_time = loop.time()
    finish_sent = False

    try:
        async for event in events:
            if request is not None and await request.is_disconnected():
                logger.info("Client disconnected, stopping turn")
                if on_stop:
                    on_stop()
                break

            elapsed = loop.time() - start_time
            if elapsed >= timeout:
                logger.warning(f"Stream timeout after {elapsed:.1f}s, stopping turn")
                if on_stop:
                    on_stop()
                yield encode_stream_event(FinishEvent(finishReason="stop"))
                finish_sent = True
                break

            if isinstance(event, FinishEvent):
                finish_sent = True
            yield encode_stream_event(event)

    except asyncio.CancelledError:
        logger.info("Stream cancelled, stopping turn")
        if on_stop:
            on_stop()
        raise
    except Exception:
        logger.exception("Error during event streaming")
        if not finish_sent:
            yield encode_stream_event(ErrorEvent(errorText="Stream error: connection interrupted"))
            yield encode_stream_event(FinishEvent(finishReason="error"))
    finally:
        if isinstance(events, AsyncGenerator):
            await events.aclose()

    yield SSE_DONE_MARKER


def create_streaming_response(
    event_generator: AsyncIterator[str],
    request: Request | None = None,
) -> StreamingResponse:
    """Create a FastAPI StreamingResponse for SSE.

    Args:
        event_generator: Async iterator yielding SSE-encoded strings.
        request: Optional request to extract request ID for headers.

    Returns:
        Configured StreamingResponse with proper headers for AI SDK.
    """
    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "x-vercel-ai-ui-message-stream": "v1",
        "x-accel-buffering": "no",
    }

    if request and hasattr(request.state, "request_id"):
        headers["X-Request-ID"] = request.state.request_id

    return StreamingResponse(
        event_generator,
        media_type="text/event-stream",
        headers=headers,
    )
