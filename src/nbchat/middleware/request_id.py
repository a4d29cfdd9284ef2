"""Request ID middleware for request tracing."""

import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied ids are accepted when they are short opaque tokens
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,63}$")


def is_valid_request_id(value: str | None) -> bool:
    """Check if a client-supplied request ID can be trusted in logs.

    Args:
        value: Header value, possibly missing.

    Returns:
        True for a UUID or a short token of letters, digits, '.', '_' and '-'.
    """
    if not value:
        return False
    return REQUEST_ID_PATTERN.fullmatch(value) is not None


def generate_request_id() -> str:
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id, echoed in the X-Request-ID header.

    The id is stored in request.state so handlers, streaming responses and
    error bodies can report it.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER)
        if not is_valid_request_id(request_id):
            request_id = generate_request_id()

        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
