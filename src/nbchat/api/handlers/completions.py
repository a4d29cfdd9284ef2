"""Inline completion endpoint handler."""

import logging

from fastapi import APIRouter

from nbchat.api.deps import ServicesDep
from nbchat.core.completer import Completer
from nbchat.models.request import CompletionRequest
from nbchat.models.response import CompletionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/completions", response_model=CompletionResponse)
async def complete(request: CompletionRequest, services: ServicesDep) -> CompletionResponse:
    """Suggest a continuation of the text before the cursor.

    Model failures yield no items rather than an error, so the editor
    simply shows nothing. Responds 409 with code NOT_CONFIGURED when no
    provider is configured for completion.

    Args:
        request: Document text and cursor offset.
        services: Application services dependency.

    Returns:
        CompletionResponse with zero or more items.
    """
    completer = Completer.from_settings(services.settings_model, services.provider_registry)
    items = await completer.fetch(request.text, request.offset)

    logger.debug(f"Returning {len(items)} completion items")

    return CompletionResponse(items=items)
