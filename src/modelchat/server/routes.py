"""
Relay routes.

Implements:
- POST /api/chat - Streaming chat endpoint (SSE)
- POST /api/simple-chat - Buffered chat endpoint
- GET /api/providers - Provider configuration status and model lists
- GET /api/debug - Environment diagnostics
"""

import platform
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from ..config import mask_key
from ..dispatch import BufferedResponse, DispatchRequest, ErrorResponse, sse_generator
from ..dispatch.sse import SSE_HEADERS
from ..errors import DispatchError, MissingCredentialError
from ..log import get_logger

logger = get_logger("modelchat.server")

router = APIRouter(prefix="/api")


def _error(status_code: int, **fields: Any) -> JSONResponse:
    body = ErrorResponse(**fields).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(body, status_code=status_code)


async def _parse_request(raw_request: Request) -> DispatchRequest:
    body = await raw_request.json()
    return DispatchRequest.model_validate(body)


@router.post("/chat", response_model=None)
async def chat_stream(raw_request: Request):
    """
    Streaming chat endpoint.

    Returns:
        text/event-stream of status, chunk and one terminal done/error frame;
        401 JSON before streaming when the provider has no API key
    """
    dispatcher = raw_request.app.state.dispatcher

    try:
        request = await _parse_request(raw_request)
    except (ValueError, ValidationError) as e:
        logger.error("Failed to parse chat request", error=str(e))
        return _error(500, error="Failed to process request", details=str(e))

    logger.info(
        "Chat stream requested",
        provider=request.provider.value,
        model_id=request.model_id,
        message_count=len(request.messages),
    )

    try:
        dispatcher.ensure_configured(request.provider)
    except MissingCredentialError as e:
        return _error(401, error=str(e))

    events = dispatcher.stream(request.messages, request.provider, request.model_id)
    return StreamingResponse(
        sse_generator(events),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/simple-chat", response_model=None)
async def simple_chat(raw_request: Request):
    """
    Buffered chat endpoint.

    Returns:
        {"text": ...} on success, {"error", "details"} with 401/500 on failure
    """
    dispatcher = raw_request.app.state.dispatcher

    try:
        request = await _parse_request(raw_request)
    except (ValueError, ValidationError) as e:
        logger.error("Failed to parse simple chat request", error=str(e))
        return _error(500, error="Failed to process request", details=str(e))

    logger.info(
        "Simple chat requested",
        provider=request.provider.value,
        model_id=request.model_id,
        message_count=len(request.messages),
    )

    try:
        text = await dispatcher.complete(request.messages, request.provider, request.model_id)
    except MissingCredentialError as e:
        return _error(401, error=str(e))
    except DispatchError as e:
        return _error(
            500,
            error=e.message,
            details=e.details,
            provider=request.provider.value,
            model_id=request.model_id,
        )

    return BufferedResponse(text=text)


@router.get("/providers")
async def providers(raw_request: Request):
    """Report each provider's configuration status and supported models."""
    catalog = raw_request.app.state.catalog
    settings = raw_request.app.state.settings
    statuses = catalog.provider_statuses(settings.has_credential)
    return {"providers": [s.model_dump(mode="json") for s in statuses]}


@router.get("/debug")
async def debug(raw_request: Request):
    """Report whether API keys are set, with masked previews."""
    settings = raw_request.app.state.settings
    return {
        "status": "API route is working",
        "environment": {
            "openaiKeySet": bool(settings.openai_api_key),
            "openaiKeyPreview": mask_key(settings.openai_api_key),
            "anthropicKeySet": bool(settings.anthropic_api_key),
            "anthropicKeyPreview": mask_key(settings.anthropic_api_key),
            "pythonVersion": platform.python_version(),
        },
    }
