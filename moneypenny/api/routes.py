"""
API Routes — Assistant Proxy Endpoint

Single POST endpoint dispatching on `action`. Every error raised while
handling a request is caught exactly once here, normalized and rendered
as the failure envelope.
"""

import json
import logging
import secrets

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from moneypenny.assistant import (
    ActionRouter,
    AuthError,
    InMemoryHostCache,
    MethodNotAllowedError,
    ProxyError,
    ValidationError,
    build_action_router,
    normalize_error,
)
from moneypenny.config import settings

from .schemas import DebugResponse, ErrorEnvelope, ProxyRequest, SuccessEnvelope


logger = logging.getLogger(__name__)


ASSISTANT_PATH = "/api/pinecone-assistant"
KEY_PREVIEW_LENGTH = 6


router = APIRouter()


# Process-wide host cache shared by all requests
_host_cache = InMemoryHostCache(ttl_seconds=settings.HOST_CACHE_TTL_SECONDS)


def get_action_router() -> ActionRouter:
    """Dependency providing an ActionRouter backed by the shared host cache."""
    return build_action_router(settings, _host_cache)


def verify_bearer_token(request: Request) -> None:
    """
    Enforce the optional inbound bearer token.
    
    Raises:
        AuthError: MONEYPENNY_AUTH_TOKEN is set and the header doesn't match
    """
    token = settings.MONEYPENNY_AUTH_TOKEN
    if not token:
        return
    # Starlette decodes headers as latin-1; re-encoding recovers the wire bytes
    supplied = request.headers.get("authorization", "").encode("latin-1")
    expected = f"Bearer {token}"
    if not secrets.compare_digest(supplied, expected.encode("utf-8")):
        raise AuthError()


async def parse_proxy_request(request: Request) -> ProxyRequest:
    """
    Parse the JSON body into a ProxyRequest.
    
    An empty body parses as {} so it fails later as an invalid action.
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        raise ValidationError("Invalid JSON body") from e

    try:
        return ProxyRequest.model_validate(body or {})
    except PydanticValidationError as e:
        raise ValidationError("Invalid request body", details=e.errors(include_url=False)) from e


def error_response(exc: Exception) -> JSONResponse:
    """Render any error as the failure envelope."""
    normalized = normalize_error(exc)
    envelope = ErrorEnvelope(error=normalized.message, details=normalized.details)
    return JSONResponse(
        status_code=normalized.status,
        content=envelope.model_dump(exclude_none=True),
    )


@router.options(ASSISTANT_PATH, include_in_schema=False)
async def assistant_preflight() -> Response:
    """Bare OPTIONS; CORS headers come from the middleware."""
    return Response(status_code=200)


@router.api_route(
    ASSISTANT_PATH,
    methods=["POST", "GET", "PUT", "PATCH", "DELETE"],
    responses={
        400: {"description": "Validation error", "model": ErrorEnvelope},
        401: {"description": "Unauthorized", "model": ErrorEnvelope},
        405: {"description": "Method not allowed", "model": ErrorEnvelope},
        501: {"description": "Action not implemented", "model": ErrorEnvelope},
    },
    summary="Proxy an action to the Pinecone Assistant API",
    tags=["Assistant"],
)
async def assistant_proxy(
    request: Request,
    action_router: ActionRouter = Depends(get_action_router),
) -> JSONResponse:
    """
    Run one assistant action.
    
    - Rejects non-POST methods (405)
    - Checks the optional bearer token (401)
    - Dispatches on `action` and wraps the result
    """
    try:
        if request.method != "POST":
            raise MethodNotAllowedError()
        verify_bearer_token(request)

        proxy_request = await parse_proxy_request(request)
        result = await action_router.run(
            proxy_request.action,
            assistant_name=proxy_request.resolved_name,
            data=proxy_request.data,
            assistant_host=proxy_request.assistant_host,
        )
        envelope = SuccessEnvelope(type=proxy_request.action, data=result)
        return JSONResponse(status_code=200, content=envelope.model_dump())

    except ProxyError as e:
        logger.warning(f"Assistant proxy error ({e.status}): {e.message}")
        return error_response(e)
    except Exception as e:
        logger.exception(f"Pinecone Assistant API error: {e}")
        return error_response(e)


@router.get("/api/debug", response_model=DebugResponse, tags=["Health"])
async def debug_api_key() -> DebugResponse:
    """Report whether PINECONE_API_KEY is configured, with a short preview."""
    key = settings.PINECONE_API_KEY
    return DebugResponse(
        hasKey=bool(key),
        keyLength=len(key),
        preview=f"{key[:KEY_PREVIEW_LENGTH]}..." if key else None,
    )
