"""
Assistant Module — Host Resolution, Dispatch & Action Routing

Public API:
- ActionRouter: Runs a validated action against the assistant platform
- HostResolver / normalize_assistant_base: Per-assistant base URL discovery
- InMemoryHostCache / HostCache: TTL cache for discovered hosts
- Dispatcher: Outbound HTTP with 429 retry and error enrichment
- normalize_error and the ProxyError hierarchy
- build_action_router: Wire the above from Settings
"""

from typing import Optional

import httpx

from .actions import (
    ActionRouter,
    SUPPORTED_ACTIONS,
    build_chat_messages,
    build_chat_payload,
    build_search_payload,
)
from .cache import HostCache, HostCacheEntry, InMemoryHostCache
from .dispatcher import Dispatcher, compute_backoff, parse_retry_after
from .errors import (
    AuthError,
    MethodNotAllowedError,
    MissingHostError,
    NormalizedError,
    NotImplementedActionError,
    ProxyError,
    UpstreamError,
    ValidationError,
    normalize_error,
)
from .resolver import HostResolver, normalize_assistant_base


def build_action_router(
    settings,
    cache: HostCache,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **dispatcher_kwargs,
) -> ActionRouter:
    """Assemble Dispatcher → HostResolver → ActionRouter from settings."""
    dispatcher = Dispatcher(
        api_key=settings.PINECONE_API_KEY,
        api_version=settings.PINECONE_API_VERSION,
        max_retries=settings.MAX_RETRIES,
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        transport=transport,
        **dispatcher_kwargs,
    )
    resolver = HostResolver(dispatcher, cache, settings.PINECONE_CONTROL_PLANE_URL)
    return ActionRouter(
        dispatcher,
        resolver,
        settings.PINECONE_CONTROL_PLANE_URL,
        default_model=settings.DEFAULT_CHAT_MODEL,
    )


__all__ = [
    "ActionRouter",
    "SUPPORTED_ACTIONS",
    "build_chat_messages",
    "build_chat_payload",
    "build_search_payload",
    "HostCache",
    "HostCacheEntry",
    "InMemoryHostCache",
    "Dispatcher",
    "compute_backoff",
    "parse_retry_after",
    "AuthError",
    "MethodNotAllowedError",
    "MissingHostError",
    "NormalizedError",
    "NotImplementedActionError",
    "ProxyError",
    "UpstreamError",
    "ValidationError",
    "normalize_error",
    "HostResolver",
    "normalize_assistant_base",
    "build_action_router",
]
