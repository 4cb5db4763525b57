"""
Host Resolver — Assistant Name → Data-Plane Base URL

Each assistant is served from its own host, discovered through the
control-plane "describe assistant" call. Resolved base URLs are cached
for the TTL configured on the HostCache.
"""

import logging
from typing import Optional
from urllib.parse import quote

from .cache import HostCache
from .dispatcher import Dispatcher
from .errors import MissingHostError


logger = logging.getLogger(__name__)


ASSISTANT_PATH_SUFFIX = "/assistant"
DEFAULT_SCHEME = "https://"


def normalize_assistant_base(host: str) -> str:
    """
    Normalize a host into a data-plane base URL.
    
    Ensures a scheme, ensures the /assistant suffix and strips any
    trailing slash. Idempotent:
        "example.com"                    → "https://example.com/assistant"
        "https://example.com/assistant/" → "https://example.com/assistant"
    """
    base = host.strip()
    if not base.startswith(("http://", "https://")):
        base = DEFAULT_SCHEME + base
    base = base.rstrip("/")
    if not base.endswith(ASSISTANT_PATH_SUFFIX):
        base += ASSISTANT_PATH_SUFFIX
    return base


def assistant_describe_url(control_plane_url: str, assistant_name: str) -> str:
    return f"{control_plane_url.rstrip('/')}/assistant/assistants/{quote(assistant_name, safe='')}"


class HostResolver:
    """
    Resolves and caches per-assistant base URLs.
    
    The cache is injected so it can be swapped (bounded, distributed)
    without touching call sites.
    """

    def __init__(self, dispatcher: Dispatcher, cache: HostCache, control_plane_url: str):
        self.dispatcher = dispatcher
        self.cache = cache
        self.control_plane_url = control_plane_url

    async def resolve_base(self, assistant_name: str, explicit_host: Optional[str] = None) -> str:
        """
        Return the base URL for an assistant.
        
        Args:
            assistant_name: Assistant to resolve
            explicit_host: Caller-supplied host; bypasses the cache entirely
            
        Raises:
            UpstreamError: Host discovery failed
            MissingHostError: Discovery response had no 'host'
        """
        if explicit_host:
            return normalize_assistant_base(explicit_host)

        cached = self.cache.get(assistant_name)
        if cached is not None:
            return cached.base_url

        logger.info(f"[HostResolver] Cache miss for '{assistant_name}', discovering host")
        response = await self.dispatcher.dispatch(
            "GET",
            assistant_describe_url(self.control_plane_url, assistant_name),
            error_prefix="Failed to describe assistant (host discovery)",
        )
        payload = response.json()
        host = payload.get("host") if isinstance(payload, dict) else None
        if not host:
            raise MissingHostError("Assistant response missing 'host'")

        entry = self.cache.put(assistant_name, normalize_assistant_base(host))
        logger.info(f"[HostResolver] '{assistant_name}' → {entry.base_url}")
        return entry.base_url
