"""
Request Dispatcher — Single Point of Outbound HTTP

Every call to the assistant platform goes through Dispatcher.dispatch():
- injects the Api-Key and X-Pinecone-API-Version headers
- retries HTTP 429 in a bounded loop (max_retries extra attempts)
- raises UpstreamError for any other non-2xx, or 429 once retries run out

Backoff per retry:
    Retry-After header (seconds, capped at 10s) when present and positive,
    otherwise attempt × 0.5s plus up to 0.1s of jitter.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from .errors import UpstreamError


logger = logging.getLogger(__name__)


API_KEY_HEADER = "Api-Key"
API_VERSION_HEADER = "X-Pinecone-API-Version"

RATE_LIMITED_STATUS = 429
DEFAULT_MAX_RETRIES = 2
FALLBACK_BACKOFF_STEP_SECONDS = 0.5
MAX_JITTER_SECONDS = 0.1
# Upstream Retry-After is honoured up to this many seconds
MAX_RETRY_AFTER_SECONDS = 10.0
TRANSPORT_ERROR_STATUS = 502


SleepFn = Callable[[float], Awaitable[None]]
JitterFn = Callable[[], float]


def _random_jitter() -> float:
    return random.uniform(0.0, MAX_JITTER_SECONDS)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Return Retry-After as positive seconds, or None if absent/unusable."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def compute_backoff(attempt: int, retry_after: Optional[float], jitter: float = 0.0) -> float:
    """
    Delay in seconds before retry number `attempt` (1-based).
    
    Pure function: upstream Retry-After wins when positive (capped at
    MAX_RETRY_AFTER_SECONDS), otherwise the delay grows linearly with
    the attempt number.
    """
    if retry_after is not None and retry_after > 0:
        return min(retry_after, MAX_RETRY_AFTER_SECONDS)
    return attempt * FALLBACK_BACKOFF_STEP_SECONDS + jitter


def read_response_body(response: httpx.Response) -> Any:
    """Best-effort body capture: JSON, else text, else None."""
    try:
        return response.json()
    except ValueError:
        pass
    try:
        return response.text or None
    except UnicodeDecodeError:
        return None


class Dispatcher:
    """
    Async HTTP client wrapper for the assistant platform.
    
    Args:
        api_key: Value for the Api-Key header
        api_version: Value for the X-Pinecone-API-Version header
        max_retries: Extra attempts allowed after a 429
        timeout: httpx timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
        sleep: Awaitable sleep used between retries
        jitter: Source of random jitter added to fallback delays
    """

    def __init__(
        self,
        api_key: str,
        api_version: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFn = asyncio.sleep,
        jitter: JitterFn = _random_jitter,
    ):
        self.api_key = api_key
        self.api_version = api_version
        self.max_retries = max(0, max_retries)
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep
        self._jitter = jitter

    def _headers(self) -> Dict[str, str]:
        return {
            API_KEY_HEADER: self.api_key,
            API_VERSION_HEADER: self.api_version,
        }

    async def dispatch(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        error_prefix: str = "Request failed",
    ) -> httpx.Response:
        """
        Issue one logical request, retrying on 429.
        
        Returns:
            The 2xx response, body already read
            
        Raises:
            UpstreamError: non-2xx after retries, or transport failure
        """
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            attempt = 0
            while True:
                try:
                    response = await client.request(
                        method, url, headers=self._headers(), json=json, params=params
                    )
                except httpx.RequestError as e:
                    logger.error(f"[Dispatcher] {method} {url} transport error: {e!r}")
                    raise UpstreamError(
                        TRANSPORT_ERROR_STATUS,
                        f"{error_prefix}: {e.__class__.__name__}",
                        url=url,
                    ) from e

                if response.status_code == RATE_LIMITED_STATUS and attempt < self.max_retries:
                    attempt += 1
                    delay = compute_backoff(
                        attempt,
                        parse_retry_after(response.headers.get("Retry-After")),
                        self._jitter(),
                    )
                    logger.warning(
                        f"[Dispatcher] 429 from {url}; retry {attempt}/{self.max_retries} "
                        f"in {delay:.2f}s"
                    )
                    await self._sleep(delay)
                    continue

                if not response.is_success:
                    logger.warning(
                        f"[Dispatcher] {method} {url} failed: "
                        f"{response.status_code} {response.reason_phrase}"
                    )
                    raise UpstreamError(
                        response.status_code,
                        f"{error_prefix}: {response.status_code} {response.reason_phrase}",
                        url=str(response.request.url),
                        body=read_response_body(response),
                    )

                return response
