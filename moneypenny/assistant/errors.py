"""
Proxy Errors — Tagged Error Hierarchy & Normalizer

Every failure the proxy can report is a ProxyError subclass carrying
its own HTTP status. The endpoint catches once and calls
normalize_error() to build the client-facing error envelope.

Status mapping:
    ValidationError            → 400
    AuthError                  → 401
    MethodNotAllowedError      → 405
    NotImplementedActionError  → 501
    UpstreamError              → upstream status (fallback 500)
    MissingHostError           → 500
    anything else              → 500
"""

from dataclasses import dataclass
from typing import Any, Optional


DEFAULT_ERROR_STATUS = 500


class ProxyError(Exception):
    """Base class for errors rendered as a failure envelope."""

    status: int = DEFAULT_ERROR_STATUS

    def __init__(self, message: str, details: Any = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status is not None:
            self.status = status


class ValidationError(ProxyError):
    """Missing required field or unsupported action."""
    status = 400


class AuthError(ProxyError):
    """Inbound bearer token mismatch."""
    status = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class MethodNotAllowedError(ProxyError):
    status = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class NotImplementedActionError(ProxyError):
    """Action is recognised but deliberately not proxied."""
    status = 501


class UpstreamError(ProxyError):
    """
    Non-2xx response from the assistant platform (after retries).
    
    details carries the request URL and, when it could be read,
    the upstream response body.
    """

    def __init__(self, status: Optional[int], message: str, url: str, body: Any = None):
        details: dict[str, Any] = {"url": url}
        if body is not None:
            details["body"] = body
        super().__init__(message, details=details, status=status or DEFAULT_ERROR_STATUS)
        self.url = url
        self.body = body


class MissingHostError(ProxyError):
    """Host-discovery response lacked the 'host' field."""
    status = 500


@dataclass(frozen=True)
class NormalizedError:
    """Uniform {status, message, details} triple."""
    status: int
    message: str
    details: Any = None


def normalize_error(exc: BaseException) -> NormalizedError:
    """
    Convert any raised error into a NormalizedError.
    
    Tagged proxy errors keep their status, message and details verbatim.
    Anything else becomes a 500 carrying the exception text.
    """
    if isinstance(exc, ProxyError):
        return NormalizedError(status=exc.status, message=exc.message, details=exc.details)
    return NormalizedError(
        status=DEFAULT_ERROR_STATUS,
        message=str(exc) or exc.__class__.__name__,
    )
