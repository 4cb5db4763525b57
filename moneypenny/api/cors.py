"""
CORS Middleware — Default-Origin Variant

Starlette's CORSMiddleware with two changes:
- an Origin outside ALLOWED_ORIGINS is answered as the first (default)
  origin instead of being rejected
- preflight always answers 200 with an empty body
"""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send


class DefaultOriginCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that falls back to allow_origins[0] for unlisted origins."""

    def __init__(self, app: ASGIApp, allow_origins: list[str], **kwargs):
        super().__init__(app, allow_origins=allow_origins, **kwargs)
        self.default_origin = allow_origins[0]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = Headers(scope=scope).get("origin")
            if origin is not None and not self.is_allowed_origin(origin=origin):
                scope = dict(scope)
                scope["headers"] = [
                    (name, value) for name, value in scope["headers"] if name != b"origin"
                ] + [(b"origin", self.default_origin.encode("latin-1"))]
        await super().__call__(scope, receive, send)

    def preflight_response(self, request_headers: Headers) -> Response:
        cors = super().preflight_response(request_headers=request_headers)
        headers = {
            name: value for name, value in cors.headers.items()
            if name.lower() not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)
