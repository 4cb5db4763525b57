"""
API Module — FastAPI Assistant Proxy

Public API:
- app: FastAPI application instance
- router: API routes
"""

from .main import app
from .routes import router
from .schemas import ProxyRequest, SuccessEnvelope, ErrorEnvelope

__all__ = [
    "app",
    "router",
    "ProxyRequest",
    "SuccessEnvelope",
    "ErrorEnvelope",
]
