"""
Pydantic Schemas — Inbound Request & Response Envelopes

Validation is deliberately shallow: only the outer shape is checked
here. Per-action field presence is checked by the ActionRouter.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProxyRequest(BaseModel):
    """
    Body of POST /api/pinecone-assistant.
    
    assistant_id is accepted as an alias when assistant_name is absent.
    """
    model_config = ConfigDict(extra="ignore")

    action: Optional[str] = Field(default=None, description="Action to perform")
    assistant_name: Optional[str] = Field(default=None, description="Target assistant")
    assistant_id: Optional[str] = Field(default=None, description="Alias for assistant_name")
    assistant_host: Optional[str] = Field(
        default=None,
        description="Explicit data-plane host; skips host discovery"
    )
    data: Optional[Dict[str, Any]] = Field(default=None, description="Action payload")

    @property
    def resolved_name(self) -> Optional[str]:
        return self.assistant_name or self.assistant_id


# ============================================================================
# Response Models
# ============================================================================

class SuccessEnvelope(BaseModel):
    """Successful action response."""
    success: bool = True
    type: str
    data: Any = None


class ErrorEnvelope(BaseModel):
    """Failed action response; details omitted when empty."""
    success: bool = False
    error: str
    details: Any = None


class DebugResponse(BaseModel):
    """API key presence check, never exposing the key itself."""
    hasKey: bool
    keyLength: int
    preview: Optional[str] = None
