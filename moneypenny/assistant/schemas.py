"""
Action Result Models

Fixed output shapes for the actions whose upstream JSON is reshaped.
describeAssistant, listAssistants and listFiles pass upstream JSON through.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatResult(BaseModel):
    """Assistant reply with citations and token usage."""
    response: str = ""
    citations: List[Any] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)
    model: Optional[Any] = None


class SearchResult(BaseModel):
    """Context snippets retrieved for a query or conversation."""
    snippets: List[Any] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[Any] = None


class DeleteFileResult(BaseModel):
    deleted: bool = True
    file_id: str
