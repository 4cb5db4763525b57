"""
Action Router — Validated Actions → Upstream Calls

Each supported action validates its inputs, resolves the assistant's
base URL, issues exactly one upstream call through the Dispatcher and
shapes the JSON it gets back.

Supported actions:
- chat              → POST {base}/chat/{name}
- search            → POST {base}/chat/{name}/context
- describeAssistant → GET  {control}/assistant/assistants/{name}
- listAssistants    → GET  {control}/assistant/assistants
- listFiles         → GET  {base}/files/{name}
- deleteFile        → DELETE {base}/files/{name}/{file_id}
- store             → 501 (uploads go through the Pinecone console)

All validation happens before any network call.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

from .dispatcher import Dispatcher, read_response_body
from .errors import NotImplementedActionError, UpstreamError, ValidationError
from .resolver import HostResolver, assistant_describe_url
from .schemas import ChatResult, DeleteFileResult, SearchResult


logger = logging.getLogger(__name__)


# ============================================================================
# Action Constants
# ============================================================================

ACTION_CHAT = "chat"
ACTION_SEARCH = "search"
ACTION_DESCRIBE_ASSISTANT = "describeAssistant"
ACTION_LIST_ASSISTANTS = "listAssistants"
ACTION_LIST_FILES = "listFiles"
ACTION_DELETE_FILE = "deleteFile"
ACTION_STORE = "store"

SUPPORTED_ACTIONS = [
    ACTION_CHAT,
    ACTION_SEARCH,
    ACTION_DESCRIBE_ASSISTANT,
    ACTION_LIST_ASSISTANTS,
    ACTION_LIST_FILES,
    ACTION_DELETE_FILE,
    ACTION_STORE,
]

# Actions that can run without an assistant name
NAME_OPTIONAL_ACTIONS = {ACTION_LIST_ASSISTANTS, ACTION_STORE}

DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0
DEFAULT_SEARCH_TOP_K = 10
DELETE_ACK_STATUSES = {200, 204}
MALFORMED_RESPONSE_STATUS = 502

STORE_NOT_IMPLEMENTED_MESSAGE = (
    "File upload temporarily disabled. Upload files through Pinecone console."
)
STORE_LIMITS = {
    "upload_supported": False,
    "upload_via": "Pinecone console",
    "note": "PDF support coming soon",
}


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _json_object(response) -> Dict[str, Any]:
    """
    Parse a 2xx response body that must be a JSON object.
    
    Raises:
        UpstreamError: Body is not JSON or not an object (502)
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise UpstreamError(
            MALFORMED_RESPONSE_STATUS,
            "Malformed upstream response: expected a JSON object",
            url=str(response.request.url),
            body=read_response_body(response),
        )
    return body


def _list_or_empty(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _dict_or_empty(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def build_chat_messages(
    context: Optional[List[Dict[str, Any]]],
    message: Optional[str],
) -> List[Dict[str, Any]]:
    """Prior turns followed by the current user message (omitted if empty)."""
    messages = list(context or [])
    if message:
        messages.append({"role": "user", "content": message})
    return messages


def build_chat_payload(data: Dict[str, Any], default_model: str = DEFAULT_CHAT_MODEL) -> Dict[str, Any]:
    """
    Build the upstream chat request body.
    
    stream is accepted from callers but always sent as False: responses
    are returned whole, never proxied as a stream.
    """
    temperature = data.get("temperature")
    payload: Dict[str, Any] = {
        "messages": build_chat_messages(data.get("context"), data.get("message")),
        "model": data.get("model") or default_model,
        "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        "stream": False,
        "include_highlights": bool(data.get("include_highlights", False)),
    }
    if data.get("filter"):
        payload["filter"] = data["filter"]
    if data.get("json_response"):
        payload["json_response"] = True
    if data.get("context_options"):
        payload["context_options"] = data["context_options"]
    if data.get("top_k") is not None:
        payload["top_k"] = data["top_k"]
    return payload


def build_search_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the upstream context-search body.
    
    A non-empty `messages` list wins over `query`.
    
    Raises:
        ValidationError: Neither messages nor query supplied
    """
    messages = data.get("messages")
    query = data.get("query")
    if messages:
        payload: Dict[str, Any] = {"messages": messages}
    elif query:
        payload = {"query": query}
    else:
        raise ValidationError("search: provide 'query' or 'messages'")

    if data.get("filter"):
        payload["filter"] = data["filter"]
    top_k = data.get("top_k", DEFAULT_SEARCH_TOP_K)
    if top_k:
        payload["top_k"] = top_k
    if data.get("context_options"):
        payload["context_options"] = data["context_options"]
    return payload


class ActionRouter:
    """
    Dispatches a validated action to its upstream call.
    
    Args:
        dispatcher: Shared Dispatcher (retry + error enrichment)
        resolver: HostResolver backed by the process-wide host cache
        control_plane_url: Root of the control-plane API
        default_model: Chat model used when the caller omits one
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        resolver: HostResolver,
        control_plane_url: str,
        default_model: str = DEFAULT_CHAT_MODEL,
    ):
        self.dispatcher = dispatcher
        self.resolver = resolver
        self.control_plane_url = control_plane_url.rstrip("/")
        self.default_model = default_model
        self._handlers: Dict[str, Callable[..., Awaitable[Any]]] = {
            ACTION_CHAT: self.chat,
            ACTION_SEARCH: self.search,
            ACTION_DESCRIBE_ASSISTANT: self.describe_assistant,
            ACTION_LIST_ASSISTANTS: self.list_assistants,
            ACTION_LIST_FILES: self.list_files,
            ACTION_DELETE_FILE: self.delete_file,
            ACTION_STORE: self.store,
        }

    async def run(
        self,
        action: Optional[str],
        assistant_name: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        assistant_host: Optional[str] = None,
    ) -> Any:
        """
        Validate and execute one action.
        
        Returns:
            Action-specific result (see module docstring)
            
        Raises:
            ValidationError: Unknown action or missing required field
            NotImplementedActionError: action == "store"
            UpstreamError / MissingHostError: upstream failure
        """
        handler = self._handlers.get(action or "")
        if handler is None:
            raise ValidationError(
                "Invalid action",
                details={"supported_actions": list(SUPPORTED_ACTIONS)},
            )
        if action not in NAME_OPTIONAL_ACTIONS and not assistant_name:
            raise ValidationError("assistant_name is required")

        logger.info(f"[ActionRouter] {action} assistant={assistant_name or '-'}")
        return await handler(assistant_name, data or {}, assistant_host)

    # ------------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------------

    async def chat(self, name: str, data: Dict[str, Any], host: Optional[str] = None) -> Dict[str, Any]:
        payload = build_chat_payload(data, self.default_model)
        base = await self.resolver.resolve_base(name, host)
        response = await self.dispatcher.dispatch(
            "POST", f"{base}/chat/{_segment(name)}", json=payload
        )
        body = _json_object(response)
        content = _dict_or_empty(body.get("message")).get("content")
        return ChatResult(
            response=content if isinstance(content, str) else "",
            citations=_list_or_empty(body.get("citations")),
            usage=_dict_or_empty(body.get("usage")),
            model=body.get("model"),
        ).model_dump()

    async def search(self, name: str, data: Dict[str, Any], host: Optional[str] = None) -> Dict[str, Any]:
        payload = build_search_payload(data)
        base = await self.resolver.resolve_base(name, host)
        response = await self.dispatcher.dispatch(
            "POST", f"{base}/chat/{_segment(name)}/context", json=payload
        )
        body = _json_object(response)
        return SearchResult(
            snippets=_list_or_empty(body.get("snippets")),
            usage=_dict_or_empty(body.get("usage")),
            id=body.get("id"),
        ).model_dump()

    # ------------------------------------------------------------------
    # Admin (control plane)
    # ------------------------------------------------------------------

    async def describe_assistant(self, name: str, data: Dict[str, Any], host: Optional[str] = None) -> Any:
        response = await self.dispatcher.dispatch(
            "GET", assistant_describe_url(self.control_plane_url, name)
        )
        return response.json()

    async def list_assistants(self, name: Optional[str], data: Dict[str, Any], host: Optional[str] = None) -> Any:
        params = {"page_token": data["page_token"]} if data.get("page_token") else None
        response = await self.dispatcher.dispatch(
            "GET", f"{self.control_plane_url}/assistant/assistants", params=params
        )
        return response.json()

    # ------------------------------------------------------------------
    # File management (no upload)
    # ------------------------------------------------------------------

    async def list_files(self, name: str, data: Dict[str, Any], host: Optional[str] = None) -> Any:
        params: Dict[str, str] = {}
        if data.get("filter"):
            params["filter"] = json.dumps(data["filter"], separators=(",", ":"))
        if data.get("page_token"):
            params["page_token"] = data["page_token"]

        base = await self.resolver.resolve_base(name, host)
        response = await self.dispatcher.dispatch(
            "GET", f"{base}/files/{_segment(name)}", params=params or None
        )
        return response.json()

    async def delete_file(self, name: str, data: Dict[str, Any], host: Optional[str] = None) -> Any:
        file_id = data.get("file_id")
        if not file_id:
            raise ValidationError("file_id is required")

        base = await self.resolver.resolve_base(name, host)
        response = await self.dispatcher.dispatch(
            "DELETE", f"{base}/files/{_segment(name)}/{_segment(file_id)}"
        )
        if response.status_code in DELETE_ACK_STATUSES:
            return DeleteFileResult(file_id=str(file_id)).model_dump()
        return read_response_body(response)

    async def store(self, name: Optional[str], data: Dict[str, Any], host: Optional[str] = None) -> Any:
        raise NotImplementedActionError(STORE_NOT_IMPLEMENTED_MESSAGE, details=STORE_LIMITS)
