"""
Action Router Tests

Tests verify:
- Validation happens before any network call
- Chat/search payload construction and result shaping
- deleteFile acknowledges 200 and 204 without parsing the body
- Control-plane actions pass upstream JSON through
- store is a 501 stub
"""

import asyncio
import json

import pytest

from moneypenny.assistant import (
    NotImplementedActionError,
    SUPPORTED_ACTIONS,
    UpstreamError,
    ValidationError,
    build_chat_messages,
    build_chat_payload,
    build_search_payload,
)

from conftest import CONTROL_PLANE, DATA_PLANE_BASE, describe_reply


DESCRIBE_DEMO = f"{CONTROL_PLANE}/assistant/assistants/demo"


def run(router, action, name="demo", data=None, host=None):
    return asyncio.run(router.run(action, assistant_name=name, data=data, assistant_host=host))


class TestChatPayload:
    """Message list and defaults."""

    def test_single_message_no_context(self):
        assert build_chat_messages([], "hello") == [{"role": "user", "content": "hello"}]

    def test_context_then_message(self):
        context = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello there"},
        ]
        
        messages = build_chat_messages(context, "what next?")
        
        assert messages == context + [{"role": "user", "content": "what next?"}]

    def test_missing_message_omitted(self):
        context = [{"role": "user", "content": "hi"}]
        
        assert build_chat_messages(context, None) == context
        assert build_chat_messages(None, "") == []

    def test_defaults(self):
        payload = build_chat_payload({"message": "hello"})
        
        assert payload == {
            "messages": [{"role": "user", "content": "hello"}],
            "model": "gpt-4o",
            "temperature": 0,
            "stream": False,
            "include_highlights": False,
        }

    def test_optional_fields_forwarded(self):
        payload = build_chat_payload({
            "message": "hello",
            "model": "claude-3-5-sonnet",
            "temperature": 0.7,
            "filter": {"genre": "fiction"},
            "json_response": True,
            "include_highlights": True,
            "context_options": {"top_k": 5},
            "top_k": 3,
        })
        
        assert payload["model"] == "claude-3-5-sonnet"
        assert payload["temperature"] == 0.7
        assert payload["filter"] == {"genre": "fiction"}
        assert payload["json_response"] is True
        assert payload["include_highlights"] is True
        assert payload["context_options"] == {"top_k": 5}
        assert payload["top_k"] == 3

    def test_stream_never_proxied(self):
        assert build_chat_payload({"message": "x", "stream": True})["stream"] is False


class TestSearchPayload:

    def test_messages_win_over_query(self):
        messages = [{"role": "user", "content": "q from messages"}]
        
        payload = build_search_payload({"messages": messages, "query": "ignored"})
        
        assert payload["messages"] == messages
        assert "query" not in payload

    def test_empty_messages_fall_back_to_query(self):
        payload = build_search_payload({"messages": [], "query": "pricing"})
        
        assert payload == {"query": "pricing", "top_k": 10}

    def test_neither_fails_validation(self):
        with pytest.raises(ValidationError):
            build_search_payload({})

    def test_filter_and_top_k(self):
        payload = build_search_payload({"query": "q", "filter": {"a": 1}, "top_k": 3})
        
        assert payload == {"query": "q", "filter": {"a": 1}, "top_k": 3}


class TestValidation:
    """All validation precedes network I/O."""

    def test_unknown_action_lists_supported(self, action_router, upstream):
        with pytest.raises(ValidationError) as exc_info:
            run(action_router, "upsert")
        
        assert exc_info.value.message == "Invalid action"
        assert exc_info.value.details == {"supported_actions": SUPPORTED_ACTIONS}
        assert upstream.requests == []

    def test_missing_action(self, action_router, upstream):
        with pytest.raises(ValidationError):
            run(action_router, None)

    @pytest.mark.parametrize("action", ["chat", "search", "describeAssistant", "listFiles", "deleteFile"])
    def test_name_required(self, action_router, upstream, action):
        with pytest.raises(ValidationError) as exc_info:
            run(action_router, action, name=None, data={"message": "x", "query": "x", "file_id": "f"})
        
        assert exc_info.value.message == "assistant_name is required"
        assert exc_info.value.status == 400
        assert upstream.requests == []

    def test_delete_requires_file_id(self, action_router, upstream):
        with pytest.raises(ValidationError) as exc_info:
            run(action_router, "deleteFile", data={})
        
        assert exc_info.value.message == "file_id is required"
        assert upstream.requests == []

    def test_search_without_query_no_network(self, action_router, upstream):
        with pytest.raises(ValidationError):
            run(action_router, "search", data={"top_k": 5})
        
        assert upstream.requests == []


class TestChatAction:

    def test_chat_scenario(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("POST", f"{DATA_PLANE_BASE}/chat/demo", json={"message": {"content": "hi"}})
        
        result = run(action_router, "chat", data={"message": "hello"})
        
        assert result == {"response": "hi", "citations": [], "usage": {}, "model": None}
        assert len(upstream.calls("GET")) == 1
        
        sent = upstream.json_body()
        assert sent["messages"] == [{"role": "user", "content": "hello"}]
        assert sent["model"] == "gpt-4o"
        assert sent["temperature"] == 0

    def test_chat_maps_full_response(self, action_router, upstream):
        upstream.add("POST", "https://custom.example.com/assistant/chat/demo", json={
            "id": "resp-1",
            "model": "gpt-4o-2024-05-13",
            "message": {"role": "assistant", "content": "Answer"},
            "citations": [{"position": 3, "references": []}],
            "usage": {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12},
        })
        
        result = run(action_router, "chat", data={"message": "q"}, host="custom.example.com")
        
        assert result["response"] == "Answer"
        assert result["model"] == "gpt-4o-2024-05-13"
        assert result["citations"] == [{"position": 3, "references": []}]
        assert result["usage"]["total_tokens"] == 12
        # Explicit host: no discovery call
        assert len(upstream.requests) == 1

    def test_chat_upstream_failure_propagates(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("POST", f"{DATA_PLANE_BASE}/chat/demo", status=400, json={"error": "bad model"})
        
        with pytest.raises(UpstreamError) as exc_info:
            run(action_router, "chat", data={"message": "q", "model": "nope"})
        
        assert exc_info.value.status == 400


class TestSearchAction:

    def test_search_posts_to_context(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("POST", f"{DATA_PLANE_BASE}/chat/demo/context", json={
            "id": "ctx-1",
            "snippets": [{"type": "text", "content": "refund policy", "score": 0.9}],
            "usage": {"prompt_tokens": 40},
        })
        
        result = run(action_router, "search", data={"query": "refunds"})
        
        assert result == {
            "snippets": [{"type": "text", "content": "refund policy", "score": 0.9}],
            "usage": {"prompt_tokens": 40},
            "id": "ctx-1",
        }
        assert upstream.json_body() == {"query": "refunds", "top_k": 10}

    def test_search_defaults_for_missing_fields(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("POST", f"{DATA_PLANE_BASE}/chat/demo/context", json={})
        
        assert run(action_router, "search", data={"query": "q"}) == {"snippets": [], "usage": {}, "id": None}


class TestMalformedUpstreamReplies:
    """Non-object 2xx bodies fail as UpstreamError, not a crash."""

    @pytest.mark.parametrize("reply", [
        {"json": ["not", "an", "object"]},
        {"json": "just a string"},
        {"content": b"<html>gateway</html>"},
    ])
    def test_chat_non_object_body(self, action_router, upstream, reply):
        upstream.add("POST", "https://custom.example.com/assistant/chat/demo", **reply)
        
        with pytest.raises(UpstreamError) as exc_info:
            run(action_router, "chat", data={"message": "q"}, host="custom.example.com")
        
        assert exc_info.value.status == 502
        assert exc_info.value.message.startswith("Malformed upstream response")

    def test_search_non_object_body(self, action_router, upstream):
        upstream.add("POST", "https://custom.example.com/assistant/chat/demo/context", json=[1, 2])
        
        with pytest.raises(UpstreamError):
            run(action_router, "search", data={"query": "q"}, host="custom.example.com")

    def test_chat_odd_field_types_tolerated(self, action_router, upstream):
        upstream.add("POST", "https://custom.example.com/assistant/chat/demo", json={
            "message": "not a dict",
            "citations": {"oops": 1},
            "usage": [],
            "model": 4,
        })
        
        result = run(action_router, "chat", data={"message": "q"}, host="custom.example.com")
        
        assert result == {"response": "", "citations": [], "usage": {}, "model": 4}

    def test_search_numeric_id_kept(self, action_router, upstream):
        upstream.add("POST", "https://custom.example.com/assistant/chat/demo/context", json={"id": 42})
        
        result = run(action_router, "search", data={"query": "q"}, host="custom.example.com")
        
        assert result == {"snippets": [], "usage": {}, "id": 42}


class TestAdminActions:

    def test_describe_passthrough(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        
        assert run(action_router, "describeAssistant") == describe_reply()

    def test_list_assistants_without_name(self, action_router, upstream):
        listing = {"assistants": [{"name": "demo"}, {"name": "support"}]}
        upstream.add("GET", f"{CONTROL_PLANE}/assistant/assistants", json=listing)
        
        assert run(action_router, "listAssistants", name=None) == listing

    def test_list_assistants_page_token(self, action_router, upstream):
        upstream.add("GET", f"{CONTROL_PLANE}/assistant/assistants", json={"assistants": []})
        
        run(action_router, "listAssistants", name=None, data={"page_token": "abc"})
        
        assert upstream.requests[0].url.params["page_token"] == "abc"


class TestFileActions:

    def test_list_files_filter_json_encoded(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("GET", f"{DATA_PLANE_BASE}/files/demo", json={"files": []})
        
        result = run(action_router, "listFiles", data={"filter": {"document_type": "manual"}})
        
        assert result == {"files": []}
        sent = upstream.calls(path="/assistant/files/demo")[0]
        assert json.loads(sent.url.params["filter"]) == {"document_type": "manual"}

    def test_list_files_without_filter_has_no_query(self, action_router, upstream):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("GET", f"{DATA_PLANE_BASE}/files/demo", json={"files": []})
        
        run(action_router, "listFiles")
        
        assert upstream.calls(path="/assistant/files/demo")[0].url.query == b""

    @pytest.mark.parametrize("status,reply", [
        (200, {"json": {"whatever": True}}),
        (200, {"content": b"not json"}),
        (204, {}),
    ])
    def test_delete_acknowledged(self, action_router, upstream, status, reply):
        upstream.add("GET", DESCRIBE_DEMO, json=describe_reply())
        upstream.add("DELETE", f"{DATA_PLANE_BASE}/files/demo/file-123", status=status, **reply)
        
        result = run(action_router, "deleteFile", data={"file_id": "file-123"})
        
        assert result == {"deleted": True, "file_id": "file-123"}
        assert upstream.calls("DELETE")[0].url.path == "/assistant/files/demo/file-123"


class TestStoreAction:

    def test_store_not_implemented(self, action_router, upstream):
        with pytest.raises(NotImplementedActionError) as exc_info:
            run(action_router, "store", name=None, data={"file": "x"})
        
        assert exc_info.value.status == 501
        assert exc_info.value.details["upload_supported"] is False
        assert upstream.requests == []
