#!/usr/bin/env python
"""
Proxy Smoke Test — One Action Against a Running Proxy

POSTs one action to /api/pinecone-assistant and prints the envelope.

Usage:
    python scripts/smoke_proxy.py --action listAssistants
    python scripts/smoke_proxy.py --action chat --assistant demo --message "hello"
    python scripts/smoke_proxy.py --action search --assistant demo --query "refund policy"
"""

import argparse
import json
import os
import sys

import requests


# API Configuration
API_BASE_URL = os.environ.get("API_URL", "http://localhost:8000")
PROXY_ENDPOINT = f"{API_BASE_URL}/api/pinecone-assistant"


def build_body(args: argparse.Namespace) -> dict:
    """Translate CLI flags into the proxy request body."""
    data = {}
    if args.message:
        data["message"] = args.message
    if args.query:
        data["query"] = args.query
    if args.file_id:
        data["file_id"] = args.file_id
    if args.top_k:
        data["top_k"] = args.top_k

    body = {"action": args.action, "data": data}
    if args.assistant:
        body["assistant_name"] = args.assistant
    if args.host:
        body["assistant_host"] = args.host
    return body


def send(body: dict, token: str = "") -> int:
    """POST the body and print the response. Returns a process exit code."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        response = requests.post(PROXY_ENDPOINT, json=body, headers=headers, timeout=60)
    except requests.exceptions.ConnectionError:
        print(f"[ERROR] Cannot connect to {PROXY_ENDPOINT}")
        print("       Make sure the proxy is running: uvicorn moneypenny.api.main:app")
        return 2

    print(f"[HTTP {response.status_code}]")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    return 0 if response.ok else 1


def main():
    parser = argparse.ArgumentParser(
        description="Send one action through the Pinecone Assistant proxy"
    )
    parser.add_argument("--action", "-a", required=True, help="Proxy action (e.g. chat, search)")
    parser.add_argument("--assistant", "-n", default="", help="Assistant name")
    parser.add_argument("--host", default="", help="Explicit assistant host (skips discovery)")
    parser.add_argument("--message", "-m", default="", help="Chat message")
    parser.add_argument("--query", "-q", default="", help="Search query")
    parser.add_argument("--file-id", default="", help="File id for deleteFile")
    parser.add_argument("--top-k", type=int, default=0, help="Snippet count for search")
    parser.add_argument(
        "--token",
        default=os.environ.get("MONEYPENNY_AUTH_TOKEN", ""),
        help="Bearer token (default: $MONEYPENNY_AUTH_TOKEN)"
    )

    args = parser.parse_args()
    sys.exit(send(build_body(args), args.token))


if __name__ == "__main__":
    main()
