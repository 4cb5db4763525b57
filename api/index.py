"""
Vercel Serverless Function Entry Point

Exposes the assistant proxy to Vercel's Python runtime, which picks up
the ASGI 'app' defined here. Routes served:
- POST /api/pinecone-assistant  (action proxy)
- GET  /api/debug               (API key presence check)
"""

import sys
from pathlib import Path

# Project root on sys.path so the moneypenny package resolves
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from moneypenny.api.main import app

handler = app
