"""HTTP session transport for kubemcp.

Exposes:
    create_app -- FastAPI factory serving the MCP endpoint behind bearer auth.
"""

from kubemcp.api.app import create_app

__all__ = ["create_app"]
