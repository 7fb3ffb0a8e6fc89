"""MCP (Model Context Protocol) server for kubemcp.

Exposes:
    MCPServer -- dispatcher plus tool, resource and prompt catalogs; serves
                 newline-delimited JSON-RPC over stdio or sits behind the
                 HTTP session transport.
"""

from kubemcp.mcp.server import MCPServer

__all__ = ["MCPServer"]
