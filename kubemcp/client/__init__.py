"""HTTP client for a kubemcp server.

Exposes:
    MCPHttpClient -- session-aware JSON-RPC client over httpx.
    decode_result -- parse a tool result's JSON text payload.
"""

from kubemcp.client.http import MCPClientError, MCPHttpClient, ToolCallError, decode_result

__all__ = ["MCPClientError", "MCPHttpClient", "ToolCallError", "decode_result"]
