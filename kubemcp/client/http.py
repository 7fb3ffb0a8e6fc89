"""Session-aware MCP client for the HTTP transport."""

from __future__ import annotations

import itertools
import json
from types import TracebackType
from typing import Any

import httpx

from kubemcp.mcp.types import LATEST_PROTOCOL_VERSION
from kubemcp.models.config import ClientConfig
from kubemcp.observability.logging import get_logger

_log = get_logger("client.http")

_SESSION_HEADER = "Mcp-Session-Id"


class MCPClientError(Exception):
    """Transport failure or JSON-RPC error response."""

    def __init__(self, message: str, code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class ToolCallError(MCPClientError):
    """The tool ran but reported a domain failure (``isError``)."""


def decode_result(result: dict[str, Any]) -> Any:
    """Return the parsed JSON carried by a tool result's first text item.

    Raises:
        ToolCallError: when the result is flagged ``isError``.
        MCPClientError: when there is no text content to decode.
    """
    texts = [c.get("text", "") for c in result.get("content", []) if c.get("type") == "text"]
    if result.get("isError"):
        raise ToolCallError(texts[0] if texts else "tool call failed")
    if not texts:
        raise MCPClientError("tool result has no text content")
    try:
        return json.loads(texts[0])
    except json.JSONDecodeError:
        return texts[0]


def _parse_event_stream(body: str) -> dict[str, Any]:
    data_lines = [line[len("data:") :].strip() for line in body.splitlines() if line.startswith("data:")]
    if not data_lines:
        raise MCPClientError("empty event stream")
    return json.loads("\n".join(data_lines))  # type: ignore[no-any-return]


class MCPHttpClient:
    """Talks to one server; ``connect()`` must run before any other call.

    Args:
        config: Server URL, token and TLS settings.
        http_client: Optional pre-built httpx client (tests inject one with a
            mock or ASGI transport).
    """

    def __init__(self, config: ClientConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            verify=not config.insecure_skip_verify,
            timeout=config.timeout_seconds,
        )
        self._ids = itertools.count(1)
        self._session_id: str | None = None
        self.server_info: dict[str, Any] = {}

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._config.auth_token}",
            "User-Agent": self._config.user_agent,
            "Accept": "application/json, text/event-stream",
            "Content-Type": "application/json",
            **self._config.headers,
        }
        if self._session_id:
            headers[_SESSION_HEADER] = self._session_id
        return headers

    async def _post(self, message: dict[str, Any]) -> httpx.Response:
        try:
            response = await self._http.post(self._config.server_url, json=message, headers=self._headers())
        except httpx.HTTPError as exc:
            raise MCPClientError(f"request to {self._config.server_url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise MCPClientError(f"server returned HTTP {response.status_code}: {response.text}")
        return response

    async def request(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send one request and return its ``result``."""
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            message["params"] = params
        response = await self._post(message)
        if response.headers.get("content-type", "").startswith("text/event-stream"):
            envelope = _parse_event_stream(response.text)
        else:
            envelope = response.json()
        if "error" in envelope:
            error = envelope["error"]
            raise MCPClientError(error.get("message", "error"), code=error.get("code"), data=error.get("data"))
        if method == "initialize" and _SESSION_HEADER.lower() in response.headers:
            self._session_id = response.headers[_SESSION_HEADER.lower()]
        return envelope.get("result", {})  # type: ignore[no-any-return]

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        await self._post(message)

    async def connect(self) -> dict[str, Any]:
        """Run the initialize handshake and open a session."""
        result = await self.request(
            "initialize",
            {
                "protocolVersion": LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": "kubemcp-client", "version": self._config.user_agent.rsplit("/", 1)[-1]},
            },
        )
        await self.notify("notifications/initialized")
        self.server_info = result.get("serverInfo", {})
        _log.debug("client_connected", server=self.server_info.get("name"), session_id=self._session_id)
        return result

    async def list_tools(self) -> list[dict[str, Any]]:
        result = await self.request("tools/list", {})
        return list(result.get("tools", []))

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("tools/call", {"name": name, "arguments": arguments or {}})

    async def close(self) -> None:
        """End the server session (best effort) and release an owned HTTP client."""
        try:
            if self._session_id:
                await self._http.delete(self._config.server_url, headers=self._headers())
        except httpx.HTTPError as exc:
            _log.debug("session_delete_failed", error=str(exc))
        finally:
            self._session_id = None
            if self._owns_http:
                await self._http.aclose()

    async def __aenter__(self) -> MCPHttpClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
