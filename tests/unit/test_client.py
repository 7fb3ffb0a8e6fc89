"""Tests for the HTTP client against the in-process ASGI app."""

from __future__ import annotations

import httpx
import pytest

from kubemcp.api.app import create_app
from kubemcp.client import MCPClientError, MCPHttpClient, ToolCallError, decode_result
from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.mcp.server import MCPServer
from kubemcp.models.config import ClientConfig
from tests.fakes import FakeKubeClient, make_namespace, make_node

TOKEN = "client-token"
URL = "http://testserver/mcp"


@pytest.fixture
def app_server() -> MCPServer:
    registry = ClusterRegistry()
    registry.register("dev", FakeKubeClient(objects=[make_node("n1"), make_namespace("default")]))  # type: ignore[arg-type]
    return MCPServer(registry)


def _client(server: MCPServer, token: str = TOKEN) -> MCPHttpClient:
    app = create_app(server=server, auth_token=TOKEN)
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return MCPHttpClient(ClientConfig(server_url=URL, auth_token=token), http_client=http)


class TestDecodeResult:
    def test_json_text(self) -> None:
        assert decode_result({"content": [{"type": "text", "text": '{"a": 1}'}]}) == {"a": 1}

    def test_plain_text(self) -> None:
        assert decode_result({"content": [{"type": "text", "text": "hello"}]}) == "hello"

    def test_is_error(self) -> None:
        with pytest.raises(ToolCallError, match="boom"):
            decode_result({"content": [{"type": "text", "text": "boom"}], "isError": True})

    def test_no_text(self) -> None:
        with pytest.raises(MCPClientError):
            decode_result({"content": []})


class TestMCPHttpClient:
    async def test_connect_opens_session(self, app_server: MCPServer) -> None:
        client = _client(app_server)
        result = await client.connect()
        assert result["protocolVersion"] == "2025-06-18"
        assert client.server_info["name"] == "kubemcp"
        assert client.session_id is not None
        await client.close()
        assert client.session_id is None

    async def test_list_and_call_tools(self, app_server: MCPServer) -> None:
        async with _client(app_server) as client:
            names = [t["name"] for t in await client.list_tools()]
            assert "list_nodes" in names
            result = await client.call_tool("list_nodes")
            assert decode_result(result) == {"nodes": "Nodes:\n  - n1 (Node) - Ready\n"}

    async def test_domain_failure_surfaces_as_tool_error(self, app_server: MCPServer) -> None:
        async with _client(app_server) as client:
            result = await client.call_tool("switch_cluster", {"cluster_name": "prod"})
            with pytest.raises(ToolCallError, match="Failed to switch to cluster prod"):
                decode_result(result)

    async def test_protocol_error_raised(self, app_server: MCPServer) -> None:
        async with _client(app_server) as client:
            with pytest.raises(MCPClientError) as info:
                await client.call_tool("no_such_tool")
            assert info.value.code == -32602

    async def test_bad_token(self, app_server: MCPServer) -> None:
        client = _client(app_server, token="wrong")
        with pytest.raises(MCPClientError, match="HTTP 401"):
            await client.connect()
        await client.close()

    async def test_request_without_session(self, app_server: MCPServer) -> None:
        client = _client(app_server)
        with pytest.raises(MCPClientError, match="HTTP 400"):
            await client.list_tools()
        await client.close()

    async def test_close_leaves_caller_http_client_open(self, app_server: MCPServer) -> None:
        app = create_app(server=app_server, auth_token=TOKEN)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as http:
            client = MCPHttpClient(ClientConfig(server_url=URL, auth_token=TOKEN), http_client=http)
            await client.connect()
            await client.close()
            assert not http.is_closed
            assert client.session_id is None

    async def test_close_releases_own_http_client(self) -> None:
        client = MCPHttpClient(ClientConfig(server_url=URL, auth_token=TOKEN))
        await client.close()
        assert client._http.is_closed
