"""Shared fixtures for kubemcp integration tests.

Provides an MCP server wired to two fake clusters plus an in-memory
stdio channel, so integration tests can drive full request/response
exchanges without touching real Kubernetes clusters or real pipes.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.mcp.server import MCPServer
from kubemcp.mcp.transport import StreamTransport
from tests.fakes import (
    FakeKubeClient,
    make_configmap,
    make_deployment,
    make_event,
    make_namespace,
    make_node,
    make_pod,
    make_secret,
    make_service,
    terminated,
    waiting,
)

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 0,
    "method": "initialize",
    "params": {
        "protocolVersion": "2025-06-18",
        "capabilities": {},
        "clientInfo": {"name": "integration", "version": "1.0"},
    },
}
INITIALIZED = {"jsonrpc": "2.0", "method": "notifications/initialized"}


# ---------------------------------------------------------------------------
# In-memory stdio channel
# ---------------------------------------------------------------------------


class BufferWriter:
    """StreamWriter stand-in that records every frame written."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True

    def frames(self) -> list[str]:
        return [line for line in self.buffer.decode("utf-8").split("\n") if line]

    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.frames()]


async def run_stdio_session(server: MCPServer, *messages: dict[str, Any] | str) -> BufferWriter:
    """Feed ``messages`` as NDJSON lines, serve until EOF, return the output."""
    reader = asyncio.StreamReader()
    for message in messages:
        line = message if isinstance(message, str) else json.dumps(message)
        reader.feed_data(line.encode("utf-8") + b"\n")
    reader.feed_eof()
    writer = BufferWriter()
    await server.start(StreamTransport(reader, writer))  # type: ignore[arg-type]
    return writer


def tool_call(request_id: int, name: str, /, **arguments: Any) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


# ---------------------------------------------------------------------------
# Clusters
# ---------------------------------------------------------------------------


@pytest.fixture
def prod_client() -> FakeKubeClient:
    return FakeKubeClient(
        objects=[
            make_pod("web-0"),
            make_pod("web-1", container_statuses=[waiting("ImagePullBackOff")]),
            make_pod("job-0", namespace="batch", phase="Failed", container_statuses=[terminated(137, "OOMKilled")]),
            make_service("web", svc_type="LoadBalancer"),
            make_deployment("web", ready=1, replicas=2),
            make_configmap("settings", keys=3),
            make_secret("db-creds"),
            make_event("web-1.a1", reason="Failed"),
            make_node("prod-n1"),
            make_node("prod-n2", ready="False"),
            make_namespace("default"),
            make_namespace("batch"),
        ],
        log_chunks=[b"starting\n", b"listening on :8080\n"],
    )


@pytest.fixture
def staging_client() -> FakeKubeClient:
    return FakeKubeClient(
        objects=[make_pod("canary-0", namespace="default"), make_node("stg-n1"), make_namespace("default")],
        version={"gitVersion": "v1.31.0", "platform": "linux/arm64", "buildDate": "2026-03-01T00:00:00Z"},
        allowed=False,
    )


@pytest.fixture
def clusters(prod_client: FakeKubeClient, staging_client: FakeKubeClient) -> ClusterRegistry:
    registry = ClusterRegistry()
    registry.register("prod", prod_client)  # type: ignore[arg-type]
    registry.register("staging", staging_client)  # type: ignore[arg-type]
    return registry


@pytest.fixture
def mcp_server(clusters: ClusterRegistry) -> MCPServer:
    return MCPServer(clusters, request_timeout=5.0)
