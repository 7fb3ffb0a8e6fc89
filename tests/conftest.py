"""Shared fixtures: a registry with two fake clusters and a wired MCP server."""

from __future__ import annotations

import pytest

from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.k8s.resources import ResourceBridge
from kubemcp.mcp.server import MCPServer

from .fakes import FakeKubeClient, make_namespace, make_node, make_pod, make_secret, make_service, waiting


@pytest.fixture
def client_a() -> FakeKubeClient:
    return FakeKubeClient(
        objects=[
            make_pod("web-0"),
            make_pod("web-1", container_statuses=[waiting("CrashLoopBackOff")]),
            make_pod("api-0", namespace="backend"),
            make_service("web"),
            make_secret(),
            make_node("node-a1"),
            make_namespace("default"),
            make_namespace("backend"),
        ]
    )


@pytest.fixture
def client_b() -> FakeKubeClient:
    return FakeKubeClient(
        objects=[make_pod("batch-0", phase="Succeeded"), make_node("node-b1"), make_namespace("default")],
        version={"gitVersion": "v1.29.0", "platform": "linux/arm64", "buildDate": "2025-12-01T00:00:00Z"},
    )


@pytest.fixture
def registry(client_a: FakeKubeClient, client_b: FakeKubeClient) -> ClusterRegistry:
    reg = ClusterRegistry()
    reg.register("a", client_a)  # type: ignore[arg-type]
    reg.register("b", client_b)  # type: ignore[arg-type]
    return reg


@pytest.fixture
def bridge(registry: ClusterRegistry) -> ResourceBridge:
    return ResourceBridge(registry)


@pytest.fixture
def server(registry: ClusterRegistry) -> MCPServer:
    return MCPServer(registry, request_timeout=5.0)
