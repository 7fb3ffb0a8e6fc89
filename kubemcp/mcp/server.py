"""MCP server: handshake, method table, and the stdio serving loop."""

from __future__ import annotations

from typing import Any

from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.k8s.resources import ResourceBridge
from kubemcp.mcp.dispatcher import Dispatcher, Route
from kubemcp.mcp.prompts import PromptCatalog
from kubemcp.mcp.resources import ResourceCatalog
from kubemcp.mcp.tools import ToolSet
from kubemcp.mcp.transport import Transport, open_stdio_transport, serve
from kubemcp.mcp.types import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    CallToolParams,
    EmptyParams,
    EmptyResult,
    GetPromptParams,
    Implementation,
    InitializeParams,
    InitializeResult,
    ListChangedCapability,
    ReadResourceParams,
    ResourcesCapability,
    ServerCapabilities,
)
from kubemcp.observability.logging import get_logger

_log = get_logger("mcp.server")

SERVER_NAME = "kubemcp"

_INSTRUCTIONS = (
    "Read-only access to Kubernetes clusters. Use list_clusters and switch_cluster to choose a "
    "cluster, list_* and get_resource to inspect objects, get_pod_logs for container output, and "
    "check_rbac_permission to test access. Secret payloads are always redacted."
)


def negotiate_version(requested: str) -> str:
    """Echo a supported client version, else answer with the latest.

    Mismatches are logged and tolerated; the client decides whether to proceed.
    """
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    _log.warning(
        "protocol_version_mismatch",
        requested=requested,
        supported=list(SUPPORTED_PROTOCOL_VERSIONS),
        responding_with=LATEST_PROTOCOL_VERSION,
    )
    return LATEST_PROTOCOL_VERSION


class MCPServer:
    """Owns the dispatcher and every catalog for one process.

    Args:
        registry: Cluster registry shared by every session.
        request_timeout: Per tool-call deadline in seconds; 0 disables it.
        prompt_language: Optional response language for prompt templates.
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        request_timeout: float = 0.0,
        prompt_language: str = "",
    ) -> None:
        from kubemcp import __version__

        self.registry = registry
        self.bridge = ResourceBridge(registry)
        self.tools = ToolSet(self.bridge, timeout_seconds=request_timeout)
        self.resources = ResourceCatalog(self.bridge)
        self.prompts = PromptCatalog(registry, language=prompt_language)
        self._version = __version__
        self.dispatcher = Dispatcher(self._routes())
        self._transport: Transport | None = None

    def _routes(self) -> dict[str, Route]:
        return {
            "initialize": Route(self._initialize, InitializeParams),
            "notifications/initialized": Route(self._ack),
            "notifications/cancelled": Route(self._ack),
            "ping": Route(self._ping),
            "tools/list": Route(self._list_tools),
            "tools/call": Route(self.tools.call, CallToolParams),
            "resources/list": Route(self._list_resources),
            "resources/templates/list": Route(self._list_resource_templates),
            "resources/read": Route(self.resources.read, ReadResourceParams),
            "prompts/list": Route(self._list_prompts),
            "prompts/get": Route(self.prompts.get, GetPromptParams),
        }

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        return await self.dispatcher.dispatch(message)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _initialize(self, params: InitializeParams) -> InitializeResult:
        version = negotiate_version(params.protocol_version)
        client = params.client_info
        _log.info(
            "client_initialized",
            client=client.name if client else "",
            client_version=client.version if client else "",
            protocol_version=version,
        )
        return InitializeResult(
            protocol_version=version,
            capabilities=ServerCapabilities(
                tools=ListChangedCapability(),
                resources=ResourcesCapability(),
                prompts=ListChangedCapability(),
            ),
            server_info=Implementation(name=SERVER_NAME, title="Kubernetes MCP Server", version=self._version),
            instructions=_INSTRUCTIONS,
        )

    async def _ack(self, _params: EmptyParams) -> EmptyResult:
        return EmptyResult()

    async def _ping(self, _params: EmptyParams) -> EmptyResult:
        return EmptyResult()

    async def _list_tools(self, _params: EmptyParams) -> Any:
        return self.tools.list_tools()

    async def _list_resources(self, _params: EmptyParams) -> Any:
        return self.resources.list_resources()

    async def _list_resource_templates(self, _params: EmptyParams) -> Any:
        return self.resources.list_templates()

    async def _list_prompts(self, _params: EmptyParams) -> Any:
        return self.prompts.list_prompts()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, transport: Transport | None = None) -> None:
        """Serve over ``transport`` (stdio by default) until end of stream."""
        self._transport = transport or await open_stdio_transport()
        _log.info("mcp_server_serving", tools=len(self.tools.list_tools().tools))
        try:
            await serve(self._transport, self.dispatcher)
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._transport is not None:
            transport, self._transport = self._transport, None
            await transport.close()
