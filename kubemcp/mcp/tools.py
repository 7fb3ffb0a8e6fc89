"""Tool handlers.

A handler returns the tool's output object.  Domain failures become
``isError`` results so the assistant can read them; only unknown tools and
malformed arguments are protocol errors.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from kubemcp.errors import KubeMCPError
from kubemcp.k8s.resources import ResourceBridge, ResourceType, format_listing
from kubemcp.mcp.catalog import (
    TOOL_SPECS,
    TOOLS_BY_NAME,
    ClusterArgs,
    ListResourcesArgs,
    NamespaceArgs,
    NoArgs,
    PodLogsArgs,
    RBACArgs,
    ResourceArgs,
    SwitchClusterArgs,
)
from kubemcp.mcp.errors import ErrorCode, ProtocolError
from kubemcp.mcp.types import CallToolParams, CallToolResult, ListToolsResult, TextContent
from kubemcp.observability.logging import get_logger
from kubemcp.observability.metrics import tool_call_duration_seconds, tool_calls_total

_log = get_logger("mcp.tools")

_DEFAULT_NAMESPACE = "default"


def error_result(message: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(text=message)], is_error=True)


def output_result(output: dict[str, Any]) -> CallToolResult:
    text = json.dumps(output, indent=2, ensure_ascii=False)
    return CallToolResult(content=[TextContent(text=text)], structured_content=output)


class ToolSet:
    """Binds the static tool catalog to a resource bridge.

    Args:
        bridge: Resource bridge used by every handler.
        timeout_seconds: Deadline for one tool call; 0 disables it.
    """

    def __init__(self, bridge: ResourceBridge, timeout_seconds: float = 0.0) -> None:
        self._bridge = bridge
        self._registry = bridge.registry
        self._timeout = timeout_seconds or None
        self._handlers: dict[str, Callable[[Any], Awaitable[dict[str, Any]]]] = {
            "get_cluster_status": self._get_cluster_status,
            "list_pods": self._listing(ResourceType.POD, "pods"),
            "list_services": self._listing(ResourceType.SERVICE, "services"),
            "list_deployments": self._listing(ResourceType.DEPLOYMENT, "deployments"),
            "list_nodes": self._cluster_listing(ResourceType.NODE, "nodes"),
            "list_namespaces": self._cluster_listing(ResourceType.NAMESPACE, "namespaces"),
            "get_resource": self._get_resource,
            "get_resource_yaml": self._get_resource_yaml,
            "get_events": self._listing(ResourceType.EVENT, "events"),
            "get_pod_logs": self._get_pod_logs,
            "check_rbac_permission": self._check_rbac_permission,
            "list_clusters": self._list_clusters,
            "switch_cluster": self._switch_cluster,
            "get_current_cluster": self._get_current_cluster,
            "list_resources": self._list_resources,
            "describe_resource": self._describe_resource,
        }
        missing = {spec.name for spec in TOOL_SPECS} - self._handlers.keys()
        if missing:
            raise RuntimeError(f"tools without handlers: {sorted(missing)}")

    def list_tools(self) -> ListToolsResult:
        return ListToolsResult(tools=[spec.descriptor() for spec in TOOL_SPECS])

    async def call(self, params: CallToolParams) -> CallToolResult:
        spec = TOOLS_BY_NAME.get(params.name)
        if spec is None:
            raise ProtocolError(ErrorCode.INVALID_PARAMS, f"Unknown tool: {params.name}", data=params.name)
        try:
            args = spec.args_model.model_validate(params.arguments)
        except ValidationError as exc:
            raise ProtocolError(
                ErrorCode.INVALID_PARAMS,
                f"Invalid arguments for tool {params.name}",
                data=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc

        start = time.perf_counter()
        try:
            output = await asyncio.wait_for(self._handlers[spec.name](args), timeout=self._timeout)
        except KubeMCPError as exc:
            _log.warning("tool_call_failed", tool=spec.name, error=str(exc))
            tool_calls_total.labels(tool=spec.name, outcome="error").inc()
            return error_result(str(exc))
        except TimeoutError:
            _log.warning("tool_call_timed_out", tool=spec.name, timeout=self._timeout)
            tool_calls_total.labels(tool=spec.name, outcome="timeout").inc()
            return error_result(f"{spec.name} timed out after {self._timeout:g}s")
        finally:
            tool_call_duration_seconds.labels(tool=spec.name).observe(time.perf_counter() - start)

        tool_calls_total.labels(tool=spec.name, outcome="ok").inc()
        return output_result(output)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _get_cluster_status(self, args: ClusterArgs) -> dict[str, Any]:
        return {"status": await self._bridge.cluster_status_text(args.cluster_name)}

    def _listing(self, rtype: ResourceType, field: str) -> Callable[[NamespaceArgs], Awaitable[dict[str, Any]]]:
        async def handler(args: NamespaceArgs) -> dict[str, Any]:
            return {field: await self._bridge.list_text(rtype, args.namespace, args.cluster_name)}

        return handler

    def _cluster_listing(self, rtype: ResourceType, field: str) -> Callable[[ClusterArgs], Awaitable[dict[str, Any]]]:
        async def handler(args: ClusterArgs) -> dict[str, Any]:
            return {field: await self._bridge.list_text(rtype, "", args.cluster_name)}

        return handler

    async def _get_resource(self, args: ResourceArgs) -> dict[str, Any]:
        text = await self._bridge.get_resource_json(
            args.resource_type, args.name, args.namespace or _DEFAULT_NAMESPACE, args.cluster_name
        )
        return {"resource": text}

    async def _get_resource_yaml(self, args: ResourceArgs) -> dict[str, Any]:
        # Served as JSON, which is valid YAML.
        text = await self._bridge.get_resource_json(
            args.resource_type, args.name, args.namespace or _DEFAULT_NAMESPACE, args.cluster_name
        )
        return {"yaml": text}

    async def _describe_resource(self, args: ResourceArgs) -> dict[str, Any]:
        text = await self._bridge.get_resource_json(
            args.resource_type, args.name, args.namespace or _DEFAULT_NAMESPACE, args.cluster_name
        )
        return {"description": text}

    async def _get_pod_logs(self, args: PodLogsArgs) -> dict[str, Any]:
        logs = await self._bridge.get_pod_logs(
            pod_name=args.pod_name,
            namespace=args.namespace,
            container_name=args.container_name,
            tail_lines=args.tail_lines,
            previous=args.previous,
            cluster_name=args.cluster_name,
        )
        return {"logs": logs}

    async def _check_rbac_permission(self, args: RBACArgs) -> dict[str, Any]:
        review = await self._bridge.check_rbac_permission(args.verb, args.resource, args.namespace)
        return {"allowed": review.allowed, "reason": review.reason}

    async def _list_clusters(self, _args: NoArgs) -> dict[str, Any]:
        return {"clusters": self._registry.names(), "current": self._registry.current_name()}

    async def _switch_cluster(self, args: SwitchClusterArgs) -> dict[str, Any]:
        try:
            self._registry.switch(args.cluster_name)
        except KubeMCPError as exc:
            raise KubeMCPError(f"Failed to switch to cluster {args.cluster_name}: {exc}") from exc
        return {
            "current": args.cluster_name,
            "message": f"Successfully switched to cluster: {args.cluster_name}",
        }

    async def _get_current_cluster(self, _args: NoArgs) -> dict[str, Any]:
        return {"current": self._registry.current_name()}

    async def _list_resources(self, args: ListResourcesArgs) -> dict[str, Any]:
        rtype = ResourceType.parse(args.resource_type)
        summaries = await self._bridge.list_resources(rtype, args.namespace, args.cluster_name)
        if not summaries:
            return {"resources": f"No {rtype.plural} found"}
        return {"resources": format_listing(rtype.listing_title, summaries)}
