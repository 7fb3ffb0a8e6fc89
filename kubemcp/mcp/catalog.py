"""Static tool descriptors and their argument models.

Populated once at import; list operations read from here and nothing
mutates it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kubemcp.mcp.types import Tool, ToolAnnotations

_CLUSTER_NAME = "Name of the cluster to query (optional, uses current cluster if not specified)"
_ALL_NAMESPACES = "Namespace to list from (empty string for all namespaces)"


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ClusterArgs(_ToolArgs):
    cluster_name: str | None = Field(default=None, description=_CLUSTER_NAME)


class NoArgs(_ToolArgs):
    pass


class NamespaceArgs(_ToolArgs):
    namespace: str = Field(description=_ALL_NAMESPACES)
    cluster_name: str | None = Field(default=None, description=_CLUSTER_NAME)


class ResourceArgs(_ToolArgs):
    resource_type: str = Field(description="Resource type, singular or plural (e.g. 'pod' or 'pods')")
    name: str = Field(description="Resource name")
    namespace: str = Field(
        default="",
        description="Namespace of the resource (defaults to 'default'; ignored for nodes and namespaces)",
    )
    cluster_name: str | None = Field(default=None, description=_CLUSTER_NAME)


class PodLogsArgs(_ToolArgs):
    pod_name: str = Field(description="Pod name")
    namespace: str = Field(description="Namespace of the pod")
    container_name: str = Field(default="", description="Container name (defaults to the pod's first container)")
    tail_lines: int | None = Field(default=None, ge=0, description="Number of lines from the end (default 100)")
    previous: bool = Field(default=False, description="Return logs of the previous container instance")
    cluster_name: str | None = Field(default=None, description=_CLUSTER_NAME)


class RBACArgs(_ToolArgs):
    verb: str = Field(description="API verb, e.g. 'get', 'list', 'watch'")
    resource: str = Field(description="Resource name, e.g. 'pods'")
    namespace: str = Field(default="", description="Namespace to check (empty for cluster-wide)")


class SwitchClusterArgs(_ToolArgs):
    cluster_name: str = Field(description="Name of the cluster to make current")


class ListResourcesArgs(_ToolArgs):
    resource_type: str = Field(description="Resource type, singular or plural (e.g. 'pod' or 'pods')")
    namespace: str = Field(default="", description=_ALL_NAMESPACES)
    cluster_name: str | None = Field(default=None, description=_CLUSTER_NAME)


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON Schema for a tool's arguments, without pydantic's generated titles."""
    schema = model.model_json_schema()
    schema.pop("title", None)
    for prop in schema.get("properties", {}).values():
        prop.pop("title", None)
    schema.setdefault("properties", {})
    return schema


@dataclass(frozen=True)
class ToolSpec:
    name: str
    title: str
    description: str
    args_model: type[_ToolArgs]

    def descriptor(self) -> Tool:
        return Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            input_schema=input_schema(self.args_model),
            annotations=ToolAnnotations(
                title=self.title,
                read_only_hint=True,
                destructive_hint=False,
                idempotent_hint=True,
                open_world_hint=False,
            ),
        )


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        "get_cluster_status",
        "Get Cluster Status",
        "Get cluster status information (version, platform, node count, namespace count)",
        ClusterArgs,
    ),
    ToolSpec("list_pods", "List Pods", "List pods in a namespace with their derived status", NamespaceArgs),
    ToolSpec("list_services", "List Services", "List services in a namespace", NamespaceArgs),
    ToolSpec("list_deployments", "List Deployments", "List deployments in a namespace", NamespaceArgs),
    ToolSpec("list_nodes", "List Nodes", "List all nodes in the cluster with readiness", ClusterArgs),
    ToolSpec("list_namespaces", "List Namespaces", "List all namespaces in the cluster", ClusterArgs),
    ToolSpec(
        "get_resource",
        "Get Resource",
        "Get detailed information about a specific resource (JSON format). Secrets will be redacted.",
        ResourceArgs,
    ),
    ToolSpec(
        "get_resource_yaml",
        "Get Resource Definition",
        "Get the full definition of a resource. Secrets will be redacted.",
        ResourceArgs,
    ),
    ToolSpec("get_events", "Get Events", "Get cluster events in a namespace", NamespaceArgs),
    ToolSpec(
        "get_pod_logs",
        "Get Pod Logs",
        "Get pod logs. Default tail_lines=100, output capped at 1MB.",
        PodLogsArgs,
    ),
    ToolSpec(
        "check_rbac_permission",
        "Check RBAC Permission",
        "Check if the current identity may perform an action on the current cluster (kubectl auth can-i)",
        RBACArgs,
    ),
    ToolSpec("list_clusters", "List Clusters", "List all configured clusters and the current one", NoArgs),
    ToolSpec("switch_cluster", "Switch Cluster", "Switch the current cluster", SwitchClusterArgs),
    ToolSpec("get_current_cluster", "Get Current Cluster", "Get the name of the current cluster", NoArgs),
    ToolSpec(
        "list_resources",
        "List Resources",
        "List resources of any supported type (pods, services, deployments, configmaps, secrets, "
        "namespaces, nodes, events)",
        ListResourcesArgs,
    ),
    ToolSpec(
        "describe_resource",
        "Describe Resource",
        "Describe a specific resource in detail. Secrets will be redacted.",
        ResourceArgs,
    ),
)

TOOLS_BY_NAME: dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}
