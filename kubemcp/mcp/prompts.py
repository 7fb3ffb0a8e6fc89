"""Prompt templates for common cluster investigations."""

from __future__ import annotations

from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.mcp.errors import ErrorCode, ProtocolError
from kubemcp.mcp.types import (
    GetPromptParams,
    GetPromptResult,
    ListPromptsResult,
    Prompt,
    PromptArgument,
    PromptMessage,
    TextContent,
)

_CLUSTER_ARG = PromptArgument(
    name="cluster_name",
    title="Cluster Name",
    description="Name of the cluster (optional, uses current cluster if not specified)",
    required=False,
)

_PROMPTS = (
    Prompt(
        name="analyze_cluster_health",
        title="Analyze Cluster Health",
        description="Analyze the health status of a Kubernetes cluster",
        arguments=[_CLUSTER_ARG],
    ),
    Prompt(
        name="troubleshoot_pods",
        title="Troubleshoot Pods",
        description="Help troubleshoot pod issues in a specific namespace",
        arguments=[
            PromptArgument(
                name="namespace", title="Namespace", description="Namespace to analyze pods in", required=True
            ),
            _CLUSTER_ARG,
        ],
    ),
    Prompt(
        name="resource_summary",
        title="Resource Summary",
        description="Generate a summary of resources in a cluster or namespace",
        arguments=[
            PromptArgument(
                name="namespace",
                title="Namespace",
                description="Namespace to summarize (optional, summarizes entire cluster if not specified)",
                required=False,
            ),
            _CLUSTER_ARG,
        ],
    ),
)

_PROMPTS_BY_NAME = {p.name: p for p in _PROMPTS}

_CLUSTER_HEALTH = """\
Analyze the health of Kubernetes cluster "{cluster}". Please:

1. Check the overall cluster status and version
2. Review node health and readiness
3. Examine critical system pods and their status
4. Look for any error events or warnings
5. Assess resource utilization if possible
6. Provide recommendations for any issues found

Focus on identifying potential problems and suggesting solutions."""

_TROUBLESHOOT_PODS = """\
Help troubleshoot pod issues in namespace "{namespace}" of cluster "{cluster}". Please:

1. List all pods in the namespace and their current status
2. Identify any pods that are not in Running state
3. Check for any error events related to the problematic pods
4. Review resource requests and limits
5. Look for patterns in failing pods
6. Suggest specific troubleshooting steps for each issue found

Provide actionable recommendations to resolve any pod-related problems."""

_RESOURCE_SUMMARY = """\
Generate a comprehensive summary of Kubernetes resources in {scope}. Please:

1. Provide an overview of resource counts by type (pods, services, deployments, etc.)
2. Highlight any resources with concerning status
3. Summarize resource utilization patterns
4. Identify any configuration inconsistencies
5. Note any security-related observations
6. Suggest optimizations or improvements

Create a well-organized summary that gives insight into the current state and health of the resources."""


class PromptCatalog:
    """Renders the built-in prompts.

    Args:
        registry: Used to fill in the current cluster when none is given.
        language: Optional response language appended as a final directive.
    """

    def __init__(self, registry: ClusterRegistry, language: str = "") -> None:
        self._registry = registry
        self._language = language

    def list_prompts(self) -> ListPromptsResult:
        return ListPromptsResult(prompts=list(_PROMPTS))

    async def get(self, params: GetPromptParams) -> GetPromptResult:
        prompt = _PROMPTS_BY_NAME.get(params.name)
        if prompt is None:
            raise ProtocolError(ErrorCode.INVALID_PARAMS, f"Unknown prompt: {params.name}", data=params.name)
        args = params.arguments
        for arg in prompt.arguments:
            if arg.required and not args.get(arg.name):
                raise ProtocolError(
                    ErrorCode.INVALID_PARAMS, f"Missing required argument: {arg.name}", data=arg.name
                )

        cluster = args.get("cluster_name") or self._registry.current_name()
        namespace = args.get("namespace", "")
        match params.name:
            case "analyze_cluster_health":
                description = "Cluster health analysis prompt"
                text = _CLUSTER_HEALTH.format(cluster=cluster)
            case "troubleshoot_pods":
                description = "Pod troubleshooting prompt"
                text = _TROUBLESHOOT_PODS.format(namespace=namespace, cluster=cluster)
            case _:
                description = "Resource summary analysis prompt"
                scope = f'namespace "{namespace}" in cluster "{cluster}"' if namespace else f'cluster "{cluster}"'
                text = _RESOURCE_SUMMARY.format(scope=scope)

        if self._language:
            text += f"\n\nPlease respond in {self._language}."
        return GetPromptResult(
            description=description,
            messages=[PromptMessage(role="user", content=TextContent(text=text))],
        )
