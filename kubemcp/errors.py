"""Domain errors raised by the cluster registry and resource bridge.

These never become JSON-RPC error objects on the tools path: the tool layer
turns them into ``isError`` results so the calling assistant can read them.
"""

from __future__ import annotations


class KubeMCPError(Exception):
    """Base class for all domain-level failures."""


class ClusterNotFoundError(KubeMCPError):
    def __init__(self, name: str) -> None:
        super().__init__(f"cluster {name} not found")
        self.name = name


class NoCurrentClusterError(KubeMCPError):
    def __init__(self) -> None:
        super().__init__("no current cluster set")


class UnsupportedResourceTypeError(KubeMCPError):
    def __init__(self, resource_type: str) -> None:
        super().__init__(f"unsupported resource type: {resource_type}")
        self.resource_type = resource_type


class PodHasNoContainersError(KubeMCPError):
    def __init__(self, pod_name: str) -> None:
        super().__init__(f"no containers found in pod {pod_name}")
        self.pod_name = pod_name


class ResourceOperationError(KubeMCPError):
    """An underlying Kubernetes API call failed.

    ``operation`` is the human context prefix, e.g. ``"list pods"``.
    """

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(f"failed to {operation}: {_describe(cause)}")
        self.operation = operation
        self.cause = cause


def _describe(exc: Exception) -> str:
    # kubernetes_asyncio ApiException carries status/reason; keep it short.
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None)
    if status is not None and reason:
        return f"({status}) {reason}"
    return str(exc) or type(exc).__name__
