"""Kubernetes access: per-cluster API clients, the cluster registry, and the
read-only resource bridge that shapes API objects for MCP clients.

Exposes:
    ClusterRegistry -- lock-guarded name -> client map with a current pointer.
    KubeClient      -- thin async wrapper over one kubernetes_asyncio ApiClient.
    ResourceBridge  -- listing, detail, logs, RBAC and cluster info operations.
"""

from kubemcp.k8s.client import KubeClient
from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.k8s.resources import ResourceBridge

__all__ = ["ClusterRegistry", "KubeClient", "ResourceBridge"]
