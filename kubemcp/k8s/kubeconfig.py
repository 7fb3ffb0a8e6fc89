"""Populate a ClusterRegistry from a kubeconfig file or the in-cluster account."""

from __future__ import annotations

import os
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]

from kubemcp.k8s.client import KubeClient
from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.observability.logging import get_logger

_log = get_logger("k8s.kubeconfig")

IN_CLUSTER_NAME = "in-cluster"


def _ordered_contexts(contexts: list[dict[str, Any]], active: dict[str, Any] | None) -> list[dict[str, Any]]:
    # Register the active context first so it becomes the current cluster.
    if not active:
        return contexts
    return [active] + [c for c in contexts if c.get("name") != active.get("name")]


async def load_kubeconfig_clusters(registry: ClusterRegistry, path: str) -> int:
    """Register one client per kubeconfig context, keyed by cluster name.

    Contexts that share a cluster name collapse onto the later client.
    A context that fails to build a client is logged and skipped.

    Returns:
        Number of contexts registered.
    """
    if not os.path.exists(path):
        _log.warning("kubeconfig_not_found", path=path)
        return 0

    contexts, active = k8s_config.list_kube_config_contexts(config_file=path)
    registered = 0
    for ctx in _ordered_contexts(contexts or [], active):
        context_name = ctx.get("name", "")
        cluster_name = (ctx.get("context") or {}).get("cluster") or context_name
        try:
            api_client = await k8s_config.new_client_from_config(config_file=path, context=context_name)
        except Exception as exc:
            _log.warning("kubeconfig_context_failed", context=context_name, error=str(exc))
            continue
        registry.register(cluster_name, KubeClient(api_client))
        registered += 1
    _log.info("kubeconfig_loaded", path=path, contexts=registered, current=registry.current_name())
    return registered


def load_in_cluster(registry: ClusterRegistry) -> None:
    """Register the pod's service-account credentials as ``in-cluster``."""
    configuration = k8s_client.Configuration()
    k8s_config.load_incluster_config(client_configuration=configuration)
    registry.register(IN_CLUSTER_NAME, KubeClient(k8s_client.ApiClient(configuration=configuration)))
