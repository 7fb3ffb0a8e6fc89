"""Async wrapper over a single kubernetes_asyncio ApiClient.

Every read returns plain camelCase dicts (the same shape ``kubectl get -o
json`` prints) so that status derivation and redaction work on one
representation regardless of kind.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubemcp.models.resources import AccessReview

_LOG_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class _KindOps:
    """Method names on the typed API for one kind."""

    api: str
    namespaced: bool
    list_namespaced: str
    list_all: str
    read: str


_KIND_OPS: dict[str, _KindOps] = {
    "Pod": _KindOps("core", True, "list_namespaced_pod", "list_pod_for_all_namespaces", "read_namespaced_pod"),
    "Service": _KindOps(
        "core", True, "list_namespaced_service", "list_service_for_all_namespaces", "read_namespaced_service"
    ),
    "Deployment": _KindOps(
        "apps", True, "list_namespaced_deployment", "list_deployment_for_all_namespaces", "read_namespaced_deployment"
    ),
    "ConfigMap": _KindOps(
        "core", True, "list_namespaced_config_map", "list_config_map_for_all_namespaces", "read_namespaced_config_map"
    ),
    "Secret": _KindOps(
        "core", True, "list_namespaced_secret", "list_secret_for_all_namespaces", "read_namespaced_secret"
    ),
    "Event": _KindOps("core", True, "list_namespaced_event", "list_event_for_all_namespaces", "read_namespaced_event"),
    "Namespace": _KindOps("core", False, "list_namespace", "list_namespace", "read_namespace"),
    "Node": _KindOps("core", False, "list_node", "list_node", "read_node"),
}


def is_namespaced(kind: str) -> bool:
    return _KIND_OPS[kind].namespaced


class KubeClient:
    """Read-only access to one cluster.

    Args:
        api_client: An authenticated ``kubernetes_asyncio.client.ApiClient``.
            Ownership passes to this object; ``close()`` releases it.
    """

    def __init__(self, api_client: Any) -> None:
        self._api_client = api_client
        self._core = k8s_client.CoreV1Api(api_client)
        self._apps = k8s_client.AppsV1Api(api_client)

    def _api_for(self, kind: str) -> tuple[Any, _KindOps]:
        ops = _KIND_OPS[kind]
        return (self._core if ops.api == "core" else self._apps), ops

    def _to_dict(self, obj: Any) -> Any:
        return self._api_client.sanitize_for_serialization(obj)

    async def list_objects(self, kind: str, namespace: str = "") -> list[dict[str, Any]]:
        """List every object of ``kind``; an empty namespace means all namespaces."""
        api, ops = self._api_for(kind)
        if ops.namespaced and namespace:
            result = await getattr(api, ops.list_namespaced)(namespace)
        else:
            result = await getattr(api, ops.list_all)()
        items = self._to_dict(result).get("items") or []
        for item in items:
            item.setdefault("kind", kind)
        return items

    async def get_object(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        api, ops = self._api_for(kind)
        if ops.namespaced:
            result = await getattr(api, ops.read)(name, namespace)
        else:
            result = await getattr(api, ops.read)(name)
        obj: dict[str, Any] = self._to_dict(result)
        obj.setdefault("kind", kind)
        return obj

    async def server_version(self) -> dict[str, Any]:
        """Return the API server's ``/version`` payload."""
        info = await k8s_client.VersionApi(self._api_client).get_code()
        return self._to_dict(info)  # type: ignore[no-any-return]

    async def stream_pod_log(
        self,
        namespace: str,
        name: str,
        container: str,
        tail_lines: int,
        previous: bool = False,
    ) -> AsyncIterator[bytes]:
        """Yield raw log chunks without buffering the whole log in memory."""
        response = await self._core.read_namespaced_pod_log(
            name,
            namespace,
            container=container,
            tail_lines=tail_lines,
            previous=previous,
            _preload_content=False,
        )
        try:
            async for chunk in response.content.iter_chunked(_LOG_CHUNK_BYTES):
                yield chunk
        finally:
            response.release()

    async def review_access(self, verb: str, resource: str, namespace: str) -> AccessReview:
        """Ask the API server whether the current identity may perform ``verb``."""
        api = k8s_client.AuthorizationV1Api(self._api_client)
        body = k8s_client.V1SelfSubjectAccessReview(
            spec=k8s_client.V1SelfSubjectAccessReviewSpec(
                resource_attributes=k8s_client.V1ResourceAttributes(
                    verb=verb,
                    resource=resource,
                    namespace=namespace or None,
                ),
            ),
        )
        result = await api.create_self_subject_access_review(body)
        allowed = bool(result.status and result.status.allowed)
        return AccessReview(allowed=allowed, reason="Permission granted" if allowed else "Permission denied")

    async def close(self) -> None:
        await self._api_client.close()
