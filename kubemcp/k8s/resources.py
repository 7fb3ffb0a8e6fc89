"""Resource bridge: read-only cluster operations shaped for MCP clients.

Each operation resolves one cluster client through the registry, performs
the read, and post-processes the result (status derivation, Secret
redaction, log bounding).  API failures are wrapped with the operation that
failed; nothing is retried here.
"""

from __future__ import annotations

import contextlib
import json
from enum import StrEnum
from typing import Any

from kubemcp.errors import PodHasNoContainersError, ResourceOperationError, UnsupportedResourceTypeError
from kubemcp.k8s.client import KubeClient, is_namespaced
from kubemcp.k8s.redaction import redact_secret
from kubemcp.k8s.registry import ClusterRegistry
from kubemcp.k8s.status import object_status
from kubemcp.models.resources import AccessReview, ClusterInfo, ResourceSummary
from kubemcp.observability.logging import get_logger

_log = get_logger("k8s.resources")

MAX_LOG_BYTES = 1024 * 1024
DEFAULT_TAIL_LINES = 100
LOG_TRUNCATION_MARKER = "\n\n[Logs truncated: exceeded 1MB limit]"


class ResourceType(StrEnum):
    """Supported resource types; values are the API kind."""

    POD = "Pod"
    SERVICE = "Service"
    DEPLOYMENT = "Deployment"
    CONFIGMAP = "ConfigMap"
    SECRET = "Secret"
    NAMESPACE = "Namespace"
    NODE = "Node"
    EVENT = "Event"

    @property
    def plural(self) -> str:
        return self.value.lower() + "s"

    @property
    def listing_title(self) -> str:
        return self.value + "s:"

    @classmethod
    def parse(cls, raw: str) -> ResourceType:
        """Accept singular or plural, any case: ``pod``, ``Pods``, ``configmaps``."""
        key = raw.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.plural):
                return member
        raise UnsupportedResourceTypeError(raw)


# Events are only meaningful as a stream of records; single reads are not offered.
_LIST_ONLY = frozenset({ResourceType.EVENT})


def summarize(kind: str, obj: dict[str, Any]) -> ResourceSummary:
    metadata = obj.get("metadata") or {}
    return ResourceSummary(
        name=metadata.get("name", ""),
        namespace=metadata.get("namespace", "") if is_namespaced(kind) else "",
        kind=kind,
        status=object_status(kind, obj),
        age=str(metadata.get("creationTimestamp") or ""),
        labels=dict(metadata.get("labels") or {}),
    )


def format_listing(title: str, summaries: list[ResourceSummary]) -> str:
    """Render summaries as the indented text block returned by list tools."""
    lines = [title]
    for s in summaries:
        ref = f"{s.namespace}/{s.name}" if s.namespace else s.name
        lines.append(f"  - {ref} ({s.kind}) - {s.status}")
    return "\n".join(lines) + "\n"


class ResourceBridge:
    """Read operations against whichever cluster a request targets."""

    def __init__(self, registry: ClusterRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ClusterRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_resources(
        self,
        resource_type: str | ResourceType,
        namespace: str = "",
        cluster_name: str | None = None,
    ) -> list[ResourceSummary]:
        rtype = resource_type if isinstance(resource_type, ResourceType) else ResourceType.parse(resource_type)
        client = self._registry.resolve(cluster_name)
        try:
            items = await client.list_objects(rtype.value, namespace)
        except Exception as exc:
            raise ResourceOperationError(f"list {rtype.plural}", exc) from exc
        return [summarize(rtype.value, item) for item in items]

    async def list_text(
        self,
        resource_type: str | ResourceType,
        namespace: str = "",
        cluster_name: str | None = None,
    ) -> str:
        rtype = resource_type if isinstance(resource_type, ResourceType) else ResourceType.parse(resource_type)
        summaries = await self.list_resources(rtype, namespace, cluster_name)
        return format_listing(rtype.listing_title, summaries)

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    async def get_resource(
        self,
        resource_type: str,
        name: str,
        namespace: str = "",
        cluster_name: str | None = None,
    ) -> dict[str, Any]:
        """Fetch one object; Secrets come back with their payload redacted."""
        rtype = ResourceType.parse(resource_type)
        if rtype in _LIST_ONLY:
            raise UnsupportedResourceTypeError(resource_type)
        client = self._registry.resolve(cluster_name)
        try:
            obj = await client.get_object(rtype.value, namespace, name)
        except Exception as exc:
            raise ResourceOperationError(f"get {rtype.value.lower()}", exc) from exc
        if rtype is ResourceType.SECRET:
            obj = redact_secret(obj)
        return obj

    async def get_resource_json(
        self,
        resource_type: str,
        name: str,
        namespace: str = "",
        cluster_name: str | None = None,
    ) -> str:
        obj = await self.get_resource(resource_type, name, namespace, cluster_name)
        return json.dumps(obj, indent=2, default=str)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def get_pod_logs(
        self,
        pod_name: str,
        namespace: str,
        container_name: str = "",
        tail_lines: int | None = None,
        previous: bool = False,
        cluster_name: str | None = None,
    ) -> str:
        """Read at most ``MAX_LOG_BYTES`` of a container's log.

        The container defaults to the pod's first declared container.  When
        the ceiling is reached the truncation marker is appended once.
        """
        client = self._registry.resolve(cluster_name)
        container = container_name or await self._first_container(client, namespace, pod_name)
        lines = tail_lines if tail_lines is not None else DEFAULT_TAIL_LINES

        buf = bytearray()
        try:
            stream = client.stream_pod_log(namespace, pod_name, container, lines, previous)
            async with contextlib.aclosing(stream):
                async for chunk in stream:
                    buf.extend(chunk[: MAX_LOG_BYTES - len(buf)])
                    if len(buf) >= MAX_LOG_BYTES:
                        break
        except Exception as exc:
            raise ResourceOperationError("get log stream", exc) from exc

        text = buf.decode("utf-8", errors="replace")
        if len(buf) >= MAX_LOG_BYTES:
            _log.info("pod_log_truncated", pod=pod_name, namespace=namespace, container=container)
            text += LOG_TRUNCATION_MARKER
        return text

    async def _first_container(self, client: KubeClient, namespace: str, pod_name: str) -> str:
        try:
            pod = await client.get_object("Pod", namespace, pod_name)
        except Exception as exc:
            raise ResourceOperationError("get pod", exc) from exc
        containers = (pod.get("spec") or {}).get("containers") or []
        if not containers:
            raise PodHasNoContainersError(pod_name)
        return str(containers[0].get("name", ""))

    # ------------------------------------------------------------------
    # RBAC and cluster info
    # ------------------------------------------------------------------

    async def check_rbac_permission(self, verb: str, resource: str, namespace: str = "") -> AccessReview:
        """Self-subject access review against the current cluster only."""
        client = self._registry.current()
        try:
            return await client.review_access(verb, resource, namespace)
        except Exception as exc:
            raise ResourceOperationError("check permission", exc) from exc

    async def cluster_info(self, cluster_name: str | None = None) -> ClusterInfo:
        client = self._registry.resolve(cluster_name)
        try:
            version = await client.server_version()
        except Exception as exc:
            raise ResourceOperationError("get server version", exc) from exc
        try:
            nodes = await client.list_objects("Node")
        except Exception as exc:
            raise ResourceOperationError("list nodes", exc) from exc
        try:
            namespaces = await client.list_objects("Namespace")
        except Exception as exc:
            raise ResourceOperationError("list namespaces", exc) from exc
        return ClusterInfo(
            version=str(version.get("gitVersion", "")),
            platform=str(version.get("platform", "")),
            build_date=str(version.get("buildDate", "")),
            node_count=len(nodes),
            namespace_count=len(namespaces),
        )

    async def cluster_status_text(self, cluster_name: str | None = None) -> str:
        info = await self.cluster_info(cluster_name)
        return (
            "Cluster Status:\n"
            f"  Version: {info.version}\n"
            f"  Platform: {info.platform}\n"
            f"  Node Count: {info.node_count}\n"
            f"  Namespace Count: {info.namespace_count}"
        )
