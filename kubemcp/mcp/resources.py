"""Addressable read-only data under the ``k8s://`` URI scheme."""

from __future__ import annotations

import json
import re
from typing import Any

from kubemcp.k8s.resources import ResourceBridge, ResourceType
from kubemcp.mcp.errors import ErrorCode, ProtocolError
from kubemcp.mcp.types import (
    ListResourcesResult,
    ListResourceTemplatesResult,
    ReadResourceParams,
    ReadResourceResult,
    Resource,
    ResourceTemplate,
    TextResourceContents,
)

CLUSTERS_URI = "k8s://clusters"
_MIME_JSON = "application/json"
_CLUSTER_URI = re.compile(r"^k8s://cluster/(?P<name>[^/]+)/(?P<view>info|namespaces)$")

_TEMPLATES = (
    ResourceTemplate(
        uri_template="k8s://cluster/{name}/info",
        name="cluster-info",
        title="Cluster Info",
        description="Server version, platform, node count and namespace count of a cluster",
        mime_type=_MIME_JSON,
    ),
    ResourceTemplate(
        uri_template="k8s://cluster/{name}/namespaces",
        name="cluster-namespaces",
        title="Cluster Namespaces",
        description="Namespaces of a cluster with their phase",
        mime_type=_MIME_JSON,
    ),
)


def _json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


class ResourceCatalog:
    """Lists and reads ``k8s://`` resources for every registered cluster."""

    def __init__(self, bridge: ResourceBridge) -> None:
        self._bridge = bridge
        self._registry = bridge.registry

    def list_resources(self) -> ListResourcesResult:
        resources = [
            Resource(
                uri=CLUSTERS_URI,
                name="clusters",
                title="Available Clusters",
                description="All configured clusters and the current one",
                mime_type=_MIME_JSON,
            )
        ]
        current = self._registry.current_name()
        for name in self._registry.names():
            suffix = " (Current)" if name == current else ""
            resources.append(
                Resource(
                    uri=f"k8s://cluster/{name}/info",
                    name=f"cluster-{name}-info",
                    title=f"Cluster {name} Info{suffix}",
                    description=f"Version and object counts of cluster {name}",
                    mime_type=_MIME_JSON,
                )
            )
            resources.append(
                Resource(
                    uri=f"k8s://cluster/{name}/namespaces",
                    name=f"cluster-{name}-namespaces",
                    title=f"Cluster {name} Namespaces{suffix}",
                    description=f"Namespaces of cluster {name}",
                    mime_type=_MIME_JSON,
                )
            )
        return ListResourcesResult(resources=resources)

    def list_templates(self) -> ListResourceTemplatesResult:
        return ListResourceTemplatesResult(resource_templates=list(_TEMPLATES))

    async def read(self, params: ReadResourceParams) -> ReadResourceResult:
        """Read one resource.

        Raises:
            ProtocolError: RESOURCE_NOT_FOUND for URIs outside the scheme.
        """
        uri = params.uri
        if uri == CLUSTERS_URI:
            names = self._registry.names()
            payload: Any = {"clusters": names, "current": self._registry.current_name(), "count": len(names)}
        else:
            match = _CLUSTER_URI.match(uri)
            if match is None:
                raise ProtocolError(ErrorCode.RESOURCE_NOT_FOUND, f"Resource not found: {uri}", data={"uri": uri})
            name = match.group("name")
            if match.group("view") == "info":
                payload = (await self._bridge.cluster_info(name)).to_dict()
            else:
                summaries = await self._bridge.list_resources(ResourceType.NAMESPACE, "", name)
                payload = [s.to_dict() for s in summaries]
        return ReadResourceResult(contents=[TextResourceContents(uri=uri, mime_type=_MIME_JSON, text=_json(payload))])
