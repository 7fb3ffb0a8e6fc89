"""Tests for the kubernetes_asyncio wrapper, with the typed APIs mocked out."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from kubemcp.k8s.client import KubeClient, is_namespaced


def _make_client(sanitized: Any = None) -> tuple[KubeClient, MagicMock]:
    api_client = MagicMock()
    api_client.close = AsyncMock()
    api_client.sanitize_for_serialization = MagicMock(return_value=sanitized)
    client = KubeClient(api_client)
    client._core = MagicMock()
    client._apps = MagicMock()
    return client, api_client


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


class TestKindTable:
    @pytest.mark.parametrize("kind", ["Pod", "Service", "Deployment", "ConfigMap", "Secret", "Event"])
    def test_namespaced(self, kind: str) -> None:
        assert is_namespaced(kind)

    @pytest.mark.parametrize("kind", ["Node", "Namespace"])
    def test_cluster_scoped(self, kind: str) -> None:
        assert not is_namespaced(kind)


class TestListObjects:
    async def test_namespaced_list(self) -> None:
        client, _ = _make_client({"items": [{"metadata": {"name": "web-0"}}]})
        client._core.list_namespaced_pod = AsyncMock(return_value="raw")
        items = await client.list_objects("Pod", "default")
        client._core.list_namespaced_pod.assert_awaited_once_with("default")
        assert items == [{"metadata": {"name": "web-0"}, "kind": "Pod"}]

    async def test_empty_namespace_lists_all(self) -> None:
        client, _ = _make_client({"items": []})
        client._core.list_pod_for_all_namespaces = AsyncMock(return_value="raw")
        assert await client.list_objects("Pod", "") == []
        client._core.list_pod_for_all_namespaces.assert_awaited_once_with()

    async def test_deployments_use_apps_api(self) -> None:
        client, _ = _make_client({"items": []})
        client._apps.list_namespaced_deployment = AsyncMock(return_value="raw")
        await client.list_objects("Deployment", "prod")
        client._apps.list_namespaced_deployment.assert_awaited_once_with("prod")

    async def test_cluster_scoped_ignores_namespace(self) -> None:
        client, _ = _make_client({"items": None})
        client._core.list_node = AsyncMock(return_value="raw")
        assert await client.list_objects("Node", "default") == []
        client._core.list_node.assert_awaited_once_with()


class TestGetObject:
    async def test_namespaced_read(self) -> None:
        client, _ = _make_client({"metadata": {"name": "cfg"}})
        client._core.read_namespaced_config_map = AsyncMock(return_value="raw")
        obj = await client.get_object("ConfigMap", "default", "cfg")
        client._core.read_namespaced_config_map.assert_awaited_once_with("cfg", "default")
        assert obj["kind"] == "ConfigMap"

    async def test_cluster_scoped_read(self) -> None:
        client, _ = _make_client({"kind": "Namespace", "metadata": {"name": "kube-system"}})
        client._core.read_namespace = AsyncMock(return_value="raw")
        await client.get_object("Namespace", "ignored", "kube-system")
        client._core.read_namespace.assert_awaited_once_with("kube-system")


class TestPodLogStream:
    async def test_yields_chunks_and_releases(self) -> None:
        client, _ = _make_client()
        response = MagicMock()
        response.content.iter_chunked = MagicMock(return_value=_chunks(b"a", b"b"))
        client._core.read_namespaced_pod_log = AsyncMock(return_value=response)

        got = [chunk async for chunk in client.stream_pod_log("default", "web-0", "app", 100, previous=True)]

        assert got == [b"a", b"b"]
        client._core.read_namespaced_pod_log.assert_awaited_once_with(
            "web-0",
            "default",
            container="app",
            tail_lines=100,
            previous=True,
            _preload_content=False,
        )
        response.release.assert_called_once()

    async def test_release_on_early_close(self) -> None:
        client, _ = _make_client()
        response = MagicMock()
        response.content.iter_chunked = MagicMock(return_value=_chunks(b"a", b"b", b"c"))
        client._core.read_namespaced_pod_log = AsyncMock(return_value=response)

        stream = client.stream_pod_log("default", "web-0", "app", 10)
        assert await stream.__anext__() == b"a"
        await stream.aclose()
        response.release.assert_called_once()


class TestVersionAndAccess:
    async def test_server_version(self) -> None:
        client, api_client = _make_client({"gitVersion": "v1.30.0", "platform": "linux/amd64"})
        with patch("kubernetes_asyncio.client.VersionApi") as version_api:
            version_api.return_value.get_code = AsyncMock(return_value="raw")
            info = await client.server_version()
        version_api.assert_called_once_with(api_client)
        assert info["gitVersion"] == "v1.30.0"

    @pytest.mark.parametrize(("allowed", "reason"), [(True, "Permission granted"), (False, "Permission denied")])
    async def test_review_access(self, allowed: bool, reason: str) -> None:
        client, _ = _make_client()
        result = MagicMock()
        result.status.allowed = allowed
        with patch("kubernetes_asyncio.client.AuthorizationV1Api") as authz:
            authz.return_value.create_self_subject_access_review = AsyncMock(return_value=result)
            review = await client.review_access("list", "pods", "default")
            body = authz.return_value.create_self_subject_access_review.await_args.args[0]
        assert review.allowed is allowed
        assert review.reason == reason
        attrs = body.spec.resource_attributes
        assert (attrs.verb, attrs.resource, attrs.namespace) == ("list", "pods", "default")

    async def test_review_access_cluster_wide(self) -> None:
        client, _ = _make_client()
        result = MagicMock()
        result.status.allowed = True
        with patch("kubernetes_asyncio.client.AuthorizationV1Api") as authz:
            authz.return_value.create_self_subject_access_review = AsyncMock(return_value=result)
            await client.review_access("get", "nodes", "")
            body = authz.return_value.create_self_subject_access_review.await_args.args[0]
        assert body.spec.resource_attributes.namespace is None

    async def test_close(self) -> None:
        client, api_client = _make_client()
        await client.close()
        api_client.close.assert_awaited_once()
