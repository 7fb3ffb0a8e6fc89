"""Cluster registry: one client per named cluster plus a current pointer.

The HTTP transport dispatches requests from many sessions concurrently, so
the handle map and the current pointer are only touched under ``_lock``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kubemcp.errors import ClusterNotFoundError, NoCurrentClusterError
from kubemcp.observability.logging import get_logger

if TYPE_CHECKING:
    from kubemcp.k8s.client import KubeClient

_log = get_logger("k8s.registry")


@dataclass(frozen=True)
class _ClusterHandle:
    name: str
    client: KubeClient


class ClusterRegistry:
    """Lock-guarded mapping of cluster name to client.

    Invariant: whenever at least one handle exists, ``current_name()``
    names one of them.  Handles are never removed at runtime.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, _ClusterHandle] = {}
        self._replaced: list[_ClusterHandle] = []
        self._current = ""

    def register(self, name: str, client: KubeClient) -> None:
        """Add (or replace) the client for ``name``.

        The first cluster registered becomes current.  Re-registering a
        name swaps the client but keeps the current pointer where it is.
        The displaced client is kept until ``close()`` releases it.
        """
        with self._lock:
            previous = self._handles.get(name)
            replaced = previous is not None
            if previous is not None and previous.client is not client:
                self._replaced.append(previous)
            self._handles[name] = _ClusterHandle(name=name, client=client)
            if not self._current:
                self._current = name
        _log.info("cluster_registered", cluster=name, replaced=replaced)

    def get(self, name: str) -> KubeClient:
        with self._lock:
            handle = self._handles.get(name)
        if handle is None:
            raise ClusterNotFoundError(name)
        return handle.client

    def current(self) -> KubeClient:
        with self._lock:
            handle = self._handles.get(self._current) if self._current else None
        if handle is None:
            raise NoCurrentClusterError()
        return handle.client

    def current_name(self) -> str:
        with self._lock:
            return self._current

    def switch(self, name: str) -> None:
        """Make ``name`` current.  Unknown names leave current untouched."""
        with self._lock:
            if name not in self._handles:
                raise ClusterNotFoundError(name)
            previous, self._current = self._current, name
        if previous != name:
            _log.info("cluster_switched", previous=previous, current=name)

    def names(self) -> list[str]:
        """Registered names in registration order."""
        with self._lock:
            return list(self._handles)

    def resolve(self, cluster_name: str | None = None) -> KubeClient:
        """Explicit name wins; otherwise fall back to the current cluster."""
        if cluster_name:
            return self.get(cluster_name)
        return self.current()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    async def close(self) -> None:
        """Release every client.  Called once at process teardown."""
        with self._lock:
            handles = self._replaced + list(self._handles.values())
            self._replaced = []
        for handle in handles:
            try:
                await handle.client.close()
            except Exception as exc:
                _log.warning("cluster_client_close_failed", cluster=handle.name, error=str(exc))
