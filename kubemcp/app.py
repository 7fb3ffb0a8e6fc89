"""Application bootstrap for kubemcp.

Startup order: config -> logging -> cluster registry -> MCP server
              -> transport (stdio loop or uvicorn HTTP server)

Shutdown stops the transport first, then releases every cluster client.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from kubemcp.config import load_config, validate_config
from kubemcp.models.config import KubeMCPConfig
from kubemcp.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from kubemcp.k8s.registry import ClusterRegistry
    from kubemcp.mcp.server import MCPServer

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeMCPApp:
    """Application root.  Owns the registry, the MCP server and the transport.

    ``stop()`` is idempotent and safe on an app that never started.
    """

    def __init__(self, config: KubeMCPConfig | None = None) -> None:
        self.config = config
        self._registry: ClusterRegistry | None = None
        self._mcp_server: MCPServer | None = None
        self._http_server: Any = None
        self._transport_task: asyncio.Task[None] | None = None
        self._done = asyncio.Event()
        self._running = False
        self._stopped = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        try:
            if self.config is None:
                self.config = load_config()
            validate_config(self.config)
        except ValueError as exc:
            raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, self.config.log.format)
        self._log = get_logger("app")
        self._log.info("kubemcp starting", version=_kubemcp_version(), transport=self.config.server.transport)

        # --- 3. Cluster registry ----------------------------------------
        await self._start_registry()

        # --- 4. MCP server ----------------------------------------------
        self._start_mcp()

        # --- 5. Transport -----------------------------------------------
        if self.config.server.transport == "http":
            await self._start_http()
        else:
            self._start_stdio()

        self._running = True
        self._log.info("kubemcp started", clusters=len(self._registry or []))

    async def _start_registry(self) -> None:
        """Register clusters from kubeconfig, falling back to the in-cluster account."""
        assert self._log is not None
        assert self.config is not None
        from kubernetes_asyncio.config import ConfigException  # type: ignore[import-untyped]

        from kubemcp.k8s.kubeconfig import load_in_cluster, load_kubeconfig_clusters
        from kubemcp.k8s.registry import ClusterRegistry

        registry = ClusterRegistry()
        self._registry = registry
        if not self.config.kube.in_cluster:
            try:
                await load_kubeconfig_clusters(registry, self.config.kube.kubeconfig_path)
            except Exception as exc:
                self._log.warning(
                    "kubeconfig failed to load",
                    path=self.config.kube.kubeconfig_path,
                    error=str(exc),
                )
        if len(registry) == 0:
            try:
                load_in_cluster(registry)
                self._log.info("cluster registry configured from in-cluster service account")
            except ConfigException as exc:
                # Serve anyway; tools report "no current cluster set".
                self._log.warning("no clusters configured", error=str(exc))

    def _start_mcp(self) -> None:
        assert self.config is not None
        assert self._registry is not None
        from kubemcp.mcp import MCPServer

        self._mcp_server = MCPServer(
            self._registry,
            request_timeout=self.config.limits.request_timeout_seconds,
            prompt_language=self.config.prompts.language,
        )

    def _start_stdio(self) -> None:
        assert self._log is not None
        assert self._mcp_server is not None
        self._transport_task = asyncio.create_task(self._mcp_server.start(), name="mcp-stdio")
        self._transport_task.add_done_callback(self._on_transport_done)
        self._log.info("stdio transport started")

    async def _start_http(self) -> None:
        """Start the uvicorn server for the HTTP session transport."""
        assert self._log is not None
        assert self.config is not None
        assert self._mcp_server is not None
        try:
            import uvicorn

            from kubemcp.api import create_app

            server_cfg = self.config.server
            fastapi_app = create_app(
                server=self._mcp_server,
                auth_token=server_cfg.auth_token,
                session_timeout_seconds=server_cfg.session_timeout_seconds,
            )
            tls: dict[str, Any] = {}
            if not server_cfg.insecure:
                tls = {"ssl_certfile": server_cfg.cert_path, "ssl_keyfile": server_cfg.key_path}
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=server_cfg.host,
                port=server_cfg.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
                **tls,
            )
            self._http_server = uvicorn.Server(uv_config)
            self._transport_task = asyncio.create_task(self._http_server.serve(), name="http-server")
            self._transport_task.add_done_callback(self._on_transport_done)
            self._log.info(
                "http transport started",
                host=server_cfg.host,
                port=server_cfg.port,
                tls=not server_cfg.insecure,
            )
        except Exception as exc:
            raise _ComponentError("http", exc) from exc

    def _on_transport_done(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None and self._log is not None:
            self._log.error("transport stopped with an error", error=str(task.exception()))
        self._done.set()

    async def wait(self) -> None:
        """Block until the transport finishes or shutdown is requested."""
        await self._done.wait()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the transport, then close every cluster client."""
        if self._stopped or (not self._running and self._log is None):
            return
        self._stopped = True

        log = self._log or get_logger("app")
        log.info("kubemcp shutting down")
        self._running = False

        task, self._transport_task = self._transport_task, None
        if self._http_server is not None:
            self._http_server.should_exit = True
        elif task is not None and not task.done():
            task.cancel()
        if task is not None:
            done, _ = await asyncio.wait({task}, timeout=_SHUTDOWN_GRACE_SECONDS)
            if not done:
                log.warning("transport stop timed out", timeout=_SHUTDOWN_GRACE_SECONDS)
                task.cancel()

        if self._registry is not None:
            await self._registry.close()
            self._registry = None

        self._done.set()
        log.info("kubemcp stopped")


def _kubemcp_version() -> str:
    from kubemcp import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: KubeMCPConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeMCPApp(config)
    loop = asyncio.get_running_loop()

    def _request_shutdown() -> None:
        app._done.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        await app.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        await app.stop()
