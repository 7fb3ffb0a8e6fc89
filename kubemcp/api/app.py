"""FastAPI application factory for the MCP HTTP session transport.

Usage::

    from kubemcp.api.app import create_app

    app = create_app(server=mcp_server, auth_token=token)

Endpoints:
    POST   /mcp      one JSON-RPC message; JSON or single-event SSE reply
    DELETE /mcp      end the session named by Mcp-Session-Id
    GET    /mcp      405, no server-initiated stream is offered
    GET    /healthz  liveness (unauthenticated)
    GET    /metrics  Prometheus exposition (unauthenticated)
"""

from __future__ import annotations

import json
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kubemcp.api.auth import BearerAuthMiddleware
from kubemcp.api.schemas import ErrorResponse, HealthResponse
from kubemcp.api.sessions import DEFAULT_SESSION_TIMEOUT_SECONDS, SessionManager
from kubemcp.mcp.errors import ErrorCode, ProtocolError, error_response
from kubemcp.mcp.server import MCPServer
from kubemcp.mcp.transport import recover_id_from_text

_log = structlog.get_logger(component="api.app")

SESSION_HEADER = "Mcp-Session-Id"
MCP_PATH = "/mcp"


def _error(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=error, detail=detail).model_dump())


def wants_event_stream(accept: str) -> bool:
    """True when the client accepts text/event-stream but not JSON."""
    media = {part.split(";")[0].strip().lower() for part in accept.split(",") if part.strip()}
    return "text/event-stream" in media and not media & {"application/json", "*/*", "application/*"}


async def _single_event(payload: dict[str, Any]) -> AsyncIterator[bytes]:
    yield f"event: message\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


def create_app(
    server: MCPServer,
    auth_token: str,
    session_timeout_seconds: float = DEFAULT_SESSION_TIMEOUT_SECONDS,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create the HTTP transport application.

    Args:
        server:                  MCPServer whose dispatcher handles every message.
        auth_token:              Bearer token every /mcp request must present.
        session_timeout_seconds: Idle timeout for sessions.
        clock:                   Optional monotonic clock override (tests).

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kubemcp import __version__

    app = FastAPI(
        title="kubemcp",
        summary="Read-only Kubernetes access over the Model Context Protocol",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    sessions = SessionManager(session_timeout_seconds, clock=clock or time.monotonic)
    app.state.server = server
    app.state.sessions = sessions
    app.add_middleware(BearerAuthMiddleware, token=auth_token)

    @app.post(MCP_PATH)
    async def post_message(request: Request) -> Response:
        body = await request.body()
        try:
            message = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            text = body.decode("utf-8", errors="replace")
            _log.warning("http_parse_error", size=len(body))
            return JSONResponse(
                status_code=400,
                content=error_response(recover_id_from_text(text), ProtocolError(ErrorCode.PARSE_ERROR)),
            )

        is_initialize = isinstance(message, dict) and message.get("method") == "initialize"
        if not is_initialize:
            session_id = request.headers.get(SESSION_HEADER)
            if not session_id:
                return _error(400, "SESSION_REQUIRED", f"{SESSION_HEADER} header required")
            if sessions.touch(session_id) is None:
                return _error(404, "SESSION_NOT_FOUND", "Session not found or expired")

        response = await server.handle_message(message)
        if response is None:
            return Response(status_code=202)

        headers: dict[str, str] = {}
        if is_initialize and "result" in response:
            params = message.get("params") or {}
            client_info = params.get("clientInfo") or {}
            session = sessions.create(
                protocol_version=str(response["result"].get("protocolVersion", "")),
                client_name=str(client_info.get("name", "")) if isinstance(client_info, dict) else "",
            )
            headers[SESSION_HEADER] = session.session_id

        if wants_event_stream(request.headers.get("accept", "")):
            return StreamingResponse(_single_event(response), media_type="text/event-stream", headers=headers)
        return JSONResponse(content=response, headers=headers)

    @app.delete(MCP_PATH)
    async def delete_session(request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id:
            return _error(400, "SESSION_REQUIRED", f"{SESSION_HEADER} header required")
        if not sessions.end(session_id):
            return _error(404, "SESSION_NOT_FOUND", "Session not found or expired")
        return Response(status_code=204)

    @app.get(MCP_PATH)
    async def open_stream() -> Response:
        return JSONResponse(
            status_code=405,
            content=ErrorResponse(
                error="METHOD_NOT_ALLOWED", detail="Server-initiated streams are not supported"
            ).model_dump(),
            headers={"Allow": "POST, DELETE"},
        )

    @app.get("/healthz")
    async def healthz() -> HealthResponse:
        return HealthResponse(
            status="ok",
            clusters=len(server.registry),
            current_cluster=server.registry.current_name(),
            sessions=len(sessions),
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred.")

    return app
