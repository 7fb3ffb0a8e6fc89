"""Bearer token gate in front of the MCP endpoint."""

from __future__ import annotations

import hmac
from typing import Any

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from kubemcp.api.schemas import ErrorResponse
from kubemcp.observability.logging import get_logger

_log = get_logger("api.auth")

_BEARER_PREFIX = "Bearer "

# Probes and scrapers reach these without credentials.
EXEMPT_PATHS = frozenset({"/healthz", "/metrics"})


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=ErrorResponse(error="UNAUTHORIZED", detail=detail).model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )


def check_bearer(header: str | None, token: str) -> str | None:
    """Return None when ``header`` carries ``token``, else the rejection message."""
    if not header:
        return "Authorization header required"
    if not header.startswith(_BEARER_PREFIX):
        return "Invalid authorization header format"
    presented = header[len(_BEARER_PREFIX) :]
    if not hmac.compare_digest(presented.encode("utf-8"), token.encode("utf-8")):
        return "Invalid token"
    return None


class BearerAuthMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose bearer token does not match the configured one."""

    def __init__(self, app: Any, token: str) -> None:
        super().__init__(app)
        self._token = token

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)
        rejection = check_bearer(request.headers.get("authorization"), self._token)
        if rejection is not None:
            _log.warning("auth_rejected", path=request.url.path, reason=rejection)
            return _unauthorized(rejection)
        return await call_next(request)
