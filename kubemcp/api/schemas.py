"""Pydantic bodies for non-JSON-RPC HTTP responses."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error envelope for transport-level failures (auth, sessions)."""

    error: str
    detail: str


class HealthResponse(BaseModel):
    status: str
    clusters: int
    current_cluster: str
    sessions: int
