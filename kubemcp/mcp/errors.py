"""JSON-RPC protocol errors.

These are the client/protocol-misuse failures that become JSON-RPC ``error``
objects.  Cluster-side failures live in ``kubemcp.errors`` and travel inside
successful tool results instead.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # MCP extension used by resources/read
    RESOURCE_NOT_FOUND = -32002


_DEFAULT_MESSAGES = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.INVALID_REQUEST: "Invalid Request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
    ErrorCode.RESOURCE_NOT_FOUND: "Resource not found",
}


class ProtocolError(Exception):
    """Raised anywhere below the dispatcher to produce a JSON-RPC error."""

    def __init__(self, code: ErrorCode, message: str = "", data: Any = None) -> None:
        self.code = code
        self.message = message or _DEFAULT_MESSAGES[code]
        self.data = data
        super().__init__(self.message)

    def to_error_object(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def error_response(request_id: Any, error: ProtocolError) -> dict[str, Any]:
    """Build a JSON-RPC error envelope.  ``request_id`` may be None."""
    return {"jsonrpc": "2.0", "id": request_id, "error": error.to_error_object()}
