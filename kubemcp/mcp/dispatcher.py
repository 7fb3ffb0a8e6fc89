"""Transport-agnostic JSON-RPC dispatcher.

One ``dispatch()`` call handles one decoded message and returns the response
envelope, or None when nothing must be sent back (notifications and
client-side responses).  Every request id is echoed exactly once.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ValidationError

from kubemcp.errors import KubeMCPError
from kubemcp.mcp.errors import ErrorCode, ProtocolError, error_response
from kubemcp.mcp.types import (
    EmptyParams,
    JSONRPCClientResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    dump,
    parse_envelope,
    recover_id,
    result_response,
)
from kubemcp.observability.logging import get_logger
from kubemcp.observability.metrics import rpc_requests_total

_log = get_logger("mcp.dispatcher")

_UNEXPECTED_ERROR_DATA = "An unexpected error occurred."

Handler = Callable[[Any], Awaitable[BaseModel | dict[str, Any]]]


class RequestState(StrEnum):
    RECEIVED = "received"
    PARAMS_DECODED = "params_decoded"
    HANDLER_INVOKED = "handler_invoked"
    RESPONSE_EMITTED = "response_emitted"


@dataclass(frozen=True)
class Route:
    """A method's handler and the model its params decode into."""

    handler: Handler
    params_model: type[BaseModel] = EmptyParams

    def decode(self, params: dict[str, Any] | None) -> BaseModel:
        return self.params_model.model_validate(params or {})


class Dispatcher:
    """Routes decoded messages to handlers through a fixed method table."""

    def __init__(self, routes: Mapping[str, Route]) -> None:
        self._routes = dict(routes)

    @property
    def methods(self) -> list[str]:
        return sorted(self._routes)

    async def dispatch(self, raw: Any) -> dict[str, Any] | None:
        try:
            envelope = parse_envelope(raw)
        except ProtocolError as exc:
            rpc_requests_total.labels(method="invalid", outcome="invalid_request").inc()
            return error_response(recover_id(raw), exc)

        match envelope:
            case JSONRPCRequest():
                return await self._handle_request(envelope)
            case JSONRPCNotification():
                await self._handle_notification(envelope)
                return None
            case JSONRPCClientResponse():
                _log.debug("client_response_ignored", id=envelope.id)
                return None

    async def _handle_request(self, request: JSONRPCRequest) -> dict[str, Any]:
        state = RequestState.RECEIVED
        route = self._routes.get(request.method)
        if route is None:
            rpc_requests_total.labels(method="unknown", outcome="method_not_found").inc()
            return error_response(request.id, ProtocolError(ErrorCode.METHOD_NOT_FOUND, data=request.method))

        try:
            try:
                params = route.decode(request.params)
            except ValidationError as exc:
                raise ProtocolError(
                    ErrorCode.INVALID_PARAMS,
                    data=exc.errors(include_url=False, include_context=False, include_input=False),
                ) from exc
            state = RequestState.PARAMS_DECODED
            result = await route.handler(params)
            state = RequestState.HANDLER_INVOKED
        except ProtocolError as exc:
            outcome, response = "protocol_error", error_response(request.id, exc)
        except KubeMCPError as exc:
            outcome = "domain_error"
            response = error_response(request.id, ProtocolError(ErrorCode.INTERNAL_ERROR, data=str(exc)))
        except Exception:
            _log.exception("handler_failed", method=request.method, state=state)
            outcome = "internal_error"
            response = error_response(
                request.id, ProtocolError(ErrorCode.INTERNAL_ERROR, data=_UNEXPECTED_ERROR_DATA)
            )
        else:
            payload = dump(result) if isinstance(result, BaseModel) else result
            outcome, response = "ok", result_response(request.id, payload)

        if outcome != "ok":
            _log.info("request_failed", method=request.method, id=request.id, outcome=outcome, state=state)
        state = RequestState.RESPONSE_EMITTED
        _log.debug("request_handled", method=request.method, id=request.id, state=state)
        rpc_requests_total.labels(method=request.method, outcome=outcome).inc()
        return response

    async def _handle_notification(self, notification: JSONRPCNotification) -> None:
        """Run a notification handler.  No response is ever produced."""
        route = self._routes.get(notification.method)
        if route is None:
            _log.debug("unknown_notification", method=notification.method)
            return
        try:
            await route.handler(route.decode(notification.params))
        except Exception as exc:
            _log.warning("notification_failed", method=notification.method, error=str(exc))
