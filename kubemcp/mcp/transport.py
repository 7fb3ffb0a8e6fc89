"""Stream transport: newline-delimited JSON-RPC over a byte stream.

Used for stdio.  One receive -> dispatch -> send cycle runs at a time.
"""

from __future__ import annotations

import asyncio
import json
import re
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from kubemcp.mcp.errors import ErrorCode, ProtocolError, error_response
from kubemcp.observability.logging import get_logger

if TYPE_CHECKING:
    from kubemcp.mcp.dispatcher import Dispatcher

_log = get_logger("mcp.transport")

# Generous line ceiling: tool results (pod logs) can approach 1 MiB of JSON.
_MAX_LINE_BYTES = 16 * 1024 * 1024

_TOKEN_PATTERN = re.compile(r'"(?:[^"\\]|\\.)*"|[{}\[\]]')
_ID_VALUE_PATTERN = re.compile(r'\s*:\s*("(?:[^"\\]|\\.)*"|-?\d+)')


class TransportClosed(Exception):
    """The peer closed the stream.  Ends the serving loop without error."""


class MalformedMessage(Exception):
    """A line that is not valid JSON.  ``request_id`` is set when recoverable."""

    def __init__(self, line: str, request_id: Any = None) -> None:
        super().__init__(f"malformed message: {line[:200]!r}")
        self.line = line
        self.request_id = request_id


def recover_id_from_text(line: str) -> Any:
    """Best-effort id of a truncated envelope.

    Only an ``"id"`` key of the outermost object counts; ids nested inside
    ``params`` are skipped.
    """
    depth = 0
    for token in _TOKEN_PATTERN.finditer(line):
        text = token.group()
        if text in ("{", "["):
            depth += 1
        elif text in ("}", "]"):
            depth -= 1
        elif depth == 1 and text == '"id"':
            value = _ID_VALUE_PATTERN.match(line, token.end())
            if value is not None:
                return json.loads(value.group(1))
    return None


class Transport(ABC):
    """Moves opaque JSON-RPC envelopes across a channel."""

    @abstractmethod
    async def send(self, message: dict[str, Any]) -> None: ...

    @abstractmethod
    async def receive(self) -> Any:
        """Return the next decoded message.

        Raises:
            TransportClosed: end of stream.
            MalformedMessage: the next frame is not valid JSON.
        """

    @abstractmethod
    async def close(self) -> None: ...


class StreamTransport(Transport):
    """NDJSON over an asyncio reader/writer pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False

    async def receive(self) -> Any:
        while True:
            try:
                raw = await self._reader.readline()
            except ValueError as exc:
                # Line exceeded the reader limit; the oversized frame is discarded.
                raise MalformedMessage(str(exc)) from exc
            if not raw:
                raise TransportClosed()
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            try:
                return json.loads(line)
            except json.JSONDecodeError as exc:
                raise MalformedMessage(line, recover_id_from_text(line)) from exc

    async def send(self, message: dict[str, Any]) -> None:
        data = json.dumps(message, separators=(",", ":"), ensure_ascii=False) + "\n"
        self._writer.write(data.encode("utf-8"))
        await self._writer.drain()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()


async def open_stdio_transport() -> StreamTransport:
    """Wrap the process's stdin/stdout as a StreamTransport."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=_MAX_LINE_BYTES)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    w_transport, w_protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
    writer = asyncio.StreamWriter(w_transport, w_protocol, reader, loop)
    return StreamTransport(reader, writer)


async def serve(transport: Transport, dispatcher: Dispatcher) -> None:
    """Run receive -> dispatch -> send until the peer closes the stream.

    I/O failures on send propagate and end the loop.
    """
    while True:
        try:
            message = await transport.receive()
        except TransportClosed:
            _log.info("transport_closed")
            return
        except MalformedMessage as exc:
            if exc.request_id is None:
                _log.warning("malformed_line_dropped", error=str(exc))
                continue
            _log.warning("malformed_message", id=exc.request_id)
            await transport.send(error_response(exc.request_id, ProtocolError(ErrorCode.PARSE_ERROR)))
            continue

        response = await dispatcher.dispatch(message)
        if response is not None:
            await transport.send(response)
