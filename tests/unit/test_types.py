"""Tests for envelope classification and wire serialization."""

from __future__ import annotations

import pytest

from kubemcp.mcp.errors import ErrorCode, ProtocolError, error_response
from kubemcp.mcp.types import (
    CallToolResult,
    EmbeddedResource,
    ImageContent,
    JSONRPCClientResponse,
    JSONRPCNotification,
    JSONRPCRequest,
    PromptMessage,
    TextContent,
    TextResourceContents,
    Tool,
    ToolAnnotations,
    content_to_wire,
    dump,
    parse_envelope,
    recover_id,
)


class TestParseEnvelope:
    def test_request(self) -> None:
        env = parse_envelope({"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert isinstance(env, JSONRPCRequest)
        assert env.id == 7

    def test_string_id_kept_verbatim(self) -> None:
        env = parse_envelope({"jsonrpc": "2.0", "id": "007", "method": "ping"})
        assert isinstance(env, JSONRPCRequest)
        assert env.id == "007"

    def test_notification(self) -> None:
        env = parse_envelope({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert isinstance(env, JSONRPCNotification)

    def test_client_response(self) -> None:
        env = parse_envelope({"jsonrpc": "2.0", "id": 1, "result": {}})
        assert isinstance(env, JSONRPCClientResponse)

    @pytest.mark.parametrize(
        "raw",
        [
            [],
            [{"jsonrpc": "2.0", "id": 1, "method": "ping"}],
            "ping",
            42,
            None,
            {"jsonrpc": "1.0", "id": 1, "method": "ping"},
            {"id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "id": 1},
            {"jsonrpc": "2.0", "id": 1.5, "method": "ping"},
            {"jsonrpc": "2.0", "id": True, "method": "ping"},
            {"jsonrpc": "2.0", "id": 1, "method": 5},
            {"jsonrpc": "2.0", "id": 1, "method": "ping", "params": [1, 2]},
        ],
    )
    def test_invalid_request(self, raw: object) -> None:
        with pytest.raises(ProtocolError) as info:
            parse_envelope(raw)
        assert info.value.code == ErrorCode.INVALID_REQUEST

    def test_recover_id(self) -> None:
        assert recover_id({"id": "abc", "jsonrpc": "1.0"}) == "abc"
        assert recover_id({"id": True}) is None
        assert recover_id([1]) is None


class TestErrors:
    def test_error_response_shape(self) -> None:
        err = ProtocolError(ErrorCode.METHOD_NOT_FOUND, data="foo/bar")
        assert error_response(3, err) == {
            "jsonrpc": "2.0",
            "id": 3,
            "error": {"code": -32601, "message": "Method not found", "data": "foo/bar"},
        }

    def test_data_omitted_when_none(self) -> None:
        assert "data" not in ProtocolError(ErrorCode.PARSE_ERROR).to_error_object()

    def test_codes(self) -> None:
        assert [int(c) for c in ErrorCode] == [-32700, -32600, -32601, -32602, -32603, -32002]


class TestContent:
    def test_text(self) -> None:
        assert content_to_wire(TextContent(text="hi")) == {"type": "text", "text": "hi"}

    def test_image(self) -> None:
        assert content_to_wire(ImageContent(data="aGk=", mime_type="image/png")) == {
            "type": "image",
            "data": "aGk=",
            "mimeType": "image/png",
        }

    def test_embedded_resource(self) -> None:
        item = EmbeddedResource(
            resource=TextResourceContents(uri="k8s://clusters", mime_type="application/json", text="{}")
        )
        assert content_to_wire(item) == {
            "type": "resource",
            "resource": {"uri": "k8s://clusters", "mimeType": "application/json", "text": "{}"},
        }

    def test_discriminated_union_parses_by_type(self) -> None:
        result = CallToolResult.model_validate(
            {"content": [{"type": "image", "data": "x", "mimeType": "image/png"}], "isError": False}
        )
        assert isinstance(result.content[0], ImageContent)

    def test_call_tool_result_wire_form(self) -> None:
        result = CallToolResult(content=[TextContent(text="boom")], is_error=True)
        assert dump(result) == {"content": [{"type": "text", "text": "boom"}], "isError": True}

    def test_structured_content_included(self) -> None:
        result = CallToolResult(content=[TextContent(text="{}")], structured_content={"pods": "Pods:\n"})
        assert dump(result)["structuredContent"] == {"pods": "Pods:\n"}

    def test_prompt_message(self) -> None:
        msg = PromptMessage(role="user", content=TextContent(text="go"))
        assert dump(msg) == {"role": "user", "content": {"type": "text", "text": "go"}}


class TestCamelCase:
    def test_tool_descriptor_aliases(self) -> None:
        tool = Tool(
            name="t",
            description="d",
            input_schema={"type": "object"},
            annotations=ToolAnnotations(read_only_hint=True, idempotent_hint=True, open_world_hint=False),
        )
        assert dump(tool) == {
            "name": "t",
            "description": "d",
            "inputSchema": {"type": "object"},
            "annotations": {"readOnlyHint": True, "idempotentHint": True, "openWorldHint": False},
        }
