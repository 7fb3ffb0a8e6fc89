"""MCP wire types.

Python attributes are snake_case; the wire uses camelCase via the alias
generator.  Always serialize through ``dump()`` so aliases are applied and
unset optionals are omitted.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_serializer
from pydantic.alias_generators import to_camel

from kubemcp.mcp.errors import ErrorCode, ProtocolError

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

RequestId = StrictInt | StrictStr


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------------------------------------------------------------------------
# JSON-RPC envelopes
# ---------------------------------------------------------------------------


class JSONRPCRequest(_WireModel):
    jsonrpc: Literal["2.0"]
    id: RequestId
    method: str
    params: dict[str, Any] | None = None


class JSONRPCNotification(_WireModel):
    jsonrpc: Literal["2.0"]
    method: str
    params: dict[str, Any] | None = None


class JSONRPCClientResponse(_WireModel):
    """A response sent by the client (e.g. to a server ping).  Ignored."""

    jsonrpc: Literal["2.0"]
    id: RequestId | None = None
    result: dict[str, Any] | None = None
    error: dict[str, Any] | None = None


Envelope = JSONRPCRequest | JSONRPCNotification | JSONRPCClientResponse


def recover_id(raw: Any) -> Any:
    """Best-effort id extraction from a message that failed validation."""
    if isinstance(raw, dict):
        candidate = raw.get("id")
        if isinstance(candidate, (str, int)) and not isinstance(candidate, bool):
            return candidate
    return None


def parse_envelope(raw: Any) -> Envelope:
    """Classify a decoded JSON value as request, notification or client response.

    Raises:
        ProtocolError: INVALID_REQUEST for anything that is not a single
            well-formed JSON-RPC 2.0 object (batches included).
    """
    if isinstance(raw, list):
        raise ProtocolError(ErrorCode.INVALID_REQUEST, "Batch requests are not supported")
    if not isinstance(raw, dict):
        raise ProtocolError(ErrorCode.INVALID_REQUEST, "Message must be a JSON object")
    try:
        if "method" not in raw:
            if "result" in raw or "error" in raw:
                return JSONRPCClientResponse.model_validate(raw)
            raise ProtocolError(ErrorCode.INVALID_REQUEST, "Missing method")
        if "id" in raw:
            return JSONRPCRequest.model_validate(raw)
        return JSONRPCNotification.model_validate(raw)
    except ValidationError as exc:
        raise ProtocolError(
            ErrorCode.INVALID_REQUEST,
            data=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


def result_response(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


# ---------------------------------------------------------------------------
# Content items
# ---------------------------------------------------------------------------


class TextContent(_WireModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(_WireModel):
    type: Literal["image"] = "image"
    data: str
    mime_type: str


class TextResourceContents(_WireModel):
    uri: str
    mime_type: str | None = None
    text: str


class EmbeddedResource(_WireModel):
    type: Literal["resource"] = "resource"
    resource: TextResourceContents


ContentItem = Annotated[TextContent | ImageContent | EmbeddedResource, Field(discriminator="type")]


def content_to_wire(item: TextContent | ImageContent | EmbeddedResource) -> dict[str, Any]:
    match item:
        case TextContent():
            return {"type": "text", "text": item.text}
        case ImageContent():
            return {"type": "image", "data": item.data, "mimeType": item.mime_type}
        case EmbeddedResource():
            return {"type": "resource", "resource": dump(item.resource)}
        case _:
            assert_never(item)


# ---------------------------------------------------------------------------
# Handshake
# ---------------------------------------------------------------------------


class Implementation(_WireModel):
    name: str
    version: str
    title: str | None = None


class InitializeParams(_WireModel):
    protocol_version: str
    capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: Implementation | None = None


class ListChangedCapability(_WireModel):
    list_changed: bool = False


class ResourcesCapability(_WireModel):
    subscribe: bool = False
    list_changed: bool = False


class ServerCapabilities(_WireModel):
    tools: ListChangedCapability | None = None
    resources: ResourcesCapability | None = None
    prompts: ListChangedCapability | None = None


class InitializeResult(_WireModel):
    protocol_version: str
    capabilities: ServerCapabilities
    server_info: Implementation
    instructions: str | None = None


class EmptyParams(_WireModel):
    model_config = ConfigDict(extra="allow")


class EmptyResult(_WireModel):
    pass


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolAnnotations(_WireModel):
    title: str | None = None
    read_only_hint: bool | None = None
    destructive_hint: bool | None = None
    idempotent_hint: bool | None = None
    open_world_hint: bool | None = None


class Tool(_WireModel):
    name: str
    title: str | None = None
    description: str
    input_schema: dict[str, Any]
    annotations: ToolAnnotations | None = None


class ListToolsResult(_WireModel):
    tools: list[Tool]


class CallToolParams(_WireModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class CallToolResult(_WireModel):
    content: list[ContentItem]
    is_error: bool = False
    structured_content: dict[str, Any] | None = None

    @field_serializer("content")
    def _serialize_content(self, content: list[TextContent | ImageContent | EmbeddedResource]) -> list[dict[str, Any]]:
        return [content_to_wire(item) for item in content]


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Resource(_WireModel):
    uri: str
    name: str
    title: str | None = None
    description: str | None = None
    mime_type: str | None = None


class ResourceTemplate(_WireModel):
    uri_template: str
    name: str
    title: str | None = None
    description: str | None = None
    mime_type: str | None = None


class ListResourcesResult(_WireModel):
    resources: list[Resource]


class ListResourceTemplatesResult(_WireModel):
    resource_templates: list[ResourceTemplate]


class ReadResourceParams(_WireModel):
    uri: str


class ReadResourceResult(_WireModel):
    contents: list[TextResourceContents]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class PromptArgument(_WireModel):
    name: str
    title: str | None = None
    description: str | None = None
    required: bool = False


class Prompt(_WireModel):
    name: str
    title: str | None = None
    description: str | None = None
    arguments: list[PromptArgument] = Field(default_factory=list)


class ListPromptsResult(_WireModel):
    prompts: list[Prompt]


class GetPromptParams(_WireModel):
    name: str
    arguments: dict[str, str] = Field(default_factory=dict)


class PromptMessage(_WireModel):
    role: Literal["user", "assistant"]
    content: ContentItem

    @field_serializer("content")
    def _serialize_content(self, content: TextContent | ImageContent | EmbeddedResource) -> dict[str, Any]:
        return content_to_wire(content)


class GetPromptResult(_WireModel):
    description: str | None = None
    messages: list[PromptMessage]
