"""
DataLens Tool Registry

Single Source of Truth for the MCP tool list: every typed wrapper from the
catalog plus the reserved utility tools, each with a JSON Schema built from
its field specs.
"""

from typing import Any, Dict, List, Optional

from mcp.types import Tool, ToolAnnotations

from .base import FieldSpec, MethodDescriptor
from .catalog import (
    GENERIC_TOOL_ID,
    INTROSPECTION_TOOL_ID,
    SCHEMA_TOOL_ID,
    all_methods,
    lookup,
)


_JSON_TYPES = {
    "string": "string",
    "boolean": "boolean",
    "integer": "integer",
    "number": "number",
    "array": "array",
    "object": "object",
}


def _property(spec: FieldSpec) -> Dict[str, Any]:
    prop: Dict[str, Any] = {}
    if spec.type in _JSON_TYPES:
        prop["type"] = _JSON_TYPES[spec.type]

    description = spec.description
    if spec.type == "object":
        description = f"{description} (object, or a string holding a JSON object)".strip()
    if spec.wire != spec.name:
        description = f"{description} [sent as `{spec.wire}`]".strip()
    if description:
        prop["description"] = description

    if spec.default is not None:
        prop["default"] = spec.default
    return prop


def input_schema(descriptor: MethodDescriptor) -> Dict[str, Any]:
    """JSON Schema for a typed tool's arguments."""
    properties: Dict[str, Dict[str, Any]] = {}
    required: List[str] = []

    for spec in descriptor.fields:
        properties[spec.name] = _property(spec)
        if spec.required:
            required.append(spec.name)

    schema: Dict[str, Any] = {
        "type": "object",
        "properties": properties,
        # Extra request fields are forwarded to the API unchanged
        "additionalProperties": True,
    }
    if required:
        schema["required"] = required
    return schema


GENERIC_TOOL = Tool(
    name=GENERIC_TOOL_ID,
    description=(
        "Call any DataLens RPC method by its method name and JSON payload. "
        "Use for methods without a typed tool."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "method": {
                "type": "string",
                "description": "DataLens RPC method name, e.g. `listDirectory`",
            },
            "payload": {
                "type": "object",
                "description": "Request body sent verbatim (object, or a string holding a JSON object)",
                "default": {},
            },
        },
        "required": ["method"],
        "additionalProperties": False,
    },
)

INTROSPECTION_TOOL = Tool(
    name=INTROSPECTION_TOOL_ID,
    description=(
        "List DataLens API methods known to this server, with MCP tool names "
        "and method categories."
    ),
    inputSchema={"type": "object", "properties": {}},
    annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False),
)

SCHEMA_TOOL = Tool(
    name=SCHEMA_TOOL_ID,
    description="Return the request schema and invocation hints for a DataLens RPC method.",
    inputSchema={
        "type": "object",
        "properties": {
            "method": {"type": "string", "description": "DataLens RPC method name"},
        },
        "required": ["method"],
    },
    annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False),
)

UTILITY_TOOLS = (GENERIC_TOOL, INTROSPECTION_TOOL, SCHEMA_TOOL)


def to_tool(descriptor: MethodDescriptor) -> Tool:
    read_only = descriptor.category == "read"
    return Tool(
        name=descriptor.tool_id,
        description=descriptor.description,
        inputSchema=input_schema(descriptor),
        annotations=ToolAnnotations(
            readOnlyHint=read_only,
            destructiveHint=descriptor.remote_method.startswith("delete"),
            openWorldHint=True,
        ),
    )


def tool_definitions() -> List[Tool]:
    """All tools in a stable order: typed wrappers first, then utilities."""
    return [to_tool(d) for d in all_methods()] + list(UTILITY_TOOLS)


def get_tool_definition(name: str) -> Optional[Tool]:
    descriptor = lookup(name)
    if descriptor is not None:
        return to_tool(descriptor)
    for tool in UTILITY_TOOLS:
        if tool.name == name:
            return tool
    return None


def list_tool_names() -> List[str]:
    return [tool.name for tool in tool_definitions()]
