"""
Catalog Introspection Tools

Local, read-only tools that describe the method catalog to the calling
agent. Neither touches the network. Unknown arguments are ignored.
"""

from typing import Any, Dict, Mapping

from .base import InvalidFieldError, MethodDescriptor, MissingFieldError
from .catalog import (
    CATALOG_SNAPSHOT,
    GENERIC_TOOL_ID,
    INTROSPECTION_TOOL_ID,
    SCHEMA_TOOL_ID,
    all_methods,
    find_by_remote_method,
)
from .registry import input_schema


def _method_entry(descriptor: MethodDescriptor) -> Dict[str, Any]:
    return {
        "toolId": descriptor.tool_id,
        "method": descriptor.remote_method,
        "httpVerb": descriptor.http_verb.value,
        "category": descriptor.category,
        "maturity": descriptor.maturity.value,
        "experimental": descriptor.experimental,
        "invokeWith": descriptor.tool_id,
        "summary": descriptor.description,
    }


def list_methods(arguments: Mapping[str, Any] = None) -> Dict[str, Any]:
    """
    Serialize the catalog in declaration order.

    The reserved utility tools are named at the top level and are not
    part of `methods`.
    """
    methods = [_method_entry(d) for d in all_methods()]
    return {
        **CATALOG_SNAPSHOT,
        "totalMethods": len(methods),
        "genericTool": GENERIC_TOOL_ID,
        "schemaTool": SCHEMA_TOOL_ID,
        "methods": methods,
    }


def get_method_schema(arguments: Mapping[str, Any] = None) -> Dict[str, Any]:
    """Request schema and invocation hints for one method (case-insensitive)."""
    arguments = arguments or {}
    name = arguments.get("method")
    if name is None:
        name = arguments.get("methodName")
    if name is None:
        raise MissingFieldError("method", tool_id=SCHEMA_TOOL_ID)
    if not isinstance(name, str):
        raise InvalidFieldError("method", "must be a string", tool_id=SCHEMA_TOOL_ID)

    descriptor = find_by_remote_method(name.strip(), case_sensitive=False)
    if descriptor is None:
        raise InvalidFieldError(
            "method",
            f"unknown DataLens RPC method: {name}",
            tool_id=SCHEMA_TOOL_ID,
            details={
                "hint": f"Call {INTROSPECTION_TOOL_ID} first to discover valid methods, "
                        f"or call {GENERIC_TOOL_ID} directly."
            },
        )

    return {
        **CATALOG_SNAPSHOT,
        **_method_entry(descriptor),
        "typedTool": descriptor.tool_id,
        "genericTool": GENERIC_TOOL_ID,
        "requestSchema": input_schema(descriptor),
    }
