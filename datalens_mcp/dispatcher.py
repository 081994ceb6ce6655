"""
Tool Dispatcher

Single entry point per tool invocation. Resolves the tool identifier to a
typed wrapper, the generic passthrough or a local utility, drives the codec
and the transport client, and returns a result envelope tagged with the
originating tool id.

No state is kept between invocations; concurrent calls share only the
immutable catalog and the HTTP connection pool.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .base import DataLensToolError, ErrorKind, MethodDescriptor, UnknownToolError
from .catalog import GENERIC_TOOL_ID, INTROSPECTION_TOOL_ID, SCHEMA_TOOL_ID, lookup
from .client import DataLensClient, RpcFailure, RpcSuccess
from .codec import EncodedRequest, decode, decode_generic, encode, encode_generic
from .introspection import get_method_schema, list_methods

logger = logging.getLogger(__name__)


class ToolKind(Enum):
    TYPED = "typed"
    GENERIC = "generic"
    INTROSPECTION = "introspection"
    SCHEMA = "schema"


@dataclass(frozen=True)
class ResolvedTool:
    kind: ToolKind
    tool_id: str
    descriptor: Optional[MethodDescriptor] = None


def resolve(tool_id: str) -> ResolvedTool:
    """Resolve a tool id. Raises UnknownToolError for anything unregistered."""
    if tool_id == INTROSPECTION_TOOL_ID:
        return ResolvedTool(ToolKind.INTROSPECTION, tool_id)
    if tool_id == SCHEMA_TOOL_ID:
        return ResolvedTool(ToolKind.SCHEMA, tool_id)
    if tool_id == GENERIC_TOOL_ID:
        return ResolvedTool(ToolKind.GENERIC, tool_id)

    descriptor = lookup(tool_id) if isinstance(tool_id, str) else None
    if descriptor is None:
        raise UnknownToolError(
            f"Unknown tool: {tool_id}",
            tool_id=tool_id,
            details={"hint": f"Call {INTROSPECTION_TOOL_ID} to list available tools."},
        )
    return ResolvedTool(ToolKind.TYPED, tool_id, descriptor)


def success_envelope(tool_id: str, result: Any) -> Dict[str, Any]:
    return {"tool_id": tool_id, "ok": True, "result": result}


def error_envelope(tool_id: str, error: Dict[str, Any]) -> Dict[str, Any]:
    return {"tool_id": tool_id, "ok": False, "error": error}


class Dispatcher:
    """Runs tool invocations against one shared DataLensClient."""

    def __init__(self, client: DataLensClient):
        self.client = client

    async def dispatch(self, tool_id: str, arguments: Mapping[str, Any] = None) -> Dict[str, Any]:
        """
        Execute one invocation and return its envelope.

        Every failure is terminal for the invocation and reported as a
        structured error; nothing is retried. Cancellation propagates.
        """
        try:
            result = await self._run(tool_id, arguments)
        except DataLensToolError as e:
            logger.error(f"{e.kind.value} error in {tool_id}: {e.message}")
            return error_envelope(tool_id, e.to_dict())
        except Exception as e:
            logger.exception(f"Unexpected error in {tool_id}")
            return error_envelope(tool_id, {"kind": ErrorKind.INTERNAL.value, "message": str(e)})

        return success_envelope(tool_id, result)

    async def _run(self, tool_id: str, arguments: Optional[Mapping[str, Any]]) -> Any:
        resolved = resolve(tool_id)

        if resolved.kind is ToolKind.INTROSPECTION:
            return list_methods(arguments)

        if resolved.kind is ToolKind.SCHEMA:
            return get_method_schema(arguments)

        if resolved.kind is ToolKind.GENERIC:
            request = encode_generic(arguments, tool_id=tool_id)
            outcome = await self._send(request, tool_id)
            return decode_generic(outcome.body)

        if resolved.kind is ToolKind.TYPED:
            request = encode(resolved.descriptor, arguments)
            outcome = await self._send(request, tool_id)
            return decode(resolved.descriptor, outcome.body)

        raise AssertionError(f"Unhandled tool kind: {resolved.kind}")

    async def _send(self, request: EncodedRequest, tool_id: str) -> RpcSuccess:
        outcome = await self.client.call(
            request.verb,
            request.path,
            query=request.query,
            body=request.body,
        )
        if isinstance(outcome, RpcFailure):
            raise outcome.to_error(tool_id)
        return outcome

    async def aclose(self) -> None:
        await self.client.aclose()
