#!/usr/bin/env python3
"""
DataLens MCP Server

Exposes the DataLens RPC API as MCP tools over stdio.
stdout carries the MCP stream, so all logging goes to stderr.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List

from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool

from .catalog import GENERIC_TOOL_ID, INTROSPECTION_TOOL_ID, SCHEMA_TOOL_ID
from .client import DataLensClient
from .config import EnvCredentials, Settings
from .dispatcher import Dispatcher
from .registry import tool_definitions

logger = logging.getLogger(__name__)

SERVER_NAME = "datalens-mcp"

INSTRUCTIONS = (
    "Yandex DataLens MCP server. Configure DATALENS_ORG_ID and YC_IAM_TOKEN "
    "(or DATALENS_IAM_TOKEN) before calling tools. For broad RPC usage: call "
    f"{INTROSPECTION_TOOL_ID}, then {SCHEMA_TOOL_ID} for the chosen method, then "
    f"call either a typed tool or {GENERIC_TOOL_ID}."
)


class ToolCallFailed(Exception):
    """Carries a failed envelope out of the handler so the result is flagged isError."""


async def handle_call(dispatcher: Dispatcher, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatch one tools/call. Failed envelopes are raised as ToolCallFailed."""
    envelope = await dispatcher.dispatch(name, arguments)
    if not envelope["ok"]:
        raise ToolCallFailed(json.dumps(envelope, ensure_ascii=False, indent=2))
    return envelope


def create_server(dispatcher: Dispatcher) -> Server:
    server = Server(SERVER_NAME, instructions=INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        """List typed DataLens tools plus the utility tools."""
        return tool_definitions()

    # Arguments are validated by the codec, not the SDK
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return await handle_call(dispatcher, name, arguments)

    return server


async def serve(settings: Settings) -> None:
    """Run the MCP server until the host closes stdin."""
    dispatcher = Dispatcher(DataLensClient(settings))
    server = create_server(dispatcher)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    finally:
        await dispatcher.aclose()


def cli() -> None:
    load_dotenv()
    settings = Settings.from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger.info(
        f"Starting {SERVER_NAME} server (base_url={settings.base_url}, "
        f"api_version={settings.api_version})"
    )

    creds = EnvCredentials().current()
    if not creds.org_id:
        logger.warning("DATALENS_ORG_ID is not set; tool calls will fail until it is configured")
    if not creds.token:
        logger.warning(
            "YC_IAM_TOKEN / DATALENS_IAM_TOKEN is not set; tool calls will fail until it is configured"
        )

    asyncio.run(serve(settings))


if __name__ == "__main__":
    cli()
