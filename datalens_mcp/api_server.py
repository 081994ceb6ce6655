#!/usr/bin/env python3
"""
HTTP Debug Server

Serves the same tool registry and dispatcher as the stdio MCP server over
plain HTTP, for poking at tools with curl during development.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .catalog import CATALOG_SNAPSHOT
from .client import DataLensClient
from .config import Settings
from .dispatcher import Dispatcher
from .registry import get_tool_definition, list_tool_names, tool_definitions

logger = logging.getLogger(__name__)

SERVICE_NAME = "DataLens MCP Debug Server"
SERVICE_VERSION = "0.1.0"


class ToolRequest(BaseModel):
    """Request body for tool execution."""

    arguments: Dict[str, Any] = {}


class ToolResponse(BaseModel):
    """Result envelope of one tool invocation."""

    tool_id: str
    ok: bool
    result: Any = None
    error: Optional[Dict[str, Any]] = None


def _tool_summary(tool) -> Dict[str, Any]:
    return {
        "name": tool.name,
        "description": tool.description,
        "inputSchema": tool.inputSchema,
        "annotations": tool.annotations.model_dump(exclude_none=True) if tool.annotations else None,
    }


def create_app(settings: Settings = None, dispatcher: Dispatcher = None) -> FastAPI:
    """
    Build the debug app.

    A dispatcher passed in is used as-is and left open on shutdown;
    otherwise one is created from `settings` and closed with the app.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        owned = dispatcher is None
        app.state.dispatcher = dispatcher or Dispatcher(DataLensClient(settings))
        logger.info(f"Debug server starting with {len(list_tool_names())} tools")

        yield

        if owned:
            await app.state.dispatcher.aclose()
        logger.info("Debug server shutting down")

    app = FastAPI(
        title=SERVICE_NAME,
        description="HTTP facade over the DataLens MCP tools",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============== API Endpoints ==============

    @app.get("/")
    async def root():
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "catalog": dict(CATALOG_SNAPSHOT),
            "tools_count": len(list_tool_names()),
            "endpoints": {
                "list_tools": "/tools",
                "tool_info": "/tools/{tool_name}",
                "execute": "/tools/{tool_name}/execute",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health(request: Request):
        creds = request.app.state.dispatcher.client.credentials.current()
        return {
            "status": "healthy",
            "tools_loaded": len(list_tool_names()),
            "credentials_configured": creds.complete,
        }

    @app.get("/tools")
    async def list_tools():
        tools = tool_definitions()
        return {
            "total": len(tools),
            "tools": [_tool_summary(tool) for tool in tools],
        }

    @app.get("/tools/{tool_name}")
    async def get_tool_info(tool_name: str):
        tool = get_tool_definition(tool_name)
        if tool is None:
            raise HTTPException(status_code=404, detail=f"Tool not found: {tool_name}")
        return _tool_summary(tool)

    @app.post("/tools/{tool_name}/execute", response_model=ToolResponse)
    async def execute_tool_endpoint(tool_name: str, request: ToolRequest, http_request: Request):
        envelope = await http_request.app.state.dispatcher.dispatch(tool_name, request.arguments)
        return ToolResponse(**envelope)

    return app


def main():
    """Run the debug server."""
    import uvicorn

    load_dotenv()
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting debug server on {settings.http_host}:{settings.http_port}")
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
