"""
MCP HTTP Server

HTTP API server that exposes the built-in registry tools and every enabled
API as a tool. Tools are rebuilt from the registry on each request.

MCP clients connect to the Streamable HTTP endpoint at `/mcp`; the `/tools`
routes offer the same tools as plain JSON endpoints.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from pydantic import BaseModel

from . import __version__
from .auth import BearerTokenGuard
from .stdio import build_server
from .toolbox import Toolbox

logger = logging.getLogger(__name__)


class ToolRequest(BaseModel):
    """Request body for tool execution."""

    arguments: Dict[str, Any] = {}


class ToolResponse(BaseModel):
    """Response from tool execution."""

    success: bool
    tool: str
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None


class McpEndpoint:
    """ASGI endpoint handing `/mcp` requests to the MCP session manager behind the bearer check."""

    def __init__(self, session_manager: StreamableHTTPSessionManager, guard: BearerTokenGuard):
        self.session_manager = session_manager
        self.guard = guard

    async def __call__(self, scope, receive, send) -> None:
        request = Request(scope, receive)
        detail = self.guard.check(request.headers.get("authorization"), request.url.path)
        if detail is not None:
            response = JSONResponse({"detail": detail}, status_code=401)
            await response(scope, receive, send)
            return

        await self.session_manager.handle_request(scope, receive, send)


def create_app(toolbox: Toolbox, auth_token: Optional[str] = None) -> FastAPI:
    """Build the FastAPI application around a shared toolbox."""
    guard = BearerTokenGuard(auth_token)
    session_manager = StreamableHTTPSessionManager(app=build_server(toolbox), json_response=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tools = await toolbox.get_all_tools()
        logger.info(f"MCP OpenAPI server starting with {len(tools)} tools")
        for name in tools:
            logger.info(f"  - {name}")

        async with session_manager.run():
            yield

        await toolbox.invoker.aclose()
        logger.info("MCP OpenAPI server shutting down")

    app = FastAPI(
        title="MCP OpenAPI Server",
        description="Manage and call HTTP APIs as MCP tools",
        version=__version__,
        lifespan=lifespan,
        dependencies=[Depends(guard)],
    )
    app.state.toolbox = toolbox
    app.add_route("/mcp", McpEndpoint(session_manager, guard), methods=["GET", "POST", "DELETE"])

    # ============== API Endpoints ==============

    @app.get("/")
    async def root():
        return {
            "service": "MCP OpenAPI Server",
            "version": __version__,
            "tools_count": len(await toolbox.list_tool_names()),
            "management_enabled": toolbox.enable_management,
            "endpoints": {
                "list_tools": "/tools",
                "tool_schema": "/tools/schema",
                "execute": "/tools/{tool_name}/execute",
                "health": "/health",
                "mcp": "/mcp",
            },
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy", "tools_loaded": len(await toolbox.list_tool_names())}

    @app.get("/tools")
    async def list_tools():
        tools = await toolbox.get_all_tools()
        return {
            "total": len(tools),
            "tools": [
                {
                    "name": name,
                    "description": tool.description,
                    "category": tool.category,
                }
                for name, tool in tools.items()
            ],
        }

    @app.get("/tools/schema")
    async def get_tools_schema():
        return {"tools": await toolbox.get_tools_schema()}

    @app.get("/tools/{tool_name}")
    async def get_tool_info(tool_name: str):
        tool = await toolbox.get_tool(tool_name)
        if tool is None:
            raise HTTPException(status_code=404, detail=f"Tool not found: {tool_name}")

        return {
            "name": tool.name,
            "description": tool.description,
            "category": tool.category,
            "inputSchema": tool.input_schema,
        }

    @app.post("/tools/{tool_name}/execute", response_model=ToolResponse)
    async def execute_tool_endpoint(tool_name: str, request: ToolRequest):
        result = await toolbox.execute_tool(tool_name, request.arguments)
        return ToolResponse(**result)

    return app
