"""
MCP Protocol Server

Serves the toolbox over the Model Context Protocol. `run_stdio` speaks it on
stdin/stdout; the HTTP app mounts the same server at `/mcp`.
"""

import json
import logging
from typing import Any, Dict, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .toolbox import Toolbox

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-openapi"

INSTRUCTIONS = (
    "This MCP server allows you to manage and call HTTP APIs as tools. "
    "Use 'list_apis' to see available APIs, 'add_api' to register new APIs, "
    "and call APIs directly by their registered names."
)


class ToolCallError(Exception):
    """Raised from the call handler so the MCP server reports an error result."""


def render_result(envelope: Dict[str, Any]) -> str:
    """Text content for a tool envelope."""
    if not envelope["success"]:
        return f"Error: {envelope['error']}"

    result = envelope["result"]
    if isinstance(result, dict) and "text" in result:
        return result["text"]
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, indent=2)


def is_error_envelope(envelope: Dict[str, Any]) -> bool:
    if not envelope["success"]:
        return True
    result = envelope["result"]
    return isinstance(result, dict) and bool(result.get("is_error"))


def build_server(toolbox: Toolbox) -> Server:
    server = Server(SERVER_NAME, instructions=INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return [
            Tool(
                name=schema["name"],
                description=schema["description"],
                inputSchema=schema["inputSchema"],
            )
            for schema in await toolbox.get_tools_schema()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        envelope = await toolbox.execute_tool(name, arguments or {})
        text = render_result(envelope)
        if is_error_envelope(envelope):
            raise ToolCallError(text)
        return [TextContent(type="text", text=text)]

    return server


async def run_stdio(toolbox: Toolbox) -> None:
    """Run the MCP server until stdin closes."""
    server = build_server(toolbox)
    logger.info("Starting stdio transport...")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    finally:
        await toolbox.invoker.aclose()
