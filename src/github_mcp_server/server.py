"""MCP server wiring for github-mcp-server.

Registers tool discovery and invocation on an MCP server and runs it over stdio.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

try:
    from mcp import types
    from mcp.server import Server
    from mcp.types import Resource, TextContent, Tool
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .errors import ToolError, to_error_result
from .tools import OPERATIONS, dispatch_tool, initialize_runtime_from_env, list_operations

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "github-mcp-server"
STATUS_URI = "github-mcp://server-status"

server = Server(SERVER_NAME)


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    tools = [
        Tool(name=entry["name"], description=entry["description"], inputSchema=entry["inputSchema"])
        for entry in list_operations()
    ]
    logger.info("Listed %s tools", len(tools))
    return tools


async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
    """Handle a raw tools/call request.

    Registered directly so an omitted ``arguments`` field reaches the dispatcher as None.
    """
    name = req.params.name
    try:
        envelope = await dispatch_tool(name, req.params.arguments)
    except ToolError as err:
        logger.error("Tool %s failed: %s", name, err)
        content = TextContent(type="text", text=json.dumps(to_error_result(err), indent=2))
        return types.ServerResult(types.CallToolResult(content=[content], isError=True))

    return types.ServerResult(types.CallToolResult.model_validate(envelope))


server.request_handlers[types.CallToolRequest] = handle_call_tool


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=STATUS_URI,
            name="Server Status",
            description="Non-secret server configuration and limits",
            mimeType="application/json",
        ),
    ]


def build_status() -> dict[str, Any]:
    """Describe the server without exposing the access token."""
    status: dict[str, Any] = {
        "server": SERVER_NAME,
        "version": __version__,
        "tools_available": len(OPERATIONS),
        "tool_names": list(OPERATIONS),
        "configured": False,
    }
    try:
        runtime = initialize_runtime_from_env()
    except ToolError:
        return status

    status["configured"] = True
    status["api_base_url"] = runtime.config.api_base_url
    status["limits"] = {
        "total_timeout_s": runtime.config.limits.total_timeout_s,
        "max_attempts": runtime.config.limits.max_attempts,
    }
    status["audit"] = {"file_sink_enabled": runtime.config.audit_log_path is not None}
    return status


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)
    if uri_s == STATUS_URI:
        return json.dumps(build_status(), indent=2)
    return json.dumps({"ok": False, "code": "NotFound", "message": "Unknown resource"}, indent=2)


async def run_server() -> None:
    """Run the server over stdio."""
    # Fail fast on a missing token before accepting any request.
    try:
        runtime = initialize_runtime_from_env()
    except ToolError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    logging.getLogger().setLevel(runtime.config.log_level)

    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("GitHub MCP Server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        runtime.audit.close()


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works."""
    tools = await list_tools()
    if [t.name for t in tools] != list(OPERATIONS):
        raise RuntimeError("Tool listing does not match the operation table")
    _ = await list_resources()
    print(f"{SERVER_NAME} {__version__}: {len(tools)} tools OK", file=sys.stderr)
