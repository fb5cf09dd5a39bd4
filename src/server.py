"""Main MCP server implementation for VRML scene conversion."""

import asyncio
import json
import logging

from mcp import Tool
from mcp.server import Server, NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.types import TextContent

from .config.settings import get_setting
from .tools.scene_tools import SceneTools

# Configure logging
logging.basicConfig(level=getattr(logging, get_setting('log_level'), logging.INFO))
logger = logging.getLogger(__name__)


class VrmlSceneMCPServer:
    """MCP Server converting VRML scenes into renderer scene descriptions."""

    def __init__(self):
        """Initialize the MCP server and its tool handlers."""
        self.scene_tools = SceneTools()

        # Create MCP server instance
        self.server = Server("vrml-scene-mcp")

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all MCP handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> list[Tool]:
            """List all available tools."""
            return self.scene_tools.get_tools()

        @self.server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> list[TextContent]:
            """Route tool calls to appropriate handlers."""
            try:
                if name.startswith("vrml_"):
                    result = await self.scene_tools.handle_tool(name, arguments)
                else:
                    raise ValueError(f"Unknown tool: {name}")

                return [TextContent(type="text", text=json.dumps(result, indent=2))]

            except Exception as e:
                logger.error(f"Error executing tool {name}: {e}")
                error_result = {
                    "error": str(e),
                    "tool": name,
                }
                return [TextContent(type="text", text=json.dumps(error_result, indent=2))]

    async def run(self):
        """Run the MCP server."""
        from mcp.server.stdio import stdio_server

        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name="vrml-scene-mcp",
                    server_version="0.1.0",
                    capabilities=self.server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={}
                    )
                )
            )


def main():
    """Main entry point for the MCP server."""
    server = VrmlSceneMCPServer()
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
