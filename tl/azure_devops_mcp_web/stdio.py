"""stdio transport built on the MCP SDK's low-level server."""

from loguru import logger
from mcp import types as mcp_types
from mcp.server import Server as McpServer
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.connection import ConnectionProvider
from tl.azure_devops_mcp_web.dispatcher import SERVER_ID, McpDispatcher
from tl.azure_devops_mcp_web.errors import ToolExecutionError
from tl.azure_devops_mcp_web.normalizer import content_text
from tl.azure_devops_mcp_web.registry import ToolRegistry
from typing import Any, Dict, List, Optional


def create_stdio_server(
    registry: ToolRegistry, provider: ConnectionProvider
) -> McpServer:
    """Build an MCP server whose tools are served from the registry."""
    server = McpServer(SERVER_ID)
    dispatcher = McpDispatcher(registry, provider, minimal_tools=False)

    @server.list_tools()
    async def handle_list_tools() -> List[mcp_types.Tool]:
        return [
            mcp_types.Tool(
                name=tool['name'],
                description=tool['description'],
                inputSchema=tool['inputSchema'],
            )
            for tool in registry.list_tools(minimal=False)
        ]

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[mcp_types.TextContent]:
        logger.debug(f'stdio callTool: name={name}')
        result = await dispatcher.execute_tool(name, arguments or {})
        texts = content_text(result)
        # The SDK reports a raised exception as an isError result.
        if result.get('isError'):
            raise ToolExecutionError('\n'.join(texts))
        return [mcp_types.TextContent(type='text', text=text) for text in texts]

    return server


async def serve_stdio(
    registry: ToolRegistry,
    provider: ConnectionProvider,
    instructions: str = '',
    verify_connection: bool = True,
) -> None:
    """Serve MCP over stdin/stdout until the client closes the stream."""
    if verify_connection:
        await provider.verify()

    server = create_stdio_server(registry, provider)
    init_options = InitializationOptions(
        server_name=SERVER_ID,
        server_version=__version__,
        capabilities=server.get_capabilities(NotificationOptions(), {}),
        instructions=instructions,
    )
    logger.info(f'Serving {len(registry)} tools over stdio')
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, init_options)
