"""Azure DevOps MCP Web Server.

This module provides the entry point for the Azure DevOps MCP web server. It loads
configuration, sets up logging, builds the tool registry and starts either the HTTP
transport (JSON-RPC, SSE and REST) or the stdio transport.
"""

import asyncio
import logfire
import sys
import uvicorn
from loguru import logger
from tl.azure_devops_mcp_web.app import create_app
from tl.azure_devops_mcp_web.config import Settings, load_config
from tl.azure_devops_mcp_web.connection import ConnectionProvider
from tl.azure_devops_mcp_web.errors import AuthenticationError, ConfigurationError
from tl.azure_devops_mcp_web.registry import ToolRegistry
from tl.azure_devops_mcp_web.stdio import serve_stdio
from tl.azure_devops_mcp_web.tools import register_all_tools


# Server constants for Azure DevOps MCP Web Server
SERVER_INSTRUCTIONS = """
You are connected to an Azure DevOps organization and can help users with:

1. Browsing projects, teams and identities
2. Reading, creating, updating and querying work items
3. Inspecting and running build pipelines, logs and changes
4. Exploring Git repositories, branches, commits and pull requests
5. Reading and editing wiki pages
6. Managing releases, test plans and test cases
7. Reviewing Advanced Security alerts

Prefer the narrowest tool for the task. Project-scoped tools need a project
name or ID; call core_list_projects first when the project is unknown.
Results are returned as JSON text. A result flagged as an error carries the
Azure DevOps message explaining what went wrong.
"""


def setup_logging(settings: Settings) -> None:
    """Set up logging configuration."""
    if not settings.logfire_token:
        logger.warning('LOGFIRE_WRITE_TOKEN not found in environment variables.')
    else:
        logger.info('LOGFIRE_WRITE_TOKEN successfully loaded.')

    logfire.configure(token=settings.logfire_token or None, send_to_logfire='if-token-present')
    logger.configure(handlers=[logfire.loguru_handler()])


def create_registry() -> ToolRegistry:
    """Build the registry holding every Azure DevOps tool."""
    registry = register_all_tools(ToolRegistry())
    if registry.duplicates:
        logger.info(f'Resolved duplicate tool names: {", ".join(registry.duplicates)}')
    logger.info(f'Registered {len(registry)} Azure DevOps tools')
    return registry


def main() -> None:
    """Main entry point to start the MCP server."""
    # Load configuration before starting the server
    load_config()
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    # Configure logging
    setup_logging(settings)

    registry = create_registry()
    provider = ConnectionProvider.from_settings(settings)

    if settings.transport == 'stdio':
        try:
            asyncio.run(
                serve_stdio(
                    registry,
                    provider,
                    instructions=SERVER_INSTRUCTIONS,
                    verify_connection=settings.verify_connection,
                )
            )
        except AuthenticationError as e:
            logger.error(f'Failed to initialize MCP server: {str(e)}')
            sys.exit(1)
        return

    app = create_app(settings, registry, provider, instructions=SERVER_INSTRUCTIONS)
    logger.info(f'Starting Azure DevOps MCP web server on http://{settings.host}:{settings.port}')
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == '__main__':
    main()
