"""Starlette application exposing the MCP dispatcher over HTTP.

Routes:
    GET  /                        service description
    GET  /health                  health check
    GET  /sse                     Server-Sent Events stream
    POST /sse, /message, /mcp     JSON-RPC 2.0
    GET  /api/tools               tool catalog
    POST /api/tools/{tool_name}   direct tool call
"""

import json
from contextlib import asynccontextmanager
from loguru import logger
from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.config import MAX_HEARTBEAT_INTERVAL, Settings
from tl.azure_devops_mcp_web.connection import ConnectionProvider
from tl.azure_devops_mcp_web.dispatcher import (
    SERVER_NAME,
    McpDispatcher,
    is_client_error,
    parse_error_response,
    utc_timestamp,
)
from tl.azure_devops_mcp_web.errors import AuthenticationError
from tl.azure_devops_mcp_web.registry import ToolRegistry
from tl.azure_devops_mcp_web.sse import SSE_HEADERS, SseSessionManager
from typing import AsyncIterator


def create_app(
    settings: Settings,
    registry: ToolRegistry,
    provider: ConnectionProvider,
    instructions: str = '',
) -> Starlette:
    """Build the HTTP application.

    Args:
        settings: Runtime configuration
        registry: Populated tool registry
        provider: Shared Azure DevOps connection provider
        instructions: Server instructions returned from ``initialize``

    Returns:
        The Starlette application, with the dispatcher and SSE session manager
        available on ``app.state``
    """
    dispatcher = McpDispatcher(
        registry, provider, minimal_tools=settings.minimal_tools, instructions=instructions
    )
    sessions = SseSessionManager(heartbeat_interval=settings.heartbeat_interval)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(
            f'{SERVER_NAME} v{__version__} starting for organization {settings.organization} '
            f'with {len(registry)} tools'
        )
        if settings.verify_connection:
            try:
                await provider.verify()
            except AuthenticationError as e:
                logger.error(f'Failed to initialize MCP server: {str(e)}')
                raise
        yield
        logger.info(f'{SERVER_NAME} shutting down')

    async def root(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                'name': SERVER_NAME,
                'version': __version__,
                'organization': settings.organization,
                'endpoints': {
                    'health': 'GET /health - Health check',
                    'sse': 'GET /sse - Server-Sent Events stream',
                    'mcp': 'POST /mcp - JSON-RPC 2.0 endpoint for MCP protocol',
                    'message': 'POST /message - JSON-RPC 2.0 endpoint for SSE clients',
                    'tools': 'GET /api/tools - List available tools',
                    'callTool': 'POST /api/tools/{toolName} - Call a specific tool',
                },
            }
        )

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                'status': 'healthy',
                'version': __version__,
                'organization': settings.organization,
                'timestamp': utc_timestamp(),
            }
        )

    async def sse_stream(request: Request) -> EventSourceResponse:
        logger.debug(f'New SSE connection from {request.client.host if request.client else "unknown"}')
        # Session heartbeats keep the stream alive; the library ping only backs them up.
        return EventSourceResponse(
            sessions.event_stream(), headers=SSE_HEADERS, ping=int(MAX_HEARTBEAT_INTERVAL)
        )

    async def jsonrpc(request: Request) -> Response:
        if request.url.path == '/message':
            logger.debug(f'Message for SSE session {request.query_params.get("sessionId")}')
        try:
            message = await request.json()
        except ValueError as e:
            logger.warning(f'Rejected unparseable JSON-RPC body: {str(e)}')
            return JSONResponse(parse_error_response(), status_code=400)

        response = await dispatcher.dispatch(message)
        if response is None:
            return Response(status_code=204)
        return JSONResponse(response, status_code=400 if is_client_error(response) else 200)

    async def list_tools(request: Request) -> JSONResponse:
        tools = registry.list_tools(minimal=False)
        return JSONResponse({'success': True, 'count': len(tools), 'tools': tools})

    async def call_tool(request: Request) -> JSONResponse:
        tool_name = request.path_params['tool_name']
        body = await request.body()
        try:
            arguments = json.loads(body) if body.strip() else {}
            result = await dispatcher.execute_tool(tool_name, arguments)
        except Exception as e:
            logger.error(f'REST call to tool {tool_name} failed: {str(e)}')
            return JSONResponse({'success': False, 'error': str(e)}, status_code=400)
        return JSONResponse({'success': True, 'result': result})

    app = Starlette(
        routes=[
            Route('/', root, methods=['GET']),
            Route('/health', health, methods=['GET']),
            Route('/sse', sse_stream, methods=['GET']),
            Route('/sse', jsonrpc, methods=['POST']),
            Route('/message', jsonrpc, methods=['POST']),
            Route('/mcp', jsonrpc, methods=['POST']),
            Route('/api/tools', list_tools, methods=['GET']),
            Route('/api/tools/{tool_name}', call_tool, methods=['POST']),
        ],
        middleware=[
            Middleware(
                CORSMiddleware, allow_origins=['*'], allow_methods=['*'], allow_headers=['*']
            )
        ],
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.state.sessions = sessions
    return app
