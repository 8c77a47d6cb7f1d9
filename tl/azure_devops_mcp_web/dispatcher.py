"""JSON-RPC 2.0 dispatcher for the MCP methods served over HTTP."""

import logfire
import time
from datetime import datetime, timezone
from loguru import logger
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR
from starlette.concurrency import run_in_threadpool
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.connection import ConnectionProvider
from tl.azure_devops_mcp_web.errors import ToolNotFoundError, ValidationError
from tl.azure_devops_mcp_web.normalizer import describe_tools_payload, normalize_result, payload_size
from tl.azure_devops_mcp_web.registry import ToolRegistry
from typing import Any, Dict, Optional


JSONRPC_VERSION = '2.0'
DEFAULT_PROTOCOL_VERSION = '2024-11-05'

SERVER_NAME = 'Azure DevOps MCP Server (PAT)'
SERVER_ID = 'azure-devops-mcp-pat'
TRANSPORT_NAME = 'streamable-https'


def success_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {'jsonrpc': JSONRPC_VERSION, 'id': request_id, 'result': result}


def error_response(
    request_id: Any, code: int, message: str, data: Optional[Any] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {'code': code, 'message': message}
    if data is not None:
        error['data'] = data
    return {'jsonrpc': JSONRPC_VERSION, 'id': request_id, 'error': error}


def parse_error_response() -> Dict[str, Any]:
    return error_response(None, PARSE_ERROR, 'Parse error')


def is_client_error(response: Dict[str, Any]) -> bool:
    """True when a response reports a request the server could not accept at all."""
    error = response.get('error') or {}
    return error.get('code') in (PARSE_ERROR, INVALID_REQUEST)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class McpDispatcher:
    """Routes JSON-RPC messages to protocol handlers and the tool registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        provider: ConnectionProvider,
        minimal_tools: bool = True,
        instructions: str = '',
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Tool catalog served by ``tools/list`` and ``tools/call``
            provider: Source of the shared Azure DevOps connection
            minimal_tools: Advertise tools without descriptions and with reduced schemas
            instructions: Text returned to clients in the ``initialize`` result
        """
        self.registry = registry
        self.provider = provider
        self.minimal_tools = minimal_tools
        self.instructions = instructions

    async def dispatch(self, message: Any) -> Optional[Dict[str, Any]]:
        """Handle one decoded JSON-RPC message.

        Returns:
            The response envelope, or None for a notification
        """
        try:
            response = await self._dispatch(message)
        except Exception as e:
            logger.exception(f'Unexpected error handling JSON-RPC request: {e}')
            request_id = message.get('id') if isinstance(message, dict) else None
            response = error_response(request_id, INTERNAL_ERROR, 'Internal error')

        if response is not None:
            self._log_response(message, response)
        return response

    async def _dispatch(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict) or message.get('jsonrpc') != JSONRPC_VERSION:
            request_id = message.get('id') if isinstance(message, dict) else None
            return error_response(request_id, INVALID_REQUEST, 'Invalid Request')

        request_id = message.get('id')
        method = message.get('method')

        # A client answering with an error has nothing further to do here.
        if method is None and 'error' in message:
            logger.warning(f'Client reported an error for request {request_id}: {message["error"]}')
            return success_response(request_id, {'acknowledged': True})

        if not isinstance(method, str) or not method:
            return error_response(request_id, INVALID_REQUEST, 'Missing method')

        if method.startswith('notifications/') and 'id' not in message:
            logger.debug(f'Received notification: {method}')
            return None

        params = message.get('params')
        if not isinstance(params, dict):
            params = {}

        logger.debug(f'Handling JSON-RPC method {method} (id={request_id})')
        if method == 'initialize':
            return success_response(request_id, self.initialize_result(params))
        if method == 'tools/list':
            return success_response(
                request_id, {'tools': self.registry.list_tools(minimal=self.minimal_tools)}
            )
        if method == 'tools/call':
            return await self._call_tool(request_id, params)
        if method == 'ping':
            return success_response(request_id, {'timestamp': utc_timestamp()})
        if method == 'hello':
            return success_response(
                request_id,
                {
                    'serverName': SERVER_ID,
                    'serverVersion': __version__,
                    'transport': TRANSPORT_NAME,
                },
            )
        return error_response(request_id, METHOD_NOT_FOUND, 'Method not found')

    def initialize_result(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'protocolVersion': params.get('protocolVersion') or DEFAULT_PROTOCOL_VERSION,
            'capabilities': {
                'tools': {'listChanged': True},
                'transport': {'name': TRANSPORT_NAME, 'supported': True},
            },
            'serverInfo': {
                'name': SERVER_NAME,
                'version': __version__,
                'transport': TRANSPORT_NAME,
            },
            'instructions': self.instructions,
        }

    async def _call_tool(self, request_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get('name')
        if not isinstance(name, str) or not name:
            return error_response(request_id, INVALID_PARAMS, 'Missing tool name')

        arguments = params.get('arguments')
        if arguments is None:
            arguments = {}

        try:
            result = await self.execute_tool(name, arguments)
        except ToolNotFoundError as e:
            return error_response(request_id, METHOD_NOT_FOUND, str(e))
        except ValidationError as e:
            return error_response(request_id, INVALID_PARAMS, str(e))
        except Exception as e:
            logger.error(f'Error executing tool {name}: {str(e)}')
            logfire.error('Tool execution failed', tool=name, error=str(e))
            return error_response(
                request_id, INTERNAL_ERROR, 'Internal error executing tool', data=str(e)
            )
        return success_response(request_id, result)

    async def execute_tool(self, name: str, arguments: Any) -> Dict[str, Any]:
        """Run a tool and return its normalized result.

        Shared by the JSON-RPC, REST and stdio surfaces. A result flagged with
        ``isError`` is returned, not raised.

        Args:
            name: Registered tool name
            arguments: Tool arguments object

        Returns:
            The ``{content, isError?}`` payload

        Raises:
            ToolNotFoundError: If no tool has that name
            ValidationError: If the arguments are not an object or miss a required key
            AuthenticationError: If the backend connection cannot be established
            MalformedToolResultError: If the handler returned an unsupported shape
        """
        tool = self.registry.lookup(name)
        if tool is None:
            raise ToolNotFoundError(name)
        arguments = tool.validate_arguments(arguments)

        connection = await self.provider.get_connection()
        started = time.perf_counter()
        result = normalize_result(await run_in_threadpool(tool.handler, arguments, connection))
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        is_error = bool(result.get('isError'))
        logger.info(f'Tool {name} executed in {duration_ms}ms (isError={is_error})')
        logfire.info('Tool executed', tool=name, is_error=is_error, duration_ms=duration_ms)
        return result

    def _log_response(self, message: Any, response: Dict[str, Any]) -> None:
        method = message.get('method') if isinstance(message, dict) else None
        size, tokens = payload_size(response)
        logger.debug(f'Response to {method or "request"}: {size} bytes, ~{tokens} tokens')
        if method == 'tools/list' and 'result' in response:
            breakdown = describe_tools_payload(response['result']['tools'])
            logger.debug(f'tools/list payload breakdown: {breakdown}')
