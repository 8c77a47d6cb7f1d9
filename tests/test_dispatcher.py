import pytest
from conftest import text_of
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.dispatcher import McpDispatcher
from tl.azure_devops_mcp_web.registry import ToolDefinition, ToolRegistry


@pytest.fixture
def dispatcher(registry, provider):
    return McpDispatcher(registry, provider, minimal_tools=True, instructions='Be helpful.')


def request(method, params=None, request_id=1):
    message = {'jsonrpc': '2.0', 'id': request_id, 'method': method}
    if params is not None:
        message['params'] = params
    return message


@pytest.mark.asyncio
async def test_initialize_echoes_client_protocol_version(dispatcher):
    response = await dispatcher.dispatch(request('initialize', {'protocolVersion': '2025-03-26'}))
    result = response['result']

    assert result['protocolVersion'] == '2025-03-26'
    assert result['capabilities']['tools'] == {'listChanged': True}
    assert result['capabilities']['transport'] == {'name': 'streamable-https', 'supported': True}
    assert result['serverInfo'] == {
        'name': 'Azure DevOps MCP Server (PAT)',
        'version': __version__,
        'transport': 'streamable-https',
    }
    assert result['instructions'] == 'Be helpful.'


@pytest.mark.asyncio
async def test_initialize_defaults_protocol_version(dispatcher):
    response = await dispatcher.dispatch(request('initialize'))

    assert response['result']['protocolVersion'] == '2024-11-05'


@pytest.mark.asyncio
async def test_tools_list_is_minimal(dispatcher, registry):
    response = await dispatcher.dispatch(request('tools/list', request_id='list-1'))

    assert response['id'] == 'list-1'
    assert len(response['result']['tools']) == len(registry)
    assert {tool['description'] for tool in response['result']['tools']} == {''}


@pytest.mark.asyncio
async def test_tools_call_returns_tool_content(dispatcher, connection):
    connection.get.return_value = {'value': [{'name': 'Fabrikam'}]}

    response = await dispatcher.dispatch(
        request('tools/call', {'name': 'core_list_projects', 'arguments': {}}, request_id=7)
    )

    assert response['id'] == 7
    assert 'Fabrikam' in text_of(response['result'])
    assert 'isError' not in response['result']


@pytest.mark.asyncio
async def test_empty_project_list_is_an_in_band_error(dispatcher, connection):
    connection.get.return_value = {'value': []}

    response = await dispatcher.dispatch(request('tools/call', {'name': 'core_list_projects'}))

    assert 'error' not in response
    assert response['result']['isError'] is True
    assert text_of(response['result']) == 'No projects found in the organization.'


@pytest.mark.asyncio
async def test_unknown_tool(dispatcher):
    response = await dispatcher.dispatch(request('tools/call', {'name': 'nope'}))

    assert response['error'] == {'code': METHOD_NOT_FOUND, 'message': 'Tool not found: nope'}


@pytest.mark.asyncio
async def test_missing_required_argument_skips_backend(dispatcher, connection):
    response = await dispatcher.dispatch(
        request('tools/call', {'name': 'wit_get_work_item', 'arguments': {}})
    )

    assert response['error']['code'] == INVALID_PARAMS
    assert 'id' in response['error']['message']
    connection.get.assert_not_called()


@pytest.mark.asyncio
async def test_missing_tool_name(dispatcher):
    response = await dispatcher.dispatch(request('tools/call', {'arguments': {}}))

    assert response['error'] == {'code': INVALID_PARAMS, 'message': 'Missing tool name'}


@pytest.mark.asyncio
async def test_non_object_arguments(dispatcher):
    response = await dispatcher.dispatch(
        request('tools/call', {'name': 'core_list_projects', 'arguments': [1, 2]})
    )

    assert response['error']['code'] == INVALID_PARAMS


@pytest.mark.asyncio
async def test_handler_exception_becomes_internal_error(provider):
    def explode(args, connection):
        raise RuntimeError('boom')

    registry = ToolRegistry()
    registry.register(
        ToolDefinition(name='explode', description='', input_schema={'type': 'object'}, handler=explode)
    )
    dispatcher = McpDispatcher(registry, provider)

    response = await dispatcher.dispatch(request('tools/call', {'name': 'explode'}))

    assert response['error'] == {
        'code': INTERNAL_ERROR,
        'message': 'Internal error executing tool',
        'data': 'boom',
    }


@pytest.mark.asyncio
async def test_malformed_handler_result_becomes_internal_error(provider):
    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name='bad', description='', input_schema={'type': 'object'}, handler=lambda a, c: 42
        )
    )
    dispatcher = McpDispatcher(registry, provider)

    response = await dispatcher.dispatch(request('tools/call', {'name': 'bad'}))

    assert response['error']['code'] == INTERNAL_ERROR
    assert response['error']['data'] == 'malformed tool result: int'


@pytest.mark.asyncio
async def test_notification_has_no_response(dispatcher):
    message = {'jsonrpc': '2.0', 'method': 'notifications/initialized'}

    assert await dispatcher.dispatch(message) is None


@pytest.mark.asyncio
async def test_ping_returns_utc_timestamp(dispatcher):
    response = await dispatcher.dispatch(request('ping'))

    assert response['result']['timestamp'].endswith('Z')


@pytest.mark.asyncio
async def test_hello(dispatcher):
    response = await dispatcher.dispatch(request('hello'))

    assert response['result'] == {
        'serverName': 'azure-devops-mcp-pat',
        'serverVersion': __version__,
        'transport': 'streamable-https',
    }


@pytest.mark.asyncio
async def test_unknown_method(dispatcher):
    response = await dispatcher.dispatch(request('resources/list'))

    assert response['error'] == {'code': METHOD_NOT_FOUND, 'message': 'Method not found'}


@pytest.mark.asyncio
async def test_wrong_jsonrpc_version_is_invalid_request(dispatcher):
    response = await dispatcher.dispatch({'jsonrpc': '1.0', 'id': 3, 'method': 'ping'})

    assert response == {
        'jsonrpc': '2.0',
        'id': 3,
        'error': {'code': INVALID_REQUEST, 'message': 'Invalid Request'},
    }


@pytest.mark.asyncio
async def test_non_object_message_is_invalid_request(dispatcher):
    response = await dispatcher.dispatch(['ping'])

    assert response['id'] is None
    assert response['error']['code'] == INVALID_REQUEST


@pytest.mark.asyncio
async def test_missing_method(dispatcher):
    response = await dispatcher.dispatch({'jsonrpc': '2.0', 'id': 4})

    assert response['error'] == {'code': INVALID_REQUEST, 'message': 'Missing method'}


@pytest.mark.asyncio
async def test_client_error_response_is_acknowledged(dispatcher):
    response = await dispatcher.dispatch(
        {'jsonrpc': '2.0', 'id': 5, 'error': {'code': -32000, 'message': 'client failed'}}
    )

    assert response == {'jsonrpc': '2.0', 'id': 5, 'result': {'acknowledged': True}}


@pytest.mark.asyncio
async def test_execute_tool_connects_once(dispatcher, provider, connection):
    connection.get.return_value = {'value': [{'name': 'Fabrikam'}]}

    await dispatcher.execute_tool('core_list_projects', {})
    await dispatcher.execute_tool('list_projects', {'nameFilter': 'fab'})

    assert provider.constructed_count == 1


@pytest.mark.asyncio
async def test_plain_text_alias_result_is_normalized(dispatcher, connection):
    connection.get.return_value = {'value': [{'name': 'Fabrikam'}]}

    result = await dispatcher.execute_tool('list_projects', {})

    assert result == {'content': [{'type': 'text', 'text': '[\n  {\n    "name": "Fabrikam"\n  }\n]'}]}
