import asyncio
import base64
import pytest
from conftest import make_response
from tl.azure_devops_mcp_web.connection import AUTH_FAILED_MESSAGE, AzureDevOpsConnection, ConnectionProvider
from tl.azure_devops_mcp_web.errors import AuthenticationError, BackendError
from unittest.mock import MagicMock


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def ado(session):
    return AzureDevOpsConnection('contoso', 'secret-pat', session=session)


def sent(session):
    """Return (method, url, kwargs) of the last request made through the session."""
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


def test_pat_is_sent_as_basic_auth(session, ado):
    headers = session.headers.update.call_args[0][0]
    expected = base64.b64encode(b':secret-pat').decode()

    assert headers['Authorization'] == f'Basic {expected}'
    assert ado.server_url == 'https://dev.azure.com/contoso'


@pytest.mark.parametrize('organization,token', [('', 'pat'), ('contoso', ''), ('  ', 'pat')])
def test_missing_credentials_rejected(organization, token):
    with pytest.raises(AuthenticationError):
        AzureDevOpsConnection(organization, token, session=MagicMock())


def test_get_drops_unset_params_and_adds_api_version(session, ado):
    session.request.return_value = make_response(200, {'value': []})

    ado.get('_apis/projects', params={'$top': 5, 'continuationToken': None})

    method, url, kwargs = sent(session)
    assert method == 'GET'
    assert url == 'https://dev.azure.com/contoso/_apis/projects'
    assert kwargs['params'] == {'$top': 5, 'api-version': '7.1'}
    assert kwargs['timeout'] == 30.0


def test_service_hosts(session, ado):
    session.request.return_value = make_response(200, {'value': []})

    ado.get('Fabrikam/_apis/release/definitions', service='vsrm', api_version='7.1-preview.4')

    _, url, kwargs = sent(session)
    assert url == 'https://vsrm.dev.azure.com/contoso/Fabrikam/_apis/release/definitions'
    assert kwargs['params']['api-version'] == '7.1-preview.4'


def test_unknown_service_rejected(ado):
    with pytest.raises(ValueError):
        ado.service_url('feeds')


def test_get_missing_resource_returns_none(session, ado):
    session.request.return_value = make_response(404, {'message': 'not found'}, reason='Not Found')

    assert ado.get('_apis/wit/workitems/99') is None


def test_post_not_found_is_a_backend_error(session, ado):
    session.request.return_value = make_response(404, {'message': 'No such wiki'}, reason='Not Found')

    with pytest.raises(BackendError) as exc_info:
        ado.post('_apis/wiki/wikis/x/pagesbatch', json={})

    assert str(exc_info.value) == 'No such wiki'
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize('status', [401, 203])
def test_rejected_credentials(session, ado, status):
    session.request.return_value = make_response(status)

    with pytest.raises(AuthenticationError, match=AUTH_FAILED_MESSAGE):
        ado.get('_apis/projects')


def test_backend_message_kept_verbatim(session, ado):
    message = 'TF401019: The Git repository with name or identifier foo does not exist.'
    session.request.return_value = make_response(400, {'message': message}, reason='Bad Request')

    with pytest.raises(BackendError) as exc_info:
        ado.get('_apis/git/repositories/foo')

    assert str(exc_info.value) == message


def test_empty_body_returns_none(session, ado):
    session.request.return_value = make_response(204)

    assert ado.delete('_apis/wit/workitems/1') is None


def test_text_body_returned_as_text(session, ado):
    response = make_response(200)
    response._content = b'line one\nline two'
    response.headers['Content-Type'] = 'text/plain'
    session.request.return_value = response

    assert ado.get('Fabrikam/_apis/build/builds/1/logs/2') == 'line one\nline two'


def test_content_type_override(session, ado):
    session.request.return_value = make_response(200, {'id': 1})

    ado.patch('_apis/wit/workitems/1', json=[], content_type='application/json-patch+json')

    _, _, kwargs = sent(session)
    assert kwargs['headers'] == {'Content-Type': 'application/json-patch+json'}


@pytest.mark.asyncio
async def test_provider_constructs_connection_once():
    factory = MagicMock(return_value=MagicMock(server_url='https://dev.azure.com/contoso'))
    provider = ConnectionProvider(factory)

    first, second, third = await asyncio.gather(
        provider.get_connection(), provider.get_connection(), provider.get_connection()
    )

    assert first is second is third
    assert provider.constructed_count == 1
    assert provider.connected
    factory.assert_called_once_with()


@pytest.mark.asyncio
async def test_provider_wraps_construction_failure():
    provider = ConnectionProvider(MagicMock(side_effect=ValueError('bad url')))

    with pytest.raises(AuthenticationError, match='bad url'):
        await provider.get_connection()
    assert not provider.connected


@pytest.mark.asyncio
async def test_verify_counts_projects(provider, connection):
    connection.get.return_value = {'value': [{'name': 'A'}, {'name': 'B'}]}

    assert await provider.verify() == 2
    connection.get.assert_called_once_with('_apis/projects')


@pytest.mark.asyncio
async def test_verify_turns_backend_errors_into_authentication_errors(provider, connection):
    connection.get.side_effect = BackendError('HTTP 500: boom', status_code=500)

    with pytest.raises(AuthenticationError, match='boom'):
        await provider.verify()
