"""Shared fixtures for the Azure DevOps MCP web server tests."""

import json
import pytest
import requests
from tl.azure_devops_mcp_web.config import Settings
from tl.azure_devops_mcp_web.connection import AzureDevOpsConnection, ConnectionProvider
from tl.azure_devops_mcp_web.registry import ToolRegistry
from tl.azure_devops_mcp_web.tools import register_all_tools
from unittest.mock import MagicMock


def make_response(status_code=200, payload=None, headers=None, reason='OK'):
    """Build a real requests.Response carrying an optional JSON payload."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    if payload is not None:
        response._content = json.dumps(payload).encode()
        response.headers['Content-Type'] = 'application/json; charset=utf-8'
    else:
        response._content = b''
    response.headers.update(headers or {})
    return response


@pytest.fixture
def settings():
    return Settings(
        organization='contoso',
        personal_access_token='secret-pat',
        organization_url='https://dev.azure.com/contoso',
        heartbeat_interval=0.05,
        verify_connection=False,
    )


@pytest.fixture
def connection():
    """A stand-in for the Azure DevOps connection; tests set return values per call."""
    fake = MagicMock(spec=AzureDevOpsConnection)
    fake.server_url = 'https://dev.azure.com/contoso'
    fake.organization = 'contoso'
    return fake


@pytest.fixture
def provider(connection):
    return ConnectionProvider(lambda: connection)


@pytest.fixture
def registry():
    return register_all_tools(ToolRegistry())


def text_of(result):
    """Concatenate the text items of a tool result."""
    return ''.join(item['text'] for item in result['content'])
