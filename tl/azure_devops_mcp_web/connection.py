"""Azure DevOps backend connection and its lazy, process-wide provider."""

import asyncio
import base64
import logfire
import requests
from loguru import logger
from starlette.concurrency import run_in_threadpool
from tl.azure_devops_mcp_web.config import DEFAULT_API_VERSION, DEFAULT_TIMEOUT, Settings
from tl.azure_devops_mcp_web.errors import AuthenticationError, BackendError
from typing import Any, Callable, Dict, Optional


AUTH_FAILED_MESSAGE = 'Authentication failed. Please check your PAT token.'

# Services hosted outside the organization URL, keyed by their host prefix.
SERVICE_HOSTS = ('vssps', 'almsearch', 'vsrm', 'vstmr', 'advsec')


class AzureDevOpsConnection:
    """Authenticated access to the Azure DevOps REST API for one organization."""

    def __init__(
        self,
        organization: str,
        personal_access_token: str,
        organization_url: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the connection.

        Args:
            organization: Azure DevOps organization name
            personal_access_token: PAT used for basic authentication
            organization_url: Base URL of the organization, defaults to dev.azure.com
            api_version: Default api-version query parameter
            timeout: Per-request timeout in seconds
            session: Optional pre-built requests session
        """
        if not organization or not organization.strip():
            raise AuthenticationError('Azure DevOps organization is required')
        if not personal_access_token or not personal_access_token.strip():
            raise AuthenticationError('Azure DevOps personal access token is required')

        self.organization = organization.strip()
        self.server_url = (
            organization_url or f'https://dev.azure.com/{self.organization}'
        ).rstrip('/')
        self.api_version = api_version
        self.timeout = timeout

        credentials = base64.b64encode(f':{personal_access_token}'.encode()).decode()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                'Authorization': f'Basic {credentials}',
                'Content-Type': 'application/json',
                'Accept': 'application/json',
            }
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> 'AzureDevOpsConnection':
        """Create a connection from runtime settings."""
        return cls(
            organization=settings.organization,
            personal_access_token=settings.personal_access_token,
            organization_url=settings.organization_url,
            api_version=settings.api_version,
            timeout=settings.request_timeout,
        )

    def service_url(self, service: Optional[str] = None) -> str:
        """Return the base URL of the organization or one of its sibling services.

        Args:
            service: Host prefix such as 'vssps' or 'almsearch'; None for the organization URL

        Returns:
            Base URL without a trailing slash
        """
        if service is None:
            return self.server_url
        if service not in SERVICE_HOSTS:
            raise ValueError(f'Unknown Azure DevOps service: {service}')
        return f'https://{service}.dev.azure.com/{self.organization}'

    def build_url(self, path: str, service: Optional[str] = None) -> str:
        """Resolve a relative API path against the organization or a service host."""
        if path.startswith(('http://', 'https://')):
            return path
        return f'{self.service_url(service)}/{path.lstrip("/")}'

    def send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        api_version: Optional[str] = None,
        service: Optional[str] = None,
        content_type: Optional[str] = None,
        allow_not_found: bool = False,
    ) -> requests.Response:
        """Send a request and check its status.

        Args:
            method: HTTP verb
            path: API path relative to the organization (or service) URL, or an absolute URL
            params: Query parameters; entries whose value is None are dropped
            json: JSON request body
            headers: Extra request headers
            api_version: api-version override for this call
            service: Sibling service host prefix
            content_type: Content-Type override, e.g. for JSON patch documents
            allow_not_found: Return 404 responses instead of raising

        Returns:
            The HTTP response

        Raises:
            AuthenticationError: If the credentials are rejected
            BackendError: If the service answers with an error status
        """
        query = {key: value for key, value in (params or {}).items() if value is not None}
        query.setdefault('api-version', api_version or self.api_version)

        request_headers = dict(headers or {})
        if content_type:
            request_headers['Content-Type'] = content_type

        url = self.build_url(path, service)
        logger.debug(f'{method} {url}')
        response = self.session.request(
            method,
            url,
            params=query,
            json=json,
            headers=request_headers or None,
            timeout=self.timeout,
        )

        # A rejected PAT yields 401, or 203 with the interactive sign-in page.
        if response.status_code in (401, 203):
            logfire.error('Azure DevOps authentication failed', url=url)
            raise AuthenticationError(AUTH_FAILED_MESSAGE)
        if response.status_code == 404 and allow_not_found:
            return response
        if not response.ok:
            raise BackendError(_error_message(response), status_code=response.status_code, url=url)
        return response

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and decode the response body.

        Returns:
            Decoded JSON, the raw text for non-JSON bodies, or None for an empty body
            (and for a 404 when ``allow_not_found`` is set)
        """
        response = self.send(method, path, **kwargs)
        if response.status_code == 404 or not response.content:
            return None
        if 'json' in response.headers.get('Content-Type', ''):
            return response.json()
        return response.text

    def get(self, path: str, **kwargs: Any) -> Any:
        """GET a resource; a missing resource yields None."""
        kwargs.setdefault('allow_not_found', True)
        return self.request('GET', path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request('POST', path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request('PATCH', path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request('PUT', path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request('DELETE', path, **kwargs)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get('message'):
        return str(payload['message'])
    text = response.text.strip()
    if text:
        return f'HTTP {response.status_code}: {text[:500]}'
    return f'HTTP {response.status_code}: {response.reason}'


class ConnectionProvider:
    """Owns at most one backend connection, created on first use."""

    def __init__(self, factory: Callable[[], AzureDevOpsConnection]) -> None:
        """Initialize the provider.

        Args:
            factory: Zero-argument callable constructing the connection
        """
        self._factory = factory
        self._connection: Optional[AzureDevOpsConnection] = None
        self._lock = asyncio.Lock()
        self.constructed_count = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> 'ConnectionProvider':
        return cls(lambda: AzureDevOpsConnection.from_settings(settings))

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def get_connection(self) -> AzureDevOpsConnection:
        """Return the shared connection, constructing it on first call.

        Raises:
            AuthenticationError: If the connection cannot be constructed
        """
        if self._connection is not None:
            return self._connection

        async with self._lock:
            if self._connection is None:
                try:
                    connection = self._factory()
                except AuthenticationError:
                    raise
                except Exception as e:
                    raise AuthenticationError(
                        f'Failed to initialize Azure DevOps connection: {str(e)}'
                    ) from e
                self._connection = connection
                self.constructed_count += 1
                logger.info(
                    f'Successfully initialized Azure DevOps client for organization: '
                    f'{connection.server_url}'
                )
                logfire.info(
                    'Azure DevOps client initialized', organization_url=connection.server_url
                )
        return self._connection

    async def verify(self) -> int:
        """Check connectivity by listing the organization's projects.

        Returns:
            Number of projects visible to the credentials

        Raises:
            AuthenticationError: If the backend is unreachable or rejects the request
        """
        connection = await self.get_connection()
        try:
            payload = await run_in_threadpool(connection.get, '_apis/projects')
        except AuthenticationError:
            raise
        except (BackendError, requests.exceptions.RequestException) as e:
            raise AuthenticationError(
                f'Failed to reach Azure DevOps at {connection.server_url}: {str(e)}'
            ) from e

        if payload is None:
            raise AuthenticationError(f'Organization not found at {connection.server_url}')
        count = len(payload.get('value', [])) if isinstance(payload, dict) else 0
        logger.info(f'Connected successfully! Found {count} project(s)')
        return count
