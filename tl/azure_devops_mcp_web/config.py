"""Configuration loading for the Azure DevOps MCP web server.

Settings come from the process environment, optionally seeded from a ``.env`` file.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv
from loguru import logger
from pathlib import Path
from tl.azure_devops_mcp_web.errors import ConfigurationError
from typing import Mapping, Optional


DEFAULT_PORT = 3000
DEFAULT_HOST = '0.0.0.0'
DEFAULT_API_VERSION = '7.1'
DEFAULT_TIMEOUT = 30.0
DEFAULT_HEARTBEAT_INTERVAL = 15.0
# Proxies commonly drop idle connections after 60 seconds.
MAX_HEARTBEAT_INTERVAL = 60.0

TRANSPORTS = ('http', 'stdio')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


def load_config() -> None:
    """Load configuration from .env file.

    Looks for .env file in the current directory and parent directories.
    """
    current_dir = Path(os.path.dirname(os.path.abspath(__file__)))

    # Look for .env in current directory and up to 3 levels up
    for _ in range(4):
        env_file = current_dir / '.env'
        if env_file.exists():
            logger.info(f'Loading configuration from {env_file}')
            load_dotenv(dotenv_path=env_file)
            break
        current_dir = current_dir.parent
    else:
        logger.warning('No .env file found. Using environment variables if available.')


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f'{name} must be a boolean, got {value!r}')


def _parse_float(name: str, value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f'{name} must be a number, got {value!r}') from None


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f'{name} must be an integer, got {value!r}') from None


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""

    organization: str
    personal_access_token: str
    organization_url: str
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = DEFAULT_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    transport: str = 'http'
    minimal_tools: bool = True
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    verify_connection: bool = True
    logfire_token: str = ''

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``

        Returns:
            Validated Settings instance

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid
        """
        env = os.environ if environ is None else environ

        organization = env.get('AZURE_DEVOPS_ORG', '').strip()
        personal_access_token = env.get('AZURE_DEVOPS_PAT', '').strip()

        missing = []
        if not organization:
            missing.append('AZURE_DEVOPS_ORG')
        if not personal_access_token:
            missing.append('AZURE_DEVOPS_PAT')
        if missing:
            raise ConfigurationError(
                f'Missing required environment variables: {" and ".join(missing)}'
            )

        organization_url = env.get('AZURE_DEVOPS_ORG_URL', '').strip().rstrip('/')
        if not organization_url:
            organization_url = f'https://dev.azure.com/{organization}'

        transport = env.get('MCP_TRANSPORT', 'http').strip().lower() or 'http'
        if transport not in TRANSPORTS:
            raise ConfigurationError(
                f'MCP_TRANSPORT must be one of {", ".join(TRANSPORTS)}, got {transport!r}'
            )

        heartbeat_interval = _parse_float(
            'SSE_HEARTBEAT_INTERVAL',
            env.get('SSE_HEARTBEAT_INTERVAL'),
            DEFAULT_HEARTBEAT_INTERVAL,
        )
        if not 0 < heartbeat_interval < MAX_HEARTBEAT_INTERVAL:
            raise ConfigurationError(
                f'SSE_HEARTBEAT_INTERVAL must be between 0 and {MAX_HEARTBEAT_INTERVAL:g} '
                f'seconds, got {heartbeat_interval:g}'
            )

        request_timeout = _parse_float(
            'AZURE_DEVOPS_TIMEOUT', env.get('AZURE_DEVOPS_TIMEOUT'), DEFAULT_TIMEOUT
        )
        if request_timeout <= 0:
            raise ConfigurationError('AZURE_DEVOPS_TIMEOUT must be positive')

        return cls(
            organization=organization,
            personal_access_token=personal_access_token,
            organization_url=organization_url,
            api_version=env.get('AZURE_DEVOPS_API_VERSION', '').strip() or DEFAULT_API_VERSION,
            request_timeout=request_timeout,
            host=env.get('HOST', '').strip() or DEFAULT_HOST,
            port=_parse_int('PORT', env.get('PORT'), DEFAULT_PORT),
            transport=transport,
            minimal_tools=_parse_bool('MCP_MINIMAL_TOOLS', env.get('MCP_MINIMAL_TOOLS'), True),
            heartbeat_interval=heartbeat_interval,
            verify_connection=_parse_bool(
                'MCP_VERIFY_CONNECTION', env.get('MCP_VERIFY_CONNECTION'), True
            ),
            logfire_token=env.get('LOGFIRE_WRITE_TOKEN', ''),
        )
