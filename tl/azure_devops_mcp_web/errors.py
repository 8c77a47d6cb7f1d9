"""Exception types raised by the Azure DevOps MCP web server."""

from typing import Any, Optional


class AzureDevOpsMcpError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(AzureDevOpsMcpError):
    """Required configuration is missing or invalid."""


class ValidationError(AzureDevOpsMcpError):
    """A request envelope or tool argument set failed validation."""


class ToolNotFoundError(AzureDevOpsMcpError):
    """The requested tool is not registered."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f'Tool not found: {tool_name}')


class AuthenticationError(AzureDevOpsMcpError):
    """The Azure DevOps connection could not be established or was rejected."""


class BackendError(AzureDevOpsMcpError):
    """Azure DevOps answered a request with an error status.

    The service's own message is kept verbatim as the exception text.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ToolExecutionError(AzureDevOpsMcpError):
    """A tool reported a failure in its result; raised where a transport needs an exception."""


class MalformedToolResultError(AzureDevOpsMcpError):
    """A tool handler returned something other than text or structured content."""

    def __init__(self, result: Any):
        self.result = result
        super().__init__(f'malformed tool result: {type(result).__name__}')
