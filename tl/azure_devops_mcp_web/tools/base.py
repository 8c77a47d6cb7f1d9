"""Helpers shared by the tool handler modules."""

import functools
import json
import logfire
from loguru import logger
from tl.azure_devops_mcp_web.models import StructuredResult, ToolResult
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote


Handler = Callable[[Dict[str, Any], Any], ToolResult]


def tool_handler(error_prefix: str) -> Callable[[Handler], Handler]:
    """Turn any exception raised by a handler into an in-band error result.

    Args:
        error_prefix: Text placed before the backend's message, e.g. 'Error fetching builds'
    """

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        def wrapper(args: Dict[str, Any], connection: Any) -> ToolResult:
            try:
                return func(args, connection)
            except Exception as e:
                error_message = f'{error_prefix}: {str(e) or type(e).__name__}'
                logger.error(error_message)
                logfire.error(error_prefix, handler=func.__name__, error=str(e))
                return StructuredResult.error(error_message)

        return wrapper

    return decorator


def json_result(data: Any) -> StructuredResult:
    """Serialize backend data as an indented JSON text result."""
    return StructuredResult.text(json.dumps(data, indent=2, default=str))


def not_found(message: str) -> StructuredResult:
    return StructuredResult.error(message)


def values(payload: Any) -> List[Any]:
    """Extract the ``value`` list from an Azure DevOps collection response."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        return list(payload.get('value') or [])
    if isinstance(payload, list):
        return payload
    return []


def segment(value: Any) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe='')


def project_path(project: Optional[str], path: str) -> str:
    """Prefix an API path with the project segment when a project is given."""
    if project:
        return f'{segment(project)}/{path}'
    return path


def csv(items: Optional[List[Any]]) -> Optional[str]:
    """Join a list into a comma-separated query value; None for an empty list."""
    if not items:
        return None
    return ','.join(str(item) for item in items)


def flag(value: Optional[bool]) -> Optional[str]:
    """Render an optional boolean as the lowercase string the REST API expects."""
    if value is None:
        return None
    return 'true' if value else 'false'
