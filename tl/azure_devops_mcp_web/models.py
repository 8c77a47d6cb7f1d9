"""Result and content models shared by tool handlers and transports.

A tool handler returns a ``ToolResult``: either a ``PlainTextResult`` (the legacy
plain string form) or a ``StructuredResult`` (MCP content array with an optional
``isError`` flag).
"""

from typing import Any, Dict, List, Optional, Union


class TextContent(Dict[str, Any]):
    """A single MCP text content item."""

    def __init__(self, text: str):
        """Initialize a text content item.

        Args:
            text: The text payload
        """
        super().__init__({'type': 'text', 'text': text})
        self.text = text


class PlainTextResult(str):
    """Bare text tool result, as returned by the legacy ``list_projects`` alias."""


class StructuredResult(Dict[str, Any]):
    """Tool result in MCP content-array form."""

    def __init__(self, content: List[Dict[str, Any]], is_error: Optional[bool] = None):
        """Initialize a structured tool result.

        Args:
            content: Ordered content items, each ``{'type': 'text', 'text': ...}``
            is_error: Whether the result reports a failure; omitted from the payload when None
        """
        payload: Dict[str, Any] = {'content': list(content)}
        if is_error is not None:
            payload['isError'] = is_error
        super().__init__(payload)
        self.content = payload['content']
        self.is_error = bool(is_error)

    @classmethod
    def text(cls, text: str, is_error: Optional[bool] = None) -> 'StructuredResult':
        """Build a result holding a single text item."""
        return cls([TextContent(text)], is_error=is_error)

    @classmethod
    def error(cls, text: str) -> 'StructuredResult':
        """Build an in-band error result."""
        return cls([TextContent(text)], is_error=True)


ToolResult = Union[PlainTextResult, StructuredResult]
