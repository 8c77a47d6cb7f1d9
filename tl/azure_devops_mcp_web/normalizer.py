"""Translation of tool results and tool definitions into MCP wire shapes."""

import json
from tl.azure_devops_mcp_web.errors import MalformedToolResultError
from typing import Any, Dict, Iterable, List, Mapping, Tuple


def normalize_result(result: Any) -> Dict[str, Any]:
    """Convert a handler result into the MCP ``{content, isError?}`` shape.

    Args:
        result: A plain string or a mapping with a ``content`` list

    Returns:
        The canonical content payload. Structured results are returned unchanged.

    Raises:
        MalformedToolResultError: If the result has neither shape
    """
    if isinstance(result, str):
        return {'content': [{'type': 'text', 'text': str(result)}]}
    if isinstance(result, Mapping) and isinstance(result.get('content'), list):
        return result  # type: ignore[return-value]
    raise MalformedToolResultError(result)


def minimize_input_schema(schema: Mapping[str, Any]) -> Dict[str, Any]:
    """Reduce an input schema to the keys clients need to build a call.

    Each property keeps only ``type`` plus ``enum`` and ``items`` when present;
    descriptions and defaults are dropped.
    """
    properties: Dict[str, Any] = {}
    for name, prop in (schema.get('properties') or {}).items():
        reduced: Dict[str, Any] = {'type': prop.get('type')}
        if prop.get('enum'):
            reduced['enum'] = prop['enum']
        if prop.get('items'):
            reduced['items'] = prop['items']
        properties[name] = reduced

    minimized: Dict[str, Any] = {'type': schema.get('type', 'object'), 'properties': properties}
    if schema.get('required'):
        minimized['required'] = schema['required']
    return minimized


def project_tool(tool: Any, minimal: bool = False) -> Dict[str, Any]:
    """Project a tool definition for a ``tools/list`` advertisement."""
    if minimal:
        return {
            'name': tool.name,
            'description': '',
            'inputSchema': minimize_input_schema(tool.input_schema),
        }
    return {
        'name': tool.name,
        'description': tool.description,
        'inputSchema': tool.input_schema,
    }


def payload_size(payload: Any) -> Tuple[int, int]:
    """Return the serialized size of a payload in bytes and approximate tokens.

    Tokens are estimated at four characters each.
    """
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return len(text.encode('utf-8')), -(-len(text) // 4)


def describe_tools_payload(tools: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """Break down the byte size of a tool advertisement by part."""
    tools = list(tools)
    total, _ = payload_size({'tools': tools})
    descriptions, _ = payload_size(''.join(tool.get('description', '') for tool in tools))
    schemas, _ = payload_size([tool.get('inputSchema') for tool in tools])
    names, _ = payload_size(''.join(tool.get('name', '') for tool in tools))
    return {
        'total': total,
        'descriptions': descriptions,
        'schemas': schemas,
        'names': names,
        'structure': total - descriptions - schemas - names,
        'count': len(tools),
    }


def content_text(result: Mapping[str, Any]) -> List[str]:
    """Return the text items of a normalized result."""
    return [item.get('text', '') for item in result.get('content', []) if isinstance(item, Mapping)]
