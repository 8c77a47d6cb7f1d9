"""Tool registry: name to schema and handler."""

from dataclasses import dataclass, field
from loguru import logger
from tl.azure_devops_mcp_web.errors import ValidationError
from tl.azure_devops_mcp_web.normalizer import project_tool
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional


CONFLICT_POLICIES = ('first', 'last')

ToolHandler = Callable[[Dict[str, Any], Any], Any]


@dataclass(frozen=True)
class ToolDefinition:
    """A named tool with its declared input schema and handler."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler = field(compare=False, repr=False)

    @property
    def required(self) -> List[str]:
        return list(self.input_schema.get('required') or [])

    def validate_arguments(self, arguments: Any) -> Dict[str, Any]:
        """Check that the arguments form an object carrying every required key.

        Args:
            arguments: Arguments supplied by the client

        Returns:
            The arguments as a plain dict

        Raises:
            ValidationError: If arguments is not an object or a required key is missing
        """
        if not isinstance(arguments, Mapping):
            raise ValidationError(f'Arguments for tool {self.name} must be an object')
        missing = [key for key in self.required if arguments.get(key) is None]
        if missing:
            raise ValidationError(
                f'Missing required argument(s) for tool {self.name}: {", ".join(missing)}'
            )
        return dict(arguments)


class ToolRegistry:
    """Holds the tool catalog. Populated once at startup, read-only afterwards."""

    def __init__(self, conflict_policy: str = 'last') -> None:
        """Initialize an empty registry.

        Args:
            conflict_policy: 'last' lets a later registration replace an earlier one with the
                same name; 'first' keeps the earlier one
        """
        if conflict_policy not in CONFLICT_POLICIES:
            raise ValueError(f'conflict_policy must be one of {CONFLICT_POLICIES}')
        self.conflict_policy = conflict_policy
        self._tools: Dict[str, ToolDefinition] = {}
        self.duplicates: List[str] = []

    def register(self, tool: ToolDefinition) -> None:
        """Add a tool, resolving a name collision with the configured policy."""
        existing = self._tools.get(tool.name)
        if existing is not None:
            self.duplicates.append(tool.name)
            kept = tool if self.conflict_policy == 'last' else existing
            logger.warning(
                f'Duplicate tool name "{tool.name}": keeping the {self.conflict_policy} '
                f'registration ("{kept.description}")'
            )
            if self.conflict_policy == 'first':
                return
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[ToolDefinition]) -> None:
        for tool in tools:
            self.register(tool)

    def lookup(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def list_tools(self, minimal: bool = False) -> List[Dict[str, Any]]:
        """Return the advertisement for every tool in registration order."""
        return [project_tool(tool, minimal=minimal) for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())
