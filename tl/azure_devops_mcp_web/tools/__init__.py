"""Azure DevOps tool catalog."""

from tl.azure_devops_mcp_web.registry import ToolDefinition, ToolRegistry
from tl.azure_devops_mcp_web.tools import (
    advsec,
    aliases,
    builds,
    core,
    releases,
    repos,
    search,
    test_plans,
    wiki,
    work,
    work_items,
)
from typing import List


# Registration order; later modules win on a name collision under the default policy.
TOOL_MODULES = (
    core,
    work,
    builds,
    repos,
    work_items,
    releases,
    wiki,
    test_plans,
    search,
    advsec,
    aliases,
)

ALL_TOOLS: List[ToolDefinition] = [tool for module in TOOL_MODULES for tool in module.TOOLS]


def register_all_tools(registry: ToolRegistry) -> ToolRegistry:
    """Register the full catalog into a registry and return it."""
    registry.register_all(ALL_TOOLS)
    return registry
