"""Legacy tool names kept for older clients.

``build_get_builds`` is registered a second time here with a simpler
argument shape; it replaces the catalog entry of the same name.
"""

import json
from tl.azure_devops_mcp_web.models import PlainTextResult
from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, not_found, segment, tool_handler, values
from tl.azure_devops_mcp_web.tools.builds import BUILD_STATUS, builds_path, definitions_path, enum_name
from typing import Any, Dict


@tool_handler('Error getting work item')
def get_work_item(args: Dict[str, Any], connection: Any):
    work_item_id = args['workItemId']
    work_item = connection.get(f'_apis/wit/workitems/{segment(work_item_id)}')
    if not work_item:
        return not_found(f'Work item {work_item_id} not found.')
    return json_result(work_item)


@tool_handler('Error listing projects')
def list_projects(args: Dict[str, Any], connection: Any):
    projects = values(connection.get('_apis/projects'))
    name_filter = args.get('nameFilter')
    if name_filter:
        lowered = name_filter.lower()
        projects = [p for p in projects if lowered in (p.get('name') or '').lower()]
    return PlainTextResult(json.dumps(projects, indent=2, default=str))


@tool_handler('Error listing build definitions')
def list_definitions(args: Dict[str, Any], connection: Any):
    project = args['project']
    definitions = values(
        connection.get(
            definitions_path(project),
            params={'name': args.get('name'), 'type': args.get('type')},
        )
    )
    if not definitions:
        return not_found(f'No build definitions found for project: {project}')
    return json_result(definitions)


@tool_handler('Error getting builds')
def get_builds(args: Dict[str, Any], connection: Any):
    project = args['project']
    definition_ids = args.get('definitionIds')
    if definition_ids:
        definition_ids = ','.join(
            part.strip() for part in str(definition_ids).split(',') if part.strip()
        )
    builds = values(
        connection.get(
            builds_path(project),
            params={
                'definitions': definition_ids or None,
                'statusFilter': enum_name(args.get('statusFilter'), BUILD_STATUS),
                '$top': args.get('top') or 10,
            },
        )
    )
    if not builds:
        return not_found(f'No builds found for project: {project}')
    return json_result(builds)


TOOLS = [
    ToolDefinition(
        name='get_work_item',
        description='Get a work item by ID (alias for wit_get_work_item)',
        input_schema={
            'type': 'object',
            'properties': {'workItemId': {'type': 'number', 'description': 'Work item ID'}},
            'required': ['workItemId'],
        },
        handler=get_work_item,
    ),
    ToolDefinition(
        name='list_projects',
        description='List all projects (alias for core_list_projects)',
        input_schema={
            'type': 'object',
            'properties': {
                'nameFilter': {
                    'type': 'string',
                    'description': 'Filter projects by name (optional)',
                },
            },
        },
        handler=list_projects,
    ),
    ToolDefinition(
        name='build_list_definitions',
        description='List build definitions for a project (alias for build_get_definitions)',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'name': {'type': 'string', 'description': 'Filter by definition name (optional)'},
                'type': {'type': 'string', 'description': 'Definition type filter (optional)'},
            },
            'required': ['project'],
        },
        handler=list_definitions,
    ),
    ToolDefinition(
        name='build_get_builds',
        description='Get builds for a project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'definitionIds': {
                    'type': 'string',
                    'description': 'Comma-separated build definition IDs (optional)',
                },
                'statusFilter': {
                    'type': 'string',
                    'description': 'Build status filter (inProgress, completed, etc.)',
                },
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of builds to return (default: 10)',
                },
            },
            'required': ['project'],
        },
        handler=get_builds,
    ),
]
