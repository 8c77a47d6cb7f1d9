"""Release management tools backed by the vsrm service."""

from datetime import datetime, timezone
from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, not_found, segment, tool_handler, values
from typing import Any, Dict


def releases_path(project: str, suffix: str) -> str:
    return f'{segment(project)}/_apis/release/{suffix}'


@tool_handler('Error fetching release definitions')
def list_definitions(args: Dict[str, Any], connection: Any):
    project = args['project']
    definitions = values(
        connection.get(
            releases_path(project, 'definitions'),
            service='vsrm',
            params={'searchText': args.get('searchText')},
        )
    )
    if not definitions:
        return not_found(f'No release definitions found for project: {project}')
    return json_result(definitions)


@tool_handler('Error fetching releases')
def get_releases(args: Dict[str, Any], connection: Any):
    project = args['project']
    releases = values(
        connection.get(
            releases_path(project, 'releases'),
            service='vsrm',
            params={'definitionId': args.get('definitionId'), '$top': args.get('top') or 10},
        )
    )
    if not releases:
        return not_found(f'No releases found for project: {project}')
    return json_result(releases)


@tool_handler('Error creating release')
def create_release(args: Dict[str, Any], connection: Any):
    description = args.get('description') or (
        f'Release created on {datetime.now(timezone.utc).isoformat()}'
    )
    release = connection.post(
        releases_path(args['project'], 'releases'),
        service='vsrm',
        json={'definitionId': args['definitionId'], 'description': description},
    )
    return json_result(release)


@tool_handler('Error fetching release')
def get_release(args: Dict[str, Any], connection: Any):
    project, release_id = args['project'], args['releaseId']
    release = connection.get(
        releases_path(project, f'releases/{segment(release_id)}'), service='vsrm'
    )
    if not release:
        return not_found(f'Release {release_id} not found in project {project}')
    return json_result(release)


TOOLS = [
    ToolDefinition(
        name='release_list_definitions',
        description='List release definitions',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'searchText': {
                    'type': 'string',
                    'description': 'Search text for definition names (optional)',
                },
            },
            'required': ['project'],
        },
        handler=list_definitions,
    ),
    ToolDefinition(
        name='release_get_releases',
        description='Get releases for a project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'definitionId': {
                    'type': 'number',
                    'description': 'Release definition ID to filter releases',
                },
                'top': {'type': 'number', 'description': 'Maximum number of releases to return'},
            },
            'required': ['project'],
        },
        handler=get_releases,
    ),
    ToolDefinition(
        name='release_create_release',
        description='Create a new release',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'definitionId': {'type': 'number', 'description': 'Release definition ID'},
                'description': {
                    'type': 'string',
                    'description': 'Release description (optional)',
                },
            },
            'required': ['project', 'definitionId'],
        },
        handler=create_release,
    ),
    ToolDefinition(
        name='release_get_release',
        description='Get details of a specific release',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'releaseId': {'type': 'number', 'description': 'Release ID'},
            },
            'required': ['project', 'releaseId'],
        },
        handler=get_release,
    ),
]
