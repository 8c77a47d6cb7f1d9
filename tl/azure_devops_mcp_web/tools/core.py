"""Core tools: projects, teams and identities."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import flag, json_result, not_found, segment, tool_handler, values
from typing import Any, Dict


@tool_handler('Error fetching projects')
def list_projects(args: Dict[str, Any], connection: Any):
    projects = values(
        connection.get(
            '_apis/projects',
            params={
                'stateFilter': args.get('stateFilter') or 'wellFormed',
                '$top': args.get('top'),
                '$skip': args.get('skip'),
                'continuationToken': args.get('continuationToken'),
            },
        )
    )

    name_filter = args.get('projectNameFilter')
    if name_filter:
        lowered = name_filter.lower()
        projects = [p for p in projects if lowered in (p.get('name') or '').lower()]

    if not projects:
        return not_found('No projects found in the organization.')
    return json_result(projects)


@tool_handler('Error fetching teams')
def list_project_teams(args: Dict[str, Any], connection: Any):
    project = args['project']
    teams = values(
        connection.get(
            f'_apis/projects/{segment(project)}/teams',
            params={
                '$mine': flag(args.get('mine')),
                '$top': args.get('top'),
                '$skip': args.get('skip'),
            },
        )
    )
    if not teams:
        return not_found(f'No teams found for project: {project}')
    return json_result(teams)


@tool_handler('Error in identity search')
def get_identity_ids(args: Dict[str, Any], connection: Any):
    search_filter = args['searchFilter']
    identities = values(
        connection.get(
            '_apis/identities',
            service='vssps',
            api_version='7.2-preview.1',
            params={'searchFilter': 'General', 'filterValue': search_filter},
        )
    )
    if not identities:
        return not_found(f'No identities found for search filter: {search_filter}')
    return json_result(
        [
            {
                'id': identity.get('id'),
                'displayName': identity.get('providerDisplayName'),
                'descriptor': identity.get('descriptor'),
            }
            for identity in identities
        ]
    )


TOOLS = [
    ToolDefinition(
        name='core_list_projects',
        description='Retrieve a list of projects in your Azure DevOps organization',
        input_schema={
            'type': 'object',
            'properties': {
                'stateFilter': {
                    'type': 'string',
                    'enum': ['all', 'wellFormed', 'createPending', 'deleted'],
                    'description': "Filter projects by their state. Defaults to 'wellFormed'.",
                },
                'top': {
                    'type': 'number',
                    'description': 'The maximum number of projects to return. Defaults to 100.',
                },
                'skip': {
                    'type': 'number',
                    'description': 'The number of projects to skip for pagination. Defaults to 0.',
                },
                'continuationToken': {
                    'type': 'number',
                    'description': 'Continuation token for pagination.',
                },
                'projectNameFilter': {
                    'type': 'string',
                    'description': 'Filter projects by name. Supports partial matches.',
                },
            },
        },
        handler=list_projects,
    ),
    ToolDefinition(
        name='core_list_project_teams',
        description='Retrieve a list of teams for the specified Azure DevOps project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'The name or ID of the Azure DevOps project.',
                },
                'mine': {
                    'type': 'boolean',
                    'description': 'If true, only return teams that the authenticated user is a member of.',
                },
                'top': {
                    'type': 'number',
                    'description': 'The maximum number of teams to return. Defaults to 100.',
                },
                'skip': {
                    'type': 'number',
                    'description': 'The number of teams to skip for pagination. Defaults to 0.',
                },
            },
            'required': ['project'],
        },
        handler=list_project_teams,
    ),
    ToolDefinition(
        name='core_get_identity_ids',
        description='Retrieve Azure DevOps identity IDs for a provided search filter',
        input_schema={
            'type': 'object',
            'properties': {
                'searchFilter': {
                    'type': 'string',
                    'description': 'Search filter (unique name, display name, email) to retrieve identity IDs for.',
                },
            },
            'required': ['searchFilter'],
        },
        handler=get_identity_ids,
    ),
]
