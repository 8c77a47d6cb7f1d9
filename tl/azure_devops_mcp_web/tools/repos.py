"""Git repository tools."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, not_found, project_path, segment, tool_handler, values
from typing import Any, Dict, Optional


RECURSION_LEVELS = {'none': 'None', 'oneLevel': 'OneLevel', 'full': 'Full'}


def repositories_path(project: Optional[str], *parts: Any) -> str:
    suffix = ''.join(f'/{segment(part)}' for part in parts)
    return project_path(project, f'_apis/git/repositories{suffix}')


@tool_handler('Error listing repositories')
def list_repositories(args: Dict[str, Any], connection: Any):
    project = args.get('project')
    repositories = values(connection.get(repositories_path(project)))
    if not repositories:
        if project:
            return not_found(f'No repositories found for project: {project}')
        return not_found('No repositories found.')
    return json_result(repositories)


@tool_handler('Error getting repository')
def get_repository(args: Dict[str, Any], connection: Any):
    repository_id = args['repositoryId']
    repository = connection.get(repositories_path(args.get('project'), repository_id))
    if not repository:
        return not_found(f'Repository {repository_id} not found.')
    return json_result(repository)


@tool_handler('Error getting branches')
def get_branches(args: Dict[str, Any], connection: Any):
    repository_id = args['repositoryId']
    branches = values(
        connection.get(repositories_path(args.get('project'), repository_id, 'stats', 'branches'))
    )
    if not branches:
        return not_found(f'No branches found for repository: {repository_id}')
    return json_result(branches)


@tool_handler('Error getting commits')
def get_commits(args: Dict[str, Any], connection: Any):
    repository_id = args['repositoryId']
    commits = values(
        connection.get(
            repositories_path(args.get('project'), repository_id, 'commits'),
            params={
                'searchCriteria.itemVersion.version': args.get('branch'),
                'searchCriteria.$top': args.get('top') or 10,
            },
        )
    )
    if not commits:
        return not_found(f'No commits found for repository: {repository_id}')
    return json_result(commits)


@tool_handler('Error getting pull requests')
def get_pull_requests(args: Dict[str, Any], connection: Any):
    repository_id = args['repositoryId']
    pull_requests = values(
        connection.get(
            repositories_path(args.get('project'), repository_id, 'pullrequests'),
            params={
                'searchCriteria.status': args.get('status'),
                '$top': args.get('top') or 10,
            },
        )
    )
    if not pull_requests:
        return not_found(f'No pull requests found for repository: {repository_id}')
    return json_result(pull_requests)


@tool_handler('Error getting repository items')
def get_items(args: Dict[str, Any], connection: Any):
    repository_id = args['repositoryId']
    items = values(
        connection.get(
            repositories_path(args.get('project'), repository_id, 'items'),
            params={
                'scopePath': args.get('scopePath'),
                'recursionLevel': RECURSION_LEVELS.get(args.get('recursionLevel') or 'full', 'Full'),
            },
        )
    )
    if not items:
        return not_found(f'No items found in repository: {repository_id}')
    return json_result(items)


_REPOSITORY = {'type': 'string', 'description': 'Repository ID or name'}
_PROJECT = {'type': 'string', 'description': 'Project name or ID (optional)'}

TOOLS = [
    ToolDefinition(
        name='git_list_repositories',
        description='List Git repositories',
        input_schema={'type': 'object', 'properties': {'project': _PROJECT}},
        handler=list_repositories,
    ),
    ToolDefinition(
        name='git_get_repository',
        description='Get details of a specific repository',
        input_schema={
            'type': 'object',
            'properties': {'repositoryId': _REPOSITORY, 'project': _PROJECT},
            'required': ['repositoryId'],
        },
        handler=get_repository,
    ),
    ToolDefinition(
        name='git_get_branches',
        description='Get branches for a repository',
        input_schema={
            'type': 'object',
            'properties': {'repositoryId': _REPOSITORY, 'project': _PROJECT},
            'required': ['repositoryId'],
        },
        handler=get_branches,
    ),
    ToolDefinition(
        name='git_get_commits',
        description='Get commits for a repository',
        input_schema={
            'type': 'object',
            'properties': {
                'repositoryId': _REPOSITORY,
                'project': _PROJECT,
                'branch': {'type': 'string', 'description': 'Branch name to get commits from'},
                'top': {'type': 'number', 'description': 'Maximum number of commits to return'},
            },
            'required': ['repositoryId'],
        },
        handler=get_commits,
    ),
    ToolDefinition(
        name='git_get_pull_requests',
        description='Get pull requests for a repository',
        input_schema={
            'type': 'object',
            'properties': {
                'repositoryId': _REPOSITORY,
                'project': _PROJECT,
                'status': {
                    'type': 'string',
                    'enum': ['active', 'completed', 'abandoned', 'all'],
                    'description': 'Pull request status filter',
                },
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of pull requests to return',
                },
            },
            'required': ['repositoryId'],
        },
        handler=get_pull_requests,
    ),
    ToolDefinition(
        name='git_get_items',
        description='Get items (files/folders) from a repository',
        input_schema={
            'type': 'object',
            'properties': {
                'repositoryId': _REPOSITORY,
                'project': _PROJECT,
                'scopePath': {
                    'type': 'string',
                    'description': 'Path to scope the search to (optional)',
                },
                'recursionLevel': {
                    'type': 'string',
                    'enum': ['none', 'oneLevel', 'full'],
                    'description': 'Recursion level for getting items',
                },
            },
            'required': ['repositoryId'],
        },
        handler=get_items,
    ),
]
