"""Build and pipeline tools."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import csv, flag, json_result, not_found, segment, tool_handler, values
from typing import Any, Dict, Mapping, Optional


# Numeric BuildStatus / BuildResult flags as the client SDKs define them.
BUILD_STATUS = {
    0: 'none',
    1: 'inProgress',
    2: 'completed',
    4: 'cancelling',
    8: 'postponed',
    32: 'notStarted',
    47: 'all',
}
BUILD_RESULT = {
    0: 'none',
    2: 'succeeded',
    4: 'partiallySucceeded',
    8: 'failed',
    32: 'canceled',
}


def enum_name(value: Any, names: Mapping[int, str]) -> Optional[str]:
    """Translate a numeric enum value to its REST name; strings pass through."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return names.get(int(value), str(int(value)))
    return str(value)


def branch_ref(branch: str) -> str:
    return branch if branch.startswith('refs/') else f'refs/heads/{branch}'


def builds_path(project: str, *parts: Any) -> str:
    suffix = ''.join(f'/{segment(part)}' for part in parts)
    return f'{segment(project)}/_apis/build/builds{suffix}'


def definitions_path(project: str, *parts: Any) -> str:
    suffix = ''.join(f'/{segment(part)}' for part in parts)
    return f'{segment(project)}/_apis/build/definitions{suffix}'


@tool_handler('Error fetching build definitions')
def get_definitions(args: Dict[str, Any], connection: Any):
    project = args['project']
    definitions = values(
        connection.get(
            definitions_path(project),
            params={
                'name': args.get('name'),
                'repositoryId': args.get('repositoryId'),
                'repositoryType': args.get('repositoryType'),
                '$top': args.get('top'),
                'includeLatestBuilds': flag(args.get('includeLatestBuilds')),
            },
        )
    )
    if not definitions:
        return not_found(f'No build definitions found for project: {project}')
    return json_result(definitions)


@tool_handler('Error fetching builds')
def get_builds(args: Dict[str, Any], connection: Any):
    project = args['project']
    builds = values(
        connection.get(
            builds_path(project),
            params={
                'definitions': csv(args.get('definitions')),
                'buildNumber': args.get('buildNumber'),
                'statusFilter': enum_name(args.get('statusFilter'), BUILD_STATUS),
                'resultFilter': enum_name(args.get('resultFilter'), BUILD_RESULT),
                '$top': args.get('top') or 10,
                'branchName': args.get('branchName'),
            },
        )
    )
    if not builds:
        return not_found(f'No builds found for project: {project}')
    return json_result(builds)


@tool_handler('Error running build')
def run_build(args: Dict[str, Any], connection: Any):
    project = args['project']
    definition_id = args['definitionId']
    definition = connection.get(definitions_path(project, definition_id))
    if not definition:
        return not_found(f'Build definition {definition_id} not found in project {project}')

    source_branch = args.get('sourceBranch')
    if source_branch:
        ref_name = branch_ref(source_branch)
    else:
        ref_name = (definition.get('repository') or {}).get('defaultBranch') or 'refs/heads/main'

    run_request: Dict[str, Any] = {'resources': {'repositories': {'self': {'refName': ref_name}}}}
    if args.get('parameters'):
        run_request['templateParameters'] = args['parameters']

    pipeline_run = connection.post(
        f'{segment(project)}/_apis/pipelines/{segment(definition_id)}/runs', json=run_request
    )
    return json_result(pipeline_run)


@tool_handler('Error fetching build status')
def get_status(args: Dict[str, Any], connection: Any):
    project, build_id = args['project'], args['buildId']
    build = connection.get(builds_path(project, build_id))
    if not build:
        return not_found(f'Build {build_id} not found in project {project}')
    return json_result(build)


@tool_handler('Error fetching build logs')
def get_logs(args: Dict[str, Any], connection: Any):
    build_id = args['buildId']
    logs = values(connection.get(builds_path(args['project'], build_id, 'logs')))
    if not logs:
        return not_found(f'No logs found for build {build_id}')
    return json_result(logs)


@tool_handler('Error fetching log content')
def get_log_content(args: Dict[str, Any], connection: Any):
    build_id, log_id = args['buildId'], args['logId']
    lines = values(
        connection.get(
            builds_path(args['project'], build_id, 'logs', log_id),
            params={'startLine': args.get('startLine'), 'endLine': args.get('endLine')},
        )
    )
    if not lines:
        return not_found(f'No log content found for build {build_id}, log {log_id}')
    return json_result(lines)


@tool_handler('Error fetching build changes')
def get_changes(args: Dict[str, Any], connection: Any):
    build_id = args['buildId']
    changes = values(
        connection.get(
            builds_path(args['project'], build_id, 'changes'),
            params={'$top': args.get('top') or 100},
        )
    )
    if not changes:
        return not_found(f'No changes found for build {build_id}')
    return json_result(changes)


@tool_handler('Error fetching definition revisions')
def get_definition_revisions(args: Dict[str, Any], connection: Any):
    definition_id = args['definitionId']
    revisions = values(
        connection.get(definitions_path(args['project'], definition_id, 'revisions'))
    )
    if not revisions:
        return not_found(f'No revisions found for build definition {definition_id}')
    return json_result(revisions)


@tool_handler('Error updating build stage')
def update_stage(args: Dict[str, Any], connection: Any):
    build_id, stage_name, status = args['buildId'], args['stageName'], args['status']
    result = connection.patch(
        builds_path(args['project'], build_id, 'stages', stage_name),
        api_version='7.2-preview.1',
        json={'forceRetryAllJobs': bool(args.get('forceRetryAllJobs')), 'state': status},
    )
    if result is None:
        result = {'buildId': build_id, 'stageName': stage_name, 'status': status, 'updated': True}
    return json_result(result)


TOOLS = [
    ToolDefinition(
        name='build_get_definitions',
        description='Retrieves a list of build definitions for a given project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'Project ID or name to get build definitions for',
                },
                'name': {
                    'type': 'string',
                    'description': 'Name of the build definition to filter',
                },
                'repositoryId': {
                    'type': 'string',
                    'description': 'Repository ID to filter build definitions',
                },
                'repositoryType': {
                    'type': 'string',
                    'enum': ['TfsGit', 'GitHub', 'BitbucketCloud'],
                    'description': 'Type of repository to filter build definitions',
                },
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of build definitions to return',
                },
                'includeLatestBuilds': {
                    'type': 'boolean',
                    'description': 'Whether to include the latest builds for each definition',
                },
            },
            'required': ['project'],
        },
        handler=get_definitions,
    ),
    ToolDefinition(
        name='build_get_builds',
        description='Retrieves a list of builds for a given project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name to get builds for'},
                'definitions': {
                    'type': 'array',
                    'items': {'type': 'number'},
                    'description': 'Array of build definition IDs to filter builds',
                },
                'buildNumber': {'type': 'string', 'description': 'Build number to filter builds'},
                'top': {'type': 'number', 'description': 'Maximum number of builds to return'},
                'statusFilter': {'type': 'number', 'description': 'Status filter for the build'},
                'resultFilter': {'type': 'number', 'description': 'Result filter for the build'},
                'branchName': {'type': 'string', 'description': 'Branch name to filter builds'},
            },
            'required': ['project'],
        },
        handler=get_builds,
    ),
    ToolDefinition(
        name='build_run_build',
        description='Triggers a new build for a specified definition',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name to run the build in'},
                'definitionId': {
                    'type': 'number',
                    'description': 'ID of the build definition to run',
                },
                'sourceBranch': {
                    'type': 'string',
                    'description': 'Source branch to run the build from. If not provided, the default branch will be used.',
                },
                'parameters': {
                    'type': 'object',
                    'description': 'Custom build parameters as key-value pairs',
                },
            },
            'required': ['project', 'definitionId'],
        },
        handler=run_build,
    ),
    ToolDefinition(
        name='build_get_status',
        description='Fetches the status of a specific build',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'Project ID or name to get the build status for',
                },
                'buildId': {'type': 'number', 'description': 'ID of the build to get the status for'},
            },
            'required': ['project', 'buildId'],
        },
        handler=get_status,
    ),
    ToolDefinition(
        name='build_get_logs',
        description='Retrieves the logs for a specific build',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'Project ID or name to get the build log for',
                },
                'buildId': {'type': 'number', 'description': 'ID of the build to get the log for'},
            },
            'required': ['project', 'buildId'],
        },
        handler=get_logs,
    ),
    ToolDefinition(
        name='build_get_log_content',
        description='Get specific build log content by log ID',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name'},
                'buildId': {'type': 'number', 'description': 'ID of the build'},
                'logId': {'type': 'number', 'description': 'ID of the log to retrieve'},
                'startLine': {'type': 'number', 'description': 'Starting line number, defaults to 0'},
                'endLine': {
                    'type': 'number',
                    'description': 'Ending line number, defaults to end of log',
                },
            },
            'required': ['project', 'buildId', 'logId'],
        },
        handler=get_log_content,
    ),
    ToolDefinition(
        name='build_get_changes',
        description='Get the changes associated with a specific build',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name'},
                'buildId': {'type': 'number', 'description': 'ID of the build to get changes for'},
                'top': {
                    'type': 'number',
                    'description': 'Number of changes to retrieve, defaults to 100',
                },
            },
            'required': ['project', 'buildId'],
        },
        handler=get_changes,
    ),
    ToolDefinition(
        name='build_get_definition_revisions',
        description='Retrieves a list of revisions for a specific build definition',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name'},
                'definitionId': {
                    'type': 'number',
                    'description': 'ID of the build definition to get revisions for',
                },
            },
            'required': ['project', 'definitionId'],
        },
        handler=get_definition_revisions,
    ),
    ToolDefinition(
        name='build_update_stage',
        description='Updates the stage of a specific build',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project ID or name'},
                'buildId': {'type': 'number', 'description': 'ID of the build to update'},
                'stageName': {'type': 'string', 'description': 'Name of the stage to update'},
                'status': {
                    'type': 'string',
                    'enum': ['cancel', 'retry'],
                    'description': 'New status for the stage',
                },
                'forceRetryAllJobs': {
                    'type': 'boolean',
                    'description': 'Whether to force retry all jobs in the stage',
                },
            },
            'required': ['project', 'buildId', 'stageName', 'status'],
        },
        handler=update_stage,
    ),
]
