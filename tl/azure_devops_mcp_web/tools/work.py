"""Team settings and iteration tools."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, not_found, segment, tool_handler, values
from typing import Any, Dict


def team_settings_path(project: str, team: str, suffix: str = '') -> str:
    return f'{segment(project)}/{segment(team)}/_apis/work/teamsettings{suffix}'


@tool_handler('Error fetching team iterations')
def list_team_iterations(args: Dict[str, Any], connection: Any):
    project, team = args['project'], args['team']
    iterations = values(
        connection.get(
            team_settings_path(project, team, '/iterations'),
            params={'$timeframe': args.get('timeframe')},
        )
    )
    if not iterations:
        return not_found(f'No iterations found for team {team} in project {project}')
    return json_result(iterations)


@tool_handler('Error fetching team settings')
def get_team_settings(args: Dict[str, Any], connection: Any):
    project, team = args['project'], args['team']
    settings = connection.get(team_settings_path(project, team))
    if not settings:
        return not_found(f'No settings found for team {team} in project {project}')
    return json_result(settings)


@tool_handler('Error fetching team field values')
def get_team_field_values(args: Dict[str, Any], connection: Any):
    project, team = args['project'], args['team']
    field_values = connection.get(team_settings_path(project, team, '/teamfieldvalues'))
    if not field_values:
        return not_found(f'No field values found for team {team} in project {project}')
    return json_result(field_values)


_TEAM_SCHEMA = {
    'type': 'object',
    'properties': {
        'project': {'type': 'string', 'description': 'Project name or ID'},
        'team': {'type': 'string', 'description': 'Team name or ID'},
    },
    'required': ['project', 'team'],
}

TOOLS = [
    ToolDefinition(
        name='work_list_team_iterations',
        description='List iterations for a team',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'team': {'type': 'string', 'description': 'Team name or ID'},
                'timeframe': {
                    'type': 'string',
                    'enum': ['current', 'past', 'future'],
                    'description': 'Timeframe filter',
                },
            },
            'required': ['project', 'team'],
        },
        handler=list_team_iterations,
    ),
    ToolDefinition(
        name='work_get_team_settings',
        description='Get team settings',
        input_schema=_TEAM_SCHEMA,
        handler=get_team_settings,
    ),
    ToolDefinition(
        name='work_get_team_field_values',
        description='Get team field values',
        input_schema=_TEAM_SCHEMA,
        handler=get_team_field_values,
    ),
]
