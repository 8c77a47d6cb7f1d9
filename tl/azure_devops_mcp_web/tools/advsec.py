"""Advanced Security alert tools backed by the advsec service."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import csv, flag, json_result, not_found, segment, tool_handler, values
from typing import Any, Dict


ADVSEC_API_VERSION = '7.2-preview.1'


def alerts_path(project: str, repository: str, *parts: Any) -> str:
    suffix = ''.join(f'/{segment(part)}' for part in parts)
    return f'{segment(project)}/_apis/alert/repositories/{segment(repository)}/alerts{suffix}'


@tool_handler('Error fetching security alerts')
def get_alerts(args: Dict[str, Any], connection: Any):
    project, repository = args['project'], args['repository']
    alerts = values(
        connection.get(
            alerts_path(project, repository),
            service='advsec',
            api_version=ADVSEC_API_VERSION,
            params={
                'criteria.alertType': args.get('alertType'),
                'criteria.states': csv(args.get('states')),
                'criteria.severities': csv(args.get('severities')),
                'criteria.onlyDefaultBranch': flag(args.get('onlyDefaultBranch') is not False),
                'top': args.get('top') or 100,
            },
        )
    )
    if not alerts:
        return not_found(f'No security alerts found for repository: {repository}')
    return json_result(alerts)


@tool_handler('Error fetching security alert details')
def get_alert_details(args: Dict[str, Any], connection: Any):
    repository, alert_id = args['repository'], args['alertId']
    alert = connection.get(
        alerts_path(args['project'], repository, alert_id),
        service='advsec',
        api_version=ADVSEC_API_VERSION,
    )
    if not alert:
        return not_found(f'Alert {alert_id} not found in repository {repository}')
    return json_result(alert)


TOOLS = [
    ToolDefinition(
        name='advsec_get_alerts',
        description='Retrieve Advanced Security alerts for a repository',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'The name or ID of the Azure DevOps project.',
                },
                'repository': {
                    'type': 'string',
                    'description': 'The name or ID of the repository to get alerts for.',
                },
                'alertType': {
                    'type': 'string',
                    'enum': ['dependency', 'secret', 'code'],
                    'description': 'Filter alerts by type.',
                },
                'states': {
                    'type': 'array',
                    'items': {'type': 'string', 'enum': ['active', 'dismissed', 'fixed']},
                    'description': 'Filter alerts by state.',
                },
                'severities': {
                    'type': 'array',
                    'items': {'type': 'string', 'enum': ['critical', 'high', 'medium', 'low']},
                    'description': 'Filter alerts by severity level.',
                },
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of alerts to return. Defaults to 100.',
                },
                'onlyDefaultBranch': {
                    'type': 'boolean',
                    'description': 'If true, only return alerts found on the default branch. Defaults to true.',
                },
            },
            'required': ['project', 'repository'],
        },
        handler=get_alerts,
    ),
    ToolDefinition(
        name='advsec_get_alert_details',
        description='Get detailed information about a specific Advanced Security alert',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'The name or ID of the Azure DevOps project.',
                },
                'repository': {'type': 'string', 'description': 'The name or ID of the repository.'},
                'alertId': {
                    'type': 'number',
                    'description': 'The ID of the alert to get details for.',
                },
            },
            'required': ['project', 'repository', 'alertId'],
        },
        handler=get_alert_details,
    ),
]
