"""Test plan, test case and test result tools."""

from html import escape
from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import csv, flag, json_result, not_found, segment, tool_handler, values
from tl.azure_devops_mcp_web.tools.work_items import create_work_item, get_work_items, query_ids
from typing import Any, Dict, List, Union


def format_steps(steps: str) -> str:
    """Convert newline-separated steps into the test case steps XML.

    Text that is already steps XML is returned unchanged.
    """
    if steps.lstrip().startswith('<steps'):
        return steps
    lines = [line.strip() for line in steps.splitlines() if line.strip()]
    parts = [f'<steps id="0" last="{len(lines)}">']
    for number, line in enumerate(lines, start=1):
        parts.append(
            f'<step id="{number}" type="ActionStep">'
            f'<parameterizedString isformatted="true">{escape(line)}</parameterizedString>'
            '<parameterizedString isformatted="true"></parameterizedString>'
            '</step>'
        )
    parts.append('</steps>')
    return ''.join(parts)


def parse_ids(ids: Union[str, List[Any]]) -> List[str]:
    if isinstance(ids, str):
        return [part.strip() for part in ids.split(',') if part.strip()]
    return [str(item) for item in ids]


@tool_handler('Error fetching test plans')
def list_test_plans(args: Dict[str, Any], connection: Any):
    project = args['project']
    plans = values(
        connection.get(
            f'{segment(project)}/_apis/testplan/plans',
            params={
                'continuationToken': args.get('continuationToken'),
                'includePlanDetails': flag(bool(args.get('includePlanDetails'))),
                'filterActivePlans': flag(args.get('filterActivePlans') is not False),
            },
        )
    )
    if not plans:
        return not_found(f'No test plans found for project: {project}')
    return json_result(plans)


@tool_handler('Error creating test plan')
def create_test_plan(args: Dict[str, Any], connection: Any):
    plan = {
        'name': args['name'],
        'description': args.get('description'),
        'areaPath': args.get('areaPath'),
        'iteration': args.get('iterationPath'),
    }
    test_plan = connection.post(
        f'{segment(args["project"])}/_apis/testplan/plans',
        json={key: value for key, value in plan.items() if value is not None},
    )
    return json_result(test_plan)


@tool_handler('Error creating test case')
def create_test_case(args: Dict[str, Any], connection: Any):
    document = [{'op': 'add', 'path': '/fields/System.Title', 'value': args['title']}]
    if args.get('steps'):
        document.append(
            {
                'op': 'add',
                'path': '/fields/Microsoft.VSTS.TCM.Steps',
                'value': format_steps(args['steps']),
            }
        )
    if args.get('areaPath'):
        document.append({'op': 'add', 'path': '/fields/System.AreaPath', 'value': args['areaPath']})
    return json_result(create_work_item(connection, args['project'], 'Test Case', document))


@tool_handler('Error listing test cases')
def list_test_cases(args: Dict[str, Any], connection: Any):
    project = args['project']
    quoted_project = project.replace("'", "''")
    wiql = (
        'SELECT [System.Id], [System.Title], [System.State] FROM WorkItems '
        f"WHERE [System.WorkItemType] = 'Test Case' AND [System.TeamProject] = '{quoted_project}' "
        'ORDER BY [System.Id] DESC'
    )
    ids = query_ids(connection, wiql, project)
    if not ids:
        return not_found(f'No test cases found for project: {project}')
    return json_result(get_work_items(connection, ids[: args.get('top') or 10], project))


@tool_handler('Error adding test cases to suite')
def add_test_cases_to_suite(args: Dict[str, Any], connection: Any):
    ids = parse_ids(args['testCaseIds'])
    if not ids:
        return not_found('No test case IDs provided')
    added = connection.post(
        f'{segment(args["project"])}/_apis/test/Plans/{segment(args["planId"])}'
        f'/suites/{segment(args["suiteId"])}/testcases/{csv(ids)}'
    )
    return json_result(values(added))


@tool_handler('Error fetching test results')
def get_test_results_from_build(args: Dict[str, Any], connection: Any):
    build_id = args['buildId']
    results = connection.get(
        f'{segment(args["project"])}/_apis/testresults/resultdetailsbybuild',
        service='vstmr',
        api_version='7.1-preview.1',
        params={'buildId': build_id},
    )
    if not results or not results.get('resultsForGroup'):
        return not_found(f'No test results found for build {build_id}')
    return json_result(results)


TOOLS = [
    ToolDefinition(
        name='testplan_list_test_plans',
        description='Retrieve a paginated list of test plans from an Azure DevOps project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'The unique identifier (ID or name) of the Azure DevOps project.',
                },
                'filterActivePlans': {
                    'type': 'boolean',
                    'description': 'Filter to include only active test plans. Defaults to true.',
                },
                'includePlanDetails': {
                    'type': 'boolean',
                    'description': 'Include detailed information about each test plan.',
                },
                'continuationToken': {
                    'type': 'string',
                    'description': 'Token to continue fetching test plans from a previous request.',
                },
            },
            'required': ['project'],
        },
        handler=list_test_plans,
    ),
    ToolDefinition(
        name='testplan_create_test_plan',
        description='Create a new test plan',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'name': {'type': 'string', 'description': 'Test plan name'},
                'description': {
                    'type': 'string',
                    'description': 'Test plan description (optional)',
                },
                'areaPath': {
                    'type': 'string',
                    'description': 'Area path for the test plan (optional)',
                },
                'iterationPath': {
                    'type': 'string',
                    'description': 'Iteration path for the test plan (optional)',
                },
            },
            'required': ['project', 'name'],
        },
        handler=create_test_plan,
    ),
    ToolDefinition(
        name='testplan_create_test_case',
        description='Create a new test case',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'title': {'type': 'string', 'description': 'Test case title'},
                'steps': {'type': 'string', 'description': 'Test case steps (optional)'},
                'areaPath': {
                    'type': 'string',
                    'description': 'Area path for the test case (optional)',
                },
            },
            'required': ['project', 'title'],
        },
        handler=create_test_case,
    ),
    ToolDefinition(
        name='testplan_list_test_cases',
        description='List test cases for a project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'top': {'type': 'number', 'description': 'Maximum number of test cases to return'},
            },
            'required': ['project'],
        },
        handler=list_test_cases,
    ),
    ToolDefinition(
        name='testplan_add_test_cases_to_suite',
        description='Add test cases to a test suite',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'planId': {'type': 'number', 'description': 'Test plan ID'},
                'suiteId': {'type': 'number', 'description': 'Test suite ID'},
                'testCaseIds': {
                    'type': 'array',
                    'items': {'type': 'number'},
                    'description': 'Array of test case IDs to add',
                },
            },
            'required': ['project', 'planId', 'suiteId', 'testCaseIds'],
        },
        handler=add_test_cases_to_suite,
    ),
    ToolDefinition(
        name='testplan_get_test_results_from_build',
        description='Show test results from a build ID',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'buildId': {'type': 'number', 'description': 'Build ID to get test results for'},
            },
            'required': ['project', 'buildId'],
        },
        handler=get_test_results_from_build,
    ),
]
