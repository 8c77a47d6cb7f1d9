"""Search tools backed by the almsearch service."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, tool_handler
from typing import Any, Dict, Iterable, Tuple


SEARCH_API_VERSION = '7.1'

CODE_FILTERS = (
    ('project', 'Project'),
    ('repository', 'Repository'),
    ('path', 'Path'),
    ('branch', 'Branch'),
)
WIKI_FILTERS = (('project', 'Project'), ('wiki', 'Wiki'))
WORK_ITEM_FILTERS = (
    ('project', 'System.TeamProject'),
    ('areaPath', 'System.AreaPath'),
    ('workItemType', 'System.WorkItemType'),
    ('state', 'System.State'),
    ('assignedTo', 'System.AssignedTo'),
)


def build_filters(args: Dict[str, Any], mapping: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Map non-empty list arguments onto search facet names."""
    return {facet: args[key] for key, facet in mapping if args.get(key)}


def search(connection: Any, kind: str, args: Dict[str, Any], filters: Dict[str, Any], top: int):
    request_body: Dict[str, Any] = {
        'searchText': args['searchText'],
        'includeFacets': False,
        '$skip': 0,
        '$top': args.get('top') or top,
    }
    if filters:
        request_body['filters'] = filters
    return connection.post(
        f'_apis/search/{kind}searchresults',
        service='almsearch',
        api_version=SEARCH_API_VERSION,
        json=request_body,
    )


@tool_handler('Error searching code')
def search_code(args: Dict[str, Any], connection: Any):
    return json_result(search(connection, 'code', args, build_filters(args, CODE_FILTERS), 5))


@tool_handler('Error searching wiki')
def search_wiki(args: Dict[str, Any], connection: Any):
    return json_result(search(connection, 'wiki', args, build_filters(args, WIKI_FILTERS), 10))


@tool_handler('Error searching work items')
def search_workitem(args: Dict[str, Any], connection: Any):
    return json_result(
        search(connection, 'workitem', args, build_filters(args, WORK_ITEM_FILTERS), 10)
    )


def _string_list(description: str) -> Dict[str, Any]:
    return {'type': 'array', 'items': {'type': 'string'}, 'description': description}


TOOLS = [
    ToolDefinition(
        name='search_code',
        description='Search Azure DevOps Repositories for a given search text',
        input_schema={
            'type': 'object',
            'properties': {
                'searchText': {
                    'type': 'string',
                    'description': 'Keywords to search for in code repositories',
                },
                'project': _string_list('Filter by projects'),
                'repository': _string_list('Filter by repositories'),
                'path': _string_list('Filter by paths'),
                'branch': _string_list('Filter by branches'),
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of results to return',
                    'default': 5,
                },
            },
            'required': ['searchText'],
        },
        handler=search_code,
    ),
    ToolDefinition(
        name='search_wiki',
        description='Search Azure DevOps Wiki for a given search text',
        input_schema={
            'type': 'object',
            'properties': {
                'searchText': {
                    'type': 'string',
                    'description': 'Keywords to search for wiki pages',
                },
                'project': _string_list('Filter by projects'),
                'wiki': _string_list('Filter by wiki names'),
                'top': {
                    'type': 'number',
                    'description': 'Maximum number of results to return',
                    'default': 10,
                },
            },
            'required': ['searchText'],
        },
        handler=search_wiki,
    ),
    ToolDefinition(
        name='search_workitem',
        description='Get Azure DevOps Work Item search results for a given search text',
        input_schema={
            'type': 'object',
            'properties': {
                'searchText': {
                    'type': 'string',
                    'description': 'Search text to find in work items',
                },
                'project': _string_list('Filter by projects'),
                'areaPath': _string_list('Filter by area paths'),
                'workItemType': _string_list('Filter by work item types'),
                'state': _string_list('Filter by work item states'),
                'assignedTo': _string_list('Filter by assigned to users'),
                'top': {
                    'type': 'number',
                    'description': 'Number of results to return',
                    'default': 10,
                },
            },
            'required': ['searchText'],
        },
        handler=search_workitem,
    ),
]
