"""Work item tracking tools."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import (
    csv,
    flag,
    json_result,
    not_found,
    project_path,
    segment,
    tool_handler,
    values,
)
from typing import Any, Dict, List, Optional


JSON_PATCH = 'application/json-patch+json'

# The work items batch endpoint accepts at most 200 ids per call.
MAX_WORK_ITEMS_PER_REQUEST = 200

CREATE_FIELDS = (
    ('description', 'System.Description'),
    ('assignedTo', 'System.AssignedTo'),
    ('tags', 'System.Tags'),
    ('areaPath', 'System.AreaPath'),
    ('iterationPath', 'System.IterationPath'),
)

UPDATE_FIELDS = (
    ('title', 'System.Title'),
    ('description', 'System.Description'),
    ('assignedTo', 'System.AssignedTo'),
    ('state', 'System.State'),
    ('tags', 'System.Tags'),
)


def patch_operations(args: Dict[str, Any], fields, op: str) -> List[Dict[str, Any]]:
    """Build JSON patch operations for every argument that carries a value."""
    return [
        {'op': op, 'path': f'/fields/{field}', 'value': args[key]}
        for key, field in fields
        if args.get(key)
    ]


def create_work_item(connection: Any, project: str, work_item_type: str, document):
    return connection.post(
        f'{segment(project)}/_apis/wit/workitems/${segment(work_item_type)}',
        json=document,
        content_type=JSON_PATCH,
    )


def get_work_items(connection: Any, ids: List[int], project: Optional[str] = None):
    """Fetch full work items for a list of ids, one batch request per 200 ids."""
    work_items: List[Any] = []
    for start in range(0, len(ids), MAX_WORK_ITEMS_PER_REQUEST):
        batch = ids[start : start + MAX_WORK_ITEMS_PER_REQUEST]
        work_items.extend(
            values(
                connection.get(
                    project_path(project, '_apis/wit/workitems'), params={'ids': csv(batch)}
                )
            )
        )
    return work_items


def query_ids(connection: Any, wiql: str, project: Optional[str] = None) -> List[int]:
    """Run a WIQL query and return the matching work item ids in query order."""
    result = connection.post(project_path(project, '_apis/wit/wiql'), json={'query': wiql}) or {}
    return [item['id'] for item in result.get('workItems') or [] if item.get('id') is not None]


@tool_handler('Error fetching work item')
def get_work_item(args: Dict[str, Any], connection: Any):
    work_item_id = args['id']
    work_item = connection.get(
        f'_apis/wit/workitems/{segment(work_item_id)}', params={'$expand': args.get('expand')}
    )
    if not work_item:
        return not_found(f'Work item {work_item_id} not found.')
    return json_result(work_item)


@tool_handler('Error creating work item')
def create_work_item_tool(args: Dict[str, Any], connection: Any):
    document = [{'op': 'add', 'path': '/fields/System.Title', 'value': args['title']}]
    document.extend(patch_operations(args, CREATE_FIELDS, 'add'))
    return json_result(create_work_item(connection, args['project'], args['type'], document))


@tool_handler('Error updating work item')
def update_work_item(args: Dict[str, Any], connection: Any):
    work_item_id = args['id']
    document = patch_operations(args, UPDATE_FIELDS, 'replace')
    if not document:
        return not_found(f'No updates specified for work item {work_item_id}')
    work_item = connection.patch(
        f'_apis/wit/workitems/{segment(work_item_id)}', json=document, content_type=JSON_PATCH
    )
    return json_result(work_item)


@tool_handler('Error querying work items')
def query_work_items(args: Dict[str, Any], connection: Any):
    project = args.get('project')
    ids = query_ids(connection, args['wiql'], project)
    if not ids:
        return not_found('No work items found matching the query.')
    return json_result(get_work_items(connection, ids, project))


@tool_handler('Error deleting work item')
def delete_work_item(args: Dict[str, Any], connection: Any):
    work_item_id = args['id']
    result = connection.delete(
        f'_apis/wit/workitems/{segment(work_item_id)}',
        params={'destroy': flag(args.get('destroy'))},
    )
    if result is None:
        result = {'id': work_item_id, 'deleted': True, 'destroyed': bool(args.get('destroy'))}
    return json_result(result)


TOOLS = [
    ToolDefinition(
        name='wit_get_work_item',
        description='Get a work item by ID with full details',
        input_schema={
            'type': 'object',
            'properties': {
                'id': {'type': 'number', 'description': 'Work item ID'},
                'expand': {
                    'type': 'string',
                    'description': 'Expand options (All, Relations, Fields, etc.)',
                },
            },
            'required': ['id'],
        },
        handler=get_work_item,
    ),
    ToolDefinition(
        name='wit_create_work_item',
        description='Create a new work item',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {'type': 'string', 'description': 'Project name or ID'},
                'type': {
                    'type': 'string',
                    'description': 'Work item type (Task, Bug, User Story, etc.)',
                },
                'title': {'type': 'string', 'description': 'Work item title'},
                'description': {
                    'type': 'string',
                    'description': 'Work item description (optional)',
                },
                'assignedTo': {
                    'type': 'string',
                    'description': 'Assigned to user email (optional)',
                },
                'tags': {'type': 'string', 'description': 'Comma-separated tags (optional)'},
                'areaPath': {'type': 'string', 'description': 'Area path (optional)'},
                'iterationPath': {'type': 'string', 'description': 'Iteration path (optional)'},
            },
            'required': ['project', 'type', 'title'],
        },
        handler=create_work_item_tool,
    ),
    ToolDefinition(
        name='wit_update_work_item',
        description='Update an existing work item',
        input_schema={
            'type': 'object',
            'properties': {
                'id': {'type': 'number', 'description': 'Work item ID to update'},
                'title': {'type': 'string', 'description': 'Updated title (optional)'},
                'description': {
                    'type': 'string',
                    'description': 'Updated description (optional)',
                },
                'assignedTo': {
                    'type': 'string',
                    'description': 'Updated assigned to user email (optional)',
                },
                'state': {'type': 'string', 'description': 'Updated state (optional)'},
                'tags': {
                    'type': 'string',
                    'description': 'Updated comma-separated tags (optional)',
                },
            },
            'required': ['id'],
        },
        handler=update_work_item,
    ),
    ToolDefinition(
        name='wit_query_work_items',
        description='Query work items using WIQL',
        input_schema={
            'type': 'object',
            'properties': {
                'wiql': {'type': 'string', 'description': 'WIQL query string'},
                'project': {'type': 'string', 'description': 'Project name or ID (optional)'},
            },
            'required': ['wiql'],
        },
        handler=query_work_items,
    ),
    ToolDefinition(
        name='wit_delete_work_item',
        description='Delete a work item',
        input_schema={
            'type': 'object',
            'properties': {
                'id': {'type': 'number', 'description': 'Work item ID to delete'},
                'destroy': {
                    'type': 'boolean',
                    'description': 'If true, permanently delete the work item. If false, move to recycle bin.',
                },
            },
            'required': ['id'],
        },
        handler=delete_work_item,
    ),
]
