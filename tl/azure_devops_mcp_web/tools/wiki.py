"""Wiki tools."""

from tl.azure_devops_mcp_web.registry import ToolDefinition
from tl.azure_devops_mcp_web.tools.base import json_result, not_found, project_path, segment, tool_handler, values
from typing import Any, Dict, Optional


def wikis_path(project: Optional[str], *parts: Any) -> str:
    suffix = ''.join(f'/{segment(part)}' for part in parts)
    return project_path(project, f'_apis/wiki/wikis{suffix}')


def normalize_page_path(path: str) -> str:
    return path if path.startswith('/') else f'/{path}'


@tool_handler('Error fetching wikis')
def list_wikis(args: Dict[str, Any], connection: Any):
    wikis = values(connection.get(wikis_path(args.get('project'))))
    if not wikis:
        return not_found('No wikis found')
    return json_result(wikis)


@tool_handler('Error getting wiki')
def get_wiki(args: Dict[str, Any], connection: Any):
    wiki = connection.get(wikis_path(args.get('project'), args['wikiIdentifier']))
    if not wiki:
        return not_found('No wiki found')
    return json_result(wiki)


@tool_handler('Error fetching wiki pages')
def list_pages(args: Dict[str, Any], connection: Any):
    batch_request = {
        'top': args.get('top') or 20,
        'continuationToken': args.get('continuationToken'),
        'pageViewsForDays': args.get('pageViewsForDays'),
    }
    pages = connection.post(
        wikis_path(args['project'], args['wikiIdentifier'], 'pagesbatch'),
        json={key: value for key, value in batch_request.items() if value is not None},
    )
    if pages is None:
        return not_found('No wiki pages found')
    return json_result(values(pages))


@tool_handler('Error getting wiki page content')
def get_page_content(args: Dict[str, Any], connection: Any):
    path = args['path']
    page = connection.get(
        wikis_path(args['project'], args['wikiIdentifier'], 'pages'),
        params={'path': path, 'includeContent': 'true'},
    )
    if not page:
        return not_found('No wiki page content found')
    return json_result({'path': path, 'content': page.get('content', '')})


@tool_handler('Error creating/updating wiki page')
def create_or_update_page(args: Dict[str, Any], connection: Any):
    path = normalize_page_path(args['path'])
    pages_path = wikis_path(args.get('project'), args['wikiIdentifier'], 'pages')

    # Updating an existing page requires its current ETag in If-Match.
    etag = args.get('etag')
    if not etag:
        existing = connection.send('GET', pages_path, params={'path': path}, allow_not_found=True)
        if existing.status_code != 404:
            etag = existing.headers.get('ETag')

    page = connection.put(
        pages_path,
        params={'path': path},
        json={'content': args['content']},
        headers={'If-Match': etag} if etag else None,
    )
    return json_result(
        {'path': path, 'action': 'updated' if etag else 'created', 'page': page}
    )


TOOLS = [
    ToolDefinition(
        name='wiki_list_wikis',
        description='Retrieve a list of wikis for an organization or project',
        input_schema={
            'type': 'object',
            'properties': {
                'project': {
                    'type': 'string',
                    'description': 'The project name or ID to filter wikis. If not provided, all wikis in the organization will be returned.',
                },
            },
        },
        handler=list_wikis,
    ),
    ToolDefinition(
        name='wiki_get_wiki',
        description='Get the wiki by wikiIdentifier',
        input_schema={
            'type': 'object',
            'properties': {
                'wikiIdentifier': {
                    'type': 'string',
                    'description': 'The unique identifier of the wiki.',
                },
                'project': {
                    'type': 'string',
                    'description': 'The project name or ID where the wiki is located. If not provided, the default project will be used.',
                },
            },
            'required': ['wikiIdentifier'],
        },
        handler=get_wiki,
    ),
    ToolDefinition(
        name='wiki_list_pages',
        description='Retrieve a list of wiki pages for a specific wiki and project.',
        input_schema={
            'type': 'object',
            'properties': {
                'wikiIdentifier': {
                    'type': 'string',
                    'description': 'The unique identifier of the wiki.',
                },
                'project': {
                    'type': 'string',
                    'description': 'The project name or ID where the wiki is located.',
                },
                'top': {
                    'type': 'number',
                    'default': 20,
                    'description': 'The maximum number of pages to return. Defaults to 20.',
                },
                'continuationToken': {
                    'type': 'string',
                    'description': 'Token for pagination to retrieve the next set of pages.',
                },
                'pageViewsForDays': {
                    'type': 'number',
                    'description': 'Number of days to retrieve page views for. If not specified, page views are not included.',
                },
            },
            'required': ['wikiIdentifier', 'project'],
        },
        handler=list_pages,
    ),
    ToolDefinition(
        name='wiki_get_page_content',
        description='Retrieve wiki page content by wikiIdentifier and path',
        input_schema={
            'type': 'object',
            'properties': {
                'wikiIdentifier': {
                    'type': 'string',
                    'description': 'The unique identifier of the wiki.',
                },
                'project': {
                    'type': 'string',
                    'description': 'The project name or ID where the wiki is located.',
                },
                'path': {
                    'type': 'string',
                    'description': 'The path of the wiki page to retrieve content for.',
                },
            },
            'required': ['wikiIdentifier', 'project', 'path'],
        },
        handler=get_page_content,
    ),
    ToolDefinition(
        name='wiki_create_or_update_page',
        description='Create or update a wiki page with content',
        input_schema={
            'type': 'object',
            'properties': {
                'wikiIdentifier': {
                    'type': 'string',
                    'description': 'The unique identifier or name of the wiki.',
                },
                'path': {
                    'type': 'string',
                    'description': "The path of the wiki page (e.g., '/Home' or '/Documentation/Setup').",
                },
                'content': {
                    'type': 'string',
                    'description': 'The content of the wiki page in markdown format.',
                },
                'project': {
                    'type': 'string',
                    'description': 'The project name or ID where the wiki is located. If not provided, the default project will be used.',
                },
                'etag': {
                    'type': 'string',
                    'description': 'ETag for editing existing pages (optional, will be fetched if not provided).',
                },
            },
            'required': ['wikiIdentifier', 'path', 'content'],
        },
        handler=create_or_update_page,
    ),
]
