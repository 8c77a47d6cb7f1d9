"""Azure DevOps MCP Web Server Package.

This package exposes Azure DevOps organizational data as Model Context Protocol (MCP)
tools over JSON-RPC, Server-Sent Events, a plain REST surface and stdio.
"""

__version__ = '0.1.0'
__author__ = 'TechniumLabs'
__description__ = 'Azure DevOps MCP web server with JSON-RPC, SSE and REST transports'
