"""
MCP server exposing outline projects and page image generation.

Tools:
- generate_outline: Parse an agent-written outline and store it as a new project
- update_outline: Replace the outline of an existing project
- generate_images: Generate one image per page (cover first)
- get_project: Fetch a project with its outline and image paths
- list_projects: List all projects, newest first
- get_latest_project: Fetch the most recently created project

Usage:
    Add to the MCP client config, then restart the client:
    {
      "mcpServers": {
        "xhs-studio": {
          "command": "xhs-studio-mcp",
          "env": {
            "IMAGE_API_URL": "https://api.example.com",
            "IMAGE_API_KEY": "...",
            "IMAGE_MODEL": "...",
            "ENDPOINTS": "/v1/images/generations",
            "DATA_DIR": "/path/to/data"
          }
        }
      }
    }
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server

from xhs_studio.ai_generation import ImageApiGenerator
from xhs_studio.common.config import Settings, configure_logging
from xhs_studio.pipeline import ImageGenerationOrchestrator, PageImageGenerator
from xhs_studio.storage import ProjectStore

from .resources import PROMPTS, read_resource
from .tools import ToolContext, call_tool

logger = logging.getLogger(__name__)

SERVER_NAME = "xhs-studio"
SERVER_VERSION = "0.1.0"

_PAGE_SCHEMA = {
    "type": "object",
    "properties": {
        "pageNumber": {"type": "integer"},
        "type": {"type": "string", "enum": ["cover", "content", "summary"]},
        "title": {"type": "string"},
        "subtitle": {"type": "string"},
        "content": {"type": "string"},
        "imagePrompt": {"type": "string"},
    },
    "required": ["pageNumber", "type", "content"],
}

TOOLS: list[types.Tool] = [
    types.Tool(
        name="generate_outline",
        description=(
            "Parse an outline written with <page> tags and [封面]/[内容]/[总结] markers "
            "(see prompts://xiaohongshu-outline) and save it as a new project"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "theme": {"type": "string", "description": "Theme of the post"},
                "outline": {"type": "string", "description": "Outline text using <page> tags"},
                "referenceImage": {"type": "string", "description": "Optional reference image path"},
            },
            "required": ["theme", "outline"],
        },
    ),
    types.Tool(
        name="update_outline",
        description="Replace the outline of an existing project",
        inputSchema={
            "type": "object",
            "properties": {
                "projectId": {"type": "string", "description": "The project identifier"},
                "outline": {"type": "array", "items": _PAGE_SCHEMA},
            },
            "required": ["projectId", "outline"],
        },
    ),
    types.Tool(
        name="generate_images",
        description="Generate one image per page, cover first; failed pages get a placeholder",
        inputSchema={
            "type": "object",
            "properties": {
                "projectId": {"type": "string", "description": "The project identifier"},
                "pages": {
                    "type": "array",
                    "items": {"type": "integer"},
                    "description": "Optional: only generate these page numbers",
                },
            },
            "required": ["projectId"],
        },
    ),
    types.Tool(
        name="get_project",
        description="Get a project with its outline, image paths and status",
        inputSchema={
            "type": "object",
            "properties": {
                "projectId": {"type": "string", "description": "The project identifier"},
            },
            "required": ["projectId"],
        },
    ),
    types.Tool(
        name="list_projects",
        description="List all projects (id, theme, page count, status), newest first",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="get_latest_project",
        description="Get the most recently created project",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
]


def build_server(
    settings: Settings,
    *,
    store: ProjectStore | None = None,
    image_generator: PageImageGenerator | None = None,
) -> Server:
    """
    Wire the tool handlers and resource readers onto a low-level MCP server.
    """
    store = store or ProjectStore(settings.data_dir)
    orchestrator = ImageGenerationOrchestrator(
        image_generator=image_generator or ImageApiGenerator(settings),
        images_dir=settings.images_dir,
    )
    context = ToolContext(store=store, orchestrator=orchestrator)
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return TOOLS

    @server.call_tool()
    async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        # Image batches block on HTTP; keep the stdio loop responsive.
        result = await asyncio.to_thread(call_tool, context, name, arguments)
        return [types.TextContent(type="text", text=json.dumps(result, ensure_ascii=False))]

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        resources = [
            types.Resource(
                uri="projects://list",
                name="projects",
                description="All projects, newest first",
                mimeType="application/json",
            ),
            types.Resource(
                uri="prompts://list",
                name="prompts",
                description="Available prompt guides",
                mimeType="application/json",
            ),
        ]
        resources.extend(
            types.Resource(
                uri=f"prompts://{name}",
                name=name,
                description=description,
                mimeType="text/plain",
            )
            for name, (description, _) in PROMPTS.items()
        )
        return resources

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate="project://{projectId}",
                name="project",
                description="Full project data",
                mimeType="application/json",
            ),
            types.ResourceTemplate(
                uriTemplate="project://{projectId}/images",
                name="project-images",
                description="Generated image paths of a project",
                mimeType="application/json",
            ),
        ]

    @server.read_resource()
    async def handle_read_resource(uri: Any) -> list[ReadResourceContents]:
        resource = read_resource(store, str(uri))
        return [ReadResourceContents(content=resource.text, mime_type=resource.mime_type)]

    return server


async def run(settings: Settings) -> None:
    server = build_server(settings)
    logger.info("Starting %s MCP server (data dir: %s).", SERVER_NAME, settings.data_dir)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


def main() -> int:
    """Console entry point: configure from the environment and serve over stdio."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    asyncio.run(run(settings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
