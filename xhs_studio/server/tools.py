"""
Tool handlers behind the MCP server.

Handlers take the decoded tool arguments and return a JSON-serializable result.
Failures are raised as :class:`ToolInvocationError`, whose string form is the JSON
error envelope the client receives.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from xhs_studio.outline_generation import Page, parse_outline
from xhs_studio.pipeline import ImageGenerationOrchestrator
from xhs_studio.storage import Project, ProjectStatus, ProjectStore

logger = logging.getLogger(__name__)

ToolHandler = Callable[["ToolContext", Mapping[str, Any]], Any]


class ToolInvocationError(Exception):
    """A tool call failed; carries a stable error code for the client."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}

    def __str__(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def _new_project_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ToolContext:
    store: ProjectStore
    orchestrator: ImageGenerationOrchestrator
    id_factory: Callable[[], str] = _new_project_id


def _require_string(arguments: Mapping[str, Any], key: str, label: str) -> str:
    value = arguments.get(key)
    if not value or not isinstance(value, str):
        raise ToolInvocationError("INVALID_INPUT", f"{label} is required and must be a string")
    return value


def _require_project(context: ToolContext, project_id: str) -> Project:
    project = context.store.get_project(project_id)
    if project is None:
        raise ToolInvocationError("PROJECT_NOT_FOUND", f"Project not found: {project_id}")
    return project


def generate_outline(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    theme = _require_string(arguments, "theme", "Theme")
    outline_text = _require_string(arguments, "outline", "Outline text")
    reference_image = arguments.get("referenceImage") or None

    pages = parse_outline(outline_text)
    if not pages:
        raise ToolInvocationError("PARSE_FAILED", "Failed to parse outline")

    project = context.store.create_project(
        context.id_factory(),
        theme,
        pages,
        reference_image=reference_image,
    )
    return {
        "projectId": project.id,
        "outline": [page.as_dict() for page in project.outline],
        "createdAt": project.created_at,
    }


def update_outline(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    project_id = _require_string(arguments, "projectId", "Project ID")
    raw_outline = arguments.get("outline")
    if not isinstance(raw_outline, list):
        raise ToolInvocationError("INVALID_INPUT", "Outline is required and must be an array")

    try:
        outline = [Page.from_dict(entry) for entry in raw_outline]
    except (TypeError, AttributeError, ValueError) as exc:
        raise ToolInvocationError("INVALID_INPUT", f"Invalid outline page: {exc}") from exc

    _require_project(context, project_id)
    context.store.update_project(project_id, outline=outline)
    return {"success": True, "message": "Outline updated successfully"}


def generate_images(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    project_id = _require_string(arguments, "projectId", "Project ID")
    page_numbers = arguments.get("pages")
    if page_numbers is not None and (
        not isinstance(page_numbers, list)
        or not all(isinstance(number, int) and not isinstance(number, bool) for number in page_numbers)
    ):
        raise ToolInvocationError("INVALID_INPUT", "Pages must be an array of page numbers")

    project = _require_project(context, project_id)
    context.store.update_project(project_id, status=ProjectStatus.GENERATING)
    try:
        batch = context.orchestrator.generate_batch(
            project.outline,
            project.theme,
            project_id,
            page_numbers,
        )
    except Exception:
        context.store.update_project(project_id, status=project.status)
        raise

    images = {**project.images, **batch.images}
    context.store.update_project(project_id, images=images, status=ProjectStatus.COMPLETED)
    logger.info(
        "Generated %d images for project %s (%d placeholders).",
        len(batch.images),
        project_id,
        len(batch.errors),
    )

    response: dict[str, Any] = {"status": "completed"}
    response.update(batch.to_dict())
    return response


def get_project(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    project_id = _require_string(arguments, "projectId", "Project ID")
    return _require_project(context, project_id).to_dict()


def list_projects(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    projects = [summary.to_dict() for summary in context.store.list_projects()]
    return {"projects": projects, "total": len(projects)}


def get_latest_project(context: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    project = context.store.get_latest_project()
    if project is None:
        raise ToolInvocationError("PROJECT_NOT_FOUND", "No projects found")
    return project.to_dict()


# name -> (handler, code used for unexpected failures)
TOOL_HANDLERS: dict[str, tuple[ToolHandler, str]] = {
    "generate_outline": (generate_outline, "PARSE_ERROR"),
    "update_outline": (update_outline, "UPDATE_FAILED"),
    "generate_images": (generate_images, "GENERATION_FAILED"),
    "get_project": (get_project, "RETRIEVAL_FAILED"),
    "list_projects": (list_projects, "RETRIEVAL_FAILED"),
    "get_latest_project": (get_latest_project, "RETRIEVAL_FAILED"),
}


def call_tool(context: ToolContext, name: str, arguments: Mapping[str, Any] | None) -> Any:
    """
    Dispatch a tool call, converting unexpected failures into tool errors.
    """
    if name not in TOOL_HANDLERS:
        raise ToolInvocationError("UNKNOWN_TOOL", f"Unknown tool: {name}")

    handler, failure_code = TOOL_HANDLERS[name]
    try:
        return handler(context, arguments or {})
    except ToolInvocationError:
        raise
    except Exception as exc:
        logger.exception("Tool %s failed.", name)
        raise ToolInvocationError(failure_code, str(exc) or type(exc).__name__) from exc
