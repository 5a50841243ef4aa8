"""
URI-based resource readers for the MCP server.

URIs:
    projects://list
    project://{project_id}
    project://{project_id}/images
    prompts://list
    prompts://xiaohongshu-outline
    prompts://xiaohongshu-image
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from xhs_studio.ai_generation import IMAGE_STYLE_GUIDE
from xhs_studio.outline_generation import OUTLINE_WRITING_GUIDE
from xhs_studio.storage import ProjectStore

JSON_MIME = "application/json"
TEXT_MIME = "text/plain"

PROMPTS: dict[str, tuple[str, str]] = {
    "xiaohongshu-outline": (
        "Prompt for generating Xiaohongshu content outlines",
        OUTLINE_WRITING_GUIDE,
    ),
    "xiaohongshu-image": (
        "Prompt for generating Xiaohongshu style images",
        IMAGE_STYLE_GUIDE,
    ),
}


@dataclass(frozen=True)
class ResourceText:
    text: str
    mime_type: str


def list_projects_resource(store: ProjectStore) -> ResourceText:
    payload = {"projects": [summary.to_dict() for summary in store.list_projects()]}
    return ResourceText(json.dumps(payload, ensure_ascii=False, indent=2), JSON_MIME)


def project_resource(store: ProjectStore, project_id: str) -> ResourceText:
    project = store.get_project(project_id)
    if project is None:
        return ResourceText(f"Project not found: {project_id}", TEXT_MIME)
    return ResourceText(json.dumps(project.to_dict(), ensure_ascii=False, indent=2), JSON_MIME)


def project_images_resource(store: ProjectStore, project_id: str) -> ResourceText:
    project = store.get_project(project_id)
    if project is None:
        return ResourceText(f"Project not found: {project_id}", TEXT_MIME)

    images = [{"page": number, "path": path} for number, path in sorted(project.images.items())]
    return ResourceText(json.dumps(images, ensure_ascii=False, indent=2), JSON_MIME)


def list_prompts_resource() -> ResourceText:
    prompts = [
        {"name": name, "description": description, "uri": f"prompts://{name}"}
        for name, (description, _) in PROMPTS.items()
    ]
    return ResourceText(json.dumps({"prompts": prompts}, ensure_ascii=False), JSON_MIME)


def read_resource(store: ProjectStore, uri: str) -> ResourceText:
    """
    Resolve ``uri`` to its text; raises ``ValueError`` for unknown URIs.
    """
    uri = uri.rstrip("/")

    if uri == "projects://list":
        return list_projects_resource(store)

    if uri == "prompts://list":
        return list_prompts_resource()

    if uri.startswith("prompts://"):
        name = uri[len("prompts://"):]
        if name in PROMPTS:
            return ResourceText(PROMPTS[name][1], TEXT_MIME)

    if uri.startswith("project://"):
        project_id, _, suffix = uri[len("project://"):].partition("/")
        if project_id and not suffix:
            return project_resource(store, project_id)
        if project_id and suffix == "images":
            return project_images_resource(store, project_id)

    raise ValueError(f"Unknown resource: {uri}")
