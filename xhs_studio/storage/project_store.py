"""
File-backed storage for outline projects.

All projects live in a single ``projects.json`` under the data directory. Every
mutation is written through before the call returns. A lock serializes access to
the in-memory map across threads; separate processes still race and the last
write wins.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import yaml

from xhs_studio.common.errors import ProjectNotFoundError
from xhs_studio.outline_generation import Page

logger = logging.getLogger(__name__)

PROJECTS_FILENAME = "projects.json"


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETED = "completed"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Project:
    """Persisted aggregate of a theme, its outline, and generated image paths."""

    id: str
    theme: str
    outline: tuple[Page, ...]
    created_at: str
    updated_at: str
    reference_image: str | None = None
    images: Mapping[int, str] = field(default_factory=dict)
    status: ProjectStatus = ProjectStatus.DRAFT

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "theme": self.theme,
        }
        if self.reference_image is not None:
            payload["referenceImage"] = self.reference_image
        payload.update(
            {
                "outline": [page.as_dict() for page in self.outline],
                "images": {str(number): path for number, path in sorted(self.images.items())},
                "status": self.status.value,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
            }
        )
        return payload

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def summary(self) -> "ProjectSummary":
        return ProjectSummary(
            id=self.id,
            theme=self.theme,
            page_count=len(self.outline),
            status=self.status,
            created_at=self.created_at,
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Project":
        for key in ("id", "theme", "createdAt"):
            if key not in payload:
                raise ValueError(f"Project payload must include '{key}'.")

        try:
            images = {int(number): str(path) for number, path in payload.get("images", {}).items()}
        except (AttributeError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid images mapping for project {payload['id']}.") from exc

        return cls(
            id=str(payload["id"]),
            theme=str(payload["theme"]),
            outline=tuple(Page.from_dict(entry) for entry in payload.get("outline", [])),
            created_at=str(payload["createdAt"]),
            updated_at=str(payload.get("updatedAt", payload["createdAt"])),
            reference_image=payload.get("referenceImage"),
            images=images,
            status=ProjectStatus(payload.get("status", ProjectStatus.DRAFT.value)),
        )


@dataclass(frozen=True)
class ProjectSummary:
    id: str
    theme: str
    page_count: int
    status: ProjectStatus
    created_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "theme": self.theme,
            "pageCount": self.page_count,
            "status": self.status.value,
            "createdAt": self.created_at,
        }


_UPDATABLE_FIELDS = frozenset({"theme", "outline", "images", "status", "reference_image"})


class ProjectStore:
    """
    JSON-file project map keyed by project id.
    """

    def __init__(
        self,
        data_dir: Path | str,
        *,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self._data_dir = Path(data_dir)
        self._clock = clock
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._projects_file = self._data_dir / PROJECTS_FILENAME
        self._projects: dict[str, Project] = {}
        self._lock = threading.RLock()

        if self._projects_file.exists():
            self._load()
        else:
            self._save()

    @property
    def projects_file(self) -> Path:
        return self._projects_file

    def create_project(
        self,
        project_id: str,
        theme: str,
        outline: Sequence[Page],
        reference_image: str | None = None,
    ) -> Project:
        now = self._clock()
        project = Project(
            id=project_id,
            theme=theme,
            outline=tuple(outline),
            created_at=now,
            updated_at=now,
            reference_image=reference_image,
        )
        with self._lock:
            self._projects[project_id] = project
            self._save()
        logger.info("Created project %s with %d pages.", project_id, len(project.outline))
        return project

    def get_project(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    def update_project(self, project_id: str, **changes: Any) -> Project:
        """
        Merge ``changes`` into the stored project and refresh ``updated_at``.

        Raises
        ------
        ProjectNotFoundError
            No project is stored under ``project_id``.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update project fields: {', '.join(sorted(unknown))}")

        if "outline" in changes:
            changes["outline"] = tuple(changes["outline"])
        if "images" in changes:
            changes["images"] = {int(number): str(path) for number, path in changes["images"].items()}
        if "status" in changes:
            changes["status"] = ProjectStatus(changes["status"])

        with self._lock:
            project = self.get_project(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            updated = replace(project, updated_at=self._clock(), **changes)
            self._projects[project_id] = updated
            self._save()
        return updated

    def list_projects(self) -> list[ProjectSummary]:
        """Summaries of every project, newest first."""
        return [project.summary() for project in self._sorted_by_creation()]

    def get_latest_project(self) -> Project | None:
        projects = self._sorted_by_creation()
        return projects[0] if projects else None

    def delete_project(self, project_id: str) -> None:
        with self._lock:
            if self._projects.pop(project_id, None) is not None:
                self._save()

    def _sorted_by_creation(self) -> list[Project]:
        with self._lock:
            projects = list(self._projects.values())
        return sorted(
            projects,
            key=lambda project: _parse_timestamp(project.created_at),
            reverse=True,
        )

    def _load(self) -> None:
        data = json.loads(self._projects_file.read_text(encoding="utf-8"))
        projects = data.get("projects", {}) if isinstance(data, Mapping) else {}
        self._projects = {
            project_id: Project.from_dict(payload) for project_id, payload in projects.items()
        }

    def _save(self) -> None:
        with self._lock:
            store = {
                "projects": {
                    project_id: project.to_dict()
                    for project_id, project in self._projects.items()
                }
            }
            self._projects_file.write_text(
                json.dumps(store, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
