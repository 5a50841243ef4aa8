"""
Project persistence for xhs-studio.
"""

from .project_store import Project, ProjectStatus, ProjectStore, ProjectSummary

__all__ = ["Project", "ProjectStatus", "ProjectStore", "ProjectSummary"]
