"""
xhs-studio package exposing outline parsing, page image generation, and project storage.
"""

from .ai_generation import ImageApiGenerator, build_image_prompt, extract_image_bytes
from .common import Settings
from .outline_generation import OutlineParser, Page, PageType, parse_outline
from .pipeline import ImageBatchResult, ImageGenerationOrchestrator
from .storage import Project, ProjectStatus, ProjectStore

__all__ = [
    "ImageApiGenerator",
    "ImageBatchResult",
    "ImageGenerationOrchestrator",
    "OutlineParser",
    "Page",
    "PageType",
    "Project",
    "ProjectStatus",
    "ProjectStore",
    "Settings",
    "build_image_prompt",
    "extract_image_bytes",
    "parse_outline",
]
