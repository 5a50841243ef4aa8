"""
Batch orchestration for page image generation.
"""

from .pipeline import (
    PLACEHOLDER_IMAGE,
    ImageBatchResult,
    ImageGenerationOrchestrator,
    PageImageGenerator,
    ProgressCallback,
)

__all__ = [
    "PLACEHOLDER_IMAGE",
    "ImageBatchResult",
    "ImageGenerationOrchestrator",
    "PageImageGenerator",
    "ProgressCallback",
]
