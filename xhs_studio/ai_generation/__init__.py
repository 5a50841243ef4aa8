"""
AI image generation package for xhs-studio.
"""

from .image_service import ImageApiGenerator
from .normalizer import (
    Base64Image,
    DataUri,
    ImageUrl,
    RawImageText,
    classify_response,
    extract_image_bytes,
    resolve_image_bytes,
)
from .prompting import IMAGE_STYLE_GUIDE, build_image_prompt

__all__ = [
    "Base64Image",
    "DataUri",
    "IMAGE_STYLE_GUIDE",
    "ImageApiGenerator",
    "ImageUrl",
    "RawImageText",
    "build_image_prompt",
    "classify_response",
    "extract_image_bytes",
    "resolve_image_bytes",
]
