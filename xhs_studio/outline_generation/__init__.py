"""
Outline parsing utilities for turning agent-written text into typed pages.
"""

from .page import Page, PageType
from .parser import (
    OutlineParser,
    extract_page_segments,
    extract_tagged_segments,
    parse_outline,
    parse_page_segment,
    split_unclosed_segments,
)
from .prompting import OUTLINE_WRITING_GUIDE

__all__ = [
    "OUTLINE_WRITING_GUIDE",
    "OutlineParser",
    "Page",
    "PageType",
    "extract_page_segments",
    "extract_tagged_segments",
    "parse_outline",
    "parse_page_segment",
    "split_unclosed_segments",
]
