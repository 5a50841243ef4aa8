"""
Parse agent-written outline text into typed pages.

Outlines follow a tag-delimited convention::

    <page>
    [封面]
    标题：Spring capsule wardrobe
    副标题：10 pieces, 30 outfits
    </page>
    <page>
    [内容]
    ...
    </page>

Parsing never raises: malformed text degrades to fewer (or zero) pages.
"""

from __future__ import annotations

import logging
import re

from .page import Page, PageType

logger = logging.getLogger(__name__)

_PAGE_BLOCK_PATTERN = re.compile(r"<page[^>]*>[\s\S]*?</page>")
_PAGE_OPEN_PATTERN = re.compile(r"<page[^>]*>")
_PAGE_CLOSE_TAIL_PATTERN = re.compile(r"</page>[\s\S]*")
_TITLE_PATTERN = re.compile(r"(?:<title>|(?<!副)标题[：:])\s*(.+?)(?:</title>|\n|$)")
_SUBTITLE_PATTERN = re.compile(r"(?:<subtitle>|副标题[：:])\s*(.+?)(?:</subtitle>|\n|$)")

_TYPE_MARKERS: tuple[tuple[str, PageType], ...] = (
    ("[封面]", PageType.COVER),
    ("[总结]", PageType.SUMMARY),
    ("[内容]", PageType.CONTENT),
    ("<title>", PageType.COVER),
)


def extract_tagged_segments(text: str) -> list[str]:
    """
    Return the bodies of every complete ``<page>...</page>`` pair.

    Anything outside the pairs (preambles, echoed prompt examples) is dropped.
    """
    segments: list[str] = []
    for block in _PAGE_BLOCK_PATTERN.findall(text):
        body = _PAGE_OPEN_PATTERN.sub("", block, count=1)
        body = body.replace("</page>", "", 1)
        segments.append(body.strip())
    return segments


def split_unclosed_segments(text: str) -> list[str]:
    """
    Recover pages from text whose ``<page>`` tags were opened but never closed.

    Text before the first opening tag is discarded, as is everything from a stray
    ``</page>`` to the end of its fragment.
    """
    fragments = _PAGE_OPEN_PATTERN.split(text)[1:]
    return [_PAGE_CLOSE_TAIL_PATTERN.sub("", fragment).strip() for fragment in fragments]


def extract_page_segments(text: str) -> list[str]:
    segments = extract_tagged_segments(text)
    if segments:
        return segments
    return split_unclosed_segments(text)


def detect_page_type(first_line: str) -> PageType:
    for marker, page_type in _TYPE_MARKERS:
        if marker in first_line:
            return page_type
    return PageType.CONTENT


def parse_page_segment(segment: str, page_number: int) -> Page | None:
    """
    Turn one segment into a :class:`Page`, or ``None`` when it holds no content.
    """
    lines = [line for line in segment.splitlines() if line.strip()]
    if not lines:
        return None

    first_line = lines[0].strip()
    page_type = detect_page_type(first_line)

    # A bracketed marker line is metadata, not page content.
    has_marker = "[" in first_line and "]" in first_line
    content = "\n".join(lines[1:] if has_marker else lines).strip()
    if not content:
        return None

    if page_number == 1 and "[" not in first_line:
        page_type = PageType.COVER

    return Page(
        page_number=page_number,
        type=page_type,
        content=content,
        title=_first_capture(_TITLE_PATTERN, content),
        subtitle=_first_capture(_SUBTITLE_PATTERN, content),
    )


def parse_outline(text: str) -> list[Page]:
    """
    Parse raw outline text into pages numbered 1..N in output order.
    """
    pages: list[Page] = []
    for segment in extract_page_segments(text or ""):
        if not segment:
            continue
        page = parse_page_segment(segment, len(pages) + 1)
        if page is not None:
            pages.append(page)

    if not pages:
        logger.debug("No page segments found in outline text (%d chars).", len(text or ""))
    return pages


class OutlineParser:
    """
    Object wrapper around :func:`parse_outline` for callers that inject a parser.
    """

    def parse(self, text: str) -> list[Page]:
        return parse_outline(text)


def _first_capture(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(1).strip() or None
