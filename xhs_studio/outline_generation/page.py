"""
Typed page records that make up a post outline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class PageType(str, Enum):
    COVER = "cover"
    CONTENT = "content"
    SUMMARY = "summary"


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None

    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Page:
    """
    A single page of an outline, rendered later as one image.
    """

    page_number: int
    type: PageType
    content: str
    title: str | None = None
    subtitle: str | None = None
    image_prompt: str | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "pageNumber": self.page_number,
            "type": self.type.value,
        }
        if self.title is not None:
            payload["title"] = self.title
        if self.subtitle is not None:
            payload["subtitle"] = self.subtitle
        payload["content"] = self.content
        if self.image_prompt is not None:
            payload["imagePrompt"] = self.image_prompt
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Page":
        """
        Build a page from its wire form (camelCase keys, snake_case accepted too).
        """
        raw_number = data.get("pageNumber", data.get("page_number"))
        try:
            page_number = int(raw_number)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid page number in page payload: {data!r}") from exc
        if page_number < 1:
            raise ValueError(f"Page numbers must be positive, received {page_number}.")

        try:
            page_type = PageType(str(data.get("type", PageType.CONTENT.value)))
        except ValueError as exc:
            raise ValueError(f"Unknown page type in page {page_number}: {data.get('type')!r}") from exc

        content = _coerce_optional_str(data.get("content"))
        if content is None:
            raise ValueError(f"Page {page_number} is missing content.")

        return cls(
            page_number=page_number,
            type=page_type,
            content=content,
            title=_coerce_optional_str(data.get("title")),
            subtitle=_coerce_optional_str(data.get("subtitle")),
            image_prompt=_coerce_optional_str(data.get("imagePrompt", data.get("image_prompt"))),
        )
