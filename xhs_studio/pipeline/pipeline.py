"""
Orchestrates image generation across the pages of a project outline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol, Sequence

from xhs_studio.common.errors import UpstreamError
from xhs_studio.outline_generation import Page, PageType

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

PLACEHOLDER_IMAGE = b"placeholder image data"


class PageImageGenerator(Protocol):
    def generate_image(
        self,
        page: Page,
        theme: str,
        cover_image_path: str | Path | None = None,
    ) -> bytes: ...


@dataclass
class ImageBatchResult:
    """
    Output of a batch: one path per requested page, plus the pages that fell back
    to a placeholder and why.
    """

    images: dict[int, str] = field(default_factory=dict)
    errors: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"images": dict(self.images)}
        if self.errors:
            payload["errors"] = dict(self.errors)
        return payload


class ImageGenerationOrchestrator:
    """
    Generates page images sequentially, cover first, writing each under
    ``<images_dir>/<project_id>/``.
    """

    def __init__(
        self,
        *,
        image_generator: PageImageGenerator,
        images_dir: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._image_generator = image_generator
        self._images_dir = Path(images_dir)
        self._clock = clock

    def generate_all(
        self,
        pages: Sequence[Page],
        theme: str,
        project_id: str,
        only_page_numbers: Iterable[int] | None = None,
    ) -> dict[int, str]:
        """Generate images and return the page number to image path mapping."""
        return self.generate_batch(pages, theme, project_id, only_page_numbers).images

    def generate_batch(
        self,
        pages: Sequence[Page],
        theme: str,
        project_id: str,
        only_page_numbers: Iterable[int] | None = None,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> ImageBatchResult:
        """
        Generate images for ``pages`` (or the subset in ``only_page_numbers``).

        The first cover page is generated before everything else and its path is
        passed to every other page as the style reference. A failing page never
        aborts the batch: a placeholder is written in its place and the failure is
        recorded in :attr:`ImageBatchResult.errors`.
        """
        selected = _select_pages(pages, only_page_numbers)
        result = ImageBatchResult()
        total_pages = len(selected)
        self._notify(
            progress_callback,
            "images:start",
            project_id=project_id,
            total_pages=total_pages,
        )

        cover_page = next((page for page in selected if page.type is PageType.COVER), None)
        ordered = list(selected)
        cover_image_path: str | None = None
        if cover_page is not None:
            ordered.remove(cover_page)
            ordered.insert(0, cover_page)

        for index, page in enumerate(ordered, start=1):
            self._notify(
                progress_callback,
                "page:processing",
                page_number=page.page_number,
                page_index=index,
                total_pages=total_pages,
                page_type=page.type.value,
            )
            reference = None if page is cover_page else cover_image_path
            image_path, error = self._generate_page(page, theme, project_id, reference)
            result.images[page.page_number] = image_path
            if page is cover_page:
                cover_image_path = image_path

            if error is None:
                stage = "page:done"
            else:
                result.errors[page.page_number] = error
                stage = "page:failed"
            self._notify(
                progress_callback,
                stage,
                page_number=page.page_number,
                page_index=index,
                total_pages=total_pages,
                image_path=image_path,
            )

        self._notify(
            progress_callback,
            "images:complete",
            project_id=project_id,
            total_pages=total_pages,
            failed_pages=sorted(result.errors),
        )
        return result

    def _generate_page(
        self,
        page: Page,
        theme: str,
        project_id: str,
        cover_image_path: str | None,
    ) -> tuple[str, str | None]:
        project_dir = self._images_dir / project_id
        project_dir.mkdir(parents=True, exist_ok=True)
        image_path = project_dir / f"page_{page.page_number}_{int(self._clock() * 1000)}.png"

        try:
            data = self._image_generator.generate_image(page, theme, cover_image_path)
        except UpstreamError as exc:
            logger.exception(
                "Failed to generate image for page %s; writing placeholder.", page.page_number
            )
            image_path.write_bytes(PLACEHOLDER_IMAGE)
            return str(image_path), str(exc)

        image_path.write_bytes(data)
        logger.info("Saved image for page %s to %s", page.page_number, image_path)
        return str(image_path), None

    @staticmethod
    def _notify(
        callback: ProgressCallback | None,
        stage: str,
        **payload: Any,
    ) -> None:
        if callback is not None:
            callback(stage, payload)


def _select_pages(
    pages: Sequence[Page],
    only_page_numbers: Iterable[int] | None,
) -> list[Page]:
    if only_page_numbers is None:
        return list(pages)
    wanted = {int(number) for number in only_page_numbers}
    return [page for page in pages if page.page_number in wanted]
