from __future__ import annotations

from pathlib import Path

from xhs_studio.common import UpstreamFormatError, UpstreamHttpError
from xhs_studio.outline_generation import Page, PageType
from xhs_studio.pipeline import PLACEHOLDER_IMAGE, ImageGenerationOrchestrator


class FakeGenerator:
    def __init__(self, failures: dict[int, Exception] | None = None) -> None:
        self.failures = failures or {}
        self.calls: list[tuple[int, str | None]] = []

    def generate_image(self, page, theme, cover_image_path=None) -> bytes:
        self.calls.append((page.page_number, cover_image_path))
        if page.page_number in self.failures:
            raise self.failures[page.page_number]
        return f"image-{page.page_number}".encode()


def _pages(*types: PageType) -> list[Page]:
    return [
        Page(page_number=index, type=page_type, content=f"page {index}")
        for index, page_type in enumerate(types, start=1)
    ]


def _orchestrator(generator, tmp_path: Path) -> ImageGenerationOrchestrator:
    return ImageGenerationOrchestrator(image_generator=generator, images_dir=tmp_path / "images")


def test_cover_is_generated_first_and_used_as_reference(tmp_path):
    generator = FakeGenerator()
    pages = _pages(PageType.COVER, PageType.CONTENT, PageType.CONTENT)

    images = _orchestrator(generator, tmp_path).generate_all(pages, "主题", "proj-1")

    cover_path = images[1]
    assert generator.calls == [(1, None), (2, cover_path), (3, cover_path)]
    assert set(images) == {1, 2, 3}
    assert Path(cover_path).read_bytes() == b"image-1"
    assert Path(images[3]).parent == tmp_path / "images" / "proj-1"


def test_cover_later_in_outline_is_still_generated_first(tmp_path):
    generator = FakeGenerator()
    pages = _pages(PageType.CONTENT, PageType.COVER, PageType.SUMMARY)

    images = _orchestrator(generator, tmp_path).generate_all(pages, "主题", "proj-1")

    assert [number for number, _ in generator.calls] == [2, 1, 3]
    assert generator.calls[1][1] == images[2]


def test_failed_page_gets_placeholder_and_batch_continues(tmp_path):
    generator = FakeGenerator(failures={2: UpstreamHttpError("Image API error: 500")})
    pages = _pages(PageType.COVER, PageType.CONTENT, PageType.CONTENT)

    result = _orchestrator(generator, tmp_path).generate_batch(pages, "主题", "proj-1")

    assert set(result.images) == {1, 2, 3}
    assert Path(result.images[2]).read_bytes() == PLACEHOLDER_IMAGE
    assert Path(result.images[3]).read_bytes() == b"image-3"
    assert result.errors == {2: "Image API error: 500"}
    assert [number for number, _ in generator.calls] == [1, 2, 3]


def test_failed_cover_placeholder_is_still_the_reference(tmp_path):
    generator = FakeGenerator(failures={1: UpstreamFormatError("no url or base64 data")})
    pages = _pages(PageType.COVER, PageType.CONTENT)

    result = _orchestrator(generator, tmp_path).generate_batch(pages, "主题", "proj-1")

    assert generator.calls[1] == (2, result.images[1])
    assert list(result.errors) == [1]


def test_only_requested_pages_are_generated(tmp_path):
    generator = FakeGenerator()
    pages = _pages(PageType.COVER, PageType.CONTENT, PageType.CONTENT, PageType.SUMMARY)

    images = _orchestrator(generator, tmp_path).generate_all(pages, "主题", "proj-1", [2, 4])

    assert set(images) == {2, 4}
    assert generator.calls == [(2, None), (4, None)]


def test_progress_callback_reports_each_stage(tmp_path):
    generator = FakeGenerator(failures={2: UpstreamHttpError("boom")})
    events: list[tuple[str, dict]] = []
    pages = _pages(PageType.COVER, PageType.CONTENT)

    _orchestrator(generator, tmp_path).generate_batch(
        pages,
        "主题",
        "proj-1",
        progress_callback=lambda stage, payload: events.append((stage, payload)),
    )

    assert [stage for stage, _ in events] == [
        "images:start",
        "page:processing",
        "page:done",
        "page:processing",
        "page:failed",
        "images:complete",
    ]
    assert events[0][1]["total_pages"] == 2
    assert events[-1][1]["failed_pages"] == [2]


def test_batch_result_omits_errors_when_all_pages_succeed(tmp_path):
    result = _orchestrator(FakeGenerator(), tmp_path).generate_batch(
        _pages(PageType.COVER), "主题", "proj-1"
    )

    assert "errors" not in result.to_dict()
