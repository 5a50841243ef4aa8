"""
CLI to parse an outline file into a project and generate its page images.

Usage:
    python scripts/run_outline_pipeline.py \
        --theme "春季通勤穿搭" \
        --outline-file outline.txt \
        --output project.yaml

Environment variables:
    IMAGE_API_URL, IMAGE_API_KEY, IMAGE_MODEL, ENDPOINTS, DATA_DIR
"""

from __future__ import annotations

import argparse
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from xhs_studio import (  # noqa: E402
    ImageApiGenerator,
    ImageGenerationOrchestrator,
    Project,
    ProjectStatus,
    ProjectStore,
    Settings,
    parse_outline,
)
from xhs_studio.common import ConfigurationError, configure_logging  # noqa: E402
from xhs_studio.pipeline import ProgressCallback  # noqa: E402


class ProgressTracker:
    """
    Command-line progress updates for a page image batch.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "images:start":
                total = payload.get("total_pages", 0)
                self._write(f"[3/4] Generating {total} page images...")
                self._page_bar = tqdm(total=total, desc="Page images", unit="page")
            case "page:processing":
                if self._page_bar is not None:
                    page_number = payload.get("page_number")
                    page_type = payload.get("page_type") or ""
                    self._page_bar.set_description(f"Page {page_number} ({page_type})")
            case "page:done":
                if self._page_bar is not None:
                    self._page_bar.update(1)
            case "page:failed":
                if self._page_bar is not None:
                    self._page_bar.update(1)
                self._write(f"  Page {payload.get('page_number')} failed; placeholder written.")
            case "images:complete":
                failed = payload.get("failed_pages") or []
                summary = f" ({len(failed)} placeholders)" if failed else ""
                self._write(f"[4/4] Image generation complete{summary}.")
                self.close()

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def generate_project_images(
    store: ProjectStore,
    orchestrator: ImageGenerationOrchestrator,
    project: Project,
    page_numbers: Optional[List[int]] = None,
    *,
    progress_callback: Optional[ProgressCallback] = None,
) -> Project:
    """
    Run the image batch for ``project`` and record the result.

    The previous status is restored if the batch raises.
    """
    store.update_project(project.id, status=ProjectStatus.GENERATING)
    try:
        batch = orchestrator.generate_batch(
            project.outline,
            project.theme,
            project.id,
            page_numbers,
            progress_callback=progress_callback,
        )
    except Exception:
        store.update_project(project.id, status=project.status)
        raise
    return store.update_project(
        project.id,
        images={**project.images, **batch.images},
        status=ProjectStatus.COMPLETED,
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parse an outline into a project and generate its page images."
    )
    parser.add_argument("--theme", required=True, help="Theme of the post.")
    parser.add_argument(
        "--outline-file",
        required=True,
        help="Path to the outline text written with <page> tags.",
    )
    parser.add_argument(
        "--reference-image",
        default=None,
        help="Optional reference image path stored with the project.",
    )
    parser.add_argument(
        "--pages",
        type=int,
        nargs="+",
        default=None,
        help="Only generate images for these page numbers.",
    )
    parser.add_argument(
        "--skip-images",
        action="store_true",
        help="Only parse and store the outline.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional YAML file receiving the stored project.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    outline_text = Path(args.outline_file).read_text(encoding="utf-8")
    tqdm.write(f"[1/4] Parsing outline from {args.outline_file}...")
    pages = parse_outline(outline_text)
    if not pages:
        print("No <page> segments could be parsed from the outline.", file=sys.stderr)
        return 1

    store = ProjectStore(settings.data_dir)
    project = store.create_project(
        str(uuid.uuid4()),
        args.theme,
        pages,
        reference_image=args.reference_image,
    )
    tqdm.write(f"[2/4] Stored project {project.id} with {len(pages)} pages.")

    if not args.skip_images:
        orchestrator = ImageGenerationOrchestrator(
            image_generator=ImageApiGenerator(settings),
            images_dir=settings.images_dir,
        )
        tracker = ProgressTracker()
        try:
            project = generate_project_images(
                store, orchestrator, project, args.pages, progress_callback=tracker
            )
        finally:
            tracker.close()

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(project.to_yaml(), encoding="utf-8")
        print(f"Saved project to {output_path}")
    else:
        print(f"Project id: {project.id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
