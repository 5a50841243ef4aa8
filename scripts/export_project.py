"""
Export a stored project as YAML.

Usage:
    python scripts/export_project.py --project-id <id> --output project.yaml
    python scripts/export_project.py --output latest.yaml   # most recent project

Only ``DATA_DIR`` is read; no image API settings are needed.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Ensure project root is on the Python path.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from xhs_studio import ProjectStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export an xhs-studio project as YAML.")
    parser.add_argument(
        "--project-id",
        default=None,
        help="Project to export (default: the most recently created one).",
    )
    parser.add_argument(
        "--data-dir",
        default=os.getenv("DATA_DIR"),
        help="Data directory holding projects.json (default: $DATA_DIR).",
    )
    parser.add_argument("--output", required=True, help="Destination YAML file path.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not args.data_dir:
        print("DATA_DIR is not set; pass --data-dir.", file=sys.stderr)
        return 2

    store = ProjectStore(args.data_dir)
    if args.project_id:
        project = store.get_project(args.project_id)
    else:
        project = store.get_latest_project()

    if project is None:
        print(f"Project not found: {args.project_id or '(latest)'}", file=sys.stderr)
        return 1

    Path(args.output).write_text(project.to_yaml(), encoding="utf-8")
    print(f"Exported project {project.id} to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
