from __future__ import annotations

import argparse
import sys
import warnings
from pathlib import Path
from typing import Iterable, Optional

from sil23d.core import config_io
from sil23d.core import pipeline
from sil23d.core.errors import ConsistencyWarning, Sil23dError
from sil23d.core.models import ProjectConfig


def build_arg_parser() -> argparse.ArgumentParser:
    """
    CLI for reconstructing a solid from three orthogonal silhouettes.
    """
    parser = argparse.ArgumentParser(
        description=(
            "Reconstruct a 3D solid from top (XY), front (XZ) and side (ZY) "
            "silhouette images and write it as a binary STL mesh."
        )
    )

    parser.add_argument("top", type=Path, help="Top view silhouette (XY image).")
    parser.add_argument("front", type=Path, help="Front view silhouette (XZ image).")
    parser.add_argument("side", type=Path, help="Side view silhouette (ZY image).")

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help=(
            "Directory for the error images and the STL mesh. "
            "If omitted, outputs are written next to the input images."
        ),
    )

    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="Grayscale cutoff; pixels >= threshold are solid (default: 128).",
    )

    parser.add_argument(
        "--dark-is-solid",
        action="store_true",
        default=None,
        help="Treat pixels below the threshold as solid (black-on-white silhouettes).",
    )

    parser.add_argument(
        "--project-config",
        type=Path,
        default=None,
        help="Optional project YAML configuration. Command-line options override it.",
    )

    return parser


def _build_project(args: argparse.Namespace) -> ProjectConfig:
    if args.project_config is not None:
        project = config_io.load_project_config(args.project_config)
    else:
        project = ProjectConfig(name="sil23d CLI Project")

    if args.output_dir is not None:
        project.output.output_dir = args.output_dir
    if args.threshold is not None:
        project.silhouette.threshold = args.threshold
    if args.dark_is_solid is not None:
        project.silhouette.dark_is_solid = args.dark_is_solid
    return project


def _print_phase(phase: str, current: int, phase_total: int, overall_total: int) -> None:
    if phase != "Done":
        print(f"{phase}...")


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.threshold is not None and not 0 <= args.threshold <= 256:
        parser.error(f"--threshold must be in 0-256, got {args.threshold}")

    try:
        project = _build_project(args)
    except (OSError, ValueError) as exc:
        parser.error(f"could not load project config: {exc}")

    print("Processing images...")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConsistencyWarning)
        try:
            result, paths = pipeline.run_from_paths(
                args.top,
                args.front,
                args.side,
                project,
                phase_progress_callback=_print_phase,
            )
        except Sil23dError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc

    for w in caught:
        if issubclass(w.category, ConsistencyWarning):
            print(f"Warning: {w.message}", file=sys.stderr)
        else:
            warnings.showwarning(w.message, w.category, w.filename, w.lineno)

    print(f"Num of solid voxels: {result.solid_voxels}")
    print(f"Number of quads: {result.soup.quad_count}")
    print(f"Number of vertices: {result.soup.vertices.shape[0]}")
    print(f"Number of welded vertices: {result.mesh.vertex_count}")

    if not result.has_geometry:
        print("No geometry: the silhouettes do not intersect; the mesh is empty.")

    print("Wrote:")
    for p in paths.all():
        print(f"  {p}")


if __name__ == "__main__":
    main()
