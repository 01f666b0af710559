"""
End-to-end reconstruction: silhouettes -> occupancy grid -> diagnostics
and mesh -> files on disk.
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from . import consistency as consmod
from . import export as exportmod
from . import images as imgio
from . import surface as surfmod
from . import voxels as voxmod
from . import welding as weldmod
from .errors import ConsistencyWarning, OutputWriteError
from .masks import BinaryMask
from .models import ProjectConfig

PhaseProgressCallback = Callable[[str, int, int, int], None]

_PHASES = (
    "Generating voxels",
    "Checking silhouettes",
    "Generating mesh",
    "Indexing mesh",
)


@dataclass
class ReconstructionResult:
    """
    Everything the core produces for one triple of silhouettes.
    """

    grid: voxmod.OccupancyGrid
    reports: Dict[str, consmod.ViewReport]
    soup: surfmod.TriangleSoup
    mesh: weldmod.IndexedMesh

    @property
    def solid_voxels(self) -> int:
        return self.grid.count_solid()

    @property
    def has_geometry(self) -> bool:
        return self.soup.quad_count > 0

    @property
    def views_with_errors(self) -> List[str]:
        return [name for name, rep in self.reports.items() if rep.found_error]


@dataclass
class OutputPaths:
    """Files written by run_from_paths()."""

    error_images: Dict[str, Path]
    model: Path

    def all(self) -> List[Path]:
        return list(self.error_images.values()) + [self.model]


def reconstruct(
    top: BinaryMask,
    front: BinaryMask,
    side: BinaryMask,
    cfg: Optional[ProjectConfig] = None,
    *,
    phase_progress_callback: Optional[PhaseProgressCallback] = None,
) -> ReconstructionResult:
    """
    Run all in-memory stages on three thresholded silhouettes.

    Workflow:
      1. Validate dimensions and carve the occupancy grid.
      2. Check each view; warn (ConsistencyWarning) per view with
         unexplained pixels.
      3. Extract the exposed voxel faces.
      4. Weld identical vertices.

    Raises
    ------
    DimensionMismatchError
        Before any voxel is computed, if the masks disagree in size.
    """
    cfg = cfg or ProjectConfig()
    overall_total = len(_PHASES)

    def report(phase_index: int) -> None:
        if phase_progress_callback:
            phase_progress_callback(_PHASES[phase_index], phase_index, overall_total, overall_total)

    report(0)
    grid = voxmod.carve(top, front, side)

    report(1)
    reports = consmod.check_views(grid, top, front, side, cfg.output.marker_color)
    for name, rep in reports.items():
        if rep.found_error:
            warnings.warn(
                f"There were errors in the {name} image: "
                f"{rep.unexplained_count} silhouette pixel(s) not explained by any voxel.",
                ConsistencyWarning,
                stacklevel=2,
            )

    report(2)
    soup = surfmod.extract_surface(grid)

    report(3)
    mesh = weldmod.weld(soup)

    if phase_progress_callback:
        phase_progress_callback("Done", overall_total, overall_total, overall_total)

    return ReconstructionResult(grid=grid, reports=reports, soup=soup, mesh=mesh)


def output_paths_for(
    top_path: Path,
    front_path: Path,
    side_path: Path,
    cfg: ProjectConfig,
) -> OutputPaths:
    """
    Decide where the three annotated images and the STL mesh go.
    """
    out = cfg.output
    return OutputPaths(
        error_images={
            "XY": imgio.derive_output_path(top_path, out.error_suffix_xy, ".png", out.output_dir),
            "XZ": imgio.derive_output_path(front_path, out.error_suffix_xz, ".png", out.output_dir),
            "ZY": imgio.derive_output_path(side_path, out.error_suffix_zy, ".png", out.output_dir),
        },
        model=imgio.derive_output_path(top_path, out.model_suffix, ".stl", out.output_dir),
    )


def write_outputs(
    result: ReconstructionResult,
    paths: OutputPaths,
    cfg: ProjectConfig,
) -> None:
    """
    Write the annotated images and the STL file.

    Every output is first written under its '.part' name; nothing is moved
    into place until all of them have been written. If a write or a move
    fails, the remaining '.part' files and any output that this call
    created from nothing are removed. Outputs of an earlier run are never
    deleted.
    """
    staged: List[Tuple[Path, Path]] = []
    created: List[Path] = []
    try:
        for name, path in paths.error_images.items():
            staged.append((imgio.stage_image_rgba(path, result.reports[name].annotated), path))
        staged.append(
            (exportmod.stage_stl(paths.model, result.mesh, header=cfg.output.stl_header), paths.model)
        )

        for tmp_path, path in staged:
            existed = path.exists()
            try:
                os.replace(tmp_path, path)
            except OSError as exc:
                raise OutputWriteError(f"Could not write output: {path} ({exc})") from exc
            if not existed:
                created.append(path)
    except OutputWriteError:
        for tmp_path, _ in staged:
            if tmp_path.exists():
                tmp_path.unlink()
        for path in created:
            path.unlink()
        raise


def run_from_paths(
    top_path: Path,
    front_path: Path,
    side_path: Path,
    cfg: Optional[ProjectConfig] = None,
    *,
    phase_progress_callback: Optional[PhaseProgressCallback] = None,
) -> tuple[ReconstructionResult, OutputPaths]:
    """
    Load three silhouette images, reconstruct, and write all outputs.

    All inputs are decoded and validated before anything is written, so
    every fatal error leaves the output locations untouched.
    """
    cfg = cfg or ProjectConfig()

    top = imgio.load_mask(top_path, cfg.silhouette)
    front = imgio.load_mask(front_path, cfg.silhouette)
    side = imgio.load_mask(side_path, cfg.silhouette)

    result = reconstruct(top, front, side, cfg, phase_progress_callback=phase_progress_callback)

    paths = output_paths_for(Path(top_path), Path(front_path), Path(side_path), cfg)
    write_outputs(result, paths, cfg)
    return result, paths
