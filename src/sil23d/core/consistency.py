"""
Consistency checking of an occupancy grid against its silhouettes.

Each silhouette is re-projected from the grid: a solid pixel is
"unexplained" when no voxel along its depth line is solid. Since a voxel
needs agreement of all three views, this happens whenever the other two
views never both cover that line, which is the main symptom of
inconsistent input drawings or photos.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from .errors import DimensionMismatchError
from .masks import BinaryMask
from .models import MARKER_COLOR, ColorRGB
from .voxels import OccupancyGrid


@dataclass(frozen=True)
class ViewAxes:
    """
    Which grid axis (0 = i, 1 = j, 2 = k) each image axis maps to.
    """

    name: str
    x_axis: int
    y_axis: int
    depth_axis: int


VIEW_XY = ViewAxes("XY", x_axis=0, y_axis=1, depth_axis=2)
VIEW_XZ = ViewAxes("XZ", x_axis=0, y_axis=2, depth_axis=1)
VIEW_ZY = ViewAxes("ZY", x_axis=2, y_axis=1, depth_axis=0)


@dataclass(frozen=True, eq=False)
class ViewReport:
    """
    Result of checking one view.

    unexplained:
        Boolean array in mask orientation [y, x], bottom row first.
    annotated:
        Top-down RGBA uint8 raster: the thresholded silhouette at full
        opacity with unexplained pixels painted in the marker colour.
    """

    view: ViewAxes
    found_error: bool
    unexplained: np.ndarray
    annotated: np.ndarray

    @property
    def unexplained_count(self) -> int:
        return int(np.count_nonzero(self.unexplained))


def project(grid: OccupancyGrid, view: ViewAxes) -> np.ndarray:
    """
    Collapse the grid along the view's depth axis.

    Returns a boolean array in mask orientation [y, x]: True where at least
    one voxel on that pixel's depth line is solid.
    """
    hit = grid.as_array().any(axis=view.depth_axis)
    # `hit` keeps the two remaining grid axes in ascending order.
    if view.y_axis < view.x_axis:
        return hit
    return hit.T


def annotate(
    mask: BinaryMask,
    unexplained: np.ndarray,
    marker_color: ColorRGB = MARKER_COLOR,
) -> np.ndarray:
    """
    Render the mask as an opaque RGBA raster with unexplained pixels marked.
    """
    gray = mask.to_raster()
    rgba = np.empty(gray.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = gray
    rgba[..., 1] = gray
    rgba[..., 2] = gray
    rgba[..., 3] = 255

    marked = np.flipud(unexplained)
    rgba[marked, :3] = np.asarray(marker_color, dtype=np.uint8)
    return rgba


def check_view(
    grid: OccupancyGrid,
    mask: BinaryMask,
    view: ViewAxes,
    marker_color: ColorRGB = MARKER_COLOR,
) -> ViewReport:
    """
    Flag the solid pixels of `mask` that no voxel of `grid` projects onto.

    Raises
    ------
    DimensionMismatchError
        If the mask does not have the grid's extents along the view axes.
    """
    expected = (grid.shape[view.y_axis], grid.shape[view.x_axis])
    if mask.solid.shape != expected:
        raise DimensionMismatchError(
            f"{view.name} mask has shape {mask.solid.shape} (height, width), "
            f"expected {expected} for a {grid.nx}x{grid.ny}x{grid.nz} grid."
        )

    unexplained = mask.solid & ~project(grid, view)
    unexplained.setflags(write=False)

    return ViewReport(
        view=view,
        found_error=bool(unexplained.any()),
        unexplained=unexplained,
        annotated=annotate(mask, unexplained, marker_color),
    )


def check_views(
    grid: OccupancyGrid,
    top: BinaryMask,
    front: BinaryMask,
    side: BinaryMask,
    marker_color: ColorRGB = MARKER_COLOR,
) -> Dict[str, ViewReport]:
    """
    Check all three views. Keys are the view names "XY", "XZ" and "ZY".
    """
    pairs: Tuple[Tuple[BinaryMask, ViewAxes], ...] = (
        (top, VIEW_XY),
        (front, VIEW_XZ),
        (side, VIEW_ZY),
    )
    return {
        view.name: check_view(grid, mask, view, marker_color)
        for mask, view in pairs
    }
