"""
Voxel carving: intersect the three silhouettes into an occupancy grid.

Axis correspondence:
    top   (XY view)  pixel (x, y) -> voxel axes (i, j)
    front (XZ view)  pixel (x, y) -> voxel axes (i, k)
    side  (ZY view)  pixel (x, y) -> voxel axes (k, j)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .errors import DimensionMismatchError
from .masks import BinaryMask


@dataclass(frozen=True, eq=False)
class OccupancyGrid:
    """
    Boolean voxel grid of size nx * ny * nz.

    The voxels live in one flat, read-only buffer addressed by
    ``index(i, j, k) = k + nz * (j + ny * i)``, which is C order for a
    (nx, ny, nz) array.
    """

    nx: int
    ny: int
    nz: int
    voxels: np.ndarray

    def __post_init__(self) -> None:
        flat = np.asarray(self.voxels, dtype=bool).reshape(-1)
        expected = self.nx * self.ny * self.nz
        if flat.size != expected:
            raise ValueError(
                f"OccupancyGrid of {self.nx}x{self.ny}x{self.nz} needs {expected} voxels, "
                f"got {flat.size}"
            )
        if flat.flags.writeable:
            flat = flat.copy()
            flat.setflags(write=False)
        object.__setattr__(self, "voxels", flat)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.nx, self.ny, self.nz)

    def index(self, i: int, j: int, k: int) -> int:
        return k + self.nz * (j + self.ny * i)

    def solid(self, i: int, j: int, k: int) -> bool:
        return bool(self.voxels[self.index(i, j, k)])

    def as_array(self) -> np.ndarray:
        """Read-only (nx, ny, nz) view of the flat buffer."""
        return self.voxels.reshape(self.shape)

    def count_solid(self) -> int:
        return int(np.count_nonzero(self.voxels))

    def is_empty(self) -> bool:
        return not self.voxels.any()


def check_dimensions(top: BinaryMask, front: BinaryMask, side: BinaryMask) -> None:
    """
    Validate that the three silhouettes describe one voxel grid.

    Raises
    ------
    DimensionMismatchError
        If any of the three shared extents disagree.
    """
    if top.width != front.width:
        raise DimensionMismatchError(
            f"The XY image must have the same width as the XZ image "
            f"(got {top.width} and {front.width})."
        )
    if top.height != side.height:
        raise DimensionMismatchError(
            f"The XY image must have the same height as the ZY image "
            f"(got {top.height} and {side.height})."
        )
    if front.height != side.width:
        raise DimensionMismatchError(
            f"The XZ image height must be the same as the ZY image width "
            f"(got {front.height} and {side.width})."
        )


def carve(
    top: BinaryMask,
    front: BinaryMask,
    side: BinaryMask,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> OccupancyGrid:
    """
    Build the visual hull of three orthogonal silhouettes.

    Voxel (i, j, k) is solid iff top(i, j), front(i, k) and side(k, j) are
    all solid. Dimensions are validated before any voxel is computed.

    Parameters
    ----------
    top, front, side:
        The XY, XZ and ZY silhouettes.
    progress_callback:
        Optional callback(current, total), called once per i-slab.

    Returns
    -------
    OccupancyGrid
    """
    check_dimensions(top, front, side)

    nx, ny, nz = top.width, top.height, front.height
    flat = np.zeros(nx * ny * nz, dtype=bool)
    grid = flat.reshape(nx, ny, nz)

    top_ij = top.solid.T        # [i, j]
    front_ik = front.solid.T    # [i, k]
    side_jk = side.solid        # [j, k]

    for i in range(nx):
        np.logical_and(top_ij[i, :, None], front_ik[i, None, :], out=grid[i])
        grid[i] &= side_jk
        if progress_callback:
            progress_callback(i + 1, nx)

    flat.setflags(write=False)
    return OccupancyGrid(nx, ny, nz, flat)
