"""
Surface extraction from an occupancy grid.

Every face of a solid voxel that borders an empty voxel or the grid
boundary becomes a quad, split into two triangles. Faces shared by two
solid voxels are never emitted, so the result is the closed boundary of
the solid, made of axis-aligned unit squares with corners on the integer
lattice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .voxels import OccupancyGrid


@dataclass(frozen=True)
class FaceDirection:
    """
    One of the six voxel face orientations.

    axis / sign:
        Outward normal, e.g. axis=2, sign=-1 is the -Z face.
    a_axis / b_axis:
        The two in-plane axes spanning the quad from its origin corner.
    invert:
        Winding flag. Without it the triangles are (o, o+a, o+a+b) and
        (o, o+a+b, o+b), whose normal is a x b; with it the order is
        reversed. Chosen per face so the normal always points outward.
    """

    name: str
    axis: int
    sign: int
    a_axis: int
    b_axis: int
    invert: bool

    @property
    def normal(self) -> Tuple[int, int, int]:
        n = [0, 0, 0]
        n[self.axis] = self.sign
        return (n[0], n[1], n[2])

    def corners(self) -> np.ndarray:
        """
        Six corner offsets (two triangles) relative to the voxel's (i, j, k).
        """
        origin = np.zeros(3, dtype=np.int32)
        if self.sign > 0:
            origin[self.axis] = 1
        a = np.zeros(3, dtype=np.int32)
        a[self.a_axis] = 1
        b = np.zeros(3, dtype=np.int32)
        b[self.b_axis] = 1

        if not self.invert:
            quad = [origin, origin + a, origin + a + b, origin, origin + a + b, origin + b]
        else:
            quad = [origin, origin + a + b, origin + a, origin, origin + b, origin + a + b]
        return np.stack(quad)


FACES: Tuple[FaceDirection, ...] = (
    FaceDirection("-Z", axis=2, sign=-1, a_axis=0, b_axis=1, invert=True),
    FaceDirection("+Z", axis=2, sign=+1, a_axis=0, b_axis=1, invert=False),
    FaceDirection("-Y", axis=1, sign=-1, a_axis=0, b_axis=2, invert=False),
    FaceDirection("+Y", axis=1, sign=+1, a_axis=0, b_axis=2, invert=True),
    FaceDirection("-X", axis=0, sign=-1, a_axis=2, b_axis=1, invert=False),
    FaceDirection("+X", axis=0, sign=+1, a_axis=2, b_axis=1, invert=True),
)

_FACE_CORNERS = np.stack([face.corners() for face in FACES])  # [6 faces, 6 verts, 3]


@dataclass(frozen=True, eq=False)
class TriangleSoup:
    """
    Unindexed triangles: `vertices` is an int32 array (6 * quads, 3) of
    lattice points, three consecutive rows per triangle.
    """

    vertices: np.ndarray

    @property
    def quad_count(self) -> int:
        return int(self.vertices.shape[0] // 6)

    @property
    def triangle_count(self) -> int:
        return int(self.vertices.shape[0] // 3)

    def triangles(self) -> np.ndarray:
        """Vertices grouped per triangle, shape (T, 3, 3)."""
        return self.vertices.reshape(-1, 3, 3)


def exposed_face_mask(grid: OccupancyGrid, face: FaceDirection) -> np.ndarray:
    """
    Boolean array (nx, ny, nz): True where the voxel is solid and its
    `face` borders an empty voxel or the grid boundary.
    """
    solid = grid.as_array()
    exposed = solid.copy()
    n = solid.shape[face.axis]
    if n < 2:
        return exposed

    own = [slice(None)] * 3
    neighbour = [slice(None)] * 3
    if face.sign > 0:
        own[face.axis], neighbour[face.axis] = slice(0, n - 1), slice(1, n)
    else:
        own[face.axis], neighbour[face.axis] = slice(1, n), slice(0, n - 1)

    # For booleans a > b is a & ~b; writing into the view needs no temporary.
    target = exposed[tuple(own)]
    np.greater(target, solid[tuple(neighbour)], out=target)
    return exposed


def count_exposed_faces(grid: OccupancyGrid) -> int:
    """Number of quads extract_surface() would emit."""
    return sum(int(np.count_nonzero(exposed_face_mask(grid, face))) for face in FACES)


def extract_surface(grid: OccupancyGrid) -> TriangleSoup:
    """
    Emit two outward-wound triangles per exposed voxel face.

    Quads are ordered by voxel (flat index ascending) and, within a voxel,
    by the order of FACES. An empty grid gives an empty soup.
    """
    flat_parts = []
    face_parts = []
    for f, face in enumerate(FACES):
        # C-order flat index of an (nx, ny, nz) array is OccupancyGrid.index.
        flat = np.flatnonzero(exposed_face_mask(grid, face))
        flat_parts.append(flat)
        face_parts.append(np.full(flat.size, f, dtype=np.int8))

    flat = np.concatenate(flat_parts)
    if flat.size == 0:
        return TriangleSoup(np.zeros((0, 3), dtype=np.int32))
    f = np.concatenate(face_parts)

    order = np.lexsort((f, flat))
    flat, f = flat[order], f[order]

    voxel = np.stack(np.unravel_index(flat, grid.shape), axis=1).astype(np.int32)  # [Q, 3]
    verts = voxel[:, None, :] + _FACE_CORNERS[f]                                     # [Q, 6, 3]
    return TriangleSoup(verts.reshape(-1, 3).astype(np.int32))
