"""
Vertex welding: turn a triangle soup into an indexed mesh.

Vertices are integer lattice points, so identical positions are merged
by exact comparison with no tolerance.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .surface import TriangleSoup


@dataclass(frozen=True, eq=False)
class IndexedMesh:
    """
    vertices: (V, 3) unique positions.
    faces:    (T, 3) indices into `vertices`, winding preserved.
    """

    vertices: np.ndarray
    faces: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.faces.shape[0])

    def triangles(self) -> np.ndarray:
        """Positions per triangle, shape (T, 3, 3)."""
        return self.vertices[self.faces]

    def to_soup(self) -> TriangleSoup:
        """Re-expand into independent triangles."""
        return TriangleSoup(self.triangles().reshape(-1, 3))


def weld(soup: TriangleSoup) -> IndexedMesh:
    """
    Merge bit-identical vertex positions.

    Unique vertices keep the order in which they first appear in the soup;
    triangle order and per-triangle vertex order are unchanged.
    """
    verts = np.asarray(soup.vertices)
    if verts.shape[0] == 0:
        return IndexedMesh(
            vertices=np.zeros((0, 3), dtype=verts.dtype),
            faces=np.zeros((0, 3), dtype=np.int64),
        )

    unique, first_seen, inverse = np.unique(
        verts, axis=0, return_index=True, return_inverse=True
    )
    inverse = inverse.reshape(-1)

    # np.unique sorts lexicographically; renumber by first appearance.
    order = np.argsort(first_seen, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(order.size)

    return IndexedMesh(
        vertices=unique[order],
        faces=rank[inverse].reshape(-1, 3),
    )
