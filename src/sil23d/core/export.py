"""
Binary STL export of indexed meshes.
"""

from __future__ import annotations

import os
import struct
from pathlib import Path
from typing import Tuple

import numpy as np

from .errors import OutputWriteError
from .models import DEFAULT_STL_HEADER
from .welding import IndexedMesh

STL_HEADER_SIZE = 80
STL_RECORD_SIZE = 50

# Binary STL: 80 byte header + 4 bytes (face count) + 50 bytes per face.
# Each record: normal (3 floats), 3 vertices (3 floats each), attribute (uint16).
STL_RECORD_DTYPE = np.dtype(
    [
        ("normal", "<f4", (3,)),
        ("vertices", "<f4", (3, 3)),
        ("attribute", "<u2"),
    ]
)


def face_normals(triangles: np.ndarray) -> np.ndarray:
    """
    Unit normals of triangles given as (T, 3, 3) positions.

    The normal is cross(v1 - v0, v2 - v0), normalized. Degenerate
    (zero-area) triangles get a zero vector.
    """
    tri = np.asarray(triangles, dtype=np.float64)
    normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    norms = np.linalg.norm(normals, axis=1)
    nonzero = norms > 0
    normals[nonzero] /= norms[nonzero, None]
    normals[~nonzero] = 0.0
    return normals


def _header_bytes(header: str) -> bytes:
    raw = header.encode("ascii", errors="replace")[:STL_HEADER_SIZE]
    return raw + b"\x00" * (STL_HEADER_SIZE - len(raw))


def serialize_stl(mesh: IndexedMesh, header: str = DEFAULT_STL_HEADER) -> bytes:
    """
    Encode an indexed mesh as binary STL bytes.

    STL has no vertex sharing, so every triangle is written out with its
    own three positions and a computed face normal.
    """
    triangles = mesh.triangles().reshape(-1, 3, 3)
    n_faces = triangles.shape[0]

    records = np.zeros(n_faces, dtype=STL_RECORD_DTYPE)
    if n_faces:
        records["normal"] = face_normals(triangles)
        records["vertices"] = triangles

    return _header_bytes(header) + struct.pack("<I", n_faces) + records.tobytes()


def stage_stl(path: Path, mesh: IndexedMesh, header: str = DEFAULT_STL_HEADER) -> Path:
    """
    Write a mesh as binary STL to '<path>.part' and return that path.
    """
    path = Path(path)
    data = serialize_stl(mesh, header=header)

    tmp_path = path.with_name(path.name + ".part")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("wb") as f:
            f.write(data)
    except OSError as exc:
        if tmp_path.is_file():
            tmp_path.unlink()
        raise OutputWriteError(f"Could not write STL file: {path} ({exc})") from exc
    return tmp_path


def save_stl(path: Path, mesh: IndexedMesh, header: str = DEFAULT_STL_HEADER) -> None:
    """
    Write a mesh as a binary STL file.

    The file is written under a temporary name and moved into place.
    """
    path = Path(path)
    tmp_path = stage_stl(path, mesh, header=header)
    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink()
        raise OutputWriteError(f"Could not write STL file: {path} ({exc})") from exc


def read_stl(data: bytes) -> Tuple[np.ndarray, np.ndarray]:
    """
    Parse binary STL bytes.

    Returns
    -------
    (normals, triangles)
        normals: float32 (N, 3); triangles: float32 (N, 3, 3).

    Raises
    ------
    ValueError
        If the payload is shorter or longer than the declared face count.
    """
    prefix = STL_HEADER_SIZE + 4
    if len(data) < prefix:
        raise ValueError(f"STL data too short: {len(data)} bytes")

    (n_faces,) = struct.unpack_from("<I", data, STL_HEADER_SIZE)
    expected = prefix + n_faces * STL_RECORD_SIZE
    if len(data) != expected:
        raise ValueError(
            f"STL declares {n_faces} triangles ({expected} bytes) "
            f"but holds {len(data)} bytes"
        )

    records = np.frombuffer(data, dtype=STL_RECORD_DTYPE, count=n_faces, offset=prefix)
    return records["normal"].copy(), records["vertices"].copy()
