"""
sil23d.core.images

Image I/O at the boundary of the reconstruction core.

Includes:
- decoding an image file into a grayscale raster
- loading a silhouette (decode + threshold)
- saving RGBA diagnostic images
- output filename derivation
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from .errors import OutputWriteError, SilhouetteReadError
from .masks import BinaryMask, threshold_gray
from .models import SilhouetteConfig


# -------------------------------------------------------------------------
# Image IO
# -------------------------------------------------------------------------
def load_image_gray(path: Path) -> np.ndarray:
    """
    Load an image as a top-down uint8 grayscale array of shape (Y, X).

    Colour images are converted with the standard luminance weights
    (Pillow's "L" mode). Raises SilhouetteReadError if the file is missing
    or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise SilhouetteReadError(f"Invalid path or image: {path}")

    try:
        with Image.open(path) as im:
            im = im.convert("L")
            arr = np.array(im, dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise SilhouetteReadError(f"Invalid image: {path} ({exc})") from exc

    return arr


def load_mask(path: Path, cfg: Optional[SilhouetteConfig] = None) -> BinaryMask:
    """
    Decode and threshold one silhouette image.
    """
    cfg = cfg or SilhouetteConfig()
    gray = load_image_gray(path)
    return threshold_gray(gray, threshold=cfg.threshold, dark_is_solid=cfg.dark_is_solid)


def part_path(path: Path) -> Path:
    """Temporary name an output is written under before it is moved into place."""
    path = Path(path)
    return path.with_name(path.name + ".part")


def stage_image_rgba(path: Path, arr: np.ndarray) -> Path:
    """
    Write a top-down (Y, X, 4) uint8 array as PNG to the temporary name for
    `path` and return that temporary path. `path` itself is not touched.
    """
    path = Path(path)
    if arr.ndim != 3 or arr.shape[-1] != 4:
        raise ValueError(f"RGBA image must have shape (Y, X, 4), got {arr.shape}")

    tmp_path = part_path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        im = Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))
        im.save(tmp_path, format="PNG")
    except OSError as exc:
        if tmp_path.is_file():
            tmp_path.unlink()
        raise OutputWriteError(f"Could not write image: {path} ({exc})") from exc
    return tmp_path


def save_image_rgba(path: Path, arr: np.ndarray) -> None:
    """
    Save a top-down (Y, X, 4) uint8 array as a PNG file.

    The image is written to a temporary name in the same directory and then
    moved into place, so a failed write never leaves a truncated file.
    """
    path = Path(path)
    tmp_path = stage_image_rgba(path, arr)
    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink()
        raise OutputWriteError(f"Could not write image: {path} ({exc})") from exc


# -------------------------------------------------------------------------
# Output naming
# -------------------------------------------------------------------------
def derive_output_path(
    source: Path,
    suffix: str,
    extension: str,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Build '<stem><suffix><extension>' next to `source` (or in `output_dir`).

    Example:
        derive_output_path(Path("shots/top.png"), "_Error_XY", ".png")
        -> shots/top_Error_XY.png
    """
    source = Path(source)
    folder = Path(output_dir) if output_dir is not None else source.parent
    return folder / f"{source.stem}{suffix}{extension}"
