"""
sil23d.core.masks

Binary silhouettes ("masks") and the thresholding that produces them.

A mask is stored bottom-up: row ``y = 0`` is the bottom edge of the image,
so ``solid[y, x]`` matches the voxel axes directly. Rasters (as decoded
from image files) are top-down and are flipped on the way in and out.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .models import DEFAULT_THRESHOLD, Intensity


@dataclass(frozen=True, eq=False)
class BinaryMask:
    """
    One thresholded silhouette.

    Attributes
    ----------
    solid:
        Read-only boolean array of shape (height, width), bottom row first.
    solid_level:
        Grey level (0 or 255) that solid pixels had after thresholding.
        Empty pixels have the opposite level. Used to render the mask back
        into an image.
    """

    solid: np.ndarray
    solid_level: int = 255

    def __post_init__(self) -> None:
        arr = np.array(self.solid, dtype=bool, copy=True)
        if arr.ndim != 2:
            raise ValueError(f"BinaryMask expects a 2D array, got shape {arr.shape}")
        if self.solid_level not in (0, 255):
            raise ValueError(f"solid_level must be 0 or 255, got {self.solid_level}")
        arr.setflags(write=False)
        object.__setattr__(self, "solid", arr)

    @property
    def width(self) -> int:
        return int(self.solid.shape[1])

    @property
    def height(self) -> int:
        return int(self.solid.shape[0])

    def pixel(self, x: int, y: int) -> bool:
        """True if pixel (x, y) is solid. (0, 0) is the bottom-left corner."""
        return bool(self.solid[y, x])

    def count_solid(self) -> int:
        return int(np.count_nonzero(self.solid))

    def to_raster(self) -> np.ndarray:
        """
        Render the thresholded mask as a top-down uint8 grayscale raster.
        """
        empty_level = 255 - self.solid_level
        gray = np.where(self.solid, self.solid_level, empty_level).astype(np.uint8)
        return np.flipud(gray)

    @classmethod
    def from_raster(cls, raster_solid: np.ndarray, solid_level: int = 255) -> "BinaryMask":
        """
        Build a mask from a top-down boolean raster (row 0 = top of image).
        """
        raster_solid = np.asarray(raster_solid, dtype=bool)
        return cls(np.flipud(raster_solid), solid_level=solid_level)


def threshold_gray(
    gray: np.ndarray,
    threshold: Intensity = DEFAULT_THRESHOLD,
    dark_is_solid: bool = False,
) -> BinaryMask:
    """
    Threshold a top-down grayscale raster into a BinaryMask.

    Parameters
    ----------
    gray:
        2D array [H, W] of intensities (any integer or float dtype).
    threshold:
        Pixels with ``gray >= threshold`` are solid.
    dark_is_solid:
        Invert the polarity: pixels with ``gray < threshold`` are solid.

    Returns
    -------
    BinaryMask
    """
    gray = np.asarray(gray)
    if gray.ndim != 2:
        raise ValueError(
            f"threshold_gray expects a 2D grayscale raster [H, W], got shape {gray.shape}"
        )

    bright = gray >= threshold
    if dark_is_solid:
        return BinaryMask.from_raster(~bright, solid_level=0)
    return BinaryMask.from_raster(bright, solid_level=255)
