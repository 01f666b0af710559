from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

Intensity = int                       # grayscale value, 0–255
ColorRGB = Tuple[int, int, int]       # 0–255 per channel

DEFAULT_THRESHOLD: Intensity = 128
MARKER_COLOR: ColorRGB = (255, 0, 255)
DEFAULT_STL_HEADER = "sil23d STL Export"


# ---------------------------------------------------------------------------
# Silhouette thresholding
# ---------------------------------------------------------------------------

@dataclass
class SilhouetteConfig:
    """
    How a decoded grayscale image is turned into a binary silhouette.
    """

    threshold: Intensity = DEFAULT_THRESHOLD
    """
    Grayscale cutoff. Pixels with intensity >= threshold are solid.
    Mirrors '--threshold'.
    """

    dark_is_solid: bool = False
    """
    If True, invert the polarity: pixels *below* the threshold are solid.
    Useful for silhouettes drawn in black on a white background.
    Mirrors '--dark-is-solid'.
    """


# ---------------------------------------------------------------------------
# Output configuration
# ---------------------------------------------------------------------------

@dataclass
class OutputConfig:
    """
    Where and how the diagnostic images and the STL mesh are written.
    """

    output_dir: Optional[Path] = None
    """
    Directory for all outputs. If None, each diagnostic image is written next
    to its input image and the mesh next to the top view.
    """

    error_suffix_xy: str = "_Error_XY"
    error_suffix_xz: str = "_Error_XZ"
    error_suffix_zy: str = "_Error_ZY"
    """Filename suffixes of the annotated top / front / side images."""

    model_suffix: str = "_Model"
    """Suffix appended to the top view's stem for the STL file."""

    marker_color: ColorRGB = MARKER_COLOR
    """Colour used to paint silhouette pixels no voxel explains."""

    stl_header: str = DEFAULT_STL_HEADER
    """Text stored in the 80-byte STL header (padded or truncated)."""


# ---------------------------------------------------------------------------
# Project-level configuration
# ---------------------------------------------------------------------------

@dataclass
class ProjectConfig:
    """
    Top-level configuration object for a reconstruction run.

    Groups the silhouette and output options. This is what is loaded from /
    saved to YAML and what the CLI builds from its arguments.
    """

    name: str = "sil23d Project"

    silhouette: SilhouetteConfig = field(default_factory=SilhouetteConfig)

    output: OutputConfig = field(default_factory=OutputConfig)

    config_path: Optional[Path] = None
    """
    Optional path to the YAML file this was loaded from.
    Purely informational; not used by algorithms.
    """
