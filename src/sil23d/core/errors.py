"""
Error and warning types raised by the reconstruction core.

Fatal conditions are exceptions; the only non-fatal finding (silhouette
pixels the carved volume cannot explain) is a warning category so callers
can filter or escalate it with the standard ``warnings`` machinery.
"""

from __future__ import annotations


class Sil23dError(Exception):
    """Base class for all fatal sil23d errors."""


class DimensionMismatchError(Sil23dError, ValueError):
    """The three silhouettes do not describe a consistent voxel grid."""


class SilhouetteReadError(Sil23dError, OSError):
    """An input image is missing, unreadable, or cannot be decoded."""


class OutputWriteError(Sil23dError, OSError):
    """An output file could not be written."""


class ConsistencyWarning(UserWarning):
    """A silhouette has solid pixels that no carved voxel projects onto."""
