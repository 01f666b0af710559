"""
sil23d top-level package.

This project reconstructs a solid from three orthogonal silhouette images
(top, front, side) and writes it as a binary STL mesh.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
