"""Tests for voxel carving."""

import numpy as np
import pytest

from sil23d.core.errors import DimensionMismatchError
from sil23d.core.masks import BinaryMask
from sil23d.core.voxels import OccupancyGrid, carve, check_dimensions


def random_masks(nx, ny, nz, seed=0, density=0.7):
    rng = np.random.default_rng(seed)
    top = BinaryMask(rng.random((ny, nx)) < density)     # (i, j) -> solid[j, i]
    front = BinaryMask(rng.random((nz, nx)) < density)   # (i, k) -> solid[k, i]
    side = BinaryMask(rng.random((ny, nz)) < density)    # (k, j) -> solid[j, k]
    return top, front, side


def full_masks(nx, ny, nz, value=True):
    return (
        BinaryMask(np.full((ny, nx), value)),
        BinaryMask(np.full((nz, nx), value)),
        BinaryMask(np.full((ny, nz), value)),
    )


class TestCarve:
    def test_matches_defining_rule(self):
        nx, ny, nz = 5, 4, 3
        top, front, side = random_masks(nx, ny, nz, seed=42)
        grid = carve(top, front, side)

        assert grid.shape == (nx, ny, nz)
        for i in range(nx):
            for j in range(ny):
                for k in range(nz):
                    expected = top.pixel(i, j) and front.pixel(i, k) and side.pixel(k, j)
                    assert grid.solid(i, j, k) == expected, (i, j, k)

    def test_flat_index_layout(self):
        nx, ny, nz = 3, 4, 5
        top, front, side = random_masks(nx, ny, nz, seed=7)
        grid = carve(top, front, side)

        assert grid.voxels.ndim == 1
        assert grid.voxels.size == nx * ny * nz
        arr = grid.as_array()
        for i, j, k in [(0, 0, 0), (2, 3, 4), (1, 2, 3), (2, 0, 1)]:
            assert grid.index(i, j, k) == k + nz * (j + ny * i)
            assert grid.voxels[grid.index(i, j, k)] == arr[i, j, k]

    def test_full_cube(self):
        grid = carve(*full_masks(4, 4, 4))
        assert grid.count_solid() == 64
        assert not grid.is_empty()

    def test_empty_masks_give_empty_grid(self):
        grid = carve(*full_masks(3, 4, 5, value=False))
        assert grid.count_solid() == 0
        assert grid.is_empty()

    def test_single_empty_view_empties_grid(self):
        top, front, _ = full_masks(3, 3, 3)
        side = BinaryMask(np.zeros((3, 3), dtype=bool))
        assert carve(top, front, side).is_empty()

    def test_grid_is_read_only(self):
        grid = carve(*full_masks(2, 2, 2))
        with pytest.raises(ValueError):
            grid.voxels[0] = False
        with pytest.raises(ValueError):
            grid.as_array()[0, 0, 0] = False

    def test_progress_callback_per_slab(self):
        calls = []
        carve(*full_masks(3, 2, 2), progress_callback=lambda c, t: calls.append((c, t)))
        assert calls == [(1, 3), (2, 3), (3, 3)]


class TestDimensionChecks:
    @pytest.mark.parametrize(
        "shapes",
        [
            # (top (h, w), front (h, w), side (h, w))
            ((4, 5), (3, 6), (4, 3)),   # top width != front width
            ((4, 5), (3, 5), (2, 3)),   # top height != side height
            ((4, 5), (3, 5), (4, 2)),   # front height != side width
        ],
    )
    def test_mismatch_raises_before_carving(self, shapes):
        top, front, side = (BinaryMask(np.ones(s, dtype=bool)) for s in shapes)
        calls = []
        with pytest.raises(DimensionMismatchError):
            carve(top, front, side, progress_callback=lambda c, t: calls.append(c))
        assert calls == []

    def test_mismatch_is_a_value_error(self):
        top = BinaryMask(np.ones((2, 2), dtype=bool))
        front = BinaryMask(np.ones((2, 3), dtype=bool))
        side = BinaryMask(np.ones((2, 2), dtype=bool))
        with pytest.raises(ValueError):
            check_dimensions(top, front, side)

    def test_consistent_non_cubic_sizes_pass(self):
        check_dimensions(*full_masks(7, 2, 5))


class TestOccupancyGrid:
    def test_rejects_wrong_voxel_count(self):
        with pytest.raises(ValueError):
            OccupancyGrid(2, 2, 2, np.zeros(7, dtype=bool))

    def test_accepts_3d_array_and_flattens(self):
        arr = np.zeros((2, 3, 4), dtype=bool)
        arr[1, 2, 3] = True
        grid = OccupancyGrid(2, 3, 4, arr)
        assert grid.voxels.shape == (24,)
        assert grid.solid(1, 2, 3)
        assert grid.count_solid() == 1
