"""
Tests for the spatial grid, grid paths and the wavelength grid.
"""

import numpy as np
import pytest

from mcrt_medium.core.communicator import SingleProcessCommunicator, block_range
from mcrt_medium.core.wavelength_grid import WavelengthGrid
from mcrt_medium.geometry.grid import CartesianSpatialGrid
from mcrt_medium.geometry.paths import SpatialGridPath


class TestCartesianSpatialGrid:
    """Tests for CartesianSpatialGrid."""

    @pytest.fixture
    def grid(self):
        return CartesianSpatialGrid([1.0, 2.0, 3.0], [2, 4, 3])

    def test_cells_and_volumes(self, grid):
        assert grid.num_cells == 24
        assert grid.volume(5) == pytest.approx(1.0 * 1.0 * 2.0)
        assert sum(grid.volume(m) for m in range(grid.num_cells)) == pytest.approx(48.0)

    def test_index_round_trip(self, grid):
        for m in range(grid.num_cells):
            assert grid.cell_index(*grid.cell_coordinates(m)) == m

    def test_central_position(self, grid):
        assert np.allclose(grid.central_position(0), [-0.5, -1.5, -2.0])
        assert grid.cell_containing(grid.central_position(17)) == 17

    def test_cell_containing_outside(self, grid):
        assert grid.cell_containing([0.0, 0.0, 3.5]) == -1
        assert grid.cell_containing([-1.5, 0.0, 0.0]) == -1

    def test_random_position_in_cell(self, grid):
        rng = np.random.default_rng(0)
        for m in (0, 9, 23):
            for _ in range(20):
                assert grid.cell_containing(grid.random_position_in_cell(m, rng)) == m

    @pytest.mark.parametrize("extent, shape", [([1.0, 1.0], [2, 2, 2]), ([1.0, 0.0, 1.0], [2, 2, 2]),
                                               ([1.0, 1.0, 1.0], [2, 0, 2])])
    def test_invalid(self, extent, shape):
        with pytest.raises(ValueError):
            CartesianSpatialGrid(extent, shape)


class TestTraversal:
    """Tests for ray traversal."""

    @pytest.fixture
    def grid(self):
        return CartesianSpatialGrid([1.0, 1.0, 1.0], [4, 4, 4])

    def test_axis_aligned_chord(self, grid):
        """Test a ray along z crossing four cells of length 0.5."""
        segments = list(grid.traverse(np.array([0.1, 0.1, -1.0]), np.array([0.0, 0.0, 1.0])))
        assert len(segments) == 4
        assert all(np.isclose(length, 0.5) for _, length in segments)
        cells = [m for m, _ in segments]
        assert cells == [grid.cell_index(2, 2, k) for k in range(4)]

    def test_entry_gap(self, grid):
        """Test that the path outside the grid is reported with cell -1."""
        segments = list(grid.traverse(np.array([0.1, 0.1, -3.0]), np.array([0.0, 0.0, 1.0])))
        assert segments[0][0] == -1
        assert segments[0][1] == pytest.approx(2.0)
        assert sum(length for _, length in segments) == pytest.approx(4.0)

    def test_diagonal_chord(self, grid):
        """Test that segment lengths sum to the chord through the box."""
        direction = np.array([1.0, 1.0, 1.0]) / np.sqrt(3.0)
        segments = list(grid.traverse(np.array([-2.0, -2.0, -2.0]), direction))
        inside = [(m, s) for m, s in segments if m >= 0]
        assert sum(s for _, s in inside) == pytest.approx(2.0 * np.sqrt(3.0))
        assert all(s > 0 for _, s in segments)
        assert inside[0][0] == 0
        assert inside[-1][0] == grid.num_cells - 1

    def test_start_inside(self, grid):
        """Test a ray starting inside the grid."""
        segments = list(grid.traverse(np.array([0.0, 0.1, 0.1]), np.array([-1.0, 0.0, 0.0])))
        assert segments[0][0] >= 0
        assert sum(s for _, s in segments) == pytest.approx(1.0)

    def test_miss(self, grid):
        assert list(grid.traverse(np.array([5.0, 5.0, 0.0]), np.array([0.0, 0.0, 1.0]))) == []

    def test_pointing_away(self, grid):
        assert list(grid.traverse(np.array([0.0, 0.0, 2.0]), np.array([0.0, 0.0, 1.0]))) == []

    def test_segment_cells_are_adjacent(self, grid):
        """Test that consecutive cells along an oblique ray are neighbours."""
        direction = np.array([0.3, -0.5, 0.8])
        direction /= np.linalg.norm(direction)
        segments = list(grid.traverse(np.array([-0.9, 0.9, -0.95]), direction))
        coords = [np.array(grid.cell_coordinates(m)) for m, _ in segments if m >= 0]
        for a, b in zip(coords, coords[1:]):
            assert np.sum(np.abs(a - b)) == 1


class TestSpatialGridPath:
    """Tests for SpatialGridPath."""

    def test_from_segments(self):
        path = SpatialGridPath.from_segments(np.zeros(3), np.array([0.0, 0.0, 1.0]),
                                             [(-1, 1.0), (0, 2.0), (1, 0.5)])
        assert path.num_segments == 3
        assert path.total_length == pytest.approx(3.5)
        assert np.allclose(path.distances, [1.0, 3.0, 3.5])
        assert path.entry_distance(1) == pytest.approx(1.0)
        assert path.total_optical_depth == 0.0

    def test_empty(self):
        path = SpatialGridPath.from_segments(np.zeros(3), np.array([1.0, 0.0, 0.0]), [])
        assert path.num_segments == 0
        assert path.total_length == 0.0
        assert path.interpolate_distance(0.5) == (-1, 0.0)

    def test_interpolate_distance(self):
        path = SpatialGridPath.from_segments(np.zeros(3), np.array([0.0, 0.0, 1.0]),
                                             [(-1, 1.0), (4, 2.0), (5, 2.0)])
        path.optical_depths = np.array([0.0, 1.0, 3.0])

        cell, s = path.interpolate_distance(0.5)
        assert cell == 4
        assert s == pytest.approx(2.0)
        cell, s = path.interpolate_distance(2.0)
        assert cell == 5
        assert s == pytest.approx(4.0)
        assert path.segment_for_optical_depth(3.5) is None


class TestWavelengthGrid:
    """Tests for WavelengthGrid."""

    def test_logarithmic(self):
        grid = WavelengthGrid.logarithmic(1e-7, 1e-3, 4)
        assert grid.num_bins == len(grid) == 4
        assert np.allclose(grid.borders, [1e-7, 1e-6, 1e-5, 1e-4, 1e-3])
        assert np.allclose(grid.wavelengths, np.sqrt(grid.borders[:-1] * grid.borders[1:]))
        assert np.allclose(grid.widths, np.diff(grid.borders))

    def test_linear(self):
        grid = WavelengthGrid.linear(1.0, 3.0, 4)
        assert np.allclose(grid.wavelengths, [1.25, 1.75, 2.25, 2.75])

    def test_bin_index(self):
        grid = WavelengthGrid.logarithmic(1e-7, 1e-3, 4)
        assert grid.bin_index(5e-7) == 0
        assert grid.bin_index(2e-5) == 2
        assert grid.bin_index(1e-3) == 3
        assert grid.bin_index(1e-7) == 0
        assert grid.bin_index(5e-8) == -1
        assert grid.bin_index(2e-3) == -1

    @pytest.mark.parametrize("borders", [[1e-6], [1e-6, 1e-7], [0.0, 1e-6]])
    def test_invalid(self, borders):
        with pytest.raises(ValueError):
            WavelengthGrid(borders)


class TestBlockRange:
    """Tests for the division of work over processes and threads."""

    @pytest.mark.parametrize("count, size", [(10, 3), (3, 8), (0, 4), (1000, 7)])
    def test_blocks_cover_all_items(self, count, size):
        covered = []
        sizes = []
        for rank in range(size):
            start, stop = block_range(count, rank, size)
            covered.extend(range(start, stop))
            sizes.append(stop - start)
        assert covered == list(range(count))
        assert max(sizes) - min(sizes) <= 1

    def test_single_process(self):
        comm = SingleProcessCommunicator()
        assert comm.rank == 0
        assert comm.size == 1
        assert comm.is_root
        assert not comm.is_multi_process
        assert comm.block(17) == (0, 17)
        buffer = np.arange(4.0)
        comm.sum_all(buffer)
        assert np.array_equal(buffer, np.arange(4.0))
