"""
Spatial Grids
=============

This module provides the spatial tessellation used by the medium system.
A grid partitions the spatial domain into cells, knows the volume of each
cell, and decomposes a ray into the ordered sequence of cells it crosses.

Cells are indexed 0..num_cells-1. Ray segments outside the domain are
reported with cell index -1.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Iterator, Sequence, Tuple

import numpy as np

from mcrt_medium.geometry.paths import SpatialGridPath

logger = logging.getLogger(__name__)


class SpatialGrid(ABC):
    """
    Abstract spatial grid.

    Subclasses implement the geometric queries; ``setup`` runs once and is
    safe to call repeatedly.
    """

    def __init__(self):
        self._setup_done = False

    def setup(self) -> None:
        """Perform one-time initialization."""
        if self._setup_done:
            return
        self._setup_done = True
        self._setup_self()

    def _setup_self(self) -> None:
        pass

    @property
    @abstractmethod
    def num_cells(self) -> int:
        """Number of cells in the grid."""

    @property
    def dimension(self) -> int:
        """Symmetry dimension of the grid (1, 2 or 3)."""
        return 3

    @abstractmethod
    def volume(self, m: int) -> float:
        """Volume of cell m in m³."""

    @abstractmethod
    def central_position(self, m: int) -> np.ndarray:
        """Position of the center of cell m."""

    @abstractmethod
    def random_position_in_cell(self, m: int, rng: np.random.Generator) -> np.ndarray:
        """Uniformly distributed random position inside cell m."""

    @abstractmethod
    def traverse(self, position: np.ndarray, direction: np.ndarray) -> Iterator[Tuple[int, float]]:
        """Yield (cell index, segment length) pairs along a ray in path order."""

    def path(self, position: np.ndarray, direction: np.ndarray) -> SpatialGridPath:
        """Materialize the complete geometric path along a ray."""
        return SpatialGridPath.from_segments(position, direction, self.traverse(position, direction))


class CartesianSpatialGrid(SpatialGrid):
    """
    Regular Cartesian grid covering an axis-aligned box.

    Parameters
    ----------
    extent : sequence of float
        Half-size of the box along x, y and z in m; the box is centered
        on the origin
    shape : sequence of int
        Number of cells along x, y and z

    Notes
    -----
    Ray traversal follows the voxel-walking scheme of Amanatides & Woo
    (1987), with distances measured from the ray origin to avoid drift.
    """

    def __init__(self, extent: Sequence[float], shape: Sequence[int]):
        super().__init__()
        self.extent = np.asarray(extent, dtype=float)
        self.shape = tuple(int(n) for n in shape)
        if self.extent.shape != (3,) or len(self.shape) != 3:
            raise ValueError("extent and shape must both have three components")
        if np.any(self.extent <= 0) or min(self.shape) < 1:
            raise ValueError("grid extent and shape must be positive")

        self.lower = -self.extent
        self.upper = self.extent
        self.spacing = 2.0 * self.extent / np.asarray(self.shape, dtype=float)
        self._cell_volume = float(np.prod(self.spacing))

    @property
    def num_cells(self) -> int:
        return self.shape[0] * self.shape[1] * self.shape[2]

    def cell_index(self, i: int, j: int, k: int) -> int:
        """Flat cell index for the integer cell coordinates (i, j, k)."""
        return (i * self.shape[1] + j) * self.shape[2] + k

    def cell_coordinates(self, m: int) -> Tuple[int, int, int]:
        """Integer cell coordinates (i, j, k) for flat index m."""
        ny, nz = self.shape[1], self.shape[2]
        return m // (ny * nz), (m // nz) % ny, m % nz

    def volume(self, m: int) -> float:
        return self._cell_volume

    def central_position(self, m: int) -> np.ndarray:
        ijk = np.asarray(self.cell_coordinates(m), dtype=float)
        return self.lower + (ijk + 0.5) * self.spacing

    def random_position_in_cell(self, m: int, rng: np.random.Generator) -> np.ndarray:
        ijk = np.asarray(self.cell_coordinates(m), dtype=float)
        return self.lower + (ijk + rng.random(3)) * self.spacing

    def cell_containing(self, position: np.ndarray) -> int:
        """Index of the cell containing the position, or -1 outside the grid."""
        rel = (np.asarray(position, dtype=float) - self.lower) / self.spacing
        idx = np.floor(rel).astype(int)
        if np.any(idx < 0) or np.any(idx >= self.shape):
            return -1
        return self.cell_index(*idx)

    def _box_intersection(self, r: np.ndarray, k: np.ndarray) -> Tuple[float, float]:
        t_min, t_max = -math.inf, math.inf
        for a in range(3):
            if k[a] != 0.0:
                t1 = (self.lower[a] - r[a]) / k[a]
                t2 = (self.upper[a] - r[a]) / k[a]
                if t1 > t2:
                    t1, t2 = t2, t1
                t_min = max(t_min, t1)
                t_max = min(t_max, t2)
            elif r[a] < self.lower[a] or r[a] > self.upper[a]:
                return math.inf, -math.inf
        return t_min, t_max

    def traverse(self, position: np.ndarray, direction: np.ndarray) -> Iterator[Tuple[int, float]]:
        r = np.asarray(position, dtype=float)
        k = np.asarray(direction, dtype=float)

        t_entry, t_exit = self._box_intersection(r, k)
        t_entry = max(t_entry, 0.0)
        if t_exit <= t_entry:
            return

        if t_entry > 0.0:
            yield -1, t_entry

        # integer coordinates of the entry cell
        idx = [0, 0, 0]
        step = [0, 0, 0]
        t_next = [math.inf, math.inf, math.inf]
        t_delta = [math.inf, math.inf, math.inf]
        for a in range(3):
            x = (r[a] + t_entry * k[a] - self.lower[a]) / self.spacing[a]
            i = int(math.floor(x))
            if k[a] < 0.0 and x == i:
                i -= 1
            i = min(max(i, 0), self.shape[a] - 1)
            idx[a] = i
            if k[a] > 0.0:
                step[a] = 1
                t_next[a] = (self.lower[a] + (i + 1) * self.spacing[a] - r[a]) / k[a]
                t_delta[a] = self.spacing[a] / k[a]
            elif k[a] < 0.0:
                step[a] = -1
                t_next[a] = (self.lower[a] + i * self.spacing[a] - r[a]) / k[a]
                t_delta[a] = -self.spacing[a] / k[a]

        t = t_entry
        while True:
            a = 0
            if t_next[1] < t_next[a]:
                a = 1
            if t_next[2] < t_next[a]:
                a = 2
            t_out = min(t_next[a], t_exit)
            if t_out > t:
                yield self.cell_index(idx[0], idx[1], idx[2]), t_out - t
                t = t_out
            if t >= t_exit:
                return
            idx[a] += step[a]
            if idx[a] < 0 or idx[a] >= self.shape[a]:
                return
            t_next[a] += t_delta[a]

    def __repr__(self) -> str:
        return f"CartesianSpatialGrid(extent={self.extent.tolist()}, shape={self.shape})"
