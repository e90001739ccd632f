"""
Paths Through the Spatial Grid
==============================

A path is the ordered sequence of (cell index, segment length) pairs that a
ray crosses when it leaves a given position in a given direction. The grid
produces the geometry; the medium system fills in the cumulative optical
depth at each segment exit boundary.

Segments outside the grid carry cell index -1.
"""

from typing import Iterable, Optional, Tuple

import numpy as np

from mcrt_medium.core.optical_depth import interpolate_within_segment


class SpatialGridPath:
    """
    Geometric path with optional optical depth information.

    Attributes
    ----------
    position : ndarray
        Starting position of the path in m
    direction : ndarray
        Unit direction of the path
    cells : ndarray of int
        Cell index of each segment (-1 outside the grid)
    lengths : ndarray of float
        Segment lengths in m
    distances : ndarray of float
        Cumulative distance at each segment exit boundary in m
    optical_depths : ndarray of float
        Cumulative optical depth at each segment exit boundary
    """

    def __init__(self, position: np.ndarray, direction: np.ndarray):
        self.position = np.asarray(position, dtype=float)
        self.direction = np.asarray(direction, dtype=float)
        self.cells = np.empty(0, dtype=np.int64)
        self.lengths = np.empty(0, dtype=float)
        self.distances = np.empty(0, dtype=float)
        self.optical_depths = np.empty(0, dtype=float)

    @classmethod
    def from_segments(
        cls,
        position: np.ndarray,
        direction: np.ndarray,
        segments: Iterable[Tuple[int, float]],
    ) -> "SpatialGridPath":
        """
        Build a path from (cell index, length) pairs in path order.

        Parameters
        ----------
        position : ndarray
            Starting position in m
        direction : ndarray
            Unit direction
        segments : iterable of (int, float)
            Segments as produced by a grid traversal

        Returns
        -------
        path : SpatialGridPath
        """
        path = cls(position, direction)
        pairs = list(segments)
        if pairs:
            cells, lengths = zip(*pairs)
            path.cells = np.asarray(cells, dtype=np.int64)
            path.lengths = np.asarray(lengths, dtype=float)
        path.distances = np.cumsum(path.lengths)
        path.optical_depths = np.zeros(len(path.lengths))
        return path

    @property
    def num_segments(self) -> int:
        """Number of segments in the path."""
        return len(self.cells)

    @property
    def total_length(self) -> float:
        """Geometric length of the path in m."""
        return float(self.distances[-1]) if self.num_segments else 0.0

    @property
    def total_optical_depth(self) -> float:
        """Cumulative optical depth at the path exit."""
        return float(self.optical_depths[-1]) if self.num_segments else 0.0

    def entry_distance(self, i: int) -> float:
        """Cumulative distance at the entry boundary of segment i."""
        return float(self.distances[i] - self.lengths[i])

    def entry_optical_depth(self, i: int) -> float:
        """Cumulative optical depth at the entry boundary of segment i."""
        return float(self.optical_depths[i - 1]) if i > 0 else 0.0

    def segment_for_optical_depth(self, tau: float) -> Optional[int]:
        """
        Index of the segment in which the cumulative optical depth reaches tau.

        Returns None if tau is beyond the total optical depth of the path.
        """
        if not self.num_segments or tau > self.optical_depths[-1]:
            return None
        i = int(np.searchsorted(self.optical_depths, tau, side="left"))
        return min(i, self.num_segments - 1)

    def interpolate_distance(self, tau: float) -> Tuple[int, float]:
        """
        Cell index and distance along the path where the optical depth equals tau.

        The distance is interpolated linearly within the segment. Returns
        (-1, total length) if tau is not reached.
        """
        i = self.segment_for_optical_depth(tau)
        if i is None:
            return -1, self.total_length
        s = interpolate_within_segment(
            tau,
            self.entry_optical_depth(i),
            float(self.optical_depths[i]),
            self.entry_distance(i),
            float(self.lengths[i]),
        )
        return int(self.cells[i]), float(s)

    def __repr__(self) -> str:
        return f"SpatialGridPath({self.num_segments} segments, length={self.total_length:.4g} m)"
