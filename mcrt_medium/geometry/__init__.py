"""
Spatial grids and grid paths.
"""

from mcrt_medium.geometry.grid import SpatialGrid, CartesianSpatialGrid
from mcrt_medium.geometry.paths import SpatialGridPath

__all__ = ["SpatialGrid", "CartesianSpatialGrid", "SpatialGridPath"]
