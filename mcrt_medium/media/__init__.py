"""
Input medium models sampled by the medium system at setup.
"""

from mcrt_medium.media.base import Medium
from mcrt_medium.media.geometric import GeometricMedium

__all__ = ["Medium", "GeometricMedium"]
