"""
Optical depth kernels.

Numba-compiled kernels used by the path tracers of the medium system on the
packet hot path. All kernels work on the segment arrays of a
SpatialGridPath (cell index and length per segment); segments outside the
grid carry cell index -1 and contribute no optical depth.
"""

import numpy as np
from numba import jit


@jit(nopython=True, cache=True)
def cumulative_optical_depths_constant(
    cells: np.ndarray,
    lengths: np.ndarray,
    number_densities: np.ndarray,
    sections: np.ndarray,
    out: np.ndarray,
) -> None:
    """Cumulative optical depth at each segment exit for constant cross sections.

    Args:
        cells: Cell index per segment (-1 outside the grid)
        lengths: Segment lengths [m]
        number_densities: Number density table [M, H] in m^-3
        sections: Extinction cross section per component [H] in m²
        out: Output array receiving the cumulative optical depths
    """
    num_media = sections.shape[0]
    tau = 0.0
    for i in range(cells.shape[0]):
        m = cells[i]
        if m >= 0:
            k = 0.0
            for h in range(num_media):
                k += number_densities[m, h] * sections[h]
            tau += k * lengths[i]
        out[i] = tau


@jit(nopython=True, cache=True)
def cumulative_optical_depths(lengths: np.ndarray, extinctions: np.ndarray, out: np.ndarray) -> None:
    """Cumulative optical depth at each segment exit from per-segment opacities.

    Args:
        lengths: Segment lengths [m]
        extinctions: Extinction opacity per segment [m^-1]
        out: Output array receiving the cumulative optical depths
    """
    tau = 0.0
    for i in range(lengths.shape[0]):
        tau += extinctions[i] * lengths[i]
        out[i] = tau


def interpolate_within_segment(
    tau_target: float,
    tau_in: float,
    tau_out: float,
    s_in: float,
    length: float,
) -> float:
    """
    Distance at which the optical depth reaches tau_target inside a segment.

    Parameters
    ----------
    tau_target : float
        Target cumulative optical depth, tau_in <= tau_target <= tau_out
    tau_in, tau_out : float
        Cumulative optical depth at the segment entry and exit
    s_in : float
        Distance at the segment entry in m
    length : float
        Segment length in m

    Returns
    -------
    distance : float
        Interpolated distance in m
    """
    if tau_out > tau_in:
        return s_in + (tau_target - tau_in) / (tau_out - tau_in) * length
    return s_in
