"""
Wavelength grid for the radiation field tally.

The grid defines the wavelength bins shared by all radiation field tables.
Bin count and ordering are fixed for the lifetime of a run.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


class WavelengthGrid:
    """Ordered set of adjacent wavelength bins.

    Attributes:
        borders: Bin borders [m], increasing, length num_bins + 1
        wavelengths: Characteristic wavelength of each bin [m]
        widths: Bin widths [m]

    Example:
        >>> grid = WavelengthGrid.logarithmic(1e-7, 1e-3, 50)
        >>> ell = grid.bin_index(5.5e-7)
    """

    def __init__(self, borders: np.ndarray, log_centers: bool = True):
        borders = np.asarray(borders, dtype=float)
        if borders.ndim != 1 or len(borders) < 2:
            raise ValueError("A wavelength grid needs at least two borders")
        if np.any(np.diff(borders) <= 0) or borders[0] <= 0:
            raise ValueError("Wavelength grid borders must be positive and increasing")

        self.borders = borders
        self.widths = np.diff(borders)
        if log_centers:
            self.wavelengths = np.sqrt(borders[:-1] * borders[1:])
        else:
            self.wavelengths = 0.5 * (borders[:-1] + borders[1:])

    @classmethod
    def logarithmic(cls, min_wavelength: float, max_wavelength: float, num_bins: int) -> "WavelengthGrid":
        """Create a grid with logarithmically spaced borders."""
        borders = np.geomspace(min_wavelength, max_wavelength, num_bins + 1)
        return cls(borders, log_centers=True)

    @classmethod
    def linear(cls, min_wavelength: float, max_wavelength: float, num_bins: int) -> "WavelengthGrid":
        """Create a grid with linearly spaced borders."""
        borders = np.linspace(min_wavelength, max_wavelength, num_bins + 1)
        return cls(borders, log_centers=False)

    @property
    def num_bins(self) -> int:
        """Number of wavelength bins."""
        return len(self.widths)

    @property
    def min_wavelength(self) -> float:
        return float(self.borders[0])

    @property
    def max_wavelength(self) -> float:
        return float(self.borders[-1])

    def bin_index(self, wavelength: float) -> int:
        """Return the index of the bin containing the wavelength, or -1 if outside."""
        if wavelength < self.borders[0] or wavelength > self.borders[-1]:
            return -1
        ell = int(np.searchsorted(self.borders, wavelength, side="right")) - 1
        return min(ell, self.num_bins - 1)

    def __len__(self) -> int:
        return self.num_bins

    def __repr__(self) -> str:
        return (f"WavelengthGrid({self.num_bins} bins, "
                f"{self.min_wavelength:.3e}-{self.max_wavelength:.3e} m)")


def wavelength_grid_from_config(config) -> WavelengthGrid:
    """Build the radiation field wavelength grid described by a WavelengthConfig."""
    if config.log_spacing:
        grid = WavelengthGrid.logarithmic(config.min_wavelength, config.max_wavelength, config.num_bins)
    else:
        grid = WavelengthGrid.linear(config.min_wavelength, config.max_wavelength, config.num_bins)
    logger.debug(f"Created {grid!r}")
    return grid
