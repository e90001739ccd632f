"""
Radiation sources for the photon life cycle.

Implements:
- PointSource: isotropic primary emission with a flat spectrum in ln(λ)
- DustEmissionSource: secondary thermal emission of the dust in each cell,
  derived from the radiation field absorbed during earlier segments
"""

import logging
import math
from typing import Sequence

import numpy as np

from mcrt_medium.core.temperature import thermal_emission_spectrum
from mcrt_medium.core.wavelength_grid import WavelengthGrid
from mcrt_medium.photon.packet import PhotonPacket

logger = logging.getLogger(__name__)


def isotropic_direction(rng: np.random.Generator) -> np.ndarray:
    """Random direction uniformly distributed over the unit sphere."""
    cos_theta = 2.0 * rng.random() - 1.0
    phi = 2.0 * math.pi * rng.random()
    sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    return np.array([sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta])


class PointSource:
    """Isotropic point source.

    Args:
        position: Source position [m]
        luminosity: Luminosity within the wavelength range [W]
        wavelength_grid: Wavelength range of the emission
    """

    def __init__(self, position: Sequence[float], luminosity: float, wavelength_grid: WavelengthGrid):
        self.position = np.asarray(position, dtype=float)
        self.luminosity = float(luminosity)
        self._log_min = math.log(wavelength_grid.min_wavelength)
        self._log_max = math.log(wavelength_grid.max_wavelength)

    def launch(self, pp: PhotonPacket, rng: np.random.Generator, packet_luminosity: float) -> None:
        """Launch a packet with a random wavelength and direction."""
        wavelength = math.exp(self._log_min + (self._log_max - self._log_min) * rng.random())
        pp.launch(packet_luminosity, wavelength, self.position, isotropic_direction(rng))


class DustEmissionSource:
    """Thermal emission of the dust, cell by cell.

    Each cell emits the dust luminosity it absorbed, with a modified
    blackbody spectrum at its indicative dust temperature. Cells are drawn
    proportionally to their luminosity, positions uniformly within the cell
    and wavelengths log-uniformly within the drawn bin.

    Args:
        medium_system: Medium system with a communicated radiation field
    """

    def __init__(self, medium_system):
        self.medium_system = medium_system
        self.grid = medium_system.grid
        self.wavelength_grid: WavelengthGrid = medium_system.wavelength_grid

        num_cells = medium_system.num_cells
        wavelengths = self.wavelength_grid.wavelengths
        widths = self.wavelength_grid.widths

        self.cell_luminosities = np.zeros(num_cells)
        self.spectra = np.zeros((num_cells, self.wavelength_grid.num_bins))
        for m in range(num_cells):
            luminosity = medium_system.absorbed_dust_luminosity(m)
            if luminosity > 0.0:
                temperature = medium_system.indicative_dust_temperature(m)
                kabs = medium_system.dust_absorption_opacities(m)
                self.spectra[m] = thermal_emission_spectrum(kabs, wavelengths, widths, temperature)
                if np.any(self.spectra[m] > 0):
                    self.cell_luminosities[m] = luminosity

        self.luminosity = float(np.sum(self.cell_luminosities))
        if self.luminosity > 0.0:
            self._cell_cdf = np.cumsum(self.cell_luminosities) / self.luminosity
        else:
            self._cell_cdf = np.zeros(num_cells)
        logger.info(f"Dust emission source: {self.luminosity:.4e} W from "
                    f"{np.count_nonzero(self.cell_luminosities)} cells")

    def launch(self, pp: PhotonPacket, rng: np.random.Generator, packet_luminosity: float) -> None:
        m = int(np.searchsorted(self._cell_cdf, rng.random(), side="right"))
        m = min(m, len(self._cell_cdf) - 1)
        ell = int(np.searchsorted(np.cumsum(self.spectra[m]), rng.random(), side="right"))
        ell = min(ell, self.wavelength_grid.num_bins - 1)

        low = math.log(self.wavelength_grid.borders[ell])
        high = math.log(self.wavelength_grid.borders[ell + 1])
        wavelength = math.exp(low + (high - low) * rng.random())

        position = self.grid.random_position_in_cell(m, rng)
        pp.launch(packet_luminosity, wavelength, position, isotropic_direction(rng))
