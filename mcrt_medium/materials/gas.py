"""
Grey gas material mix.

A simple gas with wavelength independent absorption and scattering cross
sections and isotropic scattering. The gas carries a temperature supplied by
the input medium, and may optionally shift the wavelength of scattered
radiation by a constant fraction (a crude stand-in for resonant line
scattering with recoil).
"""

import numpy as np

from mcrt_medium.core.constants import PROTON_MASS
from mcrt_medium.materials.base import MaterialMix, MaterialState, MaterialType


class GreyGasMix(MaterialMix):
    """Grey gas with isotropic scattering.

    Args:
        section_abs: Absorption cross section per particle [m²]
        section_sca: Scattering cross section per particle [m²]
        mean_molecular_weight: Mass per particle in units of the proton mass
        wavelength_shift: Fractional wavelength shift applied on scattering

    Example:
        >>> mix = GreyGasMix(section_abs=1e-30, section_sca=2e-30)
        >>> mix.section_ext(1e-6)
        3e-30
    """

    def __init__(
        self,
        section_abs: float = 0.0,
        section_sca: float = 0.0,
        mean_molecular_weight: float = 1.0,
        wavelength_shift: float = 0.0,
    ):
        if section_abs < 0 or section_sca < 0:
            raise ValueError("Cross sections must be non-negative")
        if mean_molecular_weight <= 0:
            raise ValueError("Mean molecular weight must be positive")
        self._section_abs = float(section_abs)
        self._section_sca = float(section_sca)
        self.mean_molecular_weight = float(mean_molecular_weight)
        self.wavelength_shift = float(wavelength_shift)

    @property
    def material_type(self) -> MaterialType:
        return MaterialType.GAS

    @property
    def mass(self) -> float:
        return self.mean_molecular_weight * PROTON_MASS

    @property
    def has_temperature(self) -> bool:
        return True

    def section_abs(self, wavelength):
        if np.ndim(wavelength):
            return np.full(np.shape(wavelength), self._section_abs)
        return self._section_abs

    def section_sca(self, wavelength):
        if np.ndim(wavelength):
            return np.full(np.shape(wavelength), self._section_sca)
        return self._section_sca

    def phase_function_value(self, wavelength: float, cos_theta: float) -> float:
        return 1.0

    def sample_cos_theta(self, wavelength: float, rng: np.random.Generator) -> float:
        return 2.0 * rng.random() - 1.0

    def scattered_wavelength(self, wavelength, state, rng=None):
        return wavelength * (1.0 + self.wavelength_shift)

    def peel_off_scattering(self, wavelength, weight, observer_direction, y_direction,
                            state: MaterialState, pp):
        return weight, 0.0, 0.0, 0.0, self.scattered_wavelength(wavelength, state)
