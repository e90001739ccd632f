"""
Free electron material mix.

Electrons scatter radiation through Thomson scattering: a wavelength
independent cross section with a dipole phase function and no absorption.
"""

import numpy as np

from mcrt_medium.core.constants import ELECTRON_MASS, THOMSON_CROSS_SECTION
from mcrt_medium.materials.base import MaterialMix, MaterialType


class ElectronMix(MaterialMix):
    """Thomson scattering by free electrons.

    Example:
        >>> mix = ElectronMix()
        >>> mix.section_sca(5e-7)
        6.6524587321e-29
    """

    @property
    def material_type(self) -> MaterialType:
        return MaterialType.ELECTRONS

    @property
    def mass(self) -> float:
        return ELECTRON_MASS

    def section_abs(self, wavelength):
        return np.zeros_like(wavelength, dtype=float) if np.ndim(wavelength) else 0.0

    def section_sca(self, wavelength):
        if np.ndim(wavelength):
            return np.full(np.shape(wavelength), THOMSON_CROSS_SECTION)
        return THOMSON_CROSS_SECTION

    def phase_function_value(self, wavelength: float, cos_theta: float) -> float:
        # Dipole phase function P = 3/4 (1 + cos²θ)
        return 0.75 * (1.0 + cos_theta * cos_theta)

    def sample_cos_theta(self, wavelength: float, rng: np.random.Generator) -> float:
        # Rejection sampling against the dipole shape (acceptance 2/3)
        while True:
            mu = 2.0 * rng.random() - 1.0
            if 2.0 * rng.random() <= 1.0 + mu * mu:
                return mu
