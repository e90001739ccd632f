"""
Dust material mixes.

Implements:
- Tabulated dust mixes with log-log interpolated cross sections
- Power-law dust with a Henyey-Greenstein phase function

Cross sections are expressed per hydrogen atom, so the number density of a
dust medium is the hydrogen number density and the mass per entity includes
the dust-to-gas ratio.
"""

import logging

import numpy as np
import jax.numpy as jnp
from jax import jit

from mcrt_medium.core.constants import PROTON_MASS
from mcrt_medium.materials.base import MaterialMix, MaterialType

logger = logging.getLogger(__name__)


@jit
def power_law_sections_jax(
    wavelength: jnp.ndarray,
    reference_wavelength: float,
    reference_extinction: float,
    albedo: float,
    slope: float,
):
    """JAX-accelerated absorption and scattering cross section curves.

    Args:
        wavelength: Wavelengths [m]
        reference_wavelength: Wavelength at which the reference values apply [m]
        reference_extinction: Extinction cross section per H at the reference [m²]
        albedo: Scattering albedo (wavelength independent)
        slope: Power-law index beta in sigma ~ lambda^-beta

    Returns:
        Tuple (section_abs, section_sca) [m²]
    """
    ext = reference_extinction * (wavelength / reference_wavelength) ** (-slope)
    return ext * (1.0 - albedo), ext * albedo


class TabulatedDustMix(MaterialMix):
    """Dust mix defined by tabulated cross sections.

    Args:
        wavelengths: Tabulation wavelengths [m], increasing
        section_abs: Absorption cross section per H [m²]
        section_sca: Scattering cross section per H [m²]
        asymmetry: Henyey-Greenstein asymmetry parameter g
        dust_to_gas: Dust mass per hydrogen mass
    """

    def __init__(
        self,
        wavelengths: np.ndarray,
        section_abs: np.ndarray,
        section_sca: np.ndarray,
        asymmetry: float = 0.0,
        dust_to_gas: float = 0.01,
    ):
        wavelengths = np.asarray(wavelengths, dtype=float)
        if np.any(np.diff(wavelengths) <= 0):
            raise ValueError("Tabulation wavelengths must be increasing")
        if not -1.0 < asymmetry < 1.0:
            raise ValueError(f"Asymmetry parameter must be in (-1, 1), got {asymmetry}")

        section_abs = np.asarray(section_abs, dtype=float)
        section_sca = np.asarray(section_sca, dtype=float)
        self._log_wavelengths = np.log(wavelengths)
        # an all-zero curve stays exactly zero
        self._log_abs = np.log(np.maximum(section_abs, 1e-300)) if np.any(section_abs > 0) else None
        self._log_sca = np.log(np.maximum(section_sca, 1e-300)) if np.any(section_sca > 0) else None
        self.asymmetry = float(asymmetry)
        self.dust_to_gas = float(dust_to_gas)

    @property
    def material_type(self) -> MaterialType:
        return MaterialType.DUST

    @property
    def mass(self) -> float:
        return self.dust_to_gas * PROTON_MASS

    def _interpolate(self, wavelength, log_table):
        if log_table is None:
            return np.zeros(np.shape(wavelength)) if np.ndim(wavelength) else 0.0
        result = np.exp(np.interp(np.log(wavelength), self._log_wavelengths, log_table))
        return result if np.ndim(result) else float(result)

    def section_abs(self, wavelength):
        return self._interpolate(wavelength, self._log_abs)

    def section_sca(self, wavelength):
        return self._interpolate(wavelength, self._log_sca)

    def phase_function_value(self, wavelength: float, cos_theta: float) -> float:
        g = self.asymmetry
        return (1.0 - g * g) / (1.0 + g * g - 2.0 * g * cos_theta) ** 1.5

    def sample_cos_theta(self, wavelength: float, rng: np.random.Generator) -> float:
        g = self.asymmetry
        u = rng.random()
        if abs(g) < 1e-6:
            return 2.0 * u - 1.0
        f = (1.0 - g * g) / (1.0 - g + 2.0 * g * u)
        return float(np.clip((1.0 + g * g - f * f) / (2.0 * g), -1.0, 1.0))


class PowerLawDustMix(TabulatedDustMix):
    """Dust with power-law cross sections.

    The curves are tabulated once on a fine logarithmic grid using
    power_law_sections_jax.

    Example:
        >>> mix = PowerLawDustMix(reference_extinction=5e-26, albedo=0.5, slope=1.5)
        >>> mix.section_abs(5.5e-7)
    """

    def __init__(
        self,
        reference_extinction: float = 5e-26,
        reference_wavelength: float = 5.5e-7,
        albedo: float = 0.5,
        slope: float = 1.0,
        asymmetry: float = 0.5,
        dust_to_gas: float = 0.01,
        min_wavelength: float = 1e-8,
        max_wavelength: float = 1e-2,
        num_points: int = 2000,
    ):
        if not 0.0 <= albedo <= 1.0:
            raise ValueError(f"Albedo must be in [0, 1], got {albedo}")

        wavelengths = np.geomspace(min_wavelength, max_wavelength, num_points)
        sec_abs, sec_sca = power_law_sections_jax(
            jnp.asarray(wavelengths),
            reference_wavelength,
            reference_extinction,
            albedo,
            slope,
        )
        super().__init__(
            wavelengths,
            np.asarray(sec_abs, dtype=float),
            np.asarray(sec_sca, dtype=float),
            asymmetry=asymmetry,
            dust_to_gas=dust_to_gas,
        )
        self.albedo = float(albedo)
        self.slope = float(slope)
        logger.debug(
            f"Tabulated power-law dust: beta={slope}, albedo={albedo}, g={asymmetry}"
        )
