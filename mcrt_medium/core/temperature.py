"""
Indicative temperatures.

The indicative dust temperature of a dust component is the temperature at
which a body with the component's absorption cross section, in local
thermal equilibrium with the local radiation field, emits as much energy
as it absorbs:

    Σ σ_abs(λ) J(λ) Δλ = Σ σ_abs(λ) B(λ, T) Δλ

The sums run over the bins of the radiation field wavelength grid. The
emitted energy increases monotonically with T, so the balance is solved
with a bracketed root find.
"""

import logging

import numpy as np
from scipy.optimize import brentq

from mcrt_medium.core.constants import (
    MAX_INDICATIVE_TEMPERATURE,
    MIN_INDICATIVE_TEMPERATURE,
)
from mcrt_medium.utils.spectral import planck_function

logger = logging.getLogger(__name__)


def equilibrium_temperature(
    section_abs: np.ndarray,
    mean_intensity: np.ndarray,
    wavelengths: np.ndarray,
    widths: np.ndarray,
) -> float:
    """
    Solve the LTE energy balance for one absorber.

    Parameters
    ----------
    section_abs : ndarray
        Absorption cross section per bin in m²
    mean_intensity : ndarray
        Mean intensity J_λ per bin in W/m²/sr/m
    wavelengths : ndarray
        Characteristic wavelength per bin in m
    widths : ndarray
        Bin widths in m

    Returns
    -------
    temperature : float
        Equilibrium temperature in K; 0 if nothing is absorbed, clipped to
        the [1 K, 1e5 K] bracket otherwise
    """
    weights = np.asarray(section_abs, dtype=float) * np.asarray(widths, dtype=float)
    absorbed = float(np.sum(weights * mean_intensity))
    if not absorbed > 0.0:
        return 0.0

    def balance(temperature: float) -> float:
        emitted = float(np.sum(weights * planck_function(wavelengths, temperature)))
        return emitted / absorbed - 1.0

    if balance(MIN_INDICATIVE_TEMPERATURE) >= 0.0:
        return MIN_INDICATIVE_TEMPERATURE
    if balance(MAX_INDICATIVE_TEMPERATURE) <= 0.0:
        logger.debug("Energy balance not bracketed, using the upper temperature bound")
        return MAX_INDICATIVE_TEMPERATURE

    return float(brentq(balance, MIN_INDICATIVE_TEMPERATURE, MAX_INDICATIVE_TEMPERATURE,
                        xtol=1e-6, rtol=1e-10))


def mass_weighted_average(values, masses) -> float:
    """Average of values weighted by masses; 0 when the total mass is zero."""
    values = np.asarray(values, dtype=float)
    masses = np.asarray(masses, dtype=float)
    total = float(np.sum(masses))
    if total <= 0.0:
        return 0.0
    return float(np.sum(values * masses) / total)


def thermal_emission_spectrum(
    section_abs: np.ndarray,
    wavelengths: np.ndarray,
    widths: np.ndarray,
    temperature: float,
) -> np.ndarray:
    """
    Normalized modified blackbody spectrum per wavelength bin.

    Parameters
    ----------
    section_abs : ndarray
        Absorption cross section per bin in m²
    wavelengths : ndarray
        Characteristic wavelength per bin in m
    widths : ndarray
        Bin widths in m
    temperature : float
        Emitter temperature in K

    Returns
    -------
    fractions : ndarray
        Fraction of the emitted luminosity in each bin (all zero if the
        emitter does not emit)
    """
    emission = np.asarray(section_abs, dtype=float) * planck_function(wavelengths, temperature) * widths
    total = float(np.sum(emission))
    if total <= 0.0:
        return np.zeros_like(emission)
    return emission / total
