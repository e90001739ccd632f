"""Spectral utility functions for the medium system."""

import numpy as np

from mcrt_medium.core.constants import (
    C1_RADIATION,
    C2_RADIATION,
    SPEED_OF_LIGHT,
)


def planck_function(wavelength: np.ndarray, temperature: float) -> np.ndarray:
    """
    Calculate Planck blackbody spectral radiance.

    Computes the spectral radiance B(λ, T) using Planck's law:
    B(λ, T) = (2hc²/λ⁵) / (exp(hc/λkT) - 1)

    Parameters
    ----------
    wavelength : array_like
        Wavelength in meters
    temperature : float
        Temperature in Kelvin

    Returns
    -------
    radiance : ndarray
        Spectral radiance in W/m²/sr/m
    """
    wavelength = np.asarray(wavelength, dtype=float)

    if temperature <= 0:
        return np.zeros_like(wavelength)

    term1 = C1_RADIATION / (wavelength**5)
    exponent = C2_RADIATION / (wavelength * temperature)

    # Handle numerical overflow for large exponents
    with np.errstate(over='ignore'):
        exp_term = np.expm1(np.minimum(exponent, 700.0))

    mask = exponent > 700  # exp(700) ≈ 1e304
    return np.where(mask, 0.0, term1 / exp_term)


def shifted_reception_wavelength(
    wavelength: float,
    direction: np.ndarray,
    velocity: np.ndarray,
    expansion_velocity: float = 0.0,
) -> float:
    """
    Wavelength perceived by moving material receiving radiation.

    Parameters
    ----------
    wavelength : float
        Wavelength in the frame of the radiation in meters
    direction : ndarray
        Unit propagation direction of the radiation
    velocity : ndarray
        Bulk velocity of the receiving material in m/s
    expansion_velocity : float
        Recession velocity due to cosmological expansion in m/s

    Returns
    -------
    wavelength : float
        Wavelength perceived by the material in meters
    """
    beta = (direction[0] * velocity[0] + direction[1] * velocity[1]
            + direction[2] * velocity[2]) / SPEED_OF_LIGHT
    return wavelength * (1.0 - beta) * (1.0 + expansion_velocity / SPEED_OF_LIGHT)


def shifted_emission_wavelength(
    wavelength: float,
    direction: np.ndarray,
    velocity: np.ndarray,
) -> float:
    """
    Wavelength seen in the rest frame for radiation emitted by moving material.

    Inverse of :func:`shifted_reception_wavelength` without expansion.
    """
    beta = (direction[0] * velocity[0] + direction[1] * velocity[1]
            + direction[2] * velocity[2]) / SPEED_OF_LIGHT
    return wavelength / (1.0 - beta)
