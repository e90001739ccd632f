"""
Spectral utility functions.

Functions
---------
planck_function
    Planck blackbody spectral radiance per unit wavelength
shifted_reception_wavelength
    Doppler and expansion shifted wavelength perceived by moving material
shifted_emission_wavelength
    Wavelength in the model frame of radiation emitted by moving material
"""

from mcrt_medium.utils.spectral import (
    planck_function,
    shifted_reception_wavelength,
    shifted_emission_wavelength,
)

__all__ = [
    "planck_function",
    "shifted_reception_wavelength",
    "shifted_emission_wavelength",
]
