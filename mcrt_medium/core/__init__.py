"""
Core computational modules for medium system radiative transfer.

This module contains the medium system and its collaborators:
- MediumSystem: Spatial cell state, opacities, optical depths and scattering
- MediumState: Per-cell and per-component state store
- RadiationField: Thread-safe accumulator of the radiation field
- WavelengthGrid: Radiation field wavelength bins
- Simulation: Photon life cycle driver
"""

from mcrt_medium.core.wavelength_grid import WavelengthGrid
from mcrt_medium.core.medium_state import MediumState
from mcrt_medium.core.radiation_field import RadiationField
from mcrt_medium.core.medium_system import MediumSystem
from mcrt_medium.core.simulation import Simulation, SimulationResult

__all__ = [
    "WavelengthGrid",
    "MediumState",
    "RadiationField",
    "MediumSystem",
    "Simulation",
    "SimulationResult",
]
