"""
mcrt-medium: Monte Carlo radiative transfer through a gridded medium system.

The medium system discretizes one or more media (dust, electrons, gas) on a
spatial grid, aggregates their opacities per cell, traces optical depths
along photon packet paths, dispatches scattering events to the material
mixes and accumulates the radiation field.

Modules
-------
core
    Medium system, state store, radiation field, simulation driver
materials
    Material mixes with optical properties (dust, electrons, gas)
media
    Geometric media providing density and kinematics
geometry
    Spatial grids and paths through them
photon
    Photon packets
config
    Configuration dataclasses and component construction
utils
    Spectral helper functions
"""

__version__ = "0.1.0"
__author__ = "mcrt-medium Contributors"

from mcrt_medium.core.medium_system import MediumSystem
from mcrt_medium.core.simulation import Simulation
from mcrt_medium.config.settings import SimulationConfig

__all__ = [
    "__version__",
    "MediumSystem",
    "Simulation",
    "SimulationConfig",
]
