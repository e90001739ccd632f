"""
Material mixes.

This module provides:
- MaterialMix: interface consumed by the medium system
- MaterialType, MaterialState: type tag and local conditions
- ElectronMix, PowerLawDustMix, TabulatedDustMix, GreyGasMix: reference mixes
"""

from mcrt_medium.materials.base import MaterialMix, MaterialState, MaterialType
from mcrt_medium.materials.dust import PowerLawDustMix, TabulatedDustMix
from mcrt_medium.materials.electrons import ElectronMix
from mcrt_medium.materials.gas import GreyGasMix

__all__ = [
    "MaterialMix",
    "MaterialState",
    "MaterialType",
    "ElectronMix",
    "PowerLawDustMix",
    "TabulatedDustMix",
    "GreyGasMix",
]
