"""
Cell and component state store.

Holds the per-cell and per-(cell, component) state of the medium system as
structure-of-arrays numpy buffers. The store is populated once during setup
and is read-only afterwards, so it can be read concurrently without
synchronization.

Per cell:
- volume [m³]
- aggregate bulk velocity [m/s]
- magnetic field [T]
- gas temperature [K]

Per (cell, component):
- number density [m^-3]
- temperature [K] (0 for components without a temperature)
- material mix (constant per component or varying per cell)
"""

from typing import List, Optional, Sequence

import numpy as np

from mcrt_medium.materials.base import MaterialMix, MaterialState


class MediumState:
    """Structure-of-arrays state of all cells and components.

    Args:
        num_cells: Number of spatial cells M
        num_media: Number of medium components H
    """

    def __init__(self, num_cells: int, num_media: int):
        self.num_cells = int(num_cells)
        self.num_media = int(num_media)

        M, H = self.num_cells, self.num_media
        self.volumes = np.zeros(M)
        self.velocities = np.zeros((M, 3))
        self.magnetic_fields = np.zeros((M, 3))
        self.gas_temperatures = np.zeros(M)
        self.number_densities = np.zeros((M, H))
        self.temperatures = np.zeros((M, H))

        self._mix_per_cell = [False] * H
        self._mixes: List[Optional[MaterialMix]] = [None] * H
        self._cell_mixes: List[Optional[List[MaterialMix]]] = [None] * H

    # -------------------------------------------------------------------------
    # Initialization (setup only)
    # -------------------------------------------------------------------------

    def set_mix(self, h: int, mix: MaterialMix) -> None:
        """Use the same mix for component h in every cell."""
        self._mix_per_cell[h] = False
        self._mixes[h] = mix
        self._cell_mixes[h] = None

    def set_cell_mixes(self, h: int, mixes: Sequence[MaterialMix]) -> None:
        """Use a separate mix for component h in each cell."""
        if len(mixes) != self.num_cells:
            raise ValueError(f"Expected {self.num_cells} mixes, got {len(mixes)}")
        self._mix_per_cell[h] = True
        self._mixes[h] = mixes[0] if len(mixes) else None
        self._cell_mixes[h] = list(mixes)

    def buffers(self) -> List[np.ndarray]:
        """Numeric buffers that are merged across processes after setup."""
        return [
            self.volumes,
            self.velocities,
            self.magnetic_fields,
            self.gas_temperatures,
            self.number_densities,
            self.temperatures,
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def mix_per_cell(self, h: int) -> bool:
        return self._mix_per_cell[h]

    def mix(self, m: int, h: int) -> MaterialMix:
        """Material mix of component h in cell m."""
        if self._mix_per_cell[h]:
            return self._cell_mixes[h][m]
        return self._mixes[h]

    def first_mix(self, h: int) -> MaterialMix:
        """Representative mix of component h (the mix of the first cell)."""
        return self._mixes[h]

    def volume(self, m: int) -> float:
        return float(self.volumes[m])

    def bulk_velocity(self, m: int) -> np.ndarray:
        return self.velocities[m]

    def magnetic_field(self, m: int) -> np.ndarray:
        return self.magnetic_fields[m]

    def gas_temperature(self, m: int) -> float:
        return float(self.gas_temperatures[m])

    def number_density(self, m: int, h: int) -> float:
        return float(self.number_densities[m, h])

    def mass_density(self, m: int, h: int) -> float:
        return float(self.number_densities[m, h]) * self.mix(m, h).mass

    def temperature(self, m: int, h: int) -> float:
        return float(self.temperatures[m, h])

    def material_state(self, m: int, h: int) -> MaterialState:
        """Local conditions of component h in cell m, as passed to material mixes."""
        return MaterialState(
            cell=m,
            number_density=float(self.number_densities[m, h]),
            bulk_velocity=self.velocities[m],
            magnetic_field=self.magnetic_fields[m],
            temperature=float(self.temperatures[m, h]),
        )
