"""
Photon packets.

A photon packet carries a luminosity (its weight) at a single wavelength from
a position along a direction. During its life cycle it owns the path through
the spatial grid that the medium system fills with optical depths, and the
interaction point selected on that path.

Peel-off packets are short-lived copies sent toward an instrument; they are
launched from a regular packet with the ``launch_*_peel_off`` methods.
"""

from typing import Optional, Sequence

import numpy as np

from mcrt_medium.geometry.paths import SpatialGridPath
from mcrt_medium.materials.base import emitted_wavelength
from mcrt_medium.utils.spectral import shifted_reception_wavelength


class PhotonPacket:
    """Monte Carlo photon packet.

    Attributes:
        position: Current position [m]
        direction: Unit propagation direction
        wavelength: Wavelength in the rest frame of the model [m]
        luminosity: Packet weight [W]
        num_scatterings: Number of scattering events experienced so far
        stokes: Normalized Stokes parameters (Q, U, V) relative to I
        polarized: True if the packet carries a polarization state
        path: Path through the grid filled by the medium system
        interaction_cell: Cell of the selected interaction point (-1 if none)
        interaction_distance: Distance to the interaction point [m]
        traveled_distance: Distance covered since the path origin, the
            emission or last scattering point [m]
    """

    def __init__(self):
        self.position = np.zeros(3)
        self.direction = np.array([0.0, 0.0, 1.0])
        self.wavelength = 0.0
        self.luminosity = 0.0
        self.num_scatterings = 0
        self.stokes = np.zeros(3)
        self.polarized = False
        self.path = SpatialGridPath(self.position, self.direction)
        self.interaction_cell = -1
        self.interaction_distance = 0.0
        self.traveled_distance = 0.0

    def launch(
        self,
        luminosity: float,
        wavelength: float,
        position: np.ndarray,
        direction: np.ndarray,
        stokes: Optional[Sequence[float]] = None,
    ) -> None:
        """Initialize the packet for a new life cycle."""
        self.luminosity = float(luminosity)
        self.wavelength = float(wavelength)
        self.position = np.array(position, dtype=float)
        self.direction = np.array(direction, dtype=float)
        self.num_scatterings = 0
        self.set_polarized(stokes)
        self._reset_path()

    def set_polarized(self, stokes: Optional[Sequence[float]] = None) -> None:
        """Set the normalized Stokes vector (Q, U, V), or clear polarization."""
        if stokes is None:
            self.stokes = np.zeros(3)
            self.polarized = False
        else:
            self.stokes = np.array(stokes, dtype=float)
            self.polarized = True

    def _reset_path(self) -> None:
        self.path = SpatialGridPath(self.position, self.direction)
        self.interaction_cell = -1
        self.interaction_distance = 0.0
        self.traveled_distance = 0.0

    def propagate(self, distance: float) -> None:
        """Move the packet forward along its direction.

        The path is discarded. A stored interaction point keeps its cell and
        position, so propagating to it leaves an interaction distance of zero.
        The distance from the path origin is kept for the expansion shift.
        """
        cell = self.interaction_cell
        traveled = self.traveled_distance + distance
        remaining = max(0.0, self.interaction_distance - distance)
        self.position = self.position + distance * self.direction
        self._reset_path()
        self.traveled_distance = traveled
        if cell >= 0:
            self.set_interaction(cell, remaining)

    def scatter(self, direction: np.ndarray, bulk_velocity: np.ndarray, wavelength: float) -> None:
        """Record a scattering event.

        The position and luminosity are unchanged. The wavelength is given
        in the frame of the scattering material and converted back to the
        model frame for the new direction.

        Args:
            direction: New propagation direction
            bulk_velocity: Bulk velocity of the scattering material [m/s]
            wavelength: Scattered wavelength in the material frame [m]
        """
        self.direction = np.array(direction, dtype=float)
        self.wavelength = emitted_wavelength(wavelength, self.direction, bulk_velocity)
        self.num_scatterings += 1
        self._reset_path()

    def perceived_wavelength(self, bulk_velocity: np.ndarray, expansion_velocity: float = 0.0) -> float:
        """Wavelength perceived by material moving with the given velocity."""
        if not np.any(bulk_velocity) and expansion_velocity == 0.0:
            return self.wavelength
        return shifted_reception_wavelength(
            self.wavelength, self.direction, bulk_velocity, expansion_velocity
        )

    def set_interaction(self, cell: int, distance: float) -> None:
        """Store the interaction point selected along the current path."""
        self.interaction_cell = int(cell)
        self.interaction_distance = float(distance)

    @property
    def interaction_position(self) -> np.ndarray:
        """Position of the stored interaction point."""
        return self.position + self.interaction_distance * self.direction

    @property
    def expansion_distance(self) -> float:
        """Distance from the path origin to the stored interaction point [m]."""
        return self.traveled_distance + self.interaction_distance

    @property
    def has_interaction(self) -> bool:
        return self.interaction_cell >= 0

    def launch_emission_peel_off(self, source: "PhotonPacket", direction: np.ndarray) -> None:
        """Launch a peel-off copy of a freshly emitted packet toward an instrument."""
        self.luminosity = source.luminosity
        self.wavelength = source.wavelength
        self.position = source.position.copy()
        self.direction = np.array(direction, dtype=float)
        self.num_scatterings = 0
        self.set_polarized(source.stokes if source.polarized else None)
        self._reset_path()

    def launch_scattering_peel_off(
        self,
        source: "PhotonPacket",
        position: np.ndarray,
        direction: np.ndarray,
        bulk_velocity: np.ndarray,
        wavelength: float,
        weight: float,
        stokes: Optional[Sequence[float]] = None,
    ) -> None:
        """Launch a peel-off packet for a scattering event toward an instrument.

        Args:
            source: Packet being scattered
            position: Scattering position [m]
            direction: Direction toward the instrument
            bulk_velocity: Bulk velocity at the scattering position [m/s]
            wavelength: Scattered wavelength in the material frame [m]
            weight: Luminosity bias factor (phase function value)
            stokes: Normalized Stokes parameters, if polarization is tracked
        """
        self.luminosity = source.luminosity * weight
        self.position = np.array(position, dtype=float)
        self.direction = np.array(direction, dtype=float)
        self.wavelength = emitted_wavelength(wavelength, self.direction, bulk_velocity)
        self.num_scatterings = source.num_scatterings + 1
        self.set_polarized(stokes)
        self._reset_path()

    def __repr__(self) -> str:
        return (f"PhotonPacket(L={self.luminosity:.4g} W, lambda={self.wavelength:.4g} m, "
                f"scatterings={self.num_scatterings})")
