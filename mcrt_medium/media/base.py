"""
Input medium models.

A medium describes the spatial distribution of one material component: its
number density, and optionally its bulk velocity, magnetic field and
temperature. The medium system samples these once at setup to populate its
cell state.
"""

from abc import ABC, abstractmethod

import numpy as np

from mcrt_medium.materials.base import MaterialMix, MaterialType


class Medium(ABC):
    """
    Abstract base class for input media.

    Subclasses implement the density distribution; velocity, magnetic field
    and temperature default to absent.
    """

    def __init__(self):
        self._setup_done = False

    def setup(self) -> None:
        """Perform one-time initialization."""
        if self._setup_done:
            return
        self._setup_done = True
        self._setup_self()

    def _setup_self(self) -> None:
        pass

    @property
    def dimension(self) -> int:
        """Symmetry dimension of the medium (1, 2 or 3)."""
        return 3

    @abstractmethod
    def mix(self, position: np.ndarray = None) -> MaterialMix:
        """
        Material mix at the given position.

        Parameters
        ----------
        position : ndarray, optional
            Position in m; media without a variable mix ignore it

        Returns
        -------
        mix : MaterialMix
        """
        pass

    @property
    def has_variable_mix(self) -> bool:
        """True if the material mix depends on position."""
        return False

    @property
    def material_type(self) -> MaterialType:
        """Material type shared by every mix of this medium."""
        return self.mix().material_type

    @abstractmethod
    def number_density(self, position: np.ndarray) -> float:
        """
        Number density at a position.

        Parameters
        ----------
        position : ndarray
            Position in m

        Returns
        -------
        density : float
            Number density in m^-3
        """
        pass

    @property
    def has_velocity(self) -> bool:
        return False

    def bulk_velocity(self, position: np.ndarray) -> np.ndarray:
        """Bulk velocity at a position in m/s."""
        return np.zeros(3)

    @property
    def has_magnetic_field(self) -> bool:
        return False

    def magnetic_field(self, position: np.ndarray) -> np.ndarray:
        """Magnetic field at a position in T."""
        return np.zeros(3)

    @property
    def has_temperature(self) -> bool:
        return False

    def temperature(self, position: np.ndarray) -> float:
        """Temperature at a position in K (0 if undefined)."""
        return 0.0
