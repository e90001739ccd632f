"""
Distant peel-off instrument.

Records the luminosity per unit solid angle leaving the model toward a
fixed observer direction, per radiation field wavelength bin. Peel-off
packets are attenuated by the optical depth between their launch position
and the edge of the grid.
"""

import logging
import math
import threading
from typing import Any, Dict, Optional, Sequence

import numpy as np

from mcrt_medium.core.communicator import ProcessCommunicator, SingleProcessCommunicator
from mcrt_medium.core.constants import EFFECTIVELY_INFINITE
from mcrt_medium.core.wavelength_grid import WavelengthGrid
from mcrt_medium.photon.packet import PhotonPacket

logger = logging.getLogger(__name__)


class DistantInstrument:
    """Observer at infinity recording a spectral energy distribution.

    Args:
        direction: Direction from the model toward the observer
        wavelength_grid: Wavelength bins of the recorded SED
        communicator: Cross-process reduction collaborator
    """

    def __init__(
        self,
        direction: Sequence[float],
        wavelength_grid: WavelengthGrid,
        communicator: Optional[ProcessCommunicator] = None,
    ):
        k = np.asarray(direction, dtype=float)
        self.direction = k / np.linalg.norm(k)
        # instrument y axis, perpendicular to the line of sight
        helper = np.array([0.0, 0.0, 1.0]) if abs(self.direction[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
        y = helper - np.dot(helper, self.direction) * self.direction
        self.y_direction = y / np.linalg.norm(y)

        self.wavelength_grid = wavelength_grid
        self.communicator = communicator or SingleProcessCommunicator()
        self.sed = np.zeros(wavelength_grid.num_bins)
        self._lock = threading.Lock()

    def detect(self, ppp: PhotonPacket, optical_depth: float) -> None:
        """Record a peel-off packet attenuated by the given optical depth."""
        if optical_depth == EFFECTIVELY_INFINITE:
            return
        ell = self.wavelength_grid.bin_index(ppp.wavelength)
        if ell < 0:
            return
        value = ppp.luminosity * math.exp(-optical_depth) / (4.0 * math.pi)
        with self._lock:
            np.add.at(self.sed, ell, value)

    def clear(self) -> None:
        self.sed.fill(0.0)

    def communicate(self) -> None:
        """Sum the recorded SED over all processes."""
        self.communicator.sum_all(self.sed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.tolist(),
            "wavelength": self.wavelength_grid.wavelengths.tolist(),
            "luminosity_per_sr": self.sed.tolist(),
        }
