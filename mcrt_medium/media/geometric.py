"""
Analytic geometric media.

Implements:
- Uniform spheres (or uniform media filling all space)
- Exponential disks, n(R, z) = n0 exp(-R/h_R - |z|/h_z)

The density is normalized either by the central number density or by the
total number of entities, using the analytic volume integral of the
geometry.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from mcrt_medium.materials.base import MaterialMix
from mcrt_medium.media.base import Medium

logger = logging.getLogger(__name__)

GEOMETRIES = ("uniform", "exponential")


class GeometricMedium(Medium):
    """
    Medium with an analytic density distribution.

    Parameters
    ----------
    mix : MaterialMix
        Material mix of the medium
    geometry : str
        "uniform" or "exponential"
    number_density : float, optional
        Central number density in m^-3
    total_number : float, optional
        Total number of entities; requires a finite geometry
    radius : float, optional
        Radius of the uniform sphere in m; None fills all space
    scale_length : float
        Radial scale length h_R of the exponential disk in m
    scale_height : float
        Vertical scale height h_z of the exponential disk in m
    velocity : sequence of float, optional
        Constant bulk velocity in m/s
    magnetic_field : sequence of float, optional
        Constant magnetic field in T
    temperature : float, optional
        Constant temperature in K
    inner_mix : MaterialMix, optional
        Mix used inside ``mix_radius``; makes the mix position dependent
    mix_radius : float
        Radius in m within which ``inner_mix`` applies

    Examples
    --------
    >>> from mcrt_medium.materials import ElectronMix
    >>> medium = GeometricMedium(ElectronMix(), "uniform", number_density=1e6)
    >>> medium.number_density(np.zeros(3))
    1000000.0
    """

    def __init__(
        self,
        mix: MaterialMix,
        geometry: str = "uniform",
        number_density: Optional[float] = None,
        total_number: Optional[float] = None,
        radius: Optional[float] = None,
        scale_length: float = 1.0,
        scale_height: float = 1.0,
        velocity: Optional[Sequence[float]] = None,
        magnetic_field: Optional[Sequence[float]] = None,
        temperature: Optional[float] = None,
        inner_mix: Optional[MaterialMix] = None,
        mix_radius: float = 0.0,
    ):
        super().__init__()
        if geometry not in GEOMETRIES:
            raise ValueError(f"Unknown geometry '{geometry}', expected one of {GEOMETRIES}")
        if (number_density is None) == (total_number is None):
            raise ValueError("Specify exactly one of number_density and total_number")
        if scale_length <= 0 or scale_height <= 0:
            raise ValueError("Scale length and height must be positive")
        if inner_mix is not None and inner_mix.material_type != mix.material_type:
            raise ValueError("All mixes of a medium must have the same material type")

        self._mix = mix
        self._inner_mix = inner_mix
        self.mix_radius = float(mix_radius)
        self.geometry = geometry
        self.radius = None if radius is None else float(radius)
        self.scale_length = float(scale_length)
        self.scale_height = float(scale_height)

        if number_density is not None:
            self.central_density = float(number_density)
        else:
            volume = self.effective_volume()
            if not math.isfinite(volume):
                raise ValueError("total_number requires a finite geometry")
            self.central_density = float(total_number) / volume

        self._velocity = None if velocity is None else np.asarray(velocity, dtype=float)
        self._magnetic_field = (
            None if magnetic_field is None else np.asarray(magnetic_field, dtype=float)
        )
        self._temperature = None if temperature is None else float(temperature)

    def effective_volume(self) -> float:
        """
        Volume integral of the normalized density shape.

        Returns
        -------
        volume : float
            Integral of n(r)/n0 over all space in m³ (inf if unbounded)
        """
        if self.geometry == "uniform":
            if self.radius is None:
                return math.inf
            return 4.0 / 3.0 * math.pi * self.radius**3
        return 4.0 * math.pi * self.scale_length**2 * self.scale_height

    @property
    def dimension(self) -> int:
        if self._velocity is not None or self._magnetic_field is not None:
            return 3
        if self.geometry == "uniform":
            return 1
        return 2

    def mix(self, position: np.ndarray = None) -> MaterialMix:
        if (self._inner_mix is not None and position is not None
                and np.linalg.norm(position) < self.mix_radius):
            return self._inner_mix
        return self._mix

    @property
    def has_variable_mix(self) -> bool:
        return self._inner_mix is not None

    def number_density(self, position: np.ndarray) -> float:
        x, y, z = position
        if self.geometry == "uniform":
            if self.radius is not None and x * x + y * y + z * z > self.radius**2:
                return 0.0
            return self.central_density
        R = math.sqrt(x * x + y * y)
        return self.central_density * math.exp(-R / self.scale_length - abs(z) / self.scale_height)

    @property
    def has_velocity(self) -> bool:
        return self._velocity is not None

    def bulk_velocity(self, position: np.ndarray) -> np.ndarray:
        if self._velocity is None:
            return np.zeros(3)
        return self._velocity.copy()

    @property
    def has_magnetic_field(self) -> bool:
        return self._magnetic_field is not None

    def magnetic_field(self, position: np.ndarray) -> np.ndarray:
        if self._magnetic_field is None:
            return np.zeros(3)
        return self._magnetic_field.copy()

    @property
    def has_temperature(self) -> bool:
        return self._temperature is not None

    def temperature(self, position: np.ndarray) -> float:
        return 0.0 if self._temperature is None else self._temperature

    def __repr__(self) -> str:
        return (f"GeometricMedium({self._mix!r}, geometry={self.geometry}, "
                f"n0={self.central_density:.4g} m^-3)")
