"""
Material mix interface.

A material mix describes the optical properties of one kind of material
(dust, electrons, gas) and performs the scattering microphysics. The medium
system aggregates opacities and dispatches scattering events through this
interface only; it never depends on a concrete mix class, except through the
small MaterialType tag.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from mcrt_medium.utils.spectral import shifted_emission_wavelength


class MaterialType(Enum):
    """Fundamental material types."""
    DUST = "dust"
    ELECTRONS = "electrons"
    GAS = "gas"


@dataclass
class MaterialState:
    """Local conditions for one medium component in one cell.

    Attributes:
        cell: Spatial cell index
        number_density: Number density of the component [m^-3]
        bulk_velocity: Aggregate bulk velocity in the cell [m/s]
        magnetic_field: Magnetic field in the cell [T]
        temperature: Temperature of the component [K] (0 if undefined)
    """
    cell: int
    number_density: float
    bulk_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    magnetic_field: np.ndarray = field(default_factory=lambda: np.zeros(3))
    temperature: float = 0.0


class MaterialMix(ABC):
    """Abstract material mix.

    Subclasses provide cross sections per entity; the default opacity
    implementations multiply these by the local number density. Mixes whose
    opacity depends on the packet (for example on its polarization state)
    override the opacity functions.
    """

    @property
    @abstractmethod
    def material_type(self) -> MaterialType:
        """Fundamental material type of the mix."""

    @property
    @abstractmethod
    def mass(self) -> float:
        """Mass per entity [kg]."""

    @property
    def has_constant_sections(self) -> bool:
        """True if cross sections do not depend on local conditions."""
        return True

    @property
    def has_temperature(self) -> bool:
        """True if the mix carries a gas temperature."""
        return False

    @abstractmethod
    def section_abs(self, wavelength):
        """Absorption cross section per entity [m²]; accepts scalars or arrays."""

    @abstractmethod
    def section_sca(self, wavelength):
        """Scattering cross section per entity [m²]; accepts scalars or arrays."""

    def section_ext(self, wavelength):
        """Extinction cross section per entity [m²]."""
        return self.section_abs(wavelength) + self.section_sca(wavelength)

    def opacity_abs(self, wavelength: float, state: MaterialState, pp=None) -> float:
        return state.number_density * float(self.section_abs(wavelength))

    def opacity_sca(self, wavelength: float, state: MaterialState, pp=None) -> float:
        return state.number_density * float(self.section_sca(wavelength))

    def opacity_ext(self, wavelength: float, state: MaterialState, pp=None) -> float:
        return self.opacity_abs(wavelength, state, pp) + self.opacity_sca(wavelength, state, pp)

    @abstractmethod
    def phase_function_value(self, wavelength: float, cos_theta: float) -> float:
        """Phase function value normalized to unity over the unit sphere times 4π."""

    @abstractmethod
    def sample_cos_theta(self, wavelength: float, rng: np.random.Generator) -> float:
        """Random cosine of the scattering angle drawn from the phase function."""

    def scattered_wavelength(self, wavelength: float, state: MaterialState,
                             rng: Optional[np.random.Generator] = None) -> float:
        """Wavelength after scattering, in the frame of the material."""
        return wavelength

    def perform_scattering(
        self,
        wavelength: float,
        state: MaterialState,
        pp,
        rng: np.random.Generator,
    ) -> None:
        """Scatter the packet into a new random direction.

        Args:
            wavelength: Wavelength perceived by the material [m]
            state: Local material state
            pp: Photon packet to update
            rng: Random number generator
        """
        cos_theta = self.sample_cos_theta(wavelength, rng)
        phi = 2.0 * np.pi * rng.random()
        new_direction = rotate_direction(pp.direction, cos_theta, phi)
        new_wavelength = self.scattered_wavelength(wavelength, state, rng)
        pp.scatter(new_direction, state.bulk_velocity, new_wavelength)

    def peel_off_scattering(
        self,
        wavelength: float,
        weight: float,
        observer_direction: np.ndarray,
        y_direction: np.ndarray,
        state: MaterialState,
        pp,
    ) -> Tuple[float, float, float, float, float]:
        """Contribution of this mix to a peel-off toward the observer.

        Returns:
            Tuple (I, Q, U, V, wavelength) with the Stokes contributions
            already multiplied by the weight and the (possibly shifted)
            wavelength in the frame of the material
        """
        cos_theta = float(np.dot(pp.direction, observer_direction))
        value = weight * self.phase_function_value(wavelength, cos_theta)
        return value, 0.0, 0.0, 0.0, wavelength

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.material_type.value})"


def rotate_direction(direction: np.ndarray, cos_theta: float, phi: float) -> np.ndarray:
    """Rotate a unit vector over polar angle theta and azimuth phi around itself."""
    kx, ky, kz = direction
    sin_theta = np.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    cos_phi, sin_phi = np.cos(phi), np.sin(phi)

    if abs(kz) > 0.99999:
        sign = 1.0 if kz > 0 else -1.0
        new = np.array([sin_theta * cos_phi, sin_theta * sin_phi, sign * cos_theta])
    else:
        root = np.sqrt(1.0 - kz * kz)
        new = np.array([
            sin_theta * (kx * kz * cos_phi - ky * sin_phi) / root + kx * cos_theta,
            sin_theta * (ky * kz * cos_phi + kx * sin_phi) / root + ky * cos_theta,
            -sin_theta * cos_phi * root + kz * cos_theta,
        ])
    return new / np.linalg.norm(new)


def emitted_wavelength(wavelength: float, direction: np.ndarray, velocity: np.ndarray) -> float:
    """Rest-frame wavelength for radiation emitted along direction by moving material."""
    if not np.any(velocity):
        return wavelength
    return shifted_emission_wavelength(wavelength, direction, velocity)
