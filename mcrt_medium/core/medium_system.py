"""
Medium System for Monte Carlo radiative transfer.

The medium system combines a spatial grid with one or more input media and
provides everything the photon life cycle needs from the medium:

- the cell and component state, sampled once at setup
- absorption, scattering and extinction opacities per cell
- optical depths along packet paths (full path, forced scattering,
  interaction point search, and distance limited peel-off traces)
- scattering dispatch over the medium components and peel-off toward
  instruments
- the radiation field tally and the quantities derived from it (mean
  intensity, indicative temperatures, absorbed dust luminosity)

Opacities seen by a packet are evaluated at the wavelength perceived by the
material in each cell: the packet wavelength Doppler shifted for the bulk
velocity of the cell and for the cosmological expansion velocity H·s at the
distance s along the path.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from mcrt_medium.core.communicator import ProcessCommunicator, SingleProcessCommunicator
from mcrt_medium.core.constants import (
    DEFAULT_NUM_DENSITY_SAMPLES,
    EFFECTIVELY_INFINITE,
    MAX_NUM_DENSITY_SAMPLES,
    MIN_NUM_DENSITY_SAMPLES,
    MIN_POSITIVE_WEIGHT,
)
from mcrt_medium.core.errors import ConfigurationError
from mcrt_medium.core.medium_state import MediumState
from mcrt_medium.core.optical_depth import (
    cumulative_optical_depths,
    cumulative_optical_depths_constant,
    interpolate_within_segment,
)
from mcrt_medium.core.radiation_field import RadiationField
from mcrt_medium.core.temperature import equilibrium_temperature, mass_weighted_average
from mcrt_medium.core.wavelength_grid import WavelengthGrid
from mcrt_medium.geometry.grid import SpatialGrid
from mcrt_medium.geometry.paths import SpatialGridPath
from mcrt_medium.materials.base import MaterialMix, MaterialType
from mcrt_medium.media.base import Medium
from mcrt_medium.photon.packet import PhotonPacket
from mcrt_medium.utils.spectral import shifted_reception_wavelength

logger = logging.getLogger(__name__)

# Cells handled by one setup task
SETUP_CHUNK_SIZE = 256


class MediumSystem:
    """Spatial grid plus media, with opacity, tracing and radiation field services.

    Args:
        grid: Spatial grid
        media: Input media, one per medium component
        wavelength_grid: Radiation field wavelength grid (required to store
            the radiation field)
        num_density_samples: Random density samples per cell, 0 to sample
            the cell center only
        hubble_expansion_rate: Cosmological expansion rate H [1/s]
        store_radiation_field: Allocate the radiation field tally
        secondary_emission: Allocate the secondary radiation field tables
        num_threads: Worker threads used during setup
        seed: Seed for the density sampling streams
        communicator: Cross-process reduction collaborator

    Example:
        >>> from mcrt_medium.geometry import CartesianSpatialGrid
        >>> from mcrt_medium.materials import ElectronMix
        >>> from mcrt_medium.media import GeometricMedium
        >>> grid = CartesianSpatialGrid([1.0, 1.0, 1.0], [4, 4, 4])
        >>> system = MediumSystem(grid, [GeometricMedium(ElectronMix(), number_density=1e28)])
        >>> system.setup()
        >>> system.opacity_ext(5e-7, 0)
    """

    def __init__(
        self,
        grid: SpatialGrid,
        media: Sequence[Medium],
        wavelength_grid: Optional[WavelengthGrid] = None,
        num_density_samples: int = DEFAULT_NUM_DENSITY_SAMPLES,
        hubble_expansion_rate: float = 0.0,
        store_radiation_field: bool = False,
        secondary_emission: bool = False,
        num_threads: int = 1,
        seed: Optional[int] = None,
        communicator: Optional[ProcessCommunicator] = None,
    ):
        problems = []
        if not media:
            problems.append("at least one medium is required")
        n = num_density_samples
        if n != 0 and not MIN_NUM_DENSITY_SAMPLES <= n <= MAX_NUM_DENSITY_SAMPLES:
            problems.append(
                f"num_density_samples must be 0 or between {MIN_NUM_DENSITY_SAMPLES} "
                f"and {MAX_NUM_DENSITY_SAMPLES}, got {n}"
            )
        if store_radiation_field and wavelength_grid is None:
            problems.append("storing the radiation field requires a wavelength grid")
        if secondary_emission and not store_radiation_field:
            problems.append("secondary emission requires storing the radiation field")
        if hubble_expansion_rate < 0:
            problems.append("hubble_expansion_rate must be non-negative")
        if problems:
            raise ConfigurationError("Invalid medium system", problems)

        self.grid = grid
        self.media = list(media)
        self.wavelength_grid = wavelength_grid
        self.num_density_samples = int(num_density_samples)
        self.hubble_expansion_rate = float(hubble_expansion_rate)
        self.store_radiation = bool(store_radiation_field)
        self.secondary_emission = bool(secondary_emission)
        self.num_threads = max(1, int(num_threads))
        self.seed = seed
        self.communicator = communicator or SingleProcessCommunicator()

        self._state: Optional[MediumState] = None
        self._radiation_field: Optional[RadiationField] = None
        self._components_by_type: Dict[Optional[MaterialType], List[int]] = {}
        self._has_moving_media = False
        self._constant_sections = False

    @classmethod
    def from_config(cls, loaded, communicator: Optional[ProcessCommunicator] = None) -> "MediumSystem":
        """Create a medium system from a LoadedConfiguration."""
        config = loaded.config
        return cls(
            loaded.grid,
            loaded.media,
            wavelength_grid=loaded.wavelength_grid,
            num_density_samples=config.medium_system.num_density_samples,
            hubble_expansion_rate=config.medium_system.hubble_expansion_rate,
            store_radiation_field=config.medium_system.store_radiation_field,
            secondary_emission=config.medium_system.secondary_emission,
            num_threads=config.system.num_threads,
            seed=config.system.seed,
            communicator=communicator,
        )

    # =========================================================================
    # Setup
    # =========================================================================

    def setup(self) -> None:
        """Set up the grid and the media, then sample the cell state.

        Safe to call repeatedly; only the first call has an effect.

        Raises:
            ConfigurationError: If more than one medium defines a magnetic
                field, or a cell has a non-positive volume
        """
        if self._state is not None:
            return

        self.grid.setup()
        for medium in self.media:
            medium.setup()

        field_media = [h for h, medium in enumerate(self.media) if medium.has_magnetic_field]
        if len(field_media) > 1:
            raise ConfigurationError(
                f"At most one medium can define a magnetic field, found {len(field_media)}"
            )

        num_cells = self.grid.num_cells
        num_media = len(self.media)
        state = MediumState(num_cells, num_media)
        self._assign_mixes(state)
        self._sample_state(state)

        if np.any(state.volumes <= 0):
            raise ConfigurationError("Every cell of the spatial grid must have a positive volume")

        self._state = state
        self._has_moving_media = any(medium.has_velocity for medium in self.media)
        self._constant_sections = all(
            state.first_mix(h).has_constant_sections and not state.mix_per_cell(h)
            for h in range(num_media)
        )
        self._components_by_type = {None: list(range(num_media))}
        for material_type in MaterialType:
            self._components_by_type[material_type] = [
                h for h in range(num_media) if state.first_mix(h).material_type == material_type
            ]

        if self.store_radiation:
            self._radiation_field = RadiationField(
                num_cells,
                self.wavelength_grid.num_bins,
                secondary=self.secondary_emission,
                communicator=self.communicator,
            )

        logger.info(
            f"Medium system set up: {num_cells} cells, {num_media} media, "
            f"{self.num_density_samples} density samples per cell"
        )

    def _assign_mixes(self, state: MediumState) -> None:
        # object references are resolved locally on every process
        for h, medium in enumerate(self.media):
            if medium.has_variable_mix:
                mixes = [medium.mix(self.grid.central_position(m)) for m in range(state.num_cells)]
                state.set_cell_mixes(h, mixes)
            else:
                state.set_mix(h, medium.mix())

    def _sample_state(self, state: MediumState) -> None:
        start, stop = self.communicator.block(state.num_cells)
        entropy = np.random.SeedSequence(self.seed).entropy

        chunks = [(first, min(first + SETUP_CHUNK_SIZE, stop))
                  for first in range(start, stop, SETUP_CHUNK_SIZE)]

        def task(chunk: Tuple[int, int]) -> None:
            first, last = chunk
            rng = np.random.default_rng(np.random.SeedSequence(entropy, spawn_key=(first,)))
            for m in range(first, last):
                self._sample_cell(state, m, rng)
            logger.debug(f"Sampled cells {first}..{last - 1}")

        with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
            # list() propagates exceptions raised in the tasks
            list(executor.map(task, chunks))

        for buffer in state.buffers():
            self.communicator.sum_all(buffer)

    def _sample_cell(self, state: MediumState, m: int, rng: np.random.Generator) -> None:
        grid = self.grid
        center = grid.central_position(m)
        if self.num_density_samples > 0:
            positions = [grid.random_position_in_cell(m, rng) for _ in range(self.num_density_samples)]
        else:
            positions = [center]

        state.volumes[m] = grid.volume(m)

        momentum = np.zeros(3)
        total_density = 0.0
        temperatures = []
        masses = []
        for h, medium in enumerate(self.media):
            n = float(np.mean([medium.number_density(p) for p in positions]))
            state.number_densities[m, h] = n
            total_density += n

            if medium.has_velocity:
                momentum += n * medium.bulk_velocity(center)
            if medium.has_magnetic_field:
                state.magnetic_fields[m] = medium.magnetic_field(center)
            if medium.has_temperature:
                T = medium.temperature(center)
                state.temperatures[m, h] = T
                temperatures.append(T)
                masses.append(n * medium.mix(center).mass)

        if total_density > 0.0:
            state.velocities[m] = momentum / total_density
        state.gas_temperatures[m] = mass_weighted_average(temperatures, masses)

    def _require_setup(self) -> None:
        if self._state is None:
            raise RuntimeError("The medium system has not been set up")

    @property
    def state(self) -> MediumState:
        """Cell and component state; available after setup."""
        self._require_setup()
        return self._state

    # =========================================================================
    # Cell and component state
    # =========================================================================

    @property
    def num_cells(self) -> int:
        return self.state.num_cells

    @property
    def num_media(self) -> int:
        return len(self.media)

    @property
    def dimension(self) -> int:
        """Highest symmetry dimension among the media."""
        return max(medium.dimension for medium in self.media)

    @property
    def grid_dimension(self) -> int:
        return self.grid.dimension

    def volume(self, m: int) -> float:
        return self.state.volume(m)

    def bulk_velocity(self, m: int) -> np.ndarray:
        """Density weighted average bulk velocity in cell m."""
        return self.state.bulk_velocity(m)

    def magnetic_field(self, m: int) -> np.ndarray:
        """Magnetic field in cell m (null vector if no medium defines one)."""
        return self.state.magnetic_field(m)

    def number_density(self, m: int, h: int) -> float:
        return self.state.number_density(m, h)

    def mass_density(self, m: int, h: int) -> float:
        return self.state.mass_density(m, h)

    def temperature(self, m: int, h: int) -> float:
        """Temperature of component h in cell m; undefined if h has no temperature."""
        return self.state.temperature(m, h)

    def mix(self, m: int, h: int) -> MaterialMix:
        return self.state.mix(m, h)

    def has_material_type(self, material_type: MaterialType) -> bool:
        return bool(self._components(material_type))

    def is_material_type(self, material_type: MaterialType, h: int) -> bool:
        return self.state.first_mix(h).material_type == material_type

    @property
    def has_dust(self) -> bool:
        return self.has_material_type(MaterialType.DUST)

    @property
    def has_electrons(self) -> bool:
        return self.has_material_type(MaterialType.ELECTRONS)

    @property
    def has_gas(self) -> bool:
        return self.has_material_type(MaterialType.GAS)

    def _components(self, material_type: Optional[MaterialType]) -> List[int]:
        self._require_setup()
        return self._components_by_type[material_type]

    # =========================================================================
    # Opacities
    # =========================================================================

    def perceived_wavelength(self, wavelength: float, pp: PhotonPacket, m: int, distance: float) -> float:
        """Wavelength perceived in cell m by a packet at the given distance along its path."""
        expansion_velocity = self.hubble_expansion_rate * distance
        if not self._has_moving_media and expansion_velocity == 0.0:
            return wavelength
        velocity = self._state.velocities[m]
        return shifted_reception_wavelength(wavelength, pp.direction, velocity, expansion_velocity)

    def _opacity_abs(self, wavelength: float, m: int, h: int, pp: Optional[PhotonPacket] = None) -> float:
        state = self._state
        if state.number_densities[m, h] <= 0.0:
            return 0.0
        return state.mix(m, h).opacity_abs(wavelength, state.material_state(m, h), pp)

    def _opacity_sca(self, wavelength: float, m: int, h: int, pp: Optional[PhotonPacket] = None) -> float:
        state = self._state
        if state.number_densities[m, h] <= 0.0:
            return 0.0
        return state.mix(m, h).opacity_sca(wavelength, state.material_state(m, h), pp)

    def _opacity_ext(self, wavelength: float, m: int, h: int, pp: Optional[PhotonPacket] = None) -> float:
        state = self._state
        if state.number_densities[m, h] <= 0.0:
            return 0.0
        return state.mix(m, h).opacity_ext(wavelength, state.material_state(m, h), pp)

    def _cell_extinction(self, wavelength: float, m: int, pp: Optional[PhotonPacket] = None) -> float:
        return sum(self._opacity_ext(wavelength, m, h, pp) for h in range(self.num_media))

    def _packet_wavelength(self, wavelength: float, m: int, pp: Optional[PhotonPacket]) -> float:
        if pp is None:
            return wavelength
        return self.perceived_wavelength(wavelength, pp, m, pp.expansion_distance)

    def opacity_abs(
        self,
        wavelength: float,
        m: int,
        material_type: Optional[MaterialType] = None,
        pp: Optional[PhotonPacket] = None,
    ) -> float:
        """Absorption opacity [1/m] in cell m summed over components of a material type.

        Args:
            wavelength: Wavelength in the model frame [m]
            m: Cell index
            material_type: Material type filter (None for all components)
            pp: Optional packet; if given, the wavelength is shifted to the
                wavelength perceived in cell m and the packet is passed to
                the material mixes
        """
        wavelength = self._packet_wavelength(wavelength, m, pp)
        return sum(self._opacity_abs(wavelength, m, h, pp) for h in self._components(material_type))

    def opacity_sca(
        self,
        wavelength: float,
        m: int,
        material_type: Optional[MaterialType] = None,
        pp: Optional[PhotonPacket] = None,
    ) -> float:
        """Scattering opacity [1/m] in cell m summed over components of a material type."""
        wavelength = self._packet_wavelength(wavelength, m, pp)
        return sum(self._opacity_sca(wavelength, m, h, pp) for h in self._components(material_type))

    def opacity_ext(
        self,
        wavelength: float,
        m: int,
        material_type: Optional[MaterialType] = None,
        pp: Optional[PhotonPacket] = None,
    ) -> float:
        """Extinction opacity [1/m] in cell m summed over components of a material type.

        Without a material type this is the total extinction opacity of the cell.
        """
        wavelength = self._packet_wavelength(wavelength, m, pp)
        return sum(self._opacity_ext(wavelength, m, h, pp) for h in self._components(material_type))

    # =========================================================================
    # Optical depth
    # =========================================================================

    def optical_depth_along_path(
        self,
        path: SpatialGridPath,
        wavelength: float,
        material_type: Optional[MaterialType] = None,
    ) -> float:
        """Total optical depth of a geometric path for a material type filter.

        Opacities are evaluated without a packet (unpolarized, unshifted).
        """
        components = self._components(material_type)
        if not components or not path.num_segments:
            return 0.0

        if self._constant_sections:
            state = self._state
            sections = np.array([state.first_mix(h).section_ext(wavelength) for h in components],
                                dtype=float)
            densities = np.ascontiguousarray(state.number_densities[:, components])
            out = np.empty(path.num_segments)
            cumulative_optical_depths_constant(path.cells, path.lengths, densities, sections, out)
            return float(out[-1])

        tau = 0.0
        for m, ds in zip(path.cells, path.lengths):
            if m >= 0:
                tau += ds * sum(self._opacity_ext(wavelength, m, h) for h in components)
        return tau

    def set_optical_depths(self, pp: PhotonPacket) -> None:
        """Store the path of a packet with cumulative optical depths (forced scattering).

        The geometric path is materialized first; the optical depth at each
        segment exit boundary is then written into it, with zero optical
        depth at the path entry.
        """
        state = self.state
        path = self.grid.path(pp.position, pp.direction)
        out = np.empty(path.num_segments)

        if (self._constant_sections and not self._has_moving_media
                and self.hubble_expansion_rate == 0.0 and not pp.polarized):
            sections = np.array([state.first_mix(h).section_ext(pp.wavelength)
                                 for h in range(self.num_media)], dtype=float)
            cumulative_optical_depths_constant(path.cells, path.lengths, state.number_densities,
                                               sections, out)
        else:
            extinctions = np.zeros(path.num_segments)
            for i in range(path.num_segments):
                m = path.cells[i]
                if m >= 0:
                    s_mid = path.distances[i] - 0.5 * path.lengths[i]
                    wavelength = self.perceived_wavelength(pp.wavelength, pp, m, s_mid)
                    extinctions[i] = self._cell_extinction(wavelength, m, pp)
            cumulative_optical_depths(path.lengths, extinctions, out)

        path.optical_depths = out
        pp.path = path

    def set_interaction_point(self, pp: PhotonPacket, tau_scat: float) -> bool:
        """Find the point along the packet path where the optical depth reaches tau_scat.

        Segments are traversed lazily and the search stops as soon as the
        target optical depth is reached. On success the interaction cell and
        distance are stored in the packet.

        Returns:
            True if the interaction point lies on the path, False if the path
            leaves the grid first
        """
        self._require_setup()
        tau = 0.0
        s = 0.0
        for m, ds in self.grid.traverse(pp.position, pp.direction):
            if m >= 0:
                wavelength = self.perceived_wavelength(pp.wavelength, pp, m, s + 0.5 * ds)
                dtau = ds * self._cell_extinction(wavelength, m, pp)
                if tau + dtau > tau_scat:
                    distance = interpolate_within_segment(tau_scat, tau, tau + dtau, s, ds)
                    pp.set_interaction(m, distance)
                    return True
                tau += dtau
            s += ds
        return False

    def optical_depth_to_distance(self, pp: PhotonPacket, distance: float) -> float:
        """Optical depth along the packet path up to a distance (peel-off).

        Only segments entered before the given distance are included. Once
        the optical depth exceeds ln(L / L_min), with L the packet weight and
        L_min the smallest positive double, the attenuated weight can no
        longer be represented and EFFECTIVELY_INFINITE is returned.
        """
        self._require_setup()
        if pp.luminosity <= 0.0:
            return EFFECTIVELY_INFINITE
        tau_max = math.log(pp.luminosity) - math.log(MIN_POSITIVE_WEIGHT)

        tau = 0.0
        s = 0.0
        for m, ds in self.grid.traverse(pp.position, pp.direction):
            if s >= distance:
                break
            if m >= 0:
                wavelength = self.perceived_wavelength(pp.wavelength, pp, m, s + 0.5 * ds)
                tau += ds * self._cell_extinction(wavelength, m, pp)
                if tau > tau_max:
                    return EFFECTIVELY_INFINITE
            s += ds
        return tau

    # =========================================================================
    # Scattering
    # =========================================================================

    def perceived_wavelength_for_scattering(self, pp: PhotonPacket) -> float:
        """Wavelength perceived by the material at the packet's interaction point."""
        return self.perceived_wavelength(pp.wavelength, pp, pp.interaction_cell, pp.expansion_distance)

    def albedo_for_scattering(self, pp: PhotonPacket) -> float:
        """Scattering albedo of the medium at the packet's interaction point."""
        m = pp.interaction_cell
        wavelength = self.perceived_wavelength_for_scattering(pp)
        sca = sum(self._opacity_sca(wavelength, m, h, pp) for h in range(self.num_media))
        ext = sum(self._opacity_ext(wavelength, m, h, pp) for h in range(self.num_media))
        return sca / ext if ext > 0.0 else 0.0

    def weights_for_scattering(self, wavelength: float, pp: PhotonPacket) -> Tuple[bool, np.ndarray]:
        """Relative scattering opacities of the components at the interaction point.

        Args:
            wavelength: Wavelength perceived at the interaction point [m]
            pp: Packet with a stored interaction point

        Returns:
            Tuple (ok, weights); weights sum to one when ok is True, and ok
            is False when every component has zero scattering opacity
        """
        m = pp.interaction_cell
        weights = np.array([self._opacity_sca(wavelength, m, h, pp) for h in range(self.num_media)],
                           dtype=float)
        total = float(np.sum(weights))
        if not total > 0.0:
            return False, np.zeros(self.num_media)
        return True, weights / total

    def simulate_scattering(self, rng: np.random.Generator, pp: PhotonPacket) -> bool:
        """Scatter the packet at its interaction point.

        A single component scatters directly. Otherwise a component is drawn
        with probabilities proportional to the scattering opacities and its
        material mix updates the direction, wavelength and polarization. The
        position and luminosity of the packet are unchanged; the scattering
        count increases by one.

        Returns:
            True if the packet was scattered, False if no component scatters
            at the interaction point (the packet is left unchanged)
        """
        m = pp.interaction_cell
        wavelength = self.perceived_wavelength_for_scattering(pp)

        if self.num_media == 1:
            h = 0
        else:
            ok, weights = self.weights_for_scattering(wavelength, pp)
            if not ok:
                return False
            h = int(np.searchsorted(np.cumsum(weights), rng.random(), side="right"))
            h = min(h, self.num_media - 1)

        state = self._state
        state.mix(m, h).perform_scattering(wavelength, state.material_state(m, h), pp, rng)
        return True

    def peel_off_scattering(
        self,
        wavelength: float,
        weights: np.ndarray,
        observer_direction: np.ndarray,
        y_direction: np.ndarray,
        pp: PhotonPacket,
        ppp: PhotonPacket,
    ) -> None:
        """Launch a scattering peel-off packet toward an instrument.

        Each component with a positive weight contributes its weighted
        luminosity and Stokes vector. If more than one component shifts the
        wavelength, the shift of the last one is kept.

        Args:
            wavelength: Wavelength perceived at the interaction point [m]
            weights: Relative scattering opacities from weights_for_scattering
            observer_direction: Direction toward the instrument
            y_direction: Instrument y axis, the reference for polarization
            pp: Packet being scattered
            ppp: Placeholder packet receiving the peel-off
        """
        m = pp.interaction_cell
        state = self._state
        I = Q = U = V = 0.0
        peel_wavelength = wavelength
        for h, w in enumerate(weights):
            if w > 0.0:
                i, q, u, v, shifted = state.mix(m, h).peel_off_scattering(
                    wavelength, w, observer_direction, y_direction, state.material_state(m, h), pp
                )
                I += i
                Q += q
                U += u
                V += v
                if shifted != wavelength:
                    peel_wavelength = shifted

        stokes = None
        if pp.polarized and I > 0.0:
            stokes = (Q / I, U / I, V / I)
        ppp.launch_scattering_peel_off(
            pp, pp.interaction_position, observer_direction, state.velocities[m],
            peel_wavelength, I, stokes,
        )

    # =========================================================================
    # Radiation field
    # =========================================================================

    @property
    def radiation_field(self) -> RadiationField:
        if self._radiation_field is None:
            raise RuntimeError("The radiation field is not recorded by this medium system")
        return self._radiation_field

    @property
    def stores_radiation_field(self) -> bool:
        return self.store_radiation

    def clear_radiation_field(self, primary: bool) -> None:
        self.radiation_field.clear(primary)

    def store_radiation_field(self, primary: bool, m: int, ell: int, Lds: float) -> None:
        """Add the luminosity times path length of a packet segment to the tally."""
        self._radiation_field.store(primary, m, ell, Lds)

    def communicate_radiation_field(self, primary: bool) -> None:
        self.radiation_field.communicate(primary)

    # =========================================================================
    # Derived quantities
    # =========================================================================

    def mean_intensity(self, m: int) -> np.ndarray:
        """Mean intensity J_λ [W/m²/sr/m] per wavelength bin in cell m.

        Requires that the radiation field has been communicated.
        """
        factor = 1.0 / (4.0 * math.pi * self.state.volume(m))
        return self.radiation_field.row(m) * factor / self.wavelength_grid.widths

    def dust_absorption_opacities(self, m: int) -> np.ndarray:
        """Dust absorption opacity [1/m] in cell m at each radiation field wavelength."""
        wavelengths = self.wavelength_grid.wavelengths
        result = np.zeros(len(wavelengths))
        state = self._state
        for h in self._components(MaterialType.DUST):
            n = state.number_densities[m, h]
            if n > 0.0:
                mix = state.mix(m, h)
                if mix.has_constant_sections:
                    result += n * mix.section_abs(wavelengths)
                else:
                    material_state = state.material_state(m, h)
                    result += [mix.opacity_abs(w, material_state) for w in wavelengths]
        return result

    def indicative_dust_temperature(self, m: int) -> float:
        """Mass weighted LTE equilibrium temperature of the dust in cell m (0 without dust)."""
        state = self.state
        wavelengths = self.wavelength_grid.wavelengths
        widths = self.wavelength_grid.widths
        J = self.mean_intensity(m)

        temperatures = []
        masses = []
        for h in self._components(MaterialType.DUST):
            rho = state.mass_density(m, h)
            if rho > 0.0:
                sections = state.mix(m, h).section_abs(wavelengths)
                temperatures.append(equilibrium_temperature(sections, J, wavelengths, widths))
                masses.append(rho)
        return mass_weighted_average(temperatures, masses)

    def absorbed_dust_luminosity(self, m: int) -> float:
        """Bolometric luminosity [W] absorbed by dust in cell m."""
        return float(np.sum(self.dust_absorption_opacities(m) * self.radiation_field.row(m)))

    def total_absorbed_dust_luminosity(self, primary: bool) -> float:
        """Bolometric luminosity [W] absorbed by dust in the whole grid.

        Uses only the primary table, or only the stable secondary table.
        """
        table = self.radiation_field.table(primary)
        return float(sum(np.sum(self.dust_absorption_opacities(m) * table[m])
                         for m in range(self.num_cells)))

    def indicative_gas_temperature(self, m: int) -> float:
        """Mass weighted temperature of the components that define one (0 if none)."""
        return self.state.gas_temperature(m)

    def __repr__(self) -> str:
        return f"MediumSystem({self.grid!r}, {len(self.media)} media)"
