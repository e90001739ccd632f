"""
Main Simulation class for medium system runs.

Provides a high-level interface that orchestrates all components:
- Configuration loading and validation
- Medium system setup
- Photon packet life cycles for the primary source and, optionally, for
  secondary dust emission iterated until the absorbed luminosity converges
- Radiation field synchronization and derived outputs
"""

import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from mcrt_medium.config.manager import ConfigurationManager
from mcrt_medium.config.settings import SimulationConfig
from mcrt_medium.core.communicator import ProcessCommunicator, block_range, create_communicator
from mcrt_medium.core.constants import EFFECTIVELY_INFINITE, SMALL_OPTICAL_DEPTH
from mcrt_medium.core.instrument import DistantInstrument
from mcrt_medium.core.medium_system import MediumSystem
from mcrt_medium.core.sources import DustEmissionSource, PointSource
from mcrt_medium.photon.packet import PhotonPacket

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Complete simulation results.

    Attributes:
        wavelengths: Characteristic wavelengths of the radiation field bins [m]
        instrument_sed: Peel-off luminosity per steradian per bin [W/sr]
        absorbed_primary: Dust absorbed luminosity of the primary field [W]
        absorbed_secondary: Dust absorbed luminosity of the stable secondary field [W]
        dust_temperatures: Indicative dust temperature per cell [K]
        gas_temperatures: Indicative gas temperature per cell [K]
        num_secondary_iterations: Number of secondary segments performed
        metadata: Additional metadata about the run
    """
    wavelengths: np.ndarray
    instrument_sed: np.ndarray
    absorbed_primary: float
    absorbed_secondary: float
    dust_temperatures: np.ndarray
    gas_temperatures: np.ndarray
    num_secondary_iterations: int
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "wavelengths": self.wavelengths.tolist(),
            "instrument_sed": self.instrument_sed.tolist(),
            "absorbed_primary": self.absorbed_primary,
            "absorbed_secondary": self.absorbed_secondary,
            "dust_temperatures": self.dust_temperatures.tolist(),
            "gas_temperatures": self.gas_temperatures.tolist(),
            "num_secondary_iterations": self.num_secondary_iterations,
            "metadata": self.metadata,
        }


class Simulation:
    """High-level Monte Carlo simulation through a medium system.

    Example:
        >>> from mcrt_medium import Simulation
        >>> config = {
        ...     "grid": {"shape": [8, 8, 8]},
        ...     "media": [{"kind": "dust", "number_density": 1e6}],
        ...     "photons": {"num_packets": 1000},
        ... }
        >>> sim = Simulation(config)
        >>> result = sim.run()
        >>> print(f"Absorbed: {result.absorbed_primary:.3e} W")
    """

    def __init__(
        self,
        config: Dict[str, Any] | str | SimulationConfig,
        communicator: Optional[ProcessCommunicator] = None,
    ):
        """Initialize the simulation.

        Args:
            config: Configuration dictionary, JSON/YAML path, or SimulationConfig
            communicator: Cross-process collaborator (defaults to the
                configured parallelization mode)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config_manager = ConfigurationManager()
        loaded = self.config_manager.load_config(config)
        self.config = loaded.config
        self.wavelength_grid = loaded.wavelength_grid

        self.communicator = communicator or create_communicator(self.config.system.use_mpi)
        self.medium_system = MediumSystem.from_config(loaded, self.communicator)
        self.source = PointSource(
            self.config.source.position,
            self.config.source.luminosity,
            self.wavelength_grid,
        )
        self.instrument = None
        if self.config.instrument.enabled:
            self.instrument = DistantInstrument(
                self.config.instrument.direction,
                self.wavelength_grid,
                self.communicator,
            )

        self._entropy = np.random.SeedSequence(self.config.system.seed).entropy
        self._segment_index = 0

    # =========================================================================
    # Run
    # =========================================================================

    def run(self) -> SimulationResult:
        """Run the primary segment and any secondary emission segments.

        Returns:
            SimulationResult with instrument SED and derived quantities
        """
        ms = self.medium_system
        ms.setup()
        store = ms.stores_radiation_field

        if self.instrument is not None:
            self.instrument.clear()

        # primary emission
        if store:
            ms.clear_radiation_field(True)
        self.run_segment(self.source, primary=True)
        if store:
            ms.communicate_radiation_field(True)

        # secondary emission
        iterations = 0
        if self.config.medium_system.secondary_emission and ms.has_dust:
            iterations = self._run_secondary_iterations()

        if self.instrument is not None:
            self.instrument.communicate()

        return self._collect_result(iterations)

    def _run_secondary_iterations(self) -> int:
        ms = self.medium_system
        settings = self.config.medium_system
        previous = None
        iterations = 0
        for iteration in range(settings.max_secondary_iterations):
            source = DustEmissionSource(ms)
            if source.luminosity <= 0.0:
                logger.info("No absorbed dust luminosity, skipping secondary emission")
                break

            ms.clear_radiation_field(False)
            self.run_segment(source, primary=False)
            ms.communicate_radiation_field(False)
            iterations += 1

            absorbed = ms.total_absorbed_dust_luminosity(False)
            logger.info(f"Secondary iteration {iteration + 1}: absorbed {absorbed:.4e} W")
            if previous is not None and abs(absorbed - previous) <= settings.secondary_convergence * abs(absorbed):
                logger.info(f"Secondary emission converged after {iterations} iterations")
                break
            previous = absorbed
        return iterations

    def run_segment(self, source, primary: bool) -> None:
        """Launch the configured number of packets from a source.

        Packets are divided over processes, then over worker threads, each
        with an independent random stream.
        """
        num_packets = self.config.photons.num_packets
        if num_packets == 0 or source.luminosity <= 0.0:
            return
        packet_luminosity = source.luminosity / num_packets

        start, stop = self.communicator.block(num_packets)
        num_threads = self.config.system.num_threads
        seed_seq = np.random.SeedSequence(
            self._entropy, spawn_key=(self._segment_index, self.communicator.rank)
        )
        self._segment_index += 1
        streams = seed_seq.spawn(num_threads)

        count = stop - start
        tasks = []
        for t in range(num_threads):
            first, last = block_range(count, t, num_threads)
            if last > first:
                tasks.append((last - first, streams[t]))

        polarization = self.config.photons.polarization

        def work(task: Tuple[int, np.random.SeedSequence]) -> int:
            n, stream = task
            rng = np.random.default_rng(stream)
            pp = PhotonPacket()
            ppp = PhotonPacket()
            truncated = 0
            for _ in range(n):
                source.launch(pp, rng, packet_luminosity)
                if polarization:
                    pp.set_polarized((0.0, 0.0, 0.0))
                if not self.simulate_life_cycle(pp, ppp, rng, primary):
                    truncated += 1
            return truncated

        kind = "primary" if primary else "secondary"
        logger.info(f"Launching {count} {kind} packets on {len(tasks)} threads")
        with ThreadPoolExecutor(max_workers=num_threads) as executor:
            truncated = sum(executor.map(work, tasks))
        if truncated:
            logger.warning(f"{truncated} {kind} packets reached the maximum number of scatterings")

    # =========================================================================
    # Photon life cycle
    # =========================================================================

    def simulate_life_cycle(
        self,
        pp: PhotonPacket,
        ppp: PhotonPacket,
        rng: np.random.Generator,
        primary: bool,
    ) -> bool:
        """Follow a launched packet until it escapes or is terminated.

        Returns:
            False if the packet was cut off by the scattering limit
        """
        ms = self.medium_system
        photons = self.config.photons
        min_luminosity = pp.luminosity / photons.min_weight_reduction

        self.peel_off_emission(pp, ppp)

        while True:
            if photons.forced_scattering:
                ms.set_optical_depths(pp)
                if ms.stores_radiation_field:
                    self.store_radiation_field(pp, primary)
                tau_path = pp.path.total_optical_depth
                if not tau_path > 0.0:
                    return True

                # force the interaction within the path
                interaction_fraction = -math.expm1(-tau_path)
                pp.luminosity *= interaction_fraction
                if pp.luminosity <= min_luminosity:
                    return True
                tau = -math.log1p(-rng.random() * interaction_fraction)
                cell, distance = pp.path.interpolate_distance(tau)
                if cell < 0:
                    return True
                pp.set_interaction(cell, distance)
            else:
                tau = -math.log(1.0 - rng.random())
                if not ms.set_interaction_point(pp, tau):
                    return True

            pp.luminosity *= ms.albedo_for_scattering(pp)
            if pp.luminosity <= min_luminosity:
                return True

            self.peel_off_scattering(pp, ppp)
            pp.propagate(pp.interaction_distance)
            if not ms.simulate_scattering(rng, pp):
                return True
            if pp.num_scatterings >= photons.max_scatterings:
                return False

    def store_radiation_field(self, pp: PhotonPacket, primary: bool) -> None:
        """Tally L·Δs along the forced-scattering path of a packet.

        The luminosity in each segment is averaged over the attenuation
        within the segment: L e^{-τ_in} (1 - e^{-Δτ}) / Δτ.
        """
        ms = self.medium_system
        path = pp.path
        wavelength_grid = self.wavelength_grid
        base_ell = wavelength_grid.bin_index(pp.wavelength)
        tau_in = 0.0
        for i in range(path.num_segments):
            m = int(path.cells[i])
            tau_out = float(path.optical_depths[i])
            if m >= 0:
                attenuation = math.exp(-tau_in)
                if attenuation == 0.0:
                    return
                ds = float(path.lengths[i])
                dtau = tau_out - tau_in
                if dtau > SMALL_OPTICAL_DEPTH:
                    Lds = pp.luminosity * attenuation * -math.expm1(-dtau) / dtau * ds
                else:
                    Lds = pp.luminosity * attenuation * ds
                s_mid = float(path.distances[i]) - 0.5 * ds
                wavelength = ms.perceived_wavelength(pp.wavelength, pp, m, s_mid)
                ell = base_ell if wavelength == pp.wavelength else wavelength_grid.bin_index(wavelength)
                if ell >= 0:
                    ms.store_radiation_field(primary, m, ell, Lds)
            tau_in = tau_out

    def peel_off_emission(self, pp: PhotonPacket, ppp: PhotonPacket) -> None:
        if self.instrument is None:
            return
        ppp.launch_emission_peel_off(pp, self.instrument.direction)
        self._detect(ppp)

    def peel_off_scattering(self, pp: PhotonPacket, ppp: PhotonPacket) -> None:
        if self.instrument is None:
            return
        ms = self.medium_system
        wavelength = ms.perceived_wavelength_for_scattering(pp)
        ok, weights = ms.weights_for_scattering(wavelength, pp)
        if not ok:
            return
        ms.peel_off_scattering(
            wavelength, weights, self.instrument.direction, self.instrument.y_direction, pp, ppp
        )
        self._detect(ppp)

    def _detect(self, ppp: PhotonPacket) -> None:
        tau = self.medium_system.optical_depth_to_distance(ppp, EFFECTIVELY_INFINITE)
        self.instrument.detect(ppp, tau)

    # =========================================================================
    # Output
    # =========================================================================

    def _collect_result(self, iterations: int) -> SimulationResult:
        ms = self.medium_system
        num_cells = ms.num_cells
        store = ms.stores_radiation_field

        if store and ms.has_dust:
            absorbed_primary = ms.total_absorbed_dust_luminosity(True)
            absorbed_secondary = ms.total_absorbed_dust_luminosity(False)
            dust_temperatures = np.array([ms.indicative_dust_temperature(m) for m in range(num_cells)])
        else:
            absorbed_primary = absorbed_secondary = 0.0
            dust_temperatures = np.zeros(num_cells)
        gas_temperatures = np.array([ms.indicative_gas_temperature(m) for m in range(num_cells)])

        sed = self.instrument.sed.copy() if self.instrument is not None else np.zeros(self.wavelength_grid.num_bins)
        metadata = {
            "num_cells": num_cells,
            "num_media": ms.num_media,
            "num_packets": self.config.photons.num_packets,
            "num_processes": self.communicator.size,
            "num_threads": self.config.system.num_threads,
        }
        logger.info(f"Simulation finished: absorbed primary {absorbed_primary:.4e} W, "
                    f"secondary {absorbed_secondary:.4e} W")

        return SimulationResult(
            wavelengths=self.wavelength_grid.wavelengths.copy(),
            instrument_sed=sed,
            absorbed_primary=absorbed_primary,
            absorbed_secondary=absorbed_secondary,
            dust_temperatures=dust_temperatures,
            gas_temperatures=gas_temperatures,
            num_secondary_iterations=iterations,
            metadata=metadata,
        )

    def save_result(self, result: SimulationResult, output_path: str) -> str:
        """Save a simulation result as JSON.

        Args:
            result: SimulationResult to save
            output_path: Output file path

        Returns:
            Path to saved file
        """
        path = Path(output_path)
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        return str(path)

    def probe_optical_depth(
        self,
        wavelength: float,
        axis: str = "z",
        material_type=None,
    ) -> float:
        """Optical depth through the grid center along a coordinate axis.

        Args:
            wavelength: Wavelength [m]
            axis: "x", "y" or "z"
            material_type: Optional MaterialType filter

        Returns:
            Total optical depth from one side of the grid to the other
        """
        ms = self.medium_system
        ms.setup()
        index = "xyz".index(axis)
        direction = np.zeros(3)
        direction[index] = 1.0
        start = np.zeros(3)
        start[index] = -2.0 * float(np.max(np.abs(self.config.grid.extent)))
        path = ms.grid.path(start, direction)
        return ms.optical_depth_along_path(path, wavelength, material_type)
