"""
Simulation configuration data structures.

Defines the configuration schema of a medium system run: parallelization,
the radiation field wavelength grid, the spatial grid, the media, the
medium system options, the photon life cycle, the source and the
instrument. All quantities are in SI units.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import yaml

from mcrt_medium.core.constants import (
    ASTRONOMICAL_UNIT,
    DEFAULT_NUM_DENSITY_SAMPLES,
    MAX_NUM_DENSITY_SAMPLES,
    MIN_NUM_DENSITY_SAMPLES,
    SOLAR_LUMINOSITY,
)

MEDIUM_KINDS = ("dust", "electrons", "gas")
MEDIUM_GEOMETRIES = ("uniform", "exponential")


@dataclass
class SystemConfig:
    """System-level configuration settings.

    Attributes:
        num_threads: Number of worker threads per process
        seed: Seed of the random number streams (None for OS entropy)
        use_mpi: Merge results across MPI processes
    """
    num_threads: int = 4
    seed: Optional[int] = None
    use_mpi: bool = False


@dataclass
class WavelengthConfig:
    """Radiation field wavelength grid.

    Attributes:
        min_wavelength: Shortest wavelength [m]
        max_wavelength: Longest wavelength [m]
        num_bins: Number of wavelength bins
        log_spacing: Logarithmically spaced bins
    """
    min_wavelength: float = 1e-7
    max_wavelength: float = 1e-3
    num_bins: int = 50
    log_spacing: bool = True


@dataclass
class GridConfig:
    """Cartesian spatial grid centered on the origin.

    Attributes:
        extent: Half-size of the box along x, y, z [m]
        shape: Number of cells along x, y, z
    """
    extent: List[float] = field(default_factory=lambda: [ASTRONOMICAL_UNIT] * 3)
    shape: List[int] = field(default_factory=lambda: [10, 10, 10])


@dataclass
class MediumConfig:
    """One medium component.

    Attributes:
        kind: Material kind (dust, electrons, gas)
        geometry: Density geometry (uniform, exponential)
        number_density: Central number density [m^-3]
        total_number: Total number of entities (alternative normalization)
        radius: Radius of a uniform sphere [m] (None fills all space)
        scale_length: Radial scale length of an exponential disk [m]
        scale_height: Vertical scale height of an exponential disk [m]
        velocity: Constant bulk velocity [m/s]
        magnetic_field: Constant magnetic field [T]
        temperature: Constant temperature [K]
        mix: Keyword arguments of the material mix
    """
    kind: str = "dust"
    geometry: str = "uniform"
    number_density: Optional[float] = None
    total_number: Optional[float] = None
    radius: Optional[float] = None
    scale_length: float = ASTRONOMICAL_UNIT
    scale_height: float = ASTRONOMICAL_UNIT
    velocity: Optional[List[float]] = None
    magnetic_field: Optional[List[float]] = None
    temperature: Optional[float] = None
    mix: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, medium_dict: Dict[str, Any]) -> "MediumConfig":
        return cls(
            kind=medium_dict.get("kind", "dust"),
            geometry=medium_dict.get("geometry", "uniform"),
            number_density=medium_dict.get("number_density"),
            total_number=medium_dict.get("total_number"),
            radius=medium_dict.get("radius"),
            scale_length=medium_dict.get("scale_length", ASTRONOMICAL_UNIT),
            scale_height=medium_dict.get("scale_height", ASTRONOMICAL_UNIT),
            velocity=medium_dict.get("velocity"),
            magnetic_field=medium_dict.get("magnetic_field"),
            temperature=medium_dict.get("temperature"),
            mix=dict(medium_dict.get("mix", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "geometry": self.geometry,
            "number_density": self.number_density,
            "total_number": self.total_number,
            "radius": self.radius,
            "scale_length": self.scale_length,
            "scale_height": self.scale_height,
            "velocity": self.velocity,
            "magnetic_field": self.magnetic_field,
            "temperature": self.temperature,
            "mix": dict(self.mix),
        }


@dataclass
class MediumSystemConfig:
    """Medium system options.

    Attributes:
        num_density_samples: Random density samples per cell (0 samples the center)
        hubble_expansion_rate: Cosmological expansion rate [1/s]
        store_radiation_field: Record the radiation field
        secondary_emission: Launch dust emission packets after the primary segment
        max_secondary_iterations: Maximum number of secondary segments
        secondary_convergence: Relative change of the absorbed secondary
            luminosity below which secondary iteration stops
    """
    num_density_samples: int = DEFAULT_NUM_DENSITY_SAMPLES
    hubble_expansion_rate: float = 0.0
    store_radiation_field: bool = True
    secondary_emission: bool = False
    max_secondary_iterations: int = 5
    secondary_convergence: float = 0.01


@dataclass
class PhotonConfig:
    """Photon life cycle options.

    Attributes:
        num_packets: Number of packets per segment
        forced_scattering: Use forced scattering
        min_weight_reduction: Terminate packets whose weight dropped by this factor
        max_scatterings: Terminate packets after this many scatterings
        polarization: Track the polarization state
    """
    num_packets: int = 10000
    forced_scattering: bool = True
    min_weight_reduction: float = 1e4
    max_scatterings: int = 1000
    polarization: bool = False


@dataclass
class SourceConfig:
    """Isotropic point source with a flat spectrum in ln(wavelength).

    Attributes:
        position: Source position [m]
        luminosity: Bolometric luminosity within the wavelength range [W]
    """
    position: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    luminosity: float = SOLAR_LUMINOSITY


@dataclass
class InstrumentConfig:
    """Distant peel-off instrument.

    Attributes:
        enabled: Record peel-off luminosity
        direction: Direction from the model toward the observer
    """
    enabled: bool = True
    direction: List[float] = field(default_factory=lambda: [0.0, 0.0, 1.0])


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Example YAML input:
        system: {num_threads: 4, seed: 42}
        wavelengths: {min_wavelength: 1.0e-7, max_wavelength: 1.0e-3, num_bins: 40}
        grid: {extent: [1.5e11, 1.5e11, 1.5e11], shape: [20, 20, 20]}
        media:
          - {kind: dust, geometry: uniform, number_density: 1.0e6, mix: {albedo: 0.6}}
        photons: {num_packets: 20000}
    """
    system: SystemConfig = field(default_factory=SystemConfig)
    wavelengths: WavelengthConfig = field(default_factory=WavelengthConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    media: List[MediumConfig] = field(default_factory=list)
    medium_system: MediumSystemConfig = field(default_factory=MediumSystemConfig)
    photons: PhotonConfig = field(default_factory=PhotonConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    instrument: InstrumentConfig = field(default_factory=InstrumentConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SimulationConfig":
        """Create SimulationConfig from a dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            SimulationConfig instance
        """
        sys_dict = config_dict.get("system", {})
        system = SystemConfig(
            num_threads=sys_dict.get("num_threads", 4),
            seed=sys_dict.get("seed"),
            use_mpi=sys_dict.get("use_mpi", False),
        )

        wl_dict = config_dict.get("wavelengths", {})
        wavelengths = WavelengthConfig(
            min_wavelength=wl_dict.get("min_wavelength", 1e-7),
            max_wavelength=wl_dict.get("max_wavelength", 1e-3),
            num_bins=wl_dict.get("num_bins", 50),
            log_spacing=wl_dict.get("log_spacing", True),
        )

        grid_dict = config_dict.get("grid", {})
        grid = GridConfig(
            extent=list(grid_dict.get("extent", [ASTRONOMICAL_UNIT] * 3)),
            shape=list(grid_dict.get("shape", [10, 10, 10])),
        )

        media = [MediumConfig.from_dict(m) for m in config_dict.get("media", [])]

        ms_dict = config_dict.get("medium_system", {})
        medium_system = MediumSystemConfig(
            num_density_samples=ms_dict.get("num_density_samples", DEFAULT_NUM_DENSITY_SAMPLES),
            hubble_expansion_rate=ms_dict.get("hubble_expansion_rate", 0.0),
            store_radiation_field=ms_dict.get("store_radiation_field", True),
            secondary_emission=ms_dict.get("secondary_emission", False),
            max_secondary_iterations=ms_dict.get("max_secondary_iterations", 5),
            secondary_convergence=ms_dict.get("secondary_convergence", 0.01),
        )

        ph_dict = config_dict.get("photons", {})
        photons = PhotonConfig(
            num_packets=ph_dict.get("num_packets", 10000),
            forced_scattering=ph_dict.get("forced_scattering", True),
            min_weight_reduction=ph_dict.get("min_weight_reduction", 1e4),
            max_scatterings=ph_dict.get("max_scatterings", 1000),
            polarization=ph_dict.get("polarization", False),
        )

        src_dict = config_dict.get("source", {})
        source = SourceConfig(
            position=list(src_dict.get("position", [0.0, 0.0, 0.0])),
            luminosity=src_dict.get("luminosity", SOLAR_LUMINOSITY),
        )

        ins_dict = config_dict.get("instrument", {})
        instrument = InstrumentConfig(
            enabled=ins_dict.get("enabled", True),
            direction=list(ins_dict.get("direction", [0.0, 0.0, 1.0])),
        )

        return cls(
            system=system,
            wavelengths=wavelengths,
            grid=grid,
            media=media,
            medium_system=medium_system,
            photons=photons,
            source=source,
            instrument=instrument,
        )

    @classmethod
    def from_json(cls, json_path: str) -> "SimulationConfig":
        """Load configuration from a JSON file.

        Args:
            json_path: Path to JSON configuration file

        Returns:
            SimulationConfig instance
        """
        with open(json_path, 'r') as f:
            config_dict = json.load(f)
        return cls.from_dict(config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "SimulationConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            SimulationConfig instance
        """
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        return cls.from_dict(config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Configuration as nested dictionary
        """
        return {
            "system": {
                "num_threads": self.system.num_threads,
                "seed": self.system.seed,
                "use_mpi": self.system.use_mpi,
            },
            "wavelengths": {
                "min_wavelength": self.wavelengths.min_wavelength,
                "max_wavelength": self.wavelengths.max_wavelength,
                "num_bins": self.wavelengths.num_bins,
                "log_spacing": self.wavelengths.log_spacing,
            },
            "grid": {
                "extent": list(self.grid.extent),
                "shape": list(self.grid.shape),
            },
            "media": [m.to_dict() for m in self.media],
            "medium_system": {
                "num_density_samples": self.medium_system.num_density_samples,
                "hubble_expansion_rate": self.medium_system.hubble_expansion_rate,
                "store_radiation_field": self.medium_system.store_radiation_field,
                "secondary_emission": self.medium_system.secondary_emission,
                "max_secondary_iterations": self.medium_system.max_secondary_iterations,
                "secondary_convergence": self.medium_system.secondary_convergence,
            },
            "photons": {
                "num_packets": self.photons.num_packets,
                "forced_scattering": self.photons.forced_scattering,
                "min_weight_reduction": self.photons.min_weight_reduction,
                "max_scatterings": self.photons.max_scatterings,
                "polarization": self.photons.polarization,
            },
            "source": {
                "position": list(self.source.position),
                "luminosity": self.source.luminosity,
            },
            "instrument": {
                "enabled": self.instrument.enabled,
                "direction": list(self.instrument.direction),
            },
        }

    def to_json(self, json_path: str, indent: int = 2) -> None:
        """Save configuration to JSON file.

        Args:
            json_path: Output file path
            indent: JSON indentation level
        """
        with open(json_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=indent)

    def validate(self) -> list:
        """Validate configuration parameters.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.system.num_threads < 1:
            errors.append("num_threads must be at least 1")

        # Wavelength grid
        wl = self.wavelengths
        if wl.min_wavelength <= 0:
            errors.append("min_wavelength must be positive")
        if wl.min_wavelength >= wl.max_wavelength:
            errors.append("min_wavelength must be less than max_wavelength")
        if wl.num_bins < 1:
            errors.append("num_bins must be at least 1")

        # Spatial grid
        if len(self.grid.extent) != 3 or len(self.grid.shape) != 3:
            errors.append("grid extent and shape must have three components")
        else:
            if any(e <= 0 for e in self.grid.extent):
                errors.append("grid extent must be positive")
            if any(n < 1 for n in self.grid.shape):
                errors.append("grid shape must be at least 1 along each axis")

        # Media
        if not self.media:
            errors.append("at least one medium is required")
        for i, medium in enumerate(self.media):
            if medium.kind not in MEDIUM_KINDS:
                errors.append(f"medium {i}: invalid kind '{medium.kind}'")
            if medium.geometry not in MEDIUM_GEOMETRIES:
                errors.append(f"medium {i}: invalid geometry '{medium.geometry}'")
            if (medium.number_density is None) == (medium.total_number is None):
                errors.append(f"medium {i}: specify exactly one of number_density and total_number")
            elif medium.number_density is not None and medium.number_density < 0:
                errors.append(f"medium {i}: number_density must be non-negative")
            elif medium.total_number is not None and medium.total_number < 0:
                errors.append(f"medium {i}: total_number must be non-negative")
            if (medium.total_number is not None and medium.geometry == "uniform"
                    and medium.radius is None):
                errors.append(f"medium {i}: total_number requires a finite radius")
            if medium.temperature is not None and medium.temperature < 0:
                errors.append(f"medium {i}: temperature must be non-negative")
        if sum(1 for m in self.media if m.magnetic_field is not None) > 1:
            errors.append("at most one medium can define a magnetic field")

        # Medium system
        ms = self.medium_system
        n = ms.num_density_samples
        if n != 0 and not MIN_NUM_DENSITY_SAMPLES <= n <= MAX_NUM_DENSITY_SAMPLES:
            errors.append(
                f"num_density_samples must be 0 or between {MIN_NUM_DENSITY_SAMPLES} "
                f"and {MAX_NUM_DENSITY_SAMPLES}"
            )
        if ms.hubble_expansion_rate < 0:
            errors.append("hubble_expansion_rate must be non-negative")
        if ms.secondary_emission and not ms.store_radiation_field:
            errors.append("secondary_emission requires store_radiation_field")
        if ms.max_secondary_iterations < 1:
            errors.append("max_secondary_iterations must be at least 1")
        if ms.secondary_convergence <= 0:
            errors.append("secondary_convergence must be positive")

        # Photon life cycle
        ph = self.photons
        if ph.num_packets < 0:
            errors.append("num_packets must be non-negative")
        if ms.store_radiation_field and not ph.forced_scattering:
            errors.append("storing the radiation field requires forced_scattering")
        if ph.min_weight_reduction <= 1:
            errors.append("min_weight_reduction must be larger than 1")
        if ph.max_scatterings < 0:
            errors.append("max_scatterings must be non-negative")

        # Source and instrument
        if self.source.luminosity < 0:
            errors.append("source luminosity must be non-negative")
        if len(self.source.position) != 3:
            errors.append("source position must have three components")
        if len(self.instrument.direction) != 3 or not any(self.instrument.direction):
            errors.append("instrument direction must be a non-zero 3-vector")

        return errors
