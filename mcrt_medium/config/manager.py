"""
Configuration Manager for medium system runs.

Handles loading and validation of configurations, and builds the objects
they describe: the spatial grid, the wavelength grid, the material mixes and
the input media.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from mcrt_medium.config.settings import MediumConfig, SimulationConfig
from mcrt_medium.core.errors import ConfigurationError
from mcrt_medium.core.wavelength_grid import WavelengthGrid, wavelength_grid_from_config
from mcrt_medium.geometry.grid import CartesianSpatialGrid, SpatialGrid
from mcrt_medium.materials.base import MaterialMix
from mcrt_medium.materials.dust import PowerLawDustMix
from mcrt_medium.materials.electrons import ElectronMix
from mcrt_medium.materials.gas import GreyGasMix
from mcrt_medium.media.base import Medium
from mcrt_medium.media.geometric import GeometricMedium

logger = logging.getLogger(__name__)

MIX_CLASSES = {
    "dust": PowerLawDustMix,
    "electrons": ElectronMix,
    "gas": GreyGasMix,
}


@dataclass
class LoadedConfiguration:
    """Container for a validated configuration and the objects it describes.

    Attributes:
        config: The simulation configuration settings
        grid: Spatial grid
        wavelength_grid: Radiation field wavelength grid
        media: Input media, in configuration order
    """
    config: SimulationConfig
    grid: SpatialGrid
    wavelength_grid: WavelengthGrid
    media: List[Medium]


class ConfigurationManager:
    """Loads configurations and builds the simulation components.

    Example:
        >>> manager = ConfigurationManager()
        >>> loaded = manager.load_config({
        ...     "media": [{"kind": "electrons", "number_density": 1e8}],
        ...     "grid": {"shape": [4, 4, 4]},
        ... })
        >>> loaded.grid.num_cells
        64
    """

    def __init__(self, base_path: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            base_path: Base path for relative file references.
                      Defaults to current working directory.
        """
        self.base_path = Path(base_path) if base_path else Path.cwd()

    def parse_config(self, config_source: Dict[str, Any] | str | SimulationConfig) -> SimulationConfig:
        """Parse a configuration without validating it.

        Args:
            config_source: Configuration dictionary, JSON/YAML path, or SimulationConfig

        Returns:
            SimulationConfig instance
        """
        if isinstance(config_source, SimulationConfig):
            return config_source
        if isinstance(config_source, dict):
            return SimulationConfig.from_dict(config_source)
        if isinstance(config_source, (str, Path)):
            path = self.resolve_path(str(config_source))
            if path.suffix.lower() == '.json':
                return SimulationConfig.from_json(str(path))
            if path.suffix.lower() in ('.yaml', '.yml'):
                return SimulationConfig.from_yaml(str(path))
            raise ValueError(f"Unsupported config file format: {path.suffix}")
        raise TypeError(f"Invalid config source type: {type(config_source)}")

    def load_config(self, config_source: Dict[str, Any] | str | SimulationConfig) -> LoadedConfiguration:
        """Load, validate and build a complete configuration.

        Args:
            config_source: Configuration dictionary, JSON/YAML path, or SimulationConfig

        Returns:
            LoadedConfiguration with the built grid, wavelength grid and media

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config = self.parse_config(config_source)

        validation_errors = config.validate()
        if validation_errors:
            for error in validation_errors:
                logger.warning(f"Configuration validation error: {error}")
            raise ConfigurationError("Invalid configuration", validation_errors)

        grid = self.build_grid(config)
        wavelength_grid = wavelength_grid_from_config(config.wavelengths)
        media = [self.build_medium(m, i) for i, m in enumerate(config.media)]
        logger.info(f"Loaded configuration: {grid!r}, {len(media)} media, "
                    f"{wavelength_grid.num_bins} wavelength bins")

        return LoadedConfiguration(
            config=config,
            grid=grid,
            wavelength_grid=wavelength_grid,
            media=media,
        )

    @staticmethod
    def build_grid(config: SimulationConfig) -> SpatialGrid:
        """Cartesian spatial grid described by the configuration."""
        return CartesianSpatialGrid(config.grid.extent, config.grid.shape)

    @staticmethod
    def build_mix(kind: str, parameters: Dict[str, Any]) -> MaterialMix:
        """Material mix of the given kind.

        Raises:
            ConfigurationError: If the kind is unknown or a parameter is invalid
        """
        mix_class = MIX_CLASSES.get(kind)
        if mix_class is None:
            raise ConfigurationError(f"Unknown material kind '{kind}'")
        try:
            return mix_class(**parameters)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid {kind} mix parameters: {e}") from e

    def build_medium(self, medium_config: MediumConfig, index: int = 0) -> Medium:
        """Geometric medium described by one medium configuration.

        Raises:
            ConfigurationError: If the medium parameters are invalid
        """
        mix = self.build_mix(medium_config.kind, medium_config.mix)
        try:
            return GeometricMedium(
                mix,
                geometry=medium_config.geometry,
                number_density=medium_config.number_density,
                total_number=medium_config.total_number,
                radius=medium_config.radius,
                scale_length=medium_config.scale_length,
                scale_height=medium_config.scale_height,
                velocity=medium_config.velocity,
                magnetic_field=medium_config.magnetic_field,
                temperature=medium_config.temperature,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid medium {index}: {e}") from e

    def resolve_path(self, path: str) -> Path:
        """Resolve a path relative to base_path.

        Args:
            path: Relative or absolute path string

        Returns:
            Resolved absolute Path
        """
        p = Path(path)
        if p.is_absolute():
            return p
        return (self.base_path / p).resolve()
