"""
Tests for configuration loading and validation.
"""

import json

import pytest
import yaml

from mcrt_medium.config.manager import ConfigurationManager
from mcrt_medium.config.settings import MediumConfig, SimulationConfig
from mcrt_medium.core.errors import ConfigurationError
from mcrt_medium.core.medium_system import MediumSystem
from mcrt_medium.materials import ElectronMix, GreyGasMix, MaterialType, PowerLawDustMix


def minimal_config():
    return {
        "system": {"num_threads": 2, "seed": 11},
        "wavelengths": {"min_wavelength": 1e-7, "max_wavelength": 1e-4, "num_bins": 8},
        "grid": {"extent": [1.0, 1.0, 1.0], "shape": [3, 3, 3]},
        "media": [
            {"kind": "dust", "geometry": "exponential", "number_density": 1e20,
             "scale_length": 0.5, "scale_height": 0.2, "mix": {"albedo": 0.4}},
            {"kind": "electrons", "number_density": 1e25, "velocity": [0.0, 0.0, 1e5]},
        ],
        "medium_system": {"num_density_samples": 0},
        "photons": {"num_packets": 100},
    }


class TestSimulationConfig:
    """Tests for SimulationConfig."""

    def test_defaults(self):
        """Test default values."""
        config = SimulationConfig()
        assert config.system.num_threads == 4
        assert config.system.seed is None
        assert config.wavelengths.num_bins == 50
        assert config.grid.shape == [10, 10, 10]
        assert config.medium_system.num_density_samples == 100
        assert config.medium_system.store_radiation_field
        assert not config.medium_system.secondary_emission
        assert config.photons.forced_scattering
        assert config.media == []

    def test_from_dict(self):
        """Test construction from a dictionary."""
        config = SimulationConfig.from_dict(minimal_config())
        assert config.system.seed == 11
        assert config.wavelengths.num_bins == 8
        assert config.grid.shape == [3, 3, 3]
        assert len(config.media) == 2
        assert config.media[0].kind == "dust"
        assert config.media[0].mix == {"albedo": 0.4}
        assert config.media[1].velocity == [0.0, 0.0, 1e5]
        assert config.photons.num_packets == 100

    def test_dict_round_trip(self):
        """Test that to_dict reproduces an equivalent configuration."""
        config = SimulationConfig.from_dict(minimal_config())
        again = SimulationConfig.from_dict(config.to_dict())
        assert again == config

    def test_json_file(self, tmp_path):
        """Test saving and loading JSON files."""
        config = SimulationConfig.from_dict(minimal_config())
        path = tmp_path / "config.json"
        config.to_json(str(path))

        with open(path) as f:
            assert json.load(f)["grid"]["shape"] == [3, 3, 3]
        assert SimulationConfig.from_json(str(path)) == config

    def test_yaml_file(self, tmp_path):
        """Test loading YAML files."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(minimal_config()))
        config = SimulationConfig.from_yaml(str(path))
        assert config == SimulationConfig.from_dict(minimal_config())

    def test_empty_yaml(self, tmp_path):
        """Test that an empty YAML document gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert SimulationConfig.from_yaml(str(path)) == SimulationConfig()

    def test_medium_config_round_trip(self):
        medium = MediumConfig(kind="gas", number_density=2.0, temperature=80.0,
                              mix={"section_abs": 1e-30})
        assert MediumConfig.from_dict(medium.to_dict()) == medium


class TestValidation:
    """Tests for SimulationConfig.validate."""

    def test_valid(self):
        assert SimulationConfig.from_dict(minimal_config()).validate() == []

    def test_no_media(self):
        errors = SimulationConfig().validate()
        assert "at least one medium is required" in errors

    @pytest.mark.parametrize("samples", [1, 9, 1001])
    def test_density_samples(self, samples):
        """Test the allowed number of density samples."""
        d = minimal_config()
        d["medium_system"]["num_density_samples"] = samples
        errors = SimulationConfig.from_dict(d).validate()
        assert any("num_density_samples" in e for e in errors)

    def test_secondary_requires_field(self):
        d = minimal_config()
        d["medium_system"].update(secondary_emission=True, store_radiation_field=False)
        errors = SimulationConfig.from_dict(d).validate()
        assert "secondary_emission requires store_radiation_field" in errors

    def test_field_requires_forced_scattering(self):
        d = minimal_config()
        d["photons"]["forced_scattering"] = False
        errors = SimulationConfig.from_dict(d).validate()
        assert "storing the radiation field requires forced_scattering" in errors

    def test_medium_errors(self):
        """Test per-medium validation messages."""
        d = minimal_config()
        d["media"] = [
            {"kind": "plasma", "number_density": 1.0},
            {"kind": "gas", "geometry": "spiral"},
            {"kind": "gas", "number_density": -1.0},
            {"kind": "gas", "total_number": 10.0},
        ]
        errors = SimulationConfig.from_dict(d).validate()
        assert "medium 0: invalid kind 'plasma'" in errors
        assert "medium 1: invalid geometry 'spiral'" in errors
        assert "medium 1: specify exactly one of number_density and total_number" in errors
        assert "medium 2: number_density must be non-negative" in errors
        assert "medium 3: total_number requires a finite radius" in errors

    def test_two_magnetic_fields(self):
        d = minimal_config()
        for medium in d["media"]:
            medium["magnetic_field"] = [0.0, 0.0, 1e-9]
        errors = SimulationConfig.from_dict(d).validate()
        assert "at most one medium can define a magnetic field" in errors

    def test_grid_and_wavelengths(self):
        d = minimal_config()
        d["grid"] = {"extent": [1.0, -1.0, 1.0], "shape": [3, 0, 3]}
        d["wavelengths"] = {"min_wavelength": 1e-4, "max_wavelength": 1e-7}
        errors = SimulationConfig.from_dict(d).validate()
        assert "grid extent must be positive" in errors
        assert "grid shape must be at least 1 along each axis" in errors
        assert "min_wavelength must be less than max_wavelength" in errors

    def test_instrument_direction(self):
        d = minimal_config()
        d["instrument"] = {"direction": [0.0, 0.0, 0.0]}
        errors = SimulationConfig.from_dict(d).validate()
        assert "instrument direction must be a non-zero 3-vector" in errors


class TestConfigurationManager:
    """Tests for ConfigurationManager."""

    def test_load_dict(self):
        """Test loading and building from a dictionary."""
        loaded = ConfigurationManager().load_config(minimal_config())
        assert loaded.grid.num_cells == 27
        assert loaded.wavelength_grid.num_bins == 8
        assert len(loaded.media) == 2
        assert loaded.media[0].material_type == MaterialType.DUST
        assert isinstance(loaded.media[0].mix(), PowerLawDustMix)
        assert isinstance(loaded.media[1].mix(), ElectronMix)
        assert loaded.media[1].has_velocity

    def test_load_relative_path(self, tmp_path):
        """Test resolving a configuration path against the base path."""
        (tmp_path / "run.yml").write_text(yaml.safe_dump(minimal_config()))
        loaded = ConfigurationManager(base_path=str(tmp_path)).load_config("run.yml")
        assert loaded.config.system.seed == 11

    def test_unsupported_format(self, tmp_path):
        (tmp_path / "run.txt").write_text("")
        with pytest.raises(ValueError):
            ConfigurationManager(base_path=str(tmp_path)).load_config("run.txt")

    def test_invalid_configuration(self):
        """Test that validation problems are collected in the error."""
        d = minimal_config()
        d["media"] = []
        d["photons"]["num_packets"] = -1
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationManager().load_config(d)
        assert "at least one medium is required" in exc_info.value.problems
        assert "num_packets must be non-negative" in exc_info.value.problems

    def test_build_mix(self):
        mix = ConfigurationManager.build_mix("gas", {"section_abs": 1e-30, "section_sca": 2e-30})
        assert isinstance(mix, GreyGasMix)
        assert mix.section_ext(1e-6) == pytest.approx(3e-30)

    def test_unknown_mix_kind(self):
        with pytest.raises(ConfigurationError):
            ConfigurationManager.build_mix("plasma", {})

    @pytest.mark.parametrize("parameters", [{"albedo": 2.0}, {"colour": "grey"}])
    def test_bad_mix_parameters(self, parameters):
        """Test that invalid mix parameters become configuration errors."""
        with pytest.raises(ConfigurationError):
            ConfigurationManager.build_mix("dust", parameters)

    def test_medium_system_from_config(self):
        """Test building the medium system from a loaded configuration."""
        loaded = ConfigurationManager().load_config(minimal_config())
        system = MediumSystem.from_config(loaded)
        system.setup()
        assert system.num_cells == 27
        assert system.num_media == 2
        assert system.stores_radiation_field
        assert system.dimension == 3
