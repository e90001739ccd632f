"""
Unit tests for opacity aggregation.

Tests the extinction identity, material type filters, the perceived
wavelength (Doppler and expansion shifts) and the scattering albedo.
"""

import numpy as np
import pytest

from mcrt_medium.core.constants import SPEED_OF_LIGHT, THOMSON_CROSS_SECTION
from mcrt_medium.core.medium_system import MediumSystem
from mcrt_medium.geometry.grid import CartesianSpatialGrid
from mcrt_medium.materials import ElectronMix, GreyGasMix, MaterialType, PowerLawDustMix
from mcrt_medium.media.geometric import GeometricMedium
from mcrt_medium.photon.packet import PhotonPacket


@pytest.fixture
def grid():
    return CartesianSpatialGrid([1.0, 1.0, 1.0], [2, 2, 2])


@pytest.fixture
def mixed_system(grid):
    media = [
        GeometricMedium(PowerLawDustMix(albedo=0.3, slope=1.5), number_density=1e25),
        GeometricMedium(ElectronMix(), number_density=1e27),
        GeometricMedium(GreyGasMix(section_abs=2e-28, section_sca=1e-28), number_density=1e26),
    ]
    system = MediumSystem(grid, media, num_density_samples=0)
    system.setup()
    return system


class TestOpacityAggregation:
    """Tests for aggregated opacities."""

    @pytest.mark.parametrize("wavelength", [1e-7, 5.5e-7, 2e-6, 1e-4])
    def test_extinction_identity(self, mixed_system, wavelength):
        """Test k_ext = k_abs + k_sca per cell."""
        for m in range(mixed_system.num_cells):
            k_abs = mixed_system.opacity_abs(wavelength, m)
            k_sca = mixed_system.opacity_sca(wavelength, m)
            k_ext = mixed_system.opacity_ext(wavelength, m)
            assert np.isclose(k_ext, k_abs + k_sca, rtol=1e-12)

    def test_material_type_filter(self, mixed_system):
        """Test that the filters sum to the unfiltered total."""
        wavelength = 5.5e-7
        total = mixed_system.opacity_ext(wavelength, 0)
        parts = sum(mixed_system.opacity_ext(wavelength, 0, t) for t in MaterialType)
        assert np.isclose(total, parts, rtol=1e-12)

    def test_electron_opacity(self, mixed_system):
        """Test electron extinction n σ_T and zero absorption."""
        k = mixed_system.opacity_ext(5.5e-7, 0, MaterialType.ELECTRONS)
        assert np.isclose(k, 1e27 * THOMSON_CROSS_SECTION)
        assert mixed_system.opacity_abs(5.5e-7, 0, MaterialType.ELECTRONS) == 0.0

    def test_gas_opacity(self, mixed_system):
        """Test grey gas absorption and scattering opacities."""
        assert np.isclose(mixed_system.opacity_abs(1e-6, 3, MaterialType.GAS), 1e26 * 2e-28)
        assert np.isclose(mixed_system.opacity_sca(1e-6, 3, MaterialType.GAS), 1e26 * 1e-28)

    def test_missing_type_is_zero(self, grid):
        """Test that filtering on an absent material type gives zero."""
        system = MediumSystem(grid, [GeometricMedium(ElectronMix(), number_density=1e27)])
        system.setup()
        assert system.opacity_ext(5.5e-7, 0, MaterialType.DUST) == 0.0

    def test_empty_cell(self, grid):
        """Test that a cell without material has zero opacity."""
        medium = GeometricMedium(ElectronMix(), number_density=1e27, radius=0.1)
        system = MediumSystem(grid, [medium], num_density_samples=0)
        system.setup()
        assert system.opacity_ext(5.5e-7, 0) == 0.0


class TestPerceivedWavelength:
    """Tests for opacities at the wavelength perceived by moving material."""

    def test_doppler_shift(self, grid):
        """Test that a moving medium sees the Doppler shifted wavelength."""
        v = np.array([0.0, 0.0, 3.0e6])
        mix = PowerLawDustMix(albedo=0.5, slope=2.0)
        medium = GeometricMedium(mix, number_density=1e25, velocity=v)
        system = MediumSystem(grid, [medium], num_density_samples=0)
        system.setup()

        pp = PhotonPacket()
        pp.launch(1.0, 5.5e-7, np.zeros(3), np.array([0.0, 0.0, 1.0]))

        shifted = 5.5e-7 * (1.0 - v[2] / SPEED_OF_LIGHT)
        assert np.isclose(system.perceived_wavelength(5.5e-7, pp, 0, 0.0), shifted)

        expected = 1e25 * mix.section_ext(shifted)
        assert np.isclose(system.opacity_ext(5.5e-7, 0, pp=pp), expected, rtol=1e-10)
        # without a packet, no shift applies
        assert np.isclose(system.opacity_ext(5.5e-7, 0), 1e25 * mix.section_ext(5.5e-7), rtol=1e-10)

    def test_expansion_shift(self, grid):
        """Test the cosmological expansion shift at the interaction distance."""
        H = 1.0e5
        mix = PowerLawDustMix(albedo=0.5, slope=1.0)
        system = MediumSystem(grid, [GeometricMedium(mix, number_density=1e25)],
                              num_density_samples=0, hubble_expansion_rate=H)
        system.setup()

        pp = PhotonPacket()
        pp.launch(1.0, 1e-6, np.zeros(3), np.array([1.0, 0.0, 0.0]))
        pp.set_interaction(7, 0.5)

        shifted = 1e-6 * (1.0 + H * 0.5 / SPEED_OF_LIGHT)
        assert np.isclose(system.perceived_wavelength_for_scattering(pp), shifted)
        assert np.isclose(system.opacity_ext(1e-6, 7, pp=pp), 1e25 * mix.section_ext(shifted),
                          rtol=1e-10)

    def test_static_medium_no_shift(self, grid):
        """Test that the wavelength is unchanged without motion or expansion."""
        system = MediumSystem(grid, [GeometricMedium(ElectronMix(), number_density=1.0)])
        system.setup()
        pp = PhotonPacket()
        pp.launch(1.0, 1e-6, np.zeros(3), np.array([0.0, 1.0, 0.0]))
        assert system.perceived_wavelength(1e-6, pp, 0, 10.0) == 1e-6


class TestAlbedo:
    """Tests for the scattering albedo at the interaction point."""

    def test_dust_albedo(self, grid):
        """Test that the albedo matches the dust mix albedo."""
        system = MediumSystem(grid, [GeometricMedium(PowerLawDustMix(albedo=0.3), number_density=1e25)])
        system.setup()
        pp = PhotonPacket()
        pp.launch(1.0, 5.5e-7, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        pp.set_interaction(0, 0.0)
        assert system.albedo_for_scattering(pp) == pytest.approx(0.3, rel=1e-5)

    def test_pure_scatterer(self, grid):
        """Test unit albedo for electrons."""
        system = MediumSystem(grid, [GeometricMedium(ElectronMix(), number_density=1e27)])
        system.setup()
        pp = PhotonPacket()
        pp.launch(1.0, 5.5e-7, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        pp.set_interaction(4, 0.0)
        assert system.albedo_for_scattering(pp) == pytest.approx(1.0)

    def test_empty_cell_albedo(self, grid):
        """Test zero albedo where the extinction vanishes."""
        system = MediumSystem(grid, [GeometricMedium(ElectronMix(), number_density=0.0)])
        system.setup()
        pp = PhotonPacket()
        pp.launch(1.0, 5.5e-7, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        pp.set_interaction(0, 0.0)
        assert system.albedo_for_scattering(pp) == 0.0
