"""Tests for material mixes, input media, spectral shifts and photon packets."""

import math

import numpy as np
import pytest

from mcrt_medium.core.constants import ELECTRON_MASS, SPEED_OF_LIGHT, THOMSON_CROSS_SECTION
from mcrt_medium.materials import (
    ElectronMix,
    GreyGasMix,
    MaterialState,
    MaterialType,
    PowerLawDustMix,
    TabulatedDustMix,
)
from mcrt_medium.materials.base import rotate_direction
from mcrt_medium.media.geometric import GeometricMedium
from mcrt_medium.photon.packet import PhotonPacket
from mcrt_medium.utils.spectral import (
    planck_function,
    shifted_emission_wavelength,
    shifted_reception_wavelength,
)


class TestElectronMix:
    """Tests for Thomson scattering."""

    def test_cross_sections(self):
        mix = ElectronMix()
        assert mix.material_type == MaterialType.ELECTRONS
        assert mix.mass == ELECTRON_MASS
        assert mix.section_sca(5e-7) == THOMSON_CROSS_SECTION
        assert mix.section_abs(5e-7) == 0.0
        assert np.all(mix.section_sca(np.array([1e-7, 1e-6])) == THOMSON_CROSS_SECTION)

    def test_phase_function_normalized(self):
        """Test that the dipole phase function averages to one."""
        mix = ElectronMix()
        mu = np.linspace(-1.0, 1.0, 2001)
        values = np.array([mix.phase_function_value(5e-7, m) for m in mu])
        # Simpson's rule is exact for the quadratic dipole shape
        h = mu[1] - mu[0]
        integral = h / 3.0 * (values[0] + values[-1] + 4.0 * values[1:-1:2].sum()
                              + 2.0 * values[2:-1:2].sum())
        assert integral / 2.0 == pytest.approx(1.0, rel=1e-10)

    def test_sampled_angles(self):
        """Test the second moment <mu²> = 0.4 of the dipole distribution."""
        mix = ElectronMix()
        rng = np.random.default_rng(1)
        mu = np.array([mix.sample_cos_theta(5e-7, rng) for _ in range(20000)])
        assert np.all(np.abs(mu) <= 1.0)
        assert np.mean(mu) == pytest.approx(0.0, abs=0.02)
        assert np.mean(mu * mu) == pytest.approx(0.4, abs=0.01)


class TestDustMixes:
    """Tests for tabulated and power-law dust."""

    def test_power_law_ratio(self):
        """Test sigma ~ lambda^-beta between two wavelengths."""
        mix = PowerLawDustMix(slope=1.5, albedo=0.3)
        ratio = mix.section_ext(1e-6) / mix.section_ext(4e-6)
        assert ratio == pytest.approx(4.0 ** 1.5, rel=1e-5)

    def test_reference_extinction(self):
        mix = PowerLawDustMix(reference_extinction=2e-26, reference_wavelength=5.5e-7)
        assert mix.section_ext(5.5e-7) == pytest.approx(2e-26, rel=1e-5)

    def test_albedo(self):
        mix = PowerLawDustMix(albedo=0.3)
        for wavelength in (2e-7, 1e-5):
            assert mix.section_sca(wavelength) / mix.section_ext(wavelength) == pytest.approx(0.3, rel=1e-5)

    def test_zero_albedo(self):
        """Test that a non-scattering dust mix has exactly zero scattering."""
        mix = PowerLawDustMix(albedo=0.0)
        assert mix.section_sca(5.5e-7) == 0.0
        assert np.all(mix.section_sca(np.array([1e-7, 1e-5])) == 0.0)
        assert mix.section_abs(5.5e-7) > 0.0

    def test_array_queries(self):
        mix = PowerLawDustMix()
        wavelengths = np.array([1e-7, 1e-6, 1e-5])
        sections = mix.section_abs(wavelengths)
        assert sections.shape == (3,)
        assert np.all(np.diff(sections) < 0)

    def test_henyey_greenstein_normalized(self):
        """Test that the HG phase function averages to one over the sphere."""
        mix = PowerLawDustMix(asymmetry=0.5)
        n = 400000
        mu = -1.0 + (np.arange(n) + 0.5) * (2.0 / n)
        g = mix.asymmetry
        values = (1.0 - g * g) / (1.0 + g * g - 2.0 * g * mu) ** 1.5
        assert mix.phase_function_value(5e-7, 0.2) == pytest.approx(
            (1.0 - g * g) / (1.0 + g * g - 0.4 * g) ** 1.5)
        assert np.mean(values) == pytest.approx(1.0, rel=1e-6)

    @pytest.mark.parametrize("asymmetry", [0.0, 0.3, -0.6])
    def test_henyey_greenstein_mean(self, asymmetry):
        """Test that the sampled mean cosine equals g."""
        mix = PowerLawDustMix(asymmetry=asymmetry)
        rng = np.random.default_rng(7)
        mu = np.array([mix.sample_cos_theta(5e-7, rng) for _ in range(20000)])
        assert np.mean(mu) == pytest.approx(asymmetry, abs=0.02)

    def test_mass_per_hydrogen(self):
        mix = PowerLawDustMix(dust_to_gas=0.02)
        assert mix.material_type == MaterialType.DUST
        assert mix.mass == pytest.approx(0.02 * 1.67262192369e-27)

    def test_tabulated_interpolation(self):
        """Test log-log interpolation between tabulated points."""
        mix = TabulatedDustMix([1e-6, 1e-4], [1e-26, 1e-30], [0.0, 0.0])
        assert mix.section_abs(1e-5) == pytest.approx(1e-28)
        assert mix.section_sca(1e-5) == 0.0

    @pytest.mark.parametrize("kwargs", [{"albedo": 1.5}, {"asymmetry": 1.0}])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PowerLawDustMix(**kwargs)


class TestGreyGasMix:
    """Tests for the grey gas."""

    def test_sections(self):
        mix = GreyGasMix(section_abs=1e-30, section_sca=2e-30)
        assert mix.material_type == MaterialType.GAS
        assert mix.has_temperature
        assert mix.section_ext(1e-6) == pytest.approx(3e-30)
        assert np.all(mix.section_abs(np.ones(4)) == 1e-30)

    def test_opacity(self):
        mix = GreyGasMix(section_abs=1e-30, section_sca=2e-30)
        state = MaterialState(cell=0, number_density=1e6)
        assert mix.opacity_ext(1e-6, state) == pytest.approx(3e-24)

    def test_wavelength_shift(self):
        mix = GreyGasMix(section_sca=1e-30, wavelength_shift=0.05)
        state = MaterialState(cell=0, number_density=1.0)
        assert mix.scattered_wavelength(1e-6, state) == pytest.approx(1.05e-6)

    def test_invalid(self):
        with pytest.raises(ValueError):
            GreyGasMix(section_abs=-1.0)
        with pytest.raises(ValueError):
            GreyGasMix(mean_molecular_weight=0.0)


class TestGeometricMedium:
    """Tests for GeometricMedium."""

    def test_uniform_sphere(self):
        medium = GeometricMedium(ElectronMix(), number_density=5.0, radius=2.0)
        assert medium.number_density(np.array([0.0, 1.0, 1.0])) == 5.0
        assert medium.number_density(np.array([0.0, 2.0, 1.0])) == 0.0
        assert medium.dimension == 1

    def test_total_number(self):
        """Test normalization by the total number of entities."""
        medium = GeometricMedium(ElectronMix(), total_number=1000.0, radius=2.0)
        assert medium.central_density == pytest.approx(1000.0 / (4.0 / 3.0 * math.pi * 8.0))

        disk = GeometricMedium(ElectronMix(), "exponential", total_number=1000.0,
                               scale_length=2.0, scale_height=0.5)
        assert disk.central_density == pytest.approx(1000.0 / (4.0 * math.pi * 4.0 * 0.5))

    def test_exponential_disk(self):
        medium = GeometricMedium(GreyGasMix(), "exponential", number_density=1.0,
                                 scale_length=2.0, scale_height=0.5)
        n = medium.number_density(np.array([3.0, 4.0, -1.0]))
        assert n == pytest.approx(math.exp(-5.0 / 2.0 - 1.0 / 0.5))
        assert medium.dimension == 2

    def test_properties(self):
        medium = GeometricMedium(GreyGasMix(), number_density=1.0, velocity=[1.0, 2.0, 3.0],
                                 temperature=40.0)
        assert medium.dimension == 3
        assert medium.has_velocity
        assert not medium.has_magnetic_field
        assert medium.has_temperature
        assert medium.temperature(np.zeros(3)) == 40.0
        assert np.array_equal(medium.bulk_velocity(np.zeros(3)), [1.0, 2.0, 3.0])
        assert medium.material_type == MaterialType.GAS

    def test_variable_mix(self):
        inner = GreyGasMix(section_sca=2.0)
        outer = GreyGasMix(section_sca=1.0)
        medium = GeometricMedium(outer, number_density=1.0, inner_mix=inner, mix_radius=1.0)
        assert medium.has_variable_mix
        assert medium.mix(np.array([0.5, 0.0, 0.0])) is inner
        assert medium.mix(np.array([1.5, 0.0, 0.0])) is outer

    @pytest.mark.parametrize("kwargs", [
        {},
        {"number_density": 1.0, "total_number": 1.0},
        {"total_number": 1.0},
        {"number_density": 1.0, "geometry": "ring"},
        {"number_density": 1.0, "inner_mix": ElectronMix()},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            GeometricMedium(GreyGasMix(), **kwargs)


class TestSpectralShifts:
    """Tests for Doppler shifts and the Planck function."""

    def test_reception(self):
        v = np.array([0.0, 0.0, 0.01 * SPEED_OF_LIGHT])
        k = np.array([0.0, 0.0, 1.0])
        assert shifted_reception_wavelength(1e-6, k, v) == pytest.approx(0.99e-6)
        assert shifted_reception_wavelength(1e-6, -k, v) == pytest.approx(1.01e-6)

    def test_expansion(self):
        k = np.array([1.0, 0.0, 0.0])
        result = shifted_reception_wavelength(1e-6, k, np.zeros(3), 0.02 * SPEED_OF_LIGHT)
        assert result == pytest.approx(1.02e-6)

    def test_emission_inverts_reception(self):
        v = np.array([1e6, -2e6, 5e5])
        k = np.array([0.6, 0.0, 0.8])
        received = shifted_reception_wavelength(1e-6, k, v)
        assert shifted_emission_wavelength(received, k, v) == pytest.approx(1e-6, rel=1e-14)

    def test_planck_peak(self):
        """Test Wien's displacement law."""
        wavelengths = np.geomspace(1e-7, 1e-4, 20000)
        B = planck_function(wavelengths, 5000.0)
        assert wavelengths[np.argmax(B)] == pytest.approx(2.898e-3 / 5000.0, rel=1e-3)
        assert np.all(planck_function(wavelengths, 0.0) == 0)


class TestPhotonPacket:
    """Tests for PhotonPacket."""

    def test_launch(self):
        pp = PhotonPacket()
        pp.launch(2.0, 1e-6, np.array([1.0, 2.0, 3.0]), np.array([0.0, 1.0, 0.0]))
        assert pp.luminosity == 2.0
        assert pp.num_scatterings == 0
        assert not pp.polarized
        assert not pp.has_interaction
        assert pp.path.num_segments == 0

    def test_propagate_keeps_interaction(self):
        """Test that propagating to the interaction point keeps its cell."""
        pp = PhotonPacket()
        pp.launch(1.0, 1e-6, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        pp.set_interaction(3, 2.0)
        target = pp.interaction_position

        pp.propagate(2.0)
        assert np.allclose(pp.position, [0.0, 0.0, 2.0])
        assert pp.interaction_cell == 3
        assert pp.interaction_distance == 0.0
        assert np.allclose(pp.interaction_position, target)

    def test_scatter(self):
        pp = PhotonPacket()
        pp.launch(1.0, 1e-6, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        pp.set_interaction(1, 0.5)
        pp.scatter(np.array([1.0, 0.0, 0.0]), np.zeros(3), 1.1e-6)
        assert pp.num_scatterings == 1
        assert pp.wavelength == 1.1e-6
        assert not pp.has_interaction

    def test_scattering_peel_off(self):
        pp = PhotonPacket()
        pp.launch(4.0, 1e-6, np.zeros(3), np.array([0.0, 0.0, 1.0]))
        ppp = PhotonPacket()
        ppp.launch_scattering_peel_off(pp, np.ones(3), np.array([1.0, 0.0, 0.0]), np.zeros(3),
                                       1e-6, 0.25, stokes=(0.1, 0.0, 0.0))
        assert ppp.luminosity == 1.0
        assert ppp.num_scatterings == 1
        assert ppp.polarized
        assert np.allclose(ppp.position, np.ones(3))

    @pytest.mark.parametrize("direction", [[0.0, 0.0, 1.0], [0.0, 0.0, -1.0], [0.6, 0.0, 0.8]])
    def test_rotate_direction(self, direction):
        """Test that the rotated direction makes the requested angle."""
        k = np.array(direction)
        new = rotate_direction(k, 0.3, 1.2)
        assert np.linalg.norm(new) == pytest.approx(1.0)
        assert np.dot(new, k) == pytest.approx(0.3)
