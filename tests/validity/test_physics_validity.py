"""
Physics Validity Checks for mcrt-medium

These tests verify that the simulation produces physically plausible results
by checking against analytic radiative transfer results: exponential
attenuation, energy conservation of absorption and radiative equilibrium.

Reference: Steinacker, Baes & Gordon (2013), ARA&A 51, 63.
"""

import math

import numpy as np
import pytest

from mcrt_medium.core.constants import ASTRONOMICAL_UNIT, SOLAR_LUMINOSITY
from mcrt_medium.core.simulation import Simulation

GREY_SECTION = 5e-26


def grey_dust_config(luminosity=SOLAR_LUMINOSITY, albedo=0.0):
    """Grey dust filling a cube of half-size 1 AU with k = 1 / AU."""
    return {
        "system": {"num_threads": 2, "seed": 99},
        "wavelengths": {"min_wavelength": 1e-7, "max_wavelength": 1e-3, "num_bins": 30},
        "grid": {"extent": [ASTRONOMICAL_UNIT] * 3, "shape": [3, 3, 3]},
        "media": [{
            "kind": "dust",
            "number_density": 1.0 / (GREY_SECTION * ASTRONOMICAL_UNIT),
            "mix": {"reference_extinction": GREY_SECTION, "slope": 0.0, "albedo": albedo},
        }],
        "medium_system": {"num_density_samples": 0},
        "photons": {"num_packets": 400},
        "source": {"luminosity": luminosity},
    }


class TestAttenuationPhysics:
    """Verify attenuation follows the Beer-Lambert law."""

    @pytest.mark.parametrize("direction", [[0.0, 0.0, 1.0], [-1.0, 0.0, 0.0]])
    def test_beer_lambert(self, direction):
        """Unscattered light is attenuated by exp(-k L)."""
        config = {
            "system": {"num_threads": 2, "seed": 3},
            "wavelengths": {"min_wavelength": 1e-7, "max_wavelength": 1e-5, "num_bins": 10},
            "grid": {"extent": [1.0, 1.0, 1.0], "shape": [3, 3, 3]},
            "media": [{"kind": "gas", "number_density": 1e20, "mix": {"section_abs": 1.5e-20}}],
            "medium_system": {"num_density_samples": 0},
            "photons": {"num_packets": 100},
            "source": {"luminosity": 1.0},
            "instrument": {"direction": direction},
        }
        result = Simulation(config).run()

        expected = math.exp(-1.5) / (4.0 * math.pi)
        assert np.sum(result.instrument_sed) == pytest.approx(expected, rel=1e-9)

    def test_denser_medium_transmits_less(self):
        """Doubling the density lowers the observed luminosity."""
        thin = grey_dust_config(albedo=0.5)
        thick = grey_dust_config(albedo=0.5)
        thick["media"][0]["number_density"] *= 2.0

        sed_thin = np.sum(Simulation(thin).run().instrument_sed)
        sed_thick = np.sum(Simulation(thick).run().instrument_sed)
        assert sed_thick < sed_thin


class TestEnergyConservation:
    """Verify that absorbed energy is consistent with the geometry."""

    def test_absorbed_fraction_bounds(self):
        """A central source in an absorbing cube loses between 1 - e^-1 and 1 - e^-sqrt(3)."""
        result = Simulation(grey_dust_config()).run()

        lower = SOLAR_LUMINOSITY * (1.0 - math.exp(-1.0))
        upper = SOLAR_LUMINOSITY * (1.0 - math.exp(-math.sqrt(3.0)))
        assert lower < result.absorbed_primary < upper

    def test_scattering_reduces_absorption(self):
        """Adding scattering at fixed extinction lowers the absorbed luminosity."""
        absorbing = Simulation(grey_dust_config(albedo=0.0)).run()
        scattering = Simulation(grey_dust_config(albedo=0.6)).run()
        assert scattering.absorbed_primary < absorbing.absorbed_primary


class TestRadiativeEquilibrium:
    """Verify dust temperatures follow the radiation field."""

    def test_diluted_field_is_colder(self):
        """Lowering the source luminosity lowers every dust temperature."""
        bright = Simulation(grey_dust_config()).run()
        faint = Simulation(grey_dust_config(luminosity=0.01 * SOLAR_LUMINOSITY)).run()

        heated = bright.dust_temperatures > 0
        assert np.any(heated)
        assert np.all(faint.dust_temperatures[heated] < bright.dust_temperatures[heated])

    def test_grey_dust_luminosity_scaling(self):
        """Grey dust temperatures scale as L^(1/4)."""
        bright = Simulation(grey_dust_config()).run()
        faint = Simulation(grey_dust_config(luminosity=SOLAR_LUMINOSITY / 16.0)).run()

        center = 13
        ratio = bright.dust_temperatures[center] / faint.dust_temperatures[center]
        assert ratio == pytest.approx(2.0, rel=0.03)

    def test_central_cell_is_hottest(self):
        """The cell containing the source is the warmest."""
        result = Simulation(grey_dust_config()).run()
        assert np.argmax(result.dust_temperatures) == 13
