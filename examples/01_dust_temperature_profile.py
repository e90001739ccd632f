#!/usr/bin/env python3
"""
Dust Temperature Profile Around a Star
======================================

This example runs a Monte Carlo simulation of a Sun-like star inside a
uniform dusty sphere and shows how the indicative dust temperature falls
off with distance from the star.

For grey dust in the optically thin limit, radiative equilibrium gives
    T(r) = T_sun * sqrt(R_sun / 2r)
i.e. T ~ r^(-1/2). Attenuation makes the profile steeper in thick media.

Usage:
    python 01_dust_temperature_profile.py
    python 01_dust_temperature_profile.py --packets 20000 --tau 2.0
    python 01_dust_temperature_profile.py --help
"""

import argparse

import numpy as np

from mcrt_medium import Simulation
from mcrt_medium.core.constants import ASTRONOMICAL_UNIT, SOLAR_LUMINOSITY

GREY_SECTION = 5e-26


def parse_args():
    parser = argparse.ArgumentParser(
        description="Dust temperature profile around a central star"
    )
    parser.add_argument("--packets", type=int, default=5000, help="Photon packets per segment")
    parser.add_argument("--tau", type=float, default=1.0, help="Radial optical depth of the sphere")
    parser.add_argument("--cells", type=int, default=11, help="Cells along each axis")
    parser.add_argument("--secondary", action="store_true", help="Include dust re-emission")
    parser.add_argument("--no-plot", action="store_true", help="Disable plotting")
    parser.add_argument("--output", type=str, default="dust_temperature_profile.png")
    return parser.parse_args()


def blackbody_temperature(r):
    """Optically thin equilibrium temperature of grey dust [K] at distance r [m]."""
    t_sun = 5772.0
    r_sun = 6.957e8
    return t_sun * np.sqrt(r_sun / (2.0 * r))


def main():
    args = parse_args()

    print("=" * 70)
    print("DUST TEMPERATURE PROFILE")
    print("=" * 70)

    number_density = args.tau / (GREY_SECTION * ASTRONOMICAL_UNIT)
    config = {
        "system": {"num_threads": 4, "seed": 1},
        "wavelengths": {"min_wavelength": 1e-7, "max_wavelength": 1e-3, "num_bins": 40},
        "grid": {"extent": [ASTRONOMICAL_UNIT] * 3, "shape": [args.cells] * 3},
        "media": [{
            "kind": "dust",
            "number_density": number_density,
            "radius": ASTRONOMICAL_UNIT,
            "mix": {"reference_extinction": GREY_SECTION, "slope": 0.0, "albedo": 0.0},
        }],
        "medium_system": {
            "num_density_samples": 20,
            "secondary_emission": args.secondary,
        },
        "photons": {"num_packets": args.packets},
        "source": {"luminosity": SOLAR_LUMINOSITY},
    }

    print(f"\nRadial optical depth: {args.tau}")
    print(f"Dust number density:  {number_density:.3e} m^-3")
    print(f"Grid: {args.cells}^3 cells, {args.packets} packets")

    sim = Simulation(config)
    result = sim.run()

    grid = sim.medium_system.grid
    radii = np.array([np.linalg.norm(grid.central_position(m)) for m in range(grid.num_cells)])
    temperatures = result.dust_temperatures
    heated = temperatures > 0

    print("\n" + "-" * 70)
    print("Temperature vs distance (cells grouped by radius)")
    print("-" * 70)
    print(f"  {'r [AU]':>8} {'T_sim [K]':>12} {'T_thin [K]':>12} {'cells':>6}")
    print("  " + "-" * 45)

    edges = np.linspace(0.0, 1.0, 8) * ASTRONOMICAL_UNIT
    for low, high in zip(edges[:-1], edges[1:]):
        mask = heated & (radii >= low) & (radii < high)
        if not np.any(mask):
            continue
        r_mid = np.mean(radii[mask])
        t_mean = np.mean(temperatures[mask])
        print(f"  {r_mid / ASTRONOMICAL_UNIT:>8.3f} {t_mean:>12.1f} "
              f"{blackbody_temperature(r_mid):>12.1f} {np.count_nonzero(mask):>6}")

    print(f"\nAbsorbed (primary):   {result.absorbed_primary / SOLAR_LUMINOSITY:.4f} L_sun")
    print(f"Absorbed (secondary): {result.absorbed_secondary / SOLAR_LUMINOSITY:.4f} L_sun")
    print(f"Secondary iterations: {result.num_secondary_iterations}")

    if not args.no_plot:
        import matplotlib.pyplot as plt

        fig, axes = plt.subplots(1, 2, figsize=(12, 5))

        ax = axes[0]
        ax.scatter(radii[heated] / ASTRONOMICAL_UNIT, temperatures[heated], s=8, alpha=0.6,
                   label="Monte Carlo")
        r_line = np.linspace(0.05, 1.0, 100) * ASTRONOMICAL_UNIT
        ax.plot(r_line / ASTRONOMICAL_UNIT, blackbody_temperature(r_line), "k--",
                label="Optically thin")
        ax.set_xlabel("Distance [AU]")
        ax.set_ylabel("Dust temperature [K]")
        ax.set_title(f"Dust temperature (tau = {args.tau})")
        ax.legend()
        ax.grid(True, alpha=0.3)

        ax = axes[1]
        ax.loglog(result.wavelengths * 1e6, np.maximum(result.instrument_sed, 1e-30), "o-")
        ax.set_xlabel("Wavelength [um]")
        ax.set_ylabel("Luminosity per bin [W/sr]")
        ax.set_title("Observed SED")
        ax.grid(True, alpha=0.3, which="both")

        plt.tight_layout()
        plt.savefig(args.output, dpi=150)
        print(f"\nPlot saved to: {args.output}")


if __name__ == "__main__":
    main()
