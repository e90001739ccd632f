#!/usr/bin/env python3
"""
Beer-Lambert Law Validation
============================

This example validates exponential attenuation through the medium system:
    L_obs = L / (4 pi) * exp(-tau)

A point source sits at the center of a uniform, purely absorbing grey gas.
The peel-off luminosity recorded by a distant instrument must match the
analytic attenuation exactly, since every packet crosses the same optical
depth toward the observer.

Validation criteria:
- Probed optical depth must equal n * sigma * L
- Observed luminosity must match exp(-tau) to machine precision

Usage:
    python 02_beer_lambert_validation.py
    python 02_beer_lambert_validation.py --help
"""

import argparse
import math

import numpy as np

from mcrt_medium import Simulation


def parse_args():
    parser = argparse.ArgumentParser(
        description="Validate exponential attenuation through the medium system"
    )
    parser.add_argument("--packets", type=int, default=200, help="Photon packets per run")
    parser.add_argument("--no-plot", action="store_true", help="Disable plotting")
    parser.add_argument("--output", type=str, default="beer_lambert_validation.png")
    return parser.parse_args()


def absorbing_slab_config(tau, packets):
    """Uniform grey absorber with optical depth tau from the center to the edge."""
    section = 1e-20
    return {
        "system": {"num_threads": 2, "seed": 7},
        "wavelengths": {"min_wavelength": 1e-7, "max_wavelength": 1e-5, "num_bins": 10},
        "grid": {"extent": [1.0, 1.0, 1.0], "shape": [5, 5, 5]},
        "media": [{"kind": "gas", "number_density": tau / section,
                   "mix": {"section_abs": section}}],
        "medium_system": {"num_density_samples": 0, "store_radiation_field": False},
        "photons": {"num_packets": packets},
        "source": {"luminosity": 1.0},
    }


def main():
    args = parse_args()

    print("=" * 70)
    print("BEER-LAMBERT LAW VALIDATION")
    print("=" * 70)

    tau_values = [0.01, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
    results = []
    all_passed = True

    print(f"\n  {'tau':>8} {'tau_probe':>12} {'Analytical':>12} {'Monte Carlo':>12} "
          f"{'Error %':>10} {'Status':>8}")
    print("  " + "-" * 68)

    for tau in tau_values:
        sim = Simulation(absorbing_slab_config(tau, args.packets))
        # the probe crosses the full grid, twice the center-to-edge distance
        tau_probe = 0.5 * sim.probe_optical_depth(5e-7, "z")
        result = sim.run()

        observed = float(np.sum(result.instrument_sed)) * 4.0 * math.pi
        analytical = math.exp(-tau)
        error_pct = abs(observed - analytical) / analytical * 100

        passed = error_pct < 1e-6 and abs(tau_probe - tau) < 1e-9 * max(tau, 1.0)
        status = "[OK]" if passed else "[FAIL]"
        if not passed:
            all_passed = False
        results.append((tau, analytical, observed))

        print(f"  {tau:>8.2f} {tau_probe:>12.6f} {analytical:>12.6e} {observed:>12.6e} "
              f"{error_pct:>9.2e}% {status:>8}")

    print("\n" + "=" * 70)
    print("VALIDATION SUMMARY")
    print("=" * 70)
    if all_passed:
        print(f"\n[PASS] All {len(results)} tests passed!")
    else:
        print("\n[WARN] Some tests exceeded tolerance - check implementation.")

    if not args.no_plot:
        import matplotlib.pyplot as plt

        taus = np.array([r[0] for r in results])
        fig, ax = plt.subplots(figsize=(7, 5))
        tau_line = np.linspace(0.0, taus.max(), 200)
        ax.semilogy(tau_line, np.exp(-tau_line), "k-", label="exp(-tau)")
        ax.semilogy(taus, [r[2] for r in results], "ro", label="Monte Carlo")
        ax.set_xlabel("Optical depth")
        ax.set_ylabel("Transmitted fraction")
        ax.set_title("Beer-Lambert validation")
        ax.legend()
        ax.grid(True, alpha=0.3)
        plt.tight_layout()
        plt.savefig(args.output, dpi=150)
        print(f"\nPlot saved to: {args.output}")


if __name__ == "__main__":
    main()
