"""
Command-line interface for mcrt-medium.

Provides CLI commands for:
- Running a Monte Carlo simulation from a configuration file
- Probing the optical depth through the model along a coordinate axis
"""

import argparse
import logging
import sys

from mcrt_medium.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_simulation(args: argparse.Namespace) -> int:
    """Run a simulation and report or save its results."""
    from mcrt_medium.core.simulation import Simulation

    sim = Simulation(args.config)
    result = sim.run()

    if args.output:
        output_path = sim.save_result(result, args.output)
        print(f"Results saved to: {output_path}")
    else:
        print(f"\nSimulation Results:")
        print(f"  Cells: {result.metadata['num_cells']}")
        print(f"  Media: {result.metadata['num_media']}")
        print(f"  Absorbed dust luminosity (primary): {result.absorbed_primary:.4e} W")
        print(f"  Absorbed dust luminosity (secondary): {result.absorbed_secondary:.4e} W")
        print(f"  Secondary iterations: {result.num_secondary_iterations}")
        print(f"  Instrument total: {result.instrument_sed.sum():.4e} W/sr")

    return 0


def probe_optical_depth(args: argparse.Namespace) -> int:
    """Print the optical depth through the model center."""
    from mcrt_medium.core.simulation import Simulation
    from mcrt_medium.materials.base import MaterialType

    material_type = MaterialType(args.type) if args.type else None
    sim = Simulation(args.config)
    tau = sim.probe_optical_depth(args.wavelength, args.axis, material_type)
    label = args.type or "all media"
    print(f"Optical depth along {args.axis} at {args.wavelength:.4e} m ({label}): {tau:.6e}")
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="mcrt-medium: Monte Carlo radiative transfer through a gridded medium system",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a simulation and save results
    mcrt-medium run model.yaml --output results.json

    # Optical depth of the dust along the z axis at 550 nm
    mcrt-medium tau model.yaml --wavelength 5.5e-7 --axis z --type dust
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="mcrt-medium 0.1.0",
    )

    # also accepted after the subcommand; SUPPRESS keeps the top-level value
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", parents=[common], help="Run a simulation")
    run_parser.add_argument(
        "config",
        type=str,
        help="Path to JSON or YAML configuration file",
    )
    run_parser.add_argument(
        "-o", "--output",
        type=str,
        help="Output JSON file path",
    )
    run_parser.set_defaults(func=run_simulation)

    tau_parser = subparsers.add_parser("tau", parents=[common], help="Probe the optical depth through the model")
    tau_parser.add_argument(
        "config",
        type=str,
        help="Path to JSON or YAML configuration file",
    )
    tau_parser.add_argument(
        "-w", "--wavelength",
        type=float,
        required=True,
        help="Wavelength [m]",
    )
    tau_parser.add_argument(
        "--axis",
        type=str,
        choices=["x", "y", "z"],
        default="z",
        help="Coordinate axis of the probe ray",
    )
    tau_parser.add_argument(
        "-t", "--type",
        type=str,
        choices=["dust", "electrons", "gas"],
        help="Restrict to one material type",
    )
    tau_parser.set_defaults(func=probe_optical_depth)

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        return args.func(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except Exception as e:
        logging.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
