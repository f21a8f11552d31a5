#!/usr/bin/env python3
"""
Interface Donor Map CLI.

This script builds the donor map described by a YAML coupling configuration
with inline zone geometry and reports donor statistics.

Usage:
    python -m fsi_interp.cli.check_interface config.yaml [options]

Examples:
    # Build the donor map and print statistics
    python -m fsi_interp.cli.check_interface interface.yaml

    # Override the interpolation method
    python -m fsi_interp.cli.check_interface interface.yaml --method consistent_conservative

    # Validate configuration only
    python -m fsi_interp.cli.check_interface interface.yaml --validate

    # Generate template configuration
    python -m fsi_interp.cli.check_interface --template > interface.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from fsi_interp.core.config import (
    CouplingConfig,
    InterfaceTopologyError,
    InterpolationMethod,
    SearchAlgorithm,
)

# Template YAML configuration
TEMPLATE_CONFIG = """# Interface Coupling Configuration
# ================================
# Two zones sharing one coupling interface (2D, line faces).

interpolation:
  method: "nearest_neighbor"   # "nearest_neighbor" or "consistent_conservative"
  search: "brute_force"        # "brute_force" or "kdtree"
  # n_vars: 2                  # Length of transferred data vectors (default: dimension)

zones:
  # Fluid side
  - zone_id: 0
    dimension: 2
    points: [[0.0, 0.0], [0.5, 0.0], [1.0, 0.0]]
    markers:
      - name: "wall_fluid"
        fsi_interface: 1       # Interface pair index (0 = not coupled)
        faces: [[0, 1], [1, 2]]

  # Structure side
  - zone_id: 1
    dimension: 2
    points: [[0.0, 0.0], [1.0, 0.0]]
    markers:
      - name: "wall_structure"
        fsi_interface: 1
        faces: [[0, 1]]
"""


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def validate_config(config: CouplingConfig) -> bool:
    """Print the configuration and its validation warnings."""
    warnings = config.validate()

    print("Configuration validation:")
    print("=" * 50)
    print(config)

    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  - {w}")
        return False
    print("\nConfiguration is valid")
    return True


def print_summary(summary: dict) -> None:
    """Print donor map statistics."""
    print("\nDonor map summary")
    print("=" * 50)
    print(f"  Method:               {summary['method']}")
    print(f"  Interface vertices:   {summary['n_vertices']}")
    print(f"  Donors per vertex:    {summary['min_donors']} - {summary['max_donors']}")
    print(
        f"  Weight sums:          {summary['min_weight_sum']:.6g} - {summary['max_weight_sum']:.6g}"
    )
    print(f"  Max donor distance:   {summary['max_donor_distance']:.6e}")


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Build and check interface donor maps from YAML configuration files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s interface.yaml                 Build donor map and print statistics
  %(prog)s interface.yaml --validate      Validate configuration
  %(prog)s --template > interface.yaml    Generate template
        """,
    )

    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "--method",
        "-m",
        choices=[m.value for m in InterpolationMethod],
        help="Override the interpolation method",
    )

    parser.add_argument(
        "--search",
        "-s",
        choices=[s.value for s in SearchAlgorithm],
        help="Override the nearest-vertex search algorithm",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration file",
    )

    parser.add_argument(
        "--template",
        "-t",
        action="store_true",
        help="Print template configuration to stdout",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if args.template:
        print(TEMPLATE_CONFIG)
        return 0

    if not args.config:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        return 1

    setup_logging(args.verbose)

    try:
        config = CouplingConfig.from_yaml(config_path)
    except (ValueError, TypeError) as e:
        print(f"Error: Invalid configuration: {e}")
        return 1

    if args.method:
        config.interpolation.method = args.method
    if args.search:
        config.interpolation.search = args.search

    if args.validate:
        return 0 if validate_config(config) else 1

    from fsi_interp.core.zone import zones_from_config
    from fsi_interp.interpolation import create_interpolator

    try:
        zones = zones_from_config(config)
        interpolator = create_interpolator(zones, config)
    except InterfaceTopologyError as e:
        print(f"Error: Interface configuration: {e}")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print_summary(interpolator.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
