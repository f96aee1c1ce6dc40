"""
Command line interface.

    python -m muon_mc ROCK_THICKNESS ELEVATION KINETIC_ENERGY[_MIN] [KINETIC_ENERGY_MAX]

Prints the flux estimate on a single line. If a maximum kinetic energy is
provided the flux is integrated between kinetic_min and kinetic_max,
otherwise a point estimate is done at kinetic_min.
"""

import argparse
import logging
import sys

from muon_mc import __version__
from muon_mc.core.config import RunConfig, DEFAULT_DUMP_FILE
from muon_mc.errors import ConfigError, MuonMCError
from muon_mc.physics.materials import MaterialTable
from muon_mc.transport.integrator import FluxIntegrator
from muon_mc.utils.logging import setup_logger


USAGE = "%(prog)s ROCK_THICKNESS ELEVATION KINETIC_ENERGY[_MIN] [KINETIC_ENERGY_MAX]"


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser reporting errors as exceptions."""

    def error(self, message):
        raise ConfigError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="python3 -m muon_mc",
        usage=USAGE,
        description="Backward Monte Carlo estimate of the atmospheric muon "
                    "flux below a flat rock layer.",
    )
    parser.add_argument("rock_thickness", type=float, nargs="?",
        help="Rock thickness above the detector, in m.")
    parser.add_argument("elevation", type=float, nargs="?",
        help="Elevation angle of the observation direction, in deg.")
    parser.add_argument("kinetic_min", type=float, nargs="?",
        help="Kinetic energy, or lower bound of the kinetic range, in GeV.")
    parser.add_argument("kinetic_max", type=float, nargs="?",
        help="Upper bound of the kinetic range, in GeV.")
    parser.add_argument("-n", "--events", type=int, dest="n_events",
        help="Number of Monte Carlo events (default: 10000).")
    parser.add_argument("-s", "--seed", type=int,
        help="Seed of the random generator.")
    parser.add_argument("-d", "--dump", dest="dump_file",
        help=f"Material dump file (default: {DEFAULT_DUMP_FILE}).")
    parser.add_argument("--default-materials", action="store_true",
        help="Use the built-in material tables instead of a dump file.")
    parser.add_argument("--write-dump", action="store_true",
        help="Write the built-in material tables to the dump file and exit.")
    parser.add_argument("-c", "--config",
        help="YAML run configuration. Command line values take precedence.")
    parser.add_argument("-j", "--processes", type=int, dest="n_processes",
        help="Number of worker processes.")
    parser.add_argument("-v", "--verbose", action="store_true",
        help="Show progress and run statistics.")
    parser.add_argument("--log-file",
        help="Write a detailed log to this file.")
    parser.add_argument("--states-file",
        help="Write the muon states at the primary altitude to this HDF5 file.")
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def load_config(args: argparse.Namespace) -> RunConfig:
    """Build the run configuration from parsed arguments."""
    values = {
        "rock_thickness": args.rock_thickness,
        "elevation": args.elevation,
        "kinetic_min": args.kinetic_min,
        "kinetic_max": args.kinetic_max,
        "n_events": args.n_events,
        "seed": args.seed,
        "n_processes": args.n_processes,
        "dump_file": args.dump_file,
        "log_file": args.log_file,
        "states_file": args.states_file,
    }
    if args.config:
        return RunConfig.from_yaml(args.config, **values)

    if None in (args.rock_thickness, args.elevation, args.kinetic_min):
        raise ConfigError("usage: " + USAGE % {"prog": "python3 -m muon_mc"})
    return RunConfig(**{k: v for k, v in values.items() if v is not None})


def write_dump(path) -> int:
    """Write the built-in material tables to an HDF5 dump."""
    table = MaterialTable()
    table.dump(path)
    print(f"Wrote {len(table)} materials to {path}")
    return 0


def main(argv=None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if args.write_dump:
            return write_dump(args.dump_file or DEFAULT_DUMP_FILE)
        config = load_config(args)

        setup_logger(
            level=logging.DEBUG if config.log_file else logging.INFO,
            log_file=config.log_file,
            console_level=logging.INFO if args.verbose else logging.WARNING)

        if args.default_materials:
            materials = MaterialTable()
        else:
            materials = MaterialTable.load(config.dump_file)

        integrator = FluxIntegrator(config, materials=materials)
        if config.n_processes > 1:
            result = integrator.run_parallel(verbose=args.verbose)
        else:
            result = integrator.run(verbose=args.verbose)
    except (MuonMCError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(result.format())
    return 0
