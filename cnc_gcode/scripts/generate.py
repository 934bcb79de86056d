#!/usr/bin/env python3
"""
Generate Program Script.

Render a job file (job.v1 YAML) to a numbered G-code listing.

Usage:
    python -m cnc_gcode.scripts.generate --job cnc_gcode/jobs/pocket.yaml
    python -m cnc_gcode.scripts.generate -j job.yaml -o out/part.nc
    python -m cnc_gcode.scripts.generate -j job.yaml -c program.yaml --seed 42
    cnc-gcode -j job.yaml --strict --log-level DEBUG
    cnc-gcode -j job.yaml --log-file logs/gen.log --log-json

The job's ``program:`` section wins over ``--config``; ``--config`` (or the
packaged default) applies only when the job has none.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from cnc_gcode.configs.loader import ConfigError, load_config
from cnc_gcode.configs.schema import load_job
from cnc_gcode.gcode.generator import GCodeGenerator
from cnc_gcode.gcode.naming import seeded_names
from cnc_gcode.gcode.program import GCodeError
from cnc_gcode.utils.fs import atomic_write_text
from cnc_gcode.utils.logging_config import pop_context, push_context, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cnc-gcode",
        description="Render a job file to a G-code program listing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--job",
        "-j",
        type=str,
        required=True,
        help="Job file (YAML, schema job.v1)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Program configuration file, used when the job has no program section",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file (stdout when omitted)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for generated program names (default: 0)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject unknown units/positioning and non-finite numbers",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write log records to this file",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write the log file as JSON lines",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        args.log_level,
        args.log_file,
        json=args.log_json,
        context={"job": Path(args.job).name},
    )

    overrides = {"strict": True} if args.strict else {}
    try:
        job = load_job(args.job)
        fallback = load_config(args.config) if job.program is None else None
        config = job.to_program_config(fallback, **overrides)
        operations = job.to_operations()

        generator = GCodeGenerator(config, name_factory=seeded_names(args.seed))
        program = generator.build(operations)
        push_context(program=f"O{program.name}")
        listing = program.eval()

        if args.output:
            atomic_write_text(args.output, listing)
            logger.info("Wrote %d lines to %s", listing.count("\n") + 1, args.output)
        else:
            sys.stdout.write(listing + "\n")
    except (ConfigError, GCodeError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error("%s", e)
        return 1
    finally:
        pop_context(keys=["program"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
