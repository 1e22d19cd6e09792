#!/usr/bin/env python3
"""
Offline replay CLI for calibrations.

Reads newline-delimited JSON deltas, runs them through the calibration plugin
and prints the calibrated deltas, one JSON object per line.

Usage:
    calibration_cli --config calibration.yaml --input deltas.jsonl --status
    cat deltas.jsonl | calibration_cli --config calibration.yaml
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import IO, Iterator, Optional

import yaml
from rich.console import Console
from rich.table import Table

from sensor_calibration.bus import DeltaBus
from sensor_calibration.config import PluginConfig
from sensor_calibration.plugin import CalibrationPlugin

logger = logging.getLogger('sensor_calibration.cli')


def read_deltas(stream: IO[str]) -> Iterator[dict]:
    """Yield one delta per non-empty line, skipping malformed lines."""
    for lineno, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            delta = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Line {lineno}: invalid JSON ({e}), skipped")
            continue
        if not isinstance(delta, dict):
            logger.warning(f"Line {lineno}: not a delta object, skipped")
            continue
        yield delta


def render_status(plugin: CalibrationPlugin, console: Console):
    """Render the last conversion per path as a table."""
    table = Table(title="Last conversions")
    table.add_column("path", style="bold")
    table.add_column("in", justify="right")
    table.add_column("out", justify="right", style="cyan")
    for path, conversion in plugin.last_conversions.items():
        table.add_row(path, str(conversion['in']), str(conversion['out']))
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay JSON deltas through the calibration plugin.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Calibration YAML file (default: package or ~/.config location)",
    )
    parser.add_argument(
        "--input",
        default="-",
        help="File with one JSON delta per line, '-' for stdin (default: -)",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write the sorted configuration back to the config file",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the last conversion per path when done",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[list] = None, stdin: Optional[IO[str]] = None,
         stdout: Optional[IO[str]] = None) -> int:
    """Main entry point for the replay CLI."""
    args = build_parser().parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[calibration] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config_path = args.config or PluginConfig.default_config_path()
    try:
        config = PluginConfig.load(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: cannot read config {config_path}: {e}", file=sys.stderr)
        return 1

    bus = DeltaBus(options_path=None if args.no_save else config_path)
    bus.subscribe(lambda delta: stdout.write(json.dumps(delta) + "\n"))
    plugin = CalibrationPlugin(bus)
    plugin.start(config)
    logger.info(f"{len(plugin.calibrations)} active calibrations from {config_path}")

    try:
        if args.input == "-":
            for delta in read_deltas(stdin):
                bus.publish(delta)
        else:
            try:
                with open(args.input, 'r') as f:
                    for delta in read_deltas(f):
                        bus.publish(delta)
            except OSError as e:
                print(f"Error: cannot read input {args.input}: {e}", file=sys.stderr)
                return 1

        if args.status:
            render_status(plugin, Console(stderr=True))
    finally:
        plugin.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
