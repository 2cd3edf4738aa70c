"""Command line entry point for the Hue backup tool."""
from __future__ import annotations

import argparse
import os
from typing import Iterable

from .backup import create_backup
from .bootstrap import BootstrapFlow
from .config import ConfigError
from .hue_client import HueBridgeError
from .log import get_logger, setup_logging

ENV_FORCE_COLOUR = "HUE_BACKUP_FORCE_COLOR"

_LOGGER = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hue-backup",
        description="Back up the configuration of your Philips Hue bridge",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Show debug output",
    )
    return parser


def run() -> int:
    result = BootstrapFlow().run()
    if not result.ready:
        _LOGGER.info("No backup was created.")
        return 0
    create_backup(result.config)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, force_colour=bool(os.environ.get(ENV_FORCE_COLOUR)))

    try:
        return run()
    except ConfigError as exc:
        _LOGGER.error("Could not read the configuration: %s", exc)
        _LOGGER.error("Details:", exc_info=True)
        return 1
    except (HueBridgeError, OSError) as exc:
        _LOGGER.error("Backup failed: %s", exc)
        _LOGGER.error("Details:", exc_info=True)
        return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
