from __future__ import annotations

import argparse

from pathminer.utils.logging import configure_logging


def add_logging_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g., INFO, DEBUG). Also respects PATHMINER_LOG_LEVEL env var.",
    )


def setup_logging_from_args(args: argparse.Namespace) -> None:
    configure_logging(args.log_level)
