"""Logging configuration for the automation studio backend."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records to stdout in a single line format.

    Safe to call more than once; ``basicConfig`` leaves an already configured
    root logger alone.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


__all__ = ["configure_logging", "LOG_FORMAT"]
