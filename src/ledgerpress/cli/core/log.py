#!/usr/bin/env python3
from __future__ import annotations

import logging

from rich.logging import RichHandler

from ..ui import console_err

LIBRARY_LOGGER = "ledgerpress"


def _warn(message: str, *, quiet: bool) -> None:
    if quiet:
        return
    console_err.print(f"[yellow]Warning:[/yellow] {message}")


def _configure_logging(*, debug: bool) -> None:
    """Route library log records to stderr; report warnings are echoed separately."""
    logger = logging.getLogger(LIBRARY_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    if not debug:
        logger.setLevel(logging.ERROR)
        return
    handler = RichHandler(console=console_err, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
