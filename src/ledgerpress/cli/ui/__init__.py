#!/usr/bin/env python3
from __future__ import annotations

from .state import DEFAULT_CONTEXT

console = DEFAULT_CONTEXT.console
console_err = DEFAULT_CONTEXT.console_err


def configure_ui(*, no_color: bool) -> None:
    DEFAULT_CONTEXT.console.no_color = no_color
    DEFAULT_CONTEXT.console_err.no_color = no_color


__all__ = ["configure_ui", "console", "console_err"]
