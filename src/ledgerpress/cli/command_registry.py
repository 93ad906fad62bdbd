#!/usr/bin/env python3
from __future__ import annotations

import typer

from .commands import render as render_command


def register(app: typer.Typer) -> None:
    render_command.register(app)
