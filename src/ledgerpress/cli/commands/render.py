#!/usr/bin/env python3
# Copyright (C) 2026 Alex Stoyanov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with this program.
# If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import csv
from pathlib import Path

import typer

from ...config import load_report_definition
from ...render.report import ReportWriter
from ..core.common import _ctx_value, _run_cli
from ..core.log import _warn
from ..ui import console

_RENDER_HELP = (
    "Render CSV records through a TOML report definition.\n\n"
    "Records must already be sorted by the group columns.\n\n"
    "Examples:\n"
    "  ledgerpress render sales.toml sales.csv -o sales.pdf\n"
    "  ledgerpress render sales.toml sales.csv --skip-header\n"
)


def register(app: typer.Typer) -> None:
    app.command(help=_RENDER_HELP)(render)


def render(
    ctx: typer.Context,
    definition: Path = typer.Argument(..., help="Report definition (TOML)."),
    data: Path = typer.Argument(..., help="CSV file with one record per line."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (defaults to the CSV path with a .pdf suffix).",
        rich_help_panel="Outputs",
    ),
    skip_header: bool = typer.Option(
        False,
        "--skip-header",
        help="Ignore the first CSV line.",
        rich_help_panel="Inputs",
    ),
    delimiter: str = typer.Option(
        ",",
        "--delimiter",
        help="CSV field delimiter.",
        rich_help_panel="Inputs",
    ),
) -> None:
    quiet_value = bool(_ctx_value(ctx, "quiet"))
    debug_value = bool(_ctx_value(ctx, "debug"))

    def _run() -> None:
        report_definition = load_report_definition(definition)
        records = _read_records(data, skip_header=skip_header, delimiter=delimiter)
        report = ReportWriter(report_definition.options, report_definition.data)
        report.render_data(records)
        output_path = output or data.with_suffix(".pdf")
        report.save(output_path)
        for message in report.warnings:
            _warn(message, quiet=quiet_value)
        if not quiet_value:
            console.print(str(output_path))

    _run_cli(_run, debug=debug_value)


def _read_records(path: Path, *, skip_header: bool, delimiter: str) -> list[list[str]]:
    if len(delimiter) != 1:
        raise ValueError("--delimiter must be a single character")
    with path.open(newline="", encoding="utf-8") as handle:
        rows = [row for row in csv.reader(handle, delimiter=delimiter) if row]
    if skip_header:
        rows = rows[1:]
    return rows
