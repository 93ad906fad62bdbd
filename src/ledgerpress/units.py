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

"""Length units and paper sizes, all resolved to PDF points."""

from __future__ import annotations

import logging
import re

from .errors import ConfigurationError, Diagnostics, warn

logger = logging.getLogger(__name__)

POINTS_PER_MM = 72 / 25.4
POINTS_PER_INCH = 72.0

PAPER_SIZES: dict[str, tuple[float, float]] = {
    "A4": (210 * POINTS_PER_MM, 297 * POINTS_PER_MM),
    "LETTER": (8.5 * POINTS_PER_INCH, 11 * POINTS_PER_INCH),
    "BSIZE": (11 * POINTS_PER_INCH, 17 * POINTS_PER_INCH),
    "LEGAL": (8.5 * POINTS_PER_INCH, 14 * POINTS_PER_INCH),
}
ORIENTATIONS = ("portrait", "landscape")

_UNIT_RE = re.compile(r"^\s*([\d.]+)\s*(pt|in|mm|%)?\s*$", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)")
_CUSTOM_PAPER_RE = re.compile(r"^\s*([\d.]+)\s*[xX]\s*([\d.]+)\s*(\S*)\s*$")

Length = float | int | str


def format_unit(
    value: Length | None,
    full_percent: float | None = None,
    *,
    diagnostics: Diagnostics | None = None,
) -> float:
    """Convert ``"12mm"``, ``"1in"``, ``"50%"`` or a bare number to points.

    Percentages resolve against ``full_percent`` (0 when it is not given). Unparsable
    strings produce a warning and fall back to their leading number.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value)
    match = _UNIT_RE.match(text)
    number: float | None = None
    if match is not None:
        try:
            number = float(match.group(1))
        except ValueError:
            number = None
    if match is None or number is None:
        warn(diagnostics, f"Unparsable length {text!r}", logger=logger)
        return _leading_number(text)
    unit = (match.group(2) or "pt").lower()
    if unit == "mm":
        return number * POINTS_PER_MM
    if unit == "in":
        return number * POINTS_PER_INCH
    if unit == "%":
        return (full_percent or 0.0) * number / 100
    return number


def page_dimensions(
    paper: str,
    orientation: str = "portrait",
    *,
    diagnostics: Diagnostics | None = None,
) -> tuple[float, float]:
    """Returns: (width, height) in points after the orientation swap."""
    key = paper.strip().upper()
    if key in PAPER_SIZES:
        width, height = PAPER_SIZES[key]
    else:
        match = _CUSTOM_PAPER_RE.match(paper)
        if match is None:
            raise ConfigurationError(f"Unsupported paper format: {paper}")
        unit = match.group(3)
        width = format_unit(f"{match.group(1)}{unit}", diagnostics=diagnostics)
        height = format_unit(f"{match.group(2)}{unit}", diagnostics=diagnostics)
    normalized = orientation.strip().lower()
    if normalized not in ORIENTATIONS:
        raise ConfigurationError(f"Unsupported orientation: {orientation}")
    if normalized == "landscape":
        return height, width
    return width, height


def _leading_number(text: str) -> float:
    match = _LEADING_NUMBER_RE.match(text)
    if match is None:
        return 0.0
    return float(match.group(1))


__all__ = [
    "Length",
    "ORIENTATIONS",
    "PAPER_SIZES",
    "POINTS_PER_INCH",
    "POINTS_PER_MM",
    "format_unit",
    "page_dimensions",
]
