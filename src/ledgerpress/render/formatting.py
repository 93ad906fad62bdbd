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

import re
from decimal import Decimal
from typing import Any, Callable, Sequence

from .spec import CellSpec, NumberFormat
from .types import PageInfo

Datasource = Callable[[str], "Sequence[Sequence[Any]] | None"]

CURRENCY_SYMBOL = "$"

_DATASOURCE_RE = re.compile(r"%(\w+)\[(\d+),(\d+)\]%")


def numeric_value(value: Any) -> int | float | None:
    """Coerce a cell value to a number; ``None`` for text that is not numeric."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None
    return None


def format_number(fmt: NumberFormat, value: Any) -> str:
    """Render ``value`` with rounding, decimal fill, thousands and currency.

    >>> format_number(NumberFormat(2, True, True, True), -1234.5)
    '-$1,234.50'
    """
    number = numeric_value(value)
    if number is None:
        return str(value)
    if fmt.null_if_zero and number == 0:
        return ""

    places = int(fmt.decimal_places or 0)
    scale = 10**places
    scaled = number * scale
    if scaled > 0:
        scaled += 0.5
    elif scaled < 0:
        scaled -= 0.5
    rounded = int(scaled)

    whole, fraction = divmod(abs(rounded), scale)
    decimals = ""
    if places:
        decimals = f"{fraction:0{places}d}".rstrip("0")
        if fmt.decimal_fill:
            decimals = decimals.ljust(places, "0")
    result = f"{whole:,}" if fmt.separate_thousands else str(whole)
    if decimals:
        result = f"{result}.{decimals}"
    if fmt.currency:
        result = f"{CURRENCY_SYMBOL}{result}"
    if rounded < 0:
        result = f"-{result}"
    return result


def cell_text(
    text: str | None,
    cell: CellSpec,
    *,
    value: Any = None,
    page: PageInfo | None = None,
    datasource: Datasource | None = None,
) -> str:
    """Expand datasource lookups, ``?`` and the page placeholders in ``text``."""
    string = "" if text is None else str(text)
    if datasource is not None:
        string = _DATASOURCE_RE.sub(lambda match: _lookup(datasource, match), string)
    if page is not None:
        string = string.replace("%PAGE%", str(page.current_page))
        if page.total_pages is not None:
            string = string.replace("%PAGES%", str(page.total_pages))
        string = string.replace("%TIME%", page.current_time)
        return string
    replacement = "" if value is None else str(value)
    if cell.delimiter:
        parts = replacement.split(cell.delimiter)
        index = cell.index or 0
        replacement = parts[index] if 0 <= index < len(parts) else ""
    return string.replace("?", replacement)


def display_value(cell: CellSpec, value: Any, *, formatted: bool = True) -> str:
    if formatted and cell.format is not None:
        return format_number(cell.format, value)
    return "" if value is None else str(value)


def _lookup(datasource: Datasource, match: re.Match[str]) -> str:
    records = datasource(match.group(1))
    row, column = int(match.group(2)), int(match.group(3))
    try:
        found = records[row][column] if records else None
    except (IndexError, KeyError, TypeError):
        found = None
    return "" if found is None else str(found)


__all__ = [
    "CURRENCY_SYMBOL",
    "Datasource",
    "cell_text",
    "display_value",
    "format_number",
    "numeric_value",
]
