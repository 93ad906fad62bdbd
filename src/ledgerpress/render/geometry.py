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

from dataclasses import dataclass
from typing import Sequence

from ..errors import CellNameError, MissingCellWidthError
from ..units import format_unit
from .heights import DEFAULT_IMAGE_BUFFER, cell_content_height
from .spec import (
    ROW_SET_DATA,
    ROW_SET_FIELD_HEADERS,
    ROW_SET_GROUP,
    BackgroundSpec,
    CellSpec,
    inherit_attributes,
)
from .types import LayoutContext

_SPLIT_NOT_INHERITED = frozenset({"image", "text", "barcode", "split_down", "width", "valign"})
_ALIGNMENTS = {"l": "L", "r": "R", "c": "C", "j": "J"}
_VALIGNMENTS = {"t": "T", "m": "M", "b": "B"}


@dataclass(frozen=True)
class CellBox:
    x: float
    y: float
    width: float
    height: float


def resolve_cells(
    cells: Sequence[CellSpec],
    row_set: str,
    layout: LayoutContext,
    *,
    headings: CellSpec | None = None,
    background: BackgroundSpec | None = None,
    cell_mapping: dict[str, int] | None = None,
    group_name: str | None = None,
    split_height: float | None = None,
) -> float:
    """Resolve geometry for one row-set in place.

    Cells fold onto a new visual row when the next one would cross the print-right bound.
    Returns the tallest cell height, split children included.
    """
    page = layout.page
    diagnostics = layout.diagnostics
    x = page.left_margin
    row = 0
    data_index = 0
    row_height = 0.0
    row_heights: list[float] = []
    max_cell_height = 0.0

    for counter, cell in enumerate(cells):
        if row_set == ROW_SET_FIELD_HEADERS and headings is not None:
            inherit_attributes(cell, headings)
        if cell.width is not None:
            cell.full_width = format_unit(cell.width, page.print_width, diagnostics=diagnostics)
        if not cell.full_width:
            raise MissingCellWidthError(row_set, counter, cell.name)

        if x > page.left_margin and int(x + cell.full_width) > page.print_right:
            row_heights.append(row_height)
            row_height = 0.0
            row += 1
            x = page.left_margin

        if cell.x is not None:
            cell.x = format_unit(cell.x, page.print_width, diagnostics=diagnostics)
        if cell.y is not None:
            cell.y = format_unit(cell.y, page.print_height, diagnostics=diagnostics)
        cell.shift_row_up = format_unit(
            cell.shift_row_up, page.print_height, diagnostics=diagnostics
        )
        cell.text_margin_left = format_unit(
            cell.text_margin_left, page.print_width, diagnostics=diagnostics
        )
        cell.text_margin_right = format_unit(
            cell.text_margin_right, page.print_width, diagnostics=diagnostics
        )
        _resolve_alignment(cell, row_set)
        cell.auto_margin_left = cell.text_margin_left
        cell.auto_margin_right = cell.text_margin_right
        cell.row = row
        if split_height is None:
            cell.x_border = x

        cell.font = cell.font or layout.default_font
        if cell.font_size is not None:
            cell.font_size = format_unit(cell.font_size, page.print_width, diagnostics=diagnostics)
        else:
            cell.font_size = float(layout.default_font_size)
        if cell.text_whitespace is not None:
            cell.text_whitespace = format_unit(
                cell.text_whitespace, page.print_width, diagnostics=diagnostics
            )
        else:
            cell.text_whitespace = float(int(cell.font_size) >> 1)
        cell.x_text = cell.x_border + cell.text_whitespace
        cell.text_width = (
            cell.full_width
            - cell.text_whitespace * 2
            - cell.text_margin_left
            - cell.text_margin_right
        )

        if row_set == ROW_SET_DATA:
            if cell.background is None and background is not None:
                cell.background = background
            if not cell.filler and split_height is None:
                _register_data_cell(cell, counter, data_index, cell_mapping)
                data_index += 1
        elif row_set == ROW_SET_FIELD_HEADERS:
            cell.wrap_text = True
            if cell.text is None:
                cell.text = cell.name
        elif row_set == ROW_SET_GROUP and cell.aggregate_source is not None:
            cell.text = group_name

        if cell.image is not None:
            image = cell.image
            image.height = format_unit(image.height, page.print_height, diagnostics=diagnostics)
            if image.buffer is None:
                image.buffer = DEFAULT_IMAGE_BUFFER
            image.fit = None

        height = cell_content_height(cell, layout)
        height += _resolve_split(cell, row_set, layout, split_height, group_name)

        row_height = max(row_height, height)
        max_cell_height = max(max_cell_height, height)
        x += cell.full_width

    row_heights.append(row_height)
    for cell in cells:
        cell.row_height = row_heights[cell.row]
    return max_cell_height


def _resolve_split(
    cell: CellSpec,
    row_set: str,
    layout: LayoutContext,
    split_height: float | None,
    group_name: str | None,
) -> float:
    """Resolve the split child chain; returns the height it adds below ``cell``."""
    offset_up = split_height or 0.0
    cell.split_y_offset_up = offset_up
    child = cell.split_down
    if child is None:
        cell.split_y_offset_down = 0.0
        if offset_up:
            if cell.split_valign in ("T", "M"):
                cell.valign = "T"
        else:
            cell.split_valign = ""
        return 0.0

    child.width = None
    child.valign = cell.valign
    inherit_attributes(child, cell, skip=_SPLIT_NOT_INHERITED)
    child.full_width = cell.full_width
    child.x_border = cell.x_border
    if not offset_up:
        cell.split_valign = cell.valign or ""
        if cell.valign == "M":
            cell.valign = "B"
    else:
        cell.valign = "M"
    child.split_valign = cell.split_valign

    height = cell.content_height
    child_height = resolve_cells(
        [child],
        row_set,
        layout,
        group_name=group_name,
        split_height=offset_up + height,
    )
    cell.split_y_offset_down = child_height
    return child_height


def _resolve_alignment(cell: CellSpec, row_set: str) -> None:
    headers = row_set == ROW_SET_FIELD_HEADERS
    align = cell.align if cell.align is not None else cell.text_align
    cell.align = _first_letter(align, _ALIGNMENTS) or ("C" if headers else "L")
    cell.text_align = _first_letter(cell.text_align, _ALIGNMENTS) or cell.align
    cell.valign = _first_letter(cell.valign, _VALIGNMENTS) or ("M" if headers else "B")
    position = _first_letter(cell.text_position, {"l": "L", "r": "R"})
    cell.text_position = position or ""


def _first_letter(value: str | None, table: dict[str, str]) -> str | None:
    if not value:
        return None
    return table.get(str(value).strip()[:1].lower())


def _register_data_cell(
    cell: CellSpec,
    counter: int,
    data_index: int,
    cell_mapping: dict[str, int] | None,
) -> None:
    if not cell.name:
        raise CellNameError(counter, cell.name)
    if cell_mapping is not None:
        if cell.name in cell_mapping:
            raise CellNameError(counter, cell.name, duplicate=True)
        cell_mapping[cell.name] = counter
    cell.data_index = data_index


def cell_box(cell: CellSpec, cursor_y: float, row_height: float) -> CellBox:
    """Box of one cell in a split chain whose visual row spans ``row_height`` above ``cursor_y``."""
    height = row_height
    y = cursor_y
    up = cell.split_y_offset_up
    down = cell.split_y_offset_down
    content = cell.content_height
    if cell.split_valign == "T":
        if down:
            y += height - content - up
            height = content
        elif up:
            height -= up
    elif cell.split_valign == "M":
        fill = (height - content - down - up) / 2
        if down and not up:
            y += height - content - fill
            height -= down + fill
        elif down and up:
            y += height - content - up - fill
            height = content
        elif up:
            height = content + fill
    elif down and not up:
        y += down
        height -= down
    elif up:
        y += down
        height = content
    return CellBox(x=cell.x_border, y=y, width=cell.full_width, height=height)


__all__ = ["CellBox", "cell_box", "resolve_cells"]
