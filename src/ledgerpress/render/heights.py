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

import logging
from typing import Any, Iterable, Sequence

from ..errors import warn
from .spec import ROW_SET_DATA, CellSpec, ImageFit, ImageSpec
from .text import split_lines, text_block_height, wrap_text
from .types import ImageSizer, LayoutContext, QueuedHeader, RowMeasure

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_BUFFER = 0.5


def cell_text_lines(cell: CellSpec, text: str | None, layout: LayoutContext) -> list[str]:
    string = "" if text is None else str(text)
    if cell.wrap_text:
        return wrap_text(
            string,
            cell.text_width,
            layout.measurer_for(cell),
            strip_breaks=bool(cell.strip_breaks),
        )
    return split_lines(string)


def cell_text_height(
    cell: CellSpec,
    text: str | None,
    layout: LayoutContext,
) -> tuple[list[str], float]:
    """Returns: (display lines, block height) for ``text`` laid out in ``cell``."""
    lines = cell_text_lines(cell, text, layout)
    cell.text_line_height = float(cell.font_size or 0) + float(cell.text_whitespace or 0)
    return lines, text_block_height(len(lines), cell.text_line_height)


def cell_content_height(cell: CellSpec, layout: LayoutContext) -> float:
    height = 0.0
    if cell.barcode is not None:
        height = cell.barcode.height
    _lines, text_height = cell_text_height(cell, cell.text, layout)
    cell.content_height = max(height, text_height)
    return cell.content_height


def row_visibility(
    cells: Sequence[CellSpec],
    values: Sequence[Any],
    row_set: str,
) -> dict[int, bool]:
    """Visual rows hidden because every cell is ``print_if_true`` and falsy map to False."""
    visible: dict[int, bool] = {}
    for cell, value in zip(cells, values):
        shown = row_set != ROW_SET_DATA or not cell.print_if_true or is_truthy(value)
        visible[cell.row] = visible.get(cell.row, False) or shown
    return visible


def is_truthy(value: Any) -> bool:
    """Record-value truthiness for ``print_if_true``; ``"0"`` and empty text are false."""
    if value is None:
        return False
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def queued_headers_height(queue: Iterable[QueuedHeader], data_header_height: float) -> float:
    height = 0.0
    pending = False
    for queued in queue:
        pending = True
        group = queued.group
        height += (
            group.header_max_cell_height
            + float(group.header_upper_buffer)
            + float(group.header_lower_buffer)
        )
    if pending:
        height += data_header_height
    return height


def calculate_y_needed(
    cells: Sequence[CellSpec],
    max_cell_height: float,
    values: Sequence[Any],
    texts: Sequence[str | None],
    *,
    layout: LayoutContext,
    row_set: str,
    available: float,
    upper_buffer: float = 0.0,
    lower_buffer: float = 0.0,
    queue: Iterable[QueuedHeader] = (),
    data_header_height: float = 0.0,
    image_sizer: ImageSizer | None = None,
) -> RowMeasure:
    """Height needed to render one row-set for the current record.

    ``available`` is the vertical space left above the reserved footer; images without an
    explicit height shrink to it. Only image scale data is cached on the cells, so repeated
    calls with the same inputs return the same measure.
    """
    visible = row_visibility(cells, values, row_set)
    heights: dict[int, float] = {}
    shifts: dict[int, float] = {}
    for cell, value, text in zip(cells, values, texts):
        if cell.row not in heights:
            heights[cell.row] = cell.row_height if cell.auto_row_height else max_cell_height
            shifts[cell.row] = 0.0
        current = heights[cell.row]
        image = cell.image
        if image is not None:
            current = max(
                current,
                _fit_image(cell, image, value, current, layout, available, image_sizer),
            )
        if image is None or not image.dynamic:
            _lines, text_height = cell_text_height(cell, text, layout)
            current = max(current, text_height)
        heights[cell.row] = current
        shift = float(cell.shift_row_up or 0)
        if shift > shifts[cell.row]:
            shifts[cell.row] = shift

    rows = sorted(heights)
    row_heights = tuple(heights[row] if visible.get(row, True) else 0.0 for row in rows)
    row_shifts = tuple(shifts[row] if visible.get(row, True) else 0.0 for row in rows)
    y_needed = sum(row_heights) + upper_buffer + lower_buffer
    y_needed += queued_headers_height(queue, data_header_height)
    return RowMeasure(y_needed=y_needed, row_heights=row_heights, row_shifts=row_shifts)


def _fit_image(
    cell: CellSpec,
    image: ImageSpec,
    value: Any,
    current_height: float,
    layout: LayoutContext,
    available: float,
    image_sizer: ImageSizer | None,
) -> float:
    """Scale the cell's image and float its text; returns the height the image needs."""
    buffer = DEFAULT_IMAGE_BUFFER if image.buffer is None else float(image.buffer)
    buffer_fill = buffer * 2
    path = str(value) if image.dynamic and value else image.path
    if not path:
        image.fit = None
        return current_height

    size = image_sizer(path) if image_sizer is not None else None
    img_w, img_h, kind = size if size else (0.0, 0.0, "")
    if not img_w:
        warn(layout.diagnostics, f"Image {path} had zero width ... setting to 1", logger=logger)
        img_w = 1.0
    if not img_h:
        warn(layout.diagnostics, f"Image {path} had zero height ... setting to 1", logger=logger)
        img_h = 1.0

    if image.height:
        y_ratio = (float(image.height) - buffer_fill) / img_h
    elif image.scale_to_fit:
        y_ratio = (current_height - buffer_fill) / img_h
    else:
        max_available = available - buffer_fill
        if img_h > max_available:
            y_ratio = max_available / img_h
            current_height = max(current_height, max_available)
        else:
            y_ratio = 1.0
    x_ratio = (cell.full_width - buffer_fill) / img_w
    fit = ImageFit(path=path, width=img_w, height=img_h, kind=kind, scale=min(x_ratio, y_ratio))
    image.fit = fit

    image_width = fit.scaled_width + buffer_fill
    image_height = fit.scaled_height + buffer_fill
    _float_text_beside_image(cell, image_width)
    return max(current_height, image_height)


def _float_text_beside_image(cell: CellSpec, image_width: float) -> None:
    margin_left = float(cell.text_margin_left or 0)
    margin_right = float(cell.text_margin_right or 0)
    cell.auto_margin_left = margin_left
    cell.auto_margin_right = margin_right
    position = cell.text_position or ""
    if cell.align in ("L", "C") and position == "R":
        cell.auto_margin_left = margin_left + image_width
    elif cell.align in ("R", "C") and position == "L":
        cell.auto_margin_right = margin_right + image_width
    cell.text_width = (
        cell.full_width
        - float(cell.text_whitespace or 0) * 2
        - cell.auto_margin_left
        - cell.auto_margin_right
    )


__all__ = [
    "DEFAULT_IMAGE_BUFFER",
    "calculate_y_needed",
    "cell_content_height",
    "cell_text_height",
    "cell_text_lines",
    "is_truthy",
    "queued_headers_height",
    "row_visibility",
]
