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

"""Turns resolved cells into canvas draw calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping

from ..errors import warn
from .canvas import Canvas
from .formatting import cell_text, display_value
from .geometry import CellBox, cell_box
from .heights import DEFAULT_IMAGE_BUFFER, cell_text_height
from .spec import (
    ROW_SET_FIELD_HEADERS,
    BackgroundSpec,
    CellSpec,
    Color,
    ImageFit,
    ImageSpec,
)
from .text import justify_spacing, truncate_to_width
from .types import UNSET, FontRef, LayoutContext

logger = logging.getLogger(__name__)

IMAGE_KINDS = frozenset({"PNG", "JPEG", "GIF", "TIFF", "PPM", "BMP"})
EAN13_DIGITS = 12

_IMAGE_FIELDS = frozenset(f.name for f in fields(ImageSpec)) - {"fit"}


@dataclass(frozen=True)
class RenderOptions:
    """What a decorator hook sees about the cell being drawn."""

    row: Any
    row_type: str
    cell: CellSpec
    cell_y_border: float
    cell_full_height: float
    page_index: int
    value: Any = UNSET

    @property
    def has_value(self) -> bool:
        return self.value is not UNSET


@dataclass(frozen=True)
class RenderResult:
    text_rendered: bool
    value: Any = UNSET


TextSource = Callable[[CellSpec, RenderOptions], "str | None"]


class CellDecorator:
    """Per-cell presentation hooks.

    ``resolve_color`` returning ``None`` keeps the cell colour. ``resolve_background``
    returning ``None`` suppresses the background. ``custom_render`` returning ``None``
    keeps the default rendering; a mapping may hold ``render_text``, ``render_image``
    or ``rendering_done``.
    """

    def resolve_color(self, string: str, row: Any, options: RenderOptions) -> Color | None:
        return None

    def resolve_background(
        self, value: Any, row: Any, options: RenderOptions
    ) -> BackgroundSpec | None:
        return options.cell.background

    def custom_render(self, options: RenderOptions) -> Mapping[str, Any] | None:
        return None


class CallbackDecorator(CellDecorator):
    """Adapts plain callables (``colour_func`` style definitions) to :class:`CellDecorator`."""

    def __init__(
        self,
        *,
        color: Callable[..., Any] | None = None,
        background: Callable[..., Any] | None = None,
        render: Callable[..., Any] | None = None,
    ) -> None:
        self._color = color
        self._background = background
        self._render = render

    def resolve_color(self, string: str, row: Any, options: RenderOptions) -> Color | None:
        if self._color is None:
            return None
        return self._color(string, row, options) or None

    def resolve_background(
        self, value: Any, row: Any, options: RenderOptions
    ) -> BackgroundSpec | None:
        if self._background is None:
            return options.cell.background
        result = self._background(value, row, options)
        if not result:
            return None
        if isinstance(result, BackgroundSpec):
            return result
        return _background_from_mapping(result)

    def custom_render(self, options: RenderOptions) -> Mapping[str, Any] | None:
        if self._render is None:
            return None
        result = self._render(options)
        return result if isinstance(result, Mapping) else {}


class CellRenderer:
    """Draws one resolved cell (and its split chain) onto a canvas."""

    def __init__(self, canvas: Canvas, layout: LayoutContext) -> None:
        self.canvas = canvas
        self.layout = layout

    def render(
        self,
        cell: CellSpec,
        options: RenderOptions,
        text_for: TextSource,
    ) -> RenderResult:
        box = cell_box(cell, options.cell_y_border, options.cell_full_height)
        decorator = cell.decorator
        options = replace(options, cell=cell)

        self._render_background(cell, box, options)

        if decorator is not None:
            instruction = decorator.custom_render(options)
            if instruction is not None:
                if "render_text" in instruction:
                    options = replace(options, value=instruction["render_text"])
                elif "render_image" in instruction:
                    self._update_image(cell, box, instruction["render_image"])
                elif instruction.get("rendering_done"):
                    return RenderResult(False, options.value)
                else:
                    self._warn("A custom render hook returned no recognised instruction")
                    return RenderResult(False, options.value)

        rendered = False
        dynamic = cell.image is not None and cell.image.dynamic
        if not dynamic:
            string = text_for(cell, options)
            if string is not None:
                self._render_text(cell, box, options, string)
                rendered = True

        if cell.image is not None:
            self._render_image(cell, box)
        if cell.barcode is not None:
            self._render_barcode(cell, box, options)
        if cell.split_down is not None:
            self.render(cell.split_down, options, text_for)
        return RenderResult(rendered, options.value)

    def _render_background(self, cell: CellSpec, box: CellBox, options: RenderOptions) -> None:
        if cell.decorator is not None:
            background = cell.decorator.resolve_background(options.value, options.row, options)
        else:
            background = cell.background
        if background is None or box.width <= 0 or box.height <= 0:
            return
        canvas = self.canvas
        if background.shape == "ellipse":
            canvas.fill_shape("ellipse", box.x, box.y, box.width, box.height, background.color)
        elif background.shape == "box":
            x = box.x - 0.4
            y = box.y - 0.5
            width = box.width + 0.8
            height = box.height + 1
            if x < 0:
                width += x
                x = 0.0
            if y < 0:
                height += y
                y = 0.0
            canvas.fill_shape("box", x, y, width, height, background.color)
        if not background.border:
            return
        left, bottom = box.x, box.y
        right, top = box.x + box.width, box.y + box.height
        borders = background.borders.lower()
        if "b" in borders:
            canvas.stroke_line(left, bottom, right, bottom, background.border)
        if "r" in borders:
            canvas.stroke_line(right, bottom, right, top, background.border)
        if "t" in borders:
            canvas.stroke_line(right, top, left, top, background.border)
        if "l" in borders:
            canvas.stroke_line(left, top, left, bottom, background.border)

    def _render_text(
        self,
        cell: CellSpec,
        box: CellBox,
        options: RenderOptions,
        string: str,
    ) -> None:
        color: Color | None = None
        if cell.decorator is not None:
            logger.debug("Resolving colour for %r", string)
            color = cell.decorator.resolve_color(string, options.row, options)
        color = color or cell.color or "black"
        string = display_value(cell, string, formatted=options.row_type != ROW_SET_FIELD_HEADERS)

        lines, text_height = cell_text_height(cell, string, self.layout)
        line_height = cell.text_line_height
        text_width = cell.text_width
        font = FontRef.for_cell(cell, self.layout.default_font)
        size = float(cell.font_size or self.layout.default_font_size)
        measure = self.layout.measurer_for(cell)

        abs_x = cell.x is not None
        abs_y = cell.y is not None
        if abs_y:
            y_pos = float(cell.y)
        else:
            y_pos = box.y + text_height - line_height + float(cell.text_whitespace or 0)
        x_pos = float(cell.x) if abs_x else cell.x_text + cell.auto_margin_left
        text_align = "L" if abs_x else cell.text_align
        cell_align = "L" if abs_x else cell.align
        valign = "B" if abs_y else cell.valign
        if valign == "T":
            y_pos += box.height - text_height
        elif valign == "M":
            y_pos += (box.height - text_height) / 2

        positions: list[tuple[str, float, float, float]] = []
        max_width = 0.0
        min_left = x_pos + text_width
        max_right = 0.0
        for line in lines:
            if text_width > 0:
                line = truncate_to_width(line, text_width, measure)
            width = measure(line)
            left = x_pos
            right = left
            if text_align == "C":
                left += (text_width - width) / 2
                right = left + width
            elif text_align == "R":
                right += text_width
                left = right - width
            elif text_align == "J":
                right += text_width
            else:
                right += width
            positions.append((line, left, right, width))
            max_width = max(max_width, width)
            min_left = min(min_left, left)
            max_right = max(max_right, right)

        offset = _cell_align_offset(cell_align, text_align, text_width, max_width, x_pos, min_left)
        cell.text_string_left = min_left + offset
        cell.text_string_right = max_right + offset

        for line, left, _right, _width in positions:
            if text_align == "J":
                spacing = justify_spacing(line, text_width, measure)
                self.canvas.draw_text(
                    font, size, color, left, y_pos, line, char_spacing=spacing
                )
            else:
                self.canvas.draw_text(font, size, color, left + offset, y_pos, line)
            y_pos -= line_height

    def _render_image(self, cell: CellSpec, box: CellBox) -> None:
        image = cell.image
        if image is None or image.fit is None:
            return
        fit = image.fit
        if fit.kind not in IMAGE_KINDS:
            self._warn(f"Unknown image type {fit.kind or '?'} for {fit.path}; not rendering it")
            return
        buffer = DEFAULT_IMAGE_BUFFER if image.buffer is None else float(image.buffer)
        whitespace = float(cell.text_whitespace or 0)
        x = float(cell.x) if cell.x is not None else box.x
        y = float(cell.y) if cell.y is not None else box.y
        y += (box.height - fit.scaled_height) / 2
        position = cell.text_position or ""
        if position == "L" and cell.align in ("L", "C", "R"):
            x = cell.text_string_right + buffer + whitespace
        elif position == "R" and cell.align in ("C", "R"):
            x = cell.text_string_left - fit.scaled_width - buffer - whitespace
        elif cell.align == "C":
            x += (box.width - fit.scaled_width) / 2 - buffer
        elif cell.align == "R":
            x += box.width - fit.scaled_width - buffer
        else:
            x += buffer
        self.canvas.place_image(fit.path, x, y, fit.scale)

    def _render_barcode(self, cell: CellSpec, box: CellBox, options: RenderOptions) -> None:
        barcode = cell.barcode
        if barcode is None:
            return
        value = options.value if options.has_value else options.row
        code = cell_text(barcode.code, cell, value=value)
        if barcode.kind == "ean13":
            digits = "".join(char for char in code if char.isdigit())
            code = (digits + "0" * EAN13_DIGITS)[:EAN13_DIGITS]
        try:
            width = self.canvas.barcode_width(barcode, code)
        except ValueError as exc:
            self._warn(f"Barcode not rendered: {exc}")
            return
        if cell.x is not None:
            x = float(cell.x)
            if cell.align == "R":
                x -= width
            elif cell.align == "C":
                x -= width / 2
        elif cell.align == "R":
            x = box.x + box.width - width
        elif cell.align == "C":
            x = box.x + (box.width - width) / 2
        else:
            x = box.x
        y = float(cell.y) if cell.y is not None else box.y
        font_size = float(barcode.font_size or cell.font_size or self.layout.default_font_size)
        self.canvas.place_barcode(barcode, code, x, y, font_size)

    def _update_image(self, cell: CellSpec, box: CellBox, values: Mapping[str, Any]) -> None:
        image = cell.image
        if image is None:
            image = cell.image = ImageSpec()
        for key, value in values.items():
            if key in _IMAGE_FIELDS:
                setattr(image, key, value)
            else:
                self._warn(f"Unknown image attribute {key!r} from a custom render hook")
        if not image.path:
            image.fit = None
            return
        size = self.canvas.image_dimensions(str(image.path))
        if size is None:
            self._warn(f"Image {image.path} could not be read")
            image.fit = None
            return
        width, height, kind = size
        buffer_fill = (DEFAULT_IMAGE_BUFFER if image.buffer is None else image.buffer) * 2
        scale = min(
            (box.width - buffer_fill) / (width or 1),
            (box.height - buffer_fill) / (height or 1),
        )
        image.fit = ImageFit(
            path=str(image.path), width=width, height=height, kind=kind, scale=scale
        )

    def _warn(self, message: str) -> None:
        warn(self.layout.diagnostics, message, logger=logger)


def _cell_align_offset(
    cell_align: str,
    text_align: str,
    text_width: float,
    max_width: float,
    x_pos: float,
    min_left: float,
) -> float:
    """Shift that moves the text block as a whole inside the cell."""
    slack = text_width - max_width
    if cell_align == "L":
        if text_align == "R":
            return x_pos - min_left
        if text_align == "C":
            return -slack / 2
    elif cell_align == "C":
        if text_align == "L":
            return slack / 2
        if text_align == "R":
            return -slack / 2
    elif cell_align == "R":
        if text_align == "L":
            return slack
        if text_align == "C":
            return slack / 2
    return 0.0


def _background_from_mapping(values: Mapping[str, Any]) -> BackgroundSpec:
    borders = str(values.get("borders", "tblr")).lower()
    return BackgroundSpec(
        shape=values.get("shape"),
        color=values.get("color", values.get("colour")),
        border=values.get("border"),
        borders="tblr" if borders == "all" else borders,
    )


__all__ = [
    "CallbackDecorator",
    "CellDecorator",
    "CellRenderer",
    "IMAGE_KINDS",
    "RenderOptions",
    "RenderResult",
    "TextSource",
]
