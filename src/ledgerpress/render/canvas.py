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

"""Drawing backends: a recording canvas and its fpdf2 replay."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

import barcode as barcode_symbols
from barcode.errors import BarcodeError
from fpdf import FPDF
from PIL import Image

from ..errors import Diagnostics, warn
from .spec import BarcodeSpec, Color, ReportInfo
from .types import FontRef, ImageSizer, TextMeasurer

NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "grey": (128, 128, 128),
    "gray": (128, 128, 128),
    "darkgrey": (169, 169, 169),
    "darkgray": (169, 169, 169),
    "lightgrey": (211, 211, 211),
    "lightgray": (211, 211, 211),
    "silver": (192, 192, 192),
    "red": (255, 0, 0),
    "darkred": (139, 0, 0),
    "maroon": (128, 0, 0),
    "green": (0, 128, 0),
    "darkgreen": (0, 100, 0),
    "blue": (0, 0, 255),
    "darkblue": (0, 0, 139),
    "navy": (0, 0, 128),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "teal": (0, 128, 128),
}
BARCODE_LABEL_SIZE = 9.0

logger = logging.getLogger(__name__)


class Canvas(Protocol):
    def measure_text(self, font: FontRef, size: float, text: str) -> float: ...

    def image_dimensions(self, path: str) -> tuple[float, float, str] | None: ...

    def barcode_width(self, barcode: BarcodeSpec, code: str) -> float: ...

    def add_page(self) -> int: ...

    def select_page(self, index: int) -> None: ...

    def draw_text(
        self,
        font: FontRef,
        size: float,
        color: Color,
        x: float,
        y: float,
        text: str,
        *,
        char_spacing: float = 0.0,
    ) -> None: ...

    def stroke_line(self, x1: float, y1: float, x2: float, y2: float, color: Color) -> None: ...

    def fill_shape(
        self, kind: str, x: float, y: float, width: float, height: float, color: Color
    ) -> None: ...

    def place_image(self, path: str, x: float, y: float, scale: float) -> None: ...

    def place_barcode(
        self, barcode: BarcodeSpec, code: str, x: float, y: float, font_size: float
    ) -> None: ...


@dataclass(frozen=True)
class DrawCall:
    op: str
    args: Mapping[str, Any] = field(default_factory=dict)


class RecordingCanvas:
    """Keeps per-page draw-call traces in layout coordinates (origin bottom-left)."""

    def __init__(
        self,
        width: float,
        height: float,
        *,
        measure: TextMeasurer,
        image_sizer: ImageSizer | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self._measure = measure
        self._image_sizer = image_sizer or image_dimensions
        self.pages: list[list[DrawCall]] = []
        self._current: int | None = None

    def measure_text(self, font: FontRef, size: float, text: str) -> float:
        return self._measure(font, size, text)

    def image_dimensions(self, path: str) -> tuple[float, float, str] | None:
        return self._image_sizer(path)

    def barcode_width(self, barcode: BarcodeSpec, code: str) -> float:
        modules = barcode_modules(barcode.kind, code)
        return (len(modules) + 2 * barcode.quiet_zone) * barcode.scale

    def add_page(self) -> int:
        self.pages.append([])
        self._current = len(self.pages) - 1
        return self._current

    def select_page(self, index: int) -> None:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"page {index} does not exist")
        self._current = index

    def draw_text(
        self,
        font: FontRef,
        size: float,
        color: Color,
        x: float,
        y: float,
        text: str,
        *,
        char_spacing: float = 0.0,
    ) -> None:
        self._record(
            "text",
            font=font,
            size=size,
            color=color,
            x=x,
            y=y,
            text=text,
            char_spacing=char_spacing,
        )

    def stroke_line(self, x1: float, y1: float, x2: float, y2: float, color: Color) -> None:
        self._record("line", x1=x1, y1=y1, x2=x2, y2=y2, color=color)

    def fill_shape(
        self, kind: str, x: float, y: float, width: float, height: float, color: Color
    ) -> None:
        self._record("shape", kind=kind, x=x, y=y, width=width, height=height, color=color)

    def place_image(self, path: str, x: float, y: float, scale: float) -> None:
        self._record("image", path=path, x=x, y=y, scale=scale)

    def place_barcode(
        self, barcode: BarcodeSpec, code: str, x: float, y: float, font_size: float
    ) -> None:
        self._record("barcode", barcode=barcode, code=code, x=x, y=y, font_size=font_size)

    def texts(self, page: int | None = None) -> list[str]:
        pages = self.pages if page is None else [self.pages[page]]
        return [call.args["text"] for calls in pages for call in calls if call.op == "text"]

    def _record(self, op: str, **args: Any) -> None:
        index = self._current if self._current is not None else self.add_page()
        self.pages[index].append(DrawCall(op, args))


class FpdfCanvas(RecordingCanvas):
    """Measures with fpdf2 font metrics and replays the traces into a PDF."""

    def __init__(
        self,
        width: float,
        height: float,
        *,
        info: ReportInfo | None = None,
        font_files: Mapping[str, str] | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.info = info or ReportInfo()
        self.font_files = dict(font_files or {})
        self.diagnostics = diagnostics
        self._unicode_families = {family.lower() for family in self.font_files}
        self._reported: set[str] = set()
        self._metrics = self._new_pdf(width, height)
        super().__init__(width, height, measure=self._measure_with_fpdf)

    def draw_text(
        self,
        font: FontRef,
        size: float,
        color: Color,
        x: float,
        y: float,
        text: str,
        *,
        char_spacing: float = 0.0,
    ) -> None:
        super().draw_text(
            font, size, color, x, y, self._encodable(font, text), char_spacing=char_spacing
        )

    def _encodable(self, font: FontRef, text: str) -> str:
        """``text`` as the font can show it; core fonts get ``?`` for unmapped characters."""
        if font.family.lower() in self._unicode_families:
            return text
        encoding = self._metrics.core_fonts_encoding
        try:
            text.encode(encoding)
        except UnicodeEncodeError:
            missing = set()
            for char in text:
                try:
                    char.encode(encoding)
                except UnicodeEncodeError:
                    missing.add(char)
            fresh = missing - self._reported
            if fresh:
                self._reported |= fresh
                warn(
                    self.diagnostics,
                    f"Characters {''.join(sorted(fresh))!r} are not available in core font "
                    f"{font.family}; drawn as '?'",
                    logger=logger,
                )
            return text.encode(encoding, errors="replace").decode(encoding)
        return text

    def _new_pdf(self, width: float, height: float) -> FPDF:
        pdf = FPDF(unit="pt", format=(width, height))
        pdf.set_auto_page_break(False)
        pdf.set_margins(0, 0, 0)
        for family, path in self.font_files.items():
            pdf.add_font(family, "", str(path))
        return pdf

    def _measure_with_fpdf(self, font: FontRef, size: float, text: str) -> float:
        self._metrics.set_font(font.family, font.style, size)
        return float(self._metrics.get_string_width(self._encodable(font, text)))

    def build(self) -> FPDF:
        pdf = self._new_pdf(self.width, self.height)
        _apply_info(pdf, self.info)
        for calls in self.pages:
            pdf.add_page()
            # Fills sit underneath text and lines.
            for call in sorted(calls, key=lambda call: call.op != "shape"):
                _replay(pdf, self.height, call)
        return pdf

    def to_bytes(self) -> bytes:
        return bytes(self.build().output())

    def output(self, path: str | Path) -> Path:
        target = Path(path)
        target.write_bytes(self.to_bytes())
        return target


@functools.lru_cache(maxsize=256)
def image_dimensions(path: str) -> tuple[float, float, str] | None:
    """Returns: (width, height, format) from the image header, or ``None``."""
    try:
        with Image.open(path) as image:
            return float(image.width), float(image.height), (image.format or "").upper()
    except (OSError, ValueError):
        return None


@functools.lru_cache(maxsize=256)
def barcode_modules(kind: str, code: str) -> str:
    """Bar/space module pattern (``"1"`` = bar) for ``code``.

    Raises ``ValueError`` when ``code`` cannot be encoded as ``kind``.
    """
    symbol_class = barcode_symbols.get_barcode_class(kind)
    try:
        if kind == "code39":
            symbol = symbol_class(code, add_checksum=False)
        else:
            symbol = symbol_class(code)
        return "".join(symbol.build())
    except BarcodeError as exc:
        raise ValueError(f"Cannot encode {code!r} as {kind}: {exc}") from exc


def rgb(color: Color | None) -> tuple[int, int, int]:
    if color is None:
        return (0, 0, 0)
    if isinstance(color, tuple):
        return color
    text = str(color).strip().lower()
    if text.startswith("#") and len(text) == 7:
        return (int(text[1:3], 16), int(text[3:5], 16), int(text[5:7], 16))
    return NAMED_COLORS.get(text, (0, 0, 0))


def _apply_info(pdf: FPDF, info: ReportInfo) -> None:
    if info.title:
        pdf.set_title(info.title)
    if info.author:
        pdf.set_author(info.author)
    if info.subject:
        pdf.set_subject(info.subject)
    if info.keywords:
        pdf.set_keywords(info.keywords)
    pdf.set_creator(info.creator)


def _replay(pdf: FPDF, page_height: float, call: DrawCall) -> None:
    args = call.args
    if call.op == "text":
        font: FontRef = args["font"]
        pdf.set_font(font.family, font.style, args["size"])
        pdf.set_text_color(*rgb(args["color"]))
        pdf.set_char_spacing(args["char_spacing"])
        pdf.text(args["x"], page_height - args["y"], args["text"])
        pdf.set_char_spacing(0)
    elif call.op == "line":
        pdf.set_draw_color(*rgb(args["color"]))
        pdf.line(
            args["x1"], page_height - args["y1"], args["x2"], page_height - args["y2"]
        )
    elif call.op == "shape":
        pdf.set_fill_color(*rgb(args["color"]))
        top = page_height - args["y"] - args["height"]
        if args["kind"] == "ellipse":
            pdf.ellipse(args["x"], top, args["width"], args["height"], style="F")
        else:
            pdf.rect(args["x"], top, args["width"], args["height"], style="F")
    elif call.op == "image":
        size = image_dimensions(args["path"])
        if size is None:
            return
        width = size[0] * args["scale"]
        height = size[1] * args["scale"]
        pdf.image(args["path"], x=args["x"], y=page_height - args["y"] - height, w=width, h=height)
    elif call.op == "barcode":
        _draw_barcode(pdf, page_height, args["barcode"], args["code"], args)


def _draw_barcode(
    pdf: FPDF,
    page_height: float,
    spec: BarcodeSpec,
    code: str,
    args: Mapping[str, Any],
) -> None:
    modules = barcode_modules(spec.kind, code)
    scale = spec.scale
    bar_bottom = args["y"] + spec.lower_mending_zone * scale
    bar_height = spec.zone * scale
    left = args["x"] + spec.quiet_zone * scale
    pdf.set_fill_color(0, 0, 0)
    start: int | None = None
    for index, module in enumerate(modules + "0"):
        if module == "1" and start is None:
            start = index
        elif module != "1" and start is not None:
            pdf.rect(
                left + start * scale,
                page_height - bar_bottom - bar_height,
                (index - start) * scale,
                bar_height,
                style="F",
            )
            start = None
    size = args["font_size"] or BARCODE_LABEL_SIZE
    pdf.set_font("Helvetica", "", size)
    pdf.set_text_color(0, 0, 0)
    label_width = pdf.get_string_width(code)
    symbol_width = len(modules) * scale
    pdf.text(
        left + (symbol_width - label_width) / 2,
        page_height - (bar_bottom - size),
        code,
    )


__all__ = [
    "Canvas",
    "DrawCall",
    "FpdfCanvas",
    "NAMED_COLORS",
    "RecordingCanvas",
    "barcode_modules",
    "image_dimensions",
    "rgb",
]
