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

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Mapping

from ..errors import Diagnostics
from ..units import Length, format_unit, page_dimensions

if TYPE_CHECKING:
    from .draw import CellDecorator

Color = str | tuple[int, int, int]

GRAND_TOTALS = "GrandTotals"

ROW_SET_DATA = "data"
ROW_SET_FIELD_HEADERS = "field_headers"
ROW_SET_PAGE_HEADER = "page_header"
ROW_SET_PAGE_FOOTER = "page_footer"
ROW_SET_GROUP = "group"
ROW_SET_GROUP_HEADER = "group_header"
ROW_SET_GROUP_FOOTER = "group_footer"
BARCODE_LABEL_ALLOWANCE = 25


@dataclass(frozen=True)
class ReportInfo:
    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None
    creator: str = "ledgerpress"


@dataclass(frozen=True)
class ReportOptions:
    paper: str = "A4"
    orientation: str = "portrait"
    upper_margin: Length = 0
    lower_margin: Length = 0
    left_margin: Length = 0
    right_margin: Length = 0
    default_font: str = "Helvetica"
    default_font_size: float = 12
    info: ReportInfo = field(default_factory=ReportInfo)
    font_files: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PageMetrics:
    width: float
    height: float
    upper_margin: float
    lower_margin: float
    left_margin: float
    right_margin: float

    @property
    def print_right(self) -> float:
        return self.width - self.right_margin

    @property
    def print_width(self) -> float:
        return self.print_right - self.left_margin

    @property
    def print_height(self) -> float:
        return self.height - self.upper_margin - self.lower_margin

    @property
    def top(self) -> float:
        return self.height - self.upper_margin


def page_metrics(options: ReportOptions, *, diagnostics: Diagnostics | None = None) -> PageMetrics:
    width, height = page_dimensions(
        options.paper, options.orientation, diagnostics=diagnostics
    )
    return PageMetrics(
        width=width,
        height=height,
        upper_margin=format_unit(options.upper_margin, height, diagnostics=diagnostics),
        lower_margin=format_unit(options.lower_margin, height, diagnostics=diagnostics),
        left_margin=format_unit(options.left_margin, width, diagnostics=diagnostics),
        right_margin=format_unit(options.right_margin, width, diagnostics=diagnostics),
    )


@dataclass(frozen=True)
class NumberFormat:
    decimal_places: int | None = None
    decimal_fill: bool = False
    separate_thousands: bool = False
    currency: bool = False
    null_if_zero: bool = False


@dataclass(frozen=True)
class BackgroundSpec:
    shape: str | None = None
    color: Color | None = None
    border: Color | None = None
    borders: str = "tblr"


@dataclass(frozen=True)
class BarcodeSpec:
    code: str
    kind: str = "code128"
    zone: float = 25
    upper_mending_zone: float = 4
    lower_mending_zone: float = 12
    quiet_zone: float = 2
    scale: float = 1
    font_size: float | None = None

    @property
    def height(self) -> float:
        """Vertical space reserved for the bars plus the label beneath them."""
        return (self.zone + BARCODE_LABEL_ALLOWANCE) * self.scale


@dataclass(frozen=True)
class ImageFit:
    path: str
    width: float
    height: float
    kind: str
    scale: float

    @property
    def scaled_width(self) -> float:
        return self.width * self.scale

    @property
    def scaled_height(self) -> float:
        return self.height * self.scale


@dataclass
class ImageSpec:
    path: str | None = None
    dynamic: bool = False
    scale_to_fit: bool = False
    height: Length | None = None
    buffer: float | None = None
    fit: ImageFit | None = field(default=None, repr=False)


@dataclass
class CellSpec:
    name: str | None = None
    text: str | None = None
    width: Length | None = None
    x: Length | None = None
    y: Length | None = None
    font: str | None = None
    font_size: Length | None = None
    bold: bool | None = None
    italic: bool | None = None
    color: Color | None = None
    align: str | None = None
    text_align: str | None = None
    valign: str | None = None
    text_position: str | None = None
    text_margin_left: Length | None = None
    text_margin_right: Length | None = None
    text_whitespace: Length | None = None
    wrap_text: bool | None = None
    strip_breaks: bool | None = None
    auto_row_height: bool | None = None
    shift_row_up: Length | None = None
    filler: bool | None = None
    print_if_true: bool | None = None
    background: BackgroundSpec | None = None
    image: ImageSpec | None = None
    barcode: BarcodeSpec | None = None
    aggregate_function: str | None = None
    aggregate_source: int | None = None
    format: NumberFormat | None = None
    delimiter: str | None = None
    index: int | None = None
    header_align: str | None = None
    header_text_align: str | None = None
    header_valign: str | None = None
    header_color: Color | None = None
    decorator: CellDecorator | None = field(default=None, repr=False)
    split_down: CellSpec | None = None

    # Resolved once by the geometry pass.
    full_width: float = 0.0
    row: int = 0
    x_border: float = 0.0
    x_text: float = 0.0
    text_width: float = 0.0
    auto_margin_left: float = 0.0
    auto_margin_right: float = 0.0
    row_height: float = 0.0
    content_height: float = 0.0
    text_line_height: float = 0.0
    split_y_offset_up: float = 0.0
    split_y_offset_down: float = 0.0
    split_valign: str = ""
    data_index: int | None = None

    # Last rendered text extent, used to float images beside text.
    text_string_left: float = field(default=0.0, repr=False)
    text_string_right: float = field(default=0.0, repr=False)

    def chain(self) -> Iterator[CellSpec]:
        cell: CellSpec | None = self
        while cell is not None:
            yield cell
            cell = cell.split_down


RESOLVED_FIELDS = frozenset(
    {
        "full_width",
        "row",
        "x_border",
        "x_text",
        "text_width",
        "auto_margin_left",
        "auto_margin_right",
        "row_height",
        "content_height",
        "text_line_height",
        "split_y_offset_up",
        "split_y_offset_down",
        "split_valign",
        "data_index",
        "text_string_left",
        "text_string_right",
    }
)


def inherit_attributes(
    target: CellSpec,
    source: CellSpec,
    *,
    skip: frozenset[str] = frozenset(),
) -> CellSpec:
    """Copy every attribute ``target`` leaves unset from ``source``."""
    for spec_field in fields(CellSpec):
        name = spec_field.name
        if name in RESOLVED_FIELDS or name in skip:
            continue
        if getattr(target, name) is None:
            setattr(target, name, getattr(source, name))
    return target


@dataclass
class GroupSpec:
    name: str
    data_column: int | None = None
    page_break: bool = False
    reprinting_header: bool = False
    header: list[CellSpec] = field(default_factory=list)
    footer: list[CellSpec] = field(default_factory=list)
    header_upper_buffer: Length = 0
    header_lower_buffer: Length = 0
    footer_upper_buffer: Length = 0
    footer_lower_buffer: Length = 0

    header_max_cell_height: float = 0.0
    footer_max_cell_height: float = 0.0

    @property
    def is_grand_total(self) -> bool:
        return self.name == GRAND_TOTALS


@dataclass
class PageSpec:
    header: list[CellSpec] = field(default_factory=list)
    footer: list[CellSpec] | None = None
    footerless: bool = False
    attach_footer: bool = False

    header_max_cell_height: float = 0.0
    footer_max_cell_height: float = 0.0


@dataclass
class DataSpec:
    fields: list[CellSpec] = field(default_factory=list)
    field_headers: list[CellSpec] | None = None
    groups: list[GroupSpec] = field(default_factory=list)
    page: PageSpec = field(default_factory=PageSpec)
    headings: CellSpec | None = None
    background: BackgroundSpec | None = None
    cell_borders: bool = False
    no_field_headers: bool = False
    upper_buffer: Length = 0
    lower_buffer: Length = 0
    field_headers_upper_buffer: Length = 0
    field_headers_lower_buffer: Length = 0

    max_cell_height: float = 0.0
    field_headers_max_cell_height: float = 0.0
    cell_mapping: dict[str, int] = field(default_factory=dict)


__all__ = [
    "BARCODE_LABEL_ALLOWANCE",
    "BackgroundSpec",
    "BarcodeSpec",
    "CellSpec",
    "Color",
    "DataSpec",
    "GRAND_TOTALS",
    "GroupSpec",
    "ImageFit",
    "ImageSpec",
    "NumberFormat",
    "PageMetrics",
    "PageSpec",
    "RESOLVED_FIELDS",
    "ROW_SET_DATA",
    "ROW_SET_FIELD_HEADERS",
    "ROW_SET_GROUP",
    "ROW_SET_GROUP_FOOTER",
    "ROW_SET_GROUP_HEADER",
    "ROW_SET_PAGE_FOOTER",
    "ROW_SET_PAGE_HEADER",
    "ReportInfo",
    "ReportOptions",
    "inherit_attributes",
    "page_metrics",
]
