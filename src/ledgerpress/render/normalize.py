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

"""Builds specs from plain mappings and translates legacy attribute spellings."""

from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Mapping, Sequence

from ..errors import ConfigurationError, Diagnostics, warn
from .draw import CallbackDecorator
from .spec import (
    RESOLVED_FIELDS,
    BackgroundSpec,
    BarcodeSpec,
    CellSpec,
    DataSpec,
    GroupSpec,
    ImageSpec,
    NumberFormat,
    PageSpec,
    ReportInfo,
    ReportOptions,
)

logger = logging.getLogger(__name__)

LEGACY_FORMATS: dict[str, NumberFormat] = {
    "currency": NumberFormat(
        currency=True, decimal_places=2, decimal_fill=True, separate_thousands=True
    ),
    "currency:no_fill": NumberFormat(
        currency=True, decimal_places=2, decimal_fill=False, separate_thousands=True
    ),
    "thousands_separated": NumberFormat(separate_thousands=True),
}
BARCODE_KINDS = ("code128", "code39", "ean13")

_CELL_FIELDS = frozenset(f.name for f in fields(CellSpec)) - RESOLVED_FIELDS
_CALLBACK_KEYS = ("colour_func", "color_func", "background_func", "custom_render_func")
_BARCODE_OPTION_KEYS = (
    "zone",
    "upper_mending_zone",
    "lower_mending_zone",
    "quiet_zone",
    "scale",
)
_VALIGN_ALIASES = {"centre": "middle", "center": "middle"}


def cell_from_mapping(
    raw: Mapping[str, Any],
    *,
    diagnostics: Diagnostics | None = None,
) -> CellSpec:
    values = dict(raw)
    kwargs: dict[str, Any] = {}

    percent = values.pop("percent", None)
    if "width" not in values and percent is not None:
        values["width"] = f"{percent}%"
    _alias(values, "colour", "color")
    _alias(values, "header_colour", "header_color")
    margins = values.pop("text_margins", None)
    if margins is not None:
        values.setdefault("text_margin_left", margins)
        values.setdefault("text_margin_right", margins)

    legacy_type = values.pop("type", None)
    barcode = values.pop("barcode", None)
    barcode_options = {key: values.pop(key) for key in _BARCODE_OPTION_KEYS if key in values}
    if barcode is not None:
        kwargs["barcode"] = _barcode_from_value(barcode, legacy_type, barcode_options)
    elif isinstance(legacy_type, str) and legacy_type in LEGACY_FORMATS:
        if "format" not in values:
            kwargs["format"] = LEGACY_FORMATS[legacy_type]
    elif legacy_type is not None:
        warn(diagnostics, f"Unsupported cell type {legacy_type!r}", logger=logger)

    number_format = values.pop("format", None)
    if number_format is not None:
        kwargs["format"] = _number_format(number_format)
    background = values.pop("background", None)
    if background is not None:
        kwargs["background"] = background_from_value(background)
    image = values.pop("image", None)
    if image is not None:
        kwargs["image"] = _image_from_value(image)
    split = values.pop("split_down", None)
    if split is not None:
        if not isinstance(split, CellSpec):
            split = cell_from_mapping(split, diagnostics=diagnostics)
        kwargs["split_down"] = split
    callbacks = {key: values.pop(key) for key in _CALLBACK_KEYS if key in values}
    if callbacks:
        kwargs["decorator"] = CallbackDecorator(
            color=callbacks.get("colour_func") or callbacks.get("color_func"),
            background=callbacks.get("background_func"),
            render=callbacks.get("custom_render_func"),
        )

    for key, value in values.items():
        if key not in _CELL_FIELDS:
            warn(diagnostics, f"Unknown cell attribute {key!r}", logger=logger)
            continue
        kwargs[key] = value
    return CellSpec(**kwargs)


def cells_from_mappings(
    raw: Sequence[Mapping[str, Any] | CellSpec] | None,
    *,
    diagnostics: Diagnostics | None = None,
) -> list[CellSpec]:
    cells: list[CellSpec] = []
    for item in raw or ():
        if isinstance(item, CellSpec):
            cells.append(item)
        else:
            cells.append(cell_from_mapping(item, diagnostics=diagnostics))
    return cells


def normalize_cells(cells: Sequence[CellSpec], *, diagnostics: Diagnostics | None = None) -> None:
    """Rewrite legacy attribute values in place before geometry resolution."""
    for top in cells:
        for cell in top.chain():
            if isinstance(cell.valign, str) and cell.valign.strip().lower() in _VALIGN_ALIASES:
                warn(
                    diagnostics,
                    f"valign {cell.valign!r} is deprecated; use 'middle'",
                    logger=logger,
                )
                cell.valign = _VALIGN_ALIASES[cell.valign.strip().lower()]


def background_from_value(value: Any) -> BackgroundSpec:
    if isinstance(value, BackgroundSpec):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError("background must be a table")
    values = dict(value)
    _alias(values, "colour", "color")
    borders = values.get("borders", "tblr")
    if isinstance(borders, str) and borders.lower() == "all":
        borders = "tblr"
    return BackgroundSpec(
        shape=values.get("shape"),
        color=values.get("color"),
        border=values.get("border"),
        borders=str(borders).lower(),
    )


def group_from_mapping(
    raw: Mapping[str, Any] | GroupSpec,
    *,
    diagnostics: Diagnostics | None = None,
) -> GroupSpec:
    if isinstance(raw, GroupSpec):
        return raw
    name = raw.get("name")
    if not name:
        raise ConfigurationError("group definitions need a name")
    return GroupSpec(
        name=str(name),
        data_column=raw.get("data_column"),
        page_break=bool(raw.get("page_break", False)),
        reprinting_header=bool(raw.get("reprinting_header", False)),
        header=cells_from_mappings(raw.get("header"), diagnostics=diagnostics),
        footer=cells_from_mappings(raw.get("footer"), diagnostics=diagnostics),
        header_upper_buffer=raw.get("header_upper_buffer", 0),
        header_lower_buffer=raw.get("header_lower_buffer", 0),
        footer_upper_buffer=raw.get("footer_upper_buffer", 0),
        footer_lower_buffer=raw.get("footer_lower_buffer", 0),
    )


def page_from_mapping(
    raw: Mapping[str, Any] | PageSpec | None,
    *,
    diagnostics: Diagnostics | None = None,
) -> PageSpec:
    if isinstance(raw, PageSpec):
        return raw
    raw = raw or {}
    footer = raw.get("footer")
    return PageSpec(
        header=cells_from_mappings(raw.get("header"), diagnostics=diagnostics),
        footer=None if footer is None else cells_from_mappings(footer, diagnostics=diagnostics),
        footerless=bool(raw.get("footerless", False)),
        attach_footer=bool(raw.get("attach_footer", False)),
    )


def data_from_mapping(
    raw: Mapping[str, Any] | DataSpec,
    *,
    diagnostics: Diagnostics | None = None,
) -> DataSpec:
    if isinstance(raw, DataSpec):
        return raw
    headings = raw.get("headings")
    background = raw.get("background")
    field_headers = raw.get("field_headers")
    return DataSpec(
        fields=cells_from_mappings(raw.get("fields"), diagnostics=diagnostics),
        field_headers=(
            None
            if field_headers is None
            else cells_from_mappings(field_headers, diagnostics=diagnostics)
        ),
        groups=[
            group_from_mapping(group, diagnostics=diagnostics) for group in raw.get("groups") or ()
        ],
        page=page_from_mapping(raw.get("page"), diagnostics=diagnostics),
        headings=(
            None
            if headings is None
            else headings
            if isinstance(headings, CellSpec)
            else cell_from_mapping(headings, diagnostics=diagnostics)
        ),
        background=None if background is None else background_from_value(background),
        cell_borders=bool(raw.get("cell_borders", False)),
        no_field_headers=bool(raw.get("no_field_headers", False)),
        upper_buffer=raw.get("upper_buffer", 0),
        lower_buffer=raw.get("lower_buffer", 0),
        field_headers_upper_buffer=raw.get("field_headers_upper_buffer", 0),
        field_headers_lower_buffer=raw.get("field_headers_lower_buffer", 0),
    )


def options_from_mapping(raw: Mapping[str, Any] | ReportOptions | None) -> ReportOptions:
    if isinstance(raw, ReportOptions):
        return raw
    values = dict(raw or {})
    x_margin = values.pop("x_margin", None)
    if x_margin is not None:
        values.setdefault("left_margin", x_margin)
        values.setdefault("right_margin", x_margin)
    y_margin = values.pop("y_margin", None)
    if y_margin is not None:
        values.setdefault("upper_margin", y_margin)
        values.setdefault("lower_margin", y_margin)
    info = values.pop("info", None)
    if isinstance(info, Mapping):
        values["info"] = ReportInfo(**info)
    elif info is not None:
        values["info"] = info
    known = {f.name for f in fields(ReportOptions)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown report options: {', '.join(unknown)}")
    return ReportOptions(**values)


def _alias(values: dict[str, Any], legacy: str, current: str) -> None:
    if legacy in values:
        legacy_value = values.pop(legacy)
        values.setdefault(current, legacy_value)


def _number_format(value: Any) -> NumberFormat:
    if isinstance(value, NumberFormat):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError("format must be a table")
    values = dict(value)
    _alias(values, "decimals", "decimal_places")
    known = {f.name for f in fields(NumberFormat)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown format options: {', '.join(unknown)}")
    return NumberFormat(**values)


def _image_from_value(value: Any) -> ImageSpec:
    if isinstance(value, ImageSpec):
        return value
    if isinstance(value, str):
        return ImageSpec(path=value)
    if not isinstance(value, Mapping):
        raise ConfigurationError("image must be a path or a table")
    return ImageSpec(
        path=value.get("path"),
        dynamic=bool(value.get("dynamic", False)),
        scale_to_fit=bool(value.get("scale_to_fit", False)),
        height=value.get("height"),
        buffer=value.get("buffer"),
    )


def _barcode_from_value(
    value: Any,
    legacy_type: Any,
    options: dict[str, Any],
) -> BarcodeSpec:
    if isinstance(value, BarcodeSpec):
        return value
    if isinstance(value, Mapping):
        values = dict(value)
        _alias(values, "type", "kind")
    else:
        values = {"code": str(value), **options}
        if legacy_type is not None:
            values["kind"] = legacy_type
    kind = str(values.get("kind", "code128")).lower()
    if kind not in BARCODE_KINDS:
        raise ConfigurationError(f"Unsupported barcode type: {kind}")
    values["kind"] = kind
    known = {f.name for f in fields(BarcodeSpec)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown barcode options: {', '.join(unknown)}")
    return BarcodeSpec(**values)


__all__ = [
    "BARCODE_KINDS",
    "LEGACY_FORMATS",
    "background_from_value",
    "cell_from_mapping",
    "cells_from_mappings",
    "data_from_mapping",
    "group_from_mapping",
    "normalize_cells",
    "options_from_mapping",
    "page_from_mapping",
]
