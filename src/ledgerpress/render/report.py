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
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..errors import Diagnostics, warn
from ..units import format_unit
from .aggregates import AggregateTable, GroupTotals
from .canvas import Canvas, FpdfCanvas
from .geometry import resolve_cells
from .normalize import data_from_mapping, normalize_cells, options_from_mapping
from .pages import Clock, PaginationController, Record
from .spec import (
    GRAND_TOTALS,
    ROW_SET_DATA,
    ROW_SET_FIELD_HEADERS,
    ROW_SET_GROUP,
    ROW_SET_PAGE_FOOTER,
    ROW_SET_PAGE_HEADER,
    BackgroundSpec,
    CellSpec,
    DataSpec,
    ReportOptions,
    page_metrics,
)
from .types import LayoutContext, PaginationContext

logger = logging.getLogger(__name__)

CELL_BORDER_COLOR = "grey"
FOOTER_FONT_SIZE = 8


def default_page_footer() -> list[CellSpec]:
    return [
        CellSpec(
            width="50%", font_size=FOOTER_FONT_SIZE, text="Rendered on %TIME%", align="left"
        ),
        CellSpec(
            width="50%", font_size=FOOTER_FONT_SIZE, text="Page %PAGE% of %PAGES%", align="right"
        ),
    ]


def default_field_headers(fields: Sequence[CellSpec]) -> list[CellSpec]:
    """Header cells mirroring ``fields``; ``header_*`` attributes win over the field's own."""
    return [
        CellSpec(
            name=cell.name,
            text=cell.name,
            width=cell.width,
            bold=True,
            font_size=cell.font_size,
            text_whitespace=cell.text_whitespace,
            align=cell.header_align or cell.align or "centre",
            text_align=cell.header_text_align or cell.text_align,
            valign=cell.header_valign or cell.valign,
            color=cell.header_color or cell.color,
        )
        for cell in fields
    ]


class ReportWriter:
    """Lays out one report definition and renders record streams through it.

    Geometry for every row-set is resolved once, here; configuration errors surface
    before any page is drawn.
    """

    def __init__(
        self,
        options: ReportOptions | Mapping[str, Any] | None,
        data: DataSpec | Mapping[str, Any],
        *,
        canvas: Canvas | None = None,
        datasources: Mapping[str, Sequence[Sequence[Any]]] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.diagnostics = Diagnostics()
        self.options = options_from_mapping(options)
        self.page = page_metrics(self.options, diagnostics=self.diagnostics)
        if canvas is None:
            canvas = FpdfCanvas(
                self.page.width,
                self.page.height,
                info=self.options.info,
                font_files=self.options.font_files,
                diagnostics=self.diagnostics,
            )
        self.canvas = canvas
        self.layout = LayoutContext(
            page=self.page,
            measure=canvas.measure_text,
            default_font=self.options.default_font,
            default_font_size=self.options.default_font_size,
            diagnostics=self.diagnostics,
        )
        self.datasources = dict(datasources or {})
        self.data = data_from_mapping(data, diagnostics=self.diagnostics)
        self.context = PaginationContext(y=self.page.top)
        self._setup()
        self.aggregates = AggregateTable(self.data.fields, self.data.groups)
        self.controller = PaginationController(
            self.data,
            self.layout,
            canvas,
            self.aggregates,
            self.context,
            datasource=self._datasource if self.datasources else None,
            clock=clock,
        )
        self._footers_rendered = False

    def _setup(self) -> None:
        data = self.data
        layout = self.layout
        page = data.page
        print_height = self.page.print_height

        if data.cell_borders:
            data.background = BackgroundSpec(border=CELL_BORDER_COLOR)
        if not data.no_field_headers and data.field_headers is None:
            data.field_headers = default_field_headers(data.fields)
        if not page.footerless and page.footer is None:
            page.footer = default_page_footer()

        row_sets = [data.fields, data.field_headers or [], page.header, page.footer or []]
        for group in data.groups:
            row_sets.extend((group.header, group.footer))
        for cells in row_sets:
            normalize_cells(cells, diagnostics=self.diagnostics)
        if data.headings is not None:
            normalize_cells([data.headings], diagnostics=self.diagnostics)

        data.cell_mapping.clear()
        data.max_cell_height = resolve_cells(
            data.fields,
            ROW_SET_DATA,
            layout,
            background=data.background,
            cell_mapping=data.cell_mapping,
        )
        data.upper_buffer = self._length(data.upper_buffer, print_height)
        data.lower_buffer = self._length(data.lower_buffer, print_height)

        if not data.no_field_headers and data.field_headers:
            data.field_headers_max_cell_height = resolve_cells(
                data.field_headers,
                ROW_SET_FIELD_HEADERS,
                layout,
                headings=data.headings,
            )
            data.field_headers_upper_buffer = self._length(
                data.field_headers_upper_buffer, print_height
            )
            data.field_headers_lower_buffer = self._length(
                data.field_headers_lower_buffer, print_height
            )

        if page.header:
            page.header_max_cell_height = resolve_cells(page.header, ROW_SET_PAGE_HEADER, layout)
        self.context.page_footer_and_margin = self.page.lower_margin
        if not page.footerless and page.footer:
            page.footer_max_cell_height = resolve_cells(page.footer, ROW_SET_PAGE_FOOTER, layout)
            self.context.page_footer_and_margin += page.footer_max_cell_height

        for group in data.groups:
            if group.header:
                group.header_max_cell_height = resolve_cells(
                    group.header, ROW_SET_GROUP, layout, group_name=group.name
                )
            if group.footer:
                group.footer_max_cell_height = resolve_cells(
                    group.footer, ROW_SET_GROUP, layout, group_name=group.name
                )
            group.header_upper_buffer = self._length(group.header_upper_buffer, print_height)
            group.header_lower_buffer = self._length(group.header_lower_buffer, print_height)
            group.footer_upper_buffer = self._length(group.footer_upper_buffer, print_height)
            group.footer_lower_buffer = self._length(group.footer_lower_buffer, print_height)

    def _length(self, value: Any, span: float) -> float:
        return format_unit(value, span, diagnostics=self.diagnostics)

    def _datasource(self, name: str) -> Sequence[Sequence[Any]] | None:
        return self.datasources.get(name)

    @property
    def warnings(self) -> list[str]:
        return list(self.diagnostics.messages)

    @property
    def page_count(self) -> int:
        return self.context.page_count

    @property
    def group_history(self) -> tuple[GroupTotals, ...]:
        return tuple(self.aggregates.history)

    def render_data(self, records: Sequence[Record]) -> None:
        """Lay out ``records`` (pre-sorted by group columns) after any earlier ones.

        Each call is a self-contained section: group values and running totals start
        over, and every group footer closes at the end of the call.
        """
        if self._footers_rendered:
            raise RuntimeError("report already finished; create a new ReportWriter")
        self.controller.render_data(list(records))

    def fetch_group_results(self, cell: str, group: str, value: Any = None) -> Any:
        """Current aggregate of data cell ``cell`` for ``group``.

        With ``value``, the totals captured when that group value closed are returned.
        """
        index = self.data.cell_mapping.get(cell)
        if index is None:
            warn(self.diagnostics, f"fetch_group_results: invalid cell {cell!r}", logger=logger)
            return None
        aggregates = self.aggregates
        grand = group == GRAND_TOTALS and not aggregates.has_group(group)
        if not aggregates.has_field(index) or not (grand or aggregates.has_group(group)):
            warn(
                self.diagnostics,
                f"fetch_group_results: invalid group {group!r} for cell {cell!r}; check that "
                "the cell has an aggregate function and the group exists",
                logger=logger,
            )
            return None
        if value is not None:
            closed = aggregates.closed(group, value)
            if not closed:
                return None
            return closed[-1].results.get(cell)
        if grand:
            return aggregates.grand_result(index)
        return aggregates.group_result(index, group)

    def finish(self, *, clock: Clock | None = None) -> Canvas:
        """Render page footers once the page count is final."""
        if not self._footers_rendered:
            self.controller.render_page_footers(clock=clock)
            self._footers_rendered = True
        return self.canvas

    def stringify(self) -> bytes:
        canvas = self.finish()
        if not isinstance(canvas, FpdfCanvas):
            raise TypeError(f"{type(canvas).__name__} cannot produce PDF bytes")
        return canvas.to_bytes()

    def save(self, path: str | Path) -> Path:
        canvas = self.finish()
        if not isinstance(canvas, FpdfCanvas):
            raise TypeError(f"{type(canvas).__name__} cannot write a PDF file")
        return canvas.output(path)


__all__ = ["ReportWriter", "default_field_headers", "default_page_footer"]
