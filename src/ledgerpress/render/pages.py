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

"""Walks the record stream: page breaks, group boundaries and aggregates."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

from .aggregates import AggregateTable
from .canvas import Canvas
from .draw import CellRenderer, RenderOptions
from .formatting import Datasource, cell_text, display_value
from .heights import calculate_y_needed, is_truthy
from .spec import (
    ROW_SET_DATA,
    ROW_SET_FIELD_HEADERS,
    ROW_SET_GROUP_FOOTER,
    ROW_SET_GROUP_HEADER,
    ROW_SET_PAGE_FOOTER,
    ROW_SET_PAGE_HEADER,
    CellSpec,
    DataSpec,
    GroupSpec,
)
from .types import (
    UNSET,
    LayoutContext,
    PageInfo,
    PageRecord,
    PaginationContext,
    QueuedHeader,
    RowMeasure,
)

logger = logging.getLogger(__name__)

Record = Sequence[Any]
Clock = Callable[[], str]


class PaginationController:
    """Renders row-sets against one :class:`PaginationContext`.

    Geometry must already be resolved for every row-set in ``data``.
    """

    def __init__(
        self,
        data: DataSpec,
        layout: LayoutContext,
        canvas: Canvas,
        aggregates: AggregateTable,
        context: PaginationContext,
        *,
        datasource: Datasource | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.data = data
        self.layout = layout
        self.canvas = canvas
        self.aggregates = aggregates
        self.context = context
        self.datasource = datasource
        self.clock = clock
        self.renderer = CellRenderer(canvas, layout)
        self._page_index = -1

    # Record stream.

    def render_data(self, records: Sequence[Record]) -> None:
        """Render ``records`` as one section: groups open fresh and all close at the end."""
        data = self.data
        ctx = self.context
        ctx.header_queue.clear()
        ctx.group_values.clear()
        self.aggregates.reset_all()
        if not ctx.pages:
            self.new_page()
        if records:
            for group in data.groups:
                if group.is_grand_total:
                    group.data_column = len(records[0])

        ctx.row_counter = 0
        ctx.need_data_header = True
        for record in records:
            want_new_page = self.assemble_group_header_queue(record, ctx.row_counter, False)
            if not want_new_page:
                needed = self._measure(
                    data.fields, data.max_cell_height, record, ROW_SET_DATA, 0.0, 0.0
                ).y_needed
                if ctx.y - (needed + ctx.page_footer_and_margin) < 0:
                    logger.debug("Row %d does not fit; re-detecting groups", ctx.row_counter)
                    for queued in ctx.header_queue:
                        ctx.group_values[queued.group.name] = UNSET
                    ctx.header_queue.clear()
                    want_new_page = self.assemble_group_header_queue(
                        record, ctx.row_counter, True
                    )
            if want_new_page and ctx.row_counter:
                self.new_page()
            self.render_row(
                data.fields,
                record,
                ROW_SET_DATA,
                data.max_cell_height,
                float(data.upper_buffer),
                float(data.lower_buffer),
            )
            ctx.need_data_header = False
            ctx.row_counter += 1

        for group in reversed(data.groups):
            if group.footer:
                self.group_footer(group)
            value = ctx.group_value(group)
            if value is not UNSET:
                self.aggregates.close(group.name, value)

    def assemble_group_header_queue(
        self,
        record: Record,
        row_counter: int,
        want_new_page: bool,
    ) -> bool:
        """Detect group boundaries for ``record``; returns whether a page break is wanted.

        ``want_new_page`` marks the forced pass after a late page break: footers are not
        rendered again and reprinting groups are queued regardless of their value.
        """
        ctx = self.context
        forced = want_new_page
        for group in reversed(self.data.groups):
            value = _column_value(record, group.data_column)
            tracked = ctx.group_value(group)
            changed = tracked is UNSET or tracked != value
            if not changed and not (want_new_page and group.reprinting_header):
                continue
            logger.debug("Group %s boundary at %r", group.name, value)
            if changed and row_counter and group.footer and not forced:
                self.group_footer(group)
            if group.header:
                ctx.header_queue.appendleft(QueuedHeader(group=group, value=value))
            ctx.need_data_header = True
            if changed:
                if tracked is not UNSET:
                    self.aggregates.close(group.name, tracked)
                self.aggregates.reset(group.name)
            ctx.group_values[group.name] = value
            if group.page_break:
                want_new_page = True
        return want_new_page

    # Pages and row-sets.

    def new_page(self) -> int:
        ctx = self.context
        page = self.data.page
        if ctx.pages:
            ctx.pages[-1].end_y = ctx.y
        self._page_index = self.canvas.add_page()
        ctx.pages.append(PageRecord(footer=None if page.footerless else page.footer))
        ctx.y = self.layout.page.top
        ctx.need_data_header = True
        logger.debug("Starting page %d", ctx.page_count)

        if page.header:
            self.render_row(
                page.header,
                None,
                ROW_SET_PAGE_HEADER,
                page.header_max_cell_height,
                0.0,
                0.0,
            )
        if not ctx.header_queue:
            for group in self.data.groups:
                value = ctx.group_value(group)
                if group.reprinting_header and group.header and value is not UNSET:
                    self.group_header(group, value)
        return self._page_index

    def group_header(self, group: GroupSpec, value: Any) -> None:
        self.render_row(
            group.header,
            value,
            ROW_SET_GROUP_HEADER,
            group.header_max_cell_height,
            float(group.header_upper_buffer),
            float(group.header_lower_buffer),
        )

    def group_footer(self, group: GroupSpec) -> None:
        ctx = self.context
        upper = float(group.footer_upper_buffer)
        lower = float(group.footer_lower_buffer)
        needed = ctx.page_footer_and_margin + group.footer_max_cell_height + upper + lower
        if needed <= self.layout.page.height and ctx.y - needed < 0:
            self.new_page()
        value = ctx.group_value(group)
        self.render_row(
            group.footer,
            None if value is UNSET else value,
            ROW_SET_GROUP_FOOTER,
            group.footer_max_cell_height,
            upper,
            lower,
        )

    def render_page_footers(self, *, clock: Clock | None = None) -> None:
        """Render the page footer on every page; runs once the page count is final."""
        ctx = self.context
        page = self.data.page
        if page.footerless or not ctx.pages:
            return
        saved_y = ctx.y
        saved_index = self._page_index
        total = ctx.page_count
        now = (clock or self.clock or time.ctime)()
        for index, record in enumerate(ctx.pages):
            if not record.footer:
                continue
            end_y = saved_y if record.end_y is None else record.end_y
            self.canvas.select_page(index)
            self._page_index = index
            if page.attach_footer:
                ctx.y = end_y
            else:
                ctx.y = self.layout.page.lower_margin + page.footer_max_cell_height
            self.render_row(
                record.footer,
                PageInfo(current_page=index + 1, total_pages=total, current_time=now),
                ROW_SET_PAGE_FOOTER,
                page.footer_max_cell_height,
                0.0,
                0.0,
            )
        ctx.y = saved_y
        self._page_index = saved_index
        self.canvas.select_page(saved_index)

    def render_row(
        self,
        cells: Sequence[CellSpec],
        row: Any,
        row_type: str,
        max_cell_height: float,
        upper_buffer: float,
        lower_buffer: float,
    ) -> None:
        ctx = self.context
        data = self.data
        measure = self._measure(cells, max_cell_height, row, row_type, upper_buffer, lower_buffer)
        y_needed = measure.y_needed + ctx.page_footer_and_margin
        if (
            row_type != ROW_SET_PAGE_FOOTER
            and y_needed <= self.layout.page.height
            and ctx.y - y_needed < 0
        ):
            self.new_page()

        if row_type == ROW_SET_DATA:
            while ctx.header_queue:
                queued = ctx.header_queue.popleft()
                self.group_header(queued.group, queued.value)
            if ctx.need_data_header and not data.no_field_headers and data.field_headers:
                self.render_row(
                    data.field_headers,
                    None,
                    ROW_SET_FIELD_HEADERS,
                    data.field_headers_max_cell_height,
                    float(data.field_headers_upper_buffer),
                    float(data.field_headers_lower_buffer),
                )

        ctx.y -= upper_buffer
        values = _cell_values(cells, row, row_type)
        current_row = -1
        full_height = 0.0
        for index, (cell, value) in enumerate(zip(cells, values)):
            if cell.row != current_row:
                current_row = cell.row
                full_height = measure.row_heights[current_row]
                ctx.y -= full_height
                ctx.y += measure.row_shifts[current_row]
            if row_type == ROW_SET_DATA and cell.print_if_true and not is_truthy(value):
                continue
            options = RenderOptions(
                row=row,
                row_type=row_type,
                cell=cell,
                cell_y_border=ctx.y,
                cell_full_height=full_height,
                page_index=self._page_index,
                value=value,
            )
            result = self.renderer.render(cell, options, self._text_for)
            if row_type == ROW_SET_DATA and result.text_rendered and cell.aggregate_function:
                self.aggregates.accumulate(index, result.value)
        ctx.y -= lower_buffer

    def _measure(
        self,
        cells: Sequence[CellSpec],
        max_cell_height: float,
        row: Any,
        row_type: str,
        upper_buffer: float,
        lower_buffer: float,
    ) -> RowMeasure:
        ctx = self.context
        data = self.data
        values = _cell_values(cells, row, row_type)
        texts: list[str | None] = []
        for cell, value in zip(cells, values):
            options = RenderOptions(
                row=row,
                row_type=row_type,
                cell=cell,
                cell_y_border=ctx.y,
                cell_full_height=0.0,
                page_index=self._page_index,
                value=value,
            )
            string = self._text_for(cell, options)
            if string is not None:
                string = display_value(cell, string, formatted=row_type != ROW_SET_FIELD_HEADERS)
            texts.append(string)

        queue: Sequence[QueuedHeader] = ()
        data_header_height = 0.0
        if row_type == ROW_SET_DATA:
            queue = tuple(ctx.header_queue)
            if not data.no_field_headers and data.field_headers:
                data_header_height = (
                    data.field_headers_max_cell_height
                    + float(data.field_headers_upper_buffer)
                    + float(data.field_headers_lower_buffer)
                )
        return calculate_y_needed(
            cells,
            max_cell_height,
            [None if value is UNSET else value for value in values],
            texts,
            layout=self.layout,
            row_set=row_type,
            available=ctx.y - ctx.page_footer_and_margin,
            upper_buffer=upper_buffer,
            lower_buffer=lower_buffer,
            queue=queue,
            data_header_height=data_header_height,
            image_sizer=self.canvas.image_dimensions,
        )

    def _text_for(self, cell: CellSpec, options: RenderOptions) -> str | None:
        """Raw text of ``cell`` for this row, before number formatting."""
        row_type = options.row_type
        row = options.row
        if row_type == ROW_SET_FIELD_HEADERS:
            return cell.text
        if row_type == ROW_SET_DATA:
            if cell.filler or not options.has_value:
                return None
            return "" if options.value is None else str(options.value)
        if row_type == ROW_SET_GROUP_HEADER:
            if cell.text is None:
                return None
            return cell_text(cell.text, cell, value=row, datasource=self.datasource)
        if row_type == ROW_SET_GROUP_FOOTER:
            return self._group_footer_text(cell, row)
        if cell.text is None:
            return None
        page = row if isinstance(row, PageInfo) else PageInfo(current_page=self.context.page_count)
        return cell_text(cell.text, cell, page=page, datasource=self.datasource)

    def _group_footer_text(self, cell: CellSpec, row: Any) -> str | None:
        if cell.aggregate_source is not None:
            group_name = cell.text or ""
            index = int(cell.aggregate_source)
            if self.aggregates.has_group(group_name):
                result = self.aggregates.group_result(index, group_name)
            else:
                result = self.aggregates.grand_result(index)
            string = "" if result is None else str(result)
        elif cell.text is None:
            return None
        else:
            string = str(cell.text)
        return string.replace("?", "" if row is None else str(row))


def _column_value(record: Record, column: int | None) -> Any:
    if column is None:
        return None
    try:
        return record[column]
    except (IndexError, KeyError, TypeError):
        return None


def _cell_values(cells: Sequence[CellSpec], row: Any, row_type: str) -> list[Any]:
    """Per-cell record values for a data row; ``UNSET`` everywhere else."""
    if row_type != ROW_SET_DATA or not isinstance(row, Sequence) or isinstance(row, str):
        return [UNSET] * len(cells)
    values: list[Any] = []
    data_index = 0
    for cell in cells:
        if cell.filler:
            values.append(UNSET)
            continue
        values.append(row[data_index] if data_index < len(row) else None)
        data_index += 1
    return values


__all__ = ["Clock", "PaginationController", "Record"]
