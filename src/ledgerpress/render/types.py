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

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..errors import Diagnostics
from .spec import CellSpec, GroupSpec, PageMetrics


@dataclass(frozen=True)
class FontRef:
    family: str
    bold: bool = False
    italic: bool = False

    @property
    def style(self) -> str:
        return ("B" if self.bold else "") + ("I" if self.italic else "")

    @classmethod
    def for_cell(cls, cell: CellSpec, default_family: str = "Helvetica") -> FontRef:
        return cls(cell.font or default_family, bool(cell.bold), bool(cell.italic))


TextMeasurer = Callable[[FontRef, float, str], float]
ImageSizer = Callable[[str], "tuple[float, float, str] | None"]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class LayoutContext:
    page: PageMetrics
    measure: TextMeasurer
    default_font: str = "Helvetica"
    default_font_size: float = 12
    diagnostics: Diagnostics | None = None

    def measurer_for(self, cell: CellSpec) -> Callable[[str], float]:
        font = FontRef.for_cell(cell, self.default_font)
        size = float(cell.font_size or self.default_font_size)
        return lambda text: self.measure(font, size, text)


@dataclass(frozen=True)
class RowMeasure:
    """Height needed for one row-set plus the per-visual-row breakdown."""

    y_needed: float
    row_heights: tuple[float, ...]
    row_shifts: tuple[float, ...]

    @property
    def current_height(self) -> float:
        return sum(self.row_heights)


@dataclass(frozen=True)
class PageInfo:
    current_page: int
    total_pages: int | None = None
    current_time: str = ""


@dataclass(frozen=True)
class QueuedHeader:
    group: GroupSpec
    value: Any


@dataclass
class PageRecord:
    footer: Sequence[CellSpec] | None
    end_y: float | None = None


@dataclass
class PaginationContext:
    """Cursor and group state for one run over a record stream."""

    y: float = 0.0
    page_footer_and_margin: float = 0.0
    header_queue: deque[QueuedHeader] = field(default_factory=deque)
    group_values: dict[str, Any] = field(default_factory=dict)
    need_data_header: bool = True
    row_counter: int = 0
    pages: list[PageRecord] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def group_value(self, group: GroupSpec) -> Any:
        return self.group_values.get(group.name, UNSET)


__all__ = [
    "FontRef",
    "ImageSizer",
    "LayoutContext",
    "PageInfo",
    "PageRecord",
    "PaginationContext",
    "QueuedHeader",
    "RowMeasure",
    "TextMeasurer",
    "UNSET",
]
