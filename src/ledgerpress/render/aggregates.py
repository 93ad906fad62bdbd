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
from typing import Any, Mapping, Sequence

from ..errors import ConfigurationError
from .formatting import numeric_value
from .spec import CellSpec, GroupSpec

AGGREGATE_FUNCTIONS = ("sum", "count", "max", "min")

Number = int | float


@dataclass(frozen=True)
class GroupTotals:
    """Aggregates of one group run, captured when the group closed."""

    group: str
    value: Any
    results: Mapping[str, Number]


class AggregateTable:
    """Per-group and grand-total accumulators for the data fields."""

    def __init__(self, fields: Sequence[CellSpec], groups: Sequence[GroupSpec]) -> None:
        self._functions: dict[int, str] = {}
        self._names: dict[int, str] = {}
        for index, cell in enumerate(fields):
            function = cell.aggregate_function
            if not function:
                continue
            function = function.lower()
            if function not in AGGREGATE_FUNCTIONS:
                raise ConfigurationError(
                    f"Unsupported aggregate function {cell.aggregate_function!r} "
                    f"on field {cell.name or index}"
                )
            self._functions[index] = function
            self._names[index] = cell.name or str(index)
        self._groups: dict[str, dict[int, Number]] = {
            group.name: dict.fromkeys(self._functions, 0) for group in groups
        }
        self._grand: dict[int, Number] = dict.fromkeys(self._functions, 0)
        self.history: list[GroupTotals] = []

    @property
    def field_indexes(self) -> tuple[int, ...]:
        return tuple(self._functions)

    def has_group(self, group: str) -> bool:
        return group in self._groups

    def has_field(self, index: int) -> bool:
        return index in self._functions

    def reset(self, group: str) -> None:
        self._groups[group] = dict.fromkeys(self._functions, 0)

    def reset_all(self) -> None:
        """Zero every group and the grand total; closed-group history is kept."""
        for group in self._groups:
            self.reset(group)
        self._grand = dict.fromkeys(self._functions, 0)

    def close(self, group: str, value: Any) -> GroupTotals:
        totals = GroupTotals(
            group=group,
            value=value,
            results={self._names[index]: result for index, result in self._groups[group].items()},
        )
        self.history.append(totals)
        return totals

    def accumulate(self, index: int, value: Any) -> None:
        function = self._functions.get(index)
        if function is None:
            return
        number = numeric_value(value)
        if number is None:
            number = 0
        targets = [*self._groups.values(), self._grand]
        for results in targets:
            current = results[index]
            if function == "sum":
                results[index] = current + number
            elif function == "count":
                results[index] = current + 1
            elif function == "max":
                if number > current:
                    results[index] = number
            elif number < current:
                results[index] = number

    def group_result(self, index: int, group: str) -> Number | None:
        results = self._groups.get(group)
        if results is None:
            return None
        return results.get(index)

    def grand_result(self, index: int) -> Number | None:
        return self._grand.get(index)

    def closed(self, group: str, value: Any) -> list[GroupTotals]:
        return [item for item in self.history if item.group == group and item.value == value]


__all__ = ["AGGREGATE_FUNCTIONS", "AggregateTable", "GroupTotals"]
