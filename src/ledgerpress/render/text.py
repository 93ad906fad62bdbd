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

from typing import Callable

Measure = Callable[[str], float]

_BREAK_CHARS = frozenset(" \t-")


def normalize_breaks(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(text: str) -> list[str]:
    lines = normalize_breaks(text).split("\n")
    while len(lines) > 1 and not lines[-1]:
        lines.pop()
    return lines


def wrap_text(
    text: str,
    width: float,
    measure: Measure,
    *,
    strip_breaks: bool = False,
) -> list[str]:
    """Split ``text`` into lines whose measured width fits ``width``.

    Existing line breaks are kept unless ``strip_breaks`` is set. A width of zero or
    less disables wrapping.
    """
    text = normalize_breaks(text)
    if width <= 0:
        return split_lines(text)
    if strip_breaks:
        text = text.replace("\n", "")
    wrapped: list[str] = []
    for line in split_lines(text):
        if measure(line) <= width:
            wrapped.append(line)
            continue
        while line:
            head, line = _break_line(line, width, measure)
            wrapped.append(head)
    return wrapped


def _break_line(line: str, width: float, measure: Measure) -> tuple[str, str]:
    """Returns: (emitted line, remainder)."""
    fit = _fit_length(line, width, measure)
    if fit >= len(line):
        return line, ""
    for index in range(min(fit, len(line) - 1), 0, -1):
        char = line[index]
        if char not in _BREAK_CHARS:
            continue
        if char == "-":
            if index + 1 > fit:
                continue
            return line[: index + 1], line[index + 1 :].lstrip()
        head = line[:index].rstrip(" \t") or line[:index]
        return head, line[index + 1 :].lstrip()
    return line[:fit], line[fit:]


def _fit_length(line: str, width: float, measure: Measure) -> int:
    """Longest prefix length (at least one character) whose width fits."""
    low, high = 1, len(line)
    while low < high:
        middle = (low + high + 1) // 2
        if measure(line[:middle]) <= width:
            low = middle
        else:
            high = middle - 1
    return low


def text_block_height(line_count: int, line_height: float) -> float:
    return line_height * max(1, line_count)


def justify_spacing(string: str, width: float, measure: Measure) -> float:
    """Character spacing that stretches ``string`` to ``width``; 0 when it would exceed 1pt."""
    if not string:
        return 0.0
    spacing = (width - measure(string)) / len(string)
    if spacing > 1 or spacing < 0:
        return 0.0
    return spacing


def truncate_to_width(string: str, width: float, measure: Measure) -> str:
    while string and measure(string) > width:
        string = string[:-1]
    return string


__all__ = [
    "Measure",
    "justify_spacing",
    "normalize_breaks",
    "split_lines",
    "text_block_height",
    "truncate_to_width",
    "wrap_text",
]
