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
from dataclasses import dataclass, field


class LedgerPressError(Exception):
    """Base class for report layout errors."""


class ConfigurationError(LedgerPressError, ValueError):
    """Raised for report definitions that cannot be laid out."""


class MissingCellWidthError(ConfigurationError):
    def __init__(self, row_set: str, index: int, name: str | None) -> None:
        self.row_set = row_set
        self.index = index
        self.name = name
        super().__init__(f"No cell width for {row_set} cell {index} ({name or 'unnamed'})")


class CellNameError(ConfigurationError):
    def __init__(self, index: int, name: str | None, *, duplicate: bool = False) -> None:
        self.index = index
        self.name = name
        if duplicate:
            message = f"duplicate data cell name {name!r} at cell {index}"
        else:
            message = f"missing data cell name at cell {index}"
        super().__init__(message)


@dataclass
class Diagnostics:
    """Collects non-fatal layout warnings for the caller."""

    messages: list[str] = field(default_factory=list)

    def warn(self, message: str, *, logger: logging.Logger | None = None) -> None:
        self.messages.append(message)
        (logger or _logger).warning(message)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):
        return iter(self.messages)


_logger = logging.getLogger("ledgerpress")


def warn(diagnostics: Diagnostics | None, message: str, *, logger: logging.Logger) -> None:
    if diagnostics is None:
        logger.warning(message)
        return
    diagnostics.warn(message, logger=logger)


__all__ = [
    "CellNameError",
    "ConfigurationError",
    "Diagnostics",
    "LedgerPressError",
    "MissingCellWidthError",
    "warn",
]
