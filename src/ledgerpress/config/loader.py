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

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from ..render.normalize import options_from_mapping
from ..render.spec import ReportOptions

_DATA_SWITCHES = ("cell_borders", "no_field_headers")
_DATA_BUFFERS = (
    "upper_buffer",
    "lower_buffer",
    "field_headers_upper_buffer",
    "field_headers_lower_buffer",
)
_GROUP_BUFFERS = (
    "header_upper_buffer",
    "header_lower_buffer",
    "footer_upper_buffer",
    "footer_lower_buffer",
)
_MARGINS = (
    "upper_margin",
    "lower_margin",
    "left_margin",
    "right_margin",
    "x_margin",
    "y_margin",
)
_INFO_KEYS = ("title", "author", "subject", "keywords", "creator")


@dataclass(frozen=True)
class ReportDefinition:
    """A report definition read from TOML; ``data`` is normalised by the report itself."""

    options: ReportOptions
    data: dict[str, object] = field(default_factory=dict)
    path: Path | None = None


def load_report_definition(path: str | Path) -> ReportDefinition:
    definition_path = Path(path)
    data = _load_toml(definition_path)
    base_dir = definition_path.parent
    options = _parse_report_options(_get_dict(data, "report"), base_dir=base_dir)
    data_cfg = _parse_data_section(_get_dict(data, "data"), base_dir=base_dir)
    return ReportDefinition(options=options, data=data_cfg, path=definition_path)


def _parse_report_options(cfg: dict[str, object], *, base_dir: Path) -> ReportOptions:
    values: dict[str, object] = {}
    for key in ("paper", "orientation", "default_font"):
        text = _parse_optional_str(cfg.get(key), field=f"report.{key}")
        if text is not None:
            values[key] = text
    for key in _MARGINS:
        length = _parse_optional_length(cfg.get(key), field=f"report.{key}")
        if length is not None:
            values[key] = length
    size = _parse_optional_number(cfg.get("default_font_size"), field="report.default_font_size")
    if size is not None:
        if size <= 0:
            raise ValueError("report.default_font_size must be positive")
        values["default_font_size"] = size

    info_cfg = _get_dict(cfg, "info")
    info: dict[str, object] = {}
    for key in _INFO_KEYS:
        text = _parse_optional_str(info_cfg.get(key), field=f"report.info.{key}")
        if text is not None:
            info[key] = text
    if info:
        values["info"] = info

    fonts_cfg = _get_dict(cfg, "fonts")
    if fonts_cfg:
        values["font_files"] = {
            family: str(_resolve_path(base_dir, _parse_str(value, field=f"report.fonts.{family}")))
            for family, value in fonts_cfg.items()
        }
    handled = {"paper", "orientation", "default_font", "default_font_size", "info", "fonts"}
    unknown = sorted(set(cfg) - handled - set(_MARGINS))
    if unknown:
        raise ValueError(f"Unknown report options: {', '.join(unknown)}")
    return options_from_mapping(values)


def _parse_data_section(cfg: dict[str, object], *, base_dir: Path) -> dict[str, object]:
    data: dict[str, object] = dict(cfg)
    data["fields"] = _parse_cells(cfg.get("fields"), field="data.fields", base_dir=base_dir)
    if "field_headers" in cfg:
        data["field_headers"] = _parse_cells(
            cfg.get("field_headers"), field="data.field_headers", base_dir=base_dir
        )
    if "headings" in cfg:
        headings = cfg.get("headings")
        if not isinstance(headings, dict):
            raise ValueError("data.headings must be a table")
        data["headings"] = dict(headings)
    for key in _DATA_SWITCHES:
        data[key] = _parse_bool(cfg.get(key), field=f"data.{key}", default=False)
    for key in _DATA_BUFFERS:
        if key in cfg:
            data[key] = _parse_length(cfg[key], field=f"data.{key}")

    page_cfg = _get_dict(cfg, "page")
    page: dict[str, object] = {
        "header": _parse_cells(page_cfg.get("header"), field="data.page.header", base_dir=base_dir),
        "footerless": _parse_bool(
            page_cfg.get("footerless"), field="data.page.footerless", default=False
        ),
        "attach_footer": _parse_bool(
            page_cfg.get("attach_footer"), field="data.page.attach_footer", default=False
        ),
    }
    if "footer" in page_cfg:
        page["footer"] = _parse_cells(
            page_cfg.get("footer"), field="data.page.footer", base_dir=base_dir
        )
    data["page"] = page

    groups_value = cfg.get("groups")
    groups: list[dict[str, object]] = []
    for index, group_cfg in enumerate(_parse_table_list(groups_value, field="data.groups")):
        groups.append(_parse_group(group_cfg, field=f"data.groups[{index}]", base_dir=base_dir))
    data["groups"] = groups
    return data


def _parse_group(cfg: dict[str, object], *, field: str, base_dir: Path) -> dict[str, object]:
    name = _parse_optional_str(cfg.get("name"), field=f"{field}.name")
    if not name:
        raise ValueError(f"{field}.name is required")
    group: dict[str, object] = {
        "name": name,
        "page_break": _parse_bool(
            cfg.get("page_break"), field=f"{field}.page_break", default=False
        ),
        "reprinting_header": _parse_bool(
            cfg.get("reprinting_header"), field=f"{field}.reprinting_header", default=False
        ),
        "header": _parse_cells(cfg.get("header"), field=f"{field}.header", base_dir=base_dir),
        "footer": _parse_cells(cfg.get("footer"), field=f"{field}.footer", base_dir=base_dir),
    }
    column = cfg.get("data_column")
    if column is not None:
        data_column = _parse_int_strict(column, field=f"{field}.data_column")
        if data_column < 0:
            raise ValueError(f"{field}.data_column must be zero or positive")
        group["data_column"] = data_column
    for key in _GROUP_BUFFERS:
        if key in cfg:
            group[key] = _parse_length(cfg[key], field=f"{field}.{key}")
    return group


def _parse_cells(value: object, *, field: str, base_dir: Path) -> list[dict[str, object]]:
    cells: list[dict[str, object]] = []
    for index, cell_cfg in enumerate(_parse_table_list(value, field=field)):
        cells.append(_parse_cell(cell_cfg, field=f"{field}[{index}]", base_dir=base_dir))
    return cells


def _parse_cell(cfg: dict[str, object], *, field: str, base_dir: Path) -> dict[str, object]:
    cell = dict(cfg)
    image = cell.get("image")
    if isinstance(image, str):
        cell["image"] = str(_resolve_path(base_dir, image))
    elif isinstance(image, dict):
        image = dict(image)
        path_value = image.get("path")
        if path_value is not None and not image.get("dynamic"):
            image["path"] = str(
                _resolve_path(base_dir, _parse_str(path_value, field=f"{field}.image.path"))
            )
        cell["image"] = image
    elif image is not None:
        raise ValueError(f"{field}.image must be a path or a table")
    split = cell.get("split_down")
    if split is not None:
        if not isinstance(split, dict):
            raise ValueError(f"{field}.split_down must be a table")
        cell["split_down"] = _parse_cell(split, field=f"{field}.split_down", base_dir=base_dir)
    for key in ("aggregate_source", "index"):
        if key in cell:
            cell[key] = _parse_int_strict(cell[key], field=f"{field}.{key}")
    return cell


def _resolve_path(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return base_dir / path


def _load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _get_dict(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if isinstance(value, dict):
        return value
    return {}


def _parse_table_list(value: object, *, field: str) -> list[dict[str, object]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"{field} must be an array of tables")
    return value


def _parse_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"{field} must be a boolean")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"{field} must be a boolean")
    raise ValueError(f"{field} must be a boolean")


def _parse_int_strict(value: object, *, field: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError(f"{field} must be an integer")
        try:
            return int(text)
        except ValueError as exc:
            raise ValueError(f"{field} must be an integer") from exc
    raise ValueError(f"{field} must be an integer")


def _parse_length(value: object, *, field: str) -> int | float | str:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{field} must be a number or a length such as '10mm'")
    return value


def _parse_optional_length(value: object, *, field: str) -> int | float | str | None:
    if value is None:
        return None
    return _parse_length(value, field=field)


def _parse_optional_number(value: object, *, field: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field} must be a number")
    return float(value)


def _parse_str(value: object, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value


def _parse_optional_str(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    normalized = value.strip()
    return normalized or None


__all__ = ["ReportDefinition", "load_report_definition"]
