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

import unittest
from pathlib import Path

from typer.testing import CliRunner

from ledgerpress.cli import app
from ledgerpress.config import load_report_definition
from ledgerpress.render.report import ReportWriter
from tests.test_support import is_valid_pdf, pdf_page_count, temp_directory, write_png

REPORT_TOML = """
[report]
paper = "A4"
x_margin = "15mm"
upper_margin = "15mm"

[report.info]
title = "Quarterly sales"
author = "Accounts"

[data]
cell_borders = true

[[data.page.header]]
text = "Quarterly sales"
percent = 80
bold = true
font_size = 16

[[data.page.header]]
percent = 20
image = "logo.png"

[[data.fields]]
name = "Region"
percent = 30

[[data.fields]]
name = "Product"
percent = 40
wrap_text = true

[[data.fields]]
name = "Amount"
percent = 30
align = "right"
aggregate_function = "sum"
format = { currency = true, decimal_places = 2, separate_thousands = true }

[[data.groups]]
name = "GrandTotals"

[[data.groups.footer]]
text = "Grand total"
percent = 70
bold = true

[[data.groups.footer]]
percent = 30
align = "right"
aggregate_source = 2
type = "currency"

[[data.groups]]
name = "Region"
data_column = 0
reprinting_header = true

[[data.groups.header]]
text = "Region ?"
percent = 100
bold = true
background = { shape = "box", colour = "#dddddd" }

[[data.groups.footer]]
text = "Subtotal ?"
percent = 70

[[data.groups.footer]]
percent = 30
align = "right"
aggregate_source = 2
type = "currency"
"""


def _records() -> list[list[str]]:
    rows = []
    for region in ("east", "north", "south"):
        for index in range(40):
            rows.append([region, f"Widget model {index} with an extended description", "12.50"])
    return rows


def _write_inputs(tmp: Path) -> tuple[Path, Path]:
    write_png(tmp / "logo.png")
    definition = tmp / "sales.toml"
    definition.write_text(REPORT_TOML, encoding="utf-8")
    data = tmp / "sales.csv"
    lines = ["region,product,amount"] + [",".join(row) for row in _records()]
    data.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return definition, data


class TestIntegrationRender(unittest.TestCase):
    def test_render_definition_to_pdf(self) -> None:
        with temp_directory() as tmp:
            definition_path, _data = _write_inputs(tmp)
            definition = load_report_definition(definition_path)
            report = ReportWriter(definition.options, definition.data)
            report.render_data(_records())
            target = report.save(tmp / "report.pdf")
            payload = target.read_bytes()

        self.assertTrue(is_valid_pdf(payload))
        self.assertGreater(report.page_count, 1)
        self.assertEqual(pdf_page_count(payload), report.page_count)
        self.assertEqual(report.fetch_group_results("Amount", "GrandTotals"), 1500)
        self.assertEqual(report.fetch_group_results("Amount", "Region", "north"), 500)
        self.assertEqual(report.warnings, [])

    def test_cli_render_command(self) -> None:
        with temp_directory() as tmp:
            definition, data = _write_inputs(tmp)
            output = tmp / "out.pdf"
            result = CliRunner().invoke(
                app,
                ["render", str(definition), str(data), "--skip-header", "-o", str(output)],
            )
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(is_valid_pdf(output.read_bytes()))


if __name__ == "__main__":
    unittest.main()
