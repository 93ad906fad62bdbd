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

import tempfile
import unittest
from pathlib import Path
from unittest import mock

import typer

from ledgerpress.cli.commands import render as render_module
from ledgerpress.config import ReportDefinition
from ledgerpress.render.spec import ReportOptions


class TestRenderCommand(unittest.TestCase):
    def _ctx(self, **values: object) -> object:
        return mock.Mock(obj=dict(values))

    def test_read_records_skips_blank_lines_and_header(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sales.csv"
            path.write_text("year,amount\n2024,100\n\n2025,\"1,200\"\n", encoding="utf-8")
            rows = render_module._read_records(path, skip_header=True, delimiter=",")
            all_rows = render_module._read_records(path, skip_header=False, delimiter=",")
        self.assertEqual(rows, [["2024", "100"], ["2025", "1,200"]])
        self.assertEqual(all_rows[0], ["year", "amount"])

    def test_read_records_custom_delimiter(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "sales.csv"
            path.write_text("north;5\nsouth;7\n", encoding="utf-8")
            rows = render_module._read_records(path, skip_header=False, delimiter=";")
            with self.assertRaises(ValueError):
                render_module._read_records(path, skip_header=False, delimiter=";;")
        self.assertEqual(rows, [["north", "5"], ["south", "7"]])

    @mock.patch("ledgerpress.cli.commands.render.console.print")
    @mock.patch("ledgerpress.cli.commands.render._warn")
    @mock.patch("ledgerpress.cli.commands.render._read_records", return_value=[["a", "1"]])
    @mock.patch("ledgerpress.cli.commands.render.ReportWriter")
    @mock.patch("ledgerpress.cli.commands.render.load_report_definition")
    @mock.patch("ledgerpress.cli.commands.render._run_cli", side_effect=lambda func, debug: func())
    def test_render_writes_pdf_and_reports_warnings(
        self,
        _run_cli: mock.MagicMock,
        load_report_definition: mock.MagicMock,
        report_writer: mock.MagicMock,
        read_records: mock.MagicMock,
        warn_mock: mock.MagicMock,
        print_mock: mock.MagicMock,
    ) -> None:
        options = ReportOptions(paper="Letter")
        load_report_definition.return_value = ReportDefinition(
            options=options, data={"fields": []}
        )
        report = report_writer.return_value
        report.warnings = ["Unknown cell attribute 'glitter'"]
        ctx = self._ctx(debug=True, quiet=False)

        render_module.render(
            ctx,
            definition=Path("sales.toml"),
            data=Path("sales.csv"),
            output=Path("out.pdf"),
            skip_header=True,
            delimiter=";",
        )

        _run_cli.assert_called_once()
        self.assertTrue(_run_cli.call_args.kwargs["debug"])
        load_report_definition.assert_called_once_with(Path("sales.toml"))
        read_records.assert_called_once_with(Path("sales.csv"), skip_header=True, delimiter=";")
        report_writer.assert_called_once_with(options, {"fields": []})
        report.render_data.assert_called_once_with([["a", "1"]])
        report.save.assert_called_once_with(Path("out.pdf"))
        warn_mock.assert_called_once_with("Unknown cell attribute 'glitter'", quiet=False)
        print_mock.assert_called_once_with("out.pdf")

    @mock.patch("ledgerpress.cli.commands.render.console.print")
    @mock.patch("ledgerpress.cli.commands.render._read_records", return_value=[])
    @mock.patch("ledgerpress.cli.commands.render.ReportWriter")
    @mock.patch("ledgerpress.cli.commands.render.load_report_definition")
    @mock.patch("ledgerpress.cli.commands.render._run_cli", side_effect=lambda func, debug: func())
    def test_render_quiet_default_output(
        self,
        _run_cli: mock.MagicMock,
        _load_report_definition: mock.MagicMock,
        report_writer: mock.MagicMock,
        _read_records: mock.MagicMock,
        print_mock: mock.MagicMock,
    ) -> None:
        report_writer.return_value.warnings = []
        ctx = self._ctx(debug=False, quiet=True)

        render_module.render(
            ctx,
            definition=Path("sales.toml"),
            data=Path("/tmp/sales.csv"),
            output=None,
            skip_header=False,
            delimiter=",",
        )

        report_writer.return_value.save.assert_called_once_with(Path("/tmp/sales.pdf"))
        print_mock.assert_not_called()

    def test_errors_exit_with_code_2(self) -> None:
        ctx = self._ctx(debug=False, quiet=False)
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch("ledgerpress.cli.core.common.console_err.print") as print_err:
                with self.assertRaises(typer.Exit) as exc_info:
                    render_module.render(
                        ctx,
                        definition=Path(tmp) / "missing.toml",
                        data=Path(tmp) / "missing.csv",
                        output=None,
                        skip_header=False,
                        delimiter=",",
                    )
        self.assertEqual(exc_info.exception.exit_code, 2)
        print_err.assert_called_once()

    def test_register(self) -> None:
        app = typer.Typer()
        render_module.register(app)
        self.assertGreater(len(app.registered_commands), 0)


if __name__ == "__main__":
    unittest.main()
