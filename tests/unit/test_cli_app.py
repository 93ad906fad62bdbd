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

import importlib
import logging
import unittest
from dataclasses import dataclass
from unittest import mock

import typer
from rich.logging import RichHandler

from ledgerpress.cli.core.log import LIBRARY_LOGGER, _configure_logging, _warn
from ledgerpress.cli.ui import configure_ui, console, console_err

app_module = importlib.import_module("ledgerpress.cli.app")


@dataclass
class _Ctx:
    invoked_subcommand: str | None = None
    obj: dict[str, object] | None = None

    def ensure_object(self, _type):
        if self.obj is None:
            self.obj = {}
        return self.obj


class TestCliApp(unittest.TestCase):
    def tearDown(self) -> None:
        _configure_logging(debug=False)

    @mock.patch("ledgerpress.cli.app.console.print")
    def test_version_callback(self, print_mock: mock.MagicMock) -> None:
        with self.assertRaises(typer.Exit):
            app_module._version_callback(True)
        print_mock.assert_called_once()
        self.assertIn("ledgerpress", print_mock.call_args.args[0])
        app_module._version_callback(False)

    @mock.patch("ledgerpress.cli.app.console_err.print")
    def test_cli_without_subcommand_exits_2(self, print_err: mock.MagicMock) -> None:
        ctx = _Ctx(invoked_subcommand=None)
        with self.assertRaises(typer.Exit) as exc_info:
            app_module.cli(ctx, debug=False, quiet=False, no_color=False, version=False)
        self.assertEqual(exc_info.exception.exit_code, 2)
        print_err.assert_called_once()

    @mock.patch("ledgerpress.cli.app.configure_ui")
    def test_cli_stores_global_options(self, configure_ui: mock.MagicMock) -> None:
        ctx = _Ctx(invoked_subcommand="render")
        app_module.cli(ctx, debug=True, quiet=True, no_color=True, version=False)
        self.assertEqual(ctx.obj, {"debug": True, "quiet": True, "no_color": True})
        configure_ui.assert_called_once_with(no_color=True)
        logger = logging.getLogger(LIBRARY_LOGGER)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertTrue(any(isinstance(h, RichHandler) for h in logger.handlers))

    def test_logging_quiet_by_default(self) -> None:
        _configure_logging(debug=True)
        _configure_logging(debug=False)
        logger = logging.getLogger(LIBRARY_LOGGER)
        self.assertEqual(logger.level, logging.ERROR)
        self.assertFalse(any(isinstance(h, RichHandler) for h in logger.handlers))

    @mock.patch("ledgerpress.cli.core.log.console_err.print")
    def test_warn_respects_quiet(self, print_err: mock.MagicMock) -> None:
        _warn("careful", quiet=True)
        print_err.assert_not_called()
        _warn("careful", quiet=False)
        print_err.assert_called_once()
        self.assertIn("careful", print_err.call_args.args[0])

    def test_configure_ui_toggles_colour(self) -> None:
        configure_ui(no_color=True)
        self.assertTrue(console.no_color)
        self.assertTrue(console_err.no_color)
        configure_ui(no_color=False)
        self.assertFalse(console.no_color)
        self.assertFalse(console_err.no_color)

    def test_render_command_registered(self) -> None:
        names = [command.callback.__name__ for command in app_module.app.registered_commands]
        self.assertIn("render", names)


if __name__ == "__main__":
    unittest.main()
