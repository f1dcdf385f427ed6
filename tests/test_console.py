"""Tests for log formatting and console helpers."""

import logging
import re

from auto_deploy.lib import console
from auto_deploy.lib.console import REMINDER, configure_logging, remind

LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(\w+)\] (.*)$")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_timestamped_lines_on_stdout(self, capsys):
        configure_logging()

        logging.getLogger("auto_deploy.lib.installers").info("Installing eksctl...")
        remind("Alternatively, run: newgrp docker")

        lines = capsys.readouterr().out.splitlines()
        assert [LINE.match(line).groups() for line in lines] == [
            ("INFO", "Installing eksctl..."),
            ("REMINDER", "Alternatively, run: newgrp docker"),
        ]

    def test_debug_only_when_verbose(self, capsys):
        configure_logging()
        logging.getLogger("auto_deploy.lib.commands").debug("Running: brew update")
        assert capsys.readouterr().out == ""

        configure_logging(verbose=True)
        logging.getLogger("auto_deploy.lib.commands").debug("Running: brew update")
        assert "[DEBUG] Running: brew update" in capsys.readouterr().out

    def test_reconfiguring_does_not_duplicate_lines(self, capsys):
        configure_logging()
        configure_logging()

        logging.getLogger("auto_deploy").warning("Continuing without AWS credentials")

        assert capsys.readouterr().out.count("Continuing without AWS credentials") == 1

    def test_reminder_sits_between_warning_and_error(self):
        assert logging.WARNING < REMINDER < logging.ERROR
        assert logging.getLevelName(REMINDER) == "REMINDER"


class TestConsoleHelpers:
    """Tests for the operator-facing helpers that remain in the module."""

    def test_error_and_step_helpers(self, capsys):
        console.print_step("3/7", "Installing kubectl...")
        console.print_error("CDK directory is empty: /srv/cdk")

        out = capsys.readouterr().out
        assert "[3/7] Installing kubectl..." in out
        assert "✗ CDK directory is empty: /srv/cdk" in out

    def test_only_used_helpers_are_exported(self):
        assert not hasattr(console, "print_success")
        assert not hasattr(console, "print_warning")
