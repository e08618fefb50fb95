"""
Tests for logging setup and the error taxonomy.
"""

import logging
from pathlib import Path

import pytest

from vhostctl.core.errors import (
    HostError,
    InputValidationError,
    ProcessError,
    ProvisionError,
    TaskAggregateError,
)
from vhostctl.core.models import Receipt
from vhostctl.core.observability.logging_config import ConsoleFormatter, _parse_level, setup_logging


@pytest.fixture
def root_logger():
    """Give setup_logging a root logger it may reconfigure, then put it back."""
    root = logging.getLogger()
    handlers, level, raise_exc = list(root.handlers), root.level, logging.raiseExceptions
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.raiseExceptions = raise_exc


class TestSetupLogging:
    def test_default_level(self, root_logger):
        setup_logging()
        assert root_logger.level == logging.WARNING
        assert len(root_logger.handlers) == 1

    def test_debug_level(self, root_logger):
        setup_logging("DEBUG")
        assert root_logger.level == logging.DEBUG

    def test_log_file(self, root_logger, tmp_path: Path):
        log_file = tmp_path / "vhostctl.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        assert root_logger.level == logging.DEBUG
        logging.getLogger("vhostctl.test").debug("written to file only")
        for handler in root_logger.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    @pytest.mark.parametrize(
        "name,expected",
        [("info", logging.INFO), ("ERROR", logging.ERROR), ("bogus", logging.WARNING), (None, logging.WARNING)],
    )
    def test_parse_level(self, name, expected):
        assert _parse_level(name) == expected


class TestConsoleFormatter:
    def _record(self, level: int) -> logging.LogRecord:
        return logging.LogRecord("vhostctl", level, __file__, 1, "Skipping SSL setup", None, None)

    def test_plain_without_color(self):
        formatter = ConsoleFormatter("%(message)s", color=False)
        assert formatter.format(self._record(logging.WARNING)) == "Skipping SSL setup"

    def test_warning_is_colored(self):
        formatter = ConsoleFormatter("%(message)s", color=True)
        text = formatter.format(self._record(logging.WARNING))
        assert "Skipping SSL setup" in text
        assert text.startswith("\x1b[")

    def test_info_is_not_colored(self):
        formatter = ConsoleFormatter("%(message)s", color=True)
        assert formatter.format(self._record(logging.INFO)) == "Skipping SSL setup"


class TestErrors:
    def test_kinds(self):
        assert HostError("x").kind == "system"
        assert InputValidationError("x").kind == "validation"
        assert issubclass(HostError, ProvisionError)

    def test_details_include_help(self):
        error = HostError("Directory not writable", help_text="Fix your permissions.")
        assert error.details() == "Directory not writable\nFix your permissions."
        assert error.to_dict() == {
            "kind": "system",
            "message": "Directory not writable",
            "help": "Fix your permissions.",
        }

    def test_process_error_carries_output(self):
        receipt = Receipt.failure(
            adapter="shell",
            action_id="acme-issue",
            error="Verify error",
            stdout="issuing...",
            stderr="Verify error",
            return_code=1,
            metadata={"argv": ["acme.sh", "--issue"]},
        )
        error = ProcessError(receipt)
        assert error.message == "Command failed: acme.sh --issue (exit 1)"
        assert error.command == ["acme.sh", "--issue"]
        details = error.details()
        assert "--- stdout ---\nissuing..." in details
        assert "--- stderr ---\nVerify error" in details
        assert error.to_dict()["return_code"] == 1

    def test_process_error_custom_message(self):
        receipt = Receipt.failure(adapter="shell", action_id="nginx-restart", error="failed")
        error = ProcessError(receipt, "Could not restart nginx")
        assert error.message == "Could not restart nginx"
        assert error.details() == "Could not restart nginx\nfailed"

    def test_aggregate_details(self):
        from vhostctl.core.engine.pipeline import TaskResult

        error = TaskAggregateError([
            TaskResult(title="Checking nginx", status="failed", error=HostError("nginx is not installed")),
            TaskResult(title="Checking systemd", status="failed", error=HostError("systemd is not installed")),
        ])
        assert error.message == "2 task(s) failed: Checking nginx, Checking systemd"
        assert "  • Checking nginx: nginx is not installed" in error.details()
