"""
Error taxonomy: the hard-failure kinds surfaced to the operator.

Skips are not errors and never appear here. Every hard failure is one
of three kinds:

    HostError             system / environment problem
    ProcessError          an external command exited non-zero
    InputValidationError  bad operator or configuration input

The CLI catches ``ProvisionError`` at the top level, prints it, and
exits non-zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vhostctl.core.engine.pipeline import TaskResult
    from vhostctl.core.models.action import Receipt


class ProvisionError(Exception):
    """Base class for all operator-facing failures."""

    kind = "error"

    def __init__(self, message: str, *, help_text: str | None = None):
        super().__init__(message)
        self.message = message
        self.help_text = help_text

    def details(self) -> str:
        """Full text shown to the operator."""
        if self.help_text:
            return f"{self.message}\n{self.help_text}"
        return self.message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "help": self.help_text}


class HostError(ProvisionError):
    """The host system is not in a state we can work with."""

    kind = "system"


class InputValidationError(ProvisionError):
    """Operator-supplied or configured input is invalid."""

    kind = "validation"


class ProcessError(ProvisionError):
    """An external command failed.

    Wraps the failed ``Receipt`` so the captured output of the
    underlying command is available to the operator.
    """

    kind = "process"

    def __init__(self, receipt: Receipt, message: str | None = None):
        self.receipt = receipt
        self.command: list[str] = list(receipt.metadata.get("argv", []))
        self.return_code = receipt.return_code
        self.stdout = receipt.stdout
        self.stderr = receipt.stderr
        if message is None:
            shown = " ".join(self.command) or receipt.action_id
            message = f"Command failed: {shown}"
            if self.return_code is not None:
                message += f" (exit {self.return_code})"
        super().__init__(message, help_text=receipt.error)

    def details(self) -> str:
        lines = [self.message]
        if self.stdout:
            lines += ["--- stdout ---", self.stdout]
        if self.stderr:
            lines += ["--- stderr ---", self.stderr]
        elif self.help_text:
            lines.append(self.help_text)
        return "\n".join(lines)

    def to_dict(self) -> dict:
        result = super().to_dict()
        result.update(
            command=self.command,
            return_code=self.return_code,
            stdout=self.stdout,
            stderr=self.stderr,
        )
        return result


class TaskAggregateError(ProvisionError):
    """One or more tasks of a non-fail-fast pipeline failed."""

    kind = "aggregate"

    def __init__(self, failures: list[TaskResult]):
        self.failures = failures
        titles = ", ".join(f.title for f in failures)
        super().__init__(f"{len(failures)} task(s) failed: {titles}")

    @property
    def errors(self) -> list[BaseException]:
        return [f.error for f in self.failures if f.error is not None]

    def details(self) -> str:
        lines = [self.message]
        for failure in self.failures:
            lines.append(f"  • {failure.title}: {failure.error}")
        return "\n".join(lines)
