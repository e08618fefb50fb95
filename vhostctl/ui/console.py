"""
Console UI: interactive prompts and confirmations.

Provisioners only ask the operator something through this object, so
a non-interactive run (``--no-prompt``, no TTY) never blocks: prompts
are refused up front via ``allow_prompt``.
"""

from __future__ import annotations

from collections.abc import Callable

import click


class ConsoleUI:
    """Prompt/confirm helpers on top of click."""

    def __init__(self, allow_prompt: bool = True):
        self.allow_prompt = allow_prompt

    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask a yes/no question; returns ``default`` when prompting is off."""
        if not self.allow_prompt:
            return default
        return click.confirm(click.style(question, fg="blue"), default=default, err=True)

    def prompt(
        self,
        message: str,
        validate: Callable[[str], bool | str] | None = None,
    ) -> str:
        """Ask for a value until ``validate`` accepts it.

        ``validate`` returns True to accept, or an error message.
        """
        if not self.allow_prompt:
            raise click.UsageError(f"Cannot prompt for '{message}' in non-interactive mode")

        def _check(value: str) -> str:
            value = value.strip()
            if validate is not None:
                verdict = validate(value)
                if verdict is not True:
                    raise click.BadParameter(str(verdict or "Invalid value"))
            return value

        return click.prompt(message, value_proc=_check, err=True)
