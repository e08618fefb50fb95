"""
Shell adapter: run one argument vector and capture what it printed.

Arguments are never joined into a shell string, so a domain or email
from site.yml can't turn into shell syntax. ``needs_sudo`` on the action
prepends ``sudo`` unless the process is already root. Commands run
without a time limit: DH parameter generation and certificate issuance
can take minutes.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from vhostctl.adapters.base import Adapter, ExecutionContext
from vhostctl.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Action params:

    argv (list[str]): Program and arguments.
    cwd (str): Directory to run in; defaults to the context's working dir.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        argv = params.get("argv")
        if not argv:
            return False, "Missing required param: 'argv'"
        if not isinstance(argv, list) or any(not isinstance(a, str) for a in argv):
            return False, "Param 'argv' must be a list of strings"
        cwd = params.get("cwd", context.working_dir)
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        params = action.params
        argv: list[str] = list(params["argv"])
        elevate = action.needs_sudo and os.geteuid() != 0
        cmd = ["sudo", *argv] if elevate else argv
        cwd = params.get("cwd", context.working_dir)
        env = {**os.environ, **context.env} if context.env else None

        meta = {"argv": argv, "sudo": action.needs_sudo}
        logger.debug("$ %s%s", "sudo " if elevate else "", " ".join(argv))

        def failed(error: str, **extra) -> Receipt:
            return Receipt.failure(self.name, action.id, error, metadata=meta, **extra)

        try:
            proc = subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            return failed(f"Command not found: {cmd[0]}", return_code=127)
        except OSError as e:
            return failed(f"Command execution error: {e}")

        out, err = proc.stdout.strip(), proc.stderr.strip()
        if proc.returncode != 0:
            return failed(
                err or f"Command exited with code {proc.returncode}",
                stdout=out,
                stderr=err,
                return_code=proc.returncode,
            )
        return Receipt.success(
            self.name, action.id, out, stdout=out, stderr=err, return_code=0, metadata=meta
        )
