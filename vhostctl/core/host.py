"""
Host facade: the narrow process-execution interface provisioners use.

Wraps an AdapterRegistry so callers think in terms of "run this
command vector" and "write this file", while every effect still flows
through adapters as an Action/Receipt pair.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

from vhostctl.adapters.registry import AdapterRegistry
from vhostctl.core.errors import HostError, ProcessError
from vhostctl.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class Host:
    """Run commands and file operations on the local machine."""

    def __init__(self, registry: AdapterRegistry):
        self.registry = registry

    def run(
        self,
        action_id: str,
        argv: list[str],
        *,
        sudo: bool = False,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
    ) -> Receipt:
        """Run a command vector. Never raises; inspect the receipt."""
        params: dict = {"argv": [str(a) for a in argv]}
        if cwd:
            params["cwd"] = cwd
        action = Action(id=action_id, adapter="shell", needs_sudo=sudo, params=params)
        return self.registry.execute_action(action, env=env)

    def sudo(self, action_id: str, argv: list[str]) -> Receipt:
        """Run a command vector with elevated privileges."""
        return self.run(action_id, argv, sudo=True)

    def check(
        self,
        action_id: str,
        argv: list[str],
        *,
        sudo: bool = False,
        env: dict[str, str] | None = None,
    ) -> Receipt:
        """Run a command vector, raising ProcessError if it fails."""
        receipt = self.run(action_id, argv, sudo=sudo, env=env)
        if receipt.failed:
            raise ProcessError(receipt)
        return receipt

    # ── Files owned by the invoking user ────────────────────────

    def write_file(self, path: Path, content: str) -> Receipt:
        receipt = self._fs("write", path, content=content)
        if receipt.failed:
            raise HostError(f"Could not write {path}", help_text=receipt.error)
        return receipt

    def make_dir(self, path: Path) -> Receipt:
        receipt = self._fs("mkdir", path)
        if receipt.failed:
            raise HostError(f"Could not create directory {path}", help_text=receipt.error)
        return receipt

    def _fs(self, operation: str, path: Path, **params) -> Receipt:
        action = Action(
            id=f"{operation}:{path.name}",
            adapter="filesystem",
            params={"operation": operation, "path": str(path), **params},
        )
        return self.registry.execute_action(action)

    # ── Queries ─────────────────────────────────────────────────

    def package_installed(self, package: str) -> bool:
        """Whether the package database lists an installed ``package``.

        Matches any installed package whose name contains ``package``
        (``nginx`` matches ``nginx-core`` too).
        """
        receipt = self.run("dpkg-list", ["dpkg", "-l"])
        if not receipt.ok:
            logger.debug("dpkg query failed: %s", receipt.error)
            return False
        pattern = re.compile(rf"^ii\s+\S*{re.escape(package)}\S*\s", re.MULTILINE)
        return bool(pattern.search(receipt.stdout))

    def which(self, binary: str, extra_path: str | None = None) -> str | None:
        """Locate a binary on PATH, optionally prepending ``extra_path``."""
        path = os.environ.get("PATH", "")
        if extra_path:
            path = f"{extra_path}{os.pathsep}{path}"
        return shutil.which(binary, path=path)


def create_host(registry: AdapterRegistry | None = None) -> Host:
    """Build a Host over the real shell and filesystem adapters."""
    if registry is None:
        from vhostctl.adapters.shell.command import ShellCommandAdapter
        from vhostctl.adapters.shell.filesystem import FilesystemAdapter

        registry = AdapterRegistry()
        registry.register(ShellCommandAdapter())
        registry.register(FilesystemAdapter())
    return Host(registry)
