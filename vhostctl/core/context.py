"""
Run context: the mutable state shared across one command invocation.

A ``RunContext`` is created by the use case driving a command and
handed by reference to every stage handler and pipeline task. Tasks
communicate only through it: a DNS check writes ``dnsfail``, later
steps read it.

Every ``set()`` bumps ``version``, and the version of each key's last
write is kept, so the pipeline executor can tell which keys a task
wrote and compare that with what the task declared.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vhostctl.core.host import Host
    from vhostctl.core.models.site import Instance
    from vhostctl.ui.console import ConsoleUI


class RunContext:
    """Versioned key/value bag plus the collaborators of a run."""

    def __init__(
        self,
        args: dict[str, Any] | None = None,
        instance: Instance | None = None,
        host: Host | None = None,
        ui: ConsoleUI | None = None,
    ):
        self.args: dict[str, Any] = dict(args or {})
        self.instance = instance
        self.host = host
        self.ui = ui
        self.single = False
        self.stage_outcomes: dict[str, str] = {}
        self.version = 0
        self._values: dict[str, Any] = {}
        self._written_at: dict[str, int] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self.version += 1
            self._values[key] = value
            self._written_at[key] = self.version

    def written_since(self, version: int) -> set[str]:
        """Keys written after the given context version."""
        return {k for k, v in self._written_at.items() if v > version}

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"<RunContext v{self.version} keys={sorted(self._values)}>"
