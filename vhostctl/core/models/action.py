"""
Action and Receipt models: the process-execution contract.

Actions describe one external operation (a command vector, a file
write). Receipts describe what happened. Adapters take Actions and
return Receipts, never exceptions; callers decide which failed
receipts are fatal.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested external operation.

    ``id`` names the operation for logs and test doubles (e.g.
    ``nginx-restart``, ``link:blog.example.com.conf``); it does not
    have to be unique across a run.
    """

    id: str
    adapter: str = "shell"          # which adapter handles this
    name: str = ""                  # human-readable label
    needs_sudo: bool = False        # elevate this single call
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """What an adapter did with an Action.

    Shell receipts keep stdout, stderr and the exit code apart so a
    failed command can be shown to the operator in full; ``metadata``
    carries the argv that actually ran.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""                # human summary (stdout for commands)
    error: str | None = None
    stdout: str = ""
    stderr: str = ""
    return_code: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

