"""
The contract every side-effecting backend implements.

Provisioners describe what should happen as an ``Action``; an adapter
performs it and reports back with a ``Receipt``. Subprocesses and file
writes happen nowhere else, which is what lets the tests swap the
whole host for a simulator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from vhostctl.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An action plus the process environment it runs in."""

    action: Action
    working_dir: str | None = None
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def needs_sudo(self) -> bool:
        return self.action.needs_sudo


class Adapter(ABC):
    """A named backend (``shell``, ``filesystem``) for running actions.

    ``execute`` reports failure through the receipt's status, never by
    raising; the registry still guards against adapters that break
    that rule.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Key that ``Action.adapter`` refers to."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this host can run the adapter at all."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check the action's params; ``(False, reason)`` rejects it."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Perform the action and describe the outcome."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
