"""
Mock adapter: scripted stand-in for any adapter.

Records every call and answers from a table of canned receipts keyed
by action id; anything unscripted succeeds with empty output.
"""

from __future__ import annotations

from vhostctl.adapters.base import Adapter, ExecutionContext
from vhostctl.core.models.action import Receipt


class MockAdapter(Adapter):
    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def calls_for(self, action_id: str) -> list[ExecutionContext]:
        return [c for c in self.call_log if c.action.id == action_id]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._responses[action_id] = receipt

    def set_output(self, action_id: str, stdout: str) -> None:
        """Make ``action_id`` succeed, printing ``stdout``."""
        self.set_response(
            action_id,
            Receipt.success(self._name, action_id, stdout, stdout=stdout, return_code=0),
        )

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        stdout: str = "",
        return_code: int = 1,
    ) -> None:
        """Make ``action_id`` exit non-zero; ``error`` doubles as stderr."""
        self.set_response(
            action_id,
            Receipt.failure(
                self._name,
                action_id,
                error,
                stdout=stdout,
                stderr=error,
                return_code=return_code,
            ),
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        scripted = self._responses.get(context.action.id)
        if scripted is not None:
            return scripted
        return self.respond(context)

    def respond(self, context: ExecutionContext) -> Receipt:
        """Receipt for an unscripted action."""
        return Receipt.success(
            self._name,
            context.action.id,
            self._default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        self.call_log.clear()
        self._responses.clear()
