"""
Adapter registry: dispatches every Action to the adapter named on it.

Provisioners never hold adapters themselves; the Host facade hands
actions to the registry, which picks the adapter, validates, executes
and always comes back with a Receipt.
"""

from __future__ import annotations

import logging
import time

from vhostctl.adapters.base import Adapter, ExecutionContext
from vhostctl.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the single dispatch entry point."""

    def __init__(self):
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def execute_action(
        self,
        action: Action,
        working_dir: str | None = None,
        env: dict[str, str] | None = None,
    ) -> Receipt:
        """Run ``action`` through its adapter. Never raises."""
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return _failed(action, f"No adapter registered for '{action.adapter}'")
        if not adapter.is_available():
            return _failed(action, f"Adapter '{adapter.name}' is not available on this host")

        context = ExecutionContext(action=action, working_dir=working_dir, env=env or {})
        started = time.monotonic()

        try:
            valid, problem = adapter.validate(context)
        except Exception as e:
            return _failed(action, f"Validation error: {e}")
        if not valid:
            return _failed(action, f"Validation failed: {problem}")

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", adapter.name, action.id, e)
            receipt = _failed(action, f"Unexpected error: {e}")

        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            "%s:%s%s → %s",
            action.adapter,
            action.id,
            " [sudo]" if action.needs_sudo else "",
            receipt.status,
        )
        return receipt


def _failed(action: Action, error: str) -> Receipt:
    return Receipt.failure(adapter=action.adapter, action_id=action.id, error=error)

