"""
Filesystem adapter: files and directories owned by the invoking user.

Rendered configs, the DH parameter file and the proxy webroot live in
the install directory, so they are written without elevation. System
directories (sites-available/-enabled) are only ever touched through
elevated shell commands.
"""

from __future__ import annotations

import logging
from pathlib import Path

from vhostctl.adapters.base import Adapter, ExecutionContext
from vhostctl.core.models.action import Receipt

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """Action params:

    operation (str): ``write`` or ``mkdir``.
    path (str): Target path, absolute or relative to the working dir.
    content (str): File content, for ``write``.
    """

    operations = ("write", "mkdir")

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        if params.get("operation") not in self.operations:
            return False, (
                f"Unknown operation '{params.get('operation', '')}'. "
                f"Valid: {', '.join(self.operations)}"
            )
        if not params.get("path"):
            return False, "Missing required param: 'path'"
        if params["operation"] == "write" and not isinstance(params.get("content"), str):
            return False, "Param 'content' (str) is required for write"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        target = Path(params["path"])
        if not target.is_absolute() and context.working_dir:
            target = Path(context.working_dir) / target

        try:
            if params["operation"] == "write":
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(params["content"], encoding="utf-8")
                summary = f"Wrote {len(params['content'])} bytes to {target}"
            else:
                target.mkdir(parents=True, exist_ok=True)
                summary = f"Directory ready: {target}"
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"path": str(target)},
            )

        logger.debug(summary)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=summary,
            metadata={"path": str(target)},
        )
