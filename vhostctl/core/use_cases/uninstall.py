"""
Uninstall use case: undo what the setup stages installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from vhostctl.core.config.loader import load_instance
from vhostctl.core.errors import ProvisionError
from vhostctl.core.host import Host, create_host
from vhostctl.core.models.site import Instance
from vhostctl.extensions import load_extensions
from vhostctl.ui.console import ConsoleUI

logger = logging.getLogger(__name__)


@dataclass
class UninstallResult:
    instance: Instance | None = None
    extensions: list[str] = field(default_factory=list)
    error: ProvisionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "url": self.instance.config.url if self.instance else None,
            "extensions": self.extensions,
            "error": self.error.to_dict() if self.error else None,
        }


def run_uninstall(
    config_path: Path | None = None,
    host: Host | None = None,
    ui: ConsoleUI | None = None,
    instance: Instance | None = None,
) -> UninstallResult:
    """Run every extension's teardown for the instance."""
    result = UninstallResult()

    try:
        if instance is None:
            instance = load_instance(config_path)
        result.instance = instance

        host = host or create_host()
        for extension in load_extensions(host, ui or ConsoleUI(allow_prompt=False)):
            logger.info("Tearing down %s", extension.name)
            extension.teardown(instance)
            result.extensions.append(extension.name)
    except ProvisionError as e:
        result.error = e

    return result
