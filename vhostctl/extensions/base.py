"""
Extension protocol: the capability interface of provisioning plugins.

An extension contributes stages to ``vhostctl setup`` and cleans up
after itself on ``vhostctl uninstall``. Extensions are plain objects
listed in ``vhostctl.extensions.EXTENSIONS``; nothing is discovered at
runtime.
"""

from __future__ import annotations

from typing import Any, Protocol

from vhostctl.core.engine.stages import StageScheduler
from vhostctl.core.host import Host
from vhostctl.core.models.site import Instance
from vhostctl.ui.console import ConsoleUI


class Extension(Protocol):
    name: str

    def register_stages(self, scheduler: StageScheduler, args: dict[str, Any]) -> None:
        """Register this extension's stages for a setup run."""

    def teardown(self, instance: Instance) -> None:
        """Remove everything the extension installed for ``instance``."""


class ExtensionFactory(Protocol):
    def __call__(self, host: Host, ui: ConsoleUI) -> Extension: ...
