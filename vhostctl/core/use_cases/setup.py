"""
Setup use case: run the provisioning stages for an installed site.

Loads site.yml, lets every extension register its stages, and runs the
stage scheduler over one shared RunContext.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vhostctl.core.config.loader import load_instance
from vhostctl.core.context import RunContext
from vhostctl.core.engine.stages import StageReport, StageScheduler
from vhostctl.core.errors import ProvisionError
from vhostctl.core.host import Host, create_host
from vhostctl.core.models.site import Instance
from vhostctl.extensions import load_extensions
from vhostctl.ui.console import ConsoleUI

logger = logging.getLogger(__name__)


@dataclass
class SetupResult:
    """Result of a setup run."""

    report: StageReport | None = None
    instance: Instance | None = None
    context: RunContext | None = None
    error: ProvisionError | None = None
    stages_registered: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"ok": self.ok}
        if self.instance is not None:
            result["url"] = self.instance.config.url
            result["dir"] = str(self.instance.dir)
        result["stages_registered"] = self.stages_registered
        if self.report is not None:
            result.update(self.report.to_dict())
        if self.context is not None:
            result["dnsfail"] = bool(self.context.get("dnsfail"))
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


def run_setup(
    args: dict[str, Any],
    config_path: Path | None = None,
    stages: list[str] | None = None,
    disabled: list[str] | None = None,
    host: Host | None = None,
    ui: ConsoleUI | None = None,
    instance: Instance | None = None,
) -> SetupResult:
    """Run the setup stages.

    Args:
        args: Operator flags (``local``, ``sslemail``, ``sslstaging``).
        config_path: Optional explicit path to site.yml.
        stages: Run only these stages. None = all.
        disabled: Stages the operator opted out of.
        host: Optional pre-built host (tests inject simulators).
        ui: Optional console UI.
        instance: Optional pre-loaded instance.
    """
    result = SetupResult()

    try:
        if instance is None:
            instance = load_instance(config_path)
        result.instance = instance

        host = host or create_host()
        ui = ui or ConsoleUI(allow_prompt=False)

        scheduler = StageScheduler()
        for extension in load_extensions(host, ui):
            extension.register_stages(scheduler, args)
        result.stages_registered = [s.name for s in scheduler.stages]

        if not scheduler.stages:
            logger.warning("Nothing to set up for a local install.")

        ctx = RunContext(args=args, instance=instance, host=host, ui=ui)
        result.context = ctx
        # owned here so stages finished before a failure are still reported
        result.report = StageReport()
        scheduler.run(
            args,
            ctx,
            only=stages or None,
            disabled=disabled or (),
            report=result.report,
        )
    except ProvisionError as e:
        result.error = e

    return result
