"""
Doctor use case: run the preflight diagnostics.

Works with or without a site.yml: when one is found its ``doctor``
settings are used, otherwise the defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vhostctl.core.config.loader import find_site_file, load_instance
from vhostctl.core.context import RunContext
from vhostctl.core.engine.pipeline import PipelineReport
from vhostctl.core.errors import ProvisionError
from vhostctl.core.host import Host, create_host
from vhostctl.doctor.checks import run_checks
from vhostctl.ui.console import ConsoleUI

logger = logging.getLogger(__name__)


@dataclass
class DoctorResult:
    report: PipelineReport | None = None
    context: RunContext | None = None
    error: ProvisionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def bypassed(self) -> list[str]:
        if self.context is None:
            return []
        return [
            key
            for key in ("system_checks_bypassed", "database_check_bypassed")
            if self.context.get(key)
        ]

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"ok": self.ok, "bypassed": self.bypassed}
        if self.report is not None:
            result.update(self.report.to_dict())
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


def run_doctor(
    args: dict[str, Any],
    config_path: Path | None = None,
    host: Host | None = None,
    ui: ConsoleUI | None = None,
) -> DoctorResult:
    """Run the preflight checks.

    Args:
        args: Operator flags (``local``, ``stack``, ``db``, ``dbhost``,
            ``setup_linux_user``).
        config_path: Optional explicit path to site.yml.
        host: Optional pre-built host.
        ui: Optional console UI.
    """
    result = DoctorResult()

    try:
        if config_path is None:
            config_path = find_site_file()
        instance = load_instance(config_path) if config_path else None

        ctx = RunContext(
            args=args,
            instance=instance,
            host=host or create_host(),
            ui=ui or ConsoleUI(allow_prompt=False),
        )
        result.context = ctx
        result.report = run_checks(ctx)
    except ProvisionError as e:
        result.error = e

    return result
