"""
Stage scheduler: named, dependency-ordered top-level steps.

Stages run strictly one after another, in registration order. A stage
may depend on one earlier-registered stage. Outcomes:

    completed   the handler ran to the end
    skipped     the handler decided there was nothing to do
                (``task.skip()``); dependents still run and re-check
                their own applicability
    disabled    the stage was not run: the operator opted out, or a
                stage it depends on was disabled
    failed      the handler raised; the error propagates to the caller
                and no later stage runs
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Literal

from vhostctl.core.context import RunContext
from vhostctl.core.errors import InputValidationError

logger = logging.getLogger(__name__)

StageHandler = Callable[[dict[str, Any], RunContext, "TaskHandle"], Any]


class TaskHandle:
    """Handed to a stage handler so it can report a skip."""

    def __init__(self, stage: str):
        self.stage = stage
        self.skipped = False
        self.reason = ""

    def skip(self, reason: str = "") -> None:
        """Mark the stage as skipped. A reason is logged at warning level."""
        self.skipped = True
        self.reason = reason
        if reason:
            logger.warning(reason)


@dataclass
class Stage:
    name: str
    handler: StageHandler
    depends_on: str | None = None
    label: str = ""


@dataclass
class StageResult:
    name: str
    label: str
    status: Literal["completed", "skipped", "disabled", "failed"]
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "status": self.status,
            "reason": self.reason,
        }


@dataclass
class StageReport:
    results: list[StageResult] = field(default_factory=list)

    def outcome(self, name: str) -> str | None:
        for result in self.results:
            if result.name == name:
                return result.status
        return None

    def to_dict(self) -> dict:
        return {"stages": [r.to_dict() for r in self.results]}


class StageScheduler:
    """Registry and runner of top-level stages."""

    def __init__(self) -> None:
        self._stages: dict[str, Stage] = {}

    @property
    def stages(self) -> list[Stage]:
        return list(self._stages.values())

    def register(
        self,
        name: str,
        handler: StageHandler,
        depends_on: str | None = None,
        label: str | None = None,
    ) -> Stage:
        """Register a stage. Its dependency must already be registered."""
        if name in self._stages:
            raise InputValidationError(f"Stage '{name}' is already registered")
        if depends_on is not None and depends_on not in self._stages:
            raise InputValidationError(
                f"Stage '{name}' depends on unknown stage '{depends_on}'"
            )
        stage = Stage(name=name, handler=handler, depends_on=depends_on, label=label or name)
        self._stages[name] = stage
        logger.debug("Registered stage: %s (depends on %s)", name, depends_on)
        return stage

    def run(
        self,
        args: dict[str, Any],
        ctx: RunContext,
        *,
        only: Iterable[str] | None = None,
        disabled: Iterable[str] = (),
        report: StageReport | None = None,
    ) -> StageReport:
        """Run registered stages in dependency order.

        Args:
            args: Operator flags, passed to every handler.
            ctx: Shared run context.
            only: Restrict the run to these stage names.
            disabled: Stages the operator opted out of.
            report: Report to append to. A caller that passes its own
                still holds the outcomes so far when a stage raises.
        """
        selected = self._select(only)
        blocked = set(disabled)
        unknown = blocked - set(self._stages)
        if unknown:
            raise InputValidationError(f"Unknown stage(s): {', '.join(sorted(unknown))}")

        ctx.single = len(selected) == 1
        report = report if report is not None else StageReport()

        for stage in selected:
            if stage.name in blocked:
                result = StageResult(stage.name, stage.label, "disabled", "disabled by operator")
            elif stage.depends_on in blocked:
                blocked.add(stage.name)
                result = StageResult(
                    stage.name,
                    stage.label,
                    "disabled",
                    f"'{stage.depends_on}' was not run",
                )
            else:
                try:
                    result = self._run_stage(stage, args, ctx)
                except Exception as e:
                    logger.debug("Stage %s failed", stage.name, exc_info=True)
                    reason = getattr(e, "message", None) or str(e)
                    _record(ctx, report, StageResult(stage.name, stage.label, "failed", reason))
                    raise

            _record(ctx, report, result)

        return report

    def _select(self, only: Iterable[str] | None) -> list[Stage]:
        if only is None:
            return self.stages
        names = list(only)
        unknown = [n for n in names if n not in self._stages]
        if unknown:
            raise InputValidationError(
                f"Unknown stage(s): {', '.join(unknown)}",
                help_text=f"Available stages: {', '.join(self._stages)}",
            )
        return [s for s in self.stages if s.name in names]

    def _run_stage(self, stage: Stage, args: dict[str, Any], ctx: RunContext) -> StageResult:
        logger.info("Stage %s", stage.label)
        handle = TaskHandle(stage.name)
        stage.handler(args, ctx, handle)

        if handle.skipped:
            return StageResult(stage.name, stage.label, "skipped", handle.reason)
        return StageResult(stage.name, stage.label, "completed")


def _record(ctx: RunContext, report: StageReport, result: StageResult) -> None:
    ctx.stage_outcomes[result.name] = result.status
    report.results.append(result)
