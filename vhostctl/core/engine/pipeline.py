"""
Task pipeline: runs the ordered sub-tasks inside one stage.

Each task has a title, an optional skip predicate evaluated against the
shared RunContext right before it would run, and a callable that does
the work. Two modes:

    sequential   tasks run in declared order; with ``exit_on_error``
                 the first failure re-raises and stops the pipeline,
                 otherwise failures are collected and raised together
                 once every task has had its turn.
    concurrent   tasks run in a thread pool; all of them are joined
                 before any decision is made, and failures are raised
                 together as a TaskAggregateError (fail-together).

Nothing is retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Literal

from vhostctl.core.context import RunContext
from vhostctl.core.errors import TaskAggregateError

logger = logging.getLogger(__name__)


@dataclass
class Task:
    """One step of a pipeline.

    ``reads`` and ``writes`` name the context keys the task depends on
    and produces.
    """

    title: str
    task: Callable[[RunContext], Any]
    skip: Callable[[RunContext], bool] | None = None
    reads: tuple[str, ...] = ()
    writes: tuple[str, ...] = ()


@dataclass
class TaskResult:
    """Outcome of a single task."""

    title: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    value: Any = None
    error: BaseException | None = None
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "status": self.status,
            "error": str(self.error) if self.error else None,
            "duration_ms": self.duration_ms,
        }


@dataclass
class PipelineReport:
    """Result of running a pipeline."""

    results: list[TaskResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == "ok")

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == "skipped")

    @property
    def failures(self) -> list[TaskResult]:
        return [r for r in self.results if r.status == "failed"]

    @property
    def all_ok(self) -> bool:
        return not self.failures

    def get(self, title: str) -> TaskResult | None:
        for result in self.results:
            if result.title == title:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": len(self.failures),
            "tasks": [r.to_dict() for r in self.results],
        }


class TaskPipeline:
    """Executes a list of Tasks against a RunContext."""

    def __init__(
        self,
        tasks: list[Task],
        *,
        concurrent: bool = False,
        exit_on_error: bool = True,
        max_workers: int | None = None,
    ):
        self.tasks = list(tasks)
        self.concurrent = concurrent
        self.exit_on_error = exit_on_error
        self.max_workers = max_workers

    def run(self, ctx: RunContext) -> PipelineReport:
        if self.concurrent:
            report = self._run_concurrent(ctx)
        else:
            report = self._run_sequential(ctx)

        if report.failures:
            raise TaskAggregateError(report.failures)
        return report

    def _run_sequential(self, ctx: RunContext) -> PipelineReport:
        report = PipelineReport()
        for task in self.tasks:
            if self._should_skip(task, ctx):
                report.results.append(TaskResult(title=task.title, status="skipped"))
                continue

            start_version = ctx.version
            result = self._execute(task, ctx)
            report.results.append(result)

            if result.status == "failed":
                if self.exit_on_error:
                    assert result.error is not None
                    raise result.error
                continue

            undeclared = ctx.written_since(start_version) - set(task.writes)
            if undeclared:
                logger.warning(
                    "Task '%s' wrote undeclared context keys: %s",
                    task.title,
                    ", ".join(sorted(undeclared)),
                )
        return report

    def _run_concurrent(self, ctx: RunContext) -> PipelineReport:
        report = PipelineReport()
        runnable: list[Task] = []
        for task in self.tasks:
            if self._should_skip(task, ctx):
                report.results.append(TaskResult(title=task.title, status="skipped"))
            else:
                runnable.append(task)

        if not runnable:
            return report

        workers = self.max_workers or len(runnable)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._execute, task, ctx) for task in runnable]
            # Joined in declared order so the report is stable
            report.results.extend(f.result() for f in futures)
        return report

    def _should_skip(self, task: Task, ctx: RunContext) -> bool:
        if task.skip is not None and task.skip(ctx):
            logger.debug("⊘ %s (skipped)", task.title)
            return True
        return False

    def _execute(self, task: Task, ctx: RunContext) -> TaskResult:
        logger.info("→ %s", task.title)
        start = time.monotonic()
        try:
            value = task.task(ctx)
        except Exception as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.info("✗ %s: %s", task.title, e)
            return TaskResult(
                title=task.title,
                status="failed",
                error=e,
                duration_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("✓ %s (%dms)", task.title, elapsed_ms)
        return TaskResult(title=task.title, value=value, duration_ms=elapsed_ms)
