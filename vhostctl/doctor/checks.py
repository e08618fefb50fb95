"""
Preflight checks: independent of the provisioning stages.

Each check is a pipeline Task. Hard failures raise HostError. The
system-stack and database checks are soft: on a mismatch they warn and,
when prompting is allowed, ask whether to continue; a yes records a
``*_bypassed`` flag in the context, anything else is a hard failure.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import stat
import sys
from pathlib import Path

from vhostctl.core.context import RunContext
from vhostctl.core.engine.pipeline import PipelineReport, Task, TaskPipeline
from vhostctl.core.errors import HostError, TaskAggregateError
from vhostctl.core.models.site import DoctorSettings
from vhostctl.core.services.versions import check_version_constraint, describe_constraint

logger = logging.getLogger(__name__)

SUPPORTED_RUNTIME = {"type": "range", "minimum": "3.11", "below": "4"}
RUNTIME_CHECK_ENV = "VHOSTCTL_RUNTIME_VERSION_CHECK"

DEFAULT_DB = "mysql"
LOCAL_DB_HOSTS = ("localhost", "127.0.0.1")

# Daemon-mode services on Linux keep mysqld outside the interactive PATH
LINUX_SBIN = "/usr/sbin"


class MissingPackageError(HostError):
    def __init__(self, package: str):
        super().__init__(f"{package} is not installed")
        self.package = package


class StackMismatch(HostError):
    """The host is not the distribution/package set we expect."""


def _is_linux() -> bool:
    return platform.system() == "Linux"


def _settings(ctx: RunContext) -> DoctorSettings:
    if ctx.instance is not None:
        return ctx.instance.config.doctor
    return DoctorSettings()


def _confirm_or_fail(ctx: RunContext, failure: str) -> None:
    ui = ctx.ui
    if ui is not None and ui.allow_prompt and ui.confirm("Continue anyway?", default=False):
        return
    raise HostError(failure)


def check_directory_and_above(directory: Path) -> None:
    """Every directory from ``directory`` up to (not including) / must be other-readable."""
    current = Path(os.path.abspath(directory))
    while current != current.parent:
        mode = os.lstat(current).st_mode
        if not mode & stat.S_IROTH:
            raise HostError(
                f"The path {current} is not readable by other users on the system.",
                help_text=(
                    "This can cause issues with services running as another user, please "
                    "either make this directory readable by others or install in another location."
                ),
            )
        current = current.parent


def runtime_version(ctx: RunContext) -> None:
    if os.environ.get(RUNTIME_CHECK_ENV, "").lower() == "false":
        logger.debug("Runtime version check disabled via %s", RUNTIME_CHECK_ENV)
        return

    installed = ".".join(str(part) for part in sys.version_info[:3])
    result = check_version_constraint(installed, SUPPORTED_RUNTIME)
    if not result["valid"]:
        raise HostError(
            "The version of Python you are using is not supported.",
            help_text=(
                f"Supported: {describe_constraint(SUPPORTED_RUNTIME)}\n"
                f"Installed: {installed}"
            ),
        )


def folder_permissions(ctx: RunContext) -> None:
    cwd = Path.cwd()
    if not os.access(cwd, os.R_OK | os.W_OK):
        raise HostError(
            "The current directory is not writable.",
            help_text="Please fix your directory permissions.",
        )

    if ctx.args.get("local") or not _is_linux() or ctx.args.get("setup_linux_user") is False:
        return

    check_directory_and_above(cwd)


def _package_check(package: str) -> Task:
    def check(ctx: RunContext) -> None:
        assert ctx.host is not None
        if not ctx.host.package_installed(package):
            raise MissingPackageError(package)

    return Task(title=f"Checking {package} is installed", task=check)


def _check_stack(ctx: RunContext, settings: DoctorSettings) -> None:
    assert ctx.host is not None
    if not _is_linux():
        raise StackMismatch("Operating system is not Linux")

    receipt = ctx.host.run("lsb-release", ["lsb_release", "-a"])
    if receipt.failed or not re.search(settings.supported_distro, receipt.stdout):
        raise StackMismatch(f"Linux version does not match '{settings.supported_distro}'")

    packages = TaskPipeline(
        [_package_check(p) for p in settings.required_packages],
        concurrent=True,
        exit_on_error=False,
    )
    try:
        packages.run(ctx)
    except TaskAggregateError as e:
        missing = [err.package for err in e.errors if isinstance(err, MissingPackageError)]
        raise StackMismatch(f"Missing package(s): {', '.join(missing)}") from e


def system_stack(ctx: RunContext) -> None:
    try:
        _check_stack(ctx, _settings(ctx))
    except StackMismatch as e:
        logger.warning(
            "System checks failed with message: '%s'\n"
            "Some features may not work without additional configuration.\n"
            "For local installs we recommend using `vhostctl setup --local` instead.",
            e.message,
        )
        _confirm_or_fail(ctx, "System checks failed.")
        ctx.set("system_checks_bypassed", True)


def database_check(ctx: RunContext) -> None:
    assert ctx.host is not None
    extra = LINUX_SBIN if _is_linux() else None
    if ctx.host.which("mysqld", extra_path=extra):
        return

    logger.warning(
        "Local MySQL install not found. You can ignore this if you are using a remote MySQL host.\n"
        "Alternatively you could:\n"
        "a) install MySQL locally\n"
        "b) run `vhostctl doctor --db=sqlite3` if the application uses sqlite\n"
        "c) run `vhostctl doctor --local` for a development install."
    )
    _confirm_or_fail(ctx, "MySQL check failed.")
    ctx.set("database_check_bypassed", True)


def _skip_stack(ctx: RunContext) -> bool:
    return bool(ctx.args.get("local")) or not ctx.args.get("stack", True)


def _skip_database(ctx: RunContext) -> bool:
    db = ctx.args.get("db")
    dbhost = ctx.args.get("dbhost")
    return (
        bool(ctx.args.get("local"))
        or bool(db and db != DEFAULT_DB)
        or bool(dbhost and dbhost not in LOCAL_DB_HOSTS)
    )


CHECKS: list[Task] = [
    Task(title="Checking system runtime version", task=runtime_version),
    Task(title="Checking current folder permissions", task=folder_permissions),
    Task(
        title="Checking operating system",
        task=system_stack,
        skip=_skip_stack,
        writes=("system_checks_bypassed",),
    ),
    Task(
        title="Checking MySQL is installed",
        task=database_check,
        skip=_skip_database,
        writes=("database_check_bypassed",),
    ),
]


def run_checks(ctx: RunContext, checks: list[Task] | None = None) -> PipelineReport:
    """Run the preflight checks in order, stopping at the first hard failure."""
    return TaskPipeline(checks if checks is not None else CHECKS).run(ctx)
