"""
Command-line entry point (``vhostctl``).

    vhostctl doctor
    vhostctl setup [nginx] [ssl] --sslemail ops@example.com
    vhostctl uninstall --yes

Group-level flags choose the log level and the site.yml to act on;
sub-commands live in ``vhostctl.ui.cli``.
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from vhostctl import __version__
from vhostctl.core.observability.logging_config import setup_logging


def _console_level(debug: bool, verbose: bool, quiet: bool) -> str:
    for flag, level in ((debug, "DEBUG"), (verbose, "INFO"), (quiet, "ERROR")):
        if flag:
            return level
    return os.environ.get("VHOSTCTL_LOG_LEVEL", "WARNING")


@click.group()
@click.version_option(version=__version__, prog_name="vhostctl")
@click.option("--verbose", "-v", is_flag=True, help="Log what each stage is doing.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Log every command run on the host.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="site.yml to use instead of searching upward from the cwd.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """vhostctl: reverse proxy and SSL setup for a self-hosted site."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        quiet=quiet,
        config_path=Path(config_path) if config_path else None,
    )

    setup_logging(
        level=_console_level(debug, verbose, quiet),
        log_file=os.environ.get("VHOSTCTL_LOG_FILE"),
        log_file_level=os.environ.get("VHOSTCTL_LOG_FILE_LEVEL"),
    )


# ── Sub-commands (vhostctl/ui/cli/) ─────────────────────────────

from vhostctl.ui.cli.doctor import doctor
from vhostctl.ui.cli.setup import setup, uninstall

cli.add_command(setup)
cli.add_command(uninstall)
cli.add_command(doctor)


if __name__ == "__main__":
    cli()
