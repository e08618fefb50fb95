"""
CLI commands for provisioning: setup and uninstall.

Thin wrappers over ``vhostctl.core.use_cases.setup`` and
``vhostctl.core.use_cases.uninstall``.
"""

from __future__ import annotations

import json
import sys

import click

_STATUS_MARKS = {
    "completed": ("✓", "green"),
    "skipped": ("⊘", "yellow"),
    "disabled": ("⊘", "white"),
    "failed": ("✗", "red"),
}


def _interactive(no_prompt: bool) -> bool:
    return not no_prompt and sys.stdin.isatty()


def _fail(error) -> None:
    click.secho(f"❌ {error.details()}", fg="red", err=True)
    sys.exit(1)


@click.command("setup")
@click.argument("stages", nargs=-1)
@click.option("--local", is_flag=True, help="Local install: skip proxy and SSL setup.")
@click.option("--sslemail", default=None, help="Email address for the SSL certificate.")
@click.option("--sslstaging", is_flag=True, help="Use the staging certificate authority.")
@click.option(
    "--skip-stage",
    "skip_stages",
    multiple=True,
    help="Do not run this stage (or anything depending on it).",
)
@click.option("--no-prompt", is_flag=True, help="Never ask questions.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def setup(
    ctx: click.Context,
    stages: tuple[str, ...],
    local: bool,
    sslemail: str | None,
    sslstaging: bool,
    skip_stages: tuple[str, ...],
    no_prompt: bool,
    as_json: bool,
) -> None:
    """Set up the reverse proxy and SSL for the site.

    Pass stage names (nginx, ssl) to run only those.
    """
    from vhostctl.core.use_cases.setup import run_setup
    from vhostctl.ui.console import ConsoleUI

    args = {
        "local": local,
        "sslemail": sslemail,
        "sslstaging": sslstaging,
    }
    ui = ConsoleUI(allow_prompt=_interactive(no_prompt))

    result = run_setup(
        args,
        config_path=ctx.obj.get("config_path"),
        stages=list(stages),
        disabled=list(skip_stages),
        host=ctx.obj.get("host"),
        ui=ui,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.report is not None and not ctx.obj.get("quiet", False):
        for stage in result.report.results:
            mark, color = _STATUS_MARKS[stage.status]
            click.secho(f"   {mark} {stage.label}", fg=color, nl=False)
            click.echo(f"  ({stage.reason})" if stage.reason else "")

    if result.error:
        _fail(result.error)


@click.command("uninstall")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, assume_yes: bool, as_json: bool) -> None:
    """Remove the proxy and SSL configuration of the site."""
    from vhostctl.core.use_cases.uninstall import run_uninstall

    if not assume_yes:
        click.confirm(
            "This removes the site's proxy configuration. Continue?",
            abort=True,
        )

    result = run_uninstall(
        config_path=ctx.obj.get("config_path"),
        host=ctx.obj.get("host"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.error:
        _fail(result.error)

    if not ctx.obj.get("quiet", False):
        click.secho("✅ Uninstalled", fg="green", bold=True)
