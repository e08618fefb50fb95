"""
CLI command for the preflight diagnostics.
"""

from __future__ import annotations

import json
import sys

import click


@click.command("doctor")
@click.option("--local", is_flag=True, help="Local install: relax the checks.")
@click.option(
    "--stack/--no-stack",
    default=True,
    help="Check the OS and required system packages.",
)
@click.option("--db", default=None, help="Database engine the site uses.")
@click.option("--dbhost", default=None, help="Database host the site uses.")
@click.option(
    "--setup-linux-user/--no-setup-linux-user",
    default=None,
    help="Whether a dedicated system user will run the site.",
)
@click.option("--no-prompt", is_flag=True, help="Never ask questions.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(
    ctx: click.Context,
    local: bool,
    stack: bool,
    db: str | None,
    dbhost: str | None,
    setup_linux_user: bool | None,
    no_prompt: bool,
    as_json: bool,
) -> None:
    """Check that this machine can host the site."""
    from vhostctl.core.use_cases.doctor import run_doctor
    from vhostctl.ui.console import ConsoleUI

    allow_prompt = not no_prompt and sys.stdin.isatty()
    args = {
        "local": local,
        "stack": stack,
        "db": db,
        "dbhost": dbhost,
        "setup_linux_user": setup_linux_user,
    }

    result = run_doctor(
        args,
        config_path=ctx.obj.get("config_path"),
        host=ctx.obj.get("host"),
        ui=ConsoleUI(allow_prompt=allow_prompt),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if result.error:
        click.secho(f"❌ {result.error.details()}", fg="red", err=True)
        sys.exit(1)

    if ctx.obj.get("quiet", False):
        return

    if result.report is not None:
        for task in result.report.results:
            if task.status == "skipped":
                click.secho(f"   ⊘ {task.title}", fg="yellow")
            else:
                click.secho(f"   ✓ {task.title}", fg="green")
    for key in result.bypassed:
        click.secho(f"   ⚠️  {key.replace('_', ' ')}", fg="yellow")
    click.secho("✅ Doctor checks passed", fg="green", bold=True)
