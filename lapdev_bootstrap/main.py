"""
lapdev-ws host bootstrapper — CLI entrypoint.

Usage:
    lapdev-bootstrap --help
    lapdev-bootstrap postinst configure      # from the package's postinst
    lapdev-bootstrap bootstrap --dry-run
    lapdev-bootstrap check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from lapdev_bootstrap import __version__
from lapdev_bootstrap.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)

_STATUS_STYLE = {
    "created": ("✓", "green"),
    "present": ("=", "white"),
    "skipped": ("⊘", "yellow"),
    "failed": ("✗", "red"),
}

_HEALTH_STYLE = {
    "healthy": ("✅", "green"),
    "degraded": ("⚠️ ", "yellow"),
    "unhealthy": ("❌", "red"),
    "unknown": ("❔", "white"),
}


@click.group()
@click.version_option(version=__version__, prog_name="lapdev-bootstrap")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--root",
    "root",
    type=click.Path(file_okay=False),
    default=None,
    help="Staging root prefixed to every path (default: /).",
)
@click.option(
    "--layout",
    "layout_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML file overriding host paths and names.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    root: str | None,
    layout_path: str | None,
) -> None:
    """lapdev-ws host bootstrapper — prepare this machine for lapdev-ws."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["root"] = Path(root) if root else None
    ctx.obj["layout_path"] = Path(layout_path) if layout_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


def _load_layout(ctx: click.Context, as_json: bool = False):
    """Resolve the host layout or exit with the config error."""
    from lapdev_bootstrap.core.config.loader import ConfigError, load_layout

    try:
        return load_layout(path=ctx.obj.get("layout_path"), root=ctx.obj.get("root"))
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _print_report(result, quiet: bool) -> None:
    report = result.report
    if report is None:
        return

    if not quiet:
        for receipt in report.receipts:
            marker, color = _STATUS_STYLE.get(receipt.status, ("?", "white"))
            click.secho(f"   {marker} {receipt.action_id:<36} ", fg=color, nl=False)
            click.echo(receipt.error or receipt.output)
        if report.not_run:
            click.secho(f"   … {report.not_run} action(s) not run", fg="yellow")
        click.echo()

    if result.error:
        click.secho(f"❌ Bootstrap failed: {result.error}", fg="red", bold=True)
        click.echo("   Fix the problem above and re-run package configuration.")
        return

    if result.dry_run:
        click.secho(
            f"🔍 Dry run: {report.skipped} to create, {report.present} already present",
            fg="yellow",
        )
    elif report.changed:
        click.secho(
            f"✅ Host bootstrapped: {report.created} created, {report.present} already present",
            fg="green",
            bold=True,
        )
    elif not quiet:
        click.secho("✅ Host already bootstrapped, nothing to do", fg="green")


@cli.command("bootstrap")
@click.option("--dry-run", is_flag=True, help="Check every resource but change nothing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def bootstrap_cmd(ctx: click.Context, dry_run: bool, as_json: bool) -> None:
    """Apply the bootstrap steps to this host."""
    from lapdev_bootstrap.core.use_cases.bootstrap import run_bootstrap

    layout = _load_layout(ctx, as_json)
    result = run_bootstrap(layout=layout, dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_report(result, ctx.obj.get("quiet", False))

    if result.error:
        sys.exit(1)


@cli.command("postinst", context_settings={"ignore_unknown_options": True})
@click.argument("phase")
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def postinst_cmd(ctx: click.Context, phase: str, extra: tuple[str, ...], as_json: bool) -> None:
    """Package postinst hook: bootstrap on 'configure', ignore other phases.

    Extra arguments (e.g. the previously configured version) are ignored.
    """
    from lapdev_bootstrap.core.use_cases.postinst import CONFIGURE, postinst

    layout = _load_layout(ctx, as_json) if phase == CONFIGURE else None
    result = postinst(phase, layout=layout)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif result.bootstrap is not None:
        _print_report(result.bootstrap, quiet=True)

    if not result.ok:
        sys.exit(1)


@cli.command("plan")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show the ordered bootstrap steps without touching the host."""
    from lapdev_bootstrap.adapters.registry import AdapterRegistry
    from lapdev_bootstrap.core.engine.executor import build_plan

    layout = _load_layout(ctx, as_json)
    plan = build_plan(layout)
    adapters = AdapterRegistry.default().adapter_status()

    if as_json:
        result = plan.to_dict()
        result["adapters"] = adapters
        click.echo(json.dumps(result, indent=2))
        return

    for status in adapters.values():
        if not status["available"]:
            click.secho(f"⚠️  Adapter '{status['name']}' is unavailable on this host", fg="yellow")

    if layout.staged:
        click.secho(f"\n📦 Staging root: {layout.root}", fg="cyan")
    for index, step in enumerate(plan.steps, start=1):
        click.secho(f"\n{index}. {step.name}", fg="cyan", bold=True)
        click.echo(f"   {step.description}")
        for action in step.actions:
            params = action.params
            details = []
            if params.get("owner"):
                details.append(f"owner={params['owner']}")
            if "mode" in params:
                details.append(f"mode={params['mode']:o}")
            suffix = f"  ({', '.join(details)})" if details else ""
            click.echo(f"     • {params.get('path') or action.name}{suffix}")
    click.echo()


@cli.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check_cmd(ctx: click.Context, as_json: bool) -> None:
    """Verify this host is bootstrapped (read-only)."""
    from lapdev_bootstrap.core.use_cases.check import check_host

    layout = _load_layout(ctx, as_json)
    health = check_host(layout)

    if as_json:
        click.echo(json.dumps(health.to_dict(), indent=2))
    else:
        for component in health.components:
            marker, color = _HEALTH_STYLE.get(component.status, _HEALTH_STYLE["unknown"])
            click.secho(f"   {marker} {component.name:<28} ", fg=color, nl=False)
            click.echo(component.message)
        click.echo()
        marker, color = _HEALTH_STYLE.get(health.status, _HEALTH_STYLE["unknown"])
        click.secho(f"{marker} Host is {health.status}", fg=color, bold=True)

    if health.status == "unhealthy":
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
