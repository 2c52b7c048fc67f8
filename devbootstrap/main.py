"""
devbootstrap — CLI entrypoint.

Usage:
    python -m devbootstrap.main --help
    python -m devbootstrap.main            # same as "run"
    python -m devbootstrap.main run --dry-run
    python -m devbootstrap.main detect
    python -m devbootstrap.main config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from devbootstrap import __version__
from devbootstrap.core.observability.logging_config import resolve_level, setup_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="devbootstrap")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to bootstrap.yml (default: auto-detect, else built-in defaults).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """devbootstrap — set up Ruby, Java and Node for zsh."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get("DEVBOOTSTRAP_LOG_LEVEL")),
        log_file=os.environ.get("DEVBOOTSTRAP_LOG_FILE"),
        log_file_level=os.environ.get("DEVBOOTSTRAP_LOG_FILE_LEVEL"),
    )

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Plan and validate, but run nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, dry_run: bool = False, mock: bool = False, as_json: bool = False) -> None:
    """Install build deps, rbenv, SDKMAN and nvm (the default command).

    With --json, installer output goes to stderr so stdout carries only
    the result document.
    """
    from devbootstrap.adapters.registry import default_registry
    from devbootstrap.core.services.summary import render_summary
    from devbootstrap.core.use_cases.run import run_bootstrap

    quiet = ctx.obj.get("quiet", False) or as_json

    def announce(message: str) -> None:
        if not quiet:
            click.echo(message)

    result = run_bootstrap(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        mock_mode=mock,
        registry=default_registry(mock_mode=mock, stream_to_stderr=as_json),
        announce=announce,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if not result.ok:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        if result.hint:
            click.echo(result.hint, err=True)
        sys.exit(result.exit_code or 1)

    report = result.report
    if report is None:
        sys.exit(1)

    if report.failed and not quiet:
        click.echo()
        click.secho("⚠️  Some optional steps failed:", fg="yellow")
        for name in report.failed_steps:
            click.echo(f"   • {name}")

    if dry_run or mock:
        mode_label = "[dry-run]" if dry_run else "[mock]"
        click.secho(
            f"\n{mode_label} {report.total} steps planned, {report.skipped} skipped",
            fg="cyan",
        )
        return

    click.echo(render_summary())


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(as_json: bool) -> None:
    """Show the platform, zsh config and installed version managers."""
    from devbootstrap.core.use_cases.detect import detect_host

    report = detect_host()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.secho(f"\n🔍 Host: {report.os_tag} ({report.kernel})", fg="cyan", bold=True)
    marker = "" if report.zshrc_exists else " (missing)"
    click.echo(f"   zsh config: {report.zshrc}{marker}")
    tools = ", ".join(
        f"{name} {'✓' if available else '✗'}" for name, available in report.tools.items()
    )
    click.echo(f"   adapters:   {tools}")
    click.echo()

    for manager in report.managers:
        if manager.installed:
            click.secho(f"   ✓ {manager.name} ", fg="green", nl=False)
            default = f" default={manager.default}" if manager.default else ""
            click.echo(f"→ {manager.root}{default}")
            for version in manager.versions:
                click.echo(f"     • {version}")
        else:
            click.secho(f"   ✗ {manager.name} ", fg="red", nl=False)
            click.echo("(not installed)")
        if not manager.profile_registered:
            click.secho("     ⚠️  not registered in zsh config", fg="yellow")

    click.echo()


@cli.command("java-default")
@click.option("--major", type=int, default=None, help="Java major version (default: from config).")
@click.option("--vendor", default=None, help="SDKMAN vendor suffix (default: from config).")
@click.option(
    "--listing",
    type=click.File("r"),
    default=None,
    help="Read 'sdk list java' output from a file ('-' for stdin).",
)
@click.pass_context
def java_default(
    ctx: click.Context,
    major: int | None,
    vendor: str | None,
    listing,
) -> None:
    """Print the Java identifier that would become the SDKMAN default."""
    from devbootstrap.core.config.loader import ConfigError, load_config
    from devbootstrap.core.models.environment import BootstrapEnv
    from devbootstrap.core.services.managers.sdkman import (
        SdkmanManager,
        installed_identifiers,
        select_from_listing,
        select_installed,
    )

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    major = major if major is not None else config.java.default_major
    vendor = vendor or config.java.vendor

    if listing is not None:
        chosen = select_from_listing(listing.read(), major, vendor)
    else:
        sdkman = SdkmanManager(config, BootstrapEnv.from_process("unsupported"))
        chosen = select_installed(installed_identifiers(sdkman.candidates_dir), major, vendor)

    if not chosen:
        click.secho(f"No installed Java {major} ({vendor}) found", fg="yellow", err=True)
        sys.exit(1)

    click.echo(chosen)


@cli.group()
def config() -> None:
    """Bootstrap configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate bootstrap.yml configuration."""
    from devbootstrap.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid and result.config is not None:
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Ruby: {', '.join(result.config.ruby.versions) or '-'}")
        click.echo(
            "   Java: "
            + ", ".join(str(c.major) for c in result.config.java.candidates)
        )
        click.echo(f"   Node: {result.config.node.install}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
