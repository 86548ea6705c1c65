"""CLI entrypoint for rdsreconcile."""

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from rdsreconcile.config import ConfigError, load_desired_state
from rdsreconcile.context import ReconcileContext
from rdsreconcile.formatter import (
    format_instances_json,
    format_instances_table,
    format_json,
    format_table,
)
from rdsreconcile.reconciler import Reconciler


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _split_regions(ctx, param, value):
    regions = []
    for item in value or ():
        regions.extend(r.strip() for r in item.split(",") if r.strip())
    return regions


region_option = click.option(
    "--region",
    "regions",
    multiple=True,
    envvar="RDSRECONCILE_REGIONS",
    callback=_split_regions,
    help="Region(s) to reconcile. Repeatable or comma-separated.",
)
format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
concurrency_option = click.option(
    "--max-concurrent", type=int, default=4, help="Max regions enumerated concurrently."
)
verbose_option = click.option("-v", "--verbose", is_flag=True, help="Log progress at INFO.")


@click.group()
def main():
    """Reconcile declared RDS instances against live AWS state."""


@main.command("list")
@region_option
@format_option
@concurrency_option
@verbose_option
def list_command(regions, output_format, max_concurrent, verbose):
    """List live RDS instances."""
    _configure_logging(verbose)
    context = ReconcileContext(regions=regions or None, max_concurrent=max_concurrent)
    enumeration = context.live_instances()

    formatters = {"table": format_instances_table, "json": format_instances_json}
    click.echo(formatters[output_format](enumeration.instances))

    if enumeration.failed_regions:
        click.echo(f"Error: failed to list {', '.join(enumeration.failed_regions)}", err=True)
        sys.exit(1)


@main.command("apply")
@click.argument("desired_state", type=click.Path(exists=True, dir_okay=False))
@region_option
@format_option
@concurrency_option
@verbose_option
@click.option("--dry-run", is_flag=True, help="Show what would change without changing it.")
def apply_command(desired_state, regions, output_format, max_concurrent, verbose, dry_run):
    """Create, destroy and retag instances to match DESIRED_STATE."""
    _configure_logging(verbose)
    try:
        state = load_desired_state(desired_state)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    context = ReconcileContext(
        regions=regions or state.scope_regions() or None,
        max_concurrent=max_concurrent,
    )
    result = Reconciler(context, dry_run=dry_run).reconcile(state.instances)

    formatters = {"table": format_table, "json": format_json}
    click.echo(formatters[output_format](result))

    if result.failed or result.failed_regions:
        sys.exit(1)
    if dry_run and result.changed:
        sys.exit(1)
    sys.exit(0)
