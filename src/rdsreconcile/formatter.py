"""Output formatters for reconciliation results and instance listings."""

import json

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from rdsreconcile.models import LiveInstance
from rdsreconcile.reconciler import Action, ReconcileResult, ResourceOutcome

ACTION_COLORS = {
    Action.CREATE: "green",
    Action.DESTROY: "bold red",
    Action.UPDATE_TAGS: "yellow",
    Action.NOOP: "dim",
    Action.SKIPPED: "red",
}


def _outcome_dict(o: ResourceOutcome) -> dict:
    return {
        "name": o.name,
        "region": o.region,
        "action": o.action.value,
        "error": o.error,
        "tag_changes": (
            {"add": o.tag_changes.add, "remove": o.tag_changes.remove}
            if o.tag_changes
            else None
        ),
        "ignored_diffs": [
            {
                "attribute": d.attribute,
                "desired": d.desired,
                "actual": d.actual,
                "read_only": d.read_only,
            }
            for d in o.ignored_diffs
        ],
    }


def format_json(result: ReconcileResult) -> str:
    """Format a reconciliation result as JSON."""
    return json.dumps(
        {
            "summary": {
                "dry_run": result.dry_run,
                "total_resources": len(result.outcomes),
                "changed_resources": len(result.changed),
                "failed_resources": len(result.failed),
                "failed_regions": result.failed_regions,
            },
            "resources": [_outcome_dict(o) for o in result.outcomes],
        },
        indent=2,
        default=str,
    )


def format_table(result: ReconcileResult) -> str:
    """Format a reconciliation result as a Rich tree, returned as a string."""
    if not result.outcomes and not result.failed_regions:
        return "No instances declared."

    console = Console(record=True, width=120)
    title = "Reconciliation Plan" if result.dry_run else "Reconciliation Report"
    tree = Tree(f"[bold]{title}[/bold]")

    for region in result.failed_regions:
        tree.add(Text.from_markup(f"[red]{region}[/red] — enumeration failed"))

    for o in result.outcomes:
        color = "red" if o.failed else ACTION_COLORS.get(o.action, "dim")
        branch = tree.add(
            Text.from_markup(f"[{color}]{o.name}[/{color}] ({o.region}) — {o.action.value}")
        )
        if o.error:
            branch.add(Text(f"error: {o.error}", style="red"))
        if o.tag_changes:
            for key, value in o.tag_changes.add.items():
                branch.add(Text(f"tag {key} = {value}", style="green"))
            for key in o.tag_changes.remove:
                branch.add(Text(f"tag {key} removed", style="red"))
        for d in o.ignored_diffs:
            kind = "read-only" if d.read_only else "create-only"
            branch.add(Text(f"{d.attribute}: {d.actual!r} → {d.desired!r} (ignored, {kind})"))

    console.print(tree)
    return console.export_text()


def format_instances_json(instances: list[LiveInstance]) -> str:
    return json.dumps(
        [
            {
                "name": i.name,
                "region": i.region,
                "status": i.status.value,
                "provider_status": i.provider_status,
                "engine": i.engine,
                "db_instance_class": i.db_instance_class,
                "allocated_storage": i.allocated_storage,
                "multi_az": i.multi_az,
                "tags": i.tag_map,
            }
            for i in instances
        ],
        indent=2,
        default=str,
    )


def format_instances_table(instances: list[LiveInstance]) -> str:
    if not instances:
        return "No instances found."

    console = Console(record=True, width=120)
    table = Table(title="RDS Instances")
    for column in ("Name", "Region", "Status", "Engine", "Class", "Tags"):
        table.add_column(column)
    for i in instances:
        tags = ", ".join(f"{k}={v}" for k, v in i.tag_map.items())
        table.add_row(
            i.name,
            i.region,
            i.provider_status or i.status.value,
            i.engine or "",
            i.db_instance_class or "",
            tags,
        )
    console.print(table)
    return console.export_text()
