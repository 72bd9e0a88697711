from __future__ import annotations

"""
Recompute the auto items (transport hire, support vehicle, catering) of a workspace.
"""

from rich.table import Table

from .util import console, fmt_amount, open_store
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import WorkspaceId
from tripledger.services.recalculator import AutoItemRecalculator, compute_targets, find_auto_item


def run(*, data_root: DataRoot, workspace: WorkspaceId, actor: str, write: bool = False) -> int:
    """Show target values of the auto items and (with --write) store them.

    Returns:
        Exit code (0 = success, 1 = skipped or partially failed)
    """
    try:
        store = open_store(data_root)
        if not write:
            parameters = store.get_parameters(workspace)
            if parameters is None:
                console.print(f"[yellow]No parameters in workspace '{workspace.value}'; nothing to compute[/]")
                return 1
            items = store.list_line_items(workspace)
            targets = compute_targets(parameters, store.list_distance_days(workspace))

            table = Table(title=f"Auto items ({workspace.value})")
            table.add_column("Item", style="cyan")
            table.add_column("Stored", justify="right")
            table.add_column("Computed", justify="right")
            for name, target in targets.items():
                existing = find_auto_item(items, name)
                stored = "-" if existing is None or existing.computed_total is None else f"{existing.computed_total:,.2f}"
                table.add_row(name, stored, fmt_amount(target.total))
            console.print(table)
            console.print("[dim]Use --write to persist[/dim]")
            return 0

        report = AutoItemRecalculator(store).recalculate(workspace, actor)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if report.skipped_reason:
        console.print(f"[yellow]Skipped:[/] {report.skipped_reason}")
        return 1
    for name in report.created:
        console.print(f"[green]Created[/] {name}")
    for name in report.updated:
        console.print(f"[green]Updated[/] {name}")
    for name in report.unchanged:
        console.print(f"[dim]Unchanged {name}[/dim]")
    for name, reason in report.failed.items():
        console.print(f"[red]Failed[/] {name}: {reason}")
    return 0 if report.ok else 1
