from __future__ import annotations

"""
List the line items of a workspace with their resolved totals.
"""

from typing import Optional

from rich.table import Table

from .util import console, fmt_amount, fmt_value, open_workspaces, short_id
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import Category, WorkspaceId
from tripledger.services.cost_resolver import total_by_category


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    category: Optional[str] = None,
    actor: str,
) -> int:
    """Show a table of line items, grouped by category in display order.

    Args:
        data_root: Data root holding the store
        workspace: Workspace to list
        category: Only show this category (display name, case-insensitive)
        actor: Current user (unused, reads only)

    Returns:
        Exit code (0 = success)
    """
    wanted: Optional[Category] = None
    if category:
        matches = [c for c in Category if c.value.lower() == category.lower()]
        if not matches:
            names = ", ".join(c.value for c in Category)
            console.print(f"[red]Error:[/] Unknown category '{category}' (expected one of: {names})")
            return 1
        wanted = matches[0]

    try:
        workspaces = open_workspaces(data_root, actor, recalculate=False)
        items = workspaces.get_line_items(workspace)
        parameters = workspaces.get_parameters(workspace)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    order = list(Category)
    items = sorted(items, key=lambda i: order.index(i.category))
    if wanted is not None:
        items = [i for i in items if i.category == wanted]

    table = Table(title=f"Line items ({workspace.value})", show_lines=False)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Subcategory", style="blue")
    table.add_column("Description")
    table.add_column("Unit")
    table.add_column("Split")
    table.add_column("Qty", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Flags", style="magenta")

    for item in items:
        flags = []
        if item.auto:
            flags.append("auto")
        if item.total_override is not None:
            flags.append("override")
        if item.billed_to_transport:
            flags.append("transport")
        table.add_row(
            short_id(item.id),
            item.category.value,
            item.subcategory,
            item.description or "",
            item.unit.value,
            item.split_rule.value,
            fmt_value(item.quantity),
            fmt_amount(workspaces.resolve_total(item, parameters)),
            ", ".join(flags),
        )

    console.print(table)

    if not items:
        console.print("[dim]No line items.[/dim]")
        return 0

    totals = total_by_category(items, parameters)
    for cat in Category:
        if totals[cat]:
            console.print(f"[bold]{cat.value}:[/] {totals[cat]:,.2f}")
    console.print(f"[bold]Total:[/] {sum(totals.values()):,.2f}")
    return 0
