from __future__ import annotations

"""
Remove a line item from a workspace.
"""

from .util import console, find_line_item, open_workspaces, short_id
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import WorkspaceId


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    item_id: str,
    actor: str,
    write: bool = False,
) -> int:
    try:
        workspaces = open_workspaces(data_root, actor, recalculate=False)
        item = find_line_item(workspaces.get_line_items(workspace), item_id)

        label = f"{item.category.value} / {item.subcategory} ({short_id(item.id)})"
        if item.auto:
            console.print(
                f"[yellow]Note:[/] {label} is an auto item; 'tripledger recalc' recreates it"
            )
        if not write:
            console.print(f"[yellow]Dry-run:[/] would remove {label} from {workspace.value}")
            console.print("[dim]Use --write to persist[/dim]")
            return 0

        workspaces.delete_line_item(workspace, item.id, actor)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(f"[green]Removed[/] {label} from {workspace.value}")
    return 0
