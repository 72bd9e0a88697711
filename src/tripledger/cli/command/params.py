from __future__ import annotations

"""
Show the parameters of one or all workspaces, optionally saving them as seed config.
"""

from rich.table import Table

from .util import console, fmt_value, open_workspaces
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import PARAMETER_FIELDS, WorkspaceId
from tripledger.model.parameters_io import save_parameters_config


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    compare: bool = False,
    save: bool = False,
    actor: str,
) -> int:
    """Display parameters as a table.

    Args:
        data_root: Data root holding the store
        workspace: Workspace to show (and to save from)
        compare: Show all three workspaces side by side
        save: Write the workspace's parameters to config/parameters.yml
        actor: Current user (unused, reads only)

    Returns:
        Exit code (0 = success)
    """
    shown = list(WorkspaceId) if compare else [workspace]
    try:
        workspaces = open_workspaces(data_root, actor, recalculate=False)
        records = {ws: workspaces.get_parameters(ws) for ws in shown}
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    table = Table(title="Parameters")
    table.add_column("Parameter", style="cyan", no_wrap=True)
    for ws in shown:
        table.add_column(ws.value, justify="right")

    for field in PARAMETER_FIELDS:
        row = [field]
        for ws in shown:
            record = records[ws]
            row.append(fmt_value(getattr(record, field)) if record else "[dim]n/a[/dim]")
        table.add_row(*row)
    console.print(table)

    missing = [ws.value for ws, record in records.items() if record is None]
    if missing:
        console.print(f"[yellow]No parameters record in:[/] {', '.join(missing)}")

    if save:
        record = records.get(workspace)
        if record is None:
            console.print(f"[red]Error:[/] Workspace '{workspace.value}' has no parameters to save")
            return 1
        save_parameters_config(data_root.parameters_config, record)
        console.print(f"[green]Saved {workspace.value} parameters to[/] {data_root.parameters_config}")
    return 0
