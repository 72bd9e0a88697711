from __future__ import annotations

"""
Restore zeroed day distances from the change log (best effort).
"""

from .util import console, fmt_value, open_workspaces
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import WorkspaceId


def run(*, data_root: DataRoot, workspace: WorkspaceId, actor: str, write: bool = False) -> int:
    """Find days with a zero or empty distance and look up their last positive value.

    The value is a guess taken from history (newest entry first, old value
    before new value); review it before writing.

    Returns:
        Exit code (0 = success)
    """
    try:
        workspaces = open_workspaces(data_root, actor)
        zeroed = [d for d in workspaces.get_distance_days(workspace) if not d.distance]
        if not zeroed:
            console.print(f"[green]No zeroed distances in {workspace.value}[/]")
            return 0

        if not write:
            for day in zeroed:
                value = workspaces.change_log.recover_if_zero(workspace, day)
                if value > 0:
                    console.print(f"  day {day.day}: would restore {fmt_value(value)}")
                else:
                    console.print(f"  [dim]day {day.day}: no positive value in history[/dim]")
            console.print("[yellow]Dry-run:[/] use --write to restore")
            return 0

        recovered = workspaces.recover_zeroed_distances(workspace, actor)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    for hit in recovered:
        console.print(f"[green]Restored[/] day {hit.day.day}: {fmt_value(hit.recovered)}")
    left = len(zeroed) - len(recovered)
    if left:
        console.print(f"[yellow]{left} day(s) left at zero (no history)[/]")
    return 0
