from __future__ import annotations

"""
Per-day distances of a workspace: list, add a day, edit a day or set the total.
"""

from typing import Optional

from rich.table import Table

from .util import console, fmt_value, open_workspaces
from tripledger.config import TRIP_DAY_LIMIT
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError, NotFoundError
from tripledger.model.budget import DistanceDay, WorkspaceId
from tripledger.services.workspace_store import WorkspaceStore


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    add_day: Optional[float] = None,
    set_day: Optional[int] = None,
    distance: Optional[float] = None,
    route: Optional[str] = None,
    total: Optional[float] = None,
    actor: str,
    write: bool = False,
) -> int:
    """List distance days, or apply one edit and show the result.

    Only one of ``add_day``, ``set_day`` or ``total`` may be given. Edits
    trigger an auto item recalculation.

    Returns:
        Exit code (0 = success)
    """
    edits = [x for x in (add_day, set_day, total) if x is not None]
    if len(edits) > 1:
        console.print("[red]Error:[/] Use only one of --add-day, --set-day or --total")
        return 1
    if set_day is not None and distance is None:
        console.print("[red]Error:[/] --set-day requires --distance")
        return 1

    try:
        workspaces = open_workspaces(data_root, actor)
        days = workspaces.get_distance_days(workspace)

        if edits and not write:
            console.print(f"[yellow]Dry-run:[/] {_describe_edit(days, add_day, set_day, distance, total)}")
            console.print("[dim]Use --write to persist[/dim]")
            return 0

        if add_day is not None:
            number = max((d.day for d in days), default=0) + 1
            workspaces.add_distance_day(
                workspace, DistanceDay(day=number, distance=add_day, route=route), actor
            )
        elif set_day is not None:
            target = next((d for d in days if d.day == set_day), None)
            if target is None:
                raise NotFoundError(f"Day {set_day} does not exist in workspace '{workspace.value}'")
            workspaces.set_day_distance(workspace, target.id, distance, actor)
        elif total is not None:
            workspaces.set_total_distance(workspace, total, actor)

        _print_days(workspaces, workspace)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    return 0


def _describe_edit(
    days: list[DistanceDay],
    add_day: Optional[float],
    set_day: Optional[int],
    distance: Optional[float],
    total: Optional[float],
) -> str:
    if add_day is not None:
        number = max((d.day for d in days), default=0) + 1
        return f"would add day {number} with distance {fmt_value(add_day)}"
    if set_day is not None:
        return f"would set day {set_day} distance to {fmt_value(distance)}"
    return f"would set total distance to {fmt_value(total)}"


def _print_days(workspaces: WorkspaceStore, workspace: WorkspaceId) -> None:
    days = workspaces.get_distance_days(workspace)
    totals = workspaces.distance_totals(workspace)

    table = Table(title=f"Distances ({workspace.value})")
    table.add_column("Day", justify="right", style="cyan")
    table.add_column("Distance", justify="right")
    table.add_column("Route")
    table.add_column("Lodging")
    table.add_column("Activity")

    for position, day in enumerate(days, start=1):
        style = "dim" if position > TRIP_DAY_LIMIT else None
        table.add_row(
            str(day.day),
            fmt_value(day.distance),
            day.route or "",
            day.lodging or "",
            day.activity or "",
            style=style,
        )
    console.print(table)

    console.print(f"[bold]Trip distance ({totals.trip_days} days):[/] {fmt_value(totals.trip)}")
    console.print(f"[bold]Extra distance:[/] {fmt_value(totals.extra)}")
    console.print(f"[bold]Total distance:[/] {fmt_value(totals.grand)}")
