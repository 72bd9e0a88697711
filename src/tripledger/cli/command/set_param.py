from __future__ import annotations

"""
Update one parameter of a workspace and refresh its auto items.
"""

from typing import Optional

from .util import console, fmt_value, open_workspaces
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import PARAMETER_FIELDS, WorkspaceId

_EMPTY = {"", "-", "none", "null", "~"}


def parse_value(raw: str) -> Optional[float]:
    """Parse a parameter value; empty markers clear the field."""
    if raw.strip().lower() in _EMPTY:
        return None
    return float(raw.replace(",", "."))


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    field: str,
    value: str,
    actor: str,
    write: bool = False,
) -> int:
    """Set ``field`` to ``value`` in the workspace parameters.

    Returns:
        Exit code (0 = success, 1 = unknown field, bad value or store error)
    """
    if field not in PARAMETER_FIELDS:
        console.print(f"[red]Error:[/] Unknown parameter '{field}'")
        console.print(f"[dim]Known parameters: {', '.join(PARAMETER_FIELDS)}[/dim]")
        return 1
    try:
        new_value = parse_value(value)
    except ValueError:
        console.print(f"[red]Error:[/] '{value}' is not a number")
        return 1

    try:
        workspaces = open_workspaces(data_root, actor)
        current = workspaces.require_parameters(workspace)
        old_value = getattr(current, field)

        if old_value == new_value:
            console.print(f"[dim]{field} is already {fmt_value(new_value)} in {workspace.value}[/dim]")
            return 0

        if not write:
            console.print(
                f"[yellow]Dry-run:[/] would set {field} in {workspace.value}: "
                f"{fmt_value(old_value)} -> {fmt_value(new_value)}"
            )
            console.print("[dim]Use --write to persist[/dim]")
            return 0

        workspaces.update_parameter(workspace, field, new_value, actor)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(
        f"[green]Updated[/] {field} in {workspace.value}: "
        f"{fmt_value(old_value)} -> {fmt_value(new_value)}"
    )
    console.print("[dim]Auto items recalculated[/dim]")
    return 0
