from __future__ import annotations

"""
Show change log entries, newest first.
"""

import json
from typing import Optional

from rich.table import Table

from .util import console, open_store, short_id
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import WorkspaceId
from tripledger.model.change_log import ChangeLogEntry, TableName
from tripledger.services.change_log_service import ChangeLogService


def _fmt(raw: Optional[str], width: int = 40) -> str:
    if raw is None:
        return ""
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    if isinstance(value, dict):
        label = value.get("subcategory") or value.get("activity") or value.get("day")
        text = "{record}" if label is None else f"{{{label}}}"
    else:
        text = str(value)
    return text if len(text) <= width else text[: width - 1] + "…"


def _field(entry: ChangeLogEntry) -> str:
    if entry.field_name:
        return entry.field_name
    if entry.is_create:
        return "[green]created[/]"
    if entry.is_delete:
        return "[red]deleted[/]"
    return ""


def run(
    *,
    data_root: DataRoot,
    workspace: Optional[WorkspaceId],
    table: Optional[TableName] = None,
    record_id: Optional[str] = None,
    field: Optional[str] = None,
    limit: int = 20,
    actor: str,
) -> int:
    """Display change log entries filtered by workspace/table/record/field.

    Args:
        workspace: Workspace filter (None = all workspaces)
        limit: Maximum number of entries to show

    Returns:
        Exit code (0 = success)
    """
    try:
        entries = ChangeLogService(open_store(data_root)).query(
            workspace=workspace,
            table=table,
            record_id=record_id,
            field=field,
            newest_first=True,
            limit=limit,
        )
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if not entries:
        console.print("[dim]No matching change log entries.[/dim]")
        return 0

    out = Table(title="Change log (newest first)")
    out.add_column("When", style="dim", no_wrap=True)
    out.add_column("Workspace", style="cyan")
    out.add_column("Table")
    out.add_column("Record", style="dim")
    out.add_column("Field")
    out.add_column("Old", style="red")
    out.add_column("New", style="green")
    out.add_column("Actor", style="magenta")

    for entry in entries:
        out.add_row(
            entry.changed_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.workspace.value,
            entry.table_name.value,
            short_id(entry.record_id),
            _field(entry),
            _fmt(entry.old_value),
            _fmt(entry.new_value),
            entry.actor,
        )
    console.print(out)
    return 0
