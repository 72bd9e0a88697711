from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.text import Text

from tripledger.data_root import DataRoot
from tripledger.errors import NotFoundError, ValidationError
from tripledger.model.budget import LineItem
from tripledger.services.change_log_service import ChangeLogService
from tripledger.services.recalculator import AutoItemRecalculator
from tripledger.services.workspace_store import WorkspaceStore
from tripledger.storage.ledger_store import LedgerStore

console = Console()


def fmt_amount(amt: float) -> Text:
    s = f"{amt:,.2f}"
    if amt < 0:
        return Text(s, style="bold red")
    elif amt > 0:
        return Text(s, style="bold green")
    return Text(s)


def fmt_value(value: Optional[float]) -> str:
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:,.2f}"


def short_id(record_id: Optional[str]) -> str:
    return (record_id or "")[:8]


def open_store(data_root: DataRoot) -> LedgerStore:
    if not data_root.ledger_db_path.exists():
        raise NotFoundError(
            f"No ledger found at {data_root.ledger_db_path}. Run 'tripledger init' first."
        )
    return LedgerStore(data_root.ledger_db_path)


def open_workspaces(data_root: DataRoot, actor: str, recalculate: bool = True) -> WorkspaceStore:
    """WorkspaceStore that refreshes auto items right after parameter/distance edits."""
    store = open_store(data_root)
    change_log = ChangeLogService(store)
    on_change = None
    if recalculate:
        recalculator = AutoItemRecalculator(store, change_log)
        on_change = lambda ws: recalculator.recalculate(ws, actor)  # noqa: E731
    return WorkspaceStore(store, change_log, on_change=on_change)


def find_line_item(items: Sequence[LineItem], id_prefix: str) -> LineItem:
    """Resolve a line item by (a unique prefix of) its identifier."""
    matches = [item for item in items if item.id and item.id.startswith(id_prefix)]
    if not matches:
        raise NotFoundError(f"No line item matches id '{id_prefix}'")
    if len(matches) > 1:
        raise ValidationError(f"Id prefix '{id_prefix}' is ambiguous ({len(matches)} matches)")
    return matches[0]
