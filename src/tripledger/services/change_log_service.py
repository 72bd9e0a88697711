"""
Change log service - recording and querying the field-level audit trail.

Every mutating operation in the ledger records its old and new values here.
The log also powers a best-effort recovery of distances that were
accidentally zeroed: the history of the field is scanned newest-first and the
first positive number found (old value before new value) is taken as the
intended distance. This is a heuristic, not a restore guarantee.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from tripledger.logger import get_logger
from tripledger.model.budget import DistanceDay, WorkspaceId
from tripledger.model.change_log import ChangeLogEntry, TableName, serialize_value
from tripledger.storage.ledger_store import LedgerStore

log = get_logger(__name__)


def _as_positive_number(raw: Optional[str]) -> Optional[float]:
    """Parse a serialized log value as a number; None unless it is > 0."""
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class ChangeLogService:
    """Append-only audit trail spanning all workspaces and entities."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def record(
        self,
        workspace: WorkspaceId | str,
        table: TableName | str,
        record_id: str,
        field: Optional[str],
        old_value: Any,
        new_value: Any,
        actor: str,
    ) -> ChangeLogEntry:
        """Append one entry. ``field`` None denotes a whole-record create/delete."""
        entry = ChangeLogEntry(
            workspace=workspace,
            table_name=table,
            record_id=record_id,
            field_name=field,
            old_value=serialize_value(old_value),
            new_value=serialize_value(new_value),
            actor=actor,
        )
        self.store.append_changes([entry])
        return entry

    def record_changes(
        self,
        workspace: WorkspaceId | str,
        table: TableName | str,
        record_id: str,
        changes: Iterable[tuple[str, Any, Any]],
        actor: str,
    ) -> list[ChangeLogEntry]:
        """Append one entry per (field, old, new) triple of a single record."""
        entries = [
            ChangeLogEntry(
                workspace=workspace,
                table_name=table,
                record_id=record_id,
                field_name=field,
                old_value=serialize_value(old),
                new_value=serialize_value(new),
                actor=actor,
            )
            for field, old, new in changes
        ]
        self.store.append_changes(entries)
        return entries

    def record_created(
        self, workspace: WorkspaceId | str, table: TableName | str, record: Any, actor: str
    ) -> ChangeLogEntry:
        return self.record(workspace, table, record.id, None, None, record, actor)

    def record_deleted(
        self, workspace: WorkspaceId | str, table: TableName | str, record: Any, actor: str
    ) -> ChangeLogEntry:
        return self.record(workspace, table, record.id, None, record, None, actor)

    def query(
        self,
        workspace: Optional[WorkspaceId | str] = None,
        table: Optional[TableName | str] = None,
        record_id: Optional[str] = None,
        field: Optional[str] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> list[ChangeLogEntry]:
        return self.store.query_changes(
            workspace=workspace,
            table_name=table,
            record_id=record_id,
            field_name=field,
            newest_first=newest_first,
            limit=limit,
        )

    def recover_if_zero(self, workspace: WorkspaceId | str, day: DistanceDay) -> float:
        """Best-effort guess of a zeroed day's intended distance.

        Returns the current distance unchanged when it is positive. Otherwise
        scans the day's distance history newest-first, trying each entry's old
        value then its new value, and returns the first positive number. Returns
        0 when the history holds none.
        """
        if day.distance is not None and day.distance > 0:
            return float(day.distance)
        if day.id is None:
            return 0.0

        history = self.query(
            workspace=workspace,
            table=TableName.distance_days,
            record_id=day.id,
            field="distance",
            newest_first=True,
        )
        for entry in history:
            for raw in (entry.old_value, entry.new_value):
                number = _as_positive_number(raw)
                if number is not None:
                    log.info(
                        "Recovered distance %s for day %s in %s from change log",
                        number,
                        day.day,
                        workspace,
                    )
                    return number
        return 0.0


__all__ = ["ChangeLogService"]
