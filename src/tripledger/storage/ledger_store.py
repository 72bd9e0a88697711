"""
Ledger store implementation using SQLite.

This module persists the three workspaces and the global change log in one
SQLite file. Each workspace owns four tables named ``<collection>_<workspace>``
(line_items, distance_days, parameters, schedule). The change log is a single
append-only table shared by all workspaces.

Design:
- Identifiers are assigned by the store on insert (UUID4 text)
- Every public call is one statement-level round trip, committed on return
- transaction() groups calls so they commit or roll back together
- sqlite3 errors surface as StoreError; a missing column surfaces as
  SchemaMismatchError naming the field

Usage:
    store = LedgerStore("data/ledger.db")
    item = store.insert_line_item("sandbox", LineItem(...))
    with store.transaction():
        store.clear_line_items("concrete")
        store.insert_line_item("concrete", item)
"""

from __future__ import annotations

import re
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional
from uuid import uuid4

from pydantic import BaseModel

from tripledger.errors import SchemaMismatchError, StoreError, ValidationError
from tripledger.model.budget import (
    DistanceDay,
    LineItem,
    Parameters,
    ScheduleEntry,
    WorkspaceId,
)
from tripledger.model.change_log import ChangeLogEntry, TableName

_COLUMNS: dict[TableName, str] = {
    TableName.line_items: """
        id TEXT PRIMARY KEY,
        category TEXT NOT NULL,
        subcategory TEXT NOT NULL,
        description TEXT,
        unit TEXT NOT NULL DEFAULT 'other',
        split_rule TEXT NOT NULL DEFAULT 'everyone',
        price_per_person REAL,
        price_per_child REAL,
        price_per_leader REAL,
        quantity REAL,
        total_override REAL,
        computed_total REAL,
        remarks TEXT,
        auto INTEGER NOT NULL DEFAULT 0,
        billed_to_transport INTEGER NOT NULL DEFAULT 0,
        created_at TEXT DEFAULT (datetime('now')),
        updated_at TEXT
    """,
    TableName.distance_days: """
        id TEXT PRIMARY KEY,
        day INTEGER NOT NULL,
        distance REAL,
        route TEXT,
        lodging TEXT,
        activity TEXT,
        created_at TEXT DEFAULT (datetime('now')),
        updated_at TEXT
    """,
    TableName.parameters: """
        id TEXT PRIMARY KEY,
        children_count REAL,
        leader_count REAL,
        asked_price_child REAL,
        asked_price_leader REAL,
        buffer_percentage REAL,
        transport_daily_rate REAL,
        transport_free_distance_per_day REAL,
        transport_extra_distance_price REAL,
        fuel_price REAL,
        support_distance REAL,
        catering_price_per_day REAL,
        catering_days REAL,
        created_at TEXT DEFAULT (datetime('now')),
        updated_at TEXT
    """,
    TableName.schedule: """
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        day TEXT NOT NULL,
        time TEXT NOT NULL,
        activity TEXT NOT NULL,
        created_at TEXT DEFAULT (datetime('now'))
    """,
}

# Columns added after the first release; migrate() adds them to older stores
OPTIONAL_COLUMNS: dict[TableName, dict[str, str]] = {
    TableName.line_items: {
        "billed_to_transport": "INTEGER NOT NULL DEFAULT 0",
        "computed_total": "REAL",
    },
}

_ORDER_BY: dict[TableName, str] = {
    TableName.line_items: "rowid",
    TableName.distance_days: "day, rowid",
    TableName.parameters: "rowid",
    TableName.schedule: "date, time, rowid",
}

_MISSING_COLUMN = re.compile(r"(?:has no column named|no such column:)\s*([\w.]+)")
_TABLE_IN_MESSAGE = re.compile(r"table (\w+) has no column")


def table_for(collection: TableName, workspace: str) -> str:
    """Physical table name of a collection in a workspace."""
    return f"{TableName(collection).value}_{WorkspaceId(workspace).value}"


def _translate(exc: sqlite3.Error) -> StoreError:
    message = str(exc)
    missing = _MISSING_COLUMN.search(message)
    if missing:
        table = _TABLE_IN_MESSAGE.search(message)
        field = missing.group(1).split(".")[-1]
        return SchemaMismatchError(field, table.group(1) if table else None)
    return StoreError(f"Store rejected the operation: {message}")


def _check_fields(fields: Any) -> None:
    for name in fields:
        if not str(name).isidentifier():
            raise ValidationError(f"Invalid field name: {name!r}")


class LedgerStore:
    """SQLite-backed collections for all workspaces plus the change log."""

    def __init__(self, db_path: str | Path, auto_migrate: bool = True):
        """Initialize the store, creating the schema if it doesn't exist.

        Args:
            db_path: Path to SQLite database file. Created if missing.
            auto_migrate: Add optional columns missing from an older store.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._init_schema()
        if auto_migrate:
            self.migrate()

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    @property
    def _tx_conn(self) -> Optional[sqlite3.Connection]:
        # Transactions are per thread; recompute passes run in worker threads
        return getattr(self._local, "conn", None)

    @_tx_conn.setter
    def _tx_conn(self, conn: Optional[sqlite3.Connection]) -> None:
        self._local.conn = conn

    def _open(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise _translate(exc) from exc
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._tx_conn is not None:
            try:
                yield self._tx_conn
            except sqlite3.Error as exc:
                raise _translate(exc) from exc
            return

        conn = self._open()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise _translate(exc) from exc
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed store calls on one connection, all-or-nothing.

        Nested use joins the outer transaction.
        """
        if self._tx_conn is not None:
            yield
            return

        conn = self._open()
        self._tx_conn = conn
        try:
            yield
            try:
                conn.commit()
            except sqlite3.Error as exc:
                raise _translate(exc) from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._tx_conn = None
            conn.close()

    @property
    def in_transaction(self) -> bool:
        return self._tx_conn is not None

    def _init_schema(self) -> None:
        with self._connect() as conn:
            for workspace in WorkspaceId:
                for collection, columns in _COLUMNS.items():
                    conn.execute(
                        f"CREATE TABLE IF NOT EXISTS {table_for(collection, workspace)} ({columns})"
                    )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table_for(TableName.distance_days, workspace)}_day "
                    f"ON {table_for(TableName.distance_days, workspace)}(day)"
                )

            conn.execute("""
                CREATE TABLE IF NOT EXISTS change_log (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    workspace TEXT NOT NULL,
                    table_name TEXT NOT NULL,
                    record_id TEXT NOT NULL,
                    field_name TEXT,
                    old_value TEXT,
                    new_value TEXT,
                    actor TEXT NOT NULL,
                    changed_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_change_log_record
                ON change_log(workspace, table_name, record_id, field_name)
            """)

    def migrate(self) -> list[str]:
        """Add optional columns missing from tables created by older versions.

        Returns:
            List of "table.column" entries that were added
        """
        added: list[str] = []
        with self._connect() as conn:
            for collection, columns in OPTIONAL_COLUMNS.items():
                for workspace in WorkspaceId:
                    table = table_for(collection, workspace)
                    existing = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
                    for column, ddl in columns.items():
                        if column not in existing:
                            conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
                            added.append(f"{table}.{column}")
        return added

    # ------------------------------------------------------------------
    # Generic row helpers
    # ------------------------------------------------------------------

    def _select(
        self,
        collection: TableName,
        workspace: str,
        where: str = "",
        params: tuple = (),
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        sql = f"SELECT * FROM {table_for(collection, workspace)}"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {_ORDER_BY[collection]}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        with self._connect() as conn:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

    def _insert(self, collection: TableName, workspace: str, record: BaseModel) -> str:
        data = record.model_dump(mode="json", exclude={"id"})
        data["id"] = str(uuid4())
        columns = ", ".join(data)
        placeholders = ", ".join("?" for _ in data)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO {table_for(collection, workspace)} ({columns}) VALUES ({placeholders})",
                tuple(data.values()),
            )
        return data["id"]

    def _update(
        self,
        collection: TableName,
        workspace: str,
        record_id: str,
        changes: dict[str, Any],
        touch: bool = True,
    ) -> bool:
        if not changes:
            return False
        _check_fields(changes)
        assignments = ", ".join(f"{name} = ?" for name in changes)
        if touch:
            assignments += ", updated_at = datetime('now')"
        with self._connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table_for(collection, workspace)} SET {assignments} WHERE id = ?",
                (*changes.values(), record_id),
            )
            return cursor.rowcount > 0

    def _delete(self, collection: TableName, workspace: str, record_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                f"DELETE FROM {table_for(collection, workspace)} WHERE id = ?", (record_id,)
            )
            return cursor.rowcount > 0

    def _clear(self, collection: TableName, workspace: str) -> int:
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {table_for(collection, workspace)}")
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def list_line_items(self, workspace: str) -> list[LineItem]:
        """All line items of a workspace in creation order."""
        return [LineItem.model_validate(row) for row in self._select(TableName.line_items, workspace)]

    def get_line_item(self, workspace: str, item_id: str) -> Optional[LineItem]:
        rows = self._select(TableName.line_items, workspace, "id = ?", (item_id,))
        return LineItem.model_validate(rows[0]) if rows else None

    def insert_line_item(self, workspace: str, item: LineItem) -> LineItem:
        """Insert a line item; the returned copy carries the new identifier."""
        new_id = self._insert(TableName.line_items, workspace, item)
        return item.model_copy(update={"id": new_id})

    def update_line_item(self, workspace: str, item_id: str, changes: dict[str, Any]) -> bool:
        return self._update(TableName.line_items, workspace, item_id, changes)

    def delete_line_item(self, workspace: str, item_id: str) -> bool:
        return self._delete(TableName.line_items, workspace, item_id)

    def clear_line_items(self, workspace: str) -> int:
        return self._clear(TableName.line_items, workspace)

    # ------------------------------------------------------------------
    # Distance days
    # ------------------------------------------------------------------

    def list_distance_days(self, workspace: str) -> list[DistanceDay]:
        """All distance days of a workspace ordered by sequence."""
        return [
            DistanceDay.model_validate(row)
            for row in self._select(TableName.distance_days, workspace)
        ]

    def get_distance_day(self, workspace: str, day_id: str) -> Optional[DistanceDay]:
        rows = self._select(TableName.distance_days, workspace, "id = ?", (day_id,))
        return DistanceDay.model_validate(rows[0]) if rows else None

    def insert_distance_day(self, workspace: str, day: DistanceDay) -> DistanceDay:
        new_id = self._insert(TableName.distance_days, workspace, day)
        return day.model_copy(update={"id": new_id})

    def update_distance_day(self, workspace: str, day_id: str, changes: dict[str, Any]) -> bool:
        return self._update(TableName.distance_days, workspace, day_id, changes)

    def delete_distance_day(self, workspace: str, day_id: str) -> bool:
        return self._delete(TableName.distance_days, workspace, day_id)

    def clear_distance_days(self, workspace: str) -> int:
        return self._clear(TableName.distance_days, workspace)

    # ------------------------------------------------------------------
    # Parameters (single record per workspace)
    # ------------------------------------------------------------------

    def get_parameters(self, workspace: str) -> Optional[Parameters]:
        rows = self._select(TableName.parameters, workspace, limit=1)
        return Parameters.model_validate(rows[0]) if rows else None

    def insert_parameters(self, workspace: str, parameters: Parameters) -> Parameters:
        new_id = self._insert(TableName.parameters, workspace, parameters)
        return parameters.model_copy(update={"id": new_id})

    def update_parameters(self, workspace: str, record_id: str, changes: dict[str, Any]) -> bool:
        return self._update(TableName.parameters, workspace, record_id, changes)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def list_schedule(self, workspace: str) -> list[ScheduleEntry]:
        return [
            ScheduleEntry.model_validate(row) for row in self._select(TableName.schedule, workspace)
        ]

    def insert_schedule_entry(self, workspace: str, entry: ScheduleEntry) -> ScheduleEntry:
        new_id = self._insert(TableName.schedule, workspace, entry)
        return entry.model_copy(update={"id": new_id})

    def clear_schedule(self, workspace: str) -> int:
        return self._clear(TableName.schedule, workspace)

    # ------------------------------------------------------------------
    # Change log (append-only)
    # ------------------------------------------------------------------

    def append_changes(self, entries: list[ChangeLogEntry]) -> None:
        """Append change log entries in order. Entries are never modified afterwards."""
        if not entries:
            return
        rows = [
            (
                e.id,
                e.workspace.value,
                e.table_name.value,
                e.record_id,
                e.field_name,
                e.old_value,
                e.new_value,
                e.actor,
                e.changed_at.isoformat(),
            )
            for e in entries
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO change_log (
                    id, workspace, table_name, record_id, field_name,
                    old_value, new_value, actor, changed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )

    def query_changes(
        self,
        workspace: Optional[str] = None,
        table_name: Optional[str] = None,
        record_id: Optional[str] = None,
        field_name: Optional[str] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> list[ChangeLogEntry]:
        """Query the change log; every filter left as None matches anything.

        Ordering is by timestamp, ties broken by insertion order.
        """
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in (
            ("workspace", WorkspaceId(workspace).value if workspace else None),
            ("table_name", TableName(table_name).value if table_name else None),
            ("record_id", record_id),
            ("field_name", field_name),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        direction = "DESC" if newest_first else "ASC"
        sql = "SELECT * FROM change_log"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" ORDER BY changed_at {direction}, seq {direction}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"

        with self._connect() as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
        return [ChangeLogEntry.model_validate(dict(row)) for row in rows]


__all__ = ["LedgerStore", "OPTIONAL_COLUMNS", "table_for"]
