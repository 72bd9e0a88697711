"""
Change log models for the budget ledger.

Every mutation of a parameter, line item, distance day or schedule entry is
recorded as one immutable ChangeLogEntry. The log is append-only and global:
entries from all three workspaces share one collection.

Values are stored as JSON text so that a number, a string or a whole record
can be captured in the same column. A ``field_name`` of None denotes a
whole-record create (old_value is None) or delete (new_value is None).
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from tripledger.model.budget import WorkspaceId


class TableName(StrEnum):
    """Logical collections referenced by change log entries."""

    line_items = "line_items"
    distance_days = "distance_days"
    parameters = "parameters"
    schedule = "schedule"


def serialize_value(value: Any) -> Optional[str]:
    """Serialize a field value or record to JSON text; None stays None."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    return json.dumps(value)


class ChangeLogEntry(BaseModel):
    """One field-level (or whole-record) change.

    Entries for the same (workspace, table, record, field) are totally ordered
    by ``changed_at``; the store breaks timestamp ties by insertion order.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    workspace: WorkspaceId
    table_name: TableName
    record_id: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    actor: str
    changed_at: datetime = Field(default_factory=datetime.now)

    @field_serializer("changed_at")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()

    @field_validator("changed_at", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> datetime:
        """Parse timestamp from string or datetime."""
        if isinstance(value, str):
            return datetime.fromisoformat(value)
        return value

    @property
    def is_create(self) -> bool:
        return self.field_name is None and self.old_value is None

    @property
    def is_delete(self) -> bool:
        return self.field_name is None and self.new_value is None

    def old(self) -> Any:
        """Decoded old value (None when absent)."""
        return json.loads(self.old_value) if self.old_value is not None else None

    def new(self) -> Any:
        """Decoded new value (None when absent)."""
        return json.loads(self.new_value) if self.new_value is not None else None


__all__ = ["TableName", "ChangeLogEntry", "serialize_value"]
