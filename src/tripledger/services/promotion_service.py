"""
Promotion service - destructive copy of one workspace onto another.

Promotion reads the full source state (line items, distance days, schedule and
the parameters record), clears the target's line items, distance days and
schedule, inserts copies with fresh identifiers and upserts the parameters
record field by field. The target's parameters record is never deleted.

Clear, write and the matching change log entries share one store transaction:
a failure anywhere rolls the target back to its state before the promotion and
surfaces as PartialPromotionError naming the stage that failed. Nothing is
retried automatically.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tripledger.config import DEFAULT_ACTOR
from tripledger.errors import NotFoundError, PartialPromotionError, StoreError, ValidationError
from tripledger.logger import get_logger
from tripledger.model.budget import (
    DistanceDay,
    LineItem,
    Parameters,
    ScheduleEntry,
    WorkspaceId,
)
from tripledger.model.change_log import TableName
from tripledger.services.change_log_service import ChangeLogService
from tripledger.storage.ledger_store import LedgerStore

log = get_logger(__name__)


@dataclass
class WorkspaceSnapshot:
    """Full state of one workspace as read at a single point in time."""

    workspace: WorkspaceId
    line_items: list[LineItem] = field(default_factory=list)
    distance_days: list[DistanceDay] = field(default_factory=list)
    schedule: list[ScheduleEntry] = field(default_factory=list)
    parameters: Optional[Parameters] = None


@dataclass
class PromotionResult:
    """What a promotion changed (or, for a preview, would change) in the target."""

    source: WorkspaceId
    target: WorkspaceId
    copied_line_items: int = 0
    copied_distance_days: int = 0
    copied_schedule_entries: int = 0
    removed_line_items: int = 0
    removed_distance_days: int = 0
    removed_schedule_entries: int = 0
    parameters_action: str = "unchanged"  # "inserted", "updated" or "unchanged"
    changed_parameter_fields: list[str] = field(default_factory=list)
    written: bool = False


class PromotionEngine:
    """Copies a whole workspace onto another inside one transaction."""

    def __init__(self, store: LedgerStore, change_log: Optional[ChangeLogService] = None):
        self.store = store
        self.change_log = change_log or ChangeLogService(store)

    def snapshot(self, workspace: WorkspaceId | str) -> WorkspaceSnapshot:
        workspace = WorkspaceId(workspace)
        return WorkspaceSnapshot(
            workspace=workspace,
            line_items=self.store.list_line_items(workspace),
            distance_days=self.store.list_distance_days(workspace),
            schedule=self.store.list_schedule(workspace),
            parameters=self.store.get_parameters(workspace),
        )

    def preview(self, source: WorkspaceId | str, target: WorkspaceId | str) -> PromotionResult:
        """Describe what promote() would do without writing anything."""
        source, target = self._check_pair(source, target)
        src = self._read_source(source)
        dst = self.snapshot(target)
        return self._describe(src, dst)

    def promote(
        self,
        source: WorkspaceId | str,
        target: WorkspaceId | str,
        actor: str = DEFAULT_ACTOR,
    ) -> PromotionResult:
        """Replace the target workspace's state with a copy of the source's.

        Raises:
            ValidationError: source and target are the same workspace
            NotFoundError: the source has no parameters record
            StoreError: the source could not be read (nothing was changed)
            PartialPromotionError: clearing or writing the target failed; the
                transaction was rolled back
        """
        source, target = self._check_pair(source, target)
        src = self._read_source(source)

        stage = "clear"
        try:
            with self.store.transaction():
                dst = self.snapshot(target)
                result = self._describe(src, dst)
                self._clear_target(dst, actor)

                stage = "write"
                self._write_target(src, dst, actor)
        except StoreError as exc:
            log.error("Promotion %s -> %s failed during %s: %s", source, target, stage, exc)
            raise PartialPromotionError(source, target, stage, exc, rolled_back=True) from exc

        result.written = True
        log.info(
            "Promoted %s -> %s: %d line items, %d distance days, %d schedule entries, parameters %s",
            source,
            target,
            result.copied_line_items,
            result.copied_distance_days,
            result.copied_schedule_entries,
            result.parameters_action,
        )
        return result

    def _check_pair(
        self, source: WorkspaceId | str, target: WorkspaceId | str
    ) -> tuple[WorkspaceId, WorkspaceId]:
        source, target = WorkspaceId(source), WorkspaceId(target)
        if source == target:
            raise ValidationError(f"Cannot promote workspace '{source}' onto itself")
        return source, target

    def _read_source(self, source: WorkspaceId) -> WorkspaceSnapshot:
        src = self.snapshot(source)
        if src.parameters is None:
            raise NotFoundError(
                f"Workspace '{source}' has no parameters record; nothing consistent to promote"
            )
        return src

    def _describe(self, src: WorkspaceSnapshot, dst: WorkspaceSnapshot) -> PromotionResult:
        result = PromotionResult(
            source=src.workspace,
            target=dst.workspace,
            copied_line_items=len(src.line_items),
            copied_distance_days=len(src.distance_days),
            copied_schedule_entries=len(src.schedule),
            removed_line_items=len(dst.line_items),
            removed_distance_days=len(dst.distance_days),
            removed_schedule_entries=len(dst.schedule),
        )
        if dst.parameters is None:
            result.parameters_action = "inserted"
        else:
            result.changed_parameter_fields = _changed_fields(dst.parameters, src.parameters)
            if result.changed_parameter_fields:
                result.parameters_action = "updated"
        return result

    def _clear_target(self, dst: WorkspaceSnapshot, actor: str) -> None:
        target = dst.workspace
        self.store.clear_line_items(target)
        self.store.clear_distance_days(target)
        self.store.clear_schedule(target)

        for item in dst.line_items:
            self.change_log.record_deleted(target, TableName.line_items, item, actor)
        for day in dst.distance_days:
            self.change_log.record_deleted(target, TableName.distance_days, day, actor)
        for entry in dst.schedule:
            self.change_log.record_deleted(target, TableName.schedule, entry, actor)

    def _write_target(self, src: WorkspaceSnapshot, dst: WorkspaceSnapshot, actor: str) -> None:
        target = dst.workspace

        for item in src.line_items:
            created = self.store.insert_line_item(target, item.model_copy(update={"id": None}))
            self.change_log.record_created(target, TableName.line_items, created, actor)
        for day in src.distance_days:
            created = self.store.insert_distance_day(target, day.model_copy(update={"id": None}))
            self.change_log.record_created(target, TableName.distance_days, created, actor)
        for entry in src.schedule:
            created = self.store.insert_schedule_entry(
                target, entry.model_copy(update={"id": None})
            )
            self.change_log.record_created(target, TableName.schedule, created, actor)

        if dst.parameters is None:
            created = self.store.insert_parameters(
                target, src.parameters.model_copy(update={"id": None})
            )
            self.change_log.record_created(target, TableName.parameters, created, actor)
            return

        changed = _changed_fields(dst.parameters, src.parameters)
        if changed:
            self.store.update_parameters(
                target, dst.parameters.id, {f: getattr(src.parameters, f) for f in changed}
            )
            self.change_log.record_changes(
                target,
                TableName.parameters,
                dst.parameters.id,
                [(f, getattr(dst.parameters, f), getattr(src.parameters, f)) for f in changed],
                actor,
            )


def _changed_fields(current: Parameters, incoming: Parameters) -> list[str]:
    before, after = current.values(), incoming.values()
    return [name for name, value in after.items() if before.get(name) != value]


__all__ = ["PromotionEngine", "PromotionResult", "WorkspaceSnapshot"]
