"""
Workspace store - the operations collaborators use to read and edit a workspace.

Every call names its workspace explicitly; there is no ambient "active
workspace". Every mutation is written together with its change log entries in
one store transaction. Validation (duplicate keys, pricing combinations,
unknown fields) happens before anything is written.

After a parameter or distance edit the optional ``on_change`` callback is
invoked with the workspace, which is how callers hook in the auto item
recalculator (directly, or through a RecomputeScheduler).

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from tripledger.config import DEFAULT_ACTOR
from tripledger.errors import NotFoundError, ValidationError
from tripledger.model.budget import (
    LINE_ITEM_FIELDS,
    PARAMETER_FIELDS,
    DistanceDay,
    LineItem,
    Parameters,
    ScheduleEntry,
    WorkspaceId,
)
from tripledger.model.change_log import TableName
from tripledger.services import distance_aggregator
from tripledger.services.change_log_service import ChangeLogService
from tripledger.services.cost_resolver import resolve_total
from tripledger.storage.ledger_store import LedgerStore


@dataclass
class DistanceTotals:
    trip: float
    extra: float
    trip_days: int

    @property
    def grand(self) -> float:
        return self.trip + self.extra


@dataclass
class RecoveredDistance:
    day: DistanceDay
    recovered: float


class WorkspaceStore:
    """Facade over the ledger store for one or more workspaces."""

    def __init__(
        self,
        store: LedgerStore,
        change_log: Optional[ChangeLogService] = None,
        on_change: Optional[Callable[[WorkspaceId], Any]] = None,
    ):
        self.store = store
        self.change_log = change_log or ChangeLogService(store)
        self.on_change = on_change

    def _notify(self, workspace: WorkspaceId) -> None:
        if self.on_change is not None:
            self.on_change(workspace)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_line_items(self, workspace: WorkspaceId | str) -> list[LineItem]:
        return self.store.list_line_items(WorkspaceId(workspace))

    def get_parameters(self, workspace: WorkspaceId | str) -> Optional[Parameters]:
        return self.store.get_parameters(WorkspaceId(workspace))

    def require_parameters(self, workspace: WorkspaceId | str) -> Parameters:
        parameters = self.get_parameters(workspace)
        if parameters is None:
            raise NotFoundError(
                f"Workspace '{WorkspaceId(workspace)}' has no parameters record; "
                f"run 'tripledger init' to seed it"
            )
        return parameters

    def get_distance_days(self, workspace: WorkspaceId | str) -> list[DistanceDay]:
        return self.store.list_distance_days(WorkspaceId(workspace))

    def get_schedule(self, workspace: WorkspaceId | str) -> list[ScheduleEntry]:
        return self.store.list_schedule(WorkspaceId(workspace))

    def resolve_total(self, item: LineItem, parameters: Optional[Parameters]) -> float:
        return resolve_total(item, parameters)

    def distance_totals(self, workspace: WorkspaceId | str) -> DistanceTotals:
        days = self.get_distance_days(workspace)
        return DistanceTotals(
            trip=distance_aggregator.trip_distance(days),
            extra=distance_aggregator.extra_distance(days),
            trip_days=distance_aggregator.trip_days(days),
        )

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def seed_parameters(
        self, workspace: WorkspaceId | str, parameters: Parameters, actor: str = DEFAULT_ACTOR
    ) -> Parameters:
        """Insert the workspace parameters, or update the existing record in place."""
        workspace = WorkspaceId(workspace)
        with self.store.transaction():
            existing = self.store.get_parameters(workspace)
            if existing is None:
                created = self.store.insert_parameters(workspace, parameters)
                self.change_log.record_created(workspace, TableName.parameters, created, actor)
                result = created
            else:
                changes = _diff(existing.values(), parameters.values())
                if changes:
                    self.store.update_parameters(workspace, existing.id, changes)
                    self.change_log.record_changes(
                        workspace,
                        TableName.parameters,
                        existing.id,
                        [(f, getattr(existing, f), v) for f, v in changes.items()],
                        actor,
                    )
                result = existing.model_copy(update=changes)
        self._notify(workspace)
        return result

    def update_parameter(
        self,
        workspace: WorkspaceId | str,
        field: str,
        value: Optional[float],
        actor: str = DEFAULT_ACTOR,
    ) -> Parameters:
        return self.update_parameters(workspace, {field: value}, actor)

    def update_parameters(
        self,
        workspace: WorkspaceId | str,
        changes: dict[str, Optional[float]],
        actor: str = DEFAULT_ACTOR,
    ) -> Parameters:
        """Update one or more parameter fields, logging each changed field.

        Raises:
            ValidationError: unknown parameter field
            NotFoundError: the workspace has no parameters record
        """
        workspace = WorkspaceId(workspace)
        unknown = [f for f in changes if f not in PARAMETER_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown parameter field(s): {', '.join(unknown)}")

        current = self.require_parameters(workspace)
        candidate = _validated(Parameters, current, changes)
        effective = _diff(current.values(), {f: getattr(candidate, f) for f in changes})
        if not effective:
            return current

        with self.store.transaction():
            self.store.update_parameters(workspace, current.id, effective)
            self.change_log.record_changes(
                workspace,
                TableName.parameters,
                current.id,
                [(f, getattr(current, f), v) for f, v in effective.items()],
                actor,
            )
        self._notify(workspace)
        return candidate

    # ------------------------------------------------------------------
    # Line items
    # ------------------------------------------------------------------

    def add_line_item(
        self, workspace: WorkspaceId | str, item: LineItem, actor: str = DEFAULT_ACTOR
    ) -> LineItem:
        """Insert a line item after checking pricing and the de-duplication key.

        Raises:
            ValidationError: invalid split/unit combination or duplicate key
        """
        workspace = WorkspaceId(workspace)
        item.validate_pricing()
        self._check_unique(workspace, item)

        with self.store.transaction():
            created = self.store.insert_line_item(workspace, item)
            self.change_log.record_created(workspace, TableName.line_items, created, actor)
        return created

    def update_line_item(
        self,
        workspace: WorkspaceId | str,
        item_id: str,
        changes: dict[str, Any],
        actor: str = DEFAULT_ACTOR,
    ) -> LineItem:
        """Update line item fields, logging each field that actually changes.

        Raises:
            ValidationError: unknown field, bad combination or duplicate key
            NotFoundError: no such item in the workspace
        """
        workspace = WorkspaceId(workspace)
        unknown = [f for f in changes if f not in LINE_ITEM_FIELDS]
        if unknown:
            raise ValidationError(f"Unknown line item field(s): {', '.join(unknown)}")

        current = self.store.get_line_item(workspace, item_id)
        if current is None:
            raise NotFoundError(f"Line item '{item_id}' not found in workspace '{workspace}'")

        candidate = _validated(LineItem, current, changes)
        candidate.validate_pricing()
        if candidate.dedup_key != current.dedup_key:
            self._check_unique(workspace, candidate, ignore_id=item_id)

        current_values = current.model_dump(mode="json")
        candidate_values = candidate.model_dump(mode="json")
        effective = _diff(
            {f: current_values[f] for f in changes}, {f: candidate_values[f] for f in changes}
        )
        if not effective:
            return current

        with self.store.transaction():
            self.store.update_line_item(workspace, item_id, effective)
            self.change_log.record_changes(
                workspace,
                TableName.line_items,
                item_id,
                [(f, current_values[f], v) for f, v in effective.items()],
                actor,
            )
        return candidate

    def delete_line_item(
        self, workspace: WorkspaceId | str, item_id: str, actor: str = DEFAULT_ACTOR
    ) -> LineItem:
        workspace = WorkspaceId(workspace)
        current = self.store.get_line_item(workspace, item_id)
        if current is None:
            raise NotFoundError(f"Line item '{item_id}' not found in workspace '{workspace}'")

        with self.store.transaction():
            self.store.delete_line_item(workspace, item_id)
            self.change_log.record_deleted(workspace, TableName.line_items, current, actor)
        return current

    def _check_unique(
        self, workspace: WorkspaceId, item: LineItem, ignore_id: Optional[str] = None
    ) -> None:
        for existing in self.store.list_line_items(workspace):
            if existing.id != ignore_id and existing.dedup_key == item.dedup_key:
                description = f" / {item.description}" if item.description else ""
                raise ValidationError(
                    f"A line item '{item.category.value} / {item.subcategory}{description}' "
                    f"(auto={item.auto}) already exists in workspace '{workspace}'"
                )

    # ------------------------------------------------------------------
    # Distance days
    # ------------------------------------------------------------------

    def add_distance_day(
        self, workspace: WorkspaceId | str, day: DistanceDay, actor: str = DEFAULT_ACTOR
    ) -> DistanceDay:
        workspace = WorkspaceId(workspace)
        with self.store.transaction():
            created = self.store.insert_distance_day(workspace, day)
            self.change_log.record_created(workspace, TableName.distance_days, created, actor)
        self._notify(workspace)
        return created

    def set_day_distance(
        self,
        workspace: WorkspaceId | str,
        day_id: str,
        distance: Optional[float],
        actor: str = DEFAULT_ACTOR,
    ) -> DistanceDay:
        workspace = WorkspaceId(workspace)
        current = self.store.get_distance_day(workspace, day_id)
        if current is None:
            raise NotFoundError(f"Distance day '{day_id}' not found in workspace '{workspace}'")
        if current.distance == distance:
            return current

        with self.store.transaction():
            self.store.update_distance_day(workspace, day_id, {"distance": distance})
            self.change_log.record(
                workspace,
                TableName.distance_days,
                day_id,
                "distance",
                current.distance,
                distance,
                actor,
            )
        self._notify(workspace)
        return current.model_copy(update={"distance": distance})

    def delete_distance_day(
        self, workspace: WorkspaceId | str, day_id: str, actor: str = DEFAULT_ACTOR
    ) -> DistanceDay:
        workspace = WorkspaceId(workspace)
        current = self.store.get_distance_day(workspace, day_id)
        if current is None:
            raise NotFoundError(f"Distance day '{day_id}' not found in workspace '{workspace}'")

        with self.store.transaction():
            self.store.delete_distance_day(workspace, day_id)
            self.change_log.record_deleted(workspace, TableName.distance_days, current, actor)
        self._notify(workspace)
        return current

    def set_total_distance(
        self, workspace: WorkspaceId | str, total: float, actor: str = DEFAULT_ACTOR
    ) -> DistanceTotals:
        """Set the grand total distance by rewriting the extra-distance bucket."""
        workspace = WorkspaceId(workspace)
        plan = distance_aggregator.plan_grand_total_write(self.get_distance_days(workspace), total)

        if plan.day is None:
            self.add_distance_day(
                workspace,
                DistanceDay(day=plan.create_day_number, distance=plan.new_distance),
                actor,
            )
        else:
            self.set_day_distance(workspace, plan.day.id, plan.new_distance, actor)
        return self.distance_totals(workspace)

    def recover_zeroed_distances(
        self, workspace: WorkspaceId | str, actor: str = DEFAULT_ACTOR
    ) -> list[RecoveredDistance]:
        """Restore zero/empty day distances from the change log where possible."""
        workspace = WorkspaceId(workspace)
        recovered: list[RecoveredDistance] = []
        for day in self.get_distance_days(workspace):
            if day.distance:
                continue
            value = self.change_log.recover_if_zero(workspace, day)
            if value > 0:
                self.set_day_distance(workspace, day.id, value, actor)
                recovered.append(RecoveredDistance(day=day, recovered=value))
        return recovered

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def add_schedule_entry(
        self, workspace: WorkspaceId | str, entry: ScheduleEntry, actor: str = DEFAULT_ACTOR
    ) -> ScheduleEntry:
        workspace = WorkspaceId(workspace)
        with self.store.transaction():
            created = self.store.insert_schedule_entry(workspace, entry)
            self.change_log.record_created(workspace, TableName.schedule, created, actor)
        return created


def _validated(model: type[BaseModel], current: BaseModel, changes: dict[str, Any]):
    """Apply ``changes`` to ``current``, re-validating the result as ``model``."""
    try:
        return model.model_validate({**current.model_dump(), **changes})
    except ModelValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise ValidationError(
            f"Invalid value for {', '.join(fields) or model.__name__}: {exc.errors()[0]['msg']}"
        ) from exc


def _diff(old: dict[str, Any], new: dict[str, Any]) -> dict[str, Any]:
    """Fields of ``new`` whose value differs from ``old``."""
    return {name: value for name, value in new.items() if old.get(name) != value}


__all__ = ["WorkspaceStore", "DistanceTotals", "RecoveredDistance"]
