"""
Automatic item recalculator - keeps machine-maintained line items consistent.

Three auto items are derived from the workspace parameters and distance days:
- Transport hire: daily rate x billed days, plus the extra-distance surcharge
- Support vehicle: support distance x fuel price (single leg)
- Catering: price per day x catering days x (children + leaders); the item's
  quantity mirrors the number of catering days

A pass always reads the current state of the workspace, never a captured copy,
so a stale pass firing after further edits still converges. Only fields whose
value actually changes are written and logged, which makes a second pass with
unchanged inputs a no-op. A store failure on one item is logged and does not
stop the remaining items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tripledger.config import CATERING, DEFAULT_ACTOR, SUPPORT_VEHICLE, TRANSPORT_HIRE
from tripledger.errors import StoreError
from tripledger.logger import get_logger
from tripledger.model.budget import (
    Category,
    DistanceDay,
    LineItem,
    Parameters,
    PricingUnit,
    SplitRule,
    WorkspaceId,
)
from tripledger.model.change_log import TableName
from tripledger.services.change_log_service import ChangeLogService
from tripledger.services.distance_aggregator import transport_cost
from tripledger.storage.ledger_store import LedgerStore

log = get_logger(__name__)

AUTO_ITEM_TEMPLATES: dict[str, LineItem] = {
    TRANSPORT_HIRE: LineItem(
        category=Category.transport,
        subcategory=TRANSPORT_HIRE,
        unit=PricingUnit.group,
        split_rule=SplitRule.everyone,
        auto=True,
    ),
    SUPPORT_VEHICLE: LineItem(
        category=Category.transport,
        subcategory=SUPPORT_VEHICLE,
        unit=PricingUnit.group,
        split_rule=SplitRule.everyone,
        auto=True,
    ),
    CATERING: LineItem(
        category=Category.food,
        subcategory=CATERING,
        unit=PricingUnit.other,
        split_rule=SplitRule.everyone,
        auto=True,
    ),
}


@dataclass
class AutoTarget:
    """Values an auto item should hold."""

    total: float
    quantity: Optional[float] = None


@dataclass
class RecalculationReport:
    """Outcome of one recalculation pass."""

    workspace: WorkspaceId
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failed and self.skipped_reason is None

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated)


def compute_targets(
    parameters: Parameters, days: list[DistanceDay]
) -> dict[str, AutoTarget]:
    """Pure computation of every auto item's target values."""
    fuel = (parameters.support_distance or 0.0) * (parameters.fuel_price or 0.0)
    catering = (
        (parameters.catering_price_per_day or 0.0)
        * (parameters.catering_days or 0.0)
        * parameters.total_people
    )
    return {
        TRANSPORT_HIRE: AutoTarget(total=transport_cost(parameters, days).total),
        SUPPORT_VEHICLE: AutoTarget(total=fuel),
        CATERING: AutoTarget(total=catering, quantity=parameters.catering_days),
    }


def find_auto_item(items: list[LineItem], name: str) -> Optional[LineItem]:
    template = AUTO_ITEM_TEMPLATES[name]
    for item in items:
        if item.auto and item.subcategory == name and item.category == template.category:
            return item
    return None


class AutoItemRecalculator:
    """Refreshes the auto items of a workspace from its current inputs."""

    def __init__(
        self,
        store: LedgerStore,
        change_log: Optional[ChangeLogService] = None,
        create_missing: bool = True,
    ):
        self.store = store
        self.change_log = change_log or ChangeLogService(store)
        self.create_missing = create_missing

    def recalculate(
        self, workspace: WorkspaceId | str, actor: str = DEFAULT_ACTOR
    ) -> RecalculationReport:
        """Run one pass over the auto items of ``workspace``.

        Raises:
            StoreError: if the inputs themselves cannot be read
        """
        workspace = WorkspaceId(workspace)
        report = RecalculationReport(workspace=workspace)

        parameters = self.store.get_parameters(workspace)
        if parameters is None:
            report.skipped_reason = f"No parameters in workspace '{workspace}'"
            log.warning("Skipping auto item recalculation: %s", report.skipped_reason)
            return report

        days = self.store.list_distance_days(workspace)
        items = self.store.list_line_items(workspace)

        for name, target in compute_targets(parameters, days).items():
            try:
                self._apply(workspace, name, target, items, actor, report)
            except StoreError as exc:
                log.error("Failed to recalculate '%s' in %s: %s", name, workspace, exc)
                report.failed[name] = str(exc)

        return report

    def _apply(
        self,
        workspace: WorkspaceId,
        name: str,
        target: AutoTarget,
        items: list[LineItem],
        actor: str,
        report: RecalculationReport,
    ) -> None:
        item = find_auto_item(items, name)

        if item is None:
            if not self.create_missing:
                return
            update = {"computed_total": target.total}
            if target.quantity is not None:
                update["quantity"] = target.quantity
            with self.store.transaction():
                created = self.store.insert_line_item(
                    workspace, AUTO_ITEM_TEMPLATES[name].model_copy(update=update)
                )
                self.change_log.record_created(workspace, TableName.line_items, created, actor)
            report.created.append(name)
            return

        changes: dict[str, float] = {}
        if item.computed_total != target.total:
            changes["computed_total"] = target.total
        if target.quantity is not None and item.quantity != target.quantity:
            changes["quantity"] = target.quantity

        if not changes:
            report.unchanged.append(name)
            return

        with self.store.transaction():
            self.store.update_line_item(workspace, item.id, changes)
            self.change_log.record_changes(
                workspace,
                TableName.line_items,
                item.id,
                [(f, getattr(item, f), value) for f, value in changes.items()],
                actor,
            )
        report.updated.append(name)


__all__ = [
    "AUTO_ITEM_TEMPLATES",
    "AutoTarget",
    "RecalculationReport",
    "AutoItemRecalculator",
    "compute_targets",
    "find_auto_item",
]
