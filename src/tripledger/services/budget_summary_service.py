from __future__ import annotations

"""
Budget Summary Service - Business logic for the workspace dashboard figures

Aggregates resolved line item totals per category and derives revenue,
profit/loss, margin and per-traveller figures from the workspace parameters.
All totals go through the cost resolver.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from tripledger.model.budget import Category, LineItem, Parameters, WorkspaceId
from tripledger.services.cost_resolver import resolve_total
from tripledger.services.workspace_store import WorkspaceStore


@dataclass
class CategoryTotal:
    """Resolved cost of one category."""
    category: Category
    total: float
    item_count: int


@dataclass
class BudgetSummary:
    """Dashboard figures of one workspace."""
    workspace: WorkspaceId
    categories: List[CategoryTotal]
    total_cost: float
    revenue: float
    profit_loss: float
    margin_percent: float
    cost_per_traveller: float
    cost_per_child_after_leaders: float
    low_estimate: float
    high_estimate: float
    transport_total: float
    support_vehicle_round_trip: float
    travellers: float
    has_parameters: bool = True
    transport_items: List[str] = field(default_factory=list)

    @property
    def is_loss(self) -> bool:
        return self.profit_loss < 0


def is_transport_cost(item: LineItem) -> bool:
    """Auto transport items plus manual items billed to the transport provider."""
    if item.auto:
        return item.category == Category.transport
    return item.billed_to_transport


def summarize(
    workspace: WorkspaceId | str,
    items: List[LineItem],
    parameters: Optional[Parameters],
) -> BudgetSummary:
    """
    Compute the dashboard figures from already-loaded workspace data.

    Args:
        workspace: Workspace the data belongs to
        items: Line items of the workspace
        parameters: Parameters record (None treated as all-empty)

    Returns:
        BudgetSummary object
    """
    params = parameters or Parameters()

    per_category: Dict[Category, float] = {c: 0.0 for c in Category}
    counts: Dict[Category, int] = {c: 0 for c in Category}
    transport_total = 0.0
    transport_items: List[str] = []

    for item in items:
        amount = resolve_total(item, params)
        per_category[item.category] += amount
        counts[item.category] += 1
        if is_transport_cost(item):
            transport_total += amount
            transport_items.append(item.subcategory)

    total_cost = sum(per_category.values())

    children = params.children_count or 0
    leaders = params.leader_count or 0
    travellers = params.total_people
    leader_contribution = (params.asked_price_leader or 0) * leaders
    revenue = (params.asked_price_child or 0) * children + leader_contribution
    profit_loss = revenue - total_cost
    margin = (profit_loss / revenue * 100) if revenue > 0 else 0.0

    buffer = params.buffer_percentage or 0

    # The summary shows the support vehicle as a round trip; the auto item
    # itself is priced on a single leg.
    round_trip = (params.support_distance or 0) * (params.fuel_price or 0) * 2

    return BudgetSummary(
        workspace=WorkspaceId(workspace),
        categories=[CategoryTotal(c, per_category[c], counts[c]) for c in Category],
        total_cost=total_cost,
        revenue=revenue,
        profit_loss=profit_loss,
        margin_percent=margin,
        cost_per_traveller=total_cost / travellers if travellers > 0 else 0.0,
        cost_per_child_after_leaders=(
            (total_cost - leader_contribution) / children if children > 0 else 0.0
        ),
        low_estimate=total_cost,
        high_estimate=total_cost * (1 + buffer / 100),
        transport_total=transport_total,
        support_vehicle_round_trip=round_trip,
        travellers=travellers,
        has_parameters=parameters is not None,
        transport_items=transport_items,
    )


class BudgetSummaryService:
    """Service for the per-workspace budget overview."""

    def __init__(self, workspaces: WorkspaceStore):
        self.workspaces = workspaces

    def get_summary(self, workspace: WorkspaceId | str) -> BudgetSummary:
        return summarize(
            workspace,
            self.workspaces.get_line_items(workspace),
            self.workspaces.get_parameters(workspace),
        )

    def compare(self, *workspaces: WorkspaceId | str) -> List[BudgetSummary]:
        """Summaries of several workspaces side by side (e.g. concrete vs sandbox)."""
        return [self.get_summary(ws) for ws in workspaces or tuple(WorkspaceId)]


__all__ = [
    "BudgetSummary",
    "BudgetSummaryService",
    "CategoryTotal",
    "is_transport_cost",
    "summarize",
]
