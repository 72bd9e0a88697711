from __future__ import annotations

"""
Budget models for the trip ledger.

Scope
- Pure Pydantic v2 models for parameters, line items, distance days and schedule
- One set of these records exists per workspace (concrete, sandbox, sandbox2)
- No I/O operations (handled by tripledger.storage)
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from tripledger.errors import ValidationError


class WorkspaceId(StrEnum):
    """The three isolated copies of the budget data."""

    concrete = "concrete"
    sandbox = "sandbox"
    sandbox2 = "sandbox2"


class Category(StrEnum):
    """Line item categories, in display order."""

    lodging = "Lodging"
    transport = "Transport"
    food = "Food"
    special_activities = "Special Activities"
    other = "Other"


class PricingUnit(StrEnum):
    person = "person"
    group = "group"
    other = "other"


class SplitRule(StrEnum):
    """Which participant group(s) bear a line item's cost."""

    everyone = "everyone"
    children = "children"
    leaders = "leaders"
    children_and_leaders = "children_and_leaders"


class Parameters(BaseModel):
    """Trip-wide parameters; exactly one record per workspace.

    Every numeric field is optional. Computations treat None as zero.
    """

    id: str | None = None
    children_count: float | None = None
    leader_count: float | None = None
    asked_price_child: float | None = None
    asked_price_leader: float | None = None
    buffer_percentage: float | None = None
    transport_daily_rate: float | None = None
    transport_free_distance_per_day: float | None = None
    transport_extra_distance_price: float | None = None
    fuel_price: float | None = None
    support_distance: float | None = None
    catering_price_per_day: float | None = None
    catering_days: float | None = None

    @property
    def total_people(self) -> float:
        return (self.children_count or 0) + (self.leader_count or 0)

    def values(self) -> dict[str, float | None]:
        """All parameter values keyed by field name, without the identifier."""
        return self.model_dump(exclude={"id"})


PARAMETER_FIELDS: tuple[str, ...] = tuple(
    name for name in Parameters.model_fields if name != "id"
)


class LineItem(BaseModel):
    """A priced entry in a workspace's budget.

    ``total_override`` is the manually entered total; when set it wins over every
    other field. ``computed_total`` is written only by the auto-item recalculator.
    """

    id: str | None = None
    category: Category
    subcategory: str = Field(min_length=1)
    description: str | None = None
    unit: PricingUnit = PricingUnit.other
    split_rule: SplitRule = SplitRule.everyone
    price_per_person: float | None = None
    price_per_child: float | None = None
    price_per_leader: float | None = None
    quantity: float | None = 1
    total_override: float | None = None
    computed_total: float | None = None
    remarks: str | None = None
    auto: bool = False
    billed_to_transport: bool = False

    @property
    def dedup_key(self) -> tuple[str, str, str | None, bool]:
        """No two items in one workspace may share this key."""
        return (self.category.value, self.subcategory, self.description, self.auto)

    def validate_pricing(self) -> None:
        """Reject split-rule/unit combinations the resolver cannot price.

        Raises:
            ValidationError: a group-priced item split over a subset of participants
        """
        if self.unit == PricingUnit.group and self.split_rule != SplitRule.everyone:
            raise ValidationError(
                f"Unit 'group' can only be split over everyone, not '{self.split_rule.value}' "
                f"({self.category.value} / {self.subcategory})"
            )


LINE_ITEM_FIELDS: tuple[str, ...] = tuple(
    name for name in LineItem.model_fields if name != "id"
)


class DistanceDay(BaseModel):
    """Distance travelled on one day of the trip, ordered by ``day``."""

    id: str | None = None
    day: int = Field(ge=1)
    distance: float | None = 0
    route: str | None = None
    lodging: str | None = None
    activity: str | None = None


class ScheduleEntry(BaseModel):
    """One entry in the day-by-day schedule. Carried along by promotion."""

    id: str | None = None
    date: str
    day: str
    time: str
    activity: str


__all__ = [
    "WorkspaceId",
    "Category",
    "PricingUnit",
    "SplitRule",
    "Parameters",
    "PARAMETER_FIELDS",
    "LineItem",
    "LINE_ITEM_FIELDS",
    "DistanceDay",
    "ScheduleEntry",
]
