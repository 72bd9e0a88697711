"""
Distance aggregation - functional core for per-day distances and transport cost.

The first TRIP_DAY_LIMIT days (by sequence) are trip days. Any day beyond that
is folded into one "extra distance" bucket that only feeds cost aggregation.
Setting the grand total is translated back into a write on that bucket so the
per-day figures are never lost.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from tripledger.config import TRIP_DAY_LIMIT
from tripledger.model.budget import DistanceDay, Parameters


def _ordered(days: Sequence[DistanceDay]) -> list[DistanceDay]:
    return sorted(days, key=lambda d: d.day)


def _distance(day: DistanceDay) -> float:
    return float(day.distance) if day.distance is not None else 0.0


def trip_days(days: Sequence[DistanceDay]) -> int:
    """Number of days billed as trip days (capped at the trip-day limit)."""
    return min(TRIP_DAY_LIMIT, len(days))


def trip_distance(days: Sequence[DistanceDay]) -> float:
    """Sum of distances over the first TRIP_DAY_LIMIT days by sequence."""
    return sum(_distance(d) for d in _ordered(days)[:TRIP_DAY_LIMIT])


def extra_distance(days: Sequence[DistanceDay]) -> float:
    """Sum of distances over every day beyond the trip-day limit."""
    return sum(_distance(d) for d in _ordered(days)[TRIP_DAY_LIMIT:])


def total_distance(days: Sequence[DistanceDay]) -> float:
    return trip_distance(days) + extra_distance(days)


@dataclass
class TransportCost:
    """Breakdown of the tiered transport hire cost."""

    billed_days: int
    total_distance: float
    free_distance: Optional[float]  # None when every unit of distance is billed
    billable_distance: float
    fixed: float
    surcharge: float

    @property
    def total(self) -> float:
        return self.fixed + self.surcharge


def transport_cost(parameters: Optional[Parameters], days: Sequence[DistanceDay]) -> TransportCost:
    """Tiered transport hire cost.

    fixed = daily rate x billed days. With no free distance per day, all
    distance is billed at the extra-unit price; otherwise only the distance
    beyond (free per day x billed days), clamped at zero.
    """
    params = parameters or Parameters()
    billed_days = trip_days(days)
    distance = total_distance(days)
    daily_rate = params.transport_daily_rate or 0.0
    extra_price = params.transport_extra_distance_price or 0.0
    free_per_day = params.transport_free_distance_per_day

    if not free_per_day:
        free = None
        billable = distance
    else:
        free = free_per_day * billed_days
        billable = max(0.0, distance - free)

    return TransportCost(
        billed_days=billed_days,
        total_distance=distance,
        free_distance=free,
        billable_distance=billable,
        fixed=daily_rate * billed_days,
        surcharge=billable * extra_price,
    )


@dataclass
class GrandTotalWrite:
    """Where and what to write when the grand total distance is set directly."""

    day: Optional[DistanceDay]  # None: no day exists, a bucket day must be created
    new_distance: float
    create_day_number: Optional[int] = None


def plan_grand_total_write(days: Sequence[DistanceDay], new_total: float) -> GrandTotalWrite:
    """Translate a new grand total into a single write on the extra bucket.

    The extra amount is max(0, new_total - trip distance). It is written to the
    first day beyond the trip-day limit; with fewer days than that it goes to
    the last existing day; with no days at all a bucket day is created just past
    the limit.
    """
    ordered = _ordered(days)
    new_extra = max(0.0, float(new_total) - trip_distance(ordered))

    if len(ordered) > TRIP_DAY_LIMIT:
        return GrandTotalWrite(day=ordered[TRIP_DAY_LIMIT], new_distance=new_extra)
    if ordered:
        return GrandTotalWrite(day=ordered[-1], new_distance=new_extra)
    return GrandTotalWrite(day=None, new_distance=new_extra, create_day_number=TRIP_DAY_LIMIT + 1)


__all__ = [
    "trip_days",
    "trip_distance",
    "extra_distance",
    "total_distance",
    "TransportCost",
    "transport_cost",
    "GrandTotalWrite",
    "plan_grand_total_write",
]
