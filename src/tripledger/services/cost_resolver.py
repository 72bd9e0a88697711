"""
Cost resolver - functional core turning a line item into a monetary total.

Every display path, including bulk aggregation, goes through resolve_total()
so totals are never computed twice in two different ways.

Precedence, top to bottom:
1. A manual total override (zero included) is returned verbatim.
2. An auto item returns the total the recalculator last wrote.
3. Otherwise the split rule decides which participants pay, and the pricing
   unit decides whether quantity multiplies in.

Missing numeric inputs count as zero; a missing or zero quantity counts as one.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional

from tripledger.model.budget import Category, LineItem, Parameters, PricingUnit, SplitRule


def _num(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def _quantity(item: LineItem) -> float:
    return float(item.quantity or 1.0)


def _single_group_amount(item: LineItem, price: Optional[float], count: float) -> float:
    """Amount for an item paid by children only or leaders only."""
    if item.unit == PricingUnit.person:
        return _num(price) * count
    return _num(price) * count * _quantity(item)


def resolve_total(item: LineItem, parameters: Optional[Parameters]) -> float:
    """Resolve the total cost of one line item.

    Args:
        item: Line item to price
        parameters: Workspace parameters (None behaves as all-zero)

    Returns:
        Total amount in currency units
    """
    if item.total_override is not None:
        return float(item.total_override)

    if item.auto and item.computed_total is not None:
        return float(item.computed_total)

    params = parameters or Parameters()
    children = _num(params.children_count)
    leaders = _num(params.leader_count)
    split = item.split_rule or SplitRule.everyone

    if split == SplitRule.children_and_leaders:
        quantity = _quantity(item)
        return (
            _num(item.price_per_child) * children * quantity
            + _num(item.price_per_leader) * leaders * quantity
        )
    elif split == SplitRule.children:
        return _single_group_amount(item, item.price_per_child, children)
    elif split == SplitRule.leaders:
        return _single_group_amount(item, item.price_per_leader, leaders)
    elif split == SplitRule.everyone:
        total_people = children + leaders
        if item.unit == PricingUnit.person:
            return _num(item.price_per_person) * total_people
        elif item.unit == PricingUnit.group:
            # Override already handled above; the per-person field is the flat group amount
            return _num(item.price_per_person)
        return _num(item.price_per_person) * total_people * _quantity(item)

    raise ValueError(f"Unhandled split rule: {split!r}")


def total_by_category(
    items: Iterable[LineItem], parameters: Optional[Parameters]
) -> dict[Category, float]:
    """Sum resolved totals per category, every category present (zero if empty)."""
    totals: dict[Category, float] = defaultdict(float)
    for category in Category:
        totals[category] = 0.0
    for item in items:
        totals[item.category] += resolve_total(item, parameters)
    return dict(totals)


def grand_total(items: Iterable[LineItem], parameters: Optional[Parameters]) -> float:
    """Sum of resolved totals across all items."""
    return sum(resolve_total(item, parameters) for item in items)


__all__ = ["resolve_total", "total_by_category", "grand_total"]
