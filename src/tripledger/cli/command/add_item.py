from __future__ import annotations

"""
Add a manual line item to a workspace.
"""

from typing import Optional

from pydantic import ValidationError as ItemValidationError

from .util import console, fmt_amount, open_workspaces, short_id
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import Category, LineItem, PricingUnit, SplitRule, WorkspaceId


def _category(name: str) -> Category:
    for cat in Category:
        if name.lower() in (cat.value.lower(), cat.name):
            return cat
    names = ", ".join(c.value for c in Category)
    raise ValueError(f"Unknown category '{name}' (expected one of: {names})")


def run(
    *,
    data_root: DataRoot,
    workspace: WorkspaceId,
    category: str,
    subcategory: str,
    description: Optional[str] = None,
    unit: PricingUnit = PricingUnit.other,
    split_rule: SplitRule = SplitRule.everyone,
    price_per_person: Optional[float] = None,
    price_per_child: Optional[float] = None,
    price_per_leader: Optional[float] = None,
    quantity: Optional[float] = 1,
    total_override: Optional[float] = None,
    remarks: Optional[str] = None,
    billed_to_transport: bool = False,
    actor: str,
    write: bool = False,
) -> int:
    """Validate and (with --write) insert a line item.

    The item is rejected before anything is written when another item in the
    workspace has the same category, subcategory, description and auto flag,
    or when a group-priced item is split over a subset of participants.

    Returns:
        Exit code (0 = success, 1 = rejected)
    """
    try:
        item = LineItem(
            category=_category(category),
            subcategory=subcategory,
            description=description,
            unit=unit,
            split_rule=split_rule,
            price_per_person=price_per_person,
            price_per_child=price_per_child,
            price_per_leader=price_per_leader,
            quantity=quantity,
            total_override=total_override,
            remarks=remarks,
            billed_to_transport=billed_to_transport,
        )
    except (ValueError, ItemValidationError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    try:
        workspaces = open_workspaces(data_root, actor)
        parameters = workspaces.get_parameters(workspace)
        amount = workspaces.resolve_total(item, parameters)

        if not write:
            item.validate_pricing()
            console.print(
                f"[yellow]Dry-run:[/] would add {item.category.value} / {item.subcategory} "
                f"to {workspace.value} resolving to {amount:,.2f}"
            )
            console.print("[dim]Use --write to persist[/dim]")
            return 0

        created = workspaces.add_line_item(workspace, item, actor)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(
        f"[green]Added[/] {created.category.value} / {created.subcategory} "
        f"[dim]({short_id(created.id)})[/dim] to {workspace.value}: ",
        fmt_amount(amount),
    )
    return 0
