from __future__ import annotations

"""
Promote one workspace onto another (e.g. sandbox -> concrete).

The target's line items, distance days and schedule are replaced by copies of
the source's and its parameters are overwritten field by field. Dry-run by
default; --write asks for confirmation unless --yes is given.
"""

import typer

from .util import console, open_store
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError, PartialPromotionError
from tripledger.model.budget import WorkspaceId
from tripledger.services.promotion_service import PromotionEngine, PromotionResult


def _print_plan(result: PromotionResult) -> None:
    console.print(f"[bold]Promotion {result.source.value} -> {result.target.value}[/]")
    console.print(
        f"  line items:    remove {result.removed_line_items}, copy {result.copied_line_items}"
    )
    console.print(
        f"  distance days: remove {result.removed_distance_days}, copy {result.copied_distance_days}"
    )
    console.print(
        f"  schedule:      remove {result.removed_schedule_entries}, copy {result.copied_schedule_entries}"
    )
    if result.parameters_action == "updated":
        console.print(f"  parameters:    update {', '.join(result.changed_parameter_fields)}")
    else:
        console.print(f"  parameters:    {result.parameters_action}")


def run(
    *,
    data_root: DataRoot,
    source: WorkspaceId,
    target: WorkspaceId,
    actor: str,
    yes: bool = False,
    write: bool = False,
) -> int:
    """Preview or perform a promotion.

    Returns:
        Exit code (0 = success or cancelled, 1 = error, 2 = promotion failed)
    """
    try:
        engine = PromotionEngine(open_store(data_root))
        plan = engine.preview(source, target)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    _print_plan(plan)

    if not write:
        console.print("\n[yellow]Dry-run:[/] nothing changed. Use --write to promote")
        return 0

    if not yes:
        confirmed = typer.confirm(
            f"This replaces all data in '{target.value}' with '{source.value}'. Continue?",
            default=False,
        )
        if not confirmed:
            console.print("[yellow]Cancelled[/]")
            return 0

    try:
        engine.promote(source, target, actor)
    except PartialPromotionError as e:
        console.print(f"[bold red]Promotion failed:[/] {e}")
        return 2
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(f"[green]Promoted {source.value} -> {target.value}[/]")
    return 0
