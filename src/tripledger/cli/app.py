from __future__ import annotations

"""
Tripledger CLI Wrapper (Typer + Rich)

Versioned trip budget: three isolated workspaces (concrete, sandbox, sandbox2),
automatic items, distance tracking, promotion and a field-level change log.

All paths are resolved from a single data root:
  --data-dir / TRIPLEDGER_DATA env var / current working directory
"""

from pathlib import Path
from typing import Optional

import typer

from tripledger.config import DEFAULT_ACTOR, DEFAULT_WORKSPACE
from tripledger.data_root import DataRoot
from tripledger.model.budget import PricingUnit, SplitRule, WorkspaceId
from tripledger.model.change_log import TableName

HELP_WRITE = "Persist changes (default: dry-run)"

APP_HELP = "Tripledger CLI (versioned trip budget)"
HELP_WORKSPACE = "Workspace to operate on (concrete, sandbox, sandbox2)"

app = typer.Typer(no_args_is_help=True, add_completion=False, help=APP_HELP)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar="TRIPLEDGER_DATA",
        help="Data root directory (default: current directory)",
    ),
    actor: str = typer.Option(
        DEFAULT_ACTOR,
        "--actor",
        envvar="TRIPLEDGER_ACTOR",
        help="Name recorded in the change log",
    ),
):
    """Tripledger CLI: all paths resolved from a single data root."""
    ctx.ensure_object(dict)
    ctx.obj["data_root"] = DataRoot.resolve(data_dir)
    ctx.obj["actor"] = actor


def _root(ctx: typer.Context) -> DataRoot:
    return ctx.obj["data_root"]


def _actor(ctx: typer.Context) -> str:
    return ctx.obj["actor"]


def _workspace_option() -> WorkspaceId:
    return typer.Option(WorkspaceId(DEFAULT_WORKSPACE), "--workspace", "-w", help=HELP_WORKSPACE)


@app.command()
def init(ctx: typer.Context):
    """Initialize the data root: directories, seed parameters and the ledger store.

    Safe to run on an existing data root: adds columns missing from an older
    store and seeds only workspaces without parameters.

    Examples:
      tripledger --data-dir ~/trip2025 init
      tripledger init
    """
    from tripledger.cli.command import init as cmd_init

    code = cmd_init.run(data_root=_root(ctx), actor=_actor(ctx))
    raise typer.Exit(code=code)


@app.command()
def items(
    ctx: typer.Context,
    workspace: WorkspaceId = _workspace_option(),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only show this category"),
):
    """List line items with their resolved totals."""
    from tripledger.cli.command import items as cmd_items

    code = cmd_items.run(
        data_root=_root(ctx), workspace=workspace, category=category, actor=_actor(ctx)
    )
    raise typer.Exit(code=code)


@app.command("add-item")
def add_item(
    ctx: typer.Context,
    category: str = typer.Option(..., "--category", "-c", help="Category (Lodging, Transport, Food, Special Activities, Other)"),
    subcategory: str = typer.Option(..., "--subcategory", "-s", help="Subcategory label"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Free-text description"),
    unit: PricingUnit = typer.Option(PricingUnit.other, "--unit", help="Pricing unit"),
    split: SplitRule = typer.Option(SplitRule.everyone, "--split", help="Which participants pay"),
    price_per_person: Optional[float] = typer.Option(None, "--price", help="Price per person (or flat group price)"),
    price_per_child: Optional[float] = typer.Option(None, "--price-child", help="Price per child"),
    price_per_leader: Optional[float] = typer.Option(None, "--price-leader", help="Price per leader"),
    quantity: Optional[float] = typer.Option(1, "--quantity", "-q", help="Quantity multiplier"),
    total: Optional[float] = typer.Option(None, "--total", help="Manual total override (wins over everything)"),
    remarks: Optional[str] = typer.Option(None, "--remarks", help="Remarks"),
    billed_to_transport: bool = typer.Option(False, "--billed-to-transport", help="Count towards the transport provider total"),
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Add a manual line item.

    Examples:
      tripledger add-item -c Lodging -s "Campsite" --unit person --price 12.5 -q 9 --write
      tripledger add-item -c Food -s "Snacks" --split children --price-child 3 --write
      tripledger add-item -c Other -s "Insurance" --total 250 -w concrete --write

    Safety: dry-run by default. Use --write to persist changes.
    """
    from tripledger.cli.command import add_item as cmd_add_item

    code = cmd_add_item.run(
        data_root=_root(ctx),
        workspace=workspace,
        category=category,
        subcategory=subcategory,
        description=description,
        unit=unit,
        split_rule=split,
        price_per_person=price_per_person,
        price_per_child=price_per_child,
        price_per_leader=price_per_leader,
        quantity=quantity,
        total_override=total,
        remarks=remarks,
        billed_to_transport=billed_to_transport,
        actor=_actor(ctx),
        write=write,
    )
    raise typer.Exit(code=code)


@app.command("remove-item")
def remove_item(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Line item id (or unique prefix, as shown by 'items')"),
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Remove a line item."""
    from tripledger.cli.command import remove_item as cmd_remove_item

    code = cmd_remove_item.run(
        data_root=_root(ctx), workspace=workspace, item_id=item_id, actor=_actor(ctx), write=write
    )
    raise typer.Exit(code=code)


@app.command("set-param")
def set_param(
    ctx: typer.Context,
    field: str = typer.Argument(..., help="Parameter name (see 'params')"),
    value: str = typer.Argument(..., help="New value, or 'none' to clear"),
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Set a workspace parameter and recompute the auto items.

    Examples:
      tripledger set-param children_count 28 --write
      tripledger set-param fuel_price 1.85 -w sandbox2 --write
    """
    from tripledger.cli.command import set_param as cmd_set_param

    code = cmd_set_param.run(
        data_root=_root(ctx),
        workspace=workspace,
        field=field,
        value=value,
        actor=_actor(ctx),
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def params(
    ctx: typer.Context,
    workspace: WorkspaceId = _workspace_option(),
    compare: bool = typer.Option(False, "--compare", help="Show all workspaces side by side"),
    save: bool = typer.Option(False, "--save", help="Write this workspace's parameters to config/parameters.yml"),
):
    """Show workspace parameters."""
    from tripledger.cli.command import params as cmd_params

    code = cmd_params.run(
        data_root=_root(ctx), workspace=workspace, compare=compare, save=save, actor=_actor(ctx)
    )
    raise typer.Exit(code=code)


@app.command()
def distance(
    ctx: typer.Context,
    add_day: Optional[float] = typer.Option(None, "--add-day", help="Append a day with this distance"),
    set_day: Optional[int] = typer.Option(None, "--set-day", min=1, help="Day number to edit (with --distance)"),
    distance_value: Optional[float] = typer.Option(None, "--distance", help="New distance for --set-day"),
    route: Optional[str] = typer.Option(None, "--route", help="Route label for --add-day"),
    total: Optional[float] = typer.Option(None, "--total", help="Set the total distance (adjusts the extra bucket)"),
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """List per-day distances, or add/edit a day, or set the total distance.

    The first 10 days are trip days; later days form the extra-distance bucket.

    Examples:
      tripledger distance -w sandbox
      tripledger distance --add-day 240 --route "Ghent - Reims" --write
      tripledger distance --set-day 3 --distance 180 --write
      tripledger distance --total 2600 --write
    """
    from tripledger.cli.command import distance as cmd_distance

    code = cmd_distance.run(
        data_root=_root(ctx),
        workspace=workspace,
        add_day=add_day,
        set_day=set_day,
        distance=distance_value,
        route=route,
        total=total,
        actor=_actor(ctx),
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def recalc(
    ctx: typer.Context,
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Recompute the auto items (transport hire, support vehicle, catering)."""
    from tripledger.cli.command import recalc as cmd_recalc

    code = cmd_recalc.run(data_root=_root(ctx), workspace=workspace, actor=_actor(ctx), write=write)
    raise typer.Exit(code=code)


@app.command()
def promote(
    ctx: typer.Context,
    source: WorkspaceId = typer.Argument(..., help="Workspace to copy from"),
    target: WorkspaceId = typer.Argument(..., help="Workspace to overwrite"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Replace all data of TARGET with a copy of SOURCE.

    Examples:
      tripledger promote sandbox concrete
      tripledger promote sandbox concrete --write
      tripledger promote concrete sandbox2 --write --yes

    Safety: dry-run by default; --write asks for confirmation.
    """
    from tripledger.cli.command import promote as cmd_promote

    code = cmd_promote.run(
        data_root=_root(ctx), source=source, target=target, actor=_actor(ctx), yes=yes, write=write
    )
    raise typer.Exit(code=code)


@app.command()
def history(
    ctx: typer.Context,
    workspace: Optional[WorkspaceId] = typer.Option(None, "--workspace", "-w", help="Workspace filter (default: all)"),
    table: Optional[TableName] = typer.Option(None, "--table", "-t", help="Collection filter"),
    record_id: Optional[str] = typer.Option(None, "--record", help="Record id filter"),
    field: Optional[str] = typer.Option(None, "--field", "-f", help="Field filter"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Max entries to show"),
):
    """Show the change log, newest first."""
    from tripledger.cli.command import history as cmd_history

    code = cmd_history.run(
        data_root=_root(ctx),
        workspace=workspace,
        table=table,
        record_id=record_id,
        field=field,
        limit=limit,
        actor=_actor(ctx),
    )
    raise typer.Exit(code=code)


@app.command()
def recover(
    ctx: typer.Context,
    workspace: WorkspaceId = _workspace_option(),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Restore zeroed day distances from the change log (best effort)."""
    from tripledger.cli.command import recover as cmd_recover

    code = cmd_recover.run(data_root=_root(ctx), workspace=workspace, actor=_actor(ctx), write=write)
    raise typer.Exit(code=code)


@app.command()
def summary(
    ctx: typer.Context,
    workspace: WorkspaceId = _workspace_option(),
    compare: bool = typer.Option(False, "--compare", help="Show all workspaces side by side"),
):
    """Show costs per category, revenue, profit/loss and low/high estimates."""
    from tripledger.cli.command import summary as cmd_summary

    code = cmd_summary.run(data_root=_root(ctx), workspace=workspace, compare=compare, actor=_actor(ctx))
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
