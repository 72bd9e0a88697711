from __future__ import annotations

"""
Budget summary: per-category costs, revenue, profit/loss and estimates.
"""

from rich.table import Table

from .util import console, fmt_amount, open_workspaces
from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import Category, WorkspaceId
from tripledger.services.budget_summary_service import BudgetSummary, BudgetSummaryService


def run(*, data_root: DataRoot, workspace: WorkspaceId, compare: bool = False, actor: str) -> int:
    """Display the dashboard figures of one workspace, or all three side by side.

    Returns:
        Exit code (0 = success)
    """
    try:
        service = BudgetSummaryService(open_workspaces(data_root, actor, recalculate=False))
        summaries = service.compare() if compare else [service.get_summary(workspace)]
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    _display(summaries)

    for summary in summaries:
        if not summary.has_parameters:
            console.print(
                f"[yellow]Workspace '{summary.workspace.value}' has no parameters; "
                "revenue and per-person figures are zero[/]"
            )
    return 0


def _display(summaries: list[BudgetSummary]) -> None:
    table = Table(title="Budget summary", show_lines=False)
    table.add_column("", style="cyan", no_wrap=True)
    for s in summaries:
        table.add_column(s.workspace.value, justify="right")

    def row(label: str, values: list, style: str | None = None) -> None:
        table.add_row(label, *values, style=style)

    for index, cat in enumerate(Category):
        row(cat.value, [f"{s.categories[index].total:,.2f}" for s in summaries])
    table.add_section()
    row("Total cost", [f"{s.total_cost:,.2f}" for s in summaries], style="bold")
    row("Revenue", [f"{s.revenue:,.2f}" for s in summaries])
    row("Profit / loss", [fmt_amount(s.profit_loss) for s in summaries])
    row("Margin %", [f"{s.margin_percent:+.1f}%" for s in summaries])
    table.add_section()
    row("Travellers", [f"{s.travellers:g}" for s in summaries])
    row("Cost per traveller", [f"{s.cost_per_traveller:,.2f}" for s in summaries])
    row("Cost per child after leaders", [f"{s.cost_per_child_after_leaders:,.2f}" for s in summaries])
    table.add_section()
    row("Low (no buffer)", [f"{s.low_estimate:,.2f}" for s in summaries])
    row("High (with buffer)", [f"{s.high_estimate:,.2f}" for s in summaries])
    row("Transport provider total", [f"{s.transport_total:,.2f}" for s in summaries])
    row("Support vehicle, round trip", [f"{s.support_vehicle_round_trip:,.2f}" for s in summaries])

    console.print(table)
