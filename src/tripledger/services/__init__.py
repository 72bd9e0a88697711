"""
Service layer for the trip ledger.

This module contains the functional core business logic separated from the
imperative shell (CLI). Services never print or prompt.

Principles:
- No UI framework imports (Rich, Typer)
- All dependencies injected through constructors
- Every call names its workspace explicitly
- Functions return data structures, not void
"""

from tripledger.services.budget_summary_service import (
    BudgetSummary,
    BudgetSummaryService,
    CategoryTotal,
)
from tripledger.services.change_log_service import ChangeLogService
from tripledger.services.promotion_service import PromotionEngine, PromotionResult
from tripledger.services.recalculator import AutoItemRecalculator, RecalculationReport
from tripledger.services.recompute_scheduler import RecomputeScheduler
from tripledger.services.workspace_store import WorkspaceStore

__all__ = [
    "AutoItemRecalculator",
    "BudgetSummary",
    "BudgetSummaryService",
    "CategoryTotal",
    "ChangeLogService",
    "PromotionEngine",
    "PromotionResult",
    "RecalculationReport",
    "RecomputeScheduler",
    "WorkspaceStore",
]
