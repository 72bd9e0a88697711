"""
Recompute scheduler - coalesces rapid parameter edits into fewer recalculations.

Each workspace has at most one pending recompute task. Scheduling again while a
task is waiting cancels it and starts a fresh delay. The task reads the
workspace state when it fires, so a pass that runs after further edits still
computes from current inputs.

The store is synchronous; the pass runs in a worker thread so the event loop
driving the caller is never blocked.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

from tripledger.config import DEFAULT_ACTOR, DEFAULT_RECOMPUTE_DELAY
from tripledger.errors import StoreError
from tripledger.logger import get_logger
from tripledger.model.budget import WorkspaceId
from tripledger.services.recalculator import RecalculationReport

log = get_logger(__name__)


class Recalculator(Protocol):
    def recalculate(self, workspace: WorkspaceId | str, actor: str = ...) -> RecalculationReport:
        ...


class RecomputeScheduler:
    """Debounced, per-workspace recompute tasks."""

    def __init__(
        self,
        recalculator: Recalculator,
        delay: float = DEFAULT_RECOMPUTE_DELAY,
        actor: str = DEFAULT_ACTOR,
    ):
        self.recalculator = recalculator
        self.delay = delay
        self.actor = actor
        self._pending: dict[WorkspaceId, asyncio.Task] = {}
        self.last_reports: dict[WorkspaceId, RecalculationReport] = {}

    def schedule(self, workspace: WorkspaceId | str, actor: Optional[str] = None) -> asyncio.Task:
        """(Re)start the delayed recompute for ``workspace``.

        Must be called from a running event loop.
        """
        workspace = WorkspaceId(workspace)
        existing = self._pending.get(workspace)
        if existing is not None and not existing.done():
            existing.cancel()

        task = asyncio.get_running_loop().create_task(
            self._run(workspace, actor or self.actor),
            name=f"recompute-{workspace.value}",
        )
        self._pending[workspace] = task
        return task

    def is_pending(self, workspace: WorkspaceId | str) -> bool:
        task = self._pending.get(WorkspaceId(workspace))
        return task is not None and not task.done()

    async def _run(self, workspace: WorkspaceId, actor: str) -> Optional[RecalculationReport]:
        try:
            await asyncio.sleep(self.delay)
            report = await asyncio.to_thread(self.recalculator.recalculate, workspace, actor)
        except StoreError as exc:
            log.error("Recompute of %s failed: %s", workspace, exc)
            return None
        finally:
            if self._pending.get(workspace) is asyncio.current_task():
                del self._pending[workspace]

        self.last_reports[workspace] = report
        return report

    async def flush(self) -> None:
        """Wait until every pending task has fired or been cancelled."""
        while self._pending:
            tasks = list(self._pending.values())
            await asyncio.gather(*tasks, return_exceptions=True)
            for workspace, task in list(self._pending.items()):
                if task.done():
                    del self._pending[workspace]

    def cancel_all(self) -> None:
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()


__all__ = ["RecomputeScheduler"]
