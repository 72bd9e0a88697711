from __future__ import annotations

import asyncio
import threading

from tripledger.errors import StoreError
from tripledger.model.budget import WorkspaceId
from tripledger.services.recalculator import RecalculationReport
from tripledger.services.recompute_scheduler import RecomputeScheduler


class FakeRecalculator:
    """Counts passes and records the input value visible at fire time."""

    def __init__(self, fail: bool = False):
        self.calls: list[tuple[WorkspaceId, str]] = []
        self.seen: list[int] = []
        self.current_input = 0
        self.fail = fail
        self._lock = threading.Lock()

    def recalculate(self, workspace, actor="Unknown"):
        with self._lock:
            self.calls.append((WorkspaceId(workspace), actor))
            self.seen.append(self.current_input)
        if self.fail:
            raise StoreError("store offline")
        return RecalculationReport(workspace=WorkspaceId(workspace))


class DescribeRecomputeScheduler:
    def it_should_coalesce_rapid_edits_into_one_pass(self):
        fake = FakeRecalculator()
        scheduler = RecomputeScheduler(fake, delay=0.05)

        async def scenario():
            for _ in range(5):
                scheduler.schedule(WorkspaceId.sandbox)
                await asyncio.sleep(0.005)
            await scheduler.flush()

        asyncio.run(scenario())

        assert len(fake.calls) == 1
        assert WorkspaceId.sandbox in scheduler.last_reports

    def it_should_keep_workspaces_independent(self):
        fake = FakeRecalculator()
        scheduler = RecomputeScheduler(fake, delay=0.02)

        async def scenario():
            scheduler.schedule(WorkspaceId.sandbox)
            scheduler.schedule(WorkspaceId.sandbox2)
            scheduler.schedule(WorkspaceId.sandbox)
            await scheduler.flush()

        asyncio.run(scenario())

        assert sorted(ws for ws, _ in fake.calls) == [WorkspaceId.sandbox, WorkspaceId.sandbox2]

    def it_should_read_inputs_at_fire_time(self):
        fake = FakeRecalculator()
        scheduler = RecomputeScheduler(fake, delay=0.02)

        async def scenario():
            fake.current_input = 1
            scheduler.schedule(WorkspaceId.concrete)
            fake.current_input = 2
            await scheduler.flush()

        asyncio.run(scenario())

        assert fake.seen == [2]

    def it_should_pass_the_actor_through(self):
        fake = FakeRecalculator()
        scheduler = RecomputeScheduler(fake, delay=0, actor="Default")

        async def scenario():
            scheduler.schedule(WorkspaceId.sandbox, actor="An")
            await scheduler.flush()

        asyncio.run(scenario())

        assert fake.calls == [(WorkspaceId.sandbox, "An")]

    def it_should_report_pending_tasks(self):
        scheduler = RecomputeScheduler(FakeRecalculator(), delay=0.02)

        async def scenario():
            scheduler.schedule(WorkspaceId.sandbox)
            pending = scheduler.is_pending(WorkspaceId.sandbox)
            await scheduler.flush()
            return pending, scheduler.is_pending(WorkspaceId.sandbox)

        assert asyncio.run(scenario()) == (True, False)

    def it_should_not_run_cancelled_tasks(self):
        fake = FakeRecalculator()
        scheduler = RecomputeScheduler(fake, delay=0.05)

        async def scenario():
            scheduler.schedule(WorkspaceId.sandbox)
            scheduler.cancel_all()
            await asyncio.sleep(0.1)

        asyncio.run(scenario())

        assert fake.calls == []

    def it_should_survive_a_store_failure(self):
        fake = FakeRecalculator(fail=True)
        scheduler = RecomputeScheduler(fake, delay=0)

        async def scenario():
            scheduler.schedule(WorkspaceId.sandbox)
            await scheduler.flush()

        asyncio.run(scenario())

        assert len(fake.calls) == 1
        assert WorkspaceId.sandbox not in scheduler.last_reports
