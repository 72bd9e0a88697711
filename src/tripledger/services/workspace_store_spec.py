"""
Tests for the workspace store facade.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from tripledger.errors import LedgerError, NotFoundError, ValidationError
from tripledger.model.budget import (
    Category,
    DistanceDay,
    LineItem,
    Parameters,
    PricingUnit,
    ScheduleEntry,
    SplitRule,
    WorkspaceId,
)
from tripledger.model.change_log import TableName
from tripledger.services.workspace_store import WorkspaceStore
from tripledger.storage.ledger_store import LedgerStore

WS = WorkspaceId.sandbox


@pytest.fixture
def store(tmp_path: Path) -> LedgerStore:
    return LedgerStore(tmp_path / "ledger.db")


@pytest.fixture
def changed() -> list:
    return []


@pytest.fixture
def workspaces(store: LedgerStore, changed: list) -> WorkspaceStore:
    ws = WorkspaceStore(store, on_change=changed.append)
    ws.seed_parameters(WS, Parameters(children_count=10, leader_count=2), "Seeder")
    changed.clear()
    return ws


def _item(**overrides) -> LineItem:
    data = dict(
        category=Category.lodging,
        subcategory="Hostel",
        description="Night 1",
        unit=PricingUnit.person,
        price_per_person=20,
    )
    data.update(overrides)
    return LineItem(**data)


class DescribeWorkspaceStore:
    class DescribeParameters:
        def it_should_require_a_parameters_record(self, workspaces):
            with pytest.raises(NotFoundError):
                workspaces.require_parameters(WorkspaceId.concrete)

        def it_should_update_a_field_and_log_old_and_new(self, workspaces, store, changed):
            workspaces.update_parameter(WS, "children_count", 12, "An")

            assert workspaces.require_parameters(WS).children_count == 12
            [entry] = store.query_changes(workspace=WS, field_name="children_count")
            assert (entry.old(), entry.new(), entry.actor) == (10, 12, "An")
            assert changed == [WS]

        def it_should_not_write_or_notify_when_the_value_is_unchanged(self, workspaces, store, changed):
            before = len(store.query_changes())

            workspaces.update_parameter(WS, "children_count", 10, "An")

            assert len(store.query_changes()) == before
            assert changed == []

        def it_should_reject_an_unknown_field_before_writing(self, workspaces, store):
            before = len(store.query_changes())

            with pytest.raises(ValidationError):
                workspaces.update_parameter(WS, "bus_colour", 1, "An")

            assert len(store.query_changes()) == before

        def it_should_report_a_non_numeric_value_as_a_ledger_error(self, workspaces, store, changed):
            before = len(store.query_changes())

            with pytest.raises(ValidationError) as info:
                workspaces.update_parameter(WS, "children_count", "a dozen", "An")

            assert "children_count" in str(info.value)
            assert isinstance(info.value, LedgerError)
            assert workspaces.require_parameters(WS).children_count == 10
            assert len(store.query_changes()) == before
            assert changed == []

        def it_should_upsert_seed_parameters(self, workspaces, store):
            workspaces.seed_parameters(WS, Parameters(children_count=10, leader_count=3), "An")

            params = workspaces.require_parameters(WS)
            assert params.leader_count == 3
            assert len([e for e in store.query_changes(workspace=WS) if e.field_name]) == 1

        def it_should_keep_workspaces_isolated(self, workspaces):
            workspaces.update_parameter(WS, "children_count", 30, "An")

            assert workspaces.get_parameters(WorkspaceId.sandbox2) is None
            assert workspaces.get_parameters(WorkspaceId.concrete) is None

    class DescribeLineItems:
        def it_should_add_an_item_and_log_its_creation(self, workspaces, store):
            created = workspaces.add_line_item(WS, _item(), "An")

            assert created.id
            [entry] = store.query_changes(table_name=TableName.line_items, record_id=created.id)
            assert entry.is_create
            assert workspaces.resolve_total(created, workspaces.get_parameters(WS)) == 240

        def it_should_reject_a_duplicate_key_without_touching_the_store(self, workspaces, store):
            workspaces.add_line_item(WS, _item(), "An")
            before = len(store.query_changes())

            with patch.object(store, "insert_line_item") as insert:
                with pytest.raises(ValidationError):
                    workspaces.add_line_item(WS, _item(price_per_person=99), "An")
                insert.assert_not_called()

            assert len(store.query_changes()) == before
            assert len(workspaces.get_line_items(WS)) == 1

        def it_should_allow_the_same_key_in_another_workspace(self, workspaces):
            workspaces.add_line_item(WS, _item(), "An")
            workspaces.add_line_item(WorkspaceId.sandbox2, _item(), "An")

            assert len(workspaces.get_line_items(WorkspaceId.sandbox2)) == 1

        def it_should_treat_the_auto_flag_as_part_of_the_key(self, workspaces):
            workspaces.add_line_item(WS, _item(), "An")
            workspaces.add_line_item(WS, _item(auto=True), "An")

            assert len(workspaces.get_line_items(WS)) == 2

        def it_should_reject_a_group_item_split_over_children(self, workspaces):
            with pytest.raises(ValidationError):
                workspaces.add_line_item(
                    WS, _item(unit=PricingUnit.group, split_rule=SplitRule.children), "An"
                )
            assert workspaces.get_line_items(WS) == []

        def it_should_update_fields_and_log_each_change(self, workspaces, store):
            created = workspaces.add_line_item(WS, _item(), "An")

            updated = workspaces.update_line_item(
                WS, created.id, {"quantity": 2, "remarks": "deposit paid", "unit": PricingUnit.person}, "Bo"
            )

            assert updated.quantity == 2
            fields = [e.field_name for e in store.query_changes(record_id=created.id) if e.field_name]
            assert sorted(fields) == ["quantity", "remarks"]

        def it_should_report_a_non_numeric_update_as_a_ledger_error(self, workspaces):
            created = workspaces.add_line_item(WS, _item(), "An")

            with pytest.raises(ValidationError) as info:
                workspaces.update_line_item(WS, created.id, {"quantity": "several"}, "An")

            assert "quantity" in str(info.value)
            assert workspaces.get_line_items(WS)[0].quantity == 1

        def it_should_reject_an_update_that_collides_with_another_item(self, workspaces):
            workspaces.add_line_item(WS, _item(), "An")
            other = workspaces.add_line_item(WS, _item(description="Night 2"), "An")

            with pytest.raises(ValidationError):
                workspaces.update_line_item(WS, other.id, {"description": "Night 1"}, "An")

        def it_should_delete_an_item_and_log_the_record(self, workspaces, store):
            created = workspaces.add_line_item(WS, _item(), "An")

            workspaces.delete_line_item(WS, created.id, "An")

            assert workspaces.get_line_items(WS) == []
            deleted = [e for e in store.query_changes(record_id=created.id) if e.is_delete]
            assert deleted[0].old()["subcategory"] == "Hostel"

        def it_should_raise_not_found_for_an_unknown_item(self, workspaces):
            with pytest.raises(NotFoundError):
                workspaces.delete_line_item(WS, "missing", "An")

    class DescribeDistances:
        def it_should_add_days_and_notify(self, workspaces, changed):
            workspaces.add_distance_day(WS, DistanceDay(day=1, distance=150), "An")

            assert [d.distance for d in workspaces.get_distance_days(WS)] == [150]
            assert changed == [WS]

        def it_should_set_a_day_distance_and_log_it(self, workspaces, store):
            day = workspaces.add_distance_day(WS, DistanceDay(day=1, distance=150), "An")

            workspaces.set_day_distance(WS, day.id, 0, "An")

            [entry] = store.query_changes(record_id=day.id, field_name="distance")
            assert (entry.old(), entry.new()) == (150, 0)

        def it_should_set_the_total_through_the_extra_bucket(self, workspaces):
            for n in range(1, 12):
                workspaces.add_distance_day(WS, DistanceDay(day=n, distance=100), "An")

            totals = workspaces.set_total_distance(WS, 1350, "An")

            assert totals.trip == 1000
            assert totals.extra == 350
            assert totals.grand == 1350

        def it_should_create_a_bucket_day_when_there_are_no_days(self, workspaces):
            totals = workspaces.set_total_distance(WS, 400, "An")

            [day] = workspaces.get_distance_days(WS)
            assert day.day == 11
            assert day.distance == 400
            assert totals.grand == 400

        def it_should_recover_zeroed_days_from_history(self, workspaces):
            kept = workspaces.add_distance_day(WS, DistanceDay(day=1, distance=90), "An")
            zeroed = workspaces.add_distance_day(WS, DistanceDay(day=2, distance=210), "An")
            workspaces.set_day_distance(WS, zeroed.id, 0, "Oops")

            recovered = workspaces.recover_zeroed_distances(WS, "An")

            assert [(r.day.id, r.recovered) for r in recovered] == [(zeroed.id, 210)]
            distances = {d.id: d.distance for d in workspaces.get_distance_days(WS)}
            assert distances == {kept.id: 90, zeroed.id: 210}

    class DescribeSchedule:
        def it_should_add_and_list_schedule_entries(self, workspaces):
            workspaces.add_schedule_entry(
                WS, ScheduleEntry(date="2025-07-02", day="Wed", time="09:00", activity="Hike"), "An"
            )

            [entry] = workspaces.get_schedule(WS)
            assert entry.activity == "Hike"
