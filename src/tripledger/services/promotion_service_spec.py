"""
Tests for workspace promotion.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from tripledger.errors import NotFoundError, PartialPromotionError, StoreError, ValidationError
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
from tripledger.services.promotion_service import PromotionEngine
from tripledger.storage.ledger_store import LedgerStore

SANDBOX = WorkspaceId.sandbox
CONCRETE = WorkspaceId.concrete


def _content(items: list[LineItem]) -> list[dict]:
    return sorted(
        (i.model_dump(exclude={"id"}, mode="json") for i in items),
        key=lambda d: (d["category"], d["subcategory"], d["description"] or ""),
    )


@pytest.fixture
def store(tmp_path: Path) -> LedgerStore:
    store = LedgerStore(tmp_path / "ledger.db")

    store.insert_parameters(
        SANDBOX, Parameters(children_count=24, leader_count=6, fuel_price=1.9, buffer_percentage=5)
    )
    store.insert_line_item(
        SANDBOX,
        LineItem(
            category=Category.lodging,
            subcategory="Campsite",
            split_rule=SplitRule.children_and_leaders,
            price_per_child=12,
            price_per_leader=15,
            quantity=8,
        ),
    )
    store.insert_line_item(
        SANDBOX,
        LineItem(
            category=Category.transport,
            subcategory="Transport hire",
            unit=PricingUnit.group,
            auto=True,
            computed_total=4200,
        ),
    )
    store.insert_line_item(
        SANDBOX,
        LineItem(category=Category.other, subcategory="Insurance", total_override=0),
    )
    for n, d in enumerate([210, 180, 95], start=1):
        store.insert_distance_day(SANDBOX, DistanceDay(day=n, distance=d, route=f"leg {n}"))
    store.insert_schedule_entry(
        SANDBOX, ScheduleEntry(date="2025-07-01", day="Tue", time="08:00", activity="Departure")
    )

    store.insert_parameters(CONCRETE, Parameters(children_count=20, leader_count=6))
    store.insert_line_item(CONCRETE, LineItem(category=Category.food, subcategory="Old snacks"))
    store.insert_distance_day(CONCRETE, DistanceDay(day=1, distance=999))
    return store


@pytest.fixture
def engine(store: LedgerStore) -> PromotionEngine:
    return PromotionEngine(store)


class DescribePromotionEngine:
    def it_should_copy_line_items_structurally_with_new_ids(self, store, engine):
        engine.promote(SANDBOX, CONCRETE, "An")

        source = store.list_line_items(SANDBOX)
        target = store.list_line_items(CONCRETE)
        assert _content(target) == _content(source)
        assert not {i.id for i in source} & {i.id for i in target}

    def it_should_copy_distance_days_and_schedule(self, store, engine):
        engine.promote(SANDBOX, CONCRETE, "An")

        assert [(d.day, d.distance, d.route) for d in store.list_distance_days(CONCRETE)] == [
            (1, 210, "leg 1"),
            (2, 180, "leg 2"),
            (3, 95, "leg 3"),
        ]
        assert [e.activity for e in store.list_schedule(CONCRETE)] == ["Departure"]

    def it_should_update_target_parameters_in_place(self, store, engine):
        target_id = store.get_parameters(CONCRETE).id

        result = engine.promote(SANDBOX, CONCRETE, "An")

        params = store.get_parameters(CONCRETE)
        assert params.id == target_id
        assert params.values() == store.get_parameters(SANDBOX).values()
        assert result.parameters_action == "updated"
        assert sorted(result.changed_parameter_fields) == ["buffer_percentage", "children_count", "fuel_price"]

    def it_should_insert_parameters_when_the_target_has_none(self, store, engine):
        result = engine.promote(SANDBOX, WorkspaceId.sandbox2, "An")

        assert result.parameters_action == "inserted"
        assert store.get_parameters(WorkspaceId.sandbox2).values() == store.get_parameters(SANDBOX).values()

    def it_should_leave_the_source_untouched(self, store, engine):
        before = _content(store.list_line_items(SANDBOX))

        engine.promote(SANDBOX, CONCRETE, "An")

        assert _content(store.list_line_items(SANDBOX)) == before

    def it_should_log_deletions_insertions_and_parameter_changes(self, store, engine):
        engine.promote(SANDBOX, CONCRETE, "An")

        entries = store.query_changes(workspace=CONCRETE)
        deleted = [e for e in entries if e.is_delete]
        created = [e for e in entries if e.is_create]
        param_changes = [e for e in entries if e.table_name == TableName.parameters]

        assert len(deleted) == 2
        assert len(created) == 3 + 3 + 1
        assert {e.field_name for e in param_changes} == {"buffer_percentage", "children_count", "fuel_price"}
        assert all(e.actor == "An" for e in entries)

    def it_should_report_counts(self, engine):
        result = engine.promote(SANDBOX, CONCRETE, "An")

        assert result.written
        assert (result.copied_line_items, result.removed_line_items) == (3, 1)
        assert (result.copied_distance_days, result.removed_distance_days) == (3, 1)
        assert result.copied_schedule_entries == 1

    def it_should_preview_without_writing(self, store, engine):
        result = engine.preview(SANDBOX, CONCRETE)

        assert not result.written
        assert result.copied_line_items == 3
        assert [i.subcategory for i in store.list_line_items(CONCRETE)] == ["Old snacks"]

    def it_should_reject_promoting_onto_itself(self, engine):
        with pytest.raises(ValidationError):
            engine.promote(SANDBOX, SANDBOX, "An")

    def it_should_require_source_parameters(self, engine):
        with pytest.raises(NotFoundError):
            engine.promote(WorkspaceId.sandbox2, CONCRETE, "An")

    class DescribeFailures:
        def it_should_roll_back_when_writing_fails(self, store, engine):
            before_items = _content(store.list_line_items(CONCRETE))
            before_log = len(store.query_changes())

            with patch.object(store, "insert_distance_day", side_effect=StoreError("disk full")):
                with pytest.raises(PartialPromotionError) as info:
                    engine.promote(SANDBOX, CONCRETE, "An")

            assert info.value.stage == "write"
            assert info.value.rolled_back
            assert "writing" in str(info.value)
            assert _content(store.list_line_items(CONCRETE)) == before_items
            assert [d.distance for d in store.list_distance_days(CONCRETE)] == [999]
            assert store.get_parameters(CONCRETE).children_count == 20
            assert len(store.query_changes()) == before_log

        def it_should_name_the_clear_stage_when_clearing_fails(self, store, engine):
            with patch.object(store, "clear_distance_days", side_effect=StoreError("locked")):
                with pytest.raises(PartialPromotionError) as info:
                    engine.promote(SANDBOX, CONCRETE, "An")

            assert info.value.stage == "clear"
            assert "clearing" in str(info.value)
            assert [i.subcategory for i in store.list_line_items(CONCRETE)] == ["Old snacks"]

        def it_should_surface_a_partial_failure_distinctly_from_a_store_error(self, store, engine):
            with patch.object(store, "insert_schedule_entry", side_effect=StoreError("boom")):
                with pytest.raises(PartialPromotionError) as info:
                    engine.promote(SANDBOX, CONCRETE, "An")

            assert not isinstance(info.value, StoreError)
            assert isinstance(info.value.cause, StoreError)
