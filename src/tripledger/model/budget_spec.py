from __future__ import annotations

"""
Tests for budget models.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from tripledger.errors import ValidationError
from tripledger.model.budget import (
    LINE_ITEM_FIELDS,
    PARAMETER_FIELDS,
    Category,
    DistanceDay,
    LineItem,
    Parameters,
    PricingUnit,
    SplitRule,
    WorkspaceId,
)


class DescribeWorkspaceId:
    def it_should_have_three_workspaces(self):
        assert [w.value for w in WorkspaceId] == ["concrete", "sandbox", "sandbox2"]


class DescribeParameters:
    def it_should_default_every_field_to_none(self):
        params = Parameters()

        assert all(v is None for v in params.values().values())
        assert params.total_people == 0

    def it_should_count_children_and_leaders(self):
        assert Parameters(children_count=18, leader_count=4).total_people == 22

    def it_should_list_fields_without_the_id(self):
        assert "id" not in PARAMETER_FIELDS
        assert "catering_days" in PARAMETER_FIELDS


class DescribeLineItem:
    def it_should_default_to_quantity_one_split_over_everyone(self):
        item = LineItem(category=Category.food, subcategory="Snacks")

        assert item.quantity == 1
        assert item.split_rule == SplitRule.everyone
        assert item.unit == PricingUnit.other
        assert not item.auto

    def it_should_require_a_subcategory(self):
        with pytest.raises(PydanticValidationError):
            LineItem(category=Category.food, subcategory="")

    def it_should_build_the_dedup_key_from_category_subcategory_description_and_auto(self):
        item = LineItem(category=Category.lodging, subcategory="Hostel", description="Night 1", auto=True)

        assert item.dedup_key == ("Lodging", "Hostel", "Night 1", True)

    def it_should_reject_group_unit_with_a_partial_split(self):
        item = LineItem(
            category=Category.food,
            subcategory="Cook",
            unit=PricingUnit.group,
            split_rule=SplitRule.leaders,
        )

        with pytest.raises(ValidationError):
            item.validate_pricing()

    def it_should_accept_group_unit_split_over_everyone(self):
        LineItem(category=Category.food, subcategory="Cook", unit=PricingUnit.group).validate_pricing()

    def it_should_list_editable_fields(self):
        assert "id" not in LINE_ITEM_FIELDS
        assert "total_override" in LINE_ITEM_FIELDS


class DescribeDistanceDay:
    def it_should_reject_a_day_number_below_one(self):
        with pytest.raises(PydanticValidationError):
            DistanceDay(day=0)
