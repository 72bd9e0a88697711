"""
Tests for change log models.
"""

from datetime import datetime

from tripledger.model.budget import Category, LineItem, WorkspaceId
from tripledger.model.change_log import ChangeLogEntry, TableName, serialize_value


class DescribeSerializeValue:
    def it_should_keep_none_as_none(self):
        assert serialize_value(None) is None

    def it_should_serialize_numbers_and_strings_as_json(self):
        assert serialize_value(12.5) == "12.5"
        assert serialize_value("Reims") == '"Reims"'

    def it_should_serialize_whole_records(self):
        text = serialize_value(LineItem(category=Category.other, subcategory="Insurance"))

        assert '"subcategory":"Insurance"' in text


class DescribeChangeLogEntry:
    def it_should_assign_an_id_and_timestamp(self):
        entry = ChangeLogEntry(
            workspace=WorkspaceId.sandbox,
            table_name=TableName.parameters,
            record_id="p1",
            field_name="fuel_price",
            old_value="1.7",
            new_value="1.9",
            actor="An",
        )

        assert entry.id
        assert isinstance(entry.changed_at, datetime)
        assert entry.old() == 1.7
        assert entry.new() == 1.9
        assert not entry.is_create and not entry.is_delete

    def it_should_parse_an_iso_timestamp(self):
        entry = ChangeLogEntry.model_validate(
            {
                "workspace": "concrete",
                "table_name": "distance_days",
                "record_id": "d1",
                "actor": "An",
                "changed_at": "2025-05-01T10:30:00",
                "new_value": '{"day": 1}',
            }
        )

        assert entry.changed_at == datetime(2025, 5, 1, 10, 30)
        assert entry.is_create
        assert entry.new() == {"day": 1}

    def it_should_serialize_the_timestamp_as_iso(self):
        entry = ChangeLogEntry(
            workspace=WorkspaceId.sandbox2,
            table_name=TableName.schedule,
            record_id="s1",
            actor="An",
            changed_at=datetime(2025, 5, 1, 10, 30),
        )

        assert entry.model_dump()["changed_at"] == "2025-05-01T10:30:00"
