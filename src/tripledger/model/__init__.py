from .budget import (
    LINE_ITEM_FIELDS,
    PARAMETER_FIELDS,
    Category,
    DistanceDay,
    LineItem,
    Parameters,
    PricingUnit,
    ScheduleEntry,
    SplitRule,
    WorkspaceId,
)
from .change_log import ChangeLogEntry, TableName, serialize_value

__all__ = [
    # budget models
    "Category",
    "DistanceDay",
    "LineItem",
    "Parameters",
    "PricingUnit",
    "ScheduleEntry",
    "SplitRule",
    "WorkspaceId",
    "LINE_ITEM_FIELDS",
    "PARAMETER_FIELDS",
    # change log
    "ChangeLogEntry",
    "TableName",
    "serialize_value",
]
