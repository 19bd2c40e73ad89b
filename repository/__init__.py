"""
Repository boundary for the schedule engine.

Raw, string-keyed records from the external table service are converted to
typed models here; nothing past this package sees an untyped record.
"""

from .base import ScheduleItemFilter, ScheduleRepository
from .field_mapping import (
    ALLOCATION_FIELD_MAP,
    RESOURCE_FIELD_MAP,
    SCHEDULE_FIELD_MAP,
    STATUS_LABELS,
    allocation_from_record,
    resource_from_record,
    schedule_item_from_record,
)
from .records import RecordScheduleRepository

__all__ = [
    "ScheduleItemFilter",
    "ScheduleRepository",
    "RecordScheduleRepository",
    "ALLOCATION_FIELD_MAP",
    "RESOURCE_FIELD_MAP",
    "SCHEDULE_FIELD_MAP",
    "STATUS_LABELS",
    "allocation_from_record",
    "resource_from_record",
    "schedule_item_from_record",
]
