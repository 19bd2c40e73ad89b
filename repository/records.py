"""
In-memory repository over raw table records.

Records use the external service's shape, {"record_id": ..., "fields": {...}},
and are converted to typed models once, at construction.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from models import Allocation, Resource, ResourceKind, ScheduleItem
from schedule_engine.errors import RepositoryError, ScopeNotFoundError
from .base import ScheduleItemFilter, ScheduleRepository
from .field_mapping import (
    allocation_from_record,
    resource_from_record,
    schedule_item_from_record,
)

logger = logging.getLogger(__name__)


class RecordScheduleRepository(ScheduleRepository):
    """ScheduleRepository backed by lists of raw records."""

    def __init__(
        self,
        schedule_records: List[Dict[str, Any]],
        resource_records: Optional[List[Dict[str, Any]]] = None,
        allocation_records: Optional[List[Dict[str, Any]]] = None,
        default_resource_kind: Optional[ResourceKind] = None
    ):
        self.items: List[ScheduleItem] = [schedule_item_from_record(r) for r in schedule_records]
        self.resources: Dict[str, Resource] = {}
        for record in resource_records or []:
            resource = resource_from_record(record, default_resource_kind)
            self.resources[resource.id] = resource
        self.allocations: List[Allocation] = [allocation_from_record(r) for r in allocation_records or []]

        logger.info(
            f"Loaded {len(self.items)} schedule items, {len(self.resources)} resources, "
            f"{len(self.allocations)} allocations"
        )

    @classmethod
    def from_json_file(cls, filename: str, default_resource_kind: Optional[ResourceKind] = None) -> "RecordScheduleRepository":
        """
        Load an export with "schedules", "resources" and "allocations" lists.
        """
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryError(f"Cannot read schedule export {filename}: {e}") from e

        if not isinstance(data, dict):
            raise RepositoryError(f"Schedule export {filename} must contain a JSON object")

        return cls(
            data.get("schedules", []),
            data.get("resources", []),
            data.get("allocations", []),
            default_resource_kind=default_resource_kind
        )

    def list_schedule_items(self, item_filter: Optional[ScheduleItemFilter] = None) -> List[ScheduleItem]:
        if item_filter is None:
            return list(self.items)
        return [item for item in self.items if item_filter.matches(item)]

    def get_resource(self, resource_id: str) -> Resource:
        try:
            return self.resources[resource_id]
        except KeyError:
            raise ScopeNotFoundError("Resource", resource_id) from None

    def list_allocations(self, resource_id: str) -> List[Allocation]:
        return [a for a in self.allocations if a.resource_id == resource_id]
