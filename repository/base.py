"""
The narrow interface through which the engine reads schedule snapshots.
Anything that can answer these three questions can drive the engine.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from pydantic import BaseModel, Field

from models import Allocation, Resource, ScheduleItem, ScheduleStatus


class ScheduleItemFilter(BaseModel):
    """Criteria for selecting schedule items. Empty criteria match everything."""
    contract_id: Optional[str] = None
    person_id: Optional[str] = None
    equipment_id: Optional[str] = None
    subcontractor_id: Optional[str] = None
    statuses: List[ScheduleStatus] = Field(default_factory=list)

    def matches(self, item: ScheduleItem) -> bool:
        if self.contract_id is not None and item.contract_id != self.contract_id:
            return False
        if self.person_id is not None and self.person_id not in item.assigned_person_ids:
            return False
        if self.equipment_id is not None and self.equipment_id not in item.assigned_equipment_ids:
            return False
        if self.subcontractor_id is not None and self.subcontractor_id not in item.assigned_subcontractor_ids:
            return False
        if self.statuses and item.status not in self.statuses:
            return False
        return True


class ScheduleRepository(ABC):
    """
    Source of schedule items, resources and allocations.
    Implementations raise RepositoryError (or a subclass) on I/O failure.
    """

    @abstractmethod
    def list_schedule_items(self, item_filter: Optional[ScheduleItemFilter] = None) -> List[ScheduleItem]:
        ...

    @abstractmethod
    def get_resource(self, resource_id: str) -> Resource:
        """Raises ScopeNotFoundError when the id is unknown."""

    @abstractmethod
    def list_allocations(self, resource_id: str) -> List[Allocation]:
        ...
