"""
Resource and allocation data models for the construction schedule engine.

This module defines the 'Supply' side of the engine:
1. Resources (people, equipment, subcontractors) with a capacity
2. Allocations (a quantity of a resource committed to a schedule item for a period)
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import date


class ResourceKind(str, Enum):
    """Categories of resources that can be assigned to schedule items."""
    PERSON = "person"
    EQUIPMENT = "equipment"
    SUBCONTRACTOR = "subcontractor"


class Resource(BaseModel):
    """
    Anything with a finite capacity that schedule items draw on.
    A person has capacity 1; equipment has its owned quantity.
    """
    id: str = Field(description="Unique identifier")
    name: str = Field(default="", description="Display name")
    kind: ResourceKind
    capacity: int = Field(default=1, ge=0, description="Units that can be committed at once")
    active: bool = Field(default=True, description="False for retired or disposed resources")
    rating: Optional[str] = Field(default=None, description="Subcontractor evaluation rank (A-D)")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "eq_crane_01",
            "name": "25t rough terrain crane",
            "kind": "equipment",
            "capacity": 3,
            "active": True
        }
    })


class Period(BaseModel):
    """Date range with an exclusive end: [start, end)."""
    start: date
    end: date

    @model_validator(mode='after')
    def validate_dates(self):
        if self.end < self.start:
            raise ValueError("Period end cannot be before start")
        return self

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def overlaps(self, other: "Period") -> bool:
        return self.start < other.end and other.start < self.end

    model_config = ConfigDict(frozen=True)


class Allocation(BaseModel):
    """A resource committed to a schedule item for an interval."""
    id: Optional[str] = Field(default=None, description="Source record id, if known")
    schedule_item_id: str
    resource_id: str
    quantity: int = Field(default=1, ge=1)
    period: Period

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "schedule_item_id": "sch_foundation_01",
            "resource_id": "eq_crane_01",
            "quantity": 2,
            "period": {"start": "2024-01-01", "end": "2024-01-11"}
        }
    })
