"""
Schedule data models for the construction schedule engine.

This module defines the 'Input' side of the engine:
1. ScheduleItem (one node of the work breakdown)
2. ScheduleStatus (canonical lifecycle status)
3. DataQualityWarning (non-fatal problems found while reading or resolving an item)
"""

from enum import Enum
from typing import List, Optional, Set
from pydantic import BaseModel, Field, ConfigDict
from datetime import date


class ScheduleStatus(str, Enum):
    """Canonical lifecycle status of a schedule item."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DELAYED = "delayed"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class WorkBreakdownTier(str, Enum):
    """Nesting level of the work breakdown, coarsest first."""
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    WorkBreakdownTier.LARGE: 0,
    WorkBreakdownTier.MEDIUM: 1,
    WorkBreakdownTier.SMALL: 2,
}


class DataQualityWarning(BaseModel):
    """A problem with an item that was reported instead of raised."""
    item_id: str = Field(description="ID of the affected schedule item or resource")
    field: Optional[str] = Field(default=None, description="Offending attribute, if any")
    message: str

    model_config = ConfigDict(frozen=True)


class ScheduleItem(BaseModel):
    """
    One node of a work breakdown.
    Dates are optional because malformed source values are dropped at the
    repository boundary and reported through `data_warnings`.
    """

    # --- Core Identity ---
    id: str = Field(description="Unique identifier")
    parent_id: Optional[str] = Field(default=None, description="Work-breakdown parent link")
    contract_id: str = Field(default="", description="Owning construction contract")
    name: str = Field(default="", description="Display name of the process")
    tier: Optional[WorkBreakdownTier] = Field(default=None, description="Large / medium / small")

    # --- Timing ---
    planned_start: Optional[date] = None
    planned_end: Optional[date] = None
    actual_start: Optional[date] = None
    actual_end: Optional[date] = None

    # --- Progress ---
    progress: int = Field(default=0, ge=0, le=100, description="Reported progress in percent")
    status: ScheduleStatus = Field(
        default=ScheduleStatus.NOT_STARTED,
        description="Status as last recorded upstream"
    )
    hold_progress: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Progress at which the item was put on hold; the hold lasts until progress moves"
    )

    # --- Assignments ---
    assigned_person_ids: Set[str] = Field(default_factory=set)
    assigned_equipment_ids: Set[str] = Field(default_factory=set)
    assigned_subcontractor_ids: Set[str] = Field(default_factory=set)
    predecessor_ids: Set[str] = Field(default_factory=set)
    successor_ids: Set[str] = Field(default_factory=set)

    # --- Flags & Metadata ---
    milestone: bool = False
    critical_path: bool = False
    notes: str = ""
    data_warnings: List[DataQualityWarning] = Field(
        default_factory=list,
        description="Warnings raised while converting the raw record"
    )

    @property
    def is_on_hold(self) -> bool:
        return self.hold_progress is not None and self.hold_progress == self.progress

    @property
    def planned_days(self) -> Optional[int]:
        """Inclusive planned span in days, or None when the dates are unusable."""
        if self.planned_start is None or self.planned_end is None:
            return None
        if self.planned_end < self.planned_start:
            return None
        return (self.planned_end - self.planned_start).days + 1

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "sch_foundation_01",
            "parent_id": "sch_structure",
            "contract_id": "ctr_2024_001",
            "name": "Foundation pour",
            "tier": "small",
            "planned_start": "2024-01-01",
            "planned_end": "2024-01-10",
            "progress": 40,
            "assigned_equipment_ids": ["eq_pump_01"],
            "milestone": False,
            "critical_path": True
        }
    })
