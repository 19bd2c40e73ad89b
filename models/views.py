"""
Derived view models for the construction schedule engine.

This module defines the 'Output' of the engine. Every object here is a value
object computed from a snapshot; none of them has a lifecycle of its own.
"""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import date

from .schedule import DataQualityWarning, ScheduleItem, ScheduleStatus
from .resource import Period


# --- Status ---

class StatusResolution(BaseModel):
    """Derived status of one schedule item as of a given date."""
    item_id: str
    status: ScheduleStatus
    expected_progress: Optional[int] = Field(
        default=None,
        description="Time-based expected progress; None when it could not be computed"
    )
    warnings: List[DataQualityWarning] = Field(default_factory=list)


# --- Progress ---

class AggregationStrategy(str, Enum):
    """How children are weighted when rolling progress up to a parent."""
    EQUAL = "equal"
    DURATION = "duration"


class AggregatedNode(BaseModel):
    item_id: str
    parent_id: Optional[str] = Field(default=None, description="Effective parent after orphan/cycle repair")
    depth: int = 0
    children: List[str] = Field(default_factory=list)
    reported_progress: int
    aggregated_progress: int
    weight: float = 1.0


class AggregatedTree(BaseModel):
    """Result of a bottom-up progress rollup over a flat list of items."""
    strategy: AggregationStrategy
    nodes: Dict[str, AggregatedNode] = Field(default_factory=dict)
    roots: List[str] = Field(default_factory=list)
    warnings: List[DataQualityWarning] = Field(default_factory=list)

    def progress_of(self, item_id: str) -> Optional[int]:
        node = self.nodes.get(item_id)
        return node.aggregated_progress if node else None

    def levels(self) -> List[List[str]]:
        """Item ids grouped by depth, deepest level first."""
        if not self.nodes:
            return []
        max_depth = max(node.depth for node in self.nodes.values())
        grouped: List[List[str]] = [[] for _ in range(max_depth + 1)]
        for node in self.nodes.values():
            grouped[node.depth].append(node.item_id)
        return list(reversed(grouped))

    def apply(self, items: List[ScheduleItem]) -> List[ScheduleItem]:
        """Return copies of `items` carrying the aggregated progress."""
        updated = []
        for item in items:
            progress = self.progress_of(item.id)
            if progress is None or progress == item.progress:
                updated.append(item)
            else:
                updated.append(item.model_copy(update={"progress": progress}))
        return updated


# --- Resources ---

class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"
    OVER = "over"


class AvailabilitySummary(BaseModel):
    """Capacity picture of one resource on one day."""
    resource_id: str
    as_of: date
    capacity: int
    in_use: int
    available: int = Field(description="capacity - in_use; negative when over-allocated")
    utilization_rate: Optional[int] = Field(
        default=None,
        description="Uncapped percentage; None when capacity is zero"
    )
    status: AvailabilityStatus
    active_allocation_ids: List[str] = Field(default_factory=list)
    warnings: List[DataQualityWarning] = Field(default_factory=list)


class Conflict(BaseModel):
    """A span in which concurrent allocations exceed a resource's capacity."""
    resource_id: str
    period_start: date
    period_end: date = Field(description="Exclusive end of the over-allocated span")
    over_allocated_by: int = Field(ge=1, description="Peak running sum minus capacity")
    peak_quantity: int
    allocation_ids: List[str] = Field(default_factory=list)
    schedule_item_ids: List[str] = Field(default_factory=list)


class WorkloadSummary(BaseModel):
    """Assignment counts for a person or subcontractor."""
    total_assignments: int = 0
    current_assignments: int = 0
    upcoming_assignments: int = 0
    utilization_rate: int = Field(default=0, description="Current assignments against the concurrent limit, capped at 100")


# --- Alerts ---

class AlertType(str, Enum):
    OVERDUE = "overdue"
    DELAYED = "delayed"
    UPCOMING_DEADLINE = "upcoming_deadline"
    MILESTONE_APPROACHING = "milestone_approaching"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
    AlertSeverity.INFO: 2,
}


class Alert(BaseModel):
    type: AlertType
    severity: AlertSeverity
    schedule_id: str
    schedule_name: str
    contract_id: str
    message: str
    due_date: date
    days_remaining: int


# --- Gantt ---

class MilestoneStatus(str, Enum):
    PENDING = "pending"
    ACHIEVED = "achieved"
    MISSED = "missed"


class Milestone(BaseModel):
    id: str
    name: str
    due_date: Optional[date] = None
    status: MilestoneStatus


class GanttScopeKind(str, Enum):
    CONTRACT = "contract"
    PERSON = "person"
    EQUIPMENT = "equipment"
    SUBCONTRACTOR = "subcontractor"


class GanttScope(BaseModel):
    """The entity a gantt view is rooted at."""
    kind: GanttScopeKind
    id: str
    name: str = ""
    planned_start: Optional[date] = Field(default=None, description="Contract start, if known")
    planned_end: Optional[date] = Field(default=None, description="Contract completion, if known")


class GanttFilter(BaseModel):
    """Optional narrowing applied after items are selected and resolved."""
    date_range: Optional[Period] = None
    statuses: List[ScheduleStatus] = Field(default_factory=list)
    critical_path_only: bool = False


class GanttItem(BaseModel):
    id: str
    name: str
    start: Optional[date] = None
    end: Optional[date] = None
    progress: int = Field(description="Aggregated progress")
    reported_progress: int
    status: ScheduleStatus
    level: int = 0
    parent_id: Optional[str] = None
    children: List["GanttItem"] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    assignees: List[str] = Field(default_factory=list)
    subcontractors: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)
    is_critical_path: bool = False
    warnings: List[DataQualityWarning] = Field(default_factory=list)


GanttItem.model_rebuild()


class GanttSummary(BaseModel):
    total_duration: int = 0
    elapsed_days: int = 0
    remaining_days: int = 0
    overall_progress: int = 0
    delayed_items: int = 0
    critical_path_items: int = 0


class GanttView(BaseModel):
    """A scoped gantt chart: nested items, milestones and summary metrics."""
    scope: GanttScope
    as_of: date
    items: List[GanttItem] = Field(default_factory=list, description="Top-level items of the view")
    milestones: List[Milestone] = Field(default_factory=list)
    summary: GanttSummary = Field(default_factory=GanttSummary)

    # Scope-specific extras
    availability: Optional[AvailabilitySummary] = None
    conflicts: List[Conflict] = Field(default_factory=list)
    workload: Optional[WorkloadSummary] = None
    current_projects: Optional[int] = Field(
        default=None,
        description="Subcontractor views: items currently in progress"
    )
    performance_score: Optional[int] = Field(
        default=None,
        description="Subcontractor views: score derived from the evaluation rank"
    )

    warnings: List[DataQualityWarning] = Field(default_factory=list)

    def iter_items(self):
        """Depth-first walk over every item in the view."""
        stack = list(reversed(self.items))
        while stack:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.children))
