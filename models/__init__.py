"""
Data models package for the construction schedule engine.

This package exports the three groups of the data architecture:
1. Input (ScheduleItem, ScheduleStatus)
2. Supply (Resource, Allocation, Period)
3. Output (status, progress, availability, alert and gantt views)
"""

from .schedule import (
    DataQualityWarning,
    ScheduleItem,
    ScheduleStatus,
    WorkBreakdownTier
)

from .resource import (
    Allocation,
    Period,
    Resource,
    ResourceKind
)

from .views import (
    AggregatedNode,
    AggregatedTree,
    AggregationStrategy,
    Alert,
    AlertSeverity,
    AlertType,
    AvailabilityStatus,
    AvailabilitySummary,
    Conflict,
    GanttFilter,
    GanttItem,
    GanttScope,
    GanttScopeKind,
    GanttSummary,
    GanttView,
    Milestone,
    MilestoneStatus,
    StatusResolution,
    WorkloadSummary
)

__all__ = [
    # --- Input Models ---
    "DataQualityWarning",
    "ScheduleItem",
    "ScheduleStatus",
    "WorkBreakdownTier",

    # --- Resource Models ---
    "Allocation",
    "Period",
    "Resource",
    "ResourceKind",

    # --- Output Models ---
    "AggregatedNode",
    "AggregatedTree",
    "AggregationStrategy",
    "Alert",
    "AlertSeverity",
    "AlertType",
    "AvailabilityStatus",
    "AvailabilitySummary",
    "Conflict",
    "GanttFilter",
    "GanttItem",
    "GanttScope",
    "GanttScopeKind",
    "GanttSummary",
    "GanttView",
    "Milestone",
    "MilestoneStatus",
    "StatusResolution",
    "WorkloadSummary",
]
