"""
Schedule and resource-allocation computation engine.

Public surface:
- resolve_status:          one item's canonical lifecycle status
- aggregate_progress:      bottom-up progress rollup over the work breakdown
- calculate_availability:  in-use / available capacity of a resource on a day
- detect_conflicts:        sweep-line over-allocation detection
- generate_alerts:         severity-ranked deadline alerts
- build_gantt_view:        scoped gantt view with milestones and summary
"""

from .alerts import AlertGenerator, filter_alerts_by_contract, generate_alerts
from .availability import (
    calculate_availability,
    classify_utilization,
    performance_score,
    summarize_workload,
)
from .config import AlertConfig
from .conflicts import detect_conflicts
from .errors import (
    InvalidInputError,
    RepositoryError,
    ScheduleEngineError,
    ScopeNotFoundError,
)
from .gantt import GanttAssembler, build_gantt_view, classify_milestone
from .progress import ProgressAggregator, aggregate_progress
from .service import ScheduleService
from .status import can_transition, is_reachable, resolve_status, resolve_statuses

__all__ = [
    "AlertConfig",
    "AlertGenerator",
    "GanttAssembler",
    "ProgressAggregator",
    "ScheduleService",
    "InvalidInputError",
    "RepositoryError",
    "ScheduleEngineError",
    "ScopeNotFoundError",
    "aggregate_progress",
    "build_gantt_view",
    "calculate_availability",
    "can_transition",
    "classify_milestone",
    "classify_utilization",
    "detect_conflicts",
    "filter_alerts_by_contract",
    "generate_alerts",
    "is_reachable",
    "performance_score",
    "resolve_status",
    "resolve_statuses",
    "summarize_workload",
]
