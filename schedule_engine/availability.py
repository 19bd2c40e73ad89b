"""
Resource Availability Calculator.

Answers "how much of this resource is committed on a given day?" and
classifies the answer. Utilization is deliberately uncapped so that
over-allocation stays visible instead of reading as 100%.
"""

import logging
from typing import List, Optional

from models import (
    Allocation,
    AvailabilityStatus,
    AvailabilitySummary,
    DataQualityWarning,
    Resource,
    ScheduleItem,
    WorkloadSummary,
)
from .config import (
    DEFAULT_PERFORMANCE_SCORE,
    LIMITED_UTILIZATION_PERCENT,
    MAX_CONCURRENT_ASSIGNMENTS,
    PERFORMANCE_SCORES,
)
from .dates import DateLike, as_date, round_half_up

logger = logging.getLogger(__name__)


def classify_utilization(rate: int) -> AvailabilityStatus:
    if rate > 100:
        return AvailabilityStatus.OVER
    if rate == 100:
        return AvailabilityStatus.FULL
    if rate >= LIMITED_UTILIZATION_PERCENT:
        return AvailabilityStatus.LIMITED
    return AvailabilityStatus.AVAILABLE


def calculate_availability(
    resource: Resource,
    allocations: List[Allocation],
    as_of: Optional[DateLike] = None
) -> AvailabilitySummary:
    """
    Sum the allocations active on `as_of` and compare them to capacity.
    Allocations that belong to another resource are ignored with a warning.
    """
    day = as_date(as_of)
    warnings: List[DataQualityWarning] = []
    active: List[Allocation] = []

    if not resource.active:
        warnings.append(DataQualityWarning(
            item_id=resource.id,
            field="active",
            message=f"Resource {resource.id} is inactive"
        ))

    for alloc in allocations:
        if alloc.resource_id != resource.id:
            warnings.append(DataQualityWarning(
                item_id=alloc.schedule_item_id,
                field="resource_id",
                message=f"Allocation for {alloc.schedule_item_id} belongs to {alloc.resource_id}; ignored"
            ))
            continue
        if alloc.period.contains(day):
            active.append(alloc)

    in_use = sum(a.quantity for a in active)
    capacity = resource.capacity
    available = capacity - in_use

    if capacity == 0:
        # Utilization is not applicable; anything in use is over capacity
        utilization_rate = None
        status = AvailabilityStatus.OVER if in_use > 0 else AvailabilityStatus.FULL
    else:
        utilization_rate = round_half_up(in_use / capacity * 100)
        status = classify_utilization(utilization_rate)

    for warning in warnings:
        logger.warning(f"[{warning.item_id}] {warning.message}")
    logger.debug(f"{resource.id} on {day}: {in_use}/{capacity} in use ({status.value})")

    return AvailabilitySummary(
        resource_id=resource.id,
        as_of=day,
        capacity=capacity,
        in_use=in_use,
        available=available,
        utilization_rate=utilization_rate,
        status=status,
        active_allocation_ids=[a.id or a.schedule_item_id for a in active],
        warnings=warnings
    )


def summarize_workload(
    items: List[ScheduleItem],
    as_of: Optional[DateLike] = None,
    max_concurrent: int = MAX_CONCURRENT_ASSIGNMENTS
) -> WorkloadSummary:
    """
    Count assignments that are current (planned span covers `as_of`) and
    upcoming (planned to start later). Items without planned dates only
    count towards the total. Utilization is current assignments against
    `max_concurrent`, capped at 100.
    """
    day = as_date(as_of)
    current = 0
    upcoming = 0
    for item in items:
        if item.planned_start is None or item.planned_end is None:
            continue
        if item.planned_start <= day <= item.planned_end:
            current += 1
        elif item.planned_start > day:
            upcoming += 1

    utilization_rate = 0
    if max_concurrent > 0:
        utilization_rate = min(100, round_half_up(current / max_concurrent * 100))

    return WorkloadSummary(
        total_assignments=len(items),
        current_assignments=current,
        upcoming_assignments=upcoming,
        utilization_rate=utilization_rate
    )


def performance_score(resource: Resource) -> int:
    """Score a subcontractor by its evaluation rank; unrated or unknown ranks score lowest."""
    if resource.rating is None:
        return DEFAULT_PERFORMANCE_SCORE
    return PERFORMANCE_SCORES.get(resource.rating.strip().upper(), DEFAULT_PERFORMANCE_SCORE)
