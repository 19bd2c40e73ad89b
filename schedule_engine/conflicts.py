"""
Over-allocation Conflict Detection.

Sweep-line over allocation boundaries: every allocation adds its quantity at
its start and removes it at its (exclusive) end. Events sharing an instant
are applied together, so an allocation ending on the day the next one starts
never counts as an overlap.
"""

import logging
from itertools import groupby
from typing import Dict, List, Tuple

from models import Allocation, Conflict
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def _allocation_key(alloc: Allocation) -> str:
    return alloc.id or f"{alloc.schedule_item_id}@{alloc.resource_id}"


def detect_conflicts(allocations: List[Allocation], capacity: int) -> List[Conflict]:
    """
    Return every span in which concurrent quantity exceeds `capacity`,
    in chronological order.
    """
    if capacity < 0:
        raise InvalidInputError(f"Capacity cannot be negative: {capacity}")

    resource_ids = {a.resource_id for a in allocations}
    if len(resource_ids) > 1:
        raise InvalidInputError(
            f"Conflict detection runs per resource; got {sorted(resource_ids)}"
        )
    if not allocations:
        return []
    resource_id = resource_ids.pop()

    # (instant, delta, allocation index)
    events: List[Tuple] = []
    for index, alloc in enumerate(allocations):
        if alloc.period.start == alloc.period.end:
            continue
        events.append((alloc.period.start, alloc.quantity, index))
        events.append((alloc.period.end, -alloc.quantity, index))
    events.sort(key=lambda e: e[0])

    conflicts: List[Conflict] = []
    running = 0
    active: Dict[int, Allocation] = {}
    open_start = None
    peak = 0
    involved: Dict[int, Allocation] = {}

    for instant, group in groupby(events, key=lambda e: e[0]):
        for _, delta, index in group:
            running += delta
            if delta > 0:
                active[index] = allocations[index]
            else:
                active.pop(index, None)

        if running > capacity:
            if open_start is None:
                open_start = instant
                peak = running
                involved = {}
            peak = max(peak, running)
            involved.update(active)
        elif open_start is not None:
            conflicts.append(_close(resource_id, open_start, instant, peak, capacity, involved))
            open_start = None

    # The running sum returns to zero after the last end event, so every
    # conflict is closed inside the loop.
    if conflicts:
        logger.info(f"{resource_id}: {len(conflicts)} over-allocation span(s) against capacity {capacity}")
    return conflicts


def _close(resource_id, start, end, peak, capacity, involved: Dict[int, Allocation]) -> Conflict:
    ordered = [involved[i] for i in sorted(involved)]
    item_ids: List[str] = []
    for alloc in ordered:
        if alloc.schedule_item_id not in item_ids:
            item_ids.append(alloc.schedule_item_id)
    return Conflict(
        resource_id=resource_id,
        period_start=start,
        period_end=end,
        over_allocated_by=peak - capacity,
        peak_quantity=peak,
        allocation_ids=[_allocation_key(a) for a in ordered],
        schedule_item_ids=item_ids
    )
