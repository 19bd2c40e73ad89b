"""
Status Resolution Logic.

This module answers one question for every caller that needs a status:
"Given its dates and progress, where is this item in its lifecycle today?"
It never raises; unusable dates degrade the item to 'not_started' and the
problem is reported as a DataQualityWarning on the result.
"""

import logging
from collections import deque
from datetime import date
from typing import Dict, FrozenSet, List, Optional

from models import DataQualityWarning, ScheduleItem, ScheduleStatus, StatusResolution
from .config import DELAY_TOLERANCE_PERCENT
from .dates import DateLike, as_date, round_half_up

logger = logging.getLogger(__name__)

S = ScheduleStatus

# Single-step lifecycle transitions. Completed is terminal.
TRANSITIONS: Dict[ScheduleStatus, FrozenSet[ScheduleStatus]] = {
    S.NOT_STARTED: frozenset({S.IN_PROGRESS, S.ON_HOLD}),
    S.IN_PROGRESS: frozenset({S.DELAYED, S.COMPLETED, S.ON_HOLD}),
    S.DELAYED: frozenset({S.IN_PROGRESS, S.COMPLETED}),
    S.ON_HOLD: frozenset({S.IN_PROGRESS}),
    S.COMPLETED: frozenset(),
}


def can_transition(current: ScheduleStatus, target: ScheduleStatus) -> bool:
    """True if `target` is one lifecycle step away from `current`."""
    return target in TRANSITIONS[current]


def is_reachable(current: ScheduleStatus, target: ScheduleStatus) -> bool:
    """
    True if `target` can be reached from `current` in zero or more steps.
    Snapshots are taken at arbitrary times, so intermediate states may be skipped.
    """
    if current == target:
        return True
    seen = {current}
    queue = deque([current])
    while queue:
        state = queue.popleft()
        for nxt in TRANSITIONS[state]:
            if nxt == target:
                return True
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def expected_progress(start: date, end: date, as_of: date) -> int:
    """
    Linear time-based progress between planned start and end, clamped to 0-100.
    A zero-length span is 100 from its start day onwards.
    """
    if end == start:
        return 100 if as_of >= start else 0
    ratio = (as_of - start).days / (end - start).days
    return max(0, min(100, round_half_up(ratio * 100)))


def resolve_status(item: ScheduleItem, as_of: Optional[DateLike] = None) -> StatusResolution:
    """
    Derive the canonical status of one item.

    Rules, in order: hold override, no progress, full progress, unusable
    dates, past planned end, behind the expected progress by more than the
    tolerance, otherwise in progress.
    """
    today = as_date(as_of)
    warnings = _invariant_warnings(item)
    expected = None

    date_problem = _date_problem(item)
    if date_problem:
        warnings.append(DataQualityWarning(item_id=item.id, field="planned_dates", message=date_problem))

    if item.is_on_hold and item.progress < 100:
        status = S.ON_HOLD
    elif item.progress == 0:
        status = S.NOT_STARTED
    elif item.progress == 100:
        status = S.COMPLETED
    elif date_problem:
        status = S.NOT_STARTED
    else:
        expected = expected_progress(item.planned_start, item.planned_end, today)
        if today > item.planned_end:
            status = S.DELAYED
        elif item.progress < expected - DELAY_TOLERANCE_PERCENT:
            status = S.DELAYED
        else:
            status = S.IN_PROGRESS

    if not is_reachable(item.status, status):
        warnings.append(DataQualityWarning(
            item_id=item.id,
            field="status",
            message=f"Recorded status {item.status.value} cannot move to {status.value}"
        ))

    if warnings:
        logger.debug(f"Item {item.id} resolved to {status.value} with {len(warnings)} warning(s)")

    return StatusResolution(
        item_id=item.id,
        status=status,
        expected_progress=expected,
        warnings=warnings
    )


def resolve_statuses(items: List[ScheduleItem], as_of: Optional[DateLike] = None) -> Dict[str, StatusResolution]:
    """Resolve every item against the same as-of date, keyed by item id."""
    day = as_date(as_of)
    return {item.id: resolve_status(item, day) for item in items}


def _date_problem(item: ScheduleItem) -> Optional[str]:
    if item.planned_start is None or item.planned_end is None:
        return "Planned start or end date is missing or malformed"
    if item.planned_start > item.planned_end:
        return "Planned start is after planned end"
    return None


def _invariant_warnings(item: ScheduleItem) -> List[DataQualityWarning]:
    """Soft invariants are reported, never enforced."""
    warnings = list(item.data_warnings)
    if item.actual_end is not None and item.progress < 100:
        warnings.append(DataQualityWarning(
            item_id=item.id,
            field="actual_end",
            message=f"Actual end is set but progress is only {item.progress}%"
        ))
    if item.actual_start and item.actual_end and item.actual_end < item.actual_start:
        warnings.append(DataQualityWarning(
            item_id=item.id,
            field="actual_end",
            message="Actual end is before actual start"
        ))
    return warnings
