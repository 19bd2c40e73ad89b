"""
Deadline Alert Generation.

Turns resolved schedule items into severity-ranked alerts. Each open item
produces at most one alert, checked in this order:
1. Overdue (critical)
2. Delayed (warning)
3. Deadline or milestone approaching (warning inside the delay threshold, info otherwise)
"""

import logging
from typing import Dict, List, Optional

from models import (
    Alert,
    AlertSeverity,
    AlertType,
    DataQualityWarning,
    ScheduleItem,
    ScheduleStatus,
)
from .config import AlertConfig
from .dates import DateLike, as_date
from .status import resolve_status

logger = logging.getLogger(__name__)


class AlertGenerator:
    """
    Produces alerts for a batch of items and keeps the warnings for items it
    could not date, so nothing is dropped silently.
    """

    def __init__(self, config: Optional[AlertConfig] = None):
        self.config = config or AlertConfig()
        self.warnings: List[DataQualityWarning] = []

    def generate(
        self,
        items: List[ScheduleItem],
        as_of: Optional[DateLike] = None,
        statuses: Optional[Dict[str, ScheduleStatus]] = None
    ) -> List[Alert]:
        """
        `statuses` lets a caller pass already-resolved statuses; anything
        missing is resolved here with the canonical resolver.
        """
        day = as_date(as_of)
        statuses = statuses or {}
        alerts: List[Alert] = []

        for item in items:
            status = statuses.get(item.id)
            if status is None:
                status = resolve_status(item, day).status
            if status == ScheduleStatus.COMPLETED:
                continue

            if item.planned_end is None:
                self._warn(item, "No planned end date; deadline alerts skipped")
                continue

            alert = self._alert_for(item, status, (item.planned_end - day).days)
            if alert:
                alerts.append(alert)

        alerts.sort(key=lambda a: (a.severity.rank, a.days_remaining))
        logger.info(f"Generated {len(alerts)} alerts from {len(items)} items")
        return alerts

    def _alert_for(self, item: ScheduleItem, status: ScheduleStatus, days_remaining: int) -> Optional[Alert]:
        if days_remaining < 0 and item.progress < 100:
            return self._build(
                item, AlertType.OVERDUE, AlertSeverity.CRITICAL, days_remaining,
                f"'{item.name}' is {abs(days_remaining)} day(s) overdue"
            )

        if status == ScheduleStatus.DELAYED:
            return self._build(
                item, AlertType.DELAYED, AlertSeverity.WARNING, days_remaining,
                f"'{item.name}' is behind schedule (progress {item.progress}%)"
            )

        if 0 <= days_remaining <= self.config.upcoming_days:
            if days_remaining <= self.config.delay_threshold_days:
                severity = AlertSeverity.WARNING
            else:
                severity = AlertSeverity.INFO
            if item.milestone:
                return self._build(
                    item, AlertType.MILESTONE_APPROACHING, severity, days_remaining,
                    f"Milestone '{item.name}' is due in {days_remaining} day(s)"
                )
            return self._build(
                item, AlertType.UPCOMING_DEADLINE, severity, days_remaining,
                f"'{item.name}' is due in {days_remaining} day(s)"
            )

        return None

    @staticmethod
    def _build(item, alert_type, severity, days_remaining, message) -> Alert:
        return Alert(
            type=alert_type,
            severity=severity,
            schedule_id=item.id,
            schedule_name=item.name,
            contract_id=item.contract_id,
            message=message,
            due_date=item.planned_end,
            days_remaining=days_remaining
        )

    def _warn(self, item: ScheduleItem, message: str) -> None:
        logger.warning(f"[{item.id}] {message}")
        self.warnings.append(DataQualityWarning(item_id=item.id, field="planned_end", message=message))


def generate_alerts(
    items: List[ScheduleItem],
    config: Optional[AlertConfig] = None,
    as_of: Optional[DateLike] = None
) -> List[Alert]:
    """Alerts for every open item, most severe and most urgent first."""
    return AlertGenerator(config).generate(items, as_of)


def filter_alerts_by_contract(alerts: List[Alert], contract_id: str) -> List[Alert]:
    return [alert for alert in alerts if alert.contract_id == contract_id]
