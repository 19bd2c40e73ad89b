"""Unit tests for deadline alert generation."""

from __future__ import annotations

import pytest

from models import AlertSeverity, AlertType, ScheduleStatus
from schedule_engine.alerts import AlertGenerator, filter_alerts_by_contract, generate_alerts
from schedule_engine.config import AlertConfig
from tests.builders import d, make_item


AS_OF = d("2024-01-15")


@pytest.fixture
def portfolio():
    """One item per alert branch, spread over two contracts."""
    return [
        make_item("far", "2024-01-10", "2024-03-01", progress=10, contract_id="C1"),
        make_item("delayed", "2024-01-01", "2024-01-31", progress=10, contract_id="C1"),
        make_item("info", "2024-01-10", "2024-01-20", progress=50, contract_id="C2"),
        make_item("overdue", "2024-01-01", "2024-01-10", progress=50, contract_id="C1"),
        make_item("soon", "2024-01-01", "2024-01-17", progress=90, contract_id="C2"),
        make_item("gate", "2024-01-15", "2024-01-18", progress=0, milestone=True, contract_id="C1"),
        make_item("done", "2024-01-01", "2024-01-10", progress=100, contract_id="C1"),
    ]


class TestGenerateAlerts:
    def test_one_alert_per_open_item(self, portfolio) -> None:
        alerts = generate_alerts(portfolio, as_of=AS_OF)
        by_id = {a.schedule_id: a for a in alerts}
        assert set(by_id) == {"overdue", "delayed", "soon", "gate", "info"}

        assert by_id["overdue"].type == AlertType.OVERDUE
        assert by_id["overdue"].severity == AlertSeverity.CRITICAL
        assert by_id["overdue"].days_remaining == -5

        assert by_id["delayed"].type == AlertType.DELAYED
        assert by_id["delayed"].severity == AlertSeverity.WARNING

        assert by_id["soon"].type == AlertType.UPCOMING_DEADLINE
        assert by_id["soon"].severity == AlertSeverity.WARNING

        assert by_id["gate"].type == AlertType.MILESTONE_APPROACHING
        assert by_id["gate"].severity == AlertSeverity.WARNING
        assert by_id["gate"].due_date == d("2024-01-18")

        assert by_id["info"].type == AlertType.UPCOMING_DEADLINE
        assert by_id["info"].severity == AlertSeverity.INFO

    def test_sorted_by_severity_then_urgency(self, portfolio) -> None:
        alerts = generate_alerts(portfolio, as_of=AS_OF)
        assert [a.schedule_id for a in alerts] == ["overdue", "soon", "gate", "delayed", "info"]

    def test_completed_items_never_alert(self) -> None:
        item = make_item("done", "2024-01-01", "2024-01-10", progress=100)
        assert generate_alerts([item], as_of=AS_OF) == []

    def test_missing_end_is_reported_not_dropped(self) -> None:
        generator = AlertGenerator()
        alerts = generator.generate([make_item("undated", progress=20)], AS_OF)
        assert alerts == []
        assert [(w.item_id, w.field) for w in generator.warnings] == [("undated", "planned_end")]

    def test_precomputed_statuses_are_used(self) -> None:
        item = make_item("a", "2024-01-01", "2024-03-01", progress=50)
        alerts = AlertGenerator().generate([item], AS_OF, statuses={"a": ScheduleStatus.DELAYED})
        assert alerts[0].type == AlertType.DELAYED

    def test_windows_follow_config(self) -> None:
        item = make_item("a", "2024-01-10", "2024-01-20", progress=50)
        assert generate_alerts([item], AlertConfig(upcoming_days=4), AS_OF) == []

        alerts = generate_alerts([item], AlertConfig(delay_threshold_days=5), AS_OF)
        assert alerts[0].severity == AlertSeverity.WARNING


class TestFilterByContract:
    def test_keeps_only_matching_contract(self, portfolio) -> None:
        alerts = filter_alerts_by_contract(generate_alerts(portfolio, as_of=AS_OF), "C2")
        assert [a.schedule_id for a in alerts] == ["soon", "info"]


class TestAlertConfig:
    def test_defaults(self) -> None:
        config = AlertConfig.from_env({})
        assert config.delay_threshold_days == 3
        assert config.upcoming_days == 7

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SCHEDULE_DELAY_THRESHOLD_DAYS", "2")
        monkeypatch.setenv("SCHEDULE_UPCOMING_DAYS", "14")
        config = AlertConfig.from_env()
        assert config.delay_threshold_days == 2
        assert config.upcoming_days == 14

    def test_rejects_bad_values(self) -> None:
        with pytest.raises(ValueError):
            AlertConfig.from_env({"SCHEDULE_UPCOMING_DAYS": "soon"})
        with pytest.raises(ValueError):
            AlertConfig.from_env({"SCHEDULE_UPCOMING_DAYS": "-1"})
