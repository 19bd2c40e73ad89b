"""Unit tests for resource availability and workload counts."""

from __future__ import annotations

import pytest

from models import AvailabilityStatus, Resource, ResourceKind
from schedule_engine.availability import (
    calculate_availability,
    classify_utilization,
    performance_score,
    summarize_workload,
)
from tests.builders import d, make_allocation, make_item


class TestCalculateAvailability:
    def test_exactly_at_capacity_is_full(self, equipment: Resource) -> None:
        allocations = [
            make_allocation("S1", "2024-01-01", "2024-01-11", quantity=1),
            make_allocation("S2", "2024-01-05", "2024-01-15", quantity=2),
        ]
        summary = calculate_availability(equipment, allocations, d("2024-01-06"))
        assert summary.in_use == 3
        assert summary.available == 0
        assert summary.utilization_rate == 100
        assert summary.status == AvailabilityStatus.FULL
        assert summary.active_allocation_ids == ["S1", "S2"]

    def test_over_allocation_is_not_capped(self, equipment: Resource) -> None:
        allocations = [
            make_allocation("S1", "2024-01-01", "2024-01-11", quantity=2),
            make_allocation("S2", "2024-01-05", "2024-01-15", quantity=2),
        ]
        summary = calculate_availability(equipment, allocations, d("2024-01-06"))
        assert summary.in_use == 4
        assert summary.available == -1
        assert summary.utilization_rate == 133
        assert summary.status == AvailabilityStatus.OVER

    def test_end_date_is_exclusive(self, equipment: Resource) -> None:
        allocations = [make_allocation("S1", "2024-01-01", "2024-01-11", quantity=3)]
        assert calculate_availability(equipment, allocations, d("2024-01-10")).in_use == 3
        assert calculate_availability(equipment, allocations, d("2024-01-11")).in_use == 0
        assert calculate_availability(equipment, allocations, d("2024-01-01")).in_use == 3

    def test_idle_resource_is_available(self, equipment: Resource) -> None:
        summary = calculate_availability(equipment, [], d("2024-01-06"))
        assert summary.in_use == 0
        assert summary.utilization_rate == 0
        assert summary.status == AvailabilityStatus.AVAILABLE

    def test_other_resources_are_ignored_with_warning(self, equipment: Resource) -> None:
        allocations = [
            make_allocation("S1", "2024-01-01", "2024-01-11", quantity=1),
            make_allocation("S9", "2024-01-01", "2024-01-11", quantity=5, resource_id="EQ2"),
        ]
        summary = calculate_availability(equipment, allocations, d("2024-01-06"))
        assert summary.in_use == 1
        assert len(summary.warnings) == 1
        assert (summary.warnings[0].item_id, summary.warnings[0].field) == ("S9", "resource_id")
        assert "EQ2" in summary.warnings[0].message

    def test_zero_capacity(self) -> None:
        retired = Resource(id="EQ0", name="Old pump", kind=ResourceKind.EQUIPMENT, capacity=0, active=False)

        idle = calculate_availability(retired, [], d("2024-01-06"))
        assert idle.utilization_rate is None
        assert idle.status == AvailabilityStatus.FULL
        assert [(w.item_id, w.field) for w in idle.warnings] == [("EQ0", "active")]

        booked = calculate_availability(
            retired,
            [make_allocation("S1", "2024-01-01", "2024-01-11", resource_id="EQ0")],
            d("2024-01-06"),
        )
        assert booked.utilization_rate is None
        assert booked.available == -1
        assert booked.status == AvailabilityStatus.OVER


class TestClassifyUtilization:
    def test_thresholds(self) -> None:
        assert classify_utilization(0) == AvailabilityStatus.AVAILABLE
        assert classify_utilization(69) == AvailabilityStatus.AVAILABLE
        assert classify_utilization(70) == AvailabilityStatus.LIMITED
        assert classify_utilization(99) == AvailabilityStatus.LIMITED
        assert classify_utilization(100) == AvailabilityStatus.FULL
        assert classify_utilization(101) == AvailabilityStatus.OVER


class TestWorkload:
    def test_counts_current_and_upcoming(self) -> None:
        items = [
            make_item("past", "2023-12-01", "2023-12-20"),
            make_item("now", "2024-01-01", "2024-01-10"),
            make_item("ends-today", "2024-01-01", "2024-01-06"),
            make_item("later", "2024-02-01", "2024-02-10"),
            make_item("undated"),
        ]
        workload = summarize_workload(items, d("2024-01-06"))
        assert workload.total_assignments == 5
        assert workload.current_assignments == 2
        assert workload.upcoming_assignments == 1
        # Two of three concurrent assignments
        assert workload.utilization_rate == 67

    def test_utilization_is_capped(self) -> None:
        items = [make_item(f"job-{n}", "2024-01-01", "2024-01-31") for n in range(5)]
        workload = summarize_workload(items, d("2024-01-06"))
        assert workload.current_assignments == 5
        assert workload.utilization_rate == 100
        assert summarize_workload(items, d("2024-01-06"), max_concurrent=10).utilization_rate == 50

    def test_empty_workload(self) -> None:
        workload = summarize_workload([], d("2024-01-06"))
        assert workload.total_assignments == 0
        assert workload.utilization_rate == 0


class TestPerformanceScore:
    @pytest.mark.parametrize("rating, score", [("A", 95), ("B", 80), ("C", 65), ("D", 50), ("b", 80), ("Z", 50), (None, 50)])
    def test_score_by_rank(self, rating, score) -> None:
        subcontractor = Resource(id="SUB1", kind=ResourceKind.SUBCONTRACTOR, capacity=5, rating=rating)
        assert performance_score(subcontractor) == score
