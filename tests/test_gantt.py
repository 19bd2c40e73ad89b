"""Unit tests for gantt view assembly."""

from __future__ import annotations

import pytest

from models import (
    AvailabilityStatus,
    GanttFilter,
    GanttScope,
    GanttScopeKind,
    MilestoneStatus,
    Period,
    Resource,
    ResourceKind,
    ScheduleStatus,
)
from schedule_engine.errors import InvalidInputError
from schedule_engine.gantt import GanttAssembler, build_gantt_view
from tests.builders import d, make_allocation, make_item


S = ScheduleStatus
AS_OF = d("2024-01-12")


@pytest.fixture
def contract_items():
    """A three-level breakdown for contract C1 plus an unrelated item."""
    return [
        make_item("L1", "2024-01-01", "2024-01-31", contract_id="C1", name="Building works"),
        make_item("M1", "2024-01-01", "2024-01-15", parent_id="L1", contract_id="C1"),
        make_item("S1", "2024-01-01", "2024-01-10", progress=100, parent_id="M1",
                  contract_id="C1", critical_path=True, assigned_person_ids={"P1"}),
        make_item("S2", "2024-01-05", "2024-01-15", progress=50, parent_id="M1",
                  contract_id="C1", assigned_person_ids={"P1"}, assigned_equipment_ids={"EQ1"}),
        make_item("M2", "2024-01-16", "2024-01-31", parent_id="L1", contract_id="C1",
                  milestone=True, assigned_equipment_ids={"EQ1"}),
        make_item("X1", "2024-01-01", "2024-01-31", progress=30, contract_id="C2"),
    ]


@pytest.fixture
def contract_scope() -> GanttScope:
    return GanttScope(
        kind=GanttScopeKind.CONTRACT,
        id="C1",
        name="Office building",
        planned_start=d("2024-01-01"),
        planned_end=d("2024-01-31"),
    )


class TestContractView:
    def test_items_are_nested_and_resolved(self, contract_items, contract_scope) -> None:
        view = build_gantt_view(contract_scope, contract_items, AS_OF)

        assert [item.id for item in view.items] == ["L1"]
        root = view.items[0]
        assert [child.id for child in root.children] == ["M1", "M2"]
        assert [child.id for child in root.children[0].children] == ["S1", "S2"]

        by_id = {item.id: item for item in view.iter_items()}
        assert "X1" not in by_id
        assert by_id["M1"].progress == 75
        assert by_id["L1"].progress == 38
        assert by_id["L1"].reported_progress == 0
        assert by_id["L1"].status == S.IN_PROGRESS
        assert by_id["M1"].status == S.IN_PROGRESS
        assert by_id["S1"].status == S.COMPLETED
        assert by_id["S2"].status == S.DELAYED
        assert by_id["M2"].status == S.NOT_STARTED
        assert by_id["S2"].level == 2
        assert by_id["S2"].equipment == ["EQ1"]

    def test_summary(self, contract_items, contract_scope) -> None:
        summary = build_gantt_view(contract_scope, contract_items, AS_OF).summary
        assert summary.total_duration == 30
        assert summary.elapsed_days == 11
        assert summary.remaining_days == 19
        assert summary.overall_progress == 38
        assert summary.delayed_items == 1
        assert summary.critical_path_items == 1

    def test_upcoming_milestone_is_pending(self, contract_items, contract_scope) -> None:
        view = build_gantt_view(contract_scope, contract_items, AS_OF)
        assert [(m.id, m.status) for m in view.milestones] == [("M2", MilestoneStatus.PENDING)]
        assert view.warnings == []
        assert view.availability is None
        assert view.workload is None

    def test_elapsed_is_clamped_before_start(self, contract_items, contract_scope) -> None:
        summary = build_gantt_view(contract_scope, contract_items, d("2023-12-01")).summary
        assert summary.elapsed_days == 0
        assert summary.remaining_days == 30

    def test_critical_path_filter(self, contract_items, contract_scope) -> None:
        view = build_gantt_view(
            contract_scope,
            contract_items,
            AS_OF,
            gantt_filter=GanttFilter(critical_path_only=True),
        )
        assert [item.id for item in view.items] == ["S1"]
        assert view.summary.overall_progress == 100
        assert view.summary.critical_path_items == 1

    def test_status_and_date_range_filters(self, contract_items, contract_scope) -> None:
        delayed = build_gantt_view(
            contract_scope, contract_items, AS_OF,
            gantt_filter=GanttFilter(statuses=[S.DELAYED]),
        )
        assert [item.id for item in delayed.iter_items()] == ["S2"]

        late_january = build_gantt_view(
            contract_scope, contract_items, AS_OF,
            gantt_filter=GanttFilter(date_range=Period(start=d("2024-01-16"), end=d("2024-02-01"))),
        )
        assert [item.id for item in late_january.iter_items()] == ["L1", "M2"]

    def test_duplicate_ids_are_reported(self, contract_scope) -> None:
        items = [
            make_item("a", "2024-01-01", "2024-01-31", progress=10, contract_id="C1"),
            make_item("a", "2024-01-01", "2024-01-31", progress=90, contract_id="C1"),
        ]
        view = build_gantt_view(contract_scope, items, AS_OF)
        assert [(item.id, item.progress) for item in view.items] == [("a", 90)]
        assert [(w.item_id, w.field) for w in view.warnings] == [("a", "id")]

    def test_missing_scope_span_uses_items(self, contract_items) -> None:
        scope = GanttScope(kind=GanttScopeKind.CONTRACT, id="C1")
        summary = build_gantt_view(scope, contract_items, AS_OF).summary
        assert summary.total_duration == 30


class TestMilestones:
    def test_missed_achieved_and_pending(self) -> None:
        items = [
            make_item("late", "2024-01-01", "2024-02-01", progress=50, milestone=True, contract_id="C1"),
            make_item("next", "2024-02-01", "2024-03-01", progress=10, milestone=True, contract_id="C1"),
            make_item("met", "2024-01-01", "2024-02-01", progress=100, milestone=True, contract_id="C1"),
        ]
        scope = GanttScope(kind=GanttScopeKind.CONTRACT, id="C1")
        view = build_gantt_view(scope, items, d("2024-02-10"))
        statuses = {m.id: m.status for m in view.milestones}
        assert statuses == {
            "late": MilestoneStatus.MISSED,
            "next": MilestoneStatus.PENDING,
            "met": MilestoneStatus.ACHIEVED,
        }

    def test_undated_milestone_is_pending_with_warning(self) -> None:
        items = [make_item("gate", milestone=True, progress=40, contract_id="C1")]
        scope = GanttScope(kind=GanttScopeKind.CONTRACT, id="C1")
        view = build_gantt_view(scope, items, AS_OF)
        assert view.milestones[0].status == MilestoneStatus.PENDING
        assert view.milestones[0].due_date is None
        assert any(w.field == "planned_end" for w in view.warnings)


class TestResourceViews:
    def test_equipment_view_carries_capacity_picture(self, contract_items, equipment: Resource) -> None:
        scope = GanttScope(kind=GanttScopeKind.EQUIPMENT, id="EQ1")
        allocations = [
            make_allocation("S2", "2024-01-05", "2024-01-16", quantity=2),
            make_allocation("M2", "2024-01-10", "2024-02-01", quantity=2),
        ]
        view = build_gantt_view(
            scope, contract_items, AS_OF, resource=equipment, allocations=allocations
        )

        assert [item.id for item in view.items] == ["S2", "M2"]
        assert view.availability.in_use == 4
        assert view.availability.status == AvailabilityStatus.OVER
        assert len(view.conflicts) == 1
        assert view.conflicts[0].period_start == d("2024-01-10")
        assert view.conflicts[0].period_end == d("2024-01-16")
        # Span of the selected items: 01-05 to 01-31
        assert view.summary.total_duration == 26
        assert view.workload is None

    def test_person_view_has_workload(self, contract_items) -> None:
        scope = GanttScope(kind=GanttScopeKind.PERSON, id="P1")
        view = build_gantt_view(scope, contract_items, AS_OF)
        assert [item.id for item in view.items] == ["S1", "S2"]
        assert view.workload.total_assignments == 2
        assert view.workload.current_assignments == 1
        assert view.current_projects is None
        assert view.performance_score is None

    def test_subcontractor_view_counts_current_projects(self) -> None:
        items = [
            make_item("a", "2024-01-01", "2024-01-31", progress=40, assigned_subcontractor_ids={"SUB1"}),
            make_item("b", "2024-01-01", "2024-01-10", progress=100, assigned_subcontractor_ids={"SUB1"}),
            make_item("c", "2024-02-01", "2024-02-28", assigned_subcontractor_ids={"SUB1"}),
            make_item("d", "2024-01-01", "2024-01-31", progress=40, assigned_subcontractor_ids={"SUB2"}),
        ]
        subcontractor = Resource(
            id="SUB1", name="Tanaka Steel", kind=ResourceKind.SUBCONTRACTOR, capacity=5, rating="B"
        )
        scope = GanttScope(kind=GanttScopeKind.SUBCONTRACTOR, id="SUB1")
        view = build_gantt_view(scope, items, AS_OF, resource=subcontractor)
        assert view.current_projects == 1
        assert view.performance_score == 80
        assert view.workload.utilization_rate == 33
        assert view.workload.upcoming_assignments == 1
        assert view.availability.in_use == 0
        assert view.conflicts == []

    def test_resource_kind_must_match_scope(self, contract_items, equipment: Resource) -> None:
        scope = GanttScope(kind=GanttScopeKind.PERSON, id="EQ1")
        with pytest.raises(InvalidInputError):
            GanttAssembler(scope, contract_items, AS_OF, resource=equipment)

    def test_resource_id_must_match_scope(self, contract_items, equipment: Resource) -> None:
        scope = GanttScope(kind=GanttScopeKind.EQUIPMENT, id="EQ2")
        with pytest.raises(InvalidInputError):
            GanttAssembler(scope, contract_items, AS_OF, resource=equipment)
