"""
Gantt View Assembly.

Composes the status resolver, progress rollup, availability calculator and
conflict detector into one scoped view rooted at a contract, a person, a
piece of equipment or a subcontractor.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Set

from models import (
    AggregatedTree,
    AggregationStrategy,
    Allocation,
    DataQualityWarning,
    GanttFilter,
    GanttItem,
    GanttScope,
    GanttScopeKind,
    GanttSummary,
    GanttView,
    Milestone,
    MilestoneStatus,
    Period,
    Resource,
    ResourceKind,
    ScheduleItem,
    ScheduleStatus,
    StatusResolution,
)
from .availability import calculate_availability, performance_score, summarize_workload
from .conflicts import detect_conflicts
from .dates import DateLike, as_date, round_half_up
from .errors import InvalidInputError
from .progress import aggregate_progress
from .status import resolve_statuses

logger = logging.getLogger(__name__)

_SCOPE_RESOURCE_KIND = {
    GanttScopeKind.PERSON: ResourceKind.PERSON,
    GanttScopeKind.EQUIPMENT: ResourceKind.EQUIPMENT,
    GanttScopeKind.SUBCONTRACTOR: ResourceKind.SUBCONTRACTOR,
}


def classify_milestone(item: ScheduleItem, status: ScheduleStatus, as_of: date) -> MilestoneStatus:
    if status == ScheduleStatus.COMPLETED:
        return MilestoneStatus.ACHIEVED
    if item.planned_end is not None and item.planned_end < as_of:
        return MilestoneStatus.MISSED
    return MilestoneStatus.PENDING


class GanttAssembler:
    """
    Builds one GanttView from a snapshot of schedule items.
    Aggregation runs over the whole snapshot so that items whose parents sit
    outside the scope still get a correct rollup.
    """

    def __init__(
        self,
        scope: GanttScope,
        items: List[ScheduleItem],
        as_of: Optional[DateLike] = None,
        strategy: AggregationStrategy = AggregationStrategy.EQUAL,
        resource: Optional[Resource] = None,
        allocations: Optional[List[Allocation]] = None,
        gantt_filter: Optional[GanttFilter] = None
    ):
        self.scope = scope
        self.snapshot = list(items)
        # Later duplicates win; the aggregator reports them
        self.items = {item.id: item for item in self.snapshot}
        self.as_of = as_date(as_of)
        self.strategy = AggregationStrategy(strategy)
        self.resource = resource
        self.allocations = allocations or []
        self.filter = gantt_filter
        self.warnings: List[DataQualityWarning] = []

        if resource is not None:
            expected_kind = _SCOPE_RESOURCE_KIND.get(scope.kind)
            if expected_kind is None or resource.kind != expected_kind:
                raise InvalidInputError(f"A {resource.kind.value} resource cannot root a {scope.kind.value} view")
            if resource.id != scope.id:
                raise InvalidInputError(f"Resource {resource.id} does not match scope {scope.id}")

    def build(self) -> GanttView:
        tree = aggregate_progress(self.snapshot, self.strategy)
        # Parents are resolved on their rolled-up progress, not the stale reported value
        resolutions = resolve_statuses(tree.apply(list(self.items.values())), self.as_of)

        selected = self._select(tree)
        selected = self._apply_filter(selected, resolutions)
        ordered = sorted(selected, key=self._sort_key)

        self._collect_warnings(tree, resolutions, set(ordered))
        roots = self._nest(ordered, tree, resolutions)
        milestones = self._milestones(ordered, resolutions)
        summary = self._summary(ordered, roots, tree, resolutions)

        view = GanttView(
            scope=self.scope,
            as_of=self.as_of,
            items=roots,
            milestones=milestones,
            summary=summary
        )
        self._attach_scope_extras(view, ordered, resolutions)
        view.warnings = self.warnings

        logger.info(
            f"Built {self.scope.kind.value} view {self.scope.id}: {len(ordered)} items, "
            f"{len(milestones)} milestones, {summary.delayed_items} delayed"
        )
        return view

    # --- Selection ---

    def _select(self, tree: AggregatedTree) -> List[str]:
        kind = self.scope.kind
        if kind == GanttScopeKind.CONTRACT:
            seeds = [i for i, item in self.items.items() if item.contract_id == self.scope.id]
            selected: Set[str] = set()
            stack = list(seeds)
            while stack:
                item_id = stack.pop()
                if item_id in selected:
                    continue
                selected.add(item_id)
                stack.extend(tree.nodes[item_id].children)
            return [i for i in self.items if i in selected]

        if kind == GanttScopeKind.PERSON:
            return [i for i, item in self.items.items() if self.scope.id in item.assigned_person_ids]
        if kind == GanttScopeKind.EQUIPMENT:
            return [i for i, item in self.items.items() if self.scope.id in item.assigned_equipment_ids]
        return [i for i, item in self.items.items() if self.scope.id in item.assigned_subcontractor_ids]

    def _apply_filter(self, selected: List[str], resolutions: Dict[str, StatusResolution]) -> List[str]:
        if self.filter is None:
            return selected
        kept = []
        for item_id in selected:
            item = self.items[item_id]
            if self.filter.statuses and resolutions[item_id].status not in self.filter.statuses:
                continue
            if self.filter.critical_path_only and not item.critical_path:
                continue
            if self.filter.date_range is not None:
                if item.planned_start is None or item.planned_end is None:
                    continue
                if item.planned_end < item.planned_start:
                    continue
                span = Period(start=item.planned_start, end=item.planned_end + timedelta(days=1))
                if not span.overlaps(self.filter.date_range):
                    continue
            kept.append(item_id)
        return kept

    def _sort_key(self, item_id: str):
        item = self.items[item_id]
        return (item.planned_start or date.max, item.id)

    # --- Items ---

    def _nest(
        self,
        ordered: List[str],
        tree: AggregatedTree,
        resolutions: Dict[str, StatusResolution]
    ) -> List[GanttItem]:
        in_view = set(ordered)
        built: Dict[str, GanttItem] = {}
        for item_id in ordered:
            item = self.items[item_id]
            node = tree.nodes[item_id]
            built[item_id] = GanttItem(
                id=item.id,
                name=item.name,
                start=item.planned_start,
                end=item.planned_end,
                progress=node.aggregated_progress,
                reported_progress=item.progress,
                status=resolutions[item_id].status,
                level=node.depth,
                parent_id=node.parent_id,
                dependencies=sorted(item.predecessor_ids),
                assignees=sorted(item.assigned_person_ids),
                subcontractors=sorted(item.assigned_subcontractor_ids),
                equipment=sorted(item.assigned_equipment_ids),
                is_critical_path=item.critical_path,
                warnings=resolutions[item_id].warnings
            )

        roots = []
        for item_id in ordered:
            parent_id = tree.nodes[item_id].parent_id
            if parent_id is not None and parent_id in in_view:
                built[parent_id].children.append(built[item_id])
            else:
                roots.append(built[item_id])
        return roots

    def _milestones(self, ordered: List[str], resolutions: Dict[str, StatusResolution]) -> List[Milestone]:
        milestones = []
        for item_id in ordered:
            item = self.items[item_id]
            if not item.milestone:
                continue
            if item.planned_end is None:
                self._warn(item_id, "planned_end", "Milestone has no planned end; classified as pending")
            milestones.append(Milestone(
                id=item.id,
                name=item.name,
                due_date=item.planned_end,
                status=classify_milestone(item, resolutions[item_id].status, self.as_of)
            ))
        return milestones

    # --- Summary ---

    def _summary(
        self,
        ordered: List[str],
        roots: List[GanttItem],
        tree: AggregatedTree,
        resolutions: Dict[str, StatusResolution]
    ) -> GanttSummary:
        start, end = self._root_span(ordered)
        if start is None or end is None:
            total = elapsed = remaining = 0
            if ordered:
                self._warn(self.scope.id, "planned_dates", "No usable planned span for the view root")
        else:
            total = max(0, (end - start).days)
            elapsed = max(0, (self.as_of - start).days)
            remaining = max(0, total - elapsed)

        total_weight = sum(tree.nodes[r.id].weight for r in roots)
        if total_weight:
            weighted = sum(tree.nodes[r.id].weight * r.progress for r in roots)
            overall = round_half_up(weighted / total_weight)
        else:
            overall = 0

        return GanttSummary(
            total_duration=total,
            elapsed_days=elapsed,
            remaining_days=remaining,
            overall_progress=overall,
            delayed_items=sum(1 for i in ordered if resolutions[i].status == ScheduleStatus.DELAYED),
            critical_path_items=sum(1 for i in ordered if self.items[i].critical_path)
        )

    def _root_span(self, ordered: List[str]):
        if self.scope.planned_start is not None and self.scope.planned_end is not None:
            return self.scope.planned_start, self.scope.planned_end
        starts = [self.items[i].planned_start for i in ordered if self.items[i].planned_start]
        ends = [self.items[i].planned_end for i in ordered if self.items[i].planned_end]
        if not starts or not ends:
            return None, None
        return min(starts), max(ends)

    # --- Scope extras ---

    def _attach_scope_extras(
        self,
        view: GanttView,
        ordered: List[str],
        resolutions: Dict[str, StatusResolution]
    ) -> None:
        kind = self.scope.kind
        if kind == GanttScopeKind.CONTRACT:
            return

        scoped_items = [self.items[i] for i in ordered]
        if kind in (GanttScopeKind.PERSON, GanttScopeKind.SUBCONTRACTOR):
            view.workload = summarize_workload(scoped_items, self.as_of)
        if kind == GanttScopeKind.SUBCONTRACTOR:
            view.current_projects = sum(
                1 for i in ordered if resolutions[i].status == ScheduleStatus.IN_PROGRESS
            )

        if self.resource is not None:
            if kind == GanttScopeKind.SUBCONTRACTOR:
                view.performance_score = performance_score(self.resource)
            own = [a for a in self.allocations if a.resource_id == self.resource.id]
            view.availability = calculate_availability(self.resource, own, self.as_of)
            view.conflicts = detect_conflicts(own, self.resource.capacity)

    def _collect_warnings(
        self,
        tree: AggregatedTree,
        resolutions: Dict[str, StatusResolution],
        in_view: Set[str]
    ) -> None:
        for warning in tree.warnings:
            if warning.item_id in in_view:
                self.warnings.append(warning)
        for item_id in sorted(in_view):
            self.warnings.extend(resolutions[item_id].warnings)

    def _warn(self, item_id: str, field: str, message: str) -> None:
        logger.warning(f"[{item_id}] {message}")
        self.warnings.append(DataQualityWarning(item_id=item_id, field=field, message=message))


def build_gantt_view(
    scope: GanttScope,
    items: List[ScheduleItem],
    as_of: Optional[DateLike] = None,
    strategy: AggregationStrategy = AggregationStrategy.EQUAL,
    resource: Optional[Resource] = None,
    allocations: Optional[List[Allocation]] = None,
    gantt_filter: Optional[GanttFilter] = None
) -> GanttView:
    """Assemble the gantt view rooted at `scope` from a snapshot of items."""
    return GanttAssembler(
        scope,
        items,
        as_of=as_of,
        strategy=strategy,
        resource=resource,
        allocations=allocations,
        gantt_filter=gantt_filter
    ).build()
