"""
Repository-driven entry point.

Fetches snapshots through a ScheduleRepository and hands them to the pure
computation functions. Independent scopes can be built concurrently; each
view reads its own snapshot, so no locking is involved.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, TypeVar

from models import (
    AggregationStrategy,
    Alert,
    GanttFilter,
    GanttScope,
    GanttScopeKind,
    GanttView,
    ScheduleItem,
)
from repository.base import ScheduleItemFilter, ScheduleRepository
from .alerts import AlertGenerator, filter_alerts_by_contract
from .config import AlertConfig
from .dates import DateLike, as_date
from .errors import RepositoryError
from .gantt import build_gantt_view
from .progress import aggregate_progress

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScheduleService:
    """
    Binds a repository to the engine. The repository (and any client or
    session it holds) is owned by the caller.
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        alert_config: Optional[AlertConfig] = None,
        strategy: AggregationStrategy = AggregationStrategy.EQUAL
    ):
        self.repository = repository
        self.alert_config = alert_config or AlertConfig()
        self.strategy = AggregationStrategy(strategy)

    # --- Views ---

    def build_view(
        self,
        scope: GanttScope,
        as_of: Optional[DateLike] = None,
        gantt_filter: Optional[GanttFilter] = None
    ) -> GanttView:
        day = as_date(as_of)
        items = self._fetch(lambda: self.repository.list_schedule_items())

        resource = None
        allocations = None
        if scope.kind != GanttScopeKind.CONTRACT:
            resource = self._fetch(lambda: self.repository.get_resource(scope.id))
            allocations = self._fetch(lambda: self.repository.list_allocations(scope.id))
            if not scope.name:
                scope = scope.model_copy(update={"name": resource.name})

        return build_gantt_view(
            scope,
            items,
            as_of=day,
            strategy=self.strategy,
            resource=resource,
            allocations=allocations,
            gantt_filter=gantt_filter
        )

    def build_views(
        self,
        scopes: List[GanttScope],
        as_of: Optional[DateLike] = None,
        max_workers: int = 4
    ) -> List[GanttView]:
        """Build several views concurrently; results follow the order of `scopes`."""
        day = as_date(as_of)
        if not scopes:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(self.build_view, scope, day) for scope in scopes]
            return [future.result() for future in futures]

    # --- Alerts ---

    def alerts(
        self,
        as_of: Optional[DateLike] = None,
        contract_id: Optional[str] = None
    ) -> List[Alert]:
        """
        Alerts over the whole snapshot after the progress rollup; parents
        carry their aggregated progress. Narrowed to `contract_id` last.
        """
        items = self._fetch(lambda: self.repository.list_schedule_items())
        tree = aggregate_progress(items, self.strategy)
        alerts = AlertGenerator(self.alert_config).generate(tree.apply(items), as_of)
        if contract_id is not None:
            alerts = filter_alerts_by_contract(alerts, contract_id)
        return alerts

    def items(self, item_filter: Optional[ScheduleItemFilter] = None) -> List[ScheduleItem]:
        return self._fetch(lambda: self.repository.list_schedule_items(item_filter))

    @staticmethod
    def _fetch(call: Callable[[], T]) -> T:
        """Run a repository call, folding unexpected failures into RepositoryError."""
        try:
            return call()
        except RepositoryError:
            raise
        except Exception as e:
            logger.error(f"Repository call failed: {e}")
            raise RepositoryError(str(e)) from e
