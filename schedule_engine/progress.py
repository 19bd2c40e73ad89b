"""
Progress Rollup Engine.

Rolls reported progress up a work breakdown (small -> medium -> large) in a
single bottom-up pass. Parents are linked explicitly through `parent_id`;
an item whose parent cannot be found is treated as its own root.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from models import (
    AggregatedNode,
    AggregatedTree,
    AggregationStrategy,
    DataQualityWarning,
    ScheduleItem,
)
from .dates import round_half_up

logger = logging.getLogger(__name__)


class ProgressAggregator:
    """
    Builds an AggregatedTree from a flat list of schedule items.
    One instance handles one snapshot; call `run()` once.
    """

    def __init__(self, items: List[ScheduleItem], strategy: AggregationStrategy = AggregationStrategy.EQUAL):
        self.strategy = AggregationStrategy(strategy)
        self.items: Dict[str, ScheduleItem] = {}
        self.warnings: List[DataQualityWarning] = []

        for item in items:
            if item.id in self.items:
                self._warn(item.id, "id", "Duplicate item id; the later record wins")
            self.items[item.id] = item

        # Effective parent links after orphan and cycle repair
        self.parents: Dict[str, Optional[str]] = {}

    def run(self) -> AggregatedTree:
        self._link_parents()
        self._break_cycles()

        children: Dict[str, List[str]] = defaultdict(list)
        for item_id in self.items:
            parent_id = self.parents[item_id]
            if parent_id is not None:
                children[parent_id].append(item_id)

        roots = [item_id for item_id in self.items if self.parents[item_id] is None]
        self._check_tiers(children)

        depths = self._depths(roots, children)
        aggregated: Dict[str, int] = {}
        weights: Dict[str, float] = {item_id: self._weight(item_id) for item_id in self.items}

        # Post-order walk: every child is settled before its parent is visited
        for item_id in self._post_order(roots, children):
            kids = children.get(item_id)
            if not kids:
                aggregated[item_id] = self.items[item_id].progress
                continue
            total_weight = sum(weights[k] for k in kids)
            weighted = sum(weights[k] * aggregated[k] for k in kids)
            aggregated[item_id] = round_half_up(weighted / total_weight)

        nodes = {
            item_id: AggregatedNode(
                item_id=item_id,
                parent_id=self.parents[item_id],
                depth=depths[item_id],
                children=children.get(item_id, []),
                reported_progress=item.progress,
                aggregated_progress=aggregated[item_id],
                weight=weights[item_id]
            )
            for item_id, item in self.items.items()
        }

        logger.info(
            f"Aggregated {len(nodes)} items under {len(roots)} roots "
            f"({self.strategy.value} weighting, {len(self.warnings)} warnings)"
        )
        return AggregatedTree(strategy=self.strategy, nodes=nodes, roots=roots, warnings=self.warnings)

    # --- Hierarchy repair ---

    def _link_parents(self) -> None:
        for item_id, item in self.items.items():
            parent_id = item.parent_id
            if parent_id is None or parent_id == "":
                self.parents[item_id] = None
            elif parent_id == item_id:
                self._warn(item_id, "parent_id", "Item lists itself as parent; treated as a root")
                self.parents[item_id] = None
            elif parent_id not in self.items:
                self._warn(item_id, "parent_id", f"Parent {parent_id} not found; treated as a root")
                self.parents[item_id] = None
            else:
                self.parents[item_id] = parent_id

    def _break_cycles(self) -> None:
        """Cut the parent link of the first item found on each cycle."""
        for item_id in self.items:
            path = {item_id}
            current = self.parents[item_id]
            while current is not None:
                if current == item_id:
                    self._warn(item_id, "parent_id", "Parent links form a cycle; treated as a root")
                    self.parents[item_id] = None
                    break
                if current in path:
                    # Leads into a cycle that does not include this item
                    break
                path.add(current)
                current = self.parents[current]

    def _check_tiers(self, children: Dict[str, List[str]]) -> None:
        for parent_id, kids in children.items():
            parent_tier = self.items[parent_id].tier
            if parent_tier is None:
                continue
            for kid in kids:
                kid_tier = self.items[kid].tier
                if kid_tier is not None and kid_tier.rank <= parent_tier.rank:
                    self._warn(
                        kid,
                        "tier",
                        f"Tier {kid_tier.value} is not below parent tier {parent_tier.value}"
                    )

    # --- Traversal ---

    @staticmethod
    def _depths(roots: List[str], children: Dict[str, List[str]]) -> Dict[str, int]:
        depths = {}
        stack = [(root, 0) for root in roots]
        while stack:
            item_id, depth = stack.pop()
            depths[item_id] = depth
            stack.extend((kid, depth + 1) for kid in children.get(item_id, []))
        return depths

    @staticmethod
    def _post_order(roots: List[str], children: Dict[str, List[str]]) -> List[str]:
        order = []
        stack = [(root, False) for root in reversed(roots)]
        while stack:
            item_id, expanded = stack.pop()
            if expanded:
                order.append(item_id)
                continue
            stack.append((item_id, True))
            stack.extend((kid, False) for kid in reversed(children.get(item_id, [])))
        return order

    # --- Weighting ---

    def _weight(self, item_id: str) -> float:
        if self.strategy == AggregationStrategy.EQUAL:
            return 1.0
        days = self.items[item_id].planned_days
        if days is None:
            self._warn(item_id, "planned_dates", "No usable planned span; weighted as 1 day")
            return 1.0
        return float(days)

    def _warn(self, item_id: str, field: str, message: str) -> None:
        logger.warning(f"[{item_id}] {message}")
        self.warnings.append(DataQualityWarning(item_id=item_id, field=field, message=message))


def aggregate_progress(
    items: List[ScheduleItem],
    strategy: AggregationStrategy = AggregationStrategy.EQUAL
) -> AggregatedTree:
    """Roll leaf progress up through every parent in `items`."""
    return ProgressAggregator(items, strategy).run()
