from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Optional

from .errors import NotFoundError
from .models import HOURS_PRECISION, WorkItem
from .spreading import AllocationSpreader
from .storage import EntityStore

logger = logging.getLogger(__name__)

EPSILON = 1e-6


class TimelineRebalancer:
    """Re-spreads each resource's committed hours after a work item's dates move."""

    def __init__(self, store: EntityStore, spreader: Optional[AllocationSpreader] = None) -> None:
        self._store = store
        self._spreader = spreader or AllocationSpreader(store)

    def committed_totals(self, work_item_id: int) -> Dict[int, float]:
        totals: Dict[int, float] = {}
        for allocation in self._store.list_allocations(work_item_id=work_item_id):
            totals[allocation.resource_id] = totals.get(allocation.resource_id, 0.0) + allocation.hours
        return {resource_id: round(total, HOURS_PRECISION) for resource_id, total in totals.items()}

    def rebalance_for_work_item(self, work_item_id: int) -> None:
        rebalanced = 0
        with self._store.transaction():
            work_item = self._store.get_work_item(work_item_id)
            if work_item is None:
                logger.debug("work item %s no longer exists; nothing to rebalance", work_item_id)
                return
            totals = self.committed_totals(work_item_id)
            for resource_id, total in totals.items():
                if total <= EPSILON:
                    continue
                self._spreader.replace_allocations(resource_id, work_item, total)
                rebalanced += 1
        logger.info(
            "rebalanced %d resources on work item %s (%s to %s)",
            rebalanced,
            work_item_id,
            work_item.start_date.isoformat(),
            work_item.end_date.isoformat(),
        )


def update_work_item_dates(
    store: EntityStore,
    work_item_id: int,
    start_date: date,
    end_date: date,
    rebalancer: Optional[TimelineRebalancer] = None,
) -> WorkItem:
    """Save new dates, then rebalance allocations on a best-effort basis.

    The date change stands even if rebalancing fails; the failure is logged.
    """
    current = store.get_work_item(work_item_id)
    if current is None:
        raise NotFoundError("Work item", work_item_id)
    updated = store.update_work_item(replace(current, start_date=start_date, end_date=end_date))
    if (current.start_date, current.end_date) == (updated.start_date, updated.end_date):
        return updated
    rebalancer = rebalancer or TimelineRebalancer(store)
    try:
        rebalancer.rebalance_for_work_item(work_item_id)
    except Exception:
        logger.exception("failed to rebalance allocations for work item %s", work_item_id)
    return updated
