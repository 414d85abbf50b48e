from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import List

from .errors import NotFoundError, PlanningValidationError
from .models import HOURS_PRECISION, Allocation, WorkItem
from .storage import EntityStore
from .weeks import week_start, week_starts, weeks_spanned

logger = logging.getLogger(__name__)


def validate_total_hours(total_hours: object) -> float:
    if isinstance(total_hours, bool) or not isinstance(total_hours, (int, float, Decimal)):
        raise PlanningValidationError("total_hours must be a number", "total_hours")
    value = float(total_hours)
    if math.isnan(value) or math.isinf(value):
        raise PlanningValidationError("total_hours must be finite", "total_hours")
    if value < 0:
        raise PlanningValidationError("total_hours must be non-negative", "total_hours")
    return value


def weekly_allocations(resource_id: int, work_item: WorkItem, total_hours: float) -> List[Allocation]:
    """Split ``total_hours`` into equal weekly chunks covering the work item's weeks.

    Chunks are rounded to two decimals, so their sum may differ from the total
    by at most 0.01 per week.
    """
    anchor = week_start(work_item.start_date)
    num_weeks = weeks_spanned(work_item.start_date, work_item.end_date)
    per_week = round(total_hours / num_weeks, HOURS_PRECISION)
    return [
        Allocation(
            resource_id=resource_id,
            work_item_id=work_item.id,
            week_start_date=week,
            hours=per_week,
        )
        for week in week_starts(anchor, num_weeks)
    ]


class AllocationSpreader:
    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def commit_allocation(
        self, resource_id: int, work_item_id: int, total_hours: float
    ) -> List[Allocation]:
        """Replace the pair's allocations with ``total_hours`` spread over the work item's weeks.

        Last write wins. Zero hours clears the pair and returns an empty list.
        """
        hours = validate_total_hours(total_hours)
        work_item = self._store.get_work_item(work_item_id)
        if work_item is None:
            raise NotFoundError("Work item", work_item_id)
        if self._store.get_resource(resource_id) is None:
            raise NotFoundError("Resource", resource_id)
        with self._store.transaction():
            inserted = self.replace_allocations(resource_id, work_item, hours)
        logger.info(
            "committed %.2fh for resource %s on work item %s across %d weeks",
            hours,
            resource_id,
            work_item_id,
            len(inserted),
        )
        return inserted

    def replace_allocations(
        self, resource_id: int, work_item: WorkItem, total_hours: float
    ) -> List[Allocation]:
        """Delete then insert; callers hold ``store.transaction()``."""
        self._store.delete_allocations(resource_id, work_item.id)
        if total_hours <= 0:
            return []
        return self._store.insert_allocations(weekly_allocations(resource_id, work_item, total_hours))
