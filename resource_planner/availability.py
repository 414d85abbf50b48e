from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, Optional, Sequence

import pandas as pd

from .io_utils import allocations_frame
from .storage import EntityStore
from .weeks import weeks_spanned

logger = logging.getLogger(__name__)

EPSILON = 1e-6

CAPACITY_GRID_COLUMNS = [
    "resource_id",
    "week_start_date",
    "hours",
    "capacity",
    "utilization_pct",
    "over_allocated",
]


def _net_hours(capacity: float, allocated_total: float, num_weeks: int) -> float:
    average_allocated = allocated_total / max(1, num_weeks)
    return max(0.0, capacity - average_allocated)


class AvailabilityCalculator:
    """Average free weekly hours of a resource over a date window, net of allocations."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def net_availability(self, resource_id: int, window_start: date, window_end: date) -> float:
        """Capacity minus the average weekly allocated hours in the window, floored at zero.

        Only allocations whose week start falls inside ``[window_start, window_end]``
        count. An unknown resource has no availability and yields ``0.0``.
        """
        resource = self._store.get_resource(resource_id)
        if resource is None:
            logger.debug("resource %s not found; treating as unavailable", resource_id)
            return 0.0
        allocations = self._store.list_allocations(
            resource_id=resource_id,
            week_start_from=window_start,
            week_start_to=window_end,
        )
        total = sum(allocation.hours for allocation in allocations)
        return _net_hours(resource.capacity, total, weeks_spanned(window_start, window_end))

    def net_availability_many(
        self, resource_ids: Sequence[int], window_start: date, window_end: date
    ) -> Dict[int, float]:
        """Batch form of :meth:`net_availability` using a single allocation query."""
        frame = allocations_frame(
            self._store.list_allocations(week_start_from=window_start, week_start_to=window_end)
        )
        totals = frame.groupby("resource_id")["hours"].sum() if not frame.empty else pd.Series(dtype=float)
        num_weeks = weeks_spanned(window_start, window_end)
        result: Dict[int, float] = {}
        for resource_id in resource_ids:
            resource = self._store.get_resource(resource_id)
            if resource is None:
                result[resource_id] = 0.0
                continue
            allocated = float(totals.get(resource_id, 0.0))
            result[resource_id] = _net_hours(resource.capacity, allocated, num_weeks)
        return result

    def capacity_grid(self, resource_ids: Optional[Iterable[int]] = None) -> pd.DataFrame:
        """Weekly load per resource across all work items, flagging over-allocated weeks."""
        frame = allocations_frame(self._store.list_allocations())
        if resource_ids is not None:
            wanted = set(resource_ids)
            frame = frame[frame["resource_id"].isin(wanted)]
        if frame.empty:
            return pd.DataFrame(columns=CAPACITY_GRID_COLUMNS)
        grid = (
            frame.groupby(["resource_id", "week_start_date"], as_index=False)["hours"]
            .sum()
            .sort_values(["resource_id", "week_start_date"])
            .reset_index(drop=True)
        )
        capacities = {
            resource.id: resource.capacity for resource in self._store.list_resources()
        }
        grid["capacity"] = grid["resource_id"].map(capacities)
        unknown = grid[grid["capacity"].isna()]
        if not unknown.empty:
            logger.warning(
                "skipping allocations for unknown resources: %s",
                sorted(int(value) for value in unknown["resource_id"].unique()),
            )
            grid = grid.dropna(subset=["capacity"]).reset_index(drop=True)
        grid["utilization_pct"] = (grid["hours"] / grid["capacity"] * 100).round(1)
        grid["over_allocated"] = grid["hours"] > grid["capacity"] + EPSILON
        over = grid[grid["over_allocated"]]
        if not over.empty:
            logger.info("%d over-allocated resource weeks", len(over))
        return grid[CAPACITY_GRID_COLUMNS]
