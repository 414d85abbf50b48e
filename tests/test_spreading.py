"""Tests for resource_planner/spreading.py."""

from datetime import date, timedelta

import pytest

from conftest import add_work_item
from resource_planner.errors import NotFoundError, PlanningValidationError, TransientStorageError
from resource_planner.models import Resource
from resource_planner.spreading import AllocationSpreader, weekly_allocations
from resource_planner.storage import InMemoryStore


class TestCommitAllocation:
    def test_two_week_split(self, seeded_store):
        rows = AllocationSpreader(seeded_store).commit_allocation(1, 10, 80)
        assert [(r.week_start_date, r.hours) for r in rows] == [
            (date(2025, 1, 6), 40.0),
            (date(2025, 1, 13), 40.0),
        ]
        assert all(r.id is not None for r in rows)
        assert seeded_store.list_allocations(resource_id=1, work_item_id=10) == rows

    def test_rows_tile_the_date_range(self, seeded_store):
        add_work_item(seeded_store, 11, date(2025, 1, 8), date(2025, 2, 4))
        rows = AllocationSpreader(seeded_store).commit_allocation(2, 11, 100)
        weeks = [r.week_start_date for r in rows]
        assert weeks[0] == date(2025, 1, 6)
        assert len(weeks) == 5
        assert all(b - a == timedelta(days=7) for a, b in zip(weeks, weeks[1:]))
        assert weeks[-1] <= date(2025, 2, 4) < weeks[-1] + timedelta(days=7)

    def test_rounding_error_is_bounded(self, seeded_store):
        add_work_item(seeded_store, 11, date(2025, 1, 6), date(2025, 1, 26))
        rows = AllocationSpreader(seeded_store).commit_allocation(1, 11, 100)
        assert [r.hours for r in rows] == [33.33, 33.33, 33.33]
        assert abs(sum(r.hours for r in rows) - 100) <= 0.01 * len(rows)

    def test_short_item_gets_one_row(self, seeded_store):
        add_work_item(seeded_store, 11, date(2025, 1, 8), date(2025, 1, 10))
        rows = AllocationSpreader(seeded_store).commit_allocation(1, 11, 12)
        assert [(r.week_start_date, r.hours) for r in rows] == [(date(2025, 1, 6), 12.0)]

    def test_second_commit_replaces_first(self, seeded_store):
        spreader = AllocationSpreader(seeded_store)
        spreader.commit_allocation(1, 10, 80)
        spreader.commit_allocation(1, 10, 30)
        rows = seeded_store.list_allocations(resource_id=1, work_item_id=10)
        assert [r.hours for r in rows] == [15.0, 15.0]

    def test_other_pairs_untouched(self, seeded_store):
        spreader = AllocationSpreader(seeded_store)
        spreader.commit_allocation(2, 10, 20)
        spreader.commit_allocation(1, 10, 80)
        assert [r.hours for r in seeded_store.list_allocations(resource_id=2)] == [10.0, 10.0]

    def test_zero_hours_clears_the_pair(self, seeded_store):
        spreader = AllocationSpreader(seeded_store)
        spreader.commit_allocation(1, 10, 80)
        assert spreader.commit_allocation(1, 10, 0) == []
        assert seeded_store.list_allocations(resource_id=1, work_item_id=10) == []

    @pytest.mark.parametrize("hours", [-1, float("nan"), float("inf"), "80", None, True])
    def test_rejects_invalid_hours(self, seeded_store, hours):
        spreader = AllocationSpreader(seeded_store)
        spreader.commit_allocation(1, 10, 80)
        with pytest.raises(PlanningValidationError):
            spreader.commit_allocation(1, 10, hours)
        assert len(seeded_store.list_allocations(resource_id=1, work_item_id=10)) == 2

    def test_unknown_work_item(self, seeded_store):
        with pytest.raises(NotFoundError):
            AllocationSpreader(seeded_store).commit_allocation(1, 999, 10)

    def test_unknown_resource(self, seeded_store):
        with pytest.raises(NotFoundError):
            AllocationSpreader(seeded_store).commit_allocation(404, 10, 10)


class _FailingInsertStore(InMemoryStore):
    def insert_allocations(self, allocations):
        raise TransientStorageError("database went away")


class TestAtomicReplace:
    def test_failed_insert_restores_previous_rows(self):
        store = _FailingInsertStore()
        store.add_resource(Resource(id=1, name="Ada"))
        work_item = add_work_item(store, 10, date(2025, 1, 6), date(2025, 1, 19))
        previous = InMemoryStore.insert_allocations(store, weekly_allocations(1, work_item, 50))
        with pytest.raises(TransientStorageError):
            AllocationSpreader(store).commit_allocation(1, 10, 80)
        assert store.list_allocations(resource_id=1, work_item_id=10) == previous
