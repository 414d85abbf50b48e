"""Tests for resource_planner/models.py."""

from datetime import date

import pytest

from resource_planner.errors import PlanningValidationError
from resource_planner.models import Allocation, PlanningConfig, Resource, WorkItem


class TestResource:
    def test_default_capacity(self):
        assert Resource(id=1, name="Ada").capacity == 40.0

    @pytest.mark.parametrize("capacity", [0, -5, "forty", float("nan")])
    def test_rejects_invalid_capacity(self, capacity):
        with pytest.raises(PlanningValidationError):
            Resource(id=1, name="Ada", capacity=capacity)


class TestWorkItem:
    def test_rejects_end_before_start(self):
        with pytest.raises(PlanningValidationError):
            WorkItem(id=1, title="x", start_date=date(2025, 1, 10), end_date=date(2025, 1, 6))

    def test_same_day_is_valid(self):
        item = WorkItem(id=1, title="x", start_date=date(2025, 1, 6), end_date=date(2025, 1, 6))
        assert item.estimated_hours is None

    def test_rejects_string_dates(self):
        with pytest.raises(PlanningValidationError):
            WorkItem(id=1, title="x", start_date="2025-01-06", end_date=date(2025, 1, 6))


class TestAllocation:
    def test_requires_monday(self):
        with pytest.raises(PlanningValidationError):
            Allocation(resource_id=1, work_item_id=1, week_start_date=date(2025, 1, 7), hours=8)

    def test_rejects_negative_hours(self):
        with pytest.raises(PlanningValidationError):
            Allocation(resource_id=1, work_item_id=1, week_start_date=date(2025, 1, 6), hours=-1)

    def test_to_dict_uses_iso_dates(self):
        alloc = Allocation(resource_id=1, work_item_id=2, week_start_date=date(2025, 1, 6), hours=8)
        assert alloc.to_dict()["week_start_date"] == "2025-01-06"
        assert alloc.to_dict()["hours"] == 8.0


class TestPlanningConfig:
    def test_defaults_are_valid(self):
        config = PlanningConfig()
        assert (config.skill_weight, config.availability_weight) == (0.6, 0.4)
        assert config.full_availability_hours == 20.0

    @pytest.mark.parametrize("hours", [0, -1, "twenty", float("inf")])
    def test_rejects_invalid_full_availability_hours(self, hours):
        with pytest.raises(PlanningValidationError):
            PlanningConfig(full_availability_hours=hours)

    def test_rejects_non_positive_default_capacity(self):
        with pytest.raises(PlanningValidationError):
            PlanningConfig(default_capacity_hours=0)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(PlanningValidationError, match="sum to 1"):
            PlanningConfig(skill_weight=0.7, availability_weight=0.4)

    @pytest.mark.parametrize("weight", [1.5, -0.5, "0.6", None])
    def test_rejects_invalid_weight(self, weight):
        with pytest.raises(PlanningValidationError):
            PlanningConfig(skill_weight=weight)

    def test_int_weights_normalised_to_float(self):
        config = PlanningConfig(skill_weight=1, availability_weight=0)
        assert isinstance(config.skill_weight, float)
