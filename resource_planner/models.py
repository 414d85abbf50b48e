from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from .errors import PlanningValidationError


SkillId = str

DEFAULT_CAPACITY_HOURS = 40.0
DEFAULT_SKILL_WEIGHT = 0.6
DEFAULT_AVAILABILITY_WEIGHT = 0.4
DEFAULT_FULL_AVAILABILITY_HOURS = 20.0
HOURS_PRECISION = 2


def _require_number(value: object, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PlanningValidationError(f"{field_name} must be a number", field_name)
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise PlanningValidationError(f"{field_name} must be finite", field_name)
    return number


def _require_date(value: object, field_name: str) -> None:
    if not isinstance(value, date):
        raise PlanningValidationError(f"{field_name} must be a date", field_name)


@dataclass(frozen=True)
class Resource:
    """A person who can be allocated to work items, with weekly capacity in hours."""

    id: int
    name: str
    capacity: float = DEFAULT_CAPACITY_HOURS

    def __post_init__(self) -> None:
        capacity = _require_number(self.capacity, "capacity")
        if capacity <= 0:
            raise PlanningValidationError("capacity must be positive", "capacity")
        object.__setattr__(self, "capacity", capacity)

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "name": self.name, "capacity": self.capacity}


@dataclass(frozen=True)
class WorkItem:
    """A unit of planned work spanning the inclusive range [start_date, end_date]."""

    id: int
    title: str
    start_date: date
    end_date: date
    estimated_hours: Optional[float] = None

    def __post_init__(self) -> None:
        _require_date(self.start_date, "start_date")
        _require_date(self.end_date, "end_date")
        if self.end_date < self.start_date:
            raise PlanningValidationError("end_date must not be earlier than start_date", "end_date")
        if self.estimated_hours is not None:
            estimated = _require_number(self.estimated_hours, "estimated_hours")
            if estimated < 0:
                raise PlanningValidationError("estimated_hours must be non-negative", "estimated_hours")
            object.__setattr__(self, "estimated_hours", estimated)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "estimated_hours": self.estimated_hours,
        }


@dataclass(frozen=True)
class RequiredSkill:
    skill_id: SkillId
    level_required: Optional[int] = 1


@dataclass(frozen=True)
class Allocation:
    """Hours committed by one resource to one work item in the week starting week_start_date."""

    resource_id: int
    work_item_id: int
    week_start_date: date
    hours: float
    id: Optional[int] = None

    def __post_init__(self) -> None:
        _require_date(self.week_start_date, "week_start_date")
        if self.week_start_date.weekday() != 0:
            raise PlanningValidationError("week_start_date must be a Monday", "week_start_date")
        hours = _require_number(self.hours, "hours")
        if hours < 0:
            raise PlanningValidationError("hours must be non-negative", "hours")
        object.__setattr__(self, "hours", hours)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "work_item_id": self.work_item_id,
            "week_start_date": self.week_start_date.isoformat(),
            "hours": self.hours,
        }


@dataclass(frozen=True)
class Suggestion:
    resource: Resource
    skill_score: float
    availability_score: float
    net_availability: float
    total_score: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "resource": self.resource.to_dict(),
            "skill_score": self.skill_score,
            "availability_score": self.availability_score,
            "net_availability": self.net_availability,
            "total_score": self.total_score,
        }


@dataclass(frozen=True)
class PlanningConfig:
    skill_weight: float = DEFAULT_SKILL_WEIGHT
    availability_weight: float = DEFAULT_AVAILABILITY_WEIGHT
    full_availability_hours: float = DEFAULT_FULL_AVAILABILITY_HOURS
    default_capacity_hours: float = DEFAULT_CAPACITY_HOURS
    logging_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("skill_weight", "availability_weight"):
            value = _require_number(getattr(self, name), name)
            if not (0 <= value <= 1):
                raise PlanningValidationError(f"{name} must be in [0, 1]", name)
            object.__setattr__(self, name, value)
        if not math.isclose(self.skill_weight + self.availability_weight, 1.0, abs_tol=1e-9):
            raise PlanningValidationError(
                "skill_weight and availability_weight must sum to 1", "skill_weight"
            )
        for name in ("full_availability_hours", "default_capacity_hours"):
            value = _require_number(getattr(self, name), name)
            if value <= 0:
                raise PlanningValidationError(f"{name} must be positive", name)
            object.__setattr__(self, name, value)
        if not isinstance(self.logging_level, str):
            raise PlanningValidationError("logging_level must be a string", "logging_level")
