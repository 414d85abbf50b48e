from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from dateutil import parser as dateparser

from .models import (
    DEFAULT_AVAILABILITY_WEIGHT,
    DEFAULT_CAPACITY_HOURS,
    DEFAULT_FULL_AVAILABILITY_HOURS,
    DEFAULT_SKILL_WEIGHT,
    Allocation,
    PlanningConfig,
    RequiredSkill,
    Resource,
    WorkItem,
)
from .storage import InMemoryStore
from .weeks import week_start

logger = logging.getLogger(__name__)

RESOURCES_FILE = "resources.json"
WORK_ITEMS_FILE = "work_items.csv"
ALLOCATIONS_FILE = "allocations.csv"
CONFIG_FILE = "config.json"

ALLOCATION_COLUMNS = ["id", "resource_id", "work_item_id", "week_start_date", "hours"]

_WORK_ITEM_REQUIRED_COLUMNS = {"id", "title", "start_date", "end_date"}
_ALLOCATION_REQUIRED_COLUMNS = {"resource_id", "work_item_id", "week_start_date", "hours"}


def _require_columns(df: pd.DataFrame, required: Iterable[str], source: str) -> None:
    missing = [col for col in sorted(required) if col not in df.columns]
    if missing:
        raise ValueError(f"{source} missing required columns: {', '.join(missing)}")


def _is_missing(value: object) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value))


def _parse_date(value: object, field_name: str) -> date:
    if _is_missing(value) or (isinstance(value, str) and value.strip() == ""):
        raise ValueError(f"missing date in '{field_name}'")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value)).date()
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid date in '{field_name}': {value}") from exc


def _parse_list_field(value: object, field_name: str) -> Tuple[str, ...]:
    if _is_missing(value):
        return ()
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return ()
        if stripped.startswith("[") and stripped.endswith("]"):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise ValueError(f"invalid JSON array in '{field_name}'") from exc
            if not isinstance(parsed, list):
                raise ValueError(f"expected array for '{field_name}'")
            return tuple(str(item).strip() for item in parsed if str(item).strip())
        return tuple(part.strip() for part in stripped.split(";") if part.strip())
    if isinstance(value, Sequence):
        return tuple(str(item).strip() for item in value if str(item).strip())
    raise ValueError(f"unsupported value for '{field_name}': {value!r}")


def _parse_required_skill(token: str) -> RequiredSkill:
    """Parse ``skill`` or ``skill:level``."""
    name, sep, level = token.partition(":")
    name = name.strip()
    if not name:
        raise ValueError(f"empty skill in '{token}'")
    if not sep:
        return RequiredSkill(skill_id=name)
    try:
        return RequiredSkill(skill_id=name, level_required=int(level))
    except ValueError as exc:
        raise ValueError(f"invalid skill level in '{token}'") from exc


def load_resources(
    path: str | Path, default_capacity: float = DEFAULT_CAPACITY_HOURS
) -> pd.DataFrame:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, list):
        raise ValueError("resources file must be a JSON array")
    rows = []
    seen_ids = set()
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError("resource entries must be objects")
        raw_id = entry.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"resource id must be an integer: {raw_id!r}")
        if raw_id in seen_ids:
            raise ValueError(f"duplicate resource id {raw_id}")
        seen_ids.add(raw_id)
        name = entry.get("name")
        if not name or not isinstance(name, str):
            raise ValueError(f"name is required for resource {raw_id}")
        capacity = entry.get("capacity", default_capacity)
        if isinstance(capacity, bool) or not isinstance(capacity, (int, float)) or capacity <= 0:
            raise ValueError(f"capacity must be a positive number for {name}")
        rows.append(
            {
                "id": raw_id,
                "name": name,
                "capacity": float(capacity),
                "skills": _parse_list_field(entry.get("skills", ()), "skills"),
            }
        )
    return pd.DataFrame(rows, columns=["id", "name", "capacity", "skills"])


def load_work_items(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    _require_columns(df, _WORK_ITEM_REQUIRED_COLUMNS, WORK_ITEMS_FILE)
    if df["id"].duplicated().any():
        raise ValueError(f"{WORK_ITEMS_FILE} contains duplicate ids")
    df["start_date"] = df["start_date"].map(lambda value: _parse_date(value, "start_date"))
    df["end_date"] = df["end_date"].map(lambda value: _parse_date(value, "end_date"))
    inverted = df[df["end_date"] < df["start_date"]]
    if not inverted.empty:
        ids = ", ".join(str(value) for value in inverted["id"])
        raise ValueError(f"work items with end_date before start_date: {ids}")
    if "estimated_hours" not in df.columns:
        df["estimated_hours"] = float("nan")
    try:
        df["estimated_hours"] = pd.to_numeric(df["estimated_hours"])
    except ValueError as exc:
        raise ValueError("invalid numeric value in column 'estimated_hours'") from exc
    if (df["estimated_hours"] < 0).any():
        raise ValueError("column 'estimated_hours' contains negative values")
    if "required_skills" not in df.columns:
        df["required_skills"] = ""
    df["required_skills"] = df["required_skills"].map(
        lambda value: tuple(
            _parse_required_skill(token)
            for token in _parse_list_field(value, "required_skills")
        )
    )
    return df


def load_allocations(path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(path)
    _require_columns(df, _ALLOCATION_REQUIRED_COLUMNS, ALLOCATIONS_FILE)
    try:
        df["hours"] = pd.to_numeric(df["hours"])
    except ValueError as exc:
        raise ValueError("invalid numeric value in column 'hours'") from exc
    if (df["hours"] < 0).any():
        raise ValueError("column 'hours' contains negative values")
    df["week_start_date"] = df["week_start_date"].map(
        lambda value: week_start(_parse_date(value, "week_start_date"))
    )
    return df


def _resources_from_df(df: pd.DataFrame) -> List[Tuple[Resource, Tuple[str, ...]]]:
    resources = []
    for row in df.itertuples(index=False):
        resource = Resource(id=int(row.id), name=str(row.name), capacity=float(row.capacity))
        resources.append((resource, tuple(row.skills)))
    return resources


def _work_items_from_df(df: pd.DataFrame) -> List[Tuple[WorkItem, Tuple[RequiredSkill, ...]]]:
    work_items = []
    for row in df.itertuples(index=False):
        estimated = row.estimated_hours
        work_item = WorkItem(
            id=int(row.id),
            title=str(row.title),
            start_date=row.start_date,
            end_date=row.end_date,
            estimated_hours=None if pd.isna(estimated) else float(estimated),
        )
        work_items.append((work_item, tuple(row.required_skills)))
    return work_items


def _allocations_from_df(df: pd.DataFrame) -> List[Allocation]:
    return [
        Allocation(
            resource_id=int(row.resource_id),
            work_item_id=int(row.work_item_id),
            week_start_date=row.week_start_date,
            hours=float(row.hours),
        )
        for row in df.itertuples(index=False)
    ]


def load_store(data_dir: str | Path, config: Optional[PlanningConfig] = None) -> InMemoryStore:
    """Build an in-memory store from whichever input files exist in ``data_dir``.

    Resources without a capacity get ``config.default_capacity_hours``.
    """
    config = config or PlanningConfig()
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise ValueError(f"data directory not found: {data_dir}")
    store = InMemoryStore()
    resources_path = data_dir / RESOURCES_FILE
    if resources_path.is_file():
        resources_df = load_resources(resources_path, config.default_capacity_hours)
        for resource, skills in _resources_from_df(resources_df):
            store.add_resource(resource, skills)
    work_items_path = data_dir / WORK_ITEMS_FILE
    if work_items_path.is_file():
        for work_item, required in _work_items_from_df(load_work_items(work_items_path)):
            store.add_work_item(work_item, required)
    allocations_path = data_dir / ALLOCATIONS_FILE
    if allocations_path.is_file():
        allocations = _allocations_from_df(load_allocations(allocations_path))
        unknown = sorted(
            {a.resource_id for a in allocations if store.get_resource(a.resource_id) is None}
        )
        if unknown:
            logger.warning("allocations reference unknown resources: %s", unknown)
        store.insert_allocations(allocations)
    logger.info(
        "loaded %d resources, %d work items, %d allocations from %s",
        len(store.list_resources()),
        len(store.list_work_items()),
        len(store.list_allocations()),
        data_dir,
    )
    return store


def parse_config(data: dict) -> PlanningConfig:
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    return PlanningConfig(
        skill_weight=data.get("skill_weight", DEFAULT_SKILL_WEIGHT),
        availability_weight=data.get("availability_weight", DEFAULT_AVAILABILITY_WEIGHT),
        full_availability_hours=data.get(
            "full_availability_hours", DEFAULT_FULL_AVAILABILITY_HOURS
        ),
        default_capacity_hours=data.get("default_capacity_hours", DEFAULT_CAPACITY_HOURS),
        logging_level=data.get("logging_level", "INFO"),
    )


def load_config(path: str | Path) -> PlanningConfig:
    return parse_config(json.loads(Path(path).read_text()))


def allocations_frame(allocations: Iterable[Allocation]) -> pd.DataFrame:
    rows = [
        {
            "id": a.id,
            "resource_id": a.resource_id,
            "work_item_id": a.work_item_id,
            "week_start_date": a.week_start_date,
            "hours": a.hours,
        }
        for a in allocations
    ]
    return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
