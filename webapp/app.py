from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Dict, Optional, Tuple

from dateutil import parser as dateparser
from flask import Flask, jsonify, request

from resource_planner.availability import AvailabilityCalculator
from resource_planner.errors import NotFoundError, PlanningValidationError, TransientStorageError
from resource_planner.io_utils import CONFIG_FILE, load_config, load_store
from resource_planner.models import PlanningConfig
from resource_planner.rebalance import TimelineRebalancer, update_work_item_dates
from resource_planner.scoring import ResourceScorer
from resource_planner.spreading import AllocationSpreader
from resource_planner.storage import EntityStore, InMemoryStore

logger = logging.getLogger(__name__)


def _resolve_data_dir() -> Optional[Path]:
    env_value = os.getenv("PLANNER_DATA_DIR")
    if env_value:
        return Path(env_value).expanduser().resolve()
    return None


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _error_response(exc: Exception) -> Tuple[object, int]:
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, TransientStorageError):
        logger.warning("storage unavailable: %s", exc)
        return jsonify({"error": "storage temporarily unavailable, retry later"}), 503
    return jsonify({"error": str(exc)}), 400


def _require_int(data: Dict[str, object], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        raise PlanningValidationError(f"{key} must be an integer", key)
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise PlanningValidationError(f"{key} must be an integer", key) from exc


def _require_date(data: Dict[str, object], key: str) -> date:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise PlanningValidationError(f"{key} must be an ISO date string", key)
    try:
        return dateparser.isoparse(value).date()
    except (ValueError, TypeError) as exc:
        raise PlanningValidationError(f"{key} must be an ISO date string", key) from exc


def _json_body() -> Dict[str, object]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PlanningValidationError("request body must be a JSON object")
    return data


def _optional_int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise PlanningValidationError(f"{name} must be an integer", name) from exc


def create_app(
    store: Optional[EntityStore] = None, config: Optional[PlanningConfig] = None
) -> Flask:
    app = Flask(__name__)
    data_dir = _resolve_data_dir()
    if config is None:
        config_path = data_dir / CONFIG_FILE if data_dir else None
        config = load_config(config_path) if config_path and config_path.is_file() else PlanningConfig()
    if store is None:
        store = load_store(data_dir, config) if data_dir else InMemoryStore()

    calculator = AvailabilityCalculator(store)
    scorer = ResourceScorer(store, config, calculator)
    spreader = AllocationSpreader(store)
    rebalancer = TimelineRebalancer(store, spreader)
    app.config["STORE"] = store
    app.config["PLANNING_CONFIG"] = config

    @app.get("/api/resources")
    def list_resources():
        try:
            payload = []
            for resource in store.list_resources():
                entry = resource.to_dict()
                entry["skills"] = store.list_possessed_skills(resource.id)
                payload.append(entry)
            return jsonify(payload)
        except (TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    @app.get("/api/work-items/<int:work_item_id>")
    def get_work_item(work_item_id: int):
        try:
            work_item = store.get_work_item(work_item_id)
            if work_item is None:
                raise NotFoundError("Work item", work_item_id)
            payload = work_item.to_dict()
            payload["required_skills"] = [
                {"skill_id": skill.skill_id, "level_required": skill.level_required}
                for skill in store.list_required_skills(work_item_id)
            ]
            return jsonify(payload)
        except (NotFoundError, TransientStorageError) as exc:
            return _error_response(exc)

    @app.patch("/api/work-items/<int:work_item_id>")
    def update_work_item(work_item_id: int):
        """Edit a work item's dates; allocations follow on a best-effort basis."""
        try:
            data = _json_body()
            current = store.get_work_item(work_item_id)
            if current is None:
                raise NotFoundError("Work item", work_item_id)
            start_date = _require_date(data, "start_date") if "start_date" in data else current.start_date
            end_date = _require_date(data, "end_date") if "end_date" in data else current.end_date
            updated = update_work_item_dates(store, work_item_id, start_date, end_date, rebalancer)
            return jsonify(updated.to_dict())
        except (NotFoundError, TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    @app.post("/api/planning/suggest-resources")
    def suggest_resources():
        try:
            data = _json_body()
            work_item_id = _require_int(data, "work_item_id")
            suggestions = scorer.suggest_resources(work_item_id)
            return jsonify([suggestion.to_dict() for suggestion in suggestions])
        except (NotFoundError, TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    @app.post("/api/planning/allocate")
    def allocate():
        try:
            data = _json_body()
            resource_id = _require_int(data, "resource_id")
            work_item_id = _require_int(data, "work_item_id")
            allocations = spreader.commit_allocation(resource_id, work_item_id, data.get("total_hours"))
            return jsonify([allocation.to_dict() for allocation in allocations]), 201
        except (NotFoundError, TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    @app.get("/api/allocations")
    def list_allocations():
        try:
            allocations = store.list_allocations(
                resource_id=_optional_int_arg("resource_id"),
                work_item_id=_optional_int_arg("work_item_id"),
            )
            return jsonify([allocation.to_dict() for allocation in allocations])
        except (TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    @app.get("/api/capacity")
    def capacity():
        try:
            grid = calculator.capacity_grid()
            records = [
                {
                    "resource_id": int(row.resource_id),
                    "week_start_date": row.week_start_date.isoformat(),
                    "hours": float(row.hours),
                    "capacity": float(row.capacity),
                    "utilization_pct": float(row.utilization_pct),
                    "over_allocated": bool(row.over_allocated),
                }
                for row in grid.itertuples(index=False)
            ]
            return jsonify(records)
        except (TransientStorageError, ValueError) as exc:
            return _error_response(exc)

    return app


if __name__ == "__main__":
    app = create_app()
    _configure_logging(app.config["PLANNING_CONFIG"].logging_level)
    app.run(debug=True)
