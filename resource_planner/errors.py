from __future__ import annotations

from typing import Optional


class PlanningError(Exception):
    """Base class for errors raised by the planning engine."""


class NotFoundError(PlanningError, LookupError):
    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PlanningValidationError(PlanningError, ValueError):
    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.field_name = field_name


class TransientStorageError(PlanningError, RuntimeError):
    """Raised by a store whose backend is unavailable. Never retried internally."""
