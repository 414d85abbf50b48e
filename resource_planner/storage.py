from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .errors import NotFoundError
from .models import Allocation, RequiredSkill, Resource, SkillId, WorkItem


class EntityStore:
    """Storage port used by the planning components.

    ``get_*`` return ``None`` for unknown ids. ``transaction()`` must make the
    enclosed writes all-or-nothing; planning code wraps every
    delete-then-insert sequence in it.
    """

    def get_work_item(self, work_item_id: int) -> Optional[WorkItem]:
        raise NotImplementedError

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        raise NotImplementedError

    def list_resources(self) -> List[Resource]:
        raise NotImplementedError

    def list_required_skills(self, work_item_id: int) -> List[RequiredSkill]:
        raise NotImplementedError

    def list_possessed_skills(self, resource_id: int) -> List[SkillId]:
        raise NotImplementedError

    def list_allocations(
        self,
        resource_id: Optional[int] = None,
        work_item_id: Optional[int] = None,
        week_start_from: Optional[date] = None,
        week_start_to: Optional[date] = None,
    ) -> List[Allocation]:
        raise NotImplementedError

    def delete_allocations(self, resource_id: int, work_item_id: int) -> None:
        raise NotImplementedError

    def insert_allocations(self, allocations: Sequence[Allocation]) -> List[Allocation]:
        raise NotImplementedError

    def update_work_item(self, work_item: WorkItem) -> WorkItem:
        raise NotImplementedError

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError


class InMemoryStore(EntityStore):
    """Thread-safe in-process store. Discovery order is insertion order."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._resources: Dict[int, Resource] = {}
        self._work_items: Dict[int, WorkItem] = {}
        self._possessed: Dict[int, Set[SkillId]] = {}
        self._required: Dict[int, Dict[SkillId, RequiredSkill]] = {}
        self._allocations: Dict[int, Allocation] = {}
        self._next_allocation_id = 1

    # Write-side helpers used by loaders and the CRUD layer

    def add_resource(self, resource: Resource, skills: Iterable[SkillId] = ()) -> Resource:
        with self._lock:
            self._resources[resource.id] = resource
            self._possessed[resource.id] = set(skills)
        return resource

    def add_work_item(
        self, work_item: WorkItem, required_skills: Iterable[RequiredSkill] = ()
    ) -> WorkItem:
        with self._lock:
            self._work_items[work_item.id] = work_item
            self._required[work_item.id] = {skill.skill_id: skill for skill in required_skills}
        return work_item

    def set_possessed_skills(self, resource_id: int, skills: Iterable[SkillId]) -> None:
        with self._lock:
            if resource_id not in self._resources:
                raise NotFoundError("Resource", resource_id)
            self._possessed[resource_id] = set(skills)

    def set_required_skills(self, work_item_id: int, skills: Iterable[RequiredSkill]) -> None:
        with self._lock:
            if work_item_id not in self._work_items:
                raise NotFoundError("Work item", work_item_id)
            self._required[work_item_id] = {skill.skill_id: skill for skill in skills}

    def update_work_item(self, work_item: WorkItem) -> WorkItem:
        with self._lock:
            if work_item.id not in self._work_items:
                raise NotFoundError("Work item", work_item.id)
            self._work_items[work_item.id] = work_item
        return work_item

    # Read side

    def get_work_item(self, work_item_id: int) -> Optional[WorkItem]:
        with self._lock:
            return self._work_items.get(work_item_id)

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        with self._lock:
            return self._resources.get(resource_id)

    def list_resources(self) -> List[Resource]:
        with self._lock:
            return list(self._resources.values())

    def list_work_items(self) -> List[WorkItem]:
        with self._lock:
            return list(self._work_items.values())

    def list_required_skills(self, work_item_id: int) -> List[RequiredSkill]:
        with self._lock:
            return list(self._required.get(work_item_id, {}).values())

    def list_possessed_skills(self, resource_id: int) -> List[SkillId]:
        with self._lock:
            return sorted(self._possessed.get(resource_id, ()))

    def list_allocations(
        self,
        resource_id: Optional[int] = None,
        work_item_id: Optional[int] = None,
        week_start_from: Optional[date] = None,
        week_start_to: Optional[date] = None,
    ) -> List[Allocation]:
        with self._lock:
            rows = list(self._allocations.values())
        if resource_id is not None:
            rows = [a for a in rows if a.resource_id == resource_id]
        if work_item_id is not None:
            rows = [a for a in rows if a.work_item_id == work_item_id]
        if week_start_from is not None:
            rows = [a for a in rows if a.week_start_date >= week_start_from]
        if week_start_to is not None:
            rows = [a for a in rows if a.week_start_date <= week_start_to]
        return rows

    # Allocation writes

    def delete_allocations(self, resource_id: int, work_item_id: int) -> None:
        with self._lock:
            doomed = [
                alloc_id
                for alloc_id, alloc in self._allocations.items()
                if alloc.resource_id == resource_id and alloc.work_item_id == work_item_id
            ]
            for alloc_id in doomed:
                del self._allocations[alloc_id]

    def insert_allocations(self, allocations: Sequence[Allocation]) -> List[Allocation]:
        stored: List[Allocation] = []
        with self._lock:
            for allocation in allocations:
                row = replace(allocation, id=self._next_allocation_id)
                self._next_allocation_id += 1
                self._allocations[row.id] = row
                stored.append(row)
        return stored

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot: Tuple[Dict[int, Allocation], int] = (
                dict(self._allocations),
                self._next_allocation_id,
            )
            try:
                yield
            except BaseException:
                self._allocations, self._next_allocation_id = snapshot
                raise
