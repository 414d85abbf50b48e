from datetime import date

import pytest

from resource_planner.models import RequiredSkill, Resource, WorkItem
from resource_planner.storage import InMemoryStore


def add_work_item(store, work_item_id, start, end, skills=()):
    return store.add_work_item(
        WorkItem(id=work_item_id, title=f"Item {work_item_id}", start_date=start, end_date=end),
        [RequiredSkill(skill_id=skill) for skill in skills],
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def seeded_store(store):
    """Two-week work item (Mon 2025-01-06 .. Sun 2025-01-19) and three resources."""
    store.add_resource(Resource(id=1, name="Ada"), ["python", "sql"])
    store.add_resource(Resource(id=2, name="Grace"), ["python"])
    store.add_resource(Resource(id=3, name="Linus", capacity=40), [])
    add_work_item(store, 10, date(2025, 1, 6), date(2025, 1, 19), skills=["python", "sql"])
    return store
