from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from .availability import AvailabilityCalculator
from .errors import NotFoundError
from .models import PlanningConfig, SkillId, Suggestion
from .storage import EntityStore

logger = logging.getLogger(__name__)

FULL_SCORE = 100.0


def skill_score(required: Sequence[SkillId], possessed: Iterable[SkillId]) -> float:
    """Share of required skills the resource holds, as a percentage.

    A work item with no required skills gives every resource full credit.
    """
    required_set = set(required)
    if not required_set:
        return FULL_SCORE
    matched = len(required_set & set(possessed))
    return matched / len(required_set) * FULL_SCORE


def availability_score(net_availability: float, full_availability_hours: float) -> float:
    return min(FULL_SCORE, max(0.0, net_availability) / full_availability_hours * FULL_SCORE)


def total_score(skill: float, availability: float, config: PlanningConfig) -> float:
    return skill * config.skill_weight + availability * config.availability_weight


class ResourceScorer:
    def __init__(
        self,
        store: EntityStore,
        config: Optional[PlanningConfig] = None,
        calculator: Optional[AvailabilityCalculator] = None,
    ) -> None:
        self._store = store
        self._config = config or PlanningConfig()
        self._calculator = calculator or AvailabilityCalculator(store)

    def suggest_resources(self, work_item_id: int) -> List[Suggestion]:
        """Rank every resource for the work item, best first.

        Ties keep the store's resource order.
        """
        work_item = self._store.get_work_item(work_item_id)
        if work_item is None:
            raise NotFoundError("Work item", work_item_id)
        required = [skill.skill_id for skill in self._store.list_required_skills(work_item_id)]
        resources = self._store.list_resources()
        net_by_resource = self._calculator.net_availability_many(
            [resource.id for resource in resources], work_item.start_date, work_item.end_date
        )
        suggestions: List[Suggestion] = []
        for resource in resources:
            skills = skill_score(required, self._store.list_possessed_skills(resource.id))
            net = net_by_resource[resource.id]
            availability = availability_score(net, self._config.full_availability_hours)
            suggestions.append(
                Suggestion(
                    resource=resource,
                    skill_score=skills,
                    availability_score=availability,
                    net_availability=net,
                    total_score=total_score(skills, availability, self._config),
                )
            )
        suggestions.sort(key=lambda suggestion: suggestion.total_score, reverse=True)
        logger.debug(
            "scored %d resources for work item %s (%d required skills)",
            len(suggestions),
            work_item_id,
            len(required),
        )
        return suggestions
