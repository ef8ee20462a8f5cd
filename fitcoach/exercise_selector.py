"""
Deterministic narrowing of the catalog to a single exercise.
"""

import logging

from fitcoach.catalog import equipment_compatible, normalize_equipment
from fitcoach.models import DIFFICULTY_ORDER, ExperienceLevel


logger = logging.getLogger(__name__)


def difficulty_rank(level):
    try:
        return DIFFICULTY_ORDER.index(ExperienceLevel(level))
    except ValueError:
        return 0


def difficulty_tiers(ceiling):
    """
    Order in which difficulty tiers are tried for a ceiling.

    The ceiling itself first, then progressively easier tiers, then
    progressively harder ones:
        advanced     -> [advanced, intermediate, beginner]
        intermediate -> [intermediate, beginner, advanced]
        beginner     -> [beginner, intermediate, advanced]
    """
    rank = difficulty_rank(ceiling)
    downward = [DIFFICULTY_ORDER[i] for i in range(rank, -1, -1)]
    upward = [DIFFICULTY_ORDER[i] for i in range(rank + 1, len(DIFFICULTY_ORDER))]
    return downward + upward


def sort_candidates(candidates, category=None):
    """
    Tie-break rule: preferred category first, then ascending catalog id.

    Ids are unique, so the order is total and generation is reproducible for
    a given catalog snapshot.
    """
    preferred = (category or "").strip().lower()
    return sorted(
        candidates,
        key=lambda item: (0 if preferred and item.category == preferred else 1, item.id),
    )


class ExerciseSelector:
    """Picks one catalog item for a slot under equipment/difficulty/exclusion constraints."""

    def __init__(self, catalog):
        self.catalog = catalog

    def candidates(self, body_part, equipment_available, exclude_ids=None):
        """All items for `body_part` that the equipment allows and that are not excluded."""
        available = normalize_equipment(equipment_available)
        excluded = set(exclude_ids or ())
        return [
            item
            for item in self.catalog.get_by_body_part(body_part)
            if item.id not in excluded and equipment_compatible(item, available)
        ]

    def select(self, body_part, equipment_available, difficulty_ceiling, exclude_ids=None, category=None):
        """
        Return the best candidate for the slot, or None if the catalog is exhausted.

        Args:
            body_part: Exact body part to match (case-insensitive)
            equipment_available: User equipment; bodyweight is always allowed
            difficulty_ceiling: Highest preferred difficulty; relaxed downward
                then upward when a tier is empty
            exclude_ids: Exercise ids that must not be returned
            category: Optional category preference used only for ordering
        """
        pool = self.candidates(body_part, equipment_available, exclude_ids)
        if not pool:
            logger.debug("No candidates for %s with equipment %s", body_part, sorted(equipment_available or []))
            return None

        ceiling = DIFFICULTY_ORDER[difficulty_rank(difficulty_ceiling)]
        for tier in difficulty_tiers(ceiling):
            tier_pool = [item for item in pool if ExperienceLevel(item.difficulty) == tier]
            if tier_pool:
                choice = sort_candidates(tier_pool, category)[0]
                if tier != ceiling:
                    logger.debug(
                        "Relaxed difficulty for %s: %s -> %s (%s)",
                        body_part, ceiling.value, tier.value, choice.id,
                    )
                return choice
        return None
