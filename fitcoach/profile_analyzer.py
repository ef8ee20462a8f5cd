"""
Energy expenditure from biometrics (Mifflin-St Jeor).
"""

import logging

from fitcoach.errors import MissingBiometricData
from fitcoach.models import ActivityLevel, Sex


logger = logging.getLogger(__name__)

ACTIVITY_FACTORS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}

MALE_OFFSET = 5.0
FEMALE_OFFSET = -161.0

SEX_OFFSETS = {
    Sex.MALE: MALE_OFFSET,
    Sex.FEMALE: FEMALE_OFFSET,
    Sex.OTHER: (MALE_OFFSET + FEMALE_OFFSET) / 2,
}


def _require_positive(profile, field_name):
    value = getattr(profile, field_name, None)
    if value is None:
        raise MissingBiometricData(field_name)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MissingBiometricData(field_name, value)
    if number <= 0:
        raise MissingBiometricData(field_name, value)
    return number


def calculate_bmr(profile):
    age = _require_positive(profile, "age")
    height_cm = _require_positive(profile, "height_cm")
    weight_kg = _require_positive(profile, "weight_kg")

    try:
        offset = SEX_OFFSETS[Sex(profile.sex)]
    except ValueError:
        offset = SEX_OFFSETS[Sex.OTHER]

    return 10 * weight_kg + 6.25 * height_cm - 5 * age + offset


def calculate_tdee(profile):
    """
    Compute basal and total daily energy expenditure.

    Returns:
        dict with keys: bmr, tdee (kcal/day, unrounded)

    Raises:
        MissingBiometricData: age, height_cm or weight_kg absent/non-positive,
            or an unrecognized activity level.
    """
    bmr = calculate_bmr(profile)
    try:
        factor = ACTIVITY_FACTORS[ActivityLevel(profile.activity_level)]
    except ValueError:
        raise MissingBiometricData("activity_level", profile.activity_level)

    tdee = bmr * factor
    logger.debug("BMR %.1f kcal x %.3f activity -> TDEE %.1f kcal", bmr, factor, tdee)
    return {"bmr": bmr, "tdee": tdee}


def select_goal(profile, goal_id=None):
    """
    Resolve the goal a plan or target set is built for.

    An explicit `goal_id` wins when it exists on the profile; otherwise the
    highest-priority goal is used (the earliest listed wins a tie). Returns
    None when the profile has no goals.
    """
    goals = list(profile.goals or [])
    if not goals:
        return None

    if goal_id is not None:
        for goal in goals:
            if goal.id == goal_id:
                return goal
        logger.warning("Goal %r not found on profile %s; using highest priority goal.", goal_id, profile.id)

    best = goals[0]
    for goal in goals[1:]:
        if goal.priority > best.priority:
            best = goal
    return best
