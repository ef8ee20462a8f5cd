"""
Calorie and macro-nutrient targets from energy expenditure and goal type.
"""

import logging
import math

from fitcoach.errors import InvalidMacroSplit
from fitcoach.models import GoalType
from fitcoach.profile_analyzer import select_goal


logger = logging.getLogger(__name__)

GOAL_CALORIE_MULTIPLIERS = {
    GoalType.FAT_LOSS: 0.8,
    GoalType.HYPERTROPHY: 1.1,
    GoalType.STRENGTH: 1.0,
    GoalType.ENDURANCE: 1.0,
    GoalType.GENERAL_FITNESS: 1.0,
}

DEFAULT_MACRO_SPLIT = {"protein": 30, "carbs": 40, "fat": 30}

KCAL_PER_GRAM = {"protein": 4, "carbs": 4, "fat": 9}

SPLIT_TOLERANCE = 0.5


def round_half_up(value):
    """Round to the nearest integer, .5 always rounding up."""
    return int(math.floor(value + 0.5))


def resolve_macro_split(profile, default_split=None):
    """
    Return the percentage split to apply, validated.

    Accepts either percentages (30/40/30) or fractions (0.3/0.4/0.3).
    """
    split = getattr(profile, "macro_split", None) or default_split or DEFAULT_MACRO_SPLIT
    try:
        values = {key: float(split[key]) for key in ("protein", "carbs", "fat")}
    except (KeyError, TypeError, ValueError):
        raise InvalidMacroSplit(split, "protein, carbs and fat percentages are required")

    if any(value < 0 for value in values.values()):
        raise InvalidMacroSplit(split, "percentages cannot be negative")

    total = sum(values.values())
    if abs(total - 1.0) <= SPLIT_TOLERANCE / 100:
        values = {key: value * 100 for key, value in values.items()}
        total = 100.0
    if abs(total - 100.0) > SPLIT_TOLERANCE:
        raise InvalidMacroSplit(split, f"percentages sum to {total:g}, expected 100")
    return values


def calculate_macro_targets(profile, tdee, goal_id=None, default_split=None):
    """
    Convert TDEE into calorie and gram targets for the selected goal.

    Protein and fat grams are rounded from their share of the calories; carbs
    take the remainder so that 4*protein + 4*carbs + 9*fat lands within a
    couple of kcal of `calories`. With a 0% carb split, protein takes the
    remainder.

    Returns:
        dict with keys: calories, protein_g, carbs_g, fat_g
    """
    goal = select_goal(profile, goal_id)
    goal_type = GoalType(goal.type) if goal else GoalType.GENERAL_FITNESS
    multiplier = GOAL_CALORIE_MULTIPLIERS[goal_type]

    calories = round_half_up(tdee * multiplier)
    split = resolve_macro_split(profile, default_split)

    protein_g = round_half_up(calories * split["protein"] / 100 / KCAL_PER_GRAM["protein"])
    fat_g = round_half_up(calories * split["fat"] / 100 / KCAL_PER_GRAM["fat"])
    remaining = calories - protein_g * KCAL_PER_GRAM["protein"] - fat_g * KCAL_PER_GRAM["fat"]
    carbs_g = round_half_up(remaining / KCAL_PER_GRAM["carbs"])

    # No carbs to absorb the rounding: protein takes the remainder instead.
    if (split["carbs"] == 0 or carbs_g < 0) and split["protein"] > 0:
        carbs_g = 0
        protein_g = round_half_up((calories - fat_g * KCAL_PER_GRAM["fat"]) / KCAL_PER_GRAM["protein"])
    carbs_g = max(0, carbs_g)

    logger.debug(
        "Targets for %s: %d kcal -> P %dg / C %dg / F %dg",
        goal_type.value, calories, protein_g, carbs_g, fat_g,
    )
    return {
        "calories": calories,
        "protein_g": protein_g,
        "carbs_g": carbs_g,
        "fat_g": fat_g,
    }


def macro_calories(targets):
    """Calories implied by the gram targets."""
    return (
        targets["protein_g"] * KCAL_PER_GRAM["protein"]
        + targets["carbs_g"] * KCAL_PER_GRAM["carbs"]
        + targets["fat_g"] * KCAL_PER_GRAM["fat"]
    )
