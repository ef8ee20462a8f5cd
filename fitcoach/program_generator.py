"""
Rule-based multi-week program generation.

Builds a WorkoutPlan from a Profile by walking a split template slot by slot,
asking the ExerciseSelector for each slot, prescribing sets/reps from goal and
experience, and rolling week 1 forward with the progression table.
"""

import copy
import logging
import uuid
from datetime import datetime, timezone

from fitcoach.catalog import equipment_compatible, normalize_equipment
from fitcoach.config import DEFAULT_CONFIG
from fitcoach.errors import CatalogEmptyError, MissingBiometricData, NoGoalsError, NoScheduledDaysError
from fitcoach.exercise_selector import ExerciseSelector
from fitcoach.macro_planner import calculate_macro_targets, resolve_macro_split
from fitcoach.models import (
    ExercisePrescription,
    ExperienceLevel,
    GeneratedBy,
    GoalType,
    PartialGenerationWarning,
    PlanWeek,
    RepRange,
    SetPrescription,
    Workout,
    WorkoutPlan,
)
from fitcoach.profile_analyzer import calculate_tdee, select_goal
from fitcoach.progression import apply_week_progression, describe_progression


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Split templates: ordered (body_part, category preference) slots per day
# ---------------------------------------------------------------------------
FULL_BODY_DAY = [
    ("quadriceps", "compound"),
    ("chest", "compound"),
    ("back", "compound"),
    ("hamstrings", "compound"),
    ("shoulders", "compound"),
    ("core", None),
]

UPPER_DAY = [
    ("chest", "compound"),
    ("back", "compound"),
    ("shoulders", "compound"),
    ("back", "isolation"),
    ("triceps", "isolation"),
    ("biceps", "isolation"),
]

LOWER_DAY = [
    ("quadriceps", "compound"),
    ("hamstrings", "compound"),
    ("glutes", "compound"),
    ("quadriceps", "isolation"),
    ("calves", "isolation"),
    ("core", None),
]

PUSH_DAY = [
    ("chest", "compound"),
    ("shoulders", "compound"),
    ("chest", "isolation"),
    ("triceps", "compound"),
    ("shoulders", "isolation"),
    ("triceps", "isolation"),
]

PULL_DAY = [
    ("back", "compound"),
    ("back", "compound"),
    ("biceps", "isolation"),
    ("shoulders", "isolation"),
    ("biceps", "isolation"),
    ("forearms", "isolation"),
]

SPLIT_TEMPLATES = {
    "full_body": [("full_body", FULL_BODY_DAY)],
    "upper_lower": [("upper", UPPER_DAY), ("lower", LOWER_DAY)],
    "push_pull_legs": [("push", PUSH_DAY), ("pull", PULL_DAY), ("legs", LOWER_DAY)],
}

DAY_FOCUS_NOTES = {
    "full_body": "Full body workout - exercises for major muscle groups",
    "upper": "Upper body day - chest, back, shoulders, arms",
    "lower": "Lower body day - quads, hamstrings, glutes, calves",
    "push": "Push day - chest, shoulders, triceps",
    "pull": "Pull day - back, biceps, rear delts",
    "legs": "Leg day - quads, hamstrings, glutes, calves",
}

CONDITIONING_SLOT = ("cardio", "cardio")
CONDITIONING_GOALS = {GoalType.FAT_LOSS, GoalType.ENDURANCE}

# ---------------------------------------------------------------------------
# Prescription tables
# ---------------------------------------------------------------------------
REP_SCHEMES = {
    GoalType.STRENGTH: {"compound": (3, 6), "isolation": (6, 10), "cardio": (6, 8)},
    GoalType.HYPERTROPHY: {"compound": (8, 12), "isolation": (10, 15), "cardio": (8, 10)},
    GoalType.FAT_LOSS: {"compound": (10, 15), "isolation": (12, 20), "cardio": (10, 12)},
    GoalType.ENDURANCE: {"compound": (15, 20), "isolation": (15, 25), "cardio": (12, 15)},
    GoalType.GENERAL_FITNESS: {"compound": (10, 15), "isolation": (12, 20), "cardio": (8, 10)},
}

REST_SECONDS = {
    GoalType.STRENGTH: {"compound": 180, "isolation": 120, "cardio": 90},
    GoalType.HYPERTROPHY: {"compound": 90, "isolation": 60, "cardio": 60},
    GoalType.FAT_LOSS: {"compound": 60, "isolation": 45, "cardio": 30},
    GoalType.ENDURANCE: {"compound": 45, "isolation": 30, "cardio": 30},
    GoalType.GENERAL_FITNESS: {"compound": 90, "isolation": 60, "cardio": 45},
}

BASE_RPE = {
    GoalType.STRENGTH: 8.0,
    GoalType.HYPERTROPHY: 8.0,
    GoalType.FAT_LOSS: 7.0,
    GoalType.ENDURANCE: 7.0,
    GoalType.GENERAL_FITNESS: 7.0,
}

SET_COUNTS = {
    ExperienceLevel.BEGINNER: 3,
    ExperienceLevel.INTERMEDIATE: 4,
    ExperienceLevel.ADVANCED: 4,
}

BEGINNER_RPE_OFFSET = -1.0

GOAL_NAMES = {
    GoalType.STRENGTH: "Strength",
    GoalType.HYPERTROPHY: "Muscle Building",
    GoalType.FAT_LOSS: "Fat Loss",
    GoalType.ENDURANCE: "Endurance",
    GoalType.GENERAL_FITNESS: "General Fitness",
}


def choose_split(days_per_week):
    if days_per_week <= 3:
        return "full_body"
    if days_per_week == 4:
        return "upper_lower"
    return "push_pull_legs"


def day_template(split, day_index):
    """(focus, slots) for the n-th scheduled day of the week."""
    templates = SPLIT_TEMPLATES[split]
    return templates[day_index % len(templates)]


def build_day_slots(split, day_index, goal_type, experience_level, slots_per_day):
    focus, template = day_template(split, day_index)
    count = slots_per_day.get(ExperienceLevel(experience_level).value, len(template))
    slots = list(template[:count])
    if GoalType(goal_type) in CONDITIONING_GOALS:
        slots.append(CONDITIONING_SLOT)
    return focus, slots


def prescribe(exercise, goal_type, experience_level):
    """Week-1 SetPrescription for an exercise."""
    goal_type = GoalType(goal_type)
    experience_level = ExperienceLevel(experience_level)
    category = exercise.category if exercise.category in REP_SCHEMES[goal_type] else "isolation"

    low, high = REP_SCHEMES[goal_type][category]
    rpe = BASE_RPE[goal_type]
    if experience_level == ExperienceLevel.BEGINNER:
        rpe += BEGINNER_RPE_OFFSET

    first_cue = exercise.instructions[0] if exercise.instructions else ""
    sets = SetPrescription(
        count=SET_COUNTS[experience_level],
        rest_seconds=REST_SECONDS[goal_type][category],
        rpe=rpe,
        notes=f"Focus on proper form. {first_cue}".strip(),
    )
    # Beginners get one fixed target; everyone else works a range.
    if experience_level == ExperienceLevel.BEGINNER:
        sets.reps = high
    else:
        sets.reps_range = RepRange(low, high)
    return sets


def day_notes(focus, experience_level):
    notes = [DAY_FOCUS_NOTES[focus]]
    if ExperienceLevel(experience_level) == ExperienceLevel.BEGINNER and focus in ("lower", "legs"):
        notes.append("Start light with leg exercises")
    return ". ".join(notes)


def plan_name(goal_type, experience_level):
    return f"{GOAL_NAMES[GoalType(goal_type)]} {ExperienceLevel(experience_level).value.capitalize()} Plan"


def plan_notes(goal_type, experience_level):
    goal_type = GoalType(goal_type)
    tips = []
    if ExperienceLevel(experience_level) == ExperienceLevel.BEGINNER:
        tips.append("Start with lighter weights to master form")
        tips.append("Focus on full range of motion")

    if goal_type == GoalType.STRENGTH:
        tips.append("Gradually increase weight as strength improves")
        tips.append("Ensure adequate rest between sets (3-5 minutes for heavy lifts)")
    elif goal_type == GoalType.HYPERTROPHY:
        tips.append("Focus on muscle mind connection")
        tips.append("Control the negative portion of each rep")
    elif goal_type in CONDITIONING_GOALS:
        tips.append("Keep rest periods short and finish each session with conditioning")

    tips.append("Listen to your body and rest when needed")
    tips.append("Stay hydrated and fuel properly")
    return ". ".join(tips)


def _utc_now():
    return datetime.now(timezone.utc).isoformat()


def _new_id():
    return str(uuid.uuid4())


class ProgramGenerator:
    """Generates periodized WorkoutPlans from a catalog snapshot."""

    def __init__(self, catalog, config=None, clock=None, id_factory=None):
        """
        Args:
            catalog: Object implementing the catalog query interface
            config: Full configuration dict (uses the `program` and `nutrition` sections)
            clock: Callable returning an ISO timestamp (defaults to UTC now)
            id_factory: Callable returning a new plan id (defaults to uuid4)
        """
        self.catalog = catalog
        self.selector = ExerciseSelector(catalog)
        config = config or DEFAULT_CONFIG
        self.program_config = {**DEFAULT_CONFIG["program"], **(config.get("program") or {})}
        self.macro_split = (config.get("nutrition") or {}).get("macro_split")
        self.clock = clock or _utc_now
        self.id_factory = id_factory or _new_id

    def generate(self, profile, goal_id=None, weeks=None):
        """
        Generate a full multi-week plan.

        Raises:
            NoGoalsError / NoScheduledDaysError / InvalidMacroSplit: before
                any catalog access
            CatalogEmptyError: the very first slot finds nothing and the
                catalog has no equipment-compatible exercise at all
        """
        goal = select_goal(profile, goal_id)
        if goal is None:
            raise NoGoalsError()

        scheduled = profile.scheduled_days()
        if not scheduled:
            raise NoScheduledDaysError()

        total_weeks = int(self.program_config["weeks"] if weeks is None else weeks)
        if total_weeks < 1:
            raise ValueError("weeks must be at least 1")

        resolve_macro_split(profile, self.macro_split)

        goal_type = GoalType(goal.type)
        experience = ExperienceLevel(profile.experience_level)
        split = choose_split(len(scheduled))
        logger.info(
            "Generating %s plan: %d days/week (%s), %d weeks, %s",
            goal_type.value, len(scheduled), split, total_weeks, experience.value,
        )

        base_workouts, unfilled = self._build_base_week(profile, scheduled, split, goal_type, experience)

        plan_weeks = []
        for week_number in range(1, total_weeks + 1):
            workouts = []
            for workout in base_workouts:
                week_workout = copy.deepcopy(workout)
                for entry in week_workout.exercises:
                    entry.sets = apply_week_progression(
                        entry.sets,
                        week_number,
                        total_weeks,
                        deload_min_weeks=self.program_config["deload_min_weeks"],
                    )
                workouts.append(week_workout)
            plan_weeks.append(PlanWeek(week_number=week_number, workouts=workouts))

        warnings = [
            PartialGenerationWarning(
                week_number=week_number,
                day_label=day_label,
                slot_index=slot_index,
                body_part=body_part,
                message=f"No suitable {body_part} exercise for slot {slot_index + 1} on {day_label}.",
            )
            for week_number in range(1, total_weeks + 1)
            for day_label, slot_index, body_part in unfilled
        ]

        now = self.clock()
        notes = plan_notes(goal_type, experience)
        notes += ". " + "; ".join(
            describe_progression(total_weeks, self.program_config["deload_min_weeks"])
        )
        return WorkoutPlan(
            id=self.id_factory(),
            name=plan_name(goal_type, experience),
            generated_by=GeneratedBy.COACH,
            weeks=plan_weeks,
            created_at=now,
            updated_at=now,
            notes=notes,
            goal_type=goal_type,
            warnings=warnings,
            nutrition_targets=self._nutrition_targets(profile, goal.id),
        )

    def _build_base_week(self, profile, scheduled, split, goal_type, experience):
        """Week-1 workouts plus (day_label, slot_index, body_part) for every unfilled slot."""
        workouts = []
        unfilled = []
        used_this_week = set()
        first_attempt = True

        for day_index, day in enumerate(scheduled):
            day_label = day.capitalize()
            focus, slots = build_day_slots(
                split, day_index, goal_type, experience, self.program_config["slots_per_day"]
            )
            workout = Workout(day_label=day_label, notes=day_notes(focus, experience))
            used_today = set()

            for slot_index, (body_part, category) in enumerate(slots):
                exercise = self._select_for_slot(
                    body_part, category, profile.equipment, experience, used_today, used_this_week
                )
                if first_attempt and exercise is None and not self._catalog_has_usable_items(profile.equipment):
                    raise CatalogEmptyError(body_part)
                first_attempt = False

                if exercise is None:
                    logger.warning("Unfilled slot %d (%s) on %s", slot_index + 1, body_part, day_label)
                    unfilled.append((day_label, slot_index, body_part))
                    continue

                used_today.add(exercise.id)
                workout.exercises.append(
                    ExercisePrescription(
                        exercise_id=exercise.id,
                        sets=prescribe(exercise, goal_type, experience),
                    )
                )

            used_this_week |= used_today
            workouts.append(workout)
        return workouts, unfilled

    def _select_for_slot(self, body_part, category, equipment, experience, used_today, used_this_week):
        # Prefer exercises not used earlier in the week; fall back to same-day exclusion only.
        exercise = self.selector.select(
            body_part, equipment, experience, exclude_ids=used_today | used_this_week, category=category
        )
        if exercise is None and used_this_week:
            exercise = self.selector.select(
                body_part, equipment, experience, exclude_ids=used_today, category=category
            )
        return exercise

    def _catalog_has_usable_items(self, equipment):
        available = normalize_equipment(equipment)
        for name in sorted(available):
            if any(equipment_compatible(item, available) for item in self.catalog.get_by_equipment(name)):
                return True
        return False

    def _nutrition_targets(self, profile, goal_id):
        """Display-only targets; plans are still generated without biometrics."""
        try:
            tdee = calculate_tdee(profile)
        except MissingBiometricData as err:
            logger.info("Skipping nutrition targets: %s", err)
            return None
        targets = calculate_macro_targets(profile, tdee["tdee"], goal_id=goal_id, default_split=self.macro_split)
        return {"bmr": round(tdee["bmr"]), "tdee": round(tdee["tdee"]), **targets}
