"""
Core data model shared by the coaching engine, the store, and the CLI.

All biometric values are metric (kg, cm). Every model round-trips through
plain dicts (`to_dict` / `from_dict`) so plans can be stored as JSON.
"""

from dataclasses import dataclass, field
from enum import Enum


WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Ordered easiest -> hardest; used for difficulty ceilings.
DIFFICULTY_ORDER = [ExperienceLevel.BEGINNER, ExperienceLevel.INTERMEDIATE, ExperienceLevel.ADVANCED]


class GoalType(str, Enum):
    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
    FAT_LOSS = "fat_loss"
    ENDURANCE = "endurance"
    GENERAL_FITNESS = "general_fitness"


class GeneratedBy(str, Enum):
    COACH = "coach"
    AI = "ai"
    MANUAL = "manual"


def _enum_value(value):
    return value.value if isinstance(value, Enum) else value


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@dataclass
class Goal:
    id: str
    type: GoalType
    priority: int = 1
    target_date: str = None

    def to_dict(self):
        return {
            "id": self.id,
            "type": _enum_value(self.type),
            "priority": self.priority,
            "target_date": self.target_date,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data["id"]),
            type=GoalType(data["type"]),
            priority=int(data.get("priority", 1)),
            target_date=data.get("target_date"),
        )


@dataclass
class Profile:
    id: str
    age: int = None
    sex: Sex = Sex.OTHER
    height_cm: float = None
    weight_kg: float = None
    activity_level: ActivityLevel = ActivityLevel.MODERATE
    experience_level: ExperienceLevel = ExperienceLevel.BEGINNER
    goals: list = field(default_factory=list)
    equipment: set = field(default_factory=set)
    schedule: dict = field(default_factory=dict)
    limitations: str = ""
    macro_split: dict = None

    def scheduled_days(self):
        """Scheduled weekdays in calendar order (Monday first)."""
        return [day for day in WEEKDAYS if self.schedule.get(day)]

    def to_dict(self):
        return {
            "id": self.id,
            "age": self.age,
            "sex": _enum_value(self.sex),
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "activity_level": _enum_value(self.activity_level),
            "experience_level": _enum_value(self.experience_level),
            "goals": [goal.to_dict() for goal in self.goals],
            "equipment": sorted(self.equipment),
            "schedule": {day: bool(self.schedule.get(day)) for day in WEEKDAYS},
            "limitations": self.limitations,
            "macro_split": dict(self.macro_split) if self.macro_split else None,
        }

    @classmethod
    def from_dict(cls, data):
        schedule = data.get("schedule") or {}
        if isinstance(schedule, (list, tuple)):
            # Accept a list of day names as shorthand.
            schedule = {str(day).lower(): True for day in schedule}
        return cls(
            id=str(data.get("id") or "profile"),
            age=data.get("age"),
            sex=Sex(data.get("sex") or Sex.OTHER.value),
            height_cm=data.get("height_cm"),
            weight_kg=data.get("weight_kg"),
            activity_level=ActivityLevel(data.get("activity_level") or ActivityLevel.MODERATE.value),
            experience_level=ExperienceLevel(data.get("experience_level") or ExperienceLevel.BEGINNER.value),
            goals=[Goal.from_dict(goal) for goal in data.get("goals") or []],
            equipment={str(item).strip().lower() for item in data.get("equipment") or []},
            schedule={str(day).lower(): bool(value) for day, value in schedule.items()},
            limitations=data.get("limitations") or "",
            macro_split=data.get("macro_split"),
        )


# ---------------------------------------------------------------------------
# Exercise catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExerciseCatalogItem:
    id: str
    name: str
    body_part: str
    category: str = "compound"
    equipment: frozenset = frozenset({"bodyweight"})
    difficulty: ExperienceLevel = ExperienceLevel.BEGINNER
    instructions: tuple = ()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "body_part": self.body_part,
            "category": self.category,
            "equipment": sorted(self.equipment),
            "difficulty": _enum_value(self.difficulty),
            "instructions": list(self.instructions),
        }

    @classmethod
    def from_dict(cls, data):
        equipment = data.get("equipment") or ["bodyweight"]
        if isinstance(equipment, str):
            equipment = [equipment]
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            body_part=str(data.get("body_part") or "full body").strip().lower(),
            category=str(data.get("category") or "compound").strip().lower(),
            equipment=frozenset(str(item).strip().lower() for item in equipment),
            difficulty=ExperienceLevel(data.get("difficulty") or ExperienceLevel.BEGINNER.value),
            instructions=tuple(data.get("instructions") or ()),
        )


# ---------------------------------------------------------------------------
# Workout plan
# ---------------------------------------------------------------------------


@dataclass
class RepRange:
    min: int
    max: int

    def to_dict(self):
        return {"min": self.min, "max": self.max}


@dataclass
class SetPrescription:
    """Set/rep scheme for one exercise. Exactly one of `reps` / `reps_range` is set."""

    count: int
    reps: int = None
    reps_range: RepRange = None
    weight_kg: float = None
    rest_seconds: int = None
    rpe: float = None
    notes: str = None

    def to_dict(self):
        return {
            "count": self.count,
            "reps": self.reps,
            "reps_range": self.reps_range.to_dict() if self.reps_range else None,
            "weight_kg": self.weight_kg,
            "rest_seconds": self.rest_seconds,
            "rpe": self.rpe,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data):
        reps_range = data.get("reps_range")
        return cls(
            count=int(data["count"]),
            reps=data.get("reps"),
            reps_range=RepRange(int(reps_range["min"]), int(reps_range["max"])) if reps_range else None,
            weight_kg=data.get("weight_kg"),
            rest_seconds=data.get("rest_seconds"),
            rpe=data.get("rpe"),
            notes=data.get("notes"),
        )


@dataclass
class ExercisePrescription:
    exercise_id: str
    sets: SetPrescription

    def to_dict(self):
        return {"exercise_id": self.exercise_id, "sets": self.sets.to_dict()}

    @classmethod
    def from_dict(cls, data):
        return cls(exercise_id=str(data["exercise_id"]), sets=SetPrescription.from_dict(data["sets"]))


@dataclass
class Workout:
    day_label: str
    exercises: list = field(default_factory=list)
    notes: str = ""

    def exercise_ids(self):
        return [entry.exercise_id for entry in self.exercises]

    def to_dict(self):
        return {
            "day_label": self.day_label,
            "exercises": [entry.to_dict() for entry in self.exercises],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            day_label=data["day_label"],
            exercises=[ExercisePrescription.from_dict(entry) for entry in data.get("exercises") or []],
            notes=data.get("notes") or "",
        )


@dataclass
class PlanWeek:
    week_number: int
    workouts: list = field(default_factory=list)

    def to_dict(self):
        return {
            "week_number": self.week_number,
            "workouts": [workout.to_dict() for workout in self.workouts],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            week_number=int(data["week_number"]),
            workouts=[Workout.from_dict(workout) for workout in data.get("workouts") or []],
        )


@dataclass
class PartialGenerationWarning:
    """Non-fatal generation diagnostic: a slot the catalog could not fill."""

    week_number: int
    day_label: str
    slot_index: int
    body_part: str
    message: str
    code: str = "unfilled_slot"

    def to_dict(self):
        return {
            "code": self.code,
            "week_number": self.week_number,
            "day_label": self.day_label,
            "slot_index": self.slot_index,
            "body_part": self.body_part,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            week_number=int(data["week_number"]),
            day_label=data["day_label"],
            slot_index=int(data["slot_index"]),
            body_part=data["body_part"],
            message=data["message"],
            code=data.get("code") or "unfilled_slot",
        )


@dataclass
class WorkoutPlan:
    id: str
    name: str
    generated_by: GeneratedBy
    weeks: list
    created_at: str
    updated_at: str
    notes: str = ""
    goal_type: GoalType = None
    warnings: list = field(default_factory=list)
    nutrition_targets: dict = None

    def get_week(self, week_number):
        for week in self.weeks:
            if week.week_number == week_number:
                return week
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "generated_by": _enum_value(self.generated_by),
            "goal_type": _enum_value(self.goal_type),
            "notes": self.notes,
            "weeks": [week.to_dict() for week in self.weeks],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "nutrition_targets": dict(self.nutrition_targets) if self.nutrition_targets else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data):
        goal_type = data.get("goal_type")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            generated_by=GeneratedBy(data.get("generated_by") or GeneratedBy.MANUAL.value),
            weeks=[PlanWeek.from_dict(week) for week in data.get("weeks") or []],
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
            notes=data.get("notes") or "",
            goal_type=GoalType(goal_type) if goal_type else None,
            warnings=[PartialGenerationWarning.from_dict(w) for w in data.get("warnings") or []],
            nutrition_targets=data.get("nutrition_targets"),
        )
