"""
Plan edits as a closed, validated set of patch variants.

A patch is one of four shapes, discriminated on `type`:

    replace_exercise     swap the exercise at (day_index, exercise_index)
    add_exercise         insert an exercise with a prescription
    remove_exercise      drop the exercise at (day_index, exercise_index)
    change_prescription  replace the set/rep scheme at (day_index, exercise_index)

`week_number` targets one week; omitted, the edit applies to every week.
Unknown variants and unknown fields are rejected before anything touches a
plan.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from fitcoach.errors import PatchRejected
from fitcoach.models import ExercisePrescription, RepRange, SetPrescription


logger = logging.getLogger(__name__)


class RepRangeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min: int = Field(ge=1, le=50)
    max: int = Field(ge=1, le=50)

    @model_validator(mode="after")
    def _ordered(self):
        if self.min > self.max:
            raise ValueError("reps_range.min must not exceed reps_range.max")
        return self


class PrescriptionSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(ge=1, le=10)
    reps: Optional[int] = Field(default=None, ge=1, le=50)
    reps_range: Optional[RepRangeSpec] = None
    weight_kg: Optional[float] = Field(default=None, ge=0, le=1000)
    rest_seconds: Optional[int] = Field(default=None, ge=0, le=600)
    rpe: Optional[float] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _reps_xor_range(self):
        if (self.reps is None) == (self.reps_range is None):
            raise ValueError("exactly one of reps or reps_range is required")
        return self

    def to_set_prescription(self):
        return SetPrescription(
            count=self.count,
            reps=self.reps,
            reps_range=RepRange(self.reps_range.min, self.reps_range.max) if self.reps_range else None,
            weight_kg=self.weight_kg,
            rest_seconds=self.rest_seconds,
            rpe=self.rpe,
            notes=self.notes,
        )


class _PatchBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    week_number: Optional[int] = Field(default=None, ge=1)
    day_index: int = Field(ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)


class ReplaceExercisePatch(_PatchBase):
    type: Literal["replace_exercise"]
    exercise_index: int = Field(ge=0)
    exercise_id: str = Field(min_length=1)


class AddExercisePatch(_PatchBase):
    type: Literal["add_exercise"]
    exercise_id: str = Field(min_length=1)
    sets: PrescriptionSpec
    position: Optional[int] = Field(default=None, ge=0)


class RemoveExercisePatch(_PatchBase):
    type: Literal["remove_exercise"]
    exercise_index: int = Field(ge=0)


class ChangePrescriptionPatch(_PatchBase):
    type: Literal["change_prescription"]
    exercise_index: int = Field(ge=0)
    sets: PrescriptionSpec


PlanPatch = Annotated[
    Union[ReplaceExercisePatch, AddExercisePatch, RemoveExercisePatch, ChangePrescriptionPatch],
    Field(discriminator="type"),
]

_PATCH_ADAPTER = TypeAdapter(PlanPatch)

PATCH_TYPES = ["replace_exercise", "add_exercise", "remove_exercise", "change_prescription"]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_patch(data):
    """Validate one patch dict. Returns the typed patch, or None if it does not match the schema."""
    try:
        return _PATCH_ADAPTER.validate_python(data)
    except ValidationError as err:
        logger.warning("Rejected plan patch %r: %s", data, err.errors(include_url=False))
        return None


def _extract_json(text):
    text = (text or "").strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
        text = text.strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost array or object embedded in prose.
    for pattern in (r"\[[\s\S]*\]", r"\{[\s\S]*\}"):
        match = re.search(pattern, text)
        if not match:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue
    return None


def parse_patches_from_text(text):
    """
    Pull every valid patch out of free text (e.g. an assistant reply).

    Accepts a single patch object, a list of patches, or {"patches": [...]}.
    Invalid entries are dropped.
    """
    data = _extract_json(text)
    if data is None:
        return []
    if isinstance(data, dict):
        data = data["patches"] if isinstance(data.get("patches"), list) else [data]
    if not isinstance(data, list):
        return []

    patches = []
    for entry in data:
        patch = parse_patch(entry)
        if patch is not None:
            patches.append(patch)
    return patches


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def _target_workouts(plan, patch):
    if patch.week_number is None:
        weeks = list(plan.weeks)
    else:
        week = plan.get_week(patch.week_number)
        if week is None:
            raise PatchRejected("unknown_week", f"Plan has no week {patch.week_number}.")
        weeks = [week]

    workouts = []
    for week in weeks:
        if patch.day_index >= len(week.workouts):
            raise PatchRejected(
                "unknown_day",
                f"Week {week.week_number} has no day at index {patch.day_index}.",
            )
        workouts.append(week.workouts[patch.day_index])
    return workouts


def _check_patch(patch, workout, catalog):
    ids = workout.exercise_ids()

    if patch.type in ("replace_exercise", "remove_exercise", "change_prescription"):
        if patch.exercise_index >= len(ids):
            raise PatchRejected(
                "unknown_exercise_index",
                f"{workout.day_label} has no exercise at index {patch.exercise_index}.",
            )

    if patch.type in ("replace_exercise", "add_exercise"):
        if catalog is not None and catalog.get_by_id(patch.exercise_id) is None:
            raise PatchRejected("unknown_exercise", f"Exercise {patch.exercise_id} is not in the catalog.")
        others = list(ids)
        if patch.type == "replace_exercise":
            others.pop(patch.exercise_index)
        if patch.exercise_id in others:
            raise PatchRejected(
                "duplicate_exercise",
                f"Exercise {patch.exercise_id} is already in {workout.day_label}.",
            )


def _apply_to_workout(patch, workout):
    if patch.type == "replace_exercise":
        workout.exercises[patch.exercise_index].exercise_id = patch.exercise_id
    elif patch.type == "add_exercise":
        entry = ExercisePrescription(exercise_id=patch.exercise_id, sets=patch.sets.to_set_prescription())
        position = len(workout.exercises) if patch.position is None else min(patch.position, len(workout.exercises))
        workout.exercises.insert(position, entry)
    elif patch.type == "remove_exercise":
        workout.exercises.pop(patch.exercise_index)
    elif patch.type == "change_prescription":
        workout.exercises[patch.exercise_index].sets = patch.sets.to_set_prescription()


def apply_patch(plan, patch, catalog=None):
    """
    Apply one validated patch to `plan` in place.

    Every targeted day is checked before any is changed, so a rejected patch
    leaves the plan untouched.

    Raises:
        PatchRejected: unknown week/day/index, unknown exercise, or an edit
            that would put the same exercise twice in one day
    """
    workouts = _target_workouts(plan, patch)
    for workout in workouts:
        _check_patch(patch, workout, catalog)

    for workout in workouts:
        _apply_to_workout(patch, workout)

    if patch.notes:
        logger.info("Applied %s patch: %s", patch.type, patch.notes)
    plan.updated_at = datetime.now(timezone.utc).isoformat()
    return plan


def apply_patches(plan, patches, catalog=None):
    """
    Apply patches in order, skipping the ones that are rejected.

    Returns:
        Tuple[list, list] => (applied patches, [(patch, reason), ...])
    """
    applied = []
    rejected = []
    for patch in patches:
        try:
            apply_patch(plan, patch, catalog)
        except PatchRejected as err:
            logger.warning("Patch %s rejected (%s): %s", patch.type, err.code, err)
            rejected.append((patch, str(err)))
            continue
        applied.append(patch)
    return applied, rejected
