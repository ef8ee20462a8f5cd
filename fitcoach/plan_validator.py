"""
Validation utilities for generated or edited workout plans.
"""


def _add_violation(violations, code, message, week=None, day=None, exercise=None):
    violations.append(
        {
            "code": code,
            "message": message,
            "week": week,
            "day": day or "",
            "exercise": exercise or "",
        }
    )


def _check_sets(violations, sets, week, day, exercise_id):
    if sets.count is None or sets.count < 1:
        _add_violation(
            violations,
            "invalid_set_count",
            f"Set count must be at least 1, got {sets.count}.",
            week=week,
            day=day,
            exercise=exercise_id,
        )

    if sets.reps is not None and sets.reps_range is not None:
        _add_violation(
            violations,
            "reps_and_range",
            "Prescription has both fixed reps and a reps range.",
            week=week,
            day=day,
            exercise=exercise_id,
        )
    elif sets.reps is None and sets.reps_range is None:
        _add_violation(
            violations,
            "missing_reps",
            "Prescription has neither fixed reps nor a reps range.",
            week=week,
            day=day,
            exercise=exercise_id,
        )
    elif sets.reps_range is not None and not 1 <= sets.reps_range.min <= sets.reps_range.max:
        _add_violation(
            violations,
            "invalid_reps_range",
            f"Reps range {sets.reps_range.min}-{sets.reps_range.max} is not valid.",
            week=week,
            day=day,
            exercise=exercise_id,
        )


def validate_plan(plan, catalog=None):
    """
    Validate a WorkoutPlan for structural rule adherence.

    Args:
        plan: WorkoutPlan to check
        catalog: Optional catalog; when given, every exercise id must resolve

    Returns:
        dict with keys: violations, summary
    """
    violations = []
    checked = 0

    if not plan.weeks:
        _add_violation(violations, "empty_plan", "Plan has no weeks.")

    first_week_days = [workout.day_label for workout in plan.weeks[0].workouts] if plan.weeks else []

    for week in plan.weeks:
        days = [workout.day_label for workout in week.workouts]
        if days != first_week_days:
            _add_violation(
                violations,
                "week_shape_mismatch",
                f"Week {week.week_number} days {days} differ from week 1 days {first_week_days}.",
                week=week.week_number,
            )

        for workout in week.workouts:
            seen = set()
            for entry in workout.exercises:
                checked += 1
                if entry.exercise_id in seen:
                    _add_violation(
                        violations,
                        "duplicate_exercise",
                        f"Exercise {entry.exercise_id} appears more than once on {workout.day_label}.",
                        week=week.week_number,
                        day=workout.day_label,
                        exercise=entry.exercise_id,
                    )
                seen.add(entry.exercise_id)

                if catalog is not None and catalog.get_by_id(entry.exercise_id) is None:
                    _add_violation(
                        violations,
                        "unknown_exercise",
                        f"Exercise {entry.exercise_id} is not in the catalog.",
                        week=week.week_number,
                        day=workout.day_label,
                        exercise=entry.exercise_id,
                    )

                _check_sets(violations, entry.sets, week.week_number, workout.day_label, entry.exercise_id)

    summary = (
        f"Validation: {checked} exercises checked, {len(violations)} violation(s)."
        if checked
        else "Validation: no exercises found in plan."
    )

    return {
        "violations": violations,
        "summary": summary,
    }
