"""
Deterministic week-over-week progression for generated programs.

Week 1 carries the base prescription. Each later week looks up its offset in
PROGRESSION_TABLE (offsets past the end of the table hold the last row). The
final week of a block of at least DELOAD_MIN_WEEKS weeks is a deload instead.
"""

import copy

from fitcoach.models import RepRange


PROGRESSION_TABLE = [
    # week offset from week 1 -> increments applied to the base prescription
    {"week_offset": 0, "rep_delta": 0, "rpe_delta": 0.0, "load_pct": 0.0},
    {"week_offset": 1, "rep_delta": 1, "rpe_delta": 0.5, "load_pct": 2.5},
    {"week_offset": 2, "rep_delta": 2, "rpe_delta": 1.0, "load_pct": 5.0},
]

DELOAD = {"set_delta": -1, "rep_delta": 0, "rpe_delta": -1.5, "load_pct": -10.0}

DELOAD_MIN_WEEKS = 4
RPE_CEILING = 10.0
RPE_FLOOR = 5.0
LOAD_INCREMENT_KG = 0.5

DELOAD_NOTE = "Deload week: one set fewer, leave 3+ reps in reserve."


def is_deload_week(week_number, total_weeks, deload_min_weeks=DELOAD_MIN_WEEKS):
    return total_weeks >= deload_min_weeks and week_number == total_weeks


def progression_step(week_number):
    offset = max(0, week_number - 1)
    return PROGRESSION_TABLE[min(offset, len(PROGRESSION_TABLE) - 1)]


def round_load(value):
    """Round a load to the nearest plate increment."""
    return round(value / LOAD_INCREMENT_KG) * LOAD_INCREMENT_KG


def format_load(value):
    """Format load values while preserving meaningful decimal precision."""
    if value is None:
        return ""

    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))

    return f"{value:.3f}".rstrip("0").rstrip(".")


def _clamp_rpe(value):
    return min(RPE_CEILING, max(RPE_FLOOR, value))


def apply_week_progression(base, week_number, total_weeks, deload_min_weeks=DELOAD_MIN_WEEKS):
    """
    Return a new SetPrescription for `week_number` derived from the week-1 `base`.

    The base is never mutated.
    """
    sets = copy.deepcopy(base)
    if week_number <= 1:
        return sets

    if is_deload_week(week_number, total_weeks, deload_min_weeks):
        step = DELOAD
        sets.count = max(1, base.count + DELOAD["set_delta"])
        sets.notes = f"{base.notes} {DELOAD_NOTE}".strip() if base.notes else DELOAD_NOTE
    else:
        step = progression_step(week_number)

    rep_delta = step["rep_delta"]
    if sets.reps is not None:
        sets.reps = base.reps + rep_delta
    elif sets.reps_range is not None:
        sets.reps_range = RepRange(base.reps_range.min + rep_delta, base.reps_range.max + rep_delta)

    if base.rpe is not None:
        sets.rpe = _clamp_rpe(base.rpe + step["rpe_delta"])

    if base.weight_kg is not None:
        sets.weight_kg = round_load(base.weight_kg * (1 + step["load_pct"] / 100))

    return sets


def describe_progression(total_weeks, deload_min_weeks=DELOAD_MIN_WEEKS):
    """One line per week, used in plan notes and the CLI."""
    lines = []
    for week_number in range(1, total_weeks + 1):
        if is_deload_week(week_number, total_weeks, deload_min_weeks):
            lines.append(f"Week {week_number}: deload ({DELOAD['set_delta']} set, RPE {DELOAD['rpe_delta']:+g})")
            continue
        step = progression_step(week_number)
        if step["week_offset"] == 0 and week_number == 1:
            lines.append(f"Week {week_number}: base prescription")
        else:
            lines.append(
                f"Week {week_number}: +{step['rep_delta']} reps, RPE {step['rpe_delta']:+g}, "
                f"load {step['load_pct']:+g}%"
            )
    return lines
