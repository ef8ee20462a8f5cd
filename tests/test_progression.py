import unittest

from fitcoach.models import RepRange, SetPrescription
from fitcoach.progression import (
    DELOAD_NOTE,
    apply_week_progression,
    describe_progression,
    format_load,
    is_deload_week,
    round_load,
)


def _base(**overrides):
    data = {
        "count": 4,
        "reps_range": RepRange(8, 12),
        "weight_kg": 60.0,
        "rest_seconds": 90,
        "rpe": 8.0,
        "notes": "Focus on proper form.",
    }
    data.update(overrides)
    return SetPrescription(**data)


class ProgressionTests(unittest.TestCase):
    def test_week_one_is_unchanged_copy(self):
        base = _base()
        week1 = apply_week_progression(base, 1, 4)
        self.assertEqual(week1, base)
        self.assertIsNot(week1, base)

    def test_weeks_two_and_three_progress(self):
        base = _base()
        week2 = apply_week_progression(base, 2, 4)
        week3 = apply_week_progression(base, 3, 4)

        self.assertEqual(week2.reps_range, RepRange(9, 13))
        self.assertEqual(week2.rpe, 8.5)
        self.assertEqual(week2.weight_kg, 61.5)
        self.assertEqual(week3.reps_range, RepRange(10, 14))
        self.assertEqual(week3.rpe, 9.0)
        self.assertEqual(week3.weight_kg, 63.0)
        self.assertEqual(week3.count, 4)

    def test_base_is_not_mutated(self):
        base = _base()
        apply_week_progression(base, 3, 6)
        self.assertEqual(base.reps_range, RepRange(8, 12))
        self.assertEqual(base.rpe, 8.0)

    def test_final_week_of_long_block_is_deload(self):
        base = _base()
        deload = apply_week_progression(base, 4, 4)

        self.assertEqual(deload.count, 3)
        self.assertEqual(deload.reps_range, RepRange(8, 12))
        self.assertEqual(deload.rpe, 6.5)
        self.assertEqual(deload.weight_kg, 54.0)
        self.assertIn(DELOAD_NOTE, deload.notes)

    def test_short_block_has_no_deload(self):
        self.assertFalse(is_deload_week(3, 3))
        week3 = apply_week_progression(_base(), 3, 3)
        self.assertEqual(week3.count, 4)

    def test_weeks_past_table_hold_last_step(self):
        week5 = apply_week_progression(_base(), 5, 8)
        self.assertEqual(week5.reps_range, RepRange(10, 14))
        self.assertEqual(week5.rpe, 9.0)

    def test_fixed_reps_progress_and_rpe_is_clamped(self):
        base = _base(reps_range=None, reps=15, rpe=9.5, weight_kg=None)
        week3 = apply_week_progression(base, 3, 4)
        self.assertEqual(week3.reps, 17)
        self.assertEqual(week3.rpe, 10.0)
        self.assertIsNone(week3.weight_kg)

        low = _base(rpe=6.0)
        self.assertEqual(apply_week_progression(low, 4, 4).rpe, 5.0)

    def test_deload_keeps_at_least_one_set(self):
        deload = apply_week_progression(_base(count=1), 6, 6)
        self.assertEqual(deload.count, 1)

    def test_describe_progression(self):
        lines = describe_progression(4)
        self.assertEqual(len(lines), 4)
        self.assertEqual(lines[0], "Week 1: base prescription")
        self.assertIn("+1 reps", lines[1])
        self.assertIn("deload", lines[3])

    def test_load_helpers(self):
        self.assertEqual(round_load(61.3), 61.5)
        self.assertEqual(format_load(42.0), "42")
        self.assertEqual(format_load(42.5), "42.5")
        self.assertEqual(format_load(None), "")


if __name__ == "__main__":
    unittest.main()
