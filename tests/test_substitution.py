import unittest

from fitcoach.catalog import ExerciseCatalog
from fitcoach.models import (
    ExerciseCatalogItem,
    ExercisePrescription,
    GeneratedBy,
    PlanWeek,
    RepRange,
    SetPrescription,
    Workout,
    WorkoutPlan,
)
from fitcoach.substitution import SubstitutionEngine, SubstitutionHistory, make_slot_key


def _item(exercise_id, body_part, equipment=("bodyweight",), difficulty="beginner", category="compound"):
    return ExerciseCatalogItem.from_dict(
        {
            "id": exercise_id,
            "name": exercise_id,
            "body_part": body_part,
            "category": category,
            "equipment": list(equipment),
            "difficulty": difficulty,
        }
    )


def _entry(exercise_id):
    return ExercisePrescription(exercise_id=exercise_id, sets=SetPrescription(count=3, reps_range=RepRange(8, 12)))


def _catalog():
    return ExerciseCatalog(
        [
            _item("back-a", "back"),
            _item("back-b", "back"),
            _item("back-c", "back"),
            _item("back-d", "back"),
            _item("back-e", "back"),
            _item("back-barbell", "back", equipment=("barbell",)),
            _item("chest-a", "chest"),
        ]
    )


class SubstitutionHistoryTests(unittest.TestCase):
    def test_slot_history_is_bounded(self):
        history = SubstitutionHistory(history_size=3)
        key = make_slot_key(1, "Monday", 0)
        for exercise_id in ("w", "x", "y", "z"):
            history.record(key, exercise_id)
        self.assertEqual(history.recent(key), ["x", "y", "z"])

    def test_least_recently_used_slot_is_evicted(self):
        history = SubstitutionHistory(max_slots=2)
        history.record("s1", "a")
        history.record("s2", "b")
        history.record("s1", "c")
        history.record("s3", "d")

        self.assertIn("s1", history)
        self.assertNotIn("s2", history)
        self.assertEqual(len(history), 2)

    def test_binds_to_one_plan(self):
        history = SubstitutionHistory()
        history.bind("plan-1")
        history.bind("plan-1")
        with self.assertRaises(ValueError):
            history.bind("plan-2")

    def test_dict_round_trip_preserves_order(self):
        history = SubstitutionHistory(plan_id="plan-1")
        history.record(make_slot_key(1, "Monday", 0), "a")
        history.record(make_slot_key(1, "Monday", 0), "b")

        restored = SubstitutionHistory.from_dict(history.to_dict())
        self.assertEqual(restored.plan_id, "plan-1")
        self.assertEqual(restored.recent((1, "monday", 0)), ["a", "b"])

    def test_slot_key_normalizes_day_label(self):
        self.assertEqual(make_slot_key("2", " Monday ", "1"), (2, "monday", 1))


class SubstitutionEngineTests(unittest.TestCase):
    def setUp(self):
        self.engine = SubstitutionEngine(_catalog())
        self.slot = make_slot_key(1, "Monday", 0)

    def test_excludes_input_and_current_day(self):
        replacement = self.engine.substitute("back-a", "plan-1", [], ["back-b"], self.slot)
        self.assertEqual(replacement.id, "back-c")

    def test_consecutive_calls_return_distinct_exercises(self):
        ids = [
            self.engine.substitute("back-a", "plan-1", [], ["back-b"], self.slot).id
            for _ in range(3)
        ]
        self.assertEqual(ids, ["back-c", "back-d", "back-e"])
        self.assertEqual(len(set(ids)), 3)
        self.assertNotIn("back-a", ids)
        self.assertNotIn("back-b", ids)

    def test_exhausted_slot_returns_none(self):
        for _ in range(3):
            self.engine.substitute("back-a", "plan-1", [], ["back-b"], self.slot)
        self.assertIsNone(self.engine.substitute("back-a", "plan-1", [], ["back-b"], self.slot))

    def test_slots_have_independent_history(self):
        self.engine.substitute("back-a", "plan-1", [], [], self.slot)
        other = self.engine.substitute("back-a", "plan-1", [], [], make_slot_key(1, "Friday", 0))
        self.assertEqual(other.id, "back-b")

    def test_equipment_is_respected(self):
        replacement = self.engine.substitute(
            "back-a", "plan-1", ["barbell"], ["back-b", "back-c", "back-d", "back-e"], self.slot
        )
        self.assertEqual(replacement.id, "back-barbell")
        self.assertIsNone(
            self.engine.substitute("back-a", "plan-1", None, ["back-b", "back-c", "back-d", "back-e"],
                                   make_slot_key(1, "Monday", 1))
        )

    def test_unknown_exercise_returns_none(self):
        with self.assertLogs("fitcoach.substitution", level="WARNING"):
            self.assertIsNone(self.engine.substitute("mystery", "plan-1", [], [], self.slot))

    def test_history_from_other_plan_is_rejected(self):
        self.engine.substitute("back-a", "plan-1", [], [], self.slot)
        with self.assertRaises(ValueError):
            self.engine.substitute("back-a", "plan-2", [], [], self.slot)

    def test_explicit_history_is_used(self):
        history = SubstitutionHistory(plan_id="plan-1")
        history.record(self.slot, "back-b")
        replacement = self.engine.substitute("back-a", "plan-1", [], [], self.slot, history=history)
        self.assertEqual(replacement.id, "back-c")
        self.assertEqual(history.recent(self.slot), ["back-b", "back-c"])
        self.assertEqual(len(self.engine.history), 0)

    def test_empty_history_passed_to_constructor_is_kept(self):
        history = SubstitutionHistory(plan_id="plan-1")
        engine = SubstitutionEngine(_catalog(), history=history)
        self.assertIs(engine.history, history)

        first = engine.substitute("back-a", "plan-1", [], [], self.slot)
        second = engine.substitute("back-a", "plan-1", [], [], self.slot)
        self.assertEqual(history.recent(self.slot), [first.id, second.id])

    def test_history_size_comes_from_config(self):
        engine = SubstitutionEngine(_catalog(), config={"substitution": {"history_size": 1}})
        self.assertEqual(engine.history.history_size, 1)


class SubstituteInPlanTests(unittest.TestCase):
    def _plan(self):
        return WorkoutPlan(
            id="plan-1",
            name="Test",
            generated_by=GeneratedBy.COACH,
            weeks=[
                PlanWeek(
                    week_number=1,
                    workouts=[Workout(day_label="Monday", exercises=[_entry("back-a"), _entry("back-b")])],
                )
            ],
            created_at="2026-01-01T00:00:00+00:00",
            updated_at="2026-01-01T00:00:00+00:00",
        )

    def test_replaces_exercise_and_keeps_prescription(self):
        plan = self._plan()
        engine = SubstitutionEngine(_catalog())

        replacement = engine.substitute_in_plan(plan, 1, 0, 0, [])

        workout = plan.weeks[0].workouts[0]
        self.assertEqual(replacement.id, "back-c")
        self.assertEqual(workout.exercise_ids(), ["back-c", "back-b"])
        self.assertEqual(workout.exercises[0].sets.reps_range, RepRange(8, 12))
        self.assertNotEqual(plan.updated_at, "2026-01-01T00:00:00+00:00")
        self.assertEqual(engine.history.recent((1, "monday", 0)), ["back-c"])

    def test_out_of_range_returns_none(self):
        plan = self._plan()
        engine = SubstitutionEngine(_catalog())
        self.assertIsNone(engine.substitute_in_plan(plan, 2, 0, 0, []))
        self.assertIsNone(engine.substitute_in_plan(plan, 1, 3, 0, []))
        self.assertIsNone(engine.substitute_in_plan(plan, 1, 0, 9, []))


if __name__ == "__main__":
    unittest.main()
