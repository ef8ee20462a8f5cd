import os
import sqlite3
import tempfile
import unittest

from fitcoach.models import (
    ExercisePrescription,
    GeneratedBy,
    GoalType,
    PartialGenerationWarning,
    PlanWeek,
    Profile,
    RepRange,
    SetPrescription,
    Workout,
    WorkoutPlan,
)
from fitcoach.plan_store import PlanNotFoundError, PlanStore
from fitcoach.substitution import SubstitutionHistory, make_slot_key


def _plan(plan_id="plan-1", updated_at="2026-01-01T00:00:00+00:00"):
    return WorkoutPlan(
        id=plan_id,
        name="Strength Intermediate Plan",
        generated_by=GeneratedBy.COACH,
        weeks=[
            PlanWeek(
                week_number=1,
                workouts=[
                    Workout(
                        day_label="Monday",
                        exercises=[
                            ExercisePrescription(
                                "squat",
                                SetPrescription(count=4, reps_range=RepRange(3, 6), weight_kg=100.0, rpe=8.0),
                            )
                        ],
                        notes="Full body",
                    )
                ],
            )
        ],
        created_at="2026-01-01T00:00:00+00:00",
        updated_at=updated_at,
        goal_type=GoalType.STRENGTH,
        warnings=[
            PartialGenerationWarning(
                week_number=1, day_label="Monday", slot_index=1, body_part="chest", message="No chest exercise."
            )
        ],
        nutrition_targets={"calories": 2500, "protein_g": 188, "carbs_g": 250, "fat_g": 83},
    )


class PlanStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.store = PlanStore(os.path.join(self.tmpdir.name, "nested", "fitcoach.db"))
        self.store.init_schema()

    def tearDown(self):
        self.store.close()
        self.tmpdir.cleanup()

    def test_save_and_get_round_trip(self):
        plan = _plan()
        self.store.save(plan)

        loaded = self.store.get("plan-1")
        self.assertEqual(loaded.to_dict(), plan.to_dict())
        self.assertEqual(loaded.goal_type, GoalType.STRENGTH)
        self.assertEqual(loaded.weeks[0].workouts[0].exercises[0].sets.reps_range, RepRange(3, 6))

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.store.get("missing"))

    def test_duplicate_save_raises(self):
        self.store.save(_plan())
        with self.assertRaises(sqlite3.IntegrityError):
            self.store.save(_plan())

    def test_update_replaces_document(self):
        plan = _plan()
        self.store.save(plan)

        plan.weeks[0].workouts[0].exercises[0].exercise_id = "front-squat"
        self.store.update(plan)

        loaded = self.store.get("plan-1")
        self.assertEqual(loaded.weeks[0].workouts[0].exercise_ids(), ["front-squat"])
        self.assertNotEqual(loaded.updated_at, "2026-01-01T00:00:00+00:00")

    def test_update_unknown_plan_raises(self):
        with self.assertRaises(PlanNotFoundError):
            self.store.update(_plan("never-saved"))

    def test_list_plans_most_recent_first(self):
        self.store.save(_plan("old", updated_at="2026-01-01T00:00:00+00:00"))
        self.store.save(_plan("new", updated_at="2026-02-01T00:00:00+00:00"))

        ids = [row["id"] for row in self.store.list_plans()]
        self.assertEqual(ids, ["new", "old"])

    def test_delete(self):
        self.store.save(_plan())
        self.assertTrue(self.store.delete("plan-1"))
        self.assertFalse(self.store.delete("plan-1"))
        self.assertIsNone(self.store.get("plan-1"))

    def test_profile_upsert(self):
        profile = Profile.from_dict(
            {
                "id": "me",
                "age": 30,
                "sex": "female",
                "height_cm": 165,
                "weight_kg": 60,
                "goals": [{"id": "g1", "type": "endurance"}],
                "equipment": ["Dumbbell"],
                "schedule": ["tuesday", "thursday"],
            }
        )
        self.store.save_profile(profile)
        profile.weight_kg = 58
        self.store.save_profile(profile)

        loaded = self.store.get_profile("me")
        self.assertEqual(loaded.to_dict(), profile.to_dict())
        self.assertEqual(loaded.scheduled_days(), ["tuesday", "thursday"])
        self.assertIsNone(self.store.get_profile("someone-else"))

    def test_substitution_history_persists_between_sessions(self):
        slot = make_slot_key(1, "Monday", 0)
        history = self.store.get_history("plan-1")
        self.assertEqual(history.plan_id, "plan-1")
        self.assertEqual(len(history), 0)

        history.record(slot, "rdl")
        history.record(slot, "good-morning")
        self.store.save_history(history)
        history.record(slot, "hip-thrust")
        self.store.save_history(history)

        loaded = self.store.get_history("plan-1")
        self.assertEqual(loaded.recent(slot), ["rdl", "good-morning", "hip-thrust"])
        self.assertEqual(len(self.store.get_history("plan-2")), 0)

    def test_history_size_override_applies_to_stored_history(self):
        slot = make_slot_key(2, "friday", 1)
        history = SubstitutionHistory(plan_id="plan-1", history_size=3)
        for exercise_id in ("a", "b", "c"):
            history.record(slot, exercise_id)
        self.store.save_history(history)

        loaded = self.store.get_history("plan-1", history_size=2)
        self.assertEqual(loaded.history_size, 2)
        self.assertEqual(loaded.recent(slot), ["b", "c"])

    def test_unbound_history_cannot_be_saved(self):
        with self.assertRaises(ValueError):
            self.store.save_history(SubstitutionHistory())

    def test_delete_removes_substitution_history(self):
        self.store.save(_plan())
        history = self.store.get_history("plan-1")
        history.record(make_slot_key(1, "monday", 0), "rdl")
        self.store.save_history(history)

        self.store.delete("plan-1")
        self.assertEqual(len(self.store.get_history("plan-1")), 0)


if __name__ == "__main__":
    unittest.main()
