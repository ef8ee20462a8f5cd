import unittest

from fitcoach.catalog import ExerciseCatalog
from fitcoach.exercise_selector import ExerciseSelector, difficulty_tiers, sort_candidates
from fitcoach.models import ExerciseCatalogItem, ExperienceLevel


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


class DifficultyTierTests(unittest.TestCase):
    def test_tier_order(self):
        self.assertEqual(
            difficulty_tiers("advanced"),
            [ExperienceLevel.ADVANCED, ExperienceLevel.INTERMEDIATE, ExperienceLevel.BEGINNER],
        )
        self.assertEqual(
            difficulty_tiers("intermediate"),
            [ExperienceLevel.INTERMEDIATE, ExperienceLevel.BEGINNER, ExperienceLevel.ADVANCED],
        )
        self.assertEqual(
            difficulty_tiers(ExperienceLevel.BEGINNER),
            [ExperienceLevel.BEGINNER, ExperienceLevel.INTERMEDIATE, ExperienceLevel.ADVANCED],
        )

    def test_sort_candidates_prefers_category_then_id(self):
        items = [
            _item("b-iso", "chest", category="isolation"),
            _item("c-comp", "chest"),
            _item("a-iso", "chest", category="isolation"),
        ]
        self.assertEqual([i.id for i in sort_candidates(items, "compound")], ["c-comp", "a-iso", "b-iso"])
        self.assertEqual([i.id for i in sort_candidates(items)], ["a-iso", "b-iso", "c-comp"])


class ExerciseSelectorTests(unittest.TestCase):
    def setUp(self):
        self.catalog = ExerciseCatalog(
            [
                _item("barbell-bench-press", "chest", equipment=("barbell", "bench"), difficulty="intermediate"),
                _item("cable-fly", "chest", equipment=("cable",), category="isolation"),
                _item("push-up", "chest"),
                _item("archer-push-up", "chest", difficulty="advanced"),
                _item("barbell-row", "back", equipment=("barbell",)),
                _item("deadlift", "back", equipment=("barbell",), difficulty="advanced"),
            ]
        )
        self.selector = ExerciseSelector(self.catalog)

    def test_never_returns_unavailable_equipment(self):
        choice = self.selector.select("chest", [], "intermediate")
        self.assertIsNotNone(choice)
        self.assertIn(choice.id, {"push-up", "archer-push-up"})

    def test_prefers_ceiling_tier(self):
        choice = self.selector.select("chest", ["barbell", "bench"], "intermediate")
        self.assertEqual(choice.id, "barbell-bench-press")

    def test_relaxes_downward_before_upward(self):
        choice = self.selector.select("chest", [], "intermediate")
        self.assertEqual(choice.id, "push-up")

    def test_relaxes_upward_when_nothing_easier(self):
        choice = self.selector.select("chest", [], "beginner", exclude_ids={"push-up"})
        self.assertEqual(choice.id, "archer-push-up")

    def test_returns_none_when_only_equipment_exercises_exist(self):
        self.assertIsNone(self.selector.select("back", [], "advanced"))

    def test_exclusions_are_respected(self):
        choice = self.selector.select("chest", [], "advanced", exclude_ids={"archer-push-up", "push-up"})
        self.assertIsNone(choice)

    def test_category_preference_within_tier(self):
        choice = self.selector.select("chest", ["cable"], "beginner", category="isolation")
        self.assertEqual(choice.id, "cable-fly")
        choice = self.selector.select("chest", ["cable"], "beginner", category="compound")
        self.assertEqual(choice.id, "push-up")

    def test_equipment_aliases(self):
        choice = self.selector.select("back", ["Barbells"], "beginner")
        self.assertEqual(choice.id, "barbell-row")

    def test_unknown_ceiling_is_treated_as_beginner(self):
        choice = self.selector.select("back", ["barbell"], "elite")
        self.assertEqual(choice.id, "barbell-row")

    def test_selection_is_deterministic(self):
        picks = {self.selector.select("chest", ["cable"], "beginner").id for _ in range(5)}
        self.assertEqual(len(picks), 1)


if __name__ == "__main__":
    unittest.main()
