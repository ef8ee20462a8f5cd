"""
Single-slot exercise substitution with anti-repetition memory.
"""

import logging
from collections import OrderedDict, deque
from datetime import datetime, timezone

from fitcoach.exercise_selector import ExerciseSelector


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 3
DEFAULT_MAX_SLOTS = 256


def make_slot_key(week_number, day_label, position):
    """Composite key addressing one exercise position in a plan."""
    return (int(week_number), str(day_label).strip().lower(), int(position))


class SubstitutionHistory:
    """
    Recently substituted exercise ids per slot for one editing session.

    Each slot keeps at most `history_size` ids (oldest evicted first). The
    number of tracked slots is bounded too: the least recently touched slot
    is dropped once `max_slots` is exceeded. A history belongs to a single
    plan; it binds to the first plan id it is used with.
    """

    def __init__(self, plan_id=None, history_size=DEFAULT_HISTORY_SIZE, max_slots=DEFAULT_MAX_SLOTS):
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self.plan_id = plan_id
        self.history_size = history_size
        self.max_slots = max_slots
        self._slots = OrderedDict()

    def __len__(self):
        return len(self._slots)

    def __contains__(self, slot_key):
        return slot_key in self._slots

    def bind(self, plan_id):
        if self.plan_id is None:
            self.plan_id = plan_id
        elif plan_id is not None and plan_id != self.plan_id:
            raise ValueError(f"Substitution history belongs to plan {self.plan_id}, not {plan_id}")

    def recent(self, slot_key):
        """Ids recorded for the slot, oldest first (empty if the slot was never used)."""
        entries = self._slots.get(slot_key)
        return list(entries) if entries else []

    def record(self, slot_key, exercise_id):
        entries = self._slots.get(slot_key)
        if entries is None:
            entries = deque(maxlen=self.history_size)
            self._slots[slot_key] = entries
        entries.append(exercise_id)
        self._slots.move_to_end(slot_key)
        while len(self._slots) > self.max_slots:
            evicted, _ = self._slots.popitem(last=False)
            logger.debug("Evicted substitution history for slot %s", evicted)

    def clear(self, slot_key=None):
        if slot_key is None:
            self._slots.clear()
        else:
            self._slots.pop(slot_key, None)

    def to_dict(self):
        return {
            "plan_id": self.plan_id,
            "history_size": self.history_size,
            "slots": [
                {"slot_key": list(key), "exercise_ids": list(ids)}
                for key, ids in self._slots.items()
            ],
        }

    @classmethod
    def from_dict(cls, data, max_slots=DEFAULT_MAX_SLOTS):
        history = cls(
            plan_id=data.get("plan_id"),
            history_size=int(data.get("history_size") or DEFAULT_HISTORY_SIZE),
            max_slots=max_slots,
        )
        for entry in data.get("slots") or []:
            key = tuple(entry["slot_key"])
            for exercise_id in entry.get("exercise_ids") or []:
                history.record(key, exercise_id)
        return history


class SubstitutionEngine:
    """
    Replaces one exercise at a time for an editing session.

    Construct one engine per open plan; the engine owns (or is handed) the
    session's SubstitutionHistory.
    """

    def __init__(self, catalog, history=None, config=None):
        self.catalog = catalog
        self.selector = ExerciseSelector(catalog)
        settings = (config or {}).get("substitution") or {}
        self.history = history if history is not None else SubstitutionHistory(
            history_size=int(settings.get("history_size", DEFAULT_HISTORY_SIZE)),
            max_slots=int(settings.get("max_slots", DEFAULT_MAX_SLOTS)),
        )

    def substitute(self, exercise_id, plan_id, equipment, used_in_current_day, slot_key,
                   history=None, difficulty_ceiling=None):
        """
        Find a replacement for `exercise_id` in the slot `slot_key`.

        Excludes the current exercise, everything else already in the day,
        and the slot's recent substitutions. Returns the replacement
        ExerciseCatalogItem, or None when no valid candidate exists.

        Raises:
            ValueError: if the history is already bound to a different plan.
                This is caller misuse, not a missing substitute.
        """
        history = history if history is not None else self.history
        history.bind(plan_id)

        current = self.catalog.get_by_id(exercise_id)
        if current is None:
            logger.warning("Cannot substitute unknown exercise %r", exercise_id)
            return None

        excluded = set(used_in_current_day or ()) | {exercise_id} | set(history.recent(slot_key))
        replacement = self.selector.select(
            current.body_part,
            equipment,
            difficulty_ceiling or current.difficulty,
            exclude_ids=excluded,
            category=current.category,
        )
        if replacement is None:
            logger.info("No substitute for %s (%s) in slot %s", current.name, current.body_part, slot_key)
            return None

        history.record(slot_key, replacement.id)
        logger.info("Substituted %s with %s in slot %s", current.name, replacement.name, slot_key)
        return replacement

    def substitute_in_plan(self, plan, week_number, day_index, exercise_index, equipment, history=None):
        """
        Substitute one exercise inside `plan` in place.

        The prescription is kept; only the exercise id changes. Returns the
        replacement item, or None if the slot is out of range or no
        substitute exists.
        """
        week = plan.get_week(week_number)
        if week is None or not 0 <= day_index < len(week.workouts):
            return None
        workout = week.workouts[day_index]
        if not 0 <= exercise_index < len(workout.exercises):
            return None

        entry = workout.exercises[exercise_index]
        used = [other for i, other in enumerate(workout.exercise_ids()) if i != exercise_index]
        slot_key = make_slot_key(week_number, workout.day_label, exercise_index)

        replacement = self.substitute(entry.exercise_id, plan.id, equipment, used, slot_key, history=history)
        if replacement is None:
            return None

        entry.exercise_id = replacement.id
        plan.updated_at = datetime.now(timezone.utc).isoformat()
        return replacement
