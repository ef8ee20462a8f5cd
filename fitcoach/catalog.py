"""
In-memory exercise catalog.

Implements the read-only query interface the engine consumes
(get_by_body_part, get_by_equipment, search, get_by_id) over an already
materialized list of ExerciseCatalogItem. Production storage can supply its
own object with the same four methods.
"""

import json
import logging
import os
import re
import unicodedata

import yaml

from fitcoach.models import ExerciseCatalogItem


logger = logging.getLogger(__name__)

BODYWEIGHT = "bodyweight"

# ---------------------------------------------------------------------------
# Equipment names as users type them -> names used in the catalog
# ---------------------------------------------------------------------------
EQUIPMENT_ALIASES = {
    "body only": BODYWEIGHT,
    "body weight": BODYWEIGHT,
    "none": BODYWEIGHT,
    "dumbbells": "dumbbell",
    "db": "dumbbell",
    "kettlebells": "kettlebell",
    "kb": "kettlebell",
    "barbells": "barbell",
    "cable machine": "cable",
    "cables": "cable",
    "resistance bands": "bands",
    "resistance band": "bands",
    "band": "bands",
    "pull up bar": "pull-up bar",
    "pullup bar": "pull-up bar",
    "chin up bar": "pull-up bar",
    "exercise ball": "stability ball",
    "swiss ball": "stability ball",
    "machines": "machine",
}

SEARCH_STRIP_RE = re.compile(r"[^a-z0-9\s\-()\[\]/,]")
SLUG_RE = re.compile(r"[^a-z0-9]+")

SEARCH_LIMIT = 50


def normalize_search_term(term):
    """Lowercase, trim, collapse spaces, drop diacritics and stray punctuation."""
    if not term:
        return ""
    value = re.sub(r"\s+", " ", str(term).lower().strip())
    value = unicodedata.normalize("NFD", value)
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    return SEARCH_STRIP_RE.sub("", value)


def normalize_equipment_name(name):
    value = re.sub(r"\s+", " ", str(name or "").strip().lower())
    return EQUIPMENT_ALIASES.get(value, value)


def normalize_equipment(equipment):
    """Normalize a user's equipment list; bodyweight is always included."""
    normalized = {normalize_equipment_name(item) for item in equipment or [] if str(item or "").strip()}
    normalized.add(BODYWEIGHT)
    return normalized


def is_bodyweight(item):
    return not item.equipment or BODYWEIGHT in {normalize_equipment_name(eq) for eq in item.equipment}


def equipment_compatible(item, available):
    """True when `item` can be done with `available` (an already normalized set)."""
    if is_bodyweight(item):
        return True
    return any(normalize_equipment_name(eq) in available for eq in item.equipment)


def slugify(name):
    return SLUG_RE.sub("-", (name or "").lower()).strip("-")


class ExerciseCatalog:
    """
    Catalog snapshot with the query surface used by the engine.

    Usage:
        catalog = ExerciseCatalog(items)
        catalog.get_by_body_part("chest")
        catalog.search("goblet")
    """

    CUSTOM_PREFIX = "custom-"

    def __init__(self, items=None):
        self._items = {}
        for item in items or []:
            if item.id in self._items:
                logger.warning("Duplicate exercise id %r in catalog; keeping the first entry.", item.id)
                continue
            self._items[item.id] = item

    def __len__(self):
        return len(self._items)

    def __contains__(self, exercise_id):
        return exercise_id in self._items

    def all_items(self):
        """Every item, ordered by id."""
        return [self._items[key] for key in sorted(self._items)]

    def get_by_id(self, exercise_id):
        return self._items.get(exercise_id)

    def get_by_body_part(self, body_part):
        target = (body_part or "").strip().lower()
        return [item for item in self.all_items() if item.body_part == target]

    def get_by_equipment(self, equipment):
        target = normalize_equipment_name(equipment)
        return [
            item
            for item in self.all_items()
            if target in {normalize_equipment_name(eq) for eq in item.equipment}
            or (target == BODYWEIGHT and is_bodyweight(item))
        ]

    def search(self, query, limit=SEARCH_LIMIT):
        """
        Free-text search.

        Pass 1: name prefix, exact body part, or exact equipment match.
        Pass 2 (only when pass 1 is empty): substring of name, body part,
        equipment, or category.
        """
        term = normalize_search_term(query)
        if not term:
            return []

        results = []
        for item in self.all_items():
            name = normalize_search_term(item.name)
            equipment = {normalize_search_term(eq) for eq in item.equipment}
            if name.startswith(term) or normalize_search_term(item.body_part) == term or term in equipment:
                results.append(item)

        if not results:
            for item in self.all_items():
                haystack = [item.name, item.body_part, item.category] + sorted(item.equipment)
                if any(term in normalize_search_term(value) for value in haystack):
                    results.append(item)

        return results[:limit]

    def body_parts(self):
        return sorted({item.body_part for item in self._items.values()})

    def equipment_names(self):
        return sorted({eq for item in self._items.values() for eq in item.equipment})

    def add_custom(self, name, body_part, category="compound", equipment=None, difficulty="beginner",
                   instructions=None):
        """
        Register a user-defined exercise and return it.

        Ids are derived from the name (`custom-<slug>`), suffixed with a
        counter on collision so repeated names stay distinct.
        """
        base_id = f"{self.CUSTOM_PREFIX}{slugify(name)}"
        exercise_id = base_id
        counter = 2
        while exercise_id in self._items:
            exercise_id = f"{base_id}-{counter}"
            counter += 1

        item = ExerciseCatalogItem.from_dict(
            {
                "id": exercise_id,
                "name": name,
                "body_part": body_part,
                "category": category,
                "equipment": list(equipment or [BODYWEIGHT]),
                "difficulty": difficulty,
                "instructions": list(instructions or []),
            }
        )
        self._items[item.id] = item
        return item

    def custom_items(self):
        return [item for item in self.all_items() if item.id.startswith(self.CUSTOM_PREFIX)]


def load_catalog(path):
    """
    Load an ExerciseCatalog from a YAML or JSON file.

    The file holds either a list of exercise dicts or a mapping with an
    `exercises` key.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Exercise catalog not found: {path}")

    with open(path, "r") as f:
        if path.endswith(".json"):
            data = json.load(f)
        else:
            data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("exercises") or []

    items = []
    for entry in data:
        if not entry or not entry.get("id"):
            logger.warning("Skipping catalog entry without id: %r", entry)
            continue
        items.append(ExerciseCatalogItem.from_dict(entry))

    logger.info("Loaded %d exercises from %s", len(items), path)
    return ExerciseCatalog(items)
