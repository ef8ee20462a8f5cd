"""
Configuration loading (config.yaml) with built-in defaults.
"""

import copy
import os

import yaml


DEFAULT_CONFIG = {
    "program": {
        "weeks": 4,
        "deload_min_weeks": 4,
        "slots_per_day": {
            "beginner": 4,
            "intermediate": 6,
            "advanced": 6,
        },
    },
    "substitution": {
        "history_size": 3,
        "max_slots": 256,
    },
    "nutrition": {
        "macro_split": {"protein": 30, "carbs": 40, "fat": 30},
    },
    "catalog": {
        "path": "data/exercises.yaml",
    },
    "storage": {
        "db_path": "data/fitcoach.db",
    },
    "assistant": {
        "api_key_env": "ANTHROPIC_API_KEY",
        "model": "claude-sonnet-4-5",
        "max_tokens": 1500,
        "timeout": 60,
        "max_history": 20,
    },
}


def _merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path="config.yaml"):
    """
    Load configuration from YAML, filling anything missing from DEFAULT_CONFIG.

    A missing file yields the defaults.
    """
    if not config_path or not os.path.exists(config_path):
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"{config_path} must contain a mapping at the top level")

    return _merge(DEFAULT_CONFIG, loaded)
