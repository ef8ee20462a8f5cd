"""
Metric/imperial conversion for display.

The engine stores and computes in kg and cm only; these helpers exist for
presentation and input parsing at the edges.
"""

import math


CM_PER_INCH = 2.54
LBS_PER_KG = 2.20462262

METRIC = "metric"
IMPERIAL = "imperial"


def cm_to_inches(cm):
    return cm / CM_PER_INCH


def inches_to_cm(inches):
    return inches * CM_PER_INCH


def cm_to_ft_in(cm):
    total_inches = cm_to_inches(cm)
    feet = int(math.floor(total_inches / 12))
    inches = int(math.floor(total_inches % 12 + 0.5))
    if inches == 12:
        feet, inches = feet + 1, 0
    return feet, inches


def ft_in_to_cm(feet, inches):
    return inches_to_cm(feet * 12 + inches)


def kg_to_lbs(kg):
    return kg * LBS_PER_KG


def lbs_to_kg(lbs):
    return lbs / LBS_PER_KG


def format_height(cm, unit_system=METRIC):
    if unit_system == IMPERIAL:
        feet, inches = cm_to_ft_in(cm)
        return f"{feet}'{inches}\""
    return f"{cm:.0f} cm"


def format_weight(kg, unit_system=METRIC):
    if unit_system == IMPERIAL:
        return f"{kg_to_lbs(kg):.1f} lbs"
    return f"{kg:.1f} kg"


def parse_imperial_height(feet, inches):
    """Parse feet/inches strings into cm; None if invalid."""
    try:
        ft = int(str(feet).strip())
        inch = int(str(inches).strip())
    except (TypeError, ValueError):
        return None
    if ft < 0 or inch < 0 or inch >= 12:
        return None
    return ft_in_to_cm(ft, inch)


def parse_imperial_weight(lbs):
    """Parse a pounds string into kg; None if invalid or non-positive."""
    try:
        weight = float(str(lbs).strip())
    except (TypeError, ValueError):
        return None
    if weight <= 0 or math.isnan(weight):
        return None
    return lbs_to_kg(weight)
