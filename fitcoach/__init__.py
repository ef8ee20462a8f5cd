"""
Coaching engine: energy/macro targets, rule-based program generation, and
exercise substitution over a local exercise catalog.
"""

__version__ = "0.1.0"
