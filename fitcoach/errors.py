"""
Exception taxonomy for the coaching engine.
"""


class CoachEngineError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(CoachEngineError):
    """Profile input that cannot be processed as given."""


class MissingBiometricData(ValidationError):
    """A required biometric field is absent or not positive."""

    def __init__(self, field, value=None):
        self.field = field
        self.value = value
        if value is None:
            message = f"Missing biometric data: {field} is required."
        else:
            message = f"Invalid biometric data: {field}={value!r} must be positive."
        super().__init__(message)


class NoScheduledDaysError(ValidationError):
    def __init__(self):
        super().__init__("Schedule has no training days; select at least one day.")


class NoGoalsError(ValidationError):
    def __init__(self):
        super().__init__("Profile has no goals; add at least one goal.")


class InvalidMacroSplit(ValidationError):
    def __init__(self, split, reason):
        self.split = split
        super().__init__(f"Invalid macro split {split!r}: {reason}")


class CatalogEmptyError(CoachEngineError):
    """The exercise catalog produced nothing usable (not loaded or wrong equipment data)."""

    def __init__(self, body_part=None):
        self.body_part = body_part
        super().__init__(
            "Exercise catalog returned no usable exercises"
            + (f" for '{body_part}'" if body_part else "")
            + ". Check that the catalog is loaded and equipment settings are correct."
        )


class PatchRejected(CoachEngineError):
    """A structurally valid plan patch that cannot be applied to the plan."""

    def __init__(self, code, message):
        self.code = code
        super().__init__(message)
