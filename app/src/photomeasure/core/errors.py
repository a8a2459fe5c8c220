from __future__ import annotations

from enum import Enum


class PhotoMeasureError(Exception):
    """Base class for recoverable engine errors."""


class InvalidPointError(PhotoMeasureError, ValueError):
    """A coordinate was NaN or infinite."""


class ConfigError(PhotoMeasureError):
    """Engine configuration could not be read or written."""


class CalibrationRejection(Enum):
    NOT_READY = "not_ready"
    NON_POSITIVE_LENGTH = "non_positive_length"
    REFERENCE_TOO_SHORT = "reference_too_short"
    INVALID_POINT = "invalid_point"


class PathRejection(Enum):
    NOT_CAPTURING = "not_capturing"
    TOO_FEW_POINTS = "too_few_points"
    DEGENERATE_AREA = "degenerate_area"
    SELF_INTERSECTING = "self_intersecting"
    ZERO_LENGTH = "zero_length"
    INVALID_POINT = "invalid_point"


class CalibrationError(PhotoMeasureError):
    def __init__(self, reason: CalibrationRejection, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


class PathError(PhotoMeasureError):
    def __init__(self, reason: PathRejection, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)
