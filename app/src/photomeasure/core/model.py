from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Tuple


class Point2D(NamedTuple):
    x: float
    y: float


def is_finite_point(p: Point2D) -> bool:
    return math.isfinite(p.x) and math.isfinite(p.y)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class PhotoSpace:
    """Viewport transform from image pixels to screen pixels.

    Replaced wholesale on every zoom/pan; never mutated.
    """

    scale: float
    pan_x: float
    pan_y: float
    image_width: float
    image_height: float
    device_pixel_ratio: float = 1.0

    def __post_init__(self) -> None:
        if not (self.scale > 0 and math.isfinite(self.scale)):
            raise ValueError(f"PhotoSpace scale must be a positive number, got {self.scale}")
        if self.image_width <= 0 or self.image_height <= 0:
            raise ValueError(
                f"Invalid image bounds {self.image_width}x{self.image_height}"
            )
        if self.device_pixel_ratio <= 0:
            raise ValueError("device_pixel_ratio must be positive")


class VertexKind(str, Enum):
    CORNER = "corner"
    SMOOTH = "smooth"


@dataclass(frozen=True)
class MaskPoint:
    """Image-space vertex. Smooth vertices carry two bezier handle points."""

    x: float
    y: float
    kind: VertexKind = VertexKind.CORNER
    h1: Optional[Point2D] = None
    h2: Optional[Point2D] = None

    def __post_init__(self) -> None:
        if self.kind is VertexKind.CORNER and (self.h1 is not None or self.h2 is not None):
            raise ValueError("corner vertices carry no handles")
        if self.kind is VertexKind.SMOOTH and (self.h1 is None or self.h2 is None):
            raise ValueError("smooth vertices need both handles")

    @property
    def point(self) -> Point2D:
        return Point2D(self.x, self.y)

    @classmethod
    def corner(cls, p: Point2D) -> "MaskPoint":
        return cls(p.x, p.y)


def as_points(points: Iterable) -> List[Point2D]:
    """Strip vertex metadata, keeping only coordinates."""
    return [Point2D(p.x, p.y) for p in points]


def as_mask_points(points: Iterable) -> Tuple[MaskPoint, ...]:
    return tuple(MaskPoint(p.x, p.y) for p in points)


@dataclass(frozen=True)
class CalibrationSample:
    id: str
    a: Point2D
    b: Point2D
    meters: float
    pixels_per_meter: float
    created_at: str = ""

    @property
    def pixel_length(self) -> float:
        return math.hypot(self.b.x - self.a.x, self.b.y - self.a.y)


@dataclass(frozen=True)
class Calibration:
    """Active scale plus its history. ``pixels_per_meter`` is None when uncalibrated."""

    pixels_per_meter: Optional[float] = None
    samples: Tuple[CalibrationSample, ...] = ()

    @property
    def is_calibrated(self) -> bool:
        return self.pixels_per_meter is not None and self.pixels_per_meter > 0


class MaskType(str, Enum):
    AREA = "area"
    LINEAR = "linear"
    WATERLINE_BAND = "waterline_band"


MIN_POINTS = {
    MaskType.AREA: 3,
    MaskType.LINEAR: 2,
    MaskType.WATERLINE_BAND: 2,
}


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CalibrationMethod(str, Enum):
    REFERENCE = "reference"
    ESTIMATED = "estimated"
    AUTO = "auto"


@dataclass(frozen=True)
class CustomCalibration:
    """Manually entered real dimensions for one mask, overriding the global scale."""

    estimated_length_m: float
    estimated_width_m: Optional[float] = None
    method: CalibrationMethod = CalibrationMethod.ESTIMATED
    confidence: Optional[Confidence] = None

    def __post_init__(self) -> None:
        if not self.estimated_length_m > 0:
            raise ValueError("estimated_length_m must be greater than zero")
        if self.estimated_width_m is not None and not self.estimated_width_m > 0:
            raise ValueError("estimated_width_m must be greater than zero")
        if self.confidence is None:
            # reference measurements are trusted, automatic guesses are not
            level = {
                CalibrationMethod.REFERENCE: Confidence.HIGH,
                CalibrationMethod.ESTIMATED: Confidence.MEDIUM,
                CalibrationMethod.AUTO: Confidence.LOW,
            }[self.method]
            object.__setattr__(self, "confidence", level)


@dataclass(frozen=True)
class Mask:
    id: str
    type: MaskType
    points: Tuple[MaskPoint, ...]
    band_height_m: Optional[float] = None
    material_id: Optional[str] = None
    custom_calibration: Optional[CustomCalibration] = None
    name: str = ""
    metadata: dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_closed(self) -> bool:
        return self.type is MaskType.AREA
