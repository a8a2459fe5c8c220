from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ...core.config import EngineConfig
from ...core.errors import CalibrationError, CalibrationRejection, InvalidPointError
from ...core.geometry import distance
from ...core.model import (
    Calibration,
    CalibrationSample,
    Confidence,
    PhotoSpace,
    Point2D,
    is_finite_point,
    new_id,
)
from ..navigation.coord import screen_to_image

logger = logging.getLogger(__name__)

OUTLIER_SIGMA = 2.5


class CalState(str, Enum):
    IDLE = "idle"
    PLACING_A = "placing_a"
    PLACING_B = "placing_b"
    LENGTH_ENTRY = "length_entry"


@dataclass(frozen=True)
class CalibrationSession:
    """Transient record of an in-progress reference measurement."""

    state: CalState = CalState.IDLE
    a: Optional[Point2D] = None
    b: Optional[Point2D] = None
    preview: Optional[Point2D] = None
    entered_meters: Optional[float] = None


def _to_image(point, space: Optional[PhotoSpace]) -> Point2D:
    raw = Point2D(point.x, point.y)
    if not is_finite_point(raw):
        raise InvalidPointError(f"Non-finite calibration point ({raw.x}, {raw.y})")
    p = screen_to_image(raw, space) if space is not None else raw
    if not is_finite_point(p):
        raise InvalidPointError(f"Calibration point maps to ({p.x}, {p.y})")
    return p


def start_calibration() -> CalibrationSession:
    logger.debug("calibration: idle -> placing_a")
    return CalibrationSession(state=CalState.PLACING_A)


def place_point(session: CalibrationSession, point, space: Optional[PhotoSpace] = None) -> CalibrationSession:
    """Store A or B depending on the state. Clicks in other states are ignored.

    ``point`` is in screen pixels when ``space`` is given, image pixels otherwise.
    """
    if session.state not in (CalState.PLACING_A, CalState.PLACING_B):
        return session
    p = _to_image(point, space)
    if session.state is CalState.PLACING_A:
        logger.debug("calibration: A at (%.1f, %.1f)", p.x, p.y)
        return replace(session, state=CalState.PLACING_B, a=p, preview=None)
    logger.debug("calibration: B at (%.1f, %.1f)", p.x, p.y)
    return replace(session, state=CalState.LENGTH_ENTRY, b=p, preview=None)


def update_preview(session: CalibrationSession, point, space: Optional[PhotoSpace] = None) -> CalibrationSession:
    """Rubber-band end point while waiting for B."""
    if session.state is not CalState.PLACING_B:
        return session
    return replace(session, preview=_to_image(point, space))


def adjust_point(session: CalibrationSession, which: str, point,
                 space: Optional[PhotoSpace] = None) -> CalibrationSession:
    if session.state is not CalState.LENGTH_ENTRY:
        return session
    p = _to_image(point, space)
    if which == "a":
        return replace(session, a=p)
    if which == "b":
        return replace(session, b=p)
    raise ValueError(f"Unknown calibration endpoint {which!r}")


def enter_length(session: CalibrationSession, meters: float) -> CalibrationSession:
    if session.state is not CalState.LENGTH_ENTRY:
        raise CalibrationError(CalibrationRejection.NOT_READY, "Length can only be entered after placing both points")
    return replace(session, entered_meters=meters)


def cancel_calibration(session: CalibrationSession) -> CalibrationSession:
    if session.state is not CalState.IDLE:
        logger.debug("calibration: %s -> idle (cancelled)", session.state.value)
    return CalibrationSession()


def commit_calibration(session: CalibrationSession, calibration: Calibration,
                       meters: Optional[float] = None,
                       config: Optional[EngineConfig] = None,
                       sample_id: Optional[str] = None,
                       created_at: Optional[str] = None,
                       ) -> Tuple[CalibrationSession, Calibration, CalibrationSample]:
    """Turn the placed reference into a sample and make it the active scale.

    Raises CalibrationError with the rejection reason; neither the session
    nor the calibration is modified in that case, so the caller stays in
    length entry.
    """
    cfg = config or EngineConfig()
    if session.state is not CalState.LENGTH_ENTRY or session.a is None or session.b is None:
        raise CalibrationError(CalibrationRejection.NOT_READY, "Place both reference points first")
    if meters is None:
        meters = session.entered_meters
    if meters is None or not math.isfinite(meters) or meters <= 0:
        raise CalibrationError(CalibrationRejection.NON_POSITIVE_LENGTH,
                               f"Reference length must be greater than zero, got {meters}")
    if not (is_finite_point(session.a) and is_finite_point(session.b)):
        raise CalibrationError(CalibrationRejection.INVALID_POINT)
    pixel_distance = distance(session.a, session.b)
    if pixel_distance < cfg.min_reference_px:
        raise CalibrationError(
            CalibrationRejection.REFERENCE_TOO_SHORT,
            f"Reference points are {pixel_distance:.1f}px apart; need at least {cfg.min_reference_px:g}px",
        )

    sample = CalibrationSample(
        id=sample_id or new_id("cal"),
        a=session.a,
        b=session.b,
        meters=float(meters),
        pixels_per_meter=pixel_distance / meters,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
    )
    updated = Calibration(pixels_per_meter=sample.pixels_per_meter,
                          samples=calibration.samples + (sample,))
    logger.info("calibration committed: %.3f px/m from %.1fpx / %gm (%d samples)",
                sample.pixels_per_meter, pixel_distance, meters, len(updated.samples))
    return CalibrationSession(), updated, sample


def delete_sample(calibration: Calibration, sample_id: str) -> Calibration:
    """Drop a sample; the active scale falls back to the last remaining one."""
    remaining = tuple(s for s in calibration.samples if s.id != sample_id)
    if len(remaining) == len(calibration.samples):
        raise KeyError(sample_id)
    if not remaining:
        logger.info("last calibration sample deleted; uncalibrated")
        return Calibration()
    return Calibration(pixels_per_meter=remaining[-1].pixels_per_meter, samples=remaining)


@dataclass(frozen=True)
class CalibrationStats:
    mean: float
    stdev: float
    stdev_pct: float
    used: Tuple[CalibrationSample, ...]
    outliers: Tuple[CalibrationSample, ...]

    @property
    def confidence(self) -> Confidence:
        return confidence_level(self.stdev_pct)


def calibration_statistics(samples: Sequence[CalibrationSample]) -> Optional[CalibrationStats]:
    """Mean and spread of sample scales after dropping samples beyond 2.5 sigma.

    Filtering repeats until no sample is dropped. Informational only; the
    active scale is always the latest sample.
    """
    used = tuple(samples)
    if not used:
        return None
    outliers: List[CalibrationSample] = []
    while True:
        values = [s.pixels_per_meter for s in used]
        mean = sum(values) / len(values)
        stdev = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
        kept = tuple(s for s in used if abs(s.pixels_per_meter - mean) <= OUTLIER_SIGMA * stdev)
        if not kept or len(kept) == len(used):
            break
        outliers.extend(s for s in used if s not in kept)
        used = kept
    stdev_pct = (stdev / mean) * 100 if mean > 0 else 0.0
    return CalibrationStats(mean, stdev, stdev_pct, used, tuple(outliers))


def confidence_level(stdev_pct: Optional[float]) -> Confidence:
    if not stdev_pct or stdev_pct < 1.5:
        return Confidence.HIGH
    if stdev_pct <= 3:
        return Confidence.MEDIUM
    return Confidence.LOW


def format_pixels_per_meter(ppm: float) -> str:
    meters_per_pixel = 1 / ppm
    if meters_per_pixel >= 1:
        return f"1px = {meters_per_pixel:.2f}m"
    if meters_per_pixel >= 0.01:
        return f"1px = {meters_per_pixel * 100:.1f}cm"
    return f"1px = {meters_per_pixel * 1000:.1f}mm"


def pixels_to_meters(pixels: float, ppm: float) -> float:
    return pixels / ppm


def square_pixels_to_square_meters(pixel_area: float, ppm: float) -> float:
    return pixel_area / (ppm * ppm)


def meters_to_pixels(meters: float, ppm: float) -> float:
    return meters * ppm


@dataclass(frozen=True)
class EdgeMeasurement:
    """A mask edge whose real length is known."""

    start: Point2D
    end: Point2D
    real_length_m: float

    @property
    def pixels_per_meter(self) -> float:
        return distance(self.start, self.end) / self.real_length_m


def edge_weighted_pixels_per_meter(edges: Sequence[EdgeMeasurement]) -> Optional[float]:
    """Average of per-edge scales weighted by real length; longer edges count more."""
    weighted = 0.0
    total = 0.0
    for edge in edges:
        if edge.real_length_m <= 0:
            continue
        weighted += edge.pixels_per_meter * edge.real_length_m
        total += edge.real_length_m
    if total <= 0:
        return None
    return weighted / total
