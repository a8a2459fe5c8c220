from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...core.geometry import polygon_area, polygon_perimeter, polyline_length
from ...core.model import Calibration, Confidence, Mask, MaskType, as_points
from ..calibration.calibrate import calibration_statistics, confidence_level

logger = logging.getLogger(__name__)


class Provenance(str, Enum):
    GLOBAL = "global"
    MASK_SPECIFIC = "mask_specific"
    UNCALIBRATED = "uncalibrated"


@dataclass(frozen=True)
class MaskMetrics:
    """Pixel measures are always set; metric ones are None when uncalibrated."""

    mask_id: str
    area_px: float
    length_px: float
    provenance: Provenance
    confidence: Optional[Confidence] = None
    area_m2: Optional[float] = None
    perimeter_m: Optional[float] = None
    length_m: Optional[float] = None
    band_area_m2: Optional[float] = None

    @property
    def calibrated(self) -> bool:
        return self.provenance is not Provenance.UNCALIBRATED


def _global_confidence(calibration: Calibration) -> Confidence:
    stats = calibration_statistics(calibration.samples)
    return confidence_level(stats.stdev_pct if stats else None)


def _bbox_long_side(points) -> float:
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return max(max(xs) - min(xs), max(ys) - min(ys)) if points else 0.0


def _from_scale(mask: Mask, area_px: float, length_px: float, ppm: float,
                provenance: Provenance, confidence: Confidence) -> MaskMetrics:
    if mask.type is MaskType.AREA:
        return MaskMetrics(mask.id, area_px, length_px, provenance, confidence,
                           area_m2=area_px / (ppm * ppm), perimeter_m=length_px / ppm)
    length_m = length_px / ppm
    if mask.type is MaskType.LINEAR:
        return MaskMetrics(mask.id, area_px, length_px, provenance, confidence, length_m=length_m)
    band = mask.band_height_m or 0.0
    return MaskMetrics(mask.id, area_px, length_px, provenance, confidence,
                       perimeter_m=length_m, length_m=length_m, band_area_m2=length_m * band)


def _from_override(mask: Mask, area_px: float, length_px: float) -> Optional[MaskMetrics]:
    cc = mask.custom_calibration
    prov = Provenance.MASK_SPECIFIC
    length = cc.estimated_length_m
    if mask.type is MaskType.AREA:
        if cc.estimated_width_m is not None:
            width = cc.estimated_width_m
            return MaskMetrics(mask.id, area_px, length_px, prov, cc.confidence,
                               area_m2=length * width, perimeter_m=2 * (length + width))
        # length only: it spans the long side of the shape
        long_side = _bbox_long_side(mask.points)
        if long_side <= 0:
            logger.debug("mask %s: custom length on a zero-size shape, using global scale", mask.id)
            return None
        return _from_scale(mask, area_px, length_px, long_side / length, prov, cc.confidence)
    if mask.type is MaskType.LINEAR:
        return MaskMetrics(mask.id, area_px, length_px, prov, cc.confidence, length_m=length)
    band = mask.band_height_m or 0.0
    return MaskMetrics(mask.id, area_px, length_px, prov, cc.confidence,
                       perimeter_m=length, length_m=length, band_area_m2=length * band)


def compute_metrics(mask: Mask, calibration: Optional[Calibration]) -> MaskMetrics:
    """Real-world measures for one mask.

    A per-mask custom calibration wins over the global scale. With neither,
    only pixel measures are filled in.
    """
    pts = as_points(mask.points)
    if mask.type is MaskType.AREA:
        area_px = polygon_area(pts)
        length_px = polygon_perimeter(pts)
    else:
        area_px = 0.0
        length_px = polyline_length(pts)

    if mask.custom_calibration is not None:
        metrics = _from_override(mask, area_px, length_px)
        if metrics is not None:
            return metrics

    if calibration is not None and calibration.is_calibrated:
        return _from_scale(mask, area_px, length_px, calibration.pixels_per_meter,
                           Provenance.GLOBAL, _global_confidence(calibration))

    return MaskMetrics(mask.id, area_px, length_px, Provenance.UNCALIBRATED)
