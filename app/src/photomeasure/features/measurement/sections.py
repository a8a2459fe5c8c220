from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ...core.config import EngineConfig
from ...core.geometry import OffsetDirection, offset_polygon, validate_polygon
from ...core.model import Calibration, Mask, MaskType, Point2D, as_mask_points, as_points, new_id

logger = logging.getLogger(__name__)


class SectionType(str, Enum):
    WATERLINE = "waterline"
    COPING = "coping"
    PAVING = "paving"


class SectionFailure(str, Enum):
    WIDTH_OUT_OF_RANGE = "width_out_of_range"
    OFFSET_COLLAPSED = "offset_collapsed"
    INVALID_POLYGON = "invalid_polygon"


SECTION_ORDER: Tuple[SectionType, ...] = (SectionType.WATERLINE, SectionType.COPING, SectionType.PAVING)

# Bases to try for each section, most specific first; "interior" is always last.
_BASE_CHAIN: Dict[SectionType, Tuple[SectionType, ...]] = {
    SectionType.WATERLINE: (),
    SectionType.COPING: (SectionType.WATERLINE,),
    SectionType.PAVING: (SectionType.COPING, SectionType.WATERLINE),
}

_DIRECTIONS: Dict[SectionType, OffsetDirection] = {
    SectionType.WATERLINE: OffsetDirection.INWARD,
    SectionType.COPING: OffsetDirection.OUTWARD,
    SectionType.PAVING: OffsetDirection.OUTWARD,
}


@dataclass(frozen=True)
class SectionResult:
    section: SectionType
    ok: bool
    mask: Optional[Mask] = None
    reason: Optional[SectionFailure] = None
    base: str = "interior"
    width_px: float = 0.0


def mm_to_px(width_mm: float, pixels_per_meter: float) -> float:
    return (width_mm / 1000.0) * pixels_per_meter


def has_sections(masks: Sequence[Mask], parent_id: str) -> bool:
    return any(m.metadata.get("parent_id") == parent_id for m in masks)


def _resolve_scale(calibration: Optional[Calibration], cfg: EngineConfig) -> float:
    if calibration is not None and calibration.is_calibrated:
        return calibration.pixels_per_meter
    logger.warning("no calibration; sections use fallback %.1f px/m and will be approximate",
                   cfg.fallback_pixels_per_meter)
    return cfg.fallback_pixels_per_meter


def generate_sections(interior: Sequence, widths_mm: Mapping[SectionType, float],
                      calibration: Optional[Calibration],
                      config: Optional[EngineConfig] = None,
                      parent_id: Optional[str] = None,
                      ) -> Tuple[SectionResult, ...]:
    """Build waterline, coping and paving polygons around a pool interior.

    Only sections present in ``widths_mm`` are attempted. Waterline is offset
    inward from the interior; coping outward from the waterline, or the
    interior; paving outward from the coping, then waterline, then interior.
    A failed section is reported and skipped without affecting the others.
    """
    cfg = config or EngineConfig()
    ppm = _resolve_scale(calibration, cfg)
    interior_pts: List[Point2D] = as_points(interior)
    built: Dict[SectionType, List[Point2D]] = {}
    results: List[SectionResult] = []

    for section in SECTION_ORDER:
        if section not in widths_mm:
            continue
        width = widths_mm[section]
        lo, hi = cfg.section_width_ranges_mm[section.value]
        base_name = "interior"
        base_pts = interior_pts
        for candidate in _BASE_CHAIN[section]:
            if candidate in built:
                base_name = candidate.value
                base_pts = built[candidate]
                break

        if not (lo <= width <= hi):
            logger.warning("skipping %s: width %gmm outside %g-%gmm", section.value, width, lo, hi)
            results.append(SectionResult(section, False, reason=SectionFailure.WIDTH_OUT_OF_RANGE,
                                         base=base_name))
            continue

        width_px = mm_to_px(width, ppm)
        pts = offset_polygon(base_pts, width_px, _DIRECTIONS[section])
        if len(pts) < 3:
            logger.warning("skipping %s: %gmm offset from %s collapses", section.value, width, base_name)
            results.append(SectionResult(section, False, reason=SectionFailure.OFFSET_COLLAPSED,
                                         base=base_name, width_px=width_px))
            continue
        defect = validate_polygon(pts, cfg.min_polygon_area_px2)
        if defect is not None:
            logger.warning("skipping %s: %s", section.value, defect.value)
            results.append(SectionResult(section, False, reason=SectionFailure.INVALID_POLYGON,
                                         base=base_name, width_px=width_px))
            continue

        built[section] = pts
        mask = Mask(
            id=new_id(section.value),
            type=MaskType.AREA,
            points=as_mask_points(pts),
            name=section.value.capitalize(),
            metadata={"section": section.value, "parent_id": parent_id,
                      "base": base_name, "width_mm": width},
        )
        logger.info("%s section built from %s (%gmm = %.1fpx)", section.value, base_name, width, width_px)
        results.append(SectionResult(section, True, mask=mask, base=base_name, width_px=width_px))

    return tuple(results)
