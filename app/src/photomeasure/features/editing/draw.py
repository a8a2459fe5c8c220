from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from ...core.config import EngineConfig
from ...core.errors import InvalidPointError, PathError, PathRejection
from ...core.geometry import (
    PolygonDefect,
    distance,
    polyline_length,
    simplify_polygon,
    smooth_freehand,
    validate_polygon,
)
from ...core.model import (
    MIN_POINTS,
    Mask,
    MaskType,
    PhotoSpace,
    Point2D,
    as_mask_points,
    is_finite_point,
    new_id,
)
from ..navigation.coord import image_to_screen, screen_to_image
from .edge_map import EdgeMap
from .snapping import SnapResult, SnapSettings, apply_snapping

logger = logging.getLogger(__name__)


class Tool(str, Enum):
    AREA = "area"
    LINEAR = "linear"
    WATERLINE = "waterline"


TOOL_MASK_TYPES = {
    Tool.AREA: MaskType.AREA,
    Tool.LINEAR: MaskType.LINEAR,
    Tool.WATERLINE: MaskType.WATERLINE_BAND,
}

_DEFECT_REASONS = {
    PolygonDefect.TOO_FEW_POINTS: PathRejection.TOO_FEW_POINTS,
    PolygonDefect.DEGENERATE_AREA: PathRejection.DEGENERATE_AREA,
    PolygonDefect.SELF_INTERSECTING: PathRejection.SELF_INTERSECTING,
}


@dataclass(frozen=True)
class PathCapture:
    """In-progress path. ``freehand`` captures are smoothed on commit."""

    tool: Tool
    points: Tuple[Point2D, ...]
    freehand: bool = False

    @property
    def mask_type(self) -> MaskType:
        return TOOL_MASK_TYPES[self.tool]


def _to_image(point, space: Optional[PhotoSpace]) -> Point2D:
    raw = Point2D(point.x, point.y)
    if not is_finite_point(raw):
        raise InvalidPointError(f"Non-finite path point ({raw.x}, {raw.y})")
    p = screen_to_image(raw, space) if space is not None else raw
    if not is_finite_point(p):
        raise InvalidPointError(f"Path point maps to ({p.x}, {p.y})")
    return p


def start_path(tool: Tool, point, space: Optional[PhotoSpace] = None,
               freehand: bool = False) -> PathCapture:
    p = _to_image(point, space)
    logger.debug("capture started: %s at (%.1f, %.1f)", tool.value, p.x, p.y)
    return PathCapture(Tool(tool), (p,), freehand)


def append_point(capture: Optional[PathCapture], point, space: Optional[PhotoSpace] = None,
                 snap: Optional[SnapSettings] = None,
                 config: Optional[EngineConfig] = None,
                 edge_map: Optional[EdgeMap] = None,
                 ) -> Tuple[PathCapture, Optional[SnapResult]]:
    """Add a point, routed through snapping when ``snap`` enables any rule.

    Returns the new capture and the snap result (None when snapping is off)
    so the caller can hint which rule fired.
    """
    if capture is None:
        raise PathError(PathRejection.NOT_CAPTURING, "No path capture in progress")
    p = _to_image(point, space)
    result: Optional[SnapResult] = None
    if snap is not None and snap.any_enabled:
        bounds = (space.image_width, space.image_height) if space is not None else None
        result = apply_snapping(p, capture.points[-1], snap, config, edge_map, bounds)
        p = result.point
    return replace(capture, points=capture.points + (p,)), result


def pop_point(capture: PathCapture) -> PathCapture:
    """Undo the last placed point; the starting point is never removed."""
    if len(capture.points) <= 1:
        return capture
    return replace(capture, points=capture.points[:-1])


def cancel_path(capture: Optional[PathCapture]) -> None:
    if capture is not None:
        logger.debug("capture cancelled: %s with %d points", capture.tool.value, len(capture.points))
    return None


def switch_tool(capture: Optional[PathCapture], tool: Tool) -> None:
    """Changing tools always discards the capture."""
    if capture is not None and capture.tool is not tool:
        logger.debug("tool switched %s -> %s; capture discarded", capture.tool.value, tool.value)
    return cancel_path(capture)


def is_closing_click(capture: Optional[PathCapture], point, space: PhotoSpace,
                     config: Optional[EngineConfig] = None) -> bool:
    """True when a screen click lands on the first vertex of an area capture."""
    if capture is None or capture.tool is not Tool.AREA or len(capture.points) < 3:
        return False
    cfg = config or EngineConfig()
    first = image_to_screen(capture.points[0], space)
    return distance(first, Point2D(point.x, point.y)) <= cfg.close_threshold_px


def _simplify(pts: List[Point2D], cfg: EngineConfig, closed: bool = False) -> List[Point2D]:
    if cfg.simplify_epsilon_px <= 0:
        return pts
    return simplify_polygon(pts, cfg.simplify_epsilon_px, closed=closed)


def commit_path(capture: Optional[PathCapture], config: Optional[EngineConfig] = None,
                mask_id: Optional[str] = None,
                band_height_m: Optional[float] = None,
                name: str = "") -> Mask:
    """Smooth, validate and simplify the capture, then build the mask.

    Raises PathError naming the rejection; nothing is repaired.
    """
    if capture is None:
        raise PathError(PathRejection.NOT_CAPTURING, "No path capture in progress")
    cfg = config or EngineConfig()
    mask_type = capture.mask_type
    if len(capture.points) < MIN_POINTS[mask_type]:
        raise PathError(PathRejection.TOO_FEW_POINTS,
                        f"{capture.tool.value} needs at least {MIN_POINTS[mask_type]} points")

    radius = cfg.freehand_smoothing_radius if capture.freehand else 0
    smoothed = smooth_freehand(capture.points, radius, closed=capture.tool is Tool.AREA)
    if mask_type is MaskType.AREA:
        defect = validate_polygon(smoothed, cfg.min_polygon_area_px2)
        if defect is not None:
            raise PathError(_DEFECT_REASONS[defect], f"Area path rejected: {defect.value}")
        pts = _simplify(smoothed, cfg, closed=True)
        if validate_polygon(pts, cfg.min_polygon_area_px2) is not None:
            pts = smoothed
    else:
        if polyline_length(smoothed) <= 0:
            raise PathError(PathRejection.ZERO_LENGTH, "Path has zero length")
        pts = _simplify(smoothed, cfg)

    band = None
    if mask_type is MaskType.WATERLINE_BAND:
        band = band_height_m if band_height_m is not None else cfg.default_band_height_m
        if not (math.isfinite(band) and band > 0):
            raise ValueError(f"Band height must be greater than zero, got {band}")

    mask = Mask(
        id=mask_id or new_id("mask"),
        type=mask_type,
        points=as_mask_points(pts),
        band_height_m=band,
        name=name,
    )
    logger.info("mask %s committed: %s, %d points (%d captured)", mask.id, mask_type.value,
                len(pts), len(capture.points))
    return mask
