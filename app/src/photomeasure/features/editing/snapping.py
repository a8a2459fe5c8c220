from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ...core.config import EngineConfig
from ...core.geometry import distance
from ...core.model import Point2D
from ..navigation.coord import clamp_to_photo
from .edge_map import EdgeMap

logger = logging.getLogger(__name__)


class SnapRule(str, Enum):
    GRID = "grid"
    ANGLE = "angle"
    ORTHOGONAL = "orthogonal"
    EDGE = "edge"


@dataclass(frozen=True)
class SnapSettings:
    grid: bool = False
    angle: bool = False
    orthogonal: bool = False
    edge: bool = False

    @property
    def any_enabled(self) -> bool:
        return self.grid or self.angle or self.orthogonal or self.edge


@dataclass(frozen=True)
class SnapResult:
    point: Point2D
    rule: Optional[SnapRule]
    distance: float = 0.0

    @property
    def snapped(self) -> bool:
        return self.rule is not None


def snap_to_grid(p, spacing: float, fraction: float) -> Optional[Point2D]:
    if spacing <= 0:
        return None
    gx = round(p.x / spacing) * spacing
    gy = round(p.y / spacing) * spacing
    if math.hypot(gx - p.x, gy - p.y) <= spacing * fraction:
        return Point2D(gx, gy)
    return None


def snap_to_angle(p, previous, step_deg: float, tolerance_deg: float) -> Optional[Point2D]:
    dx = p.x - previous.x
    dy = p.y - previous.y
    length = math.hypot(dx, dy)
    if length == 0 or step_deg <= 0:
        return None
    angle = math.degrees(math.atan2(dy, dx))
    snapped = round(angle / step_deg) * step_deg
    if abs(angle - snapped) > tolerance_deg:
        return None
    rad = math.radians(snapped)
    return Point2D(previous.x + length * math.cos(rad), previous.y + length * math.sin(rad))


def snap_orthogonal(p, previous, threshold: float) -> Optional[Point2D]:
    """Zero the axis whose delta is under ``threshold``.

    When both are, the smaller delta is zeroed; an exact tie gives a
    horizontal line.
    """
    dx = abs(p.x - previous.x)
    dy = abs(p.y - previous.y)
    horizontal = dy < threshold
    vertical = dx < threshold
    if horizontal and vertical:
        if dx < dy:
            horizontal = False
        else:
            vertical = False
    if horizontal:
        return Point2D(p.x, previous.y)
    if vertical:
        return Point2D(previous.x, p.y)
    return None


def snap_to_edge(p, edge_map: EdgeMap, radius: int, threshold: int) -> Optional[Point2D]:
    """Strongest edge pixel within ``radius`` at or above ``threshold``; ties go to the nearest."""
    cx = int(round(p.x))
    cy = int(round(p.y))
    best: Optional[Tuple[int, float, int, int]] = None
    for y in range(cy - radius, cy + radius + 1):
        for x in range(cx - radius, cx + radius + 1):
            d = math.hypot(x - p.x, y - p.y)
            if d > radius:
                continue
            s = edge_map.at(x, y)
            if s < threshold:
                continue
            if best is None or s > best[0] or (s == best[0] and d < best[1]):
                best = (s, d, x, y)
    if best is None:
        return None
    return Point2D(float(best[2]), float(best[3]))


def apply_snapping(point, previous=None, settings: Optional[SnapSettings] = None,
                   config: Optional[EngineConfig] = None,
                   edge_map: Optional[EdgeMap] = None,
                   bounds: Optional[Tuple[float, float]] = None) -> SnapResult:
    """Run grid, angle, orthogonal and edge snapping in that order.

    Each rule that fires replaces the candidate; the result names the last
    one. Angle and orthogonal rules need ``previous``; edge needs ``edge_map``.
    All coordinates are image pixels. With ``bounds`` (image width, height)
    the snapped point is clamped back into the photo.
    """
    raw = Point2D(point.x, point.y)
    settings = settings or SnapSettings()
    cfg = config or EngineConfig()
    candidate = raw
    rule: Optional[SnapRule] = None

    if settings.grid:
        snapped = snap_to_grid(candidate, cfg.grid_spacing, cfg.grid_snap_fraction)
        if snapped is not None:
            candidate, rule = snapped, SnapRule.GRID

    if settings.angle and previous is not None:
        snapped = snap_to_angle(candidate, previous, cfg.angle_step_deg, cfg.angle_tolerance_deg)
        if snapped is not None:
            candidate, rule = snapped, SnapRule.ANGLE

    if settings.orthogonal and previous is not None:
        snapped = snap_orthogonal(candidate, previous, cfg.orthogonal_threshold_px)
        if snapped is not None:
            candidate, rule = snapped, SnapRule.ORTHOGONAL

    if settings.edge and edge_map is not None:
        snapped = snap_to_edge(candidate, edge_map, cfg.edge_search_radius_px, cfg.edge_threshold)
        if snapped is not None:
            candidate, rule = snapped, SnapRule.EDGE

    if rule is not None and bounds is not None:
        candidate = clamp_to_photo(candidate, bounds[0], bounds[1])

    if rule is not None:
        logger.debug("snap %s: (%.1f, %.1f) -> (%.1f, %.1f)", rule.value, raw.x, raw.y,
                     candidate.x, candidate.y)
    return SnapResult(candidate, rule, distance(raw, candidate))
