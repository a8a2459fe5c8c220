from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from ...core.config import EngineConfig
from ...core.errors import InvalidPointError, PathError, PathRejection
from ...core.geometry import closest_edge, distance
from ...core.model import (
    MIN_POINTS,
    Mask,
    MaskPoint,
    PhotoSpace,
    Point2D,
    VertexKind,
    as_points,
    is_finite_point,
)
from ..navigation.coord import image_to_screen

logger = logging.getLogger(__name__)

HANDLE_LENGTH_RATIO: float = 0.3


def _neighbours(points: Sequence, index: int, closed: bool) -> Tuple[Optional[MaskPoint], Optional[MaskPoint]]:
    n = len(points)
    if closed:
        return points[index - 1], points[(index + 1) % n]
    prev = points[index - 1] if index > 0 else None
    nxt = points[index + 1] if index < n - 1 else None
    return prev, nxt


def _check_index(mask: Mask, index: int) -> None:
    if not 0 <= index < len(mask.points):
        raise IndexError(f"Vertex {index} out of range for mask {mask.id} ({len(mask.points)} points)")


def hit_test_vertex(mask: Mask, screen_point, space: PhotoSpace,
                    config: Optional[EngineConfig] = None) -> Optional[int]:
    """Index of the first vertex whose screen position is within the hit box."""
    cfg = config or EngineConfig()
    r = cfg.vertex_hit_radius_px
    for i, v in enumerate(mask.points):
        s = image_to_screen(v, space)
        if abs(screen_point.x - s.x) <= r and abs(screen_point.y - s.y) <= r:
            return i
    return None


def insert_vertex(mask: Mask, point, config: Optional[EngineConfig] = None) -> Mask:
    """Insert ``point`` into the edge nearest to it. Unchanged if no edge is close enough."""
    cfg = config or EngineConfig()
    p = Point2D(point.x, point.y)
    if not is_finite_point(p):
        raise InvalidPointError(f"Non-finite vertex ({p.x}, {p.y})")
    edge = closest_edge(p, as_points(mask.points), cfg.edge_hit_threshold_px, closed=mask.is_closed)
    if edge is None:
        return mask
    pts = list(mask.points)
    pts.insert(edge + 1, MaskPoint.corner(p))
    logger.debug("mask %s: vertex inserted after %d", mask.id, edge)
    return replace(mask, points=tuple(pts))


def remove_vertex(mask: Mask, index: int) -> Mask:
    _check_index(mask, index)
    minimum = MIN_POINTS[mask.type]
    if len(mask.points) <= minimum:
        raise PathError(PathRejection.TOO_FEW_POINTS,
                        f"{mask.type.value} masks need at least {minimum} points")
    pts = mask.points[:index] + mask.points[index + 1:]
    return replace(mask, points=pts)


def _interior_angle_deg(a, b, c) -> float:
    v1 = (a.x - b.x, a.y - b.y)
    v2 = (c.x - b.x, c.y - b.y)
    dot = v1[0] * v2[0] + v1[1] * v2[1]
    det = v1[0] * v2[1] - v1[1] * v2[0]
    return abs(math.degrees(math.atan2(det, dot)))


def straighten_point(prev, point, nxt, tol_deg: float) -> Optional[Point2D]:
    """Project ``point`` onto the prev-next chord when the three are nearly collinear."""
    deg = _interior_angle_deg(prev, point, nxt)
    if not (abs(deg - 180.0) <= tol_deg or deg <= tol_deg):
        return None
    acx = nxt.x - prev.x
    acy = nxt.y - prev.y
    ac_len2 = acx * acx + acy * acy
    if ac_len2 <= 1e-9:
        return None
    t = ((point.x - prev.x) * acx + (point.y - prev.y) * acy) / ac_len2
    return Point2D(prev.x + t * acx, prev.y + t * acy)


def move_vertex(mask: Mask, index: int, point, straight_snap: bool = False,
                config: Optional[EngineConfig] = None) -> Mask:
    """Move a vertex (with its handles). ``straight_snap`` pulls it onto the neighbours' line."""
    _check_index(mask, index)
    cfg = config or EngineConfig()
    p = Point2D(point.x, point.y)
    if not is_finite_point(p):
        raise InvalidPointError(f"Non-finite vertex ({p.x}, {p.y})")
    if straight_snap and len(mask.points) >= 3:
        prev, nxt = _neighbours(mask.points, index, mask.is_closed)
        if prev is not None and nxt is not None:
            snapped = straighten_point(prev, p, nxt, cfg.straight_snap_tol_deg)
            if snapped is not None:
                p = snapped
    old = mask.points[index]
    dx = p.x - old.x
    dy = p.y - old.y
    h1 = Point2D(old.h1.x + dx, old.h1.y + dy) if old.h1 is not None else None
    h2 = Point2D(old.h2.x + dx, old.h2.y + dy) if old.h2 is not None else None
    pts = list(mask.points)
    pts[index] = MaskPoint(p.x, p.y, old.kind, h1, h2)
    return replace(mask, points=tuple(pts))


def toggle_vertex_kind(mask: Mask, index: int) -> Mask:
    """Corner <-> smooth. New handles sit on the incoming and outgoing directions."""
    _check_index(mask, index)
    v = mask.points[index]
    pts = list(mask.points)
    if v.kind is VertexKind.SMOOTH:
        pts[index] = MaskPoint(v.x, v.y)
        return replace(mask, points=tuple(pts))

    prev, nxt = _neighbours(mask.points, index, mask.is_closed)
    if prev is None:
        prev = v
    if nxt is None:
        nxt = v
    length = distance(prev, v) or distance(v, nxt)
    length *= HANDLE_LENGTH_RATIO
    a_in = math.atan2(v.y - prev.y, v.x - prev.x) if (prev.x, prev.y) != (v.x, v.y) else \
        math.atan2(nxt.y - v.y, nxt.x - v.x)
    a_out = math.atan2(nxt.y - v.y, nxt.x - v.x) if (nxt.x, nxt.y) != (v.x, v.y) else a_in
    h1 = Point2D(v.x - math.cos(a_in) * length, v.y - math.sin(a_in) * length)
    h2 = Point2D(v.x + math.cos(a_out) * length, v.y + math.sin(a_out) * length)
    pts[index] = MaskPoint(v.x, v.y, VertexKind.SMOOTH, h1, h2)
    return replace(mask, points=tuple(pts))
