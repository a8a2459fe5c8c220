from __future__ import annotations

import logging
import math
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .model import Point2D

logger = logging.getLogger(__name__)

EPSILON = 1e-9
# Polygons below this area (px^2) are treated as degenerate
MIN_POLYGON_AREA: float = 0.1


class OffsetDirection(str, Enum):
    INWARD = "inward"
    OUTWARD = "outward"


class PolygonDefect(str, Enum):
    TOO_FEW_POINTS = "too_few_points"
    DEGENERATE_AREA = "degenerate_area"
    SELF_INTERSECTING = "self_intersecting"


def distance(p1, p2) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def signed_area(points: Sequence) -> float:
    """Shoelace sum / 2. Positive when the interior lies left of each edge."""
    n = len(points)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        p1 = points[i]
        p2 = points[(i + 1) % n]
        area += p1.x * p2.y - p2.x * p1.y
    return area / 2.0


def polygon_area(points: Sequence) -> float:
    """Return the absolute area of a polygon using the shoelace formula."""
    return abs(signed_area(points))


def polyline_length(points: Sequence) -> float:
    """Sum of consecutive segment lengths (open path)."""
    if len(points) < 2:
        return 0.0
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def polygon_perimeter(points: Sequence) -> float:
    """Return the perimeter length of a closed polygon."""
    if len(points) < 2:
        return 0.0
    n = len(points)
    return sum(distance(points[i], points[(i + 1) % n]) for i in range(n))


def polygon_centroid(points: Sequence) -> Optional[Point2D]:
    """Return polygon centroid; fall back to vertex average for near-zero area."""
    if not points:
        return None
    area_acc = 0.0
    cx_acc = 0.0
    cy_acc = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i].x, points[i].y
        x1, y1 = points[(i + 1) % n].x, points[(i + 1) % n].y
        cross = x0 * y1 - x1 * y0
        area_acc += cross
        cx_acc += (x0 + x1) * cross
        cy_acc += (y0 + y1) * cross
    area = area_acc / 2.0
    if abs(area) < EPSILON:
        return Point2D(sum(p.x for p in points) / n, sum(p.y for p in points) / n)
    return Point2D(cx_acc / (6.0 * area), cy_acc / (6.0 * area))


def point_in_polygon(pt, polygon: Sequence) -> bool:
    """Ray casting algorithm to determine if a point lies within a polygon."""
    x, y = pt.x, pt.y
    inside = False
    n = len(polygon)
    if n < 3:
        return False
    p1x, p1y = polygon[0].x, polygon[0].y
    for i in range(n + 1):
        p2x, p2y = polygon[i % n].x, polygon[i % n].y
        if min(p1y, p2y) < y <= max(p1y, p2y) and x <= max(p1x, p2x):
            xinters = p1x
            if p1y != p2y:
                xinters = (y - p1y) * (p2x - p1x) / (p2y - p1y) + p1x
            if p1x == p2x or x <= xinters:
                inside = not inside
        p1x, p1y = p2x, p2y
    return inside


def nearest_point_on_segment(p, a, b) -> Tuple[Point2D, float]:
    dx = b.x - a.x
    dy = b.y - a.y
    len_sq = dx * dx + dy * dy
    if len_sq < EPSILON:
        return Point2D(a.x, a.y), distance(p, a)
    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    nearest = Point2D(a.x + t * dx, a.y + t * dy)
    return nearest, distance(p, nearest)


def perpendicular_distance(p, start, end) -> float:
    """Distance from ``p`` to the segment start-end."""
    return nearest_point_on_segment(p, start, end)[1]


def closest_edge(pt, points: Sequence, threshold: float = 10.0, closed: bool = True) -> Optional[int]:
    """Index ``i`` of the edge (i, i+1) nearest to ``pt``, or None beyond ``threshold``."""
    n = len(points)
    if n < 2:
        return None
    edge_count = n if closed else n - 1
    best: Optional[int] = None
    best_dist = threshold
    for i in range(edge_count):
        d = perpendicular_distance(pt, points[i], points[(i + 1) % n])
        if d < best_dist:
            best_dist = d
            best = i
    return best


def closest_vertex(pt, points: Sequence, threshold: float = 8.0) -> Optional[int]:
    best: Optional[int] = None
    best_dist = threshold
    for i, v in enumerate(points):
        d = distance(pt, v)
        if d < best_dist:
            best_dist = d
            best = i
    return best


def segments_intersect(a1, a2, b1, b2) -> bool:
    def orientation(p, q, r):
        val = (q.y - p.y) * (r.x - q.x) - (q.x - p.x) * (r.y - q.y)
        if abs(val) < EPSILON:
            return 0
        return 1 if val > 0 else 2

    def on_segment(p, q, r):
        return (min(p.x, r.x) - EPSILON <= q.x <= max(p.x, r.x) + EPSILON and
                min(p.y, r.y) - EPSILON <= q.y <= max(p.y, r.y) + EPSILON)

    o1 = orientation(a1, a2, b1)
    o2 = orientation(a1, a2, b2)
    o3 = orientation(b1, b2, a1)
    o4 = orientation(b1, b2, a2)

    if o1 != o2 and o3 != o4:
        return True
    if o1 == 0 and on_segment(a1, b1, a2):
        return True
    if o2 == 0 and on_segment(a1, b2, a2):
        return True
    if o3 == 0 and on_segment(b1, a1, b2):
        return True
    if o4 == 0 and on_segment(b1, a2, b2):
        return True
    return False


def is_self_intersecting(points: Sequence) -> bool:
    """True if any two non-adjacent edges of the closed polygon touch."""
    n = len(points)
    if n < 4:
        return False
    for i in range(n):
        a1, a2 = points[i], points[(i + 1) % n]
        for j in range(i + 1, n):
            # adjacent edges share a vertex
            if j == i + 1 or (i == 0 and j == n - 1):
                continue
            if segments_intersect(a1, a2, points[j], points[(j + 1) % n]):
                return True
    return False


def _extreme_pair(points: Sequence) -> Tuple[int, int]:
    """Indices of two vertices spanning the point set: the one farthest from
    vertex 0, and the one farthest from that."""
    j = max(range(len(points)), key=lambda i: distance(points[0], points[i]))
    k = max(range(len(points)), key=lambda i: distance(points[j], points[i]))
    return j, k


def is_collinear(points: Sequence, tolerance: float = 1e-6) -> bool:
    if len(points) < 3:
        return True
    j, k = _extreme_pair(points)
    return all(perpendicular_distance(p, points[j], points[k]) <= tolerance for p in points)


def validate_polygon(points: Sequence, min_area: float = MIN_POLYGON_AREA) -> Optional[PolygonDefect]:
    """Return the first defect found in a closed polygon, or None if it is usable.

    Checks run in order: too few points, a flat outline, crossing edges, then
    the area threshold. The net area of a bowtie is near zero, so it is
    reported as crossing rather than degenerate.
    """
    if len(points) < 3:
        return PolygonDefect.TOO_FEW_POINTS
    if is_collinear(points):
        return PolygonDefect.DEGENERATE_AREA
    if is_self_intersecting(points):
        return PolygonDefect.SELF_INTERSECTING
    if polygon_area(points) <= min_area:
        return PolygonDefect.DEGENERATE_AREA
    return None


def _edges_preserved(src: Sequence, dst: Sequence) -> bool:
    """Each offset edge must keep the direction of its source edge."""
    n = len(src)
    for i in range(n):
        sx = src[(i + 1) % n].x - src[i].x
        sy = src[(i + 1) % n].y - src[i].y
        if sx * sx + sy * sy < EPSILON:
            continue
        dx = dst[(i + 1) % n].x - dst[i].x
        dy = dst[(i + 1) % n].y - dst[i].y
        if sx * dx + sy * dy <= 0:
            return False
    return True


def offset_polygon(points: Sequence, distance_px: float,
                   direction: OffsetDirection = OffsetDirection.INWARD) -> List[Point2D]:
    """Displace each vertex along the averaged normal of its two edges.

    A per-vertex offset, not a Minkowski sum. Returns an empty list when the
    result collapses: an edge flips direction, the outline crosses itself, or
    an inward offset fails to shrink the area.
    """
    n = len(points)
    if n < 3:
        return []
    orientation = signed_area(points)
    if abs(orientation) < EPSILON:
        return []
    # left normal (-dy, dx) points inside for positive orientation
    sign = 1.0 if orientation > 0 else -1.0
    if direction is OffsetDirection.OUTWARD:
        sign = -sign

    result: List[Point2D] = []
    for i in range(n):
        prev = points[i - 1]
        curr = points[i]
        nxt = points[(i + 1) % n]
        nx = ((curr.x - prev.x) + (nxt.x - curr.x)) / 2.0
        ny = ((curr.y - prev.y) + (nxt.y - curr.y)) / 2.0
        length = math.hypot(nx, ny)
        if length < EPSILON:
            result.append(Point2D(curr.x, curr.y))
            continue
        result.append(Point2D(
            curr.x + sign * (-ny / length) * distance_px,
            curr.y + sign * (nx / length) * distance_px,
        ))

    if not _edges_preserved(points, result) or is_self_intersecting(result):
        logger.debug("offset of %.2fpx %s collapsed %d-point polygon", distance_px, direction.value, n)
        return []
    new_area = polygon_area(result)
    src_area = abs(orientation)
    if direction is OffsetDirection.INWARD and distance_px > 0 and not (0 < new_area < src_area):
        return []
    if direction is OffsetDirection.OUTWARD and distance_px > 0 and new_area <= src_area:
        return []
    return result


def _rdp_keep(pts: List[Point2D], chain: List[int], epsilon: float, keep: List[bool]) -> None:
    """Mark the vertices of ``chain`` that survive RDP; the chain ends are kept."""
    keep[chain[0]] = keep[chain[-1]] = True
    stack = [(0, len(chain) - 1)]
    while stack:
        start, end = stack.pop()
        a, b = pts[chain[start]], pts[chain[end]]
        max_dist = 0.0
        index = start
        for i in range(start + 1, end):
            d = perpendicular_distance(pts[chain[i]], a, b)
            if d > max_dist:
                max_dist = d
                index = i
        if max_dist > epsilon:
            keep[chain[index]] = True
            stack.append((start, index))
            stack.append((index, end))


def simplify_polygon(points: Sequence, epsilon: float = 2.0, closed: bool = False) -> List[Point2D]:
    """Ramer-Douglas-Peucker reduction.

    Open paths always keep both endpoints. A closed ring is split at its two
    most distant vertices and each half is reduced, so no vertex is pinned
    just for being first.
    """
    pts = [Point2D(p.x, p.y) for p in points]
    n = len(pts)
    if n < 3:
        return pts
    keep = [False] * n
    if not closed:
        _rdp_keep(pts, list(range(n)), epsilon, keep)
        return [p for p, k in zip(pts, keep) if k]

    a, b = sorted(_extreme_pair(pts))
    if a == b:
        return pts
    _rdp_keep(pts, list(range(a, b + 1)), epsilon, keep)
    _rdp_keep(pts, list(range(b, n)) + list(range(0, a + 1)), epsilon, keep)
    return [p for p, k in zip(pts, keep) if k]


def smooth_freehand(points: Sequence, radius: int = 4, closed: bool = False) -> List[Point2D]:
    """Symmetric moving average. Closed paths wrap; open paths shrink the window at the ends."""
    pts = [Point2D(p.x, p.y) for p in points]
    n = len(pts)
    if radius <= 0 or n < 3:
        return pts
    smoothed: List[Point2D] = []
    for i in range(n):
        if closed:
            r = min(radius, (n - 1) // 2)
            window = [pts[(i + k) % n] for k in range(-r, r + 1)]
        else:
            window = pts[max(0, i - radius):min(n, i + radius + 1)]
        smoothed.append(Point2D(
            sum(p.x for p in window) / len(window),
            sum(p.y for p in window) / len(window),
        ))
    return smoothed
