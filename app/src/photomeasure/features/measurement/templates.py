from __future__ import annotations

import math
from enum import Enum
from typing import List

from ...core.model import Point2D


class FreeformVariant(str, Enum):
    ORGANIC = "organic"
    MODERN = "modern"


def _same(a: Point2D, b: Point2D) -> bool:
    return math.isclose(a.x, b.x, abs_tol=1e-9) and math.isclose(a.y, b.y, abs_tol=1e-9)


def rounded_rect(x: float, y: float, width: float, height: float,
                 corner_radius: float = 20.0, subdivisions: int = 6) -> List[Point2D]:
    """Rectangle with quarter-circle corners, each arc split into ``subdivisions`` segments."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid template frame {width}x{height}")
    r = max(0.0, min(corner_radius, width / 2.0, height / 2.0))
    if r == 0:
        return [Point2D(x, y), Point2D(x + width, y), Point2D(x + width, y + height), Point2D(x, y + height)]
    steps = max(1, subdivisions)
    # arc centres clockwise from top-right, with their start angles
    arcs = (
        (x + width - r, y + r, -90.0),
        (x + width - r, y + height - r, 0.0),
        (x + r, y + height - r, 90.0),
        (x + r, y + r, 180.0),
    )
    points: List[Point2D] = []
    for cx, cy, start in arcs:
        for j in range(steps + 1):
            a = math.radians(start + 90.0 * j / steps)
            p = Point2D(cx + math.cos(a) * r, cy + math.sin(a) * r)
            # arcs meet without a straight run when r is half a side
            if points and _same(p, points[-1]):
                continue
            points.append(p)
    if len(points) > 1 and _same(points[0], points[-1]):
        points.pop()
    return points


def kidney_shape(x: float, y: float, width: float, height: float, num_points: int = 32) -> List[Point2D]:
    cx = x + width / 2.0
    cy = y + height / 2.0
    r1 = width * 0.4
    r2 = height * 0.3
    points: List[Point2D] = []
    for i in range(num_points):
        t = (i / num_points) * 2 * math.pi
        # pinch one flank inward
        pinch = 1.0 - 0.25 * max(0.0, math.cos(t)) ** 3
        points.append(Point2D(cx + math.cos(t) * r1, cy + math.sin(t) * r2 * pinch))
    return points


def freeform_shape(x: float, y: float, width: float, height: float,
                   variant: FreeformVariant = FreeformVariant.ORGANIC) -> List[Point2D]:
    cx = x + width / 2.0
    cy = y + height / 2.0
    points: List[Point2D] = []
    if variant is FreeformVariant.ORGANIC:
        n = 24
        for i in range(n):
            t = (i / n) * 2 * math.pi
            r1 = width * 0.35 + math.sin(t * 3) * width * 0.1
            r2 = height * 0.3 + math.cos(t * 2) * height * 0.08
            points.append(Point2D(cx + math.cos(t) * r1, cy + math.sin(t) * r2))
    else:
        n = 20
        for i in range(n):
            t = (i / n) * 2 * math.pi
            r1 = width * 0.4 + math.sin(t * 4) * width * 0.05
            r2 = height * 0.35 + math.cos(t * 3) * height * 0.06
            points.append(Point2D(cx + math.cos(t) * r1, cy + math.sin(t) * r2))
    return points
