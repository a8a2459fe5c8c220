from __future__ import annotations

from dataclasses import replace

from ...core.model import PhotoSpace


def pan_by(space: PhotoSpace, dx: float, dy: float) -> PhotoSpace:
    """Translate the view by a screen-pixel delta."""
    return replace(space, pan_x=space.pan_x + dx, pan_y=space.pan_y + dy)


def pan_drag(space: PhotoSpace, start, current) -> PhotoSpace:
    return pan_by(space, current.x - start.x, current.y - start.y)
