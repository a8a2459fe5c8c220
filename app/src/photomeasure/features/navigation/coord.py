from __future__ import annotations

from ...core.model import PhotoSpace, Point2D


def _clamp(value: float, lo: float, hi: float) -> float:
    # NaN passes through so callers can reject it
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def clamp_to_photo(p, width: float, height: float) -> Point2D:
    return Point2D(_clamp(p.x, 0.0, width), _clamp(p.y, 0.0, height))


def image_to_screen(p, space: PhotoSpace) -> Point2D:
    return Point2D(p.x * space.scale + space.pan_x, p.y * space.scale + space.pan_y)


def screen_to_image(p, space: PhotoSpace) -> Point2D:
    """Invert the viewport transform and clamp into the photo bounds.

    Pointer events near the canvas border can land outside the photo; the
    result always lies inside ``[0, image_width] x [0, image_height]``.
    """
    return clamp_to_photo(screen_to_image_unclamped(p, space), space.image_width, space.image_height)


def screen_to_image_unclamped(p, space: PhotoSpace) -> Point2D:
    return Point2D((p.x - space.pan_x) / space.scale, (p.y - space.pan_y) / space.scale)


def css_to_device(p, space: PhotoSpace) -> Point2D:
    """CSS pixels to backing-store pixels on high-DPI displays."""
    return Point2D(p.x * space.device_pixel_ratio, p.y * space.device_pixel_ratio)


def device_to_css(p, space: PhotoSpace) -> Point2D:
    return Point2D(p.x / space.device_pixel_ratio, p.y / space.device_pixel_ratio)
