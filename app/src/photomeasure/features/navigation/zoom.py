from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ...core.config import EngineConfig
from ...core.model import PhotoSpace

logger = logging.getLogger(__name__)


def zoom_at_point(space: PhotoSpace, zoom: float, anchor,
                  config: Optional[EngineConfig] = None) -> PhotoSpace:
    """Return a new space at ``zoom`` keeping the screen point ``anchor`` fixed."""
    cfg = config or EngineConfig()
    new_zoom = max(cfg.zoom_min, min(zoom, cfg.zoom_max))
    # image point under the anchor before zooming
    image_x = (anchor.x - space.pan_x) / space.scale
    image_y = (anchor.y - space.pan_y) / space.scale
    return replace(
        space,
        scale=new_zoom,
        pan_x=anchor.x - image_x * new_zoom,
        pan_y=anchor.y - image_y * new_zoom,
    )


def zoom_in(space: PhotoSpace, anchor, config: Optional[EngineConfig] = None) -> PhotoSpace:
    cfg = config or EngineConfig()
    return zoom_at_point(space, space.scale * cfg.zoom_step, anchor, cfg)


def zoom_out(space: PhotoSpace, anchor, config: Optional[EngineConfig] = None) -> PhotoSpace:
    cfg = config or EngineConfig()
    return zoom_at_point(space, space.scale / cfg.zoom_step, anchor, cfg)


def fit_photo_space(image_width: float, image_height: float,
                    container_width: float, container_height: float,
                    config: Optional[EngineConfig] = None,
                    device_pixel_ratio: float = 1.0) -> PhotoSpace:
    """Scale the photo to fit the container (with padding) and centre it."""
    cfg = config or EngineConfig()
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image bounds {image_width}x{image_height}")
    if container_width <= 0 or container_height <= 0:
        raise ValueError(f"Invalid container {container_width}x{container_height}")
    scale = min(container_width / image_width, container_height / image_height) * cfg.fit_padding
    scale = max(cfg.zoom_min, min(scale, cfg.zoom_max))
    pan_x = (container_width - image_width * scale) / 2.0
    pan_y = (container_height - image_height * scale) / 2.0
    logger.debug("fit %sx%s into %sx%s at scale %.4f", image_width, image_height,
                 container_width, container_height, scale)
    return PhotoSpace(scale, pan_x, pan_y, image_width, image_height, device_pixel_ratio)
