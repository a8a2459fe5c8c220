from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeMap:
    """Per-pixel edge strength (0-255) indexed as ``strength[y, x]``."""

    strength: np.ndarray

    @property
    def width(self) -> int:
        return int(self.strength.shape[1])

    @property
    def height(self) -> int:
        return int(self.strength.shape[0])

    def at(self, x: int, y: int) -> int:
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self.strength[y, x])
        return 0


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """Sobel gradient magnitude, scaled and clipped to 0-255. Border pixels are 0."""
    g = gray.astype(np.float64)
    out = np.zeros_like(g)
    if g.shape[0] < 3 or g.shape[1] < 3:
        return out.astype(np.uint8)
    tl, tc, tr = g[:-2, :-2], g[:-2, 1:-1], g[:-2, 2:]
    ml, mr = g[1:-1, :-2], g[1:-1, 2:]
    bl, bc, br = g[2:, :-2], g[2:, 1:-1], g[2:, 2:]
    gx = (tr + 2 * mr + br) - (tl + 2 * ml + bl)
    gy = (bl + 2 * bc + br) - (tl + 2 * tc + tr)
    out[1:-1, 1:-1] = np.hypot(gx, gy)
    return np.clip(out, 0, 255).astype(np.uint8)


def build_edge_map(image: Image.Image) -> EdgeMap:
    gray = np.asarray(image.convert("L"))
    strength = sobel_magnitude(gray)
    logger.debug("built %dx%d edge map (max %d)", strength.shape[1], strength.shape[0],
                 int(strength.max()) if strength.size else 0)
    return EdgeMap(strength)
