from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

ZOOM_MIN = 0.01
ZOOM_MAX = 64.0
ZOOM_STEP = 1.25

FIT_PADDING = 0.98
CLOSE_THRESHOLD_PX = 10
VERTEX_HIT_RADIUS_PX = 8
EDGE_HIT_THRESHOLD_PX = 10
STRAIGHT_SNAP_TOL_DEG = 3.0


@dataclass
class EngineConfig:
    """Tunable constants shared by the navigation, snapping, capture and section code."""

    zoom_min: float = ZOOM_MIN
    zoom_max: float = ZOOM_MAX
    zoom_step: float = ZOOM_STEP
    fit_padding: float = FIT_PADDING

    grid_spacing: float = 20.0
    grid_snap_fraction: float = 0.3
    angle_step_deg: float = 15.0
    angle_tolerance_deg: float = 7.5
    orthogonal_threshold_px: float = 20.0
    edge_search_radius_px: int = 10
    edge_threshold: int = 128

    close_threshold_px: float = CLOSE_THRESHOLD_PX
    vertex_hit_radius_px: float = VERTEX_HIT_RADIUS_PX
    edge_hit_threshold_px: float = EDGE_HIT_THRESHOLD_PX
    straight_snap_tol_deg: float = STRAIGHT_SNAP_TOL_DEG

    freehand_smoothing_radius: int = 4
    simplify_epsilon_px: float = 2.0
    min_polygon_area_px2: float = 0.1

    min_reference_px: float = 10.0
    fallback_pixels_per_meter: float = 100.0
    # (min_mm, max_mm) per derived section
    section_width_ranges_mm: Dict[str, Tuple[float, float]] = field(default_factory=lambda: {
        "waterline": (60.0, 300.0),
        "coping": (100.0, 400.0),
        "paving": (300.0, 2000.0),
    })
    default_band_height_m: float = 0.15
