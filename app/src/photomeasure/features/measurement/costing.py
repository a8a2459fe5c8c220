from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence, Tuple

from ...core.model import Calibration, Mask, MaskType
from .metrics import MaskMetrics, compute_metrics

logger = logging.getLogger(__name__)


class MaterialUnit(str, Enum):
    SQUARE_METER = "m2"
    LINEAR_METER = "lm"


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    unit: MaterialUnit = MaterialUnit.SQUARE_METER
    price: float = 0.0
    wastage_pct: float = 0.0


@dataclass(frozen=True)
class MaskCost:
    mask_id: str
    material_name: str
    quantity: Optional[float]
    quantity_effective: Optional[float]
    cost: Optional[float]
    metrics: MaskMetrics

    @property
    def has_cost_data(self) -> bool:
        return self.cost is not None


@dataclass(frozen=True)
class ProjectTotals:
    total_area_m2: float
    total_length_m: float
    total_cost: float
    lines: Tuple[MaskCost, ...]
    uncalibrated: int


def apply_wastage(quantity: float, wastage_pct: float) -> float:
    return quantity * (1 + wastage_pct / 100.0)


def _quantity(metrics: MaskMetrics, mask: Mask, unit: MaterialUnit) -> Optional[float]:
    if unit is MaterialUnit.LINEAR_METER:
        return metrics.perimeter_m if mask.type is MaskType.AREA else metrics.length_m
    if mask.type is MaskType.WATERLINE_BAND:
        return metrics.band_area_m2
    return metrics.area_m2


def cost_for_mask(mask: Mask, calibration: Optional[Calibration],
                  material: Optional[Material]) -> MaskCost:
    metrics = compute_metrics(mask, calibration)
    if material is None:
        return MaskCost(mask.id, "No Material", None, None, None, metrics)
    qty = _quantity(metrics, mask, material.unit)
    if qty is None:
        return MaskCost(mask.id, material.name, None, None, None, metrics)
    effective = apply_wastage(qty, material.wastage_pct)
    return MaskCost(mask.id, material.name, qty, effective, effective * material.price, metrics)


def project_totals(masks: Sequence[Mask], calibration: Optional[Calibration],
                   materials: Mapping[str, Material]) -> ProjectTotals:
    """Sum quantities and costs over every mask; unpriced masks add no cost."""
    lines = []
    area = 0.0
    length = 0.0
    cost = 0.0
    uncalibrated = 0
    for mask in masks:
        material = materials.get(mask.material_id) if mask.material_id else None
        line = cost_for_mask(mask, calibration, material)
        lines.append(line)
        m = line.metrics
        if not m.calibrated:
            uncalibrated += 1
        if mask.type is MaskType.AREA:
            area += m.area_m2 or 0.0
        elif mask.type is MaskType.WATERLINE_BAND:
            area += m.band_area_m2 or 0.0
            length += m.length_m or 0.0
        else:
            length += m.length_m or 0.0
        cost += line.cost or 0.0
    if uncalibrated:
        logger.warning("%d of %d masks are uncalibrated and excluded from totals", uncalibrated, len(lines))
    return ProjectTotals(area, length, cost, tuple(lines), uncalibrated)
