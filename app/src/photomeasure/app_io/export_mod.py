from __future__ import annotations

import csv
import json
import logging
from typing import Any, Dict, Optional, Sequence

from ..core.model import (
    Calibration,
    CalibrationMethod,
    CalibrationSample,
    Confidence,
    CustomCalibration,
    Mask,
    MaskPoint,
    MaskType,
    Point2D,
    VertexKind,
)
from ..features.measurement.metrics import compute_metrics

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    'mask_id', 'name', 'type', 'area_m2', 'perimeter_m', 'length_m',
    'band_area_m2', 'provenance', 'confidence', 'metadata',
)


def _fmt(value: Optional[float]) -> str:
    return '' if value is None else f'{value:.4f}'


def export_csv(masks: Sequence[Mask], calibration: Optional[Calibration], path) -> int:
    """Write one row of measurements per mask. Returns the number of rows written."""
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for mask in masks:
            m = compute_metrics(mask, calibration)
            writer.writerow([
                mask.id,
                mask.name,
                mask.type.value,
                _fmt(m.area_m2),
                _fmt(m.perimeter_m),
                _fmt(m.length_m),
                _fmt(m.band_area_m2),
                m.provenance.value,
                m.confidence.value if m.confidence else '',
                json.dumps(mask.metadata, sort_keys=True),
            ])
    logger.info("exported %d masks to %s", len(masks), path)
    return len(masks)


def _point(d) -> Point2D:
    return Point2D(float(d['x']), float(d['y']))


def sample_to_dict(sample: CalibrationSample) -> Dict[str, Any]:
    return {
        'id': sample.id,
        'a': {'x': sample.a.x, 'y': sample.a.y},
        'b': {'x': sample.b.x, 'y': sample.b.y},
        'meters': sample.meters,
        'pixels_per_meter': sample.pixels_per_meter,
        'created_at': sample.created_at,
    }


def sample_from_dict(d: Dict[str, Any]) -> CalibrationSample:
    return CalibrationSample(
        id=d['id'],
        a=_point(d['a']),
        b=_point(d['b']),
        meters=float(d['meters']),
        pixels_per_meter=float(d['pixels_per_meter']),
        created_at=d.get('created_at', ''),
    )


def calibration_to_dict(calibration: Calibration) -> Dict[str, Any]:
    return {
        'pixels_per_meter': calibration.pixels_per_meter,
        'samples': [sample_to_dict(s) for s in calibration.samples],
    }


def calibration_from_dict(d: Dict[str, Any]) -> Calibration:
    samples = tuple(sample_from_dict(s) for s in d.get('samples', ()))
    ppm = d.get('pixels_per_meter')
    return Calibration(pixels_per_meter=float(ppm) if ppm is not None else None, samples=samples)


def _mask_point_to_dict(p: MaskPoint) -> Dict[str, Any]:
    out: Dict[str, Any] = {'x': p.x, 'y': p.y, 'kind': p.kind.value}
    if p.kind is VertexKind.SMOOTH:
        out['h1'] = {'x': p.h1.x, 'y': p.h1.y}
        out['h2'] = {'x': p.h2.x, 'y': p.h2.y}
    return out


def _mask_point_from_dict(d: Dict[str, Any]) -> MaskPoint:
    kind = VertexKind(d.get('kind', VertexKind.CORNER.value))
    if kind is VertexKind.SMOOTH:
        return MaskPoint(float(d['x']), float(d['y']), kind, _point(d['h1']), _point(d['h2']))
    return MaskPoint(float(d['x']), float(d['y']))


def mask_to_dict(mask: Mask) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        'id': mask.id,
        'type': mask.type.value,
        'name': mask.name,
        'points': [_mask_point_to_dict(p) for p in mask.points],
        'band_height_m': mask.band_height_m,
        'material_id': mask.material_id,
        'metadata': dict(mask.metadata),
    }
    cc = mask.custom_calibration
    if cc is not None:
        out['custom_calibration'] = {
            'estimated_length_m': cc.estimated_length_m,
            'estimated_width_m': cc.estimated_width_m,
            'method': cc.method.value,
            'confidence': cc.confidence.value if cc.confidence else None,
        }
    return out


def mask_from_dict(d: Dict[str, Any]) -> Mask:
    cc = d.get('custom_calibration')
    custom = None
    if cc:
        custom = CustomCalibration(
            estimated_length_m=float(cc['estimated_length_m']),
            estimated_width_m=cc.get('estimated_width_m'),
            method=CalibrationMethod(cc.get('method', CalibrationMethod.ESTIMATED.value)),
            confidence=Confidence(cc['confidence']) if cc.get('confidence') else None,
        )
    return Mask(
        id=d['id'],
        type=MaskType(d['type']),
        points=tuple(_mask_point_from_dict(p) for p in d['points']),
        band_height_m=d.get('band_height_m'),
        material_id=d.get('material_id'),
        custom_calibration=custom,
        name=d.get('name', ''),
        metadata=dict(d.get('metadata') or {}),
    )
