import logging

import pytest

from photomeasure.core.model import (
    Calibration,
    CalibrationSample,
    Confidence,
    CustomCalibration,
    Mask,
    MaskType,
    Point2D as P,
    as_mask_points,
)
from photomeasure.features.measurement.costing import (
    Material,
    MaterialUnit,
    apply_wastage,
    cost_for_mask,
    project_totals,
)
from photomeasure.features.measurement.metrics import Provenance, compute_metrics

RECT = [P(100, 100), P(300, 100), P(300, 250), P(100, 250)]
CAL = Calibration(100.0, (CalibrationSample("s1", P(0, 0), P(300, 0), 3.0, 100.0),))


def _mask(mtype, pts, **kw):
    return Mask(kw.pop("id", "m"), mtype, as_mask_points(pts), **kw)


def test_area_metrics():
    m = compute_metrics(_mask(MaskType.AREA, RECT), CAL)
    assert m.area_px == 30000
    assert m.area_m2 == pytest.approx(3.0)
    assert m.perimeter_m == pytest.approx(7.0)
    assert m.provenance is Provenance.GLOBAL
    assert m.confidence is Confidence.HIGH


def test_linear_and_band_metrics():
    path = [P(0, 0), P(300, 0), P(300, 400)]
    line = compute_metrics(_mask(MaskType.LINEAR, path), CAL)
    assert line.length_m == pytest.approx(7.0)
    assert line.area_m2 is None
    band = compute_metrics(_mask(MaskType.WATERLINE_BAND, path, band_height_m=0.15), CAL)
    assert band.perimeter_m == pytest.approx(7.0)
    assert band.band_area_m2 == pytest.approx(1.05)


def test_uncalibrated_returns_pixels_only():
    for cal in (None, Calibration()):
        m = compute_metrics(_mask(MaskType.AREA, RECT), cal)
        assert m.provenance is Provenance.UNCALIBRATED
        assert not m.calibrated
        assert m.area_px == 30000
        assert m.area_m2 is None and m.perimeter_m is None


def test_custom_calibration_takes_priority():
    cc = CustomCalibration(4.0, 3.0)
    m = compute_metrics(_mask(MaskType.AREA, RECT, custom_calibration=cc), CAL)
    assert m.area_m2 == pytest.approx(12.0)
    assert m.perimeter_m == pytest.approx(14.0)
    assert m.provenance is Provenance.MASK_SPECIFIC
    assert m.confidence is Confidence.MEDIUM


def test_length_only_override_scales_by_long_side():
    pts = [P(0, 0), P(200, 0), P(200, 100), P(0, 100)]
    m = compute_metrics(_mask(MaskType.AREA, pts, custom_calibration=CustomCalibration(4.0)), None)
    assert m.area_m2 == pytest.approx(8.0)
    assert m.provenance is Provenance.MASK_SPECIFIC


def test_linear_override_uses_estimated_length():
    m = compute_metrics(_mask(MaskType.LINEAR, [P(0, 0), P(10, 0)],
                              custom_calibration=CustomCalibration(6.5)), CAL)
    assert m.length_m == 6.5


def test_spread_samples_lower_global_confidence():
    cal = Calibration(110.0, (
        CalibrationSample("a", P(0, 0), P(100, 0), 1.0, 100.0),
        CalibrationSample("b", P(0, 0), P(110, 0), 1.0, 110.0),
    ))
    assert compute_metrics(_mask(MaskType.AREA, RECT), cal).confidence is Confidence.LOW


def test_costing_with_wastage():
    assert apply_wastage(10, 10) == pytest.approx(11)
    tile = Material("tile", "Tile", MaterialUnit.SQUARE_METER, price=10.0, wastage_pct=10.0)
    line = cost_for_mask(_mask(MaskType.AREA, RECT, material_id="tile"), CAL, tile)
    assert line.quantity == pytest.approx(3.0)
    assert line.quantity_effective == pytest.approx(3.3)
    assert line.cost == pytest.approx(33.0)
    assert line.has_cost_data
    bare = cost_for_mask(_mask(MaskType.AREA, RECT), CAL, None)
    assert bare.material_name == "No Material"
    assert not bare.has_cost_data


def test_linear_metre_pricing_uses_perimeter_for_areas():
    edging = Material("edge", "Edging", MaterialUnit.LINEAR_METER, price=5.0)
    line = cost_for_mask(_mask(MaskType.AREA, RECT), CAL, edging)
    assert line.cost == pytest.approx(35.0)


def test_project_totals(caplog):
    materials = {"tile": Material("tile", "Tile", price=10.0)}
    masks = [
        _mask(MaskType.AREA, RECT, id="a", material_id="tile"),
        _mask(MaskType.LINEAR, [P(0, 0), P(300, 0)], id="b"),
        _mask(MaskType.WATERLINE_BAND, [P(0, 0), P(200, 0)], id="c", band_height_m=0.5),
    ]
    totals = project_totals(masks, CAL, materials)
    assert totals.total_area_m2 == pytest.approx(4.0)
    assert totals.total_length_m == pytest.approx(5.0)
    assert totals.total_cost == pytest.approx(30.0)
    assert len(totals.lines) == 3
    assert totals.uncalibrated == 0

    caplog.set_level(logging.WARNING)
    uncal = project_totals(masks, None, materials)
    assert uncal.uncalibrated == 3
    assert uncal.total_cost == 0
    assert "uncalibrated" in caplog.text
