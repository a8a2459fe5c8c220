import pytest

from photomeasure.core.model import (
    CalibrationMethod,
    Confidence,
    CustomCalibration,
    Mask,
    MaskType,
    Point2D as P,
    as_mask_points,
)
from photomeasure.features.editing.masks import (
    add_mask,
    attach_material,
    clear_custom_calibration,
    delete_mask,
    detach_material,
    find_mask,
    replace_mask,
    set_custom_calibration,
)


def _mask(mid):
    return Mask(mid, MaskType.AREA, as_mask_points([P(0, 0), P(10, 0), P(10, 10)]))


def test_add_find_and_delete():
    masks = add_mask(add_mask((), _mask("a")), _mask("b"))
    assert [m.id for m in masks] == ["a", "b"]
    assert find_mask(masks, "b").id == "b"
    with pytest.raises(ValueError):
        add_mask(masks, _mask("a"))
    masks = delete_mask(masks, "a")
    assert [m.id for m in masks] == ["b"]
    with pytest.raises(KeyError):
        delete_mask(masks, "a")


def test_replace_keeps_order():
    masks = (_mask("a"), _mask("b"), _mask("c"))
    edited = Mask("b", MaskType.LINEAR, as_mask_points([P(0, 0), P(5, 5)]))
    out = replace_mask(masks, edited)
    assert [m.id for m in out] == ["a", "b", "c"]
    assert out[1].type is MaskType.LINEAR
    with pytest.raises(KeyError):
        replace_mask(masks, _mask("zzz"))


def test_material_attach_and_detach():
    masks = (_mask("a"),)
    masks = attach_material(masks, "a", "tile-1")
    assert masks[0].material_id == "tile-1"
    assert detach_material(masks, "a")[0].material_id is None


def test_custom_calibration_set_and_clear():
    cc = CustomCalibration(4.0, 3.0, CalibrationMethod.REFERENCE)
    masks = set_custom_calibration((_mask("a"),), "a", cc)
    assert masks[0].custom_calibration.confidence is Confidence.HIGH
    assert clear_custom_calibration(masks, "a")[0].custom_calibration is None


def test_custom_calibration_validation():
    assert CustomCalibration(2.0).confidence is Confidence.MEDIUM
    assert CustomCalibration(2.0, method=CalibrationMethod.AUTO).confidence is Confidence.LOW
    with pytest.raises(ValueError):
        CustomCalibration(0)
    with pytest.raises(ValueError):
        CustomCalibration(1.0, -2.0)
