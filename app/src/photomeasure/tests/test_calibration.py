import pytest

from photomeasure.core.errors import CalibrationError, CalibrationRejection, InvalidPointError
from photomeasure.core.model import Calibration, CalibrationSample, Confidence, PhotoSpace, Point2D as P
from photomeasure.features.calibration.calibrate import (
    CalState,
    CalibrationSession,
    EdgeMeasurement,
    adjust_point,
    calibration_statistics,
    cancel_calibration,
    commit_calibration,
    confidence_level,
    delete_sample,
    edge_weighted_pixels_per_meter,
    enter_length,
    format_pixels_per_meter,
    meters_to_pixels,
    pixels_to_meters,
    place_point,
    square_pixels_to_square_meters,
    start_calibration,
    update_preview,
)


def _ready(a, b, meters=None):
    s = place_point(place_point(start_calibration(), a), b)
    if meters is not None:
        s = enter_length(s, meters)
    return s


def _sample(ppm, sid):
    return CalibrationSample(sid, P(0, 0), P(ppm, 0), 1.0, ppm)


def test_protocol_states():
    s = start_calibration()
    assert s.state is CalState.PLACING_A
    s = place_point(s, P(0, 0))
    assert s.state is CalState.PLACING_B and s.a == P(0, 0)
    s = update_preview(s, P(250, 0))
    assert s.preview == P(250, 0)
    s = place_point(s, P(500, 0))
    assert s.state is CalState.LENGTH_ENTRY and s.b == P(500, 0)
    assert s.preview is None


def test_commit_is_deterministic():
    session, cal, sample = commit_calibration(_ready(P(0, 0), P(500, 0), 5), Calibration())
    assert sample.pixels_per_meter == pytest.approx(100)
    assert cal.pixels_per_meter == pytest.approx(100)
    assert cal.samples == (sample,)
    assert session.state is CalState.IDLE
    assert session.a is None and session.b is None


def test_meters_argument_overrides_entered_length():
    _, cal, _ = commit_calibration(_ready(P(0, 0), P(500, 0), 5), Calibration(), meters=2.5)
    assert cal.pixels_per_meter == pytest.approx(200)


@pytest.mark.parametrize("meters", [0, -3, None, float("nan")])
def test_non_positive_length_is_rejected(meters):
    session = _ready(P(0, 0), P(500, 0))
    cal = Calibration()
    with pytest.raises(CalibrationError) as exc:
        commit_calibration(session, cal, meters=meters)
    assert exc.value.reason is CalibrationRejection.NON_POSITIVE_LENGTH
    assert session.state is CalState.LENGTH_ENTRY
    assert cal.samples == ()


def test_short_reference_is_rejected():
    session = _ready(P(0, 0), P(5, 0), 1)
    previous = Calibration(50.0, (_sample(50.0, "s1"),))
    with pytest.raises(CalibrationError) as exc:
        commit_calibration(session, previous)
    assert exc.value.reason is CalibrationRejection.REFERENCE_TOO_SHORT
    assert session.state is CalState.LENGTH_ENTRY
    assert previous.pixels_per_meter == 50.0
    assert len(previous.samples) == 1


def test_commit_before_points_is_not_ready():
    with pytest.raises(CalibrationError) as exc:
        commit_calibration(start_calibration(), Calibration(), meters=1)
    assert exc.value.reason is CalibrationRejection.NOT_READY
    with pytest.raises(CalibrationError):
        enter_length(start_calibration(), 3)


def test_clicks_outside_placement_states_are_ignored():
    idle = CalibrationSession()
    assert place_point(idle, P(1, 1)) is idle
    ready = _ready(P(0, 0), P(100, 0))
    assert place_point(ready, P(7, 7)) is ready
    assert update_preview(ready, P(7, 7)) is ready


def test_non_finite_points_are_rejected():
    s = start_calibration()
    with pytest.raises(InvalidPointError):
        place_point(s, P(float("nan"), 0))
    with pytest.raises(InvalidPointError):
        place_point(s, P(float("inf"), 0), PhotoSpace(1.0, 0, 0, 100, 100))


def test_points_are_mapped_from_screen_space():
    space = PhotoSpace(2.0, 10.0, 10.0, 1000, 1000)
    s = place_point(start_calibration(), P(210, 110), space)
    assert s.a == P(100, 50)


def test_adjust_point_in_length_entry():
    s = adjust_point(_ready(P(0, 0), P(100, 0)), "b", P(300, 0))
    _, cal, _ = commit_calibration(s, Calibration(), meters=3)
    assert cal.pixels_per_meter == pytest.approx(100)
    with pytest.raises(ValueError):
        adjust_point(s, "c", P(1, 1))


def test_cancel_discards_transient_record():
    s = cancel_calibration(_ready(P(0, 0), P(100, 0), 2))
    assert s == CalibrationSession()


def test_latest_sample_is_active_and_delete_falls_back():
    cal = Calibration()
    _, cal, s1 = commit_calibration(_ready(P(0, 0), P(100, 0)), cal, meters=1, sample_id="s1")
    _, cal, s2 = commit_calibration(_ready(P(0, 0), P(300, 0)), cal, meters=1, sample_id="s2")
    assert cal.pixels_per_meter == pytest.approx(300)
    cal = delete_sample(cal, "s2")
    assert cal.pixels_per_meter == pytest.approx(100)
    assert cal.samples == (s1,)
    cal = delete_sample(cal, "s1")
    assert cal.pixels_per_meter is None
    assert not cal.is_calibrated
    with pytest.raises(KeyError):
        delete_sample(cal, "s1")


def test_statistics_and_outliers():
    stats = calibration_statistics([_sample(v, str(i)) for i, v in enumerate([100, 101, 99])])
    assert stats.mean == pytest.approx(100)
    assert stats.confidence is Confidence.HIGH

    samples = [_sample(100.0, f"s{i}") for i in range(10)] + [_sample(200.0, "far")]
    stats = calibration_statistics(samples)
    assert len(stats.used) == 10
    assert [s.id for s in stats.outliers] == ["far"]
    assert stats.mean == pytest.approx(100)
    assert stats.stdev_pct == pytest.approx(0)
    assert calibration_statistics([]) is None


@pytest.mark.parametrize("pct,level", [
    (None, Confidence.HIGH), (1.0, Confidence.HIGH), (2.0, Confidence.MEDIUM),
    (3.0, Confidence.MEDIUM), (3.1, Confidence.LOW),
])
def test_confidence_level(pct, level):
    assert confidence_level(pct) is level


def test_formatting_and_conversions():
    assert format_pixels_per_meter(100) == "1px = 1.0cm"
    assert format_pixels_per_meter(0.5) == "1px = 2.00m"
    assert format_pixels_per_meter(1000) == "1px = 1.0mm"
    assert pixels_to_meters(250, 100) == 2.5
    assert square_pixels_to_square_meters(30000, 100) == 3.0
    assert meters_to_pixels(1.5, 100) == 150


def test_edge_weighted_scale():
    edges = [
        EdgeMeasurement(P(0, 0), P(100, 0), 1.0),
        EdgeMeasurement(P(0, 0), P(300, 0), 2.0),
    ]
    assert edge_weighted_pixels_per_meter(edges) == pytest.approx(400 / 3)
    assert edge_weighted_pixels_per_meter([]) is None
