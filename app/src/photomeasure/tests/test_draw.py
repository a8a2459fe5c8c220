import pytest

from photomeasure.core.config import EngineConfig
from photomeasure.core.errors import InvalidPointError, PathError, PathRejection
from photomeasure.core.model import MaskType, PhotoSpace, Point2D as P, as_points
from photomeasure.features.editing.draw import (
    Tool,
    append_point,
    cancel_path,
    commit_path,
    is_closing_click,
    pop_point,
    start_path,
    switch_tool,
)
from photomeasure.features.editing.snapping import SnapRule, SnapSettings

RECT = [P(100, 100), P(300, 100), P(300, 250), P(100, 250)]


def _capture(tool, pts, freehand=False):
    cap = start_path(tool, pts[0], freehand=freehand)
    for p in pts[1:]:
        cap, _ = append_point(cap, p)
    return cap


def test_area_commit_keeps_click_points():
    mask = commit_path(_capture(Tool.AREA, RECT), mask_id="m1")
    assert mask.id == "m1"
    assert mask.type is MaskType.AREA
    assert as_points(mask.points) == RECT
    assert mask.band_height_m is None


def test_area_needs_three_points():
    with pytest.raises(PathError) as exc:
        commit_path(_capture(Tool.AREA, RECT[:2]))
    assert exc.value.reason is PathRejection.TOO_FEW_POINTS


def test_degenerate_and_self_intersecting_areas_are_rejected():
    with pytest.raises(PathError) as exc:
        commit_path(_capture(Tool.AREA, [P(0, 0), P(50, 0), P(100, 0)]))
    assert exc.value.reason is PathRejection.DEGENERATE_AREA
    with pytest.raises(PathError) as exc:
        commit_path(_capture(Tool.AREA, [P(0, 0), P(100, 100), P(100, 0), P(0, 100)]))
    assert exc.value.reason is PathRejection.SELF_INTERSECTING


def test_linear_and_waterline_commit():
    line = commit_path(_capture(Tool.LINEAR, [P(0, 0), P(300, 0)]))
    assert line.type is MaskType.LINEAR
    band = commit_path(_capture(Tool.WATERLINE, [P(0, 0), P(300, 0), P(300, 200)]))
    assert band.type is MaskType.WATERLINE_BAND
    assert band.band_height_m == pytest.approx(0.15)
    custom = commit_path(_capture(Tool.WATERLINE, [P(0, 0), P(300, 0)]), band_height_m=0.3)
    assert custom.band_height_m == 0.3


def test_zero_length_linear_is_rejected():
    with pytest.raises(PathError) as exc:
        commit_path(_capture(Tool.LINEAR, [P(10, 10), P(10, 10)]))
    assert exc.value.reason is PathRejection.ZERO_LENGTH
    with pytest.raises(PathError) as exc:
        commit_path(start_path(Tool.LINEAR, P(10, 10)))
    assert exc.value.reason is PathRejection.TOO_FEW_POINTS


def test_no_capture_in_progress():
    with pytest.raises(PathError) as exc:
        append_point(None, P(1, 1))
    assert exc.value.reason is PathRejection.NOT_CAPTURING
    with pytest.raises(PathError):
        commit_path(None)


def test_freehand_is_smoothed_then_simplified():
    zig = [P(i * 10, (i % 2) * 4) for i in range(21)]
    free = commit_path(_capture(Tool.LINEAR, zig, freehand=True))
    assert len(free.points) == 2
    clicked = commit_path(_capture(Tool.LINEAR, zig))
    assert len(clicked.points) > 2


def test_simplification_can_be_disabled():
    pts = [P(0, 0), P(50, 0.5), P(100, 0)]
    cfg = EngineConfig(simplify_epsilon_px=0)
    assert len(commit_path(_capture(Tool.LINEAR, pts), cfg).points) == 3
    assert len(commit_path(_capture(Tool.LINEAR, pts)).points) == 2


def test_pop_point_keeps_start():
    cap = _capture(Tool.AREA, RECT[:2])
    cap = pop_point(cap)
    assert cap.points == (RECT[0],)
    assert pop_point(cap).points == (RECT[0],)


def test_cancel_and_switch_tool_discard_capture():
    cap = _capture(Tool.AREA, RECT)
    assert cancel_path(cap) is None
    assert switch_tool(cap, Tool.LINEAR) is None


def test_closing_click():
    space = PhotoSpace(2.0, 0.0, 0.0, 1000, 1000)
    cap = _capture(Tool.AREA, RECT[:3])
    assert is_closing_click(cap, P(205, 205), space)
    assert not is_closing_click(cap, P(230, 200), space)
    assert not is_closing_click(_capture(Tool.AREA, RECT[:2]), P(200, 200), space)
    assert not is_closing_click(_capture(Tool.LINEAR, RECT[:3]), P(200, 200), space)


def test_append_through_snapping_and_screen_space():
    cap = start_path(Tool.LINEAR, P(0, 0))
    cap, snap = append_point(cap, P(100, 5), snap=SnapSettings(orthogonal=True))
    assert snap.rule is SnapRule.ORTHOGONAL
    assert cap.points[-1] == P(100, 0)

    space = PhotoSpace(2.0, 10.0, 0.0, 500, 500)
    cap, snap = append_point(cap, P(410, 100), space)
    assert snap is None
    assert cap.points[-1] == P(200, 50)


def test_non_finite_points_never_enter_a_capture():
    with pytest.raises(InvalidPointError):
        start_path(Tool.AREA, P(float("nan"), 1))
    cap = start_path(Tool.AREA, P(1, 1))
    with pytest.raises(InvalidPointError):
        append_point(cap, P(1, float("inf")))
    assert cap.points == (P(1, 1),)


def test_angle_snap_cannot_leave_the_photo():
    space = PhotoSpace(1.0, 0.0, 0.0, 1000, 800)
    cap = start_path(Tool.LINEAR, P(0, 5), space)
    cap, snap = append_point(cap, P(10, 0), space, snap=SnapSettings(angle=True))
    assert snap.rule is SnapRule.ANGLE
    assert cap.points[-1].x == pytest.approx(125 ** 0.5 * 3 ** 0.5 / 2)
    assert cap.points[-1].y == 0


def test_grid_snap_cannot_leave_the_photo():
    space = PhotoSpace(1.0, 0.0, 0.0, 1015, 800)
    cap = start_path(Tool.AREA, P(500, 500), space)
    cap, snap = append_point(cap, P(1015, 500), space, snap=SnapSettings(grid=True))
    assert snap.rule is SnapRule.GRID
    assert cap.points[-1] == P(1015, 500)
    assert all(0 <= p.x <= 1015 and 0 <= p.y <= 800 for p in cap.points)


def test_area_commit_drops_collinear_start_vertex():
    outline = [P(200, 100), P(300, 100), P(300, 250), P(100, 250), P(100, 100)]
    mask = commit_path(_capture(Tool.AREA, outline))
    assert as_points(mask.points) == [P(300, 100), P(300, 250), P(100, 250), P(100, 100)]
