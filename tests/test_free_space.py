import sys

import pytest

from frenetpath.free_space import (
    DEFAULT_LOWER_BOUND,
    DEFAULT_UPPER_BOUND,
    BoundaryPoint,
    FreeSpace,
)
from frenetpath.geometry import XYPosition
from frenetpath.reference_line import ReferenceLine
from frenetpath.spline import Spline


def _straight_line(length=20):
    s = [float(i) for i in range(length + 1)]
    x_s, y_s = Spline(), Spline()
    x_s.set_points(s, s)
    y_s.set_points(s, [0.0] * len(s))
    line = ReferenceLine()
    line.initialize(x_s, y_s, float(length))
    return line


def _corridor(upper=3.0, lower=-2.0, widen=0.0):
    points = [
        BoundaryPoint(
            s=float(i),
            ub_xy=XYPosition(float(i), upper + widen * i),
            lb_xy=XYPosition(float(i), lower),
        )
        for i in range(21)
    ]
    return FreeSpace(_straight_line(), points)


def test_bounds_for_circle_in_corridor():
    lower, upper = _corridor().get_l_bound_for_circle(10.0, 1.0)
    assert upper == pytest.approx(2.0)
    assert lower == pytest.approx(-1.0)


def test_bounds_shrink_as_radius_grows():
    space = _corridor()
    small = space.get_l_bound_for_circle(10.0, 0.5)
    big = space.get_l_bound_for_circle(10.0, 1.5)
    assert big[1] < small[1]
    assert big[0] > small[0]


def test_out_of_range_returns_none():
    space = _corridor()
    assert space.get_l_bound_for_circle(-1.0, 1.0) is None
    assert space.get_l_bound_for_circle(25.0, 1.0) is None


def test_without_boundary_points_uses_defaults():
    space = FreeSpace(_straight_line())
    assert space.get_l_bound_for_circle(5.0, 1.0) == (DEFAULT_LOWER_BOUND, DEFAULT_UPPER_BOUND)


def test_missing_reference_line_raises():
    with pytest.raises(RuntimeError):
        FreeSpace().get_l_bound_for_circle(1.0, 1.0)


def test_update_circle_bounds_covers_points():
    space = _corridor()
    space.update_circle_bounds(1.0)
    assert [b.s for b in space.circle_bounds] == [b.s for b in space.boundary_points]
    mid = space.get_l_bound_for_circle(10.0, 1.0)
    assert space.circle_bounds[10].lb_l == pytest.approx(mid[0])
    assert space.circle_bounds[10].ub_l == pytest.approx(mid[1])


def test_circle_bound_interpolates_between_neighbours():
    space = _corridor(widen=0.1)
    space.update_circle_bounds(0.5)
    before = space.circle_bounds[10]
    after = space.circle_bounds[11]
    bound = space.get_circle_bound(10.5)
    assert bound.s == 10.5
    assert min(before.ub_l, after.ub_l) <= bound.ub_l <= max(before.ub_l, after.ub_l)
    assert bound.ub_l == pytest.approx((before.ub_l + after.ub_l) / 2)


def test_circle_bound_at_first_point_copies_it():
    space = _corridor()
    space.update_circle_bounds(1.0)
    bound = space.get_circle_bound(0.0)
    assert bound == space.circle_bounds[0]
    assert bound is not space.circle_bounds[0]


def test_circle_bound_outside_range_is_default():
    space = _corridor()
    space.update_circle_bounds(1.0)
    bound = space.get_circle_bound(30.0)
    assert bound.s == 30.0
    assert bound.lb_l == sys.float_info.min
    assert bound.ub_l == sys.float_info.max


def test_circle_bound_without_precomputation_is_default():
    bound = _corridor().get_circle_bound(5.0)
    assert bound.ub_l == sys.float_info.max