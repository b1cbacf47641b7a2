"""A reference line parameterised by arc length, with Frenet projections."""

from __future__ import annotations

import math

from frenetpath.geometry import PathPoint, SLPosition, XYPosition, constrain_angle, distance
from frenetpath.spline import Spline

_PROJECTION_GRID = 1.0
_NEWTON_MAX_ITER = 20
_NEWTON_TOLERANCE = 1e-5


class ReferenceLine:
    """Planar curve x(s), y(s) defined on [0, length]."""

    def __init__(self) -> None:
        self._x_s = Spline()
        self._y_s = Spline()
        self._length = 0.0
        self._is_initialized = False

    def initialize(self, x_s: Spline, y_s: Spline, length: float) -> None:
        """Set the splines describing the line and its usable length."""
        self._x_s = x_s
        self._y_s = y_s
        self._length = float(length)
        self._is_initialized = True

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def x_s(self) -> Spline:
        return self._x_s

    @property
    def y_s(self) -> Spline:
        return self._y_s

    @property
    def length(self) -> float:
        return self._length

    def get_reference_point(self, s: float) -> PathPoint:
        """Point, heading and curvature at s, with s clamped to the line."""
        s = max(min(s, self._length), 0.0)
        x_d1 = self._x_s.deriv(1, s)
        y_d1 = self._y_s.deriv(1, s)
        x_d2 = self._x_s.deriv(2, s)
        y_d2 = self._y_s.deriv(2, s)
        return PathPoint(
            x=self._x_s(s),
            y=self._y_s(s),
            theta=math.atan2(y_d1, x_d1),
            kappa=(x_d1 * y_d2 - y_d1 * x_d2) / (x_d1**2 + y_d1**2) ** 1.5,
        )

    def get_xy_by_sl(self, sl: SLPosition) -> XYPosition:
        """Convert a Frenet position to Cartesian coordinates."""
        ref_pt = self.get_reference_point(sl.s)
        norm = constrain_angle(ref_pt.theta + math.pi / 2)
        return XYPosition(ref_pt.x + sl.l * math.cos(norm), ref_pt.y + sl.l * math.sin(norm))

    def get_projection(self, xy: XYPosition) -> SLPosition:
        """Project a point onto the line: coarse grid search, then Newton refinement."""
        tmp_s = 0.0
        min_dis_s = 0.0
        min_dis = math.inf
        while tmp_s <= self._length:
            tmp_dis = distance(XYPosition(self._x_s(tmp_s), self._y_s(tmp_s)), xy)
            if tmp_dis < min_dis:
                min_dis = tmp_dis
                min_dis_s = tmp_s
            tmp_s += _PROJECTION_GRID
        return self.get_projection_by_newton(xy, min_dis_s)

    def get_projection_by_newton(self, xy: XYPosition, hint_s: float) -> SLPosition:
        """Project a point onto the line with Newton's method started at hint_s."""
        hint_s = min(hint_s, self._length)
        cur_s = prev_s = hint_s
        x = y = dx = dy = 0.0
        for _ in range(_NEWTON_MAX_ITER):
            x = self._x_s(cur_s)
            y = self._y_s(cur_s)
            dx = self._x_s.deriv(1, cur_s)
            dy = self._y_s.deriv(1, cur_s)
            ddx = self._x_s.deriv(2, cur_s)
            ddy = self._y_s.deriv(2, cur_s)
            jac = (x - xy.x) * dx + (y - xy.y) * dy
            hess = dx * dx + (x - xy.x) * ddx + dy * dy + (y - xy.y) * ddy
            cur_s -= jac / hess
            if abs(cur_s - prev_s) < _NEWTON_TOLERANCE:
                break
            prev_s = cur_s

        cur_s = min(cur_s, self._length)
        heading_len = math.hypot(dx, dy)
        lateral = -(xy.x - x) * dy / heading_len + (xy.y - y) * dx / heading_len
        return SLPosition(cur_s, lateral)