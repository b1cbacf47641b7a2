"""Lateral free space along a reference line and circle clearance bounds."""

from __future__ import annotations

import math
import sys
from bisect import bisect_left
from dataclasses import dataclass, field, replace

from frenetpath.geometry import XYPosition
from frenetpath.reference_line import ReferenceLine

DEFAULT_LOWER_BOUND = -20.0
DEFAULT_UPPER_BOUND = 20.0


@dataclass
class BoundaryPoint:
    """Lateral limits of the free space at arc length s."""

    s: float = 0.0
    lb_l: float = sys.float_info.min
    ub_l: float = sys.float_info.max
    lb_xy: XYPosition = field(default_factory=XYPosition)
    ub_xy: XYPosition = field(default_factory=XYPosition)


def _by_s(point: BoundaryPoint) -> float:
    return point.s


class FreeSpace:
    """Boundary points sorted by s, tied to a reference line."""

    def __init__(
        self,
        reference_line: ReferenceLine | None = None,
        boundary_points: list[BoundaryPoint] | None = None,
    ) -> None:
        self.reference_line = reference_line
        self.boundary_points: list[BoundaryPoint] = list(boundary_points or [])
        self._circle_bounds: list[BoundaryPoint] = []
        self.is_initialized = False

    @property
    def circle_bounds(self) -> list[BoundaryPoint]:
        return self._circle_bounds

    def get_l_bound_for_circle(self, s: float, r: float) -> tuple[float, float] | None:
        """Lateral (lower, upper) limits for a circle of radius r centred on the line at s.

        Returns None when s lies outside the reference line; callers then fall
        back to DEFAULT_LOWER_BOUND and DEFAULT_UPPER_BOUND.
        """
        if self.reference_line is None:
            raise RuntimeError("free space has no reference line")
        if s < 0.0 or s > self.reference_line.length:
            return None
        lower = DEFAULT_LOWER_BOUND
        upper = DEFAULT_UPPER_BOUND
        ref_pt = self.reference_line.get_reference_point(s)
        norm_x = math.cos(ref_pt.theta + math.pi / 2)
        norm_y = math.sin(ref_pt.theta + math.pi / 2)
        start = bisect_left(self.boundary_points, s - r, key=_by_s)
        end = bisect_left(self.boundary_points, s + r, key=_by_s)

        for point in self.boundary_points[start:end]:
            to_ub_x = point.ub_xy.x - ref_pt.x
            to_ub_y = point.ub_xy.y - ref_pt.y
            ub_dist = abs(to_ub_x * norm_y - to_ub_y * norm_x)
            if ub_dist < r:
                bound_l = to_ub_x * norm_x + to_ub_y * norm_y
                upper = min(upper, bound_l - math.sqrt(r * r - ub_dist * ub_dist))
            to_lb_x = point.lb_xy.x - ref_pt.x
            to_lb_y = point.lb_xy.y - ref_pt.y
            lb_dist = abs(to_lb_x * norm_y - to_lb_y * norm_x)
            if lb_dist < r:
                bound_l = to_lb_x * norm_x + to_lb_y * norm_y
                lower = max(lower, bound_l + math.sqrt(r * r - lb_dist * lb_dist))
        return lower, upper

    def update_circle_bounds(self, r: float) -> None:
        """Precompute circle bounds of radius r at every boundary point."""
        self._circle_bounds = []
        for bound in self.boundary_points:
            limits = self.get_l_bound_for_circle(bound.s, r)
            if limits is not None:
                self._circle_bounds.append(
                    BoundaryPoint(s=bound.s, lb_l=limits[0], ub_l=limits[1])
                )

    def get_circle_bound(self, s: float) -> BoundaryPoint:
        """Circle bound at s, linearly interpolated between precomputed bounds."""
        ret = BoundaryPoint(s=s)
        bounds = self._circle_bounds
        if not bounds or s < bounds[0].s or s > bounds[-1].s:
            return ret
        idx = bisect_left(bounds, s, key=_by_s)
        if idx == 0:
            return replace(bounds[0])
        if idx < len(bounds):
            prev, cur = bounds[idx - 1], bounds[idx]
            span = cur.s - prev.s
            cur_share = (s - prev.s) / span
            prev_share = (cur.s - s) / span
            ret.lb_l = cur_share * cur.lb_l + prev_share * prev.lb_l
            ret.ub_l = cur_share * cur.ub_l + prev_share * prev.ub_l
        return ret