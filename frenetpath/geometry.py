"""Planar positions, path points and basic coordinate helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass
class XYPosition:
    """Cartesian position."""

    x: float = 0.0
    y: float = 0.0


Vector = XYPosition


@dataclass
class SLPosition:
    """Frenet position: arc length s and lateral offset l."""

    s: float = 0.0
    l: float = 0.0


@dataclass
class PathPoint(XYPosition, SLPosition):
    """A point on a path in both Cartesian and Frenet terms."""

    theta: float = 0.0
    kappa: float = 0.0
    dkappa: float = 0.0
    theta_diff: float = 0.0
    dl: float = 0.0
    ddl: float = 0.0


def distance(p1: XYPosition, p2: XYPosition) -> float:
    """Euclidean distance between two positions."""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def constrain_angle(angle: float) -> float:
    """Wrap an angle into the range [-pi, pi]."""
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle < -math.pi:
        angle += 2 * math.pi
    return angle


def local_to_global(ref: PathPoint, target: PathPoint) -> PathPoint:
    """Express a point given in ref's local frame in the global frame."""
    cos_t, sin_t = math.cos(ref.theta), math.sin(ref.theta)
    return replace(
        target,
        x=target.x * cos_t - target.y * sin_t + ref.x,
        y=target.x * sin_t + target.y * cos_t + ref.y,
        theta=ref.theta + target.theta,
    )