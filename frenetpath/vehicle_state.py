"""Planning states, bounds around the vehicle and the vehicle's start/target state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence


@dataclass
class State:
    """Pose with curvature, arc length, speed and acceleration."""

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0
    k: float = 0.0
    s: float = 0.0
    v: float = 0.0
    a: float = 0.0
    d_k: float = 0.0


@dataclass
class SlState(State):
    """State that also carries its Frenet offset and heading difference."""

    l: float = 0.0
    d_heading: float = 0.0


@dataclass
class Circle:
    """Circle given by centre and radius."""

    x: float = 0.0
    y: float = 0.0
    r: float = 0.0


@dataclass
class SingleBound:
    """Left (ub) and right (lb) lateral limits at a point of the vehicle."""

    ub: float = 0.0
    lb: float = 0.0
    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    def set(self, bounds: Sequence[float], center: State) -> None:
        """Take (upper, lower) from bounds and the position from center."""
        self.ub = bounds[0]
        self.lb = bounds[1]
        self.x = center.x
        self.y = center.y
        self.heading = center.heading


@dataclass
class VehicleStateBound:
    """Bounds at the front, rear and centre of the vehicle."""

    front: SingleBound = field(default_factory=SingleBound)
    rear: SingleBound = field(default_factory=SingleBound)
    center: SingleBound = field(default_factory=SingleBound)


class VehicleState:
    """Start and target states plus the initial error to the reference line."""

    def __init__(
        self,
        start_state: State | None = None,
        target_state: State | None = None,
        offset: float = 0.0,
        heading_error: float = 0.0,
    ) -> None:
        self.start_state = replace(start_state) if start_state is not None else State()
        self.target_state = replace(target_state) if target_state is not None else State()
        self._initial_offset = offset
        self._initial_heading_error = heading_error

    def init_error(self) -> tuple[float, float]:
        """Initial (lateral offset, heading error)."""
        return self._initial_offset, self._initial_heading_error

    def set_init_error(self, init_offset: float, init_heading_error: float) -> None:
        self._initial_offset = init_offset
        self._initial_heading_error = init_heading_error